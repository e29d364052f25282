from datetime import date, timedelta

import pytest

from BackEnd.core.errors import Conflict, InvalidTransition, StoreUnavailable
from BackEnd.core.models import SessionStatus, SessionType
from BackEnd.repos.session_repo import SessionRepo


def test_create_and_find_open_session(session_repo, clock):
	created = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	assert created.status == SessionStatus.ACTIVE
	assert created.remaining_seconds == 1500
	assert created.started_at == clock.now()
	assert created.created_at == clock.now()
	assert created.ended_at is None

	found = session_repo.find_open_session("user-1")
	assert found == created
	assert session_repo.find_open_session("user-1", subject_id=7) == created
	assert session_repo.find_open_session("user-1", subject_id=8) is None
	assert session_repo.find_open_session("someone-else") is None


def test_create_conflicts_with_any_open_session_of_the_user(session_repo, clock):
	first = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	with pytest.raises(Conflict) as exc:
		session_repo.create("user-1", 9, SessionType.FOCUS, 1500, clock.now())
	assert exc.value.existing_id == first.id
	# other users are unaffected
	session_repo.create("user-2", 7, SessionType.FOCUS, 1500, clock.now())


def test_subject_scope_allows_one_open_session_per_subject(db_file, clock):
	repo = SessionRepo(db_file, open_session_scope="subject")
	repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	repo.create("user-1", 9, SessionType.FOCUS, 1500, clock.now())
	with pytest.raises(Conflict):
		repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())


def test_pause_freezes_remaining_and_rejects_double_pause(session_repo, clock):
	session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	clock.advance(600)
	paused = session_repo.transition_to_paused(session, 900, clock.now())
	assert paused.status == SessionStatus.PAUSED
	assert paused.remaining_seconds == 900
	assert paused.paused_at == clock.now()

	with pytest.raises(InvalidTransition) as exc:
		session_repo.transition_to_paused(paused, 800, clock.now())
	assert exc.value.actual_status == "paused"
	assert session_repo.get(session.id).remaining_seconds == 900


def test_resume_reanchors_started_at(session_repo, clock):
	session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	clock.advance(600)
	paused = session_repo.transition_to_paused(session, 900, clock.now())
	clock.advance(3600)
	resumed = session_repo.transition_to_active(paused, clock.now())
	assert resumed.status == SessionStatus.ACTIVE
	assert resumed.started_at == clock.now()
	assert resumed.paused_at is None
	assert resumed.remaining_seconds == 900
	assert resumed.created_at == session.created_at

	with pytest.raises(InvalidTransition):
		session_repo.transition_to_active(resumed, clock.now())


def test_complete_is_idempotent_and_sets_ended_at_once(session_repo, clock):
	session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	clock.advance(1500)
	first_end = clock.now()
	stored, applied = session_repo.complete(session, first_end, remaining_seconds=0)
	assert applied
	assert stored.status == SessionStatus.COMPLETED
	assert stored.ended_at == first_end
	assert stored.actual_duration_seconds == 1500

	clock.advance(30)
	again, applied_again = session_repo.complete(session, clock.now(), remaining_seconds=0)
	assert not applied_again
	assert again.ended_at == first_end
	assert session_repo.find_open_session("user-1") is None


def test_complete_with_outdated_view_of_open_session_is_rejected(session_repo, clock):
	session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	clock.advance(60)
	session_repo.transition_to_paused(session, 1440, clock.now())
	# `session` still says active while the stored row is paused
	with pytest.raises(InvalidTransition):
		session_repo.complete(session, clock.now())
	assert session_repo.get(session.id).status == SessionStatus.PAUSED


def test_cancel_is_reachable_from_paused(session_repo, clock):
	session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	paused = session_repo.transition_to_paused(session, 1200, clock.now())
	stored, applied = session_repo.cancel(paused, clock.now())
	assert applied
	assert stored.status == SessionStatus.CANCELED
	assert stored.remaining_seconds == 1200


def test_find_open_session_prefers_most_recent_start(db_file, clock):
	repo = SessionRepo(db_file, open_session_scope="subject")
	older = repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	clock.advance(10)
	newer = repo.create("user-1", 9, SessionType.FOCUS, 1500, clock.now())
	assert repo.find_open_session("user-1").id == newer.id
	clock.advance(10)
	paused = repo.transition_to_paused(older, 1400, clock.now())
	clock.advance(10)
	repo.transition_to_active(paused, clock.now())
	assert repo.find_open_session("user-1").id == older.id


def test_today_focus_seconds_counts_completed_focus_only(session_repo, clock):
	today = clock.now().astimezone().date().isoformat()
	focus = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	session_repo.complete(focus, clock.now(), remaining_seconds=300)
	brk = session_repo.create("user-1", 7, SessionType.SHORT_BREAK, 300, clock.now())
	session_repo.complete(brk, clock.now(), remaining_seconds=0)
	canceled = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
	session_repo.cancel(canceled, clock.now(), remaining_seconds=100)
	open_session = session_repo.create("user-1", 9, SessionType.FOCUS, 1500, clock.now())

	assert session_repo.today_focus_seconds("user-1", today=today) == 1200
	assert session_repo.today_focus_seconds("user-1", subject_id=9, today=today) == 0
	assert len(session_repo.list_sessions("user-1")) == 4
	assert [s.id for s in session_repo.list_sessions("user-1", subject_id=9)] == [open_session.id]


def test_daily_streak_counts_consecutive_days(session_repo, clock):
	for _ in range(3):
		session = session_repo.create("user-1", 7, SessionType.FOCUS, 1500, clock.now())
		session_repo.complete(session, clock.now(), remaining_seconds=0)
		clock.advance(86400)
	last_day = date.fromisoformat(session.local_date)
	assert session_repo.daily_streak("user-1", today=last_day) == 3
	assert session_repo.daily_streak("user-1", today=last_day + timedelta(days=1)) == 0
	assert session_repo.daily_streak("user-1", today=last_day + timedelta(days=2)) == 0


def test_unreachable_store_raises_store_unavailable(tmp_path, clock):
	# a directory cannot be opened as a database file
	repo = SessionRepo(tmp_path, open_session_scope="user")
	with pytest.raises(StoreUnavailable):
		repo.find_open_session("user-1")
