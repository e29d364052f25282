from datetime import datetime, timedelta, timezone

from BackEnd.core.models import PomodoroSession, SessionStatus, SessionType
from BackEnd.services.timer_engine import compute_timer_state

T0 = datetime(2024, 3, 4, 9, 0, 0, 500000, tzinfo=timezone.utc)


def make_session(status=SessionStatus.ACTIVE, planned=1500, remaining=None, started_at=T0):
	return PomodoroSession(
		id="s-1",
		user_id="user-1",
		subject_id=7,
		session_type=SessionType.FOCUS,
		planned_duration_seconds=planned,
		started_at=started_at,
		status=status,
		remaining_seconds=planned if remaining is None else remaining,
		created_at=started_at,
		local_date="2024-03-04",
	)


def test_no_session_is_idle_with_default_duration():
	state = compute_timer_state(None, T0, default_duration_seconds=900)
	assert state.status == "idle"
	assert not state.is_active and not state.is_paused
	assert state.remaining_seconds == 900
	assert state.elapsed_seconds == 0


def test_terminal_sessions_are_idle():
	for status in (SessionStatus.COMPLETED, SessionStatus.CANCELED):
		state = compute_timer_state(make_session(status=status, remaining=0), T0 + timedelta(hours=1), 1500)
		assert not state.is_active
		assert state.remaining_seconds == 1500
		assert state.elapsed_seconds == 0


def test_elapsed_is_recomputed_from_started_at_for_irregular_polls():
	session = make_session()
	offsets = [0.2, 1.0, 1.7, 3.4, 59.99, 60.0, 61.3, 1200.9]
	for offset in offsets:
		now = T0 + timedelta(seconds=offset)
		state = compute_timer_state(session, now)
		assert state.elapsed_seconds == int((now - T0).total_seconds() // 1)
		assert state.remaining_seconds == 1500 - state.elapsed_seconds


def test_single_very_late_poll_matches_wall_clock():
	session = make_session(planned=3 * 3600)
	now = T0 + timedelta(seconds=7321.8)
	state = compute_timer_state(session, now)
	assert state.elapsed_seconds == 7321
	assert state.remaining_seconds == 3 * 3600 - 7321


def test_same_inputs_give_same_output():
	session = make_session()
	now = T0 + timedelta(seconds=42)
	assert compute_timer_state(session, now) == compute_timer_state(session, now)


def test_time_never_runs_backwards_as_now_grows():
	session = make_session()
	previous = compute_timer_state(session, T0)
	for second in range(1, 1600, 37):
		current = compute_timer_state(session, T0 + timedelta(seconds=second))
		assert current.elapsed_seconds >= previous.elapsed_seconds
		assert current.remaining_seconds <= previous.remaining_seconds
		previous = current


def test_paused_session_is_frozen():
	session = make_session(status=SessionStatus.PAUSED, remaining=900)
	for later in (0, 60, 86400):
		state = compute_timer_state(session, T0 + timedelta(seconds=later))
		assert state.status == "paused"
		assert state.is_active and state.is_paused
		assert state.remaining_seconds == 900
		assert state.elapsed_seconds == 600
		assert not state.is_finished


def test_resumed_session_counts_down_from_frozen_remaining():
	resumed_at = T0 + timedelta(hours=2)
	session = make_session(remaining=900, started_at=resumed_at)
	assert compute_timer_state(session, resumed_at).remaining_seconds == 900
	state = compute_timer_state(session, resumed_at + timedelta(seconds=100))
	assert state.remaining_seconds == 800
	assert state.elapsed_seconds == 700


def test_finished_is_signalled_when_time_runs_out():
	session = make_session(planned=60)
	assert not compute_timer_state(session, T0 + timedelta(seconds=59)).is_finished
	state = compute_timer_state(session, T0 + timedelta(seconds=60))
	assert state.is_finished
	assert state.remaining_seconds == 0
	overdue = compute_timer_state(session, T0 + timedelta(seconds=500))
	assert overdue.remaining_seconds == 0
	assert overdue.elapsed_seconds == 500


def test_clock_behind_started_at_counts_as_zero_elapsed():
	state = compute_timer_state(make_session(), T0 - timedelta(seconds=5))
	assert state.elapsed_seconds == 0
	assert state.remaining_seconds == 1500


def test_ui_tuple():
	state = compute_timer_state(make_session(), T0 + timedelta(seconds=10))
	assert state.as_ui_tuple() == {
		"status": "running",
		"remainingSeconds": 1490,
		"elapsedSeconds": 10,
		"plannedDurationSeconds": 1500,
	}
