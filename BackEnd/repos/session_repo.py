import datetime
import uuid

from loguru import logger

from BackEnd.core.clock import local_date_str, to_iso
from BackEnd.core.config import get_settings
from BackEnd.core.errors import Conflict, InvalidTransition
from BackEnd.core.models import OPEN_STATUSES, PomodoroSession, SessionStatus, SessionType
from BackEnd.repos.db import transaction

SESSION_COLUMNS = (
	"id, user_id, subject_id, session_type, planned_duration_seconds, started_at, "
	"paused_at, remaining_seconds, status, ended_at, created_at, local_date"
)


class SessionRepo:
	"""Reads and conditional writes against the pomodoro_sessions table.

	Every write is keyed by id plus the status the caller expects the row to be in,
	so two windows racing on the same session cannot both apply a transition.
	"""

	def __init__(self, dbfile=None, open_session_scope=None):
		self.dbfile = dbfile
		self.open_session_scope = open_session_scope or get_settings().OPEN_SESSION_SCOPE

	# --- reads ---

	def get(self, session_id):
		with transaction(self.dbfile) as conn:
			return self._get(conn, session_id)

	def find_open_session(self, user_id, subject_id=None):
		"""Return the most recently started open session, or None."""
		sessions = self.list_open_sessions(user_id, subject_id)
		return sessions[0] if sessions else None

	def list_open_sessions(self, user_id, subject_id=None):
		with transaction(self.dbfile) as conn:
			return self._open_sessions(conn, user_id, subject_id)

	def list_sessions(self, user_id, start_date=None, end_date=None, subject_id=None):
		"""Sessions for a user, newest first. Dates are inclusive YYYY-MM-DD strings."""
		query = f"SELECT {SESSION_COLUMNS} FROM pomodoro_sessions WHERE user_id=?"
		params = [user_id]
		if start_date is not None and end_date is not None:
			query += " AND local_date BETWEEN ? AND ?"
			params += [start_date, end_date]
		if subject_id is not None:
			query += " AND subject_id=?"
			params.append(subject_id)
		query += " ORDER BY created_at DESC"
		with transaction(self.dbfile) as conn:
			cur = conn.execute(query, params)
			return [PomodoroSession.from_row(row) for row in cur.fetchall()]

	def today_focus_seconds(self, user_id, subject_id=None, today=None):
		"""Sum of completed focus time for sessions created on the local date `today`."""
		today = today or local_date_str()
		query = (
			"SELECT COALESCE(SUM(planned_duration_seconds - remaining_seconds), 0) AS total "
			"FROM pomodoro_sessions WHERE user_id=? AND local_date=? AND status=? AND session_type=?"
		)
		params = [user_id, today, SessionStatus.COMPLETED.value, SessionType.FOCUS.value]
		if subject_id is not None:
			query += " AND subject_id=?"
			params.append(subject_id)
		with transaction(self.dbfile) as conn:
			row = conn.execute(query, params).fetchone()
			return row["total"] if row else 0

	def daily_streak(self, user_id, today=None):
		"""
		Consecutive days, ending today, with at least one completed focus session.
		Returns 0 if nothing was completed today.
		"""
		today = today or datetime.date.today()
		with transaction(self.dbfile) as conn:
			cur = conn.execute(
				"SELECT DISTINCT local_date FROM pomodoro_sessions "
				"WHERE user_id=? AND status=? AND session_type=? "
				"AND planned_duration_seconds > remaining_seconds ORDER BY local_date DESC",
				(user_id, SessionStatus.COMPLETED.value, SessionType.FOCUS.value),
			)
			dates = [datetime.date.fromisoformat(row["local_date"]) for row in cur.fetchall()]

		if today not in dates:
			return 0

		streak = 0
		current_date = today
		for study_date in dates:
			if study_date == current_date:
				streak += 1
				current_date -= datetime.timedelta(days=1)
			elif study_date < current_date:
				break
		return streak

	# --- writes ---

	def create(self, user_id, subject_id, session_type, planned_duration_seconds, now):
		"""Insert a new active session. Raises Conflict if one is already open in scope."""
		session_type = SessionType(session_type)
		scope_subject = subject_id if self.open_session_scope == "subject" else None
		with transaction(self.dbfile, immediate=True) as conn:
			existing = self._open_sessions(conn, user_id, scope_subject)
			if existing:
				raise Conflict(user_id, existing[0].id)
			session_id = str(uuid.uuid4())
			now_iso = to_iso(now)
			conn.execute(
				f"""
				INSERT INTO pomodoro_sessions ({SESSION_COLUMNS})
				VALUES (?, ?, ?, ?, ?, ?, NULL, ?, ?, NULL, ?, ?)
				""",
				(
					session_id, user_id, subject_id, session_type.value,
					int(planned_duration_seconds), now_iso, int(planned_duration_seconds),
					SessionStatus.ACTIVE.value, now_iso, local_date_str(now),
				),
			)
			created = self._get(conn, session_id)
		logger.info(
			f"Created {session_type.value} session {session_id} for user {user_id}, "
			f"subject {subject_id} ({planned_duration_seconds}s)"
		)
		return created

	def transition_to_paused(self, session, remaining_seconds_at_pause, now):
		"""active -> paused, freezing remaining_seconds."""
		remaining = max(0, min(int(remaining_seconds_at_pause), session.planned_duration_seconds))
		with transaction(self.dbfile, immediate=True) as conn:
			cur = conn.execute(
				"UPDATE pomodoro_sessions SET status=?, paused_at=?, remaining_seconds=? "
				"WHERE id=? AND status=?",
				(SessionStatus.PAUSED.value, to_iso(now), remaining, session.id, SessionStatus.ACTIVE.value),
			)
			if cur.rowcount == 0:
				raise self._invalid(conn, session.id, "pause")
			return self._get(conn, session.id)

	def transition_to_active(self, session, now):
		"""paused -> active. started_at is re-anchored to now so pause gaps never count."""
		with transaction(self.dbfile, immediate=True) as conn:
			cur = conn.execute(
				"UPDATE pomodoro_sessions SET status=?, started_at=?, paused_at=NULL "
				"WHERE id=? AND status=?",
				(SessionStatus.ACTIVE.value, to_iso(now), session.id, SessionStatus.PAUSED.value),
			)
			if cur.rowcount == 0:
				raise self._invalid(conn, session.id, "resume")
			return self._get(conn, session.id)

	def complete(self, session, now, remaining_seconds=None, status=SessionStatus.COMPLETED):
		"""
		Move an open session to a terminal status and stamp ended_at.

		Returns (stored_session, applied). When the row is already terminal this is a
		no-op and applied is False, so duplicate end triggers converge. If the row is
		still open but no longer in the status the caller saw, InvalidTransition is raised.
		"""
		status = SessionStatus(status)
		if remaining_seconds is None:
			remaining_seconds = session.remaining_seconds
		remaining = max(0, min(int(remaining_seconds), session.planned_duration_seconds))
		with transaction(self.dbfile, immediate=True) as conn:
			cur = conn.execute(
				"UPDATE pomodoro_sessions SET status=?, ended_at=?, remaining_seconds=?, paused_at=NULL "
				"WHERE id=? AND status=? AND ended_at IS NULL",
				(status.value, to_iso(now), remaining, session.id, session.status.value),
			)
			if cur.rowcount == 1:
				stored = self._get(conn, session.id)
				applied = True
			else:
				stored = self._get(conn, session.id)
				if stored is None or stored.is_open:
					raise self._invalid(conn, session.id, "end")
				applied = False
		if applied:
			logger.info(f"Session {session.id} {status.value} with {remaining}s remaining")
		else:
			logger.debug(f"Session {session.id} already {stored.status.value}; end ignored")
		return stored, applied

	def cancel(self, session, now, remaining_seconds=None):
		return self.complete(session, now, remaining_seconds, status=SessionStatus.CANCELED)

	# --- helpers (expect an open connection) ---

	def _get(self, conn, session_id):
		row = conn.execute(
			f"SELECT {SESSION_COLUMNS} FROM pomodoro_sessions WHERE id=?", (session_id,)
		).fetchone()
		return PomodoroSession.from_row(row) if row else None

	def _open_sessions(self, conn, user_id, subject_id=None):
		query = (
			f"SELECT {SESSION_COLUMNS} FROM pomodoro_sessions "
			"WHERE user_id=? AND status IN (?, ?)"
		)
		params = [user_id, *OPEN_STATUSES]
		if subject_id is not None:
			query += " AND subject_id=?"
			params.append(subject_id)
		query += " ORDER BY started_at DESC"
		return [PomodoroSession.from_row(row) for row in conn.execute(query, params).fetchall()]

	def _invalid(self, conn, session_id, operation):
		current = self._get(conn, session_id)
		actual = current.status.value if current else "missing"
		return InvalidTransition(session_id, operation, actual)
