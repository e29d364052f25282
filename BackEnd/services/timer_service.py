import functools

from loguru import logger
from PySide6.QtCore import QObject, QTimer, Signal

from BackEnd.core.clock import SystemClock, seconds_between
from BackEnd.core.config import get_settings
from BackEnd.core.errors import (
	Conflict, InvalidTransition, OperationInProgress, StaleSessionReclaimed,
	StatsWriteConflict, StoreUnavailable,
)
from BackEnd.core.models import Reconciliation, SessionStatus, SessionType
from BackEnd.repos.session_repo import SessionRepo
from BackEnd.repos.stats_repo import StatsRepo
from BackEnd.services.stats_service import StatsService
from BackEnd.services.timer_engine import RUNNING, compute_timer_state


def _single_flight(method):
	"""Reject a lifecycle call while another one is still running on this timer."""
	@functools.wraps(method)
	def wrapper(self, *args, **kwargs):
		if self._in_flight is not None:
			raise OperationInProgress(self._in_flight)
		self._in_flight = method.__name__
		try:
			self._flush_pending_stats()
			return method(self, *args, **kwargs)
		finally:
			self._in_flight = None
	return wrapper


class TimerService(QObject):
	"""
	Study session lifecycle for one user: NONE -> ACTIVE <-> PAUSED -> COMPLETED | CANCELED.

	The session store is the source of truth. This object only keeps a projection of
	the current session, replaced with the stored row after every confirmed write and
	rebuilt from the store by load_active_session(). Nothing local changes before the
	store confirms a write.
	"""

	tick = Signal(object)  # emits TimerState
	state_changed = Signal(str)  # emits 'idle', 'running', 'paused'
	session_completed = Signal(object)  # emits the terminal PomodoroSession
	stale_reclaimed = Signal(object)  # emits StaleSessionReclaimed

	def __init__(self, user_id, repo=None, stats=None, clock=None, cache=None, settings=None):
		super().__init__()
		self.user_id = user_id
		self.settings = settings or get_settings()
		self.clock = clock or SystemClock()
		self.repo = repo or SessionRepo(open_session_scope=self.settings.OPEN_SESSION_SCOPE)
		self.stats = stats or StatsService(StatsRepo(self.repo.dbfile), clock=self.clock)
		self.cache = cache
		self.default_duration_seconds = self.settings.DEFAULT_FOCUS_MINUTES * 60
		self._session = None
		self._last_status = None
		self._in_flight = None
		# (session_id, subject_id, focus seconds) of completions whose statistics are not written yet
		self._pending_stats = []
		self._timer = QTimer(self)
		self._timer.setInterval(self.settings.TICK_INTERVAL_MS)
		self._timer.timeout.connect(self.poll)

	@property
	def session(self):
		return self._session

	@property
	def state(self):
		return compute_timer_state(self._session, self.clock.now(), self.default_duration_seconds)

	@property
	def running(self):
		return self._session is not None

	@property
	def paused(self):
		return self._session is not None and self._session.status == SessionStatus.PAUSED

	@property
	def pending_stats(self):
		"""Completed focus sessions still waiting for their statistics write."""
		return list(self._pending_stats)

	# --- lifecycle operations ---

	@_single_flight
	def start_session(self, subject_id, session_type=SessionType.FOCUS, duration_minutes=None):
		"""Start a session, first closing whatever is already open for this user."""
		return self._start(subject_id, session_type, duration_minutes)

	@_single_flight
	def pause_session(self):
		if self._session is None:
			logger.debug("Pause ignored: no current session")
			return None
		now = self.clock.now()
		state = compute_timer_state(self._session, now, self.default_duration_seconds)
		if not state.is_active or state.is_paused:
			logger.warning(f"Pause ignored: session {self._session.id} is {state.status}")
			return state
		if state.is_finished:
			self._end(now=now)
			return self.state
		try:
			updated = self.repo.transition_to_paused(self._session, state.remaining_seconds, now)
		except InvalidTransition as e:
			return self._on_invalid_transition(e)
		logger.info(f"Paused session {updated.id} with {updated.remaining_seconds}s remaining")
		self._apply(updated)
		return self.state

	@_single_flight
	def resume_session(self):
		if self._session is None:
			logger.debug("Resume ignored: no current session")
			return None
		if self._session.status != SessionStatus.PAUSED:
			logger.warning(f"Resume ignored: session {self._session.id} is {self._session.status.value}")
			return self.state
		try:
			updated = self.repo.transition_to_active(self._session, self.clock.now())
		except InvalidTransition as e:
			return self._on_invalid_transition(e)
		logger.info(f"Resumed session {updated.id} with {updated.remaining_seconds}s remaining")
		self._apply(updated)
		return self.state

	@_single_flight
	def end_session(self):
		"""Complete the current session and feed focus time into the subject statistics."""
		return self._end()

	@_single_flight
	def cancel_session(self):
		"""Close the current session without counting it."""
		return self._end(status=SessionStatus.CANCELED)

	@_single_flight
	def reset_session(self):
		"""End the current session and immediately start a fresh one with the same settings."""
		if self._session is None:
			logger.debug("Reset ignored: no current session")
			return None
		previous = self._session
		if self._end() is None:
			return self.state
		return self._start(
			previous.subject_id,
			previous.session_type,
			previous.planned_duration_seconds / 60,
		)

	@_single_flight
	def load_active_session(self, subject_id=None):
		"""Rebuild timer state from the store. Run on every window/app start."""
		return self._reconcile(subject_id)

	@_single_flight
	def refresh(self):
		"""Re-read the current session from the store."""
		self._refresh()
		return self.state

	def shutdown(self):
		"""Stop ticking. The open session stays in the store for the next start to reconcile."""
		self._timer.stop()

	def cached_session(self):
		"""Last-seen session for painting before reconciliation. Never authoritative."""
		return self.cache.load() if self.cache is not None else None

	def poll(self):
		"""Timer tick: recompute from absolute time and auto-complete when time is up."""
		if self._in_flight is None and self._pending_stats:
			self._flush_pending_stats()
		state = self.state
		if state.is_finished and self._in_flight is None:
			try:
				self.end_session()
			except StoreUnavailable as e:
				logger.error(f"Auto-complete failed, will retry on next tick: {e}")
			state = self.state
		if state.status != RUNNING and not self._pending_stats:
			self._timer.stop()
		self.tick.emit(state)
		return state

	# --- internals ---

	def _start(self, subject_id, session_type, duration_minutes):
		session_type = SessionType(session_type)
		if duration_minutes is None:
			duration_minutes = self.settings.default_minutes_for(session_type)
		planned = int(round(duration_minutes * 60))
		if planned <= 0:
			raise ValueError(f"Session duration must be positive, got {duration_minutes} minutes")
		scope_subject = subject_id if self.repo.open_session_scope == "subject" else None

		attempts = 2
		for attempt in range(1, attempts + 1):
			now = self.clock.now()
			closed = set()
			try:
				self._close_open_sessions(scope_subject, now, closed)
				created = self.repo.create(self.user_id, subject_id, session_type, planned, now)
				break
			except Conflict as e:
				if attempt == attempts:
					raise
				logger.warning(f"Another window opened a session while starting, retrying: {e}")
			except StoreUnavailable:
				if self._session is not None and self._session.id in closed:
					self._apply(None)
				raise

		self.default_duration_seconds = planned
		self._apply(created)
		return created

	def _close_open_sessions(self, subject_id, now, closed):
		"""Cancel every open session in scope, adding each confirmed id to `closed`."""
		for open_session in self.repo.list_open_sessions(self.user_id, subject_id):
			remaining = compute_timer_state(open_session, now).remaining_seconds
			try:
				self.repo.cancel(open_session, now, remaining)
			except InvalidTransition as e:
				logger.warning(f"Open session changed while closing it: {e}")
				continue
			logger.info(f"Closed open session {open_session.id} before starting a new one")
			closed.add(open_session.id)

	def _end(self, status=SessionStatus.COMPLETED, now=None):
		if self._session is None:
			logger.debug("End ignored: no current session")
			return None
		session = self._session
		now = now or self.clock.now()
		final_remaining = compute_timer_state(session, now).remaining_seconds
		try:
			stored, applied = self.repo.complete(session, now, final_remaining, status=status)
		except InvalidTransition as e:
			self._on_invalid_transition(e)
			return None

		self._apply(None)
		if applied:
			if status == SessionStatus.COMPLETED:
				self._record_stats(stored)
			self.session_completed.emit(stored)
		return stored

	def _record_stats(self, session):
		# break sessions never count towards subject statistics
		if session.session_type != SessionType.FOCUS:
			return
		self._pending_stats.append((session.id, session.subject_id, session.actual_duration_seconds))
		self._flush_pending_stats()

	def _flush_pending_stats(self):
		"""Write queued completions in order, stopping at the first store failure."""
		while self._pending_stats:
			session_id, subject_id, seconds = self._pending_stats[0]
			try:
				self.stats.record_completion(self.user_id, subject_id, seconds)
			except StoreUnavailable as e:
				logger.error(f"Statistics for session {session_id} not recorded yet, will retry: {e}")
				if not self._timer.isActive():
					self._timer.start()
				return
			except StatsWriteConflict as e:
				logger.error(f"Session {session_id} completed but its statistics were not recorded: {e}")
			self._pending_stats.pop(0)

	def _reconcile(self, subject_id):
		for attempt in range(2):
			now = self.clock.now()
			found = self.repo.find_open_session(self.user_id, subject_id)
			if found is None:
				self._apply(None)
				return Reconciliation(session=None, state=self.state)

			age = seconds_between(found.started_at, now)
			if found.status == SessionStatus.ACTIVE and age > self.settings.stale_after_seconds:
				try:
					stored, _ = self.repo.complete(found, now, found.remaining_seconds)
				except InvalidTransition as e:
					logger.warning(f"Stale session changed during reconciliation, re-reading: {e}")
					continue
				notice = StaleSessionReclaimed(stored, age)
				logger.warning(f"Reclaimed stale session {found.id} (open for {age}s)")
				self._apply(None)
				self.stale_reclaimed.emit(notice)
				return Reconciliation(session=None, state=self.state, reclaimed=notice)

			self.default_duration_seconds = found.planned_duration_seconds
			self._apply(found)
			if self.state.is_finished:
				completed = self._end(now=now)
				return Reconciliation(session=None, state=self.state, completed=completed)
			logger.info(f"Resumed session {found.id} ({self.state.remaining_seconds}s remaining)")
			return Reconciliation(session=found, state=self.state, resumed=True)

		self._apply(None)
		return Reconciliation(session=None, state=self.state)

	def _refresh(self):
		if self._session is None:
			return
		self._apply(self.repo.get(self._session.id))

	def _on_invalid_transition(self, error):
		logger.warning(f"{error}; refreshing from the store")
		self._refresh()
		return self.state

	def _apply(self, session):
		"""Replace the local projection with a stored row (or None) and notify listeners."""
		self._session = session if session is not None and session.is_open else None
		self._write_cache()
		state = self.state
		# keep ticking while statistics writes are still queued
		if state.status == RUNNING or self._pending_stats:
			if not self._timer.isActive():
				self._timer.start()
		else:
			self._timer.stop()
		if state.status != self._last_status:
			self._last_status = state.status
			self.state_changed.emit(state.status)
		self.tick.emit(state)

	def _write_cache(self):
		if self.cache is None:
			return
		try:
			if self._session is None:
				self.cache.clear()
			else:
				self.cache.save(self._session)
		except OSError as e:
			logger.warning(f"Could not update session cache: {e}")
