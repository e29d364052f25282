"""
Pure timer math.

Remaining and elapsed time are always recomputed from the stored timestamps and the
current instant, never accumulated from ticks, so a late or skipped tick corrects
itself on the next one.
"""
from BackEnd.core.clock import seconds_between
from BackEnd.core.models import SessionStatus, TimerState

IDLE = "idle"
RUNNING = "running"
PAUSED = "paused"


def idle_state(default_duration_seconds: int) -> TimerState:
	return TimerState(
		status=IDLE,
		is_active=False,
		is_paused=False,
		remaining_seconds=default_duration_seconds,
		elapsed_seconds=0,
		planned_duration_seconds=default_duration_seconds,
	)


def compute_timer_state(session, now, default_duration_seconds: int = 25 * 60) -> TimerState:
	"""Derive the timer view of `session` at instant `now`. Never raises, never mutates."""
	if session is None or session.status.is_terminal:
		return idle_state(default_duration_seconds)

	planned = session.planned_duration_seconds
	if session.status == SessionStatus.PAUSED:
		remaining = max(0, min(session.remaining_seconds, planned))
		return TimerState(
			status=PAUSED,
			is_active=True,
			is_paused=True,
			remaining_seconds=remaining,
			elapsed_seconds=planned - remaining,
			planned_duration_seconds=planned,
		)

	# remaining_seconds holds what was left when the current running interval began:
	# the full duration at creation, or the frozen value from the last pause.
	budget = max(0, min(session.remaining_seconds, planned))
	run = seconds_between(session.started_at, now)
	remaining = max(0, budget - run)
	# elapsed keeps counting past the planned duration until the session is ended
	elapsed = planned - budget + run
	return TimerState(
		status=RUNNING,
		is_active=True,
		is_paused=False,
		remaining_seconds=remaining,
		elapsed_seconds=elapsed,
		planned_duration_seconds=planned,
		is_finished=remaining == 0,
	)
