from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Optional

from BackEnd.core.clock import parse_iso, to_iso


class SessionStatus(str, Enum):
	ACTIVE = "active"
	PAUSED = "paused"
	COMPLETED = "completed"
	CANCELED = "canceled"

	@property
	def is_open(self) -> bool:
		return self in (SessionStatus.ACTIVE, SessionStatus.PAUSED)

	@property
	def is_terminal(self) -> bool:
		return not self.is_open


OPEN_STATUSES = (SessionStatus.ACTIVE.value, SessionStatus.PAUSED.value)


class SessionType(str, Enum):
	FOCUS = "focus"
	SHORT_BREAK = "short_break"
	LONG_BREAK = "long_break"


@dataclass(frozen=True)
class PomodoroSession:
	"""One row of the session store. `started_at` is the start of the running interval."""

	id: str
	user_id: str
	subject_id: int
	session_type: SessionType
	planned_duration_seconds: int
	started_at: datetime
	status: SessionStatus
	remaining_seconds: int
	paused_at: Optional[datetime] = None
	ended_at: Optional[datetime] = None
	created_at: Optional[datetime] = None
	local_date: Optional[str] = None

	@property
	def is_open(self) -> bool:
		return self.status.is_open

	@property
	def is_terminal(self) -> bool:
		return self.status.is_terminal

	@property
	def actual_duration_seconds(self) -> int:
		return max(0, self.planned_duration_seconds - self.remaining_seconds)

	@classmethod
	def from_row(cls, row):
		return cls(
			id=row["id"],
			user_id=row["user_id"],
			subject_id=row["subject_id"],
			session_type=SessionType(row["session_type"]),
			planned_duration_seconds=int(row["planned_duration_seconds"]),
			started_at=parse_iso(row["started_at"]),
			status=SessionStatus(row["status"]),
			remaining_seconds=int(row["remaining_seconds"]),
			paused_at=parse_iso(row["paused_at"]),
			ended_at=parse_iso(row["ended_at"]),
			created_at=parse_iso(row["created_at"]),
			local_date=row["local_date"],
		)

	def to_dict(self):
		data = asdict(self)
		data["session_type"] = self.session_type.value
		data["status"] = self.status.value
		for key in ("started_at", "paused_at", "ended_at", "created_at"):
			data[key] = to_iso(data[key])
		return data

	@classmethod
	def from_dict(cls, data):
		return cls.from_row(data)


@dataclass(frozen=True)
class SubjectStatistics:
	user_id: str
	subject_id: int
	total_focus_seconds: int = 0
	sessions_completed: int = 0
	last_session_completed_at: Optional[datetime] = None
	version: int = 0

	@classmethod
	def from_row(cls, row):
		return cls(
			user_id=row["user_id"],
			subject_id=row["subject_id"],
			total_focus_seconds=int(row["total_focus_seconds"]),
			sessions_completed=int(row["sessions_completed"]),
			last_session_completed_at=parse_iso(row["last_session_completed_at"]),
			version=int(row["version"]),
		)


@dataclass(frozen=True)
class TimerState:
	"""What the UI renders on every tick."""

	status: str
	is_active: bool
	is_paused: bool
	remaining_seconds: int
	elapsed_seconds: int
	planned_duration_seconds: int
	is_finished: bool = False

	def as_ui_tuple(self):
		return {
			"status": self.status,
			"remainingSeconds": self.remaining_seconds,
			"elapsedSeconds": self.elapsed_seconds,
			"plannedDurationSeconds": self.planned_duration_seconds,
		}


@dataclass
class Reconciliation:
	"""Outcome of rebuilding timer state from the store on startup."""

	session: Optional[PomodoroSession]
	state: TimerState
	resumed: bool = False
	reclaimed: Optional[object] = None
	# set when the timer ran out while no window was open
	completed: Optional[PomodoroSession] = None
