import threading
from datetime import datetime, timezone


class SystemClock:
	"""Wall-clock source that never goes backwards within one process."""

	def __init__(self):
		self._last = None
		self._lock = threading.Lock()

	def now(self) -> datetime:
		current = datetime.now(timezone.utc)
		with self._lock:
			if self._last is not None and current < self._last:
				current = self._last
			self._last = current
		return current


def to_iso(dt):
	"""Serialize an aware datetime as a UTC ISO8601 string, or None."""
	if dt is None:
		return None
	if dt.tzinfo is None:
		dt = dt.replace(tzinfo=timezone.utc)
	return dt.astimezone(timezone.utc).isoformat()

def parse_iso(value):
	"""Parse an ISO8601 string into an aware UTC datetime, or None."""
	if not value:
		return None
	dt = datetime.fromisoformat(value)
	if dt.tzinfo is None:
		dt = dt.replace(tzinfo=timezone.utc)
	return dt.astimezone(timezone.utc)

def local_date_str(dt=None):
	"""Return the local calendar date of dt (default: now) as YYYY-MM-DD."""
	if dt is None:
		return datetime.now().date().isoformat()
	return dt.astimezone().date().isoformat()

def seconds_between(start, end) -> int:
	"""Whole seconds from start to end, floored and never negative."""
	delta = (end - start).total_seconds()
	if delta <= 0:
		return 0
	return int(delta // 1)

def fmt_hms(seconds: int) -> str:
	"""Format seconds as HH:MM:SS."""
	h = seconds // 3600
	m = (seconds % 3600) // 60
	s = seconds % 60
	return f"{h:02}:{m:02}:{s:02}"

def fmt_mmss(seconds: int) -> str:
	"""Format seconds as MM:SS (minutes may exceed 59)."""
	return f"{seconds // 60:02d}:{seconds % 60:02d}"
