import json

from loguru import logger

from BackEnd.core.models import PomodoroSession
from BackEnd.core.paths import session_cache_path


class SessionCache:
	"""Last-seen open session, kept on disk only to paint the timer before the store answers."""

	def __init__(self, path=None):
		self.path = path or session_cache_path()

	def save(self, session):
		self.path.parent.mkdir(parents=True, exist_ok=True)
		with open(self.path, "w", encoding="utf-8") as f:
			json.dump(session.to_dict(), f)

	def load(self):
		if not self.path.exists():
			return None
		try:
			with open(self.path, "r", encoding="utf-8") as f:
				return PomodoroSession.from_dict(json.load(f))
		except (OSError, ValueError, KeyError, TypeError) as e:
			logger.warning(f"Discarding unreadable session cache {self.path}: {e}")
			self.clear()
			return None

	def clear(self):
		if self.path.exists():
			self.path.unlink()
