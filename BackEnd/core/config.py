from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
	"""
	Runtime configuration for the study timer.
	Every field can be overridden with an EDUTRACK_-prefixed env var or a .env file.
	"""

	model_config = SettingsConfigDict(env_prefix="EDUTRACK_", env_file=".env", extra="ignore")

	APP_NAME: str = "EduTrack"
	DATA_DIR: Optional[Path] = None
	DATABASE_FILE: str = "pomodoro.db"

	# An active session older than this on load is treated as abandoned
	STALE_SESSION_HOURS: float = Field(default=4.0, gt=0)
	# "user": one open session per user; "subject": one per (user, subject)
	OPEN_SESSION_SCOPE: Literal["user", "subject"] = "user"

	DEFAULT_FOCUS_MINUTES: int = Field(default=25, gt=0)
	SHORT_BREAK_MINUTES: int = Field(default=5, gt=0)
	LONG_BREAK_MINUTES: int = Field(default=15, gt=0)
	TICK_INTERVAL_MS: int = Field(default=1000, gt=0)
	STATS_WRITE_RETRIES: int = Field(default=1, ge=0)

	LOG_LEVEL: str = "INFO"
	LOG_FILE: Optional[str] = None

	@property
	def stale_after_seconds(self) -> int:
		return int(self.STALE_SESSION_HOURS * 3600)

	def default_minutes_for(self, session_type) -> int:
		value = getattr(session_type, "value", session_type)
		if value == "short_break":
			return self.SHORT_BREAK_MINUTES
		if value == "long_break":
			return self.LONG_BREAK_MINUTES
		return self.DEFAULT_FOCUS_MINUTES


@lru_cache
def get_settings() -> Settings:
	return Settings()
