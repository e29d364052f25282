from datetime import datetime, timedelta, timezone

import pytest
from PySide6.QtCore import QCoreApplication

from BackEnd.core.config import Settings
from BackEnd.repos.session_cache import SessionCache
from BackEnd.repos.session_repo import SessionRepo
from BackEnd.repos.stats_repo import StatsRepo
from BackEnd.repos.subject_repo import SubjectRepo
from BackEnd.services.stats_service import StatsService
from BackEnd.services.timer_service import TimerService


class FakeClock:
	"""Manually advanced clock so tests control every instant."""

	def __init__(self, start=None):
		self.current = start or datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)

	def now(self):
		return self.current

	def advance(self, seconds):
		self.current += timedelta(seconds=seconds)


@pytest.fixture(scope="session", autouse=True)
def qt_core_app():
	app = QCoreApplication.instance() or QCoreApplication([])
	yield app


@pytest.fixture()
def clock():
	return FakeClock()


@pytest.fixture()
def settings():
	return Settings(_env_file=None)


@pytest.fixture()
def db_file(tmp_path):
	return tmp_path / "pomodoro_test.db"


@pytest.fixture()
def session_repo(db_file, settings):
	return SessionRepo(db_file, open_session_scope=settings.OPEN_SESSION_SCOPE)


@pytest.fixture()
def stats_repo(db_file):
	return StatsRepo(db_file)


@pytest.fixture()
def subject_repo(db_file):
	return SubjectRepo(db_file)


@pytest.fixture()
def stats_service(stats_repo, clock, subject_repo):
	return StatsService(stats_repo, clock=clock, subjects=subject_repo, retries=1)


@pytest.fixture()
def make_service(session_repo, stats_service, clock, settings, tmp_path):
	"""Build a TimerService; each call stands for a separate window on the same store."""
	created = []

	def factory(user_id="user-1", repo=None, cache_name=None, stats=None):
		cache = SessionCache(tmp_path / cache_name) if cache_name else None
		service = TimerService(
			user_id,
			repo=repo or session_repo,
			stats=stats or stats_service,
			clock=clock,
			cache=cache,
			settings=settings,
		)
		created.append(service)
		return service

	yield factory
	for service in created:
		service.shutdown()
