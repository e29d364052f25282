from loguru import logger

from BackEnd.core.clock import SystemClock
from BackEnd.core.config import get_settings
from BackEnd.core.errors import StatsWriteConflict
from BackEnd.core.models import SubjectStatistics
from BackEnd.repos.stats_repo import StatsRepo
from BackEnd.repos.subject_repo import SubjectRepo


class StatsService:
	"""
	Folds completed focus sessions into per-subject running totals.

	The aggregate is low-contention and non-critical, so a plain optimistic
	read-modify-write is used: read the row (absent means zeroed), add the new
	session, and write back only if the row's version did not move. A conflicting
	write is retried a bounded number of times before giving up.
	"""

	def __init__(self, repo=None, clock=None, subjects=None, retries=None):
		self.repo = repo or StatsRepo()
		self.clock = clock or SystemClock()
		self.subjects = subjects or SubjectRepo(self.repo.dbfile)
		self.retries = get_settings().STATS_WRITE_RETRIES if retries is None else retries

	def record_completion(self, user_id, subject_id, actual_duration_seconds) -> SubjectStatistics:
		added = max(0, int(actual_duration_seconds))
		attempts = self.retries + 1
		for attempt in range(1, attempts + 1):
			now = self.clock.now()
			current = self.repo.get(user_id, subject_id)
			base = current or SubjectStatistics(user_id=user_id, subject_id=subject_id)
			updated = SubjectStatistics(
				user_id=user_id,
				subject_id=subject_id,
				total_focus_seconds=base.total_focus_seconds + added,
				sessions_completed=base.sessions_completed + 1,
				last_session_completed_at=now,
				version=base.version + 1,
			)
			if current is None:
				written = self.repo.insert(updated, now)
			else:
				written = self.repo.update(updated, current.version, now)
			if written:
				logger.info(
					f"Stats for user {user_id}, subject {subject_id}: +{added}s "
					f"-> {updated.total_focus_seconds}s over {updated.sessions_completed} sessions"
				)
				return updated
			logger.warning(
				f"Stats write for user {user_id}, subject {subject_id} conflicted "
				f"(attempt {attempt}/{attempts})"
			)
		raise StatsWriteConflict(user_id, subject_id, attempts)

	def get_subject_stats(self, user_id, subject_id) -> SubjectStatistics:
		return self.repo.get(user_id, subject_id) or SubjectStatistics(user_id=user_id, subject_id=subject_id)

	def dashboard(self, user_id):
		"""All subjects with recorded focus time, most studied first, with display names."""
		rows = []
		for stats in self.repo.list_for_user(user_id):
			rows.append({
				"subject_id": stats.subject_id,
				"subject_name": self.subjects.subject_name(stats.subject_id),
				"total_focus_seconds": stats.total_focus_seconds,
				"sessions_completed": stats.sessions_completed,
				"last_session_completed_at": stats.last_session_completed_at,
			})
		return rows
