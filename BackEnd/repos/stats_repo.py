import sqlite3

from BackEnd.core.clock import to_iso
from BackEnd.core.models import SubjectStatistics
from BackEnd.repos.db import transaction

STATS_COLUMNS = (
	"user_id, subject_id, total_focus_seconds, sessions_completed, "
	"last_session_completed_at, version"
)


class StatsRepo:
	"""Per-(user, subject) running totals. Writes are conditional on `version`."""

	def __init__(self, dbfile=None):
		self.dbfile = dbfile

	def get(self, user_id, subject_id):
		with transaction(self.dbfile) as conn:
			row = conn.execute(
				f"SELECT {STATS_COLUMNS} FROM subject_stats WHERE user_id=? AND subject_id=?",
				(user_id, subject_id),
			).fetchone()
			return SubjectStatistics.from_row(row) if row else None

	def list_for_user(self, user_id):
		with transaction(self.dbfile) as conn:
			cur = conn.execute(
				f"SELECT {STATS_COLUMNS} FROM subject_stats WHERE user_id=? "
				"ORDER BY total_focus_seconds DESC, subject_id",
				(user_id,),
			)
			return [SubjectStatistics.from_row(row) for row in cur.fetchall()]

	def insert(self, stats, now):
		"""Create the row. Returns False if another writer created it first."""
		with transaction(self.dbfile, immediate=True) as conn:
			try:
				conn.execute(
					f"INSERT INTO subject_stats ({STATS_COLUMNS}, updated_at) VALUES (?, ?, ?, ?, ?, 1, ?)",
					(
						stats.user_id, stats.subject_id, stats.total_focus_seconds,
						stats.sessions_completed, to_iso(stats.last_session_completed_at), to_iso(now),
					),
				)
			except sqlite3.IntegrityError:
				return False
		return True

	def update(self, stats, expected_version, now):
		"""Overwrite the row only if nobody else bumped its version. Returns True on success."""
		with transaction(self.dbfile, immediate=True) as conn:
			cur = conn.execute(
				"""
				UPDATE subject_stats
				SET total_focus_seconds=?, sessions_completed=?, last_session_completed_at=?,
					version=version + 1, updated_at=?
				WHERE user_id=? AND subject_id=? AND version=?
				""",
				(
					stats.total_focus_seconds, stats.sessions_completed,
					to_iso(stats.last_session_completed_at), to_iso(now),
					stats.user_id, stats.subject_id, expected_version,
				),
			)
			return cur.rowcount == 1
