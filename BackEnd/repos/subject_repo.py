from BackEnd.repos.db import transaction


class SubjectRepo:
	"""Read side of the subject catalog. The timer only needs display names."""

	def __init__(self, dbfile=None):
		self.dbfile = dbfile

	def subject_name(self, subject_id):
		with transaction(self.dbfile) as conn:
			row = conn.execute("SELECT name FROM subjects WHERE id=?", (subject_id,)).fetchone()
		return row["name"] if row else f"Subject {subject_id}"

	def list_subjects(self):
		with transaction(self.dbfile) as conn:
			cur = conn.execute("SELECT id, name FROM subjects ORDER BY name")
			return [dict(row) for row in cur.fetchall()]

	def add_subject(self, name):
		"""Insert a subject (or find the existing one) and return its id."""
		name = name.strip()
		if not name:
			raise ValueError("Subject name must not be empty")
		with transaction(self.dbfile, immediate=True) as conn:
			conn.execute("INSERT OR IGNORE INTO subjects (name) VALUES (?)", (name,))
			row = conn.execute("SELECT id FROM subjects WHERE name=?", (name,)).fetchone()
			return row["id"]
