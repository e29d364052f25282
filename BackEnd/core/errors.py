class PomodoroError(Exception):
	"""Base class for study timer errors."""


class Conflict(PomodoroError):
	"""An open session already exists where a new one was requested."""

	def __init__(self, user_id, existing_id=None):
		self.user_id = user_id
		self.existing_id = existing_id
		super().__init__(f"User {user_id} already has an open session ({existing_id})")


class StatsWriteConflict(Conflict):
	"""Subject statistics kept changing underneath a read-modify-write."""

	def __init__(self, user_id, subject_id, attempts):
		self.user_id = user_id
		self.existing_id = None
		self.subject_id = subject_id
		self.attempts = attempts
		PomodoroError.__init__(
			self,
			f"Statistics for user {user_id}, subject {subject_id} changed during {attempts} attempts",
		)


class InvalidTransition(PomodoroError):
	"""The session is not in a state that allows the requested operation."""

	def __init__(self, session_id, operation, actual_status):
		self.session_id = session_id
		self.operation = operation
		self.actual_status = actual_status
		super().__init__(f"Cannot {operation} session {session_id} while it is {actual_status}")


class StoreUnavailable(PomodoroError):
	"""The session record store could not be read or written. Retryable."""


class OperationInProgress(PomodoroError):
	"""Another lifecycle operation is still in flight on this timer."""

	def __init__(self, running):
		self.running = running
		super().__init__(f"'{running}' is still in progress")


class StaleSessionReclaimed:
	"""Notice that an abandoned session was force-completed during reconciliation."""

	def __init__(self, session, age_seconds):
		self.session = session
		self.age_seconds = age_seconds

	@property
	def message(self):
		hours = self.age_seconds / 3600
		return f"Your previous session was open for {hours:.1f}h and has been closed automatically."

	def __repr__(self):
		return f"<StaleSessionReclaimed session={self.session.id} age={self.age_seconds}s>"
