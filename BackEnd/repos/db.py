import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path

from loguru import logger

from BackEnd.core.errors import StoreUnavailable
from BackEnd.core.paths import db_path

SCHEMA_PATH = Path(__file__).parent.parent.parent / "SQL" / "schema.sql"

_schema_applied = set()
_schema_lock = threading.Lock()

def connect(dbfile=None):
	"""Open SQLite connection and ensure schema is applied (once per file per process)."""
	dbfile = str(dbfile or db_path())
	try:
		# isolation_level=None: transactions are opened explicitly by transaction()
		conn = sqlite3.connect(dbfile, timeout=5.0, isolation_level=None)
		conn.row_factory = sqlite3.Row
		with _schema_lock:
			if dbfile not in _schema_applied:
				with open(SCHEMA_PATH, encoding="utf-8") as f:
					conn.executescript(f.read())
				_schema_applied.add(dbfile)
	except sqlite3.Error as e:
		logger.error(f"Could not open session store at {dbfile}: {e}")
		raise StoreUnavailable(f"Session store unavailable: {e}") from e
	return conn

@contextmanager
def transaction(dbfile=None, immediate=False):
	"""Yield a connection inside one transaction; commit on success, roll back on error.

	Any sqlite failure is re-raised as StoreUnavailable so callers see one retryable error.
	"""
	conn = connect(dbfile)
	try:
		conn.execute("BEGIN IMMEDIATE" if immediate else "BEGIN")
		yield conn
		conn.execute("COMMIT")
	except sqlite3.Error as e:
		if conn.in_transaction:
			conn.rollback()
		logger.error(f"Session store error: {e}")
		raise StoreUnavailable(f"Session store unavailable: {e}") from e
	except BaseException:
		if conn.in_transaction:
			conn.rollback()
		raise
	finally:
		conn.close()
