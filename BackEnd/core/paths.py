import os
from pathlib import Path

from BackEnd.core.config import get_settings

def user_data_dir(app_name=None):
	"""Return per-user data dir (Windows/macOS/Linux), honouring EDUTRACK_DATA_DIR."""
	settings = get_settings()
	if settings.DATA_DIR is not None:
		path = Path(settings.DATA_DIR)
	else:
		app_name = app_name or settings.APP_NAME
		if os.name == "nt":
			base = os.environ.get("LOCALAPPDATA", os.path.expanduser("~\\AppData\\Local"))
		elif os.name == "posix":
			base = os.environ.get("XDG_DATA_HOME", os.path.expanduser("~/.local/share"))
		else:
			base = os.path.expanduser("~")
		path = Path(base) / app_name
	path.mkdir(parents=True, exist_ok=True)
	return path

def db_path():
	"""Return Path to the session database inside user data dir."""
	return user_data_dir() / get_settings().DATABASE_FILE

def session_cache_path():
	"""Return Path to the last-seen session snapshot."""
	return user_data_dir() / "active_session.json"
