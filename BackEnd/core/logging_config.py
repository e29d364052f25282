import sys

from loguru import logger

from BackEnd.core.config import get_settings

LOG_FORMAT = (
	"<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
	"<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level=None, log_file=None):
	"""Replace loguru's default sink with the app's stderr (and optional file) sinks."""
	settings = get_settings()
	level = (level or settings.LOG_LEVEL).upper()
	log_file = log_file or settings.LOG_FILE

	logger.remove()
	logger.add(sys.stderr, level=level, format=LOG_FORMAT)
	if log_file:
		logger.add(log_file, level=level, rotation="1 MB", retention=5, enqueue=True)
	logger.debug(f"Logging configured at {level}")
