import logging
import sys
from typing import Optional


# Provider SDKs log every HTTP request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "groq", "google.generativeai")


def configure_logging(level: Optional[str] = None) -> None:
	"""Install a single stdout handler on the root logger. Safe to call more than once."""
	root_logger = logging.getLogger()
	if root_logger.handlers:
		return

	handler = logging.StreamHandler(sys.stdout)
	formatter = logging.Formatter(
		"%(asctime)s | %(levelname)s | %(name)s | %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	handler.setFormatter(formatter)
	root_logger.addHandler(handler)

	resolved = (level or "INFO").upper()
	root_logger.setLevel(logging.getLevelName(resolved))
	if resolved != "DEBUG":
		for name in NOISY_LOGGERS:
			logging.getLogger(name).setLevel(logging.WARNING)
