import logging
import sys
import traceback
from typing import Optional


def setup_logging(level: int = logging.WARNING, fmt: Optional[str] = None) -> None:
	"""Configure root logging once, on stderr. Subsequent calls are no-ops.
	stdout is reserved for rendered template output.
	"""
	if logging.getLogger().handlers:
		# Already configured; do nothing
		return
	format_str = fmt or '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
	logging.basicConfig(level=level, format=format_str, stream=sys.stderr)


def log_exception(logger: logging.Logger, message: str = "An error occurred", exc_info: Exception = None) -> None:
	"""Centralized exception logging with full traceback.
	
	Args:
		logger: Logger instance to use
		message: Custom error message to log before the traceback
		exc_info: Exception instance (if None, uses current exception context)
	"""
	logger.error(message)
	if exc_info is not None:
		logger.error(f"Exception type: {type(exc_info).__name__}")
		logger.error(f"Exception message: {str(exc_info)}")
	logger.error("Full traceback:")
	logger.error(traceback.format_exc())
