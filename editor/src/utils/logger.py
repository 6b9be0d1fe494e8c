"""Global logging and error reporting utilities"""
import logging
import sys
import traceback
from typing import Callable, Optional

# Detect debug mode - True if running from source, False if packaged
DEBUG_MODE = not getattr(sys, 'frozen', False)

LOG_FORMAT = '%(asctime)s %(levelname)-7s [%(name)s] %(message)s'

# Callback (title, message) that shows an error to the user, set by the host UI
_error_reporter: Optional[Callable[[str, str], None]] = None

_logger = logging.getLogger('TextEditor')


def setup_logging(verbose: bool = False):
    """Configure root logging for the CLI and the editor host"""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)


def set_error_reporter(reporter: Optional[Callable[[str, str], None]]):
    """Set the callback used to show errors to the user (None to unset)"""
    global _error_reporter
    _error_reporter = reporter


def report_error(user_message: str, title: str = "Error"):
    """Show a user-facing message without raising

    Used for validation errors (bad file type, invalid font) where the
    operation is simply aborted.
    """
    _logger.warning(f"{title}: {user_message}")
    if _error_reporter:
        _error_reporter(title, user_message)


def loggerRaise(e: Exception, user_message: str = None, title: str = "Error"):
    """Handle exceptions with an optional user report in release mode

    Args:
        e: The exception to handle
        user_message: User-friendly message to report (optional)
        title: Title for the report

    In DEBUG_MODE:
        - Just raises the exception (shows full traceback)

    In RELEASE_MODE:
        - Logs the full traceback
        - Reports the user message or exception string
        - Then raises the exception
    """
    if DEBUG_MODE:
        raise e

    tb = ''.join(traceback.format_exception(type(e), e, e.__traceback__))
    _logger.error(tb)

    message = user_message if user_message else str(e)
    if _error_reporter:
        _error_reporter(title, message)
    else:
        print(f"ERROR (no reporter): {title} - {message}", file=sys.stderr)

    raise e


def loggerWarn(e: Exception, context: str):
    """Log a transient, non-fatal error (storage or font I/O) and carry on"""
    _logger.warning(f"{context}: {type(e).__name__}: {e}")
