"""
Logging for AIreform.

Every module asks for its own logger through :func:`get_logger`. Loggers write
to two places:

- the console, through prompt_toolkit, coloured by level when stderr is a TTY
- ``logs/aireform-<date>.log``, rotated by size, at DEBUG level

The console level defaults to INFO and can be changed with the
``AIREFORM_LOG_LEVEL`` environment variable.
"""

import logging
import os
import sys
from datetime import date
from logging.handlers import RotatingFileHandler
from pathlib import Path

from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[38;5;88m",
}
RESET_COLOR = "\033[0m"

# Third-party loggers that flood the console at INFO
NOISY_LOGGERS = (
    "discord",
    "discord.gateway",
    "discord.client",
    "discord.http",
    "websockets",
    "aiohttp",
    "openai",
    "httpx",
    "httpcore",
)

_file_handler: RotatingFileHandler | None = None


class ColorFormatter(logging.Formatter):
    """Wraps each formatted record in the ANSI colour of its level."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """Console handler that prints through ``print_formatted_text`` so log
    lines do not break an active prompt."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            print_formatted_text(ANSI(self.format(record)))
        except Exception:
            self.handleError(record)


def should_use_color() -> bool:
    """Return True when stderr is attached to a terminal."""
    try:
        return sys.stderr.isatty()
    except (AttributeError, ValueError):
        return False


def console_level() -> int:
    name = os.getenv("AIREFORM_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_log_filepath(day: date | None = None) -> Path:
    """Path of the log file for ``day`` (today by default)."""
    day = day or date.today()
    return LOGS_DIR / f"aireform-{day.isoformat()}.log"


def _shared_file_handler() -> RotatingFileHandler:
    """One rotating file handler for the whole process, opened on first use."""
    global _file_handler
    if _file_handler is None:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        _file_handler = RotatingFileHandler(
            get_log_filepath(),
            maxBytes=MAX_LOG_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _file_handler.setLevel(logging.DEBUG)
        _file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return _file_handler


def _console_handler() -> PromptToolkitHandler:
    formatter_class = ColorFormatter if should_use_color() else logging.Formatter
    handler = PromptToolkitHandler()
    handler.setLevel(console_level())
    handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logger(logger_name: str) -> logging.Logger:
    """Attach the console and file handlers to ``logger_name`` once.

    Parameters
    ----------
    logger_name:
        Name of the logger to configure.

    Returns
    -------
    logging.Logger
        The configured logger. Calling again with the same name returns it
        unchanged.
    """
    logger = logging.getLogger(logger_name)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    logger.addHandler(_console_handler())
    logger.addHandler(_shared_file_handler())
    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Return the AIreform logger called ``logger_name``."""
    return setup_logger(logger_name)


def quiet_noisy_loggers() -> None:
    """Only let errors through from chatty third-party libraries."""
    for name in NOISY_LOGGERS:
        noisy = logging.getLogger(name)
        noisy.setLevel(logging.ERROR)
        noisy.propagate = False
        noisy.handlers = []


def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """``sys.excepthook`` replacement that logs uncaught exceptions.

    KeyboardInterrupt goes to the default hook so Ctrl+C still exits quietly.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
        return
    logging.error("Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback))


quiet_noisy_loggers()
sys.excepthook = handle_exception
