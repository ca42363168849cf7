import logging
from logging.handlers import RotatingFileHandler
import sys
from pathlib import Path
from datetime import datetime
from prompt_toolkit import print_formatted_text
from prompt_toolkit.formatted_text import ANSI

# -------------------- Configuration --------------------
LOGS_DIR: Path = (Path(__file__).parents[3] / "logs").resolve()
LOGS_DIR.mkdir(parents=True, exist_ok=True)

LOG_FORMAT: str = "[%(asctime)s] [%(levelname)s] [%(name)s:%(funcName)s:%(lineno)d] %(message)s"
DATE_FORMAT: str = "%Y-%m-%d %H-%M-%S"

LOG_COLORS = {
    "DEBUG": "\033[36m",      # Cyan
    "INFO": "\033[32m",       # Green
    "WARNING": "\033[33m",    # Yellow
    "ERROR": "\033[31m",      # Red
    "CRITICAL": "\033[38;5;88m",  # Dark Red (ANSI 256-color)
}
RESET_COLOR = "\033[0m"

# Shared by every logger of one process run
LOG_FILEPATH: Path | None = None

# Rotate at 5 MB, keep three old files
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


# -------------------- Formatters --------------------
class ColorFormatter(logging.Formatter):
    """
    Log formatter that wraps each line in the ANSI colour of its level.

    Colours come from ``LOG_COLORS``:
    - DEBUG: Cyan
    - INFO: Green
    - WARNING: Yellow
    - ERROR: Red
    - CRITICAL: Dark Red

    Levels without an entry (custom levels) are left uncoloured.

    Attributes:
        Inherits all attributes from logging.Formatter.
    """

    def format(self, record: logging.LogRecord) -> str:
        color = LOG_COLORS.get(record.levelname, "")
        message = super().format(record)
        return f"{color}{message}{RESET_COLOR}" if color else message


class PromptToolkitHandler(logging.Handler):
    """
    Console handler that prints through prompt_toolkit.

    ``print_formatted_text`` understands the ANSI sequences produced by
    :class:`ColorFormatter` on every platform prompt_toolkit supports.

    Args:
        formatter (logging.Formatter | None): Optional formatter to apply to log records.
    """

    def __init__(self, formatter: logging.Formatter | None = None):
        super().__init__()
        if formatter:
            self.setFormatter(formatter)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            msg = self.format(record)
            print_formatted_text(ANSI(msg))
        except Exception:
            self.handleError(record)


plain_formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def should_use_color() -> bool:
    """
    Determine if the current environment supports colourised terminal output.

    Checks whether stderr is attached to a terminal (TTY). Any error raised by
    the check, for example a replaced or closed stream, counts as no colour.

    Returns:
        bool: True if ANSI colour codes should be used on the console.
    """
    try:
        return sys.stderr.isatty()
    except Exception:
        return False


color_formatter = ColorFormatter(LOG_FORMAT, datefmt=DATE_FORMAT) if should_use_color() else plain_formatter


# -------------------- Logger Setup --------------------

def get_log_filepath() -> Path:
    """
    Get or create the log file path for the current session.

    Every logger of one process writes to the same file:
    - On first call, the most recent log file from today is looked up
    - If it was touched less than 60 seconds ago it is reused (quick restarts)
    - Otherwise a new file named after the current timestamp is used

    The file itself is rotated by the ``RotatingFileHandler`` that
    :func:`setup_logger` attaches.

    Returns:
        Path: Log file shared by all loggers in this session.

    Note:
        The path is cached in the module-level ``LOG_FILEPATH``.
    """
    global LOG_FILEPATH

    if LOG_FILEPATH is None:
        today_prefix = datetime.now().strftime("%Y-%m-%d")
        existing_logs = sorted(LOGS_DIR.glob(f"{today_prefix}*.log"), key=lambda p: p.stat().st_mtime, reverse=True)

        if existing_logs and datetime.now().timestamp() - existing_logs[0].stat().st_mtime < 60:
            LOG_FILEPATH = existing_logs[0]
        else:
            LOG_FILEPATH = LOGS_DIR / (datetime.now().strftime(DATE_FORMAT) + ".log")

    return LOG_FILEPATH


def setup_logger(logger_name: str) -> logging.Logger:
    """Configure and return a logger with console and rotating file handlers.

    The console handler prints INFO and above through prompt_toolkit, coloured
    when stderr is a TTY. The file handler records everything from DEBUG up in
    the shared session log, rotating at ``LOG_MAX_BYTES`` and keeping
    ``LOG_BACKUP_COUNT`` old files. Calling it again for the same name returns
    the already configured logger without adding handlers.

    Parameters
    ----------
    logger_name:
        Name of the logger to configure.

    Returns
    -------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    if logger.handlers:
        return logger

    base_level = logging.DEBUG
    logger.setLevel(base_level)
    logger.propagate = False

    console_handler = PromptToolkitHandler(formatter=color_formatter)
    console_handler.setLevel(logging.INFO)
    logger.addHandler(console_handler)

    file_handler = RotatingFileHandler(
        get_log_filepath(),
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(plain_formatter)
    logger.addHandler(file_handler)

    return logger


def get_logger(logger_name: str) -> logging.Logger:
    """Retrieve a logger configured for Welcomer, creating it if necessary.

    Parameters
    ----------
    logger_name:
        Name of the logger requested by the caller, usually the module's role
        such as ``"join_ledger"``.

    Returns
    -------
    logging.Logger
        Logger instance ready for use.
    """
    return setup_logger(logger_name)


# -------------------- Exception Handling --------------------
def handle_exception(exception_type, exception_instance, exception_traceback) -> None:
    """
    Log uncaught exceptions; installed as ``sys.excepthook``.

    KeyboardInterrupt goes to the default hook so Ctrl+C still exits quietly.
    Everything else is logged with its traceback through the ``uncaught``
    logger, so it lands in the session log file as well as on the console.

    Args:
        exception_type: Class of the uncaught exception.
        exception_instance: The exception itself.
        exception_traceback: Traceback of the exception.
    """
    if issubclass(exception_type, KeyboardInterrupt):
        sys.__excepthook__(exception_type, exception_instance, exception_traceback)
    else:
        get_logger("uncaught").error(
            "Uncaught exception", exc_info=(exception_type, exception_instance, exception_traceback)
        )


# -------------------- Suppress Noisy Libraries --------------------
NOISY_LOGGERS = [
    "discord", "discord.gateway", "discord.client", "discord.http",
    "websockets", "aiohttp", "aiosqlite",
]

for noisy_logger in NOISY_LOGGERS:
    lg = logging.getLogger(noisy_logger)
    lg.setLevel(logging.ERROR)
    lg.propagate = False
    lg.handlers = []
