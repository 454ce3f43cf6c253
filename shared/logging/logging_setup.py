from datetime import datetime
from pytz import timezone
import logging.config
import logging
import os
from logging import Logger

APP_LOGGER_NAME = "ombudsman_archive"

# ANSI colors accepted by the color= keyword of ColorLogger
_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan":    "\033[36m",
    "green":   "\033[32m",
    "yellow":  "\033[33m",
    "red":     "\033[31m",
    "magenta": "\033[35m",
    "blue":    "\033[34m",
    "white":   "\033[37m",
}

_LEVEL_PREFIX: dict[int, str] = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}


def is_debug_mode() -> bool:
    return os.getenv("LOG_LEVEL", "info").strip().lower() == "debug"


class CustomFormatter(logging.Formatter):
    """Renders timestamps in a fixed timezone and prefixes warnings and errors."""

    def __init__(self, tz_name, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # malformed %-args from a third-party logger, keep the raw template
            message = str(record.msg)

        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + message
        # args are already merged into msg
        record.args = ()
        return super().format(record)


class ColoredFormatter(CustomFormatter):
    """Console formatter that colors a line when the record carries a ``color`` attribute."""

    def format(self, record) -> str:
        line = super().format(record)
        ansi = _COLOR_MAP.get(getattr(record, "color", None) or "", "")
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wraps a :class:`logging.Logger` and adds an optional ``color=`` keyword to every log method.

    Usage::

        logger.info("Serving PDF from cache: %s", path, color="green")
        logger.warning("Redirecting %s to its share link", path, color="yellow")

    Only the console handler renders the color, the log file stays plain text.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _with_color(self, kwargs: dict, color: str | None) -> dict:
        if color is None:
            return kwargs
        extra = dict(kwargs.get("extra") or {})
        extra["color"] = color
        return {**kwargs, "extra": extra}

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.debug(msg, *args, **self._with_color(kwargs, color))

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.info(msg, *args, **self._with_color(kwargs, color))

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.warning(msg, *args, **self._with_color(kwargs, color))

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.error(msg, *args, **self._with_color(kwargs, color))

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.critical(msg, *args, **self._with_color(kwargs, color))

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        self._logger.exception(msg, *args, **self._with_color(kwargs, color))

    def log(self, level: int, msg, *args, color: str | None = None, **kwargs):
        self._logger.log(level, msg, *args, **self._with_color(kwargs, color))

    def __getattr__(self, name):
        """Delegate everything else (setLevel, handlers, ...) to the wrapped logger."""
        return getattr(self._logger, name)


def build_logging_config(log_file: str, tz_name: str, level: int) -> dict:
    """Return the dictConfig for a console handler plus a UTF-8 log file."""
    formatter_args = {
        "format": "%(asctime)s - %(levelname)s - %(message)s",
        "datefmt": "%Y-%m-%d %H:%M:%S",
        "tz_name": tz_name,
    }
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {"()": CustomFormatter, **formatter_args},
            "colored": {"()": ColoredFormatter, **formatter_args},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "standard",
                "level": level,
                "filename": log_file,
                "encoding": "utf-8",
            },
        },
        "root": {
            "handlers": ["console", "file"],
            "level": level,
        },
    }


def setup_logging(log_name: str = "app") -> ColorLogger:
    """Configure logging for one process and return the application logger.

    Args:
        log_name (str): Base name of the log file below <ROOT_DIR>/logs, e.g. "app" or "cache_warmup".

    Returns:
        ColorLogger: The application logger.
    """
    log_dir = os.path.join(os.getenv("ROOT_DIR") or os.getcwd(), "logs")
    os.makedirs(log_dir, exist_ok=True)
    debug_mode = is_debug_mode()
    level = logging.DEBUG if debug_mode else logging.INFO

    logging.config.dictConfig(build_logging_config(
        log_file=os.path.join(log_dir, f"{log_name}.log"),
        tz_name=os.getenv("TIMEZONE", "Asia/Hong_Kong"),
        level=level,
    ))

    # request lines of the HTTP clients only in debug mode
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.DEBUG if debug_mode else logging.WARNING)

    return ColorLogger(logging.getLogger(APP_LOGGER_NAME))
