"""A process-wide logger with printf-style helpers."""

from __future__ import annotations

import enum
import sys
import threading

from reactornet.timestamp import Timestamp

_MAX_MESSAGE = 1023


class LogLevel(enum.IntEnum):
    """Severity of a log line."""

    INFO = 0
    ERROR = 1
    FATAL = 2
    DEBUG = 3


class FatalError(RuntimeError):
    """Raised after a fatal message has been logged."""


class Logger:
    """Singleton that writes tagged, time-stamped lines to standard output."""

    _instance: "Logger | None" = None
    _instance_lock = threading.Lock()

    def __init__(self) -> None:
        self.level = LogLevel.INFO
        self.debug_enabled = False
        self._lock = threading.RLock()

    @classmethod
    def instance(cls) -> "Logger":
        """Return the one shared logger, creating it on first use."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def set_level(self, level) -> None:
        """Set the level used to tag the next line."""
        self.level = LogLevel(level)

    def log(self, message: str) -> None:
        """Write one line tagged with the current level and time."""
        stamp = Timestamp.now().to_string()
        line = f"[{self.level.name}]print time:{stamp} {message.rstrip(chr(10))}"
        print(line, file=sys.stdout, flush=True)


def _emit(level: LogLevel, fmt: str, args: tuple) -> str:
    message = (fmt % args if args else fmt)[:_MAX_MESSAGE]
    logger = Logger.instance()
    with logger._lock:
        logger.set_level(level)
        logger.log(message)
    return message


def log_info(fmt: str, *args) -> None:
    """Log an informational message."""
    _emit(LogLevel.INFO, fmt, args)


def log_error(fmt: str, *args) -> None:
    """Log an error that does not stop the program."""
    _emit(LogLevel.ERROR, fmt, args)


def log_fatal(fmt: str, *args) -> None:
    """Log a fatal message and raise FatalError."""
    message = _emit(LogLevel.FATAL, fmt, args)
    raise FatalError(message.rstrip("\n"))


def log_debug(fmt: str, *args) -> None:
    """Log a debug message if debug output is enabled."""
    if Logger.instance().debug_enabled:
        _emit(LogLevel.DEBUG, fmt, args)