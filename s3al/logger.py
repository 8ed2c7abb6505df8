"""Process-wide logger writing to a file and, optionally, to the console."""

from __future__ import annotations

import sys
import threading
from abc import ABC, abstractmethod
from enum import IntEnum
from typing import Callable, Optional, TextIO, Union

from s3al.colors import Color
from s3al.timeutils import TimeFormat, now

__all__ = [
    "LogLevel",
    "Logger",
    "LoggingMixin",
    "get_logger",
    "log_debug",
    "log_info",
    "log_warn",
    "log_error",
]


class LogLevel(IntEnum):
    """Severity levels, ordered from least to most severe."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARN",
    LogLevel.ERROR: "ERROR",
}

_LEVEL_COLORS = {
    LogLevel.DEBUG: Color.CYAN,
    LogLevel.INFO: Color.GREEN,
    LogLevel.WARNING: Color.YELLOW,
    LogLevel.ERROR: Color.RED,
}

_LEVEL_NAMES = {
    "DEBUG": LogLevel.DEBUG,
    "INFO": LogLevel.INFO,
    "WARNING": LogLevel.WARNING,
    "WARN": LogLevel.WARNING,
    "ERROR": LogLevel.ERROR,
}

ConsoleOutputCallback = Callable[[bool], None]
LogCallback = Callable[[str, str, str], None]


def _timestamp() -> str:
    return now(TimeFormat.DATETIME_MILLISECONDS)


def _resolve_level(level: Union[LogLevel, str]) -> LogLevel:
    if isinstance(level, LogLevel):
        return level
    return _LEVEL_NAMES.get(level, LogLevel.INFO)


class Logger:
    """Thread-safe logger with a log file and optional coloured console output."""

    def __init__(self, console: Optional[TextIO] = None) -> None:
        self.min_level: LogLevel = LogLevel.INFO
        self.console_output: bool = False
        self._console = console
        self._file: Optional[TextIO] = None
        self._lock = threading.Lock()
        self._console_callback: Optional[ConsoleOutputCallback] = None

    def init(self, file_name: str, min_level: LogLevel = LogLevel.INFO) -> None:
        """Open (append to) the log file and set the minimum level."""
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
            self.min_level = min_level
            self._file = open(file_name, "a", encoding="utf-8")
            self._file.write(
                f"{_timestamp()} [INFO]  [LOGGER] Logger initialized: {file_name}\n"
            )
            self._file.flush()

    def set_console_output_callback(self, callback: Optional[ConsoleOutputCallback]) -> None:
        """Set a hook called with True before and False after console output."""
        self._console_callback = callback

    def log(self, level: Union[LogLevel, str], module: str, message: str) -> None:
        """Log a message; string levels are matched by name, unknown ones mean INFO."""
        resolved = _resolve_level(level)
        if resolved < self.min_level:
            return
        label = resolved.label
        spacing = "  " if len(label) < 5 else " "
        with self._lock:
            if self._file is not None:
                self._file.write(
                    f"{_timestamp()} [{label}]{spacing}[{module}] {message}\n"
                )
                self._file.flush()
            if self.console_output:
                if self._console_callback:
                    self._console_callback(True)
                stream = self._console if self._console is not None else sys.stderr
                stream.write(
                    f"{_timestamp()} {_LEVEL_COLORS[resolved].value}{Color.BOLD.value}"
                    f"[{label}]{Color.RESET.value}{spacing}[{module}] {message}\n"
                )
                stream.flush()
                if self._console_callback:
                    self._console_callback(False)

    def flush(self) -> None:
        """Flush the log file, if one is open."""
        with self._lock:
            if self._file is not None:
                self._file.flush()

    def close(self) -> None:
        """Flush and close the log file."""
        with self._lock:
            if self._file is not None:
                self._file.flush()
                self._file.close()
                self._file = None


_instance = Logger()


def get_logger() -> Logger:
    """Return the process-wide logger."""
    return _instance


def log_debug(module: str, message: str) -> None:
    _instance.log(LogLevel.DEBUG, module, message)


def log_info(module: str, message: str) -> None:
    _instance.log(LogLevel.INFO, module, message)


def log_warn(module: str, message: str) -> None:
    _instance.log(LogLevel.WARNING, module, message)


def log_error(module: str, message: str) -> None:
    _instance.log(LogLevel.ERROR, module, message)


class LoggingMixin(ABC):
    """Gives a class logging methods tagged with its module name.

    Messages go to a callback when one is set, otherwise to the shared logger.
    """

    _log_callback: Optional[LogCallback] = None

    @property
    @abstractmethod
    def module_name(self) -> str:
        """Name shown in the module column of log lines."""

    def set_log_callback(self, callback: Optional[LogCallback]) -> None:
        self._log_callback = callback

    def log(self, level: str, message: str) -> None:
        if self._log_callback is not None:
            self._log_callback(level, self.module_name, message)
        else:
            get_logger().log(level, self.module_name, message)

    def log_debug(self, message: str) -> None:
        self.log("DEBUG", message)

    def log_info(self, message: str) -> None:
        self.log("INFO", message)

    def log_warn(self, message: str) -> None:
        self.log("WARN", message)

    def log_error(self, message: str) -> None:
        self.log("ERROR", message)