"""
Logging system with colored output for device location scans.

This module provides a Logger class that supports colored console output
using colorama, different log levels with distinct colors, and a lock that
keeps lines written from concurrent probe threads from interleaving.
"""

import sys
import threading
from datetime import datetime
from enum import Enum
from typing import Dict, Optional
from colorama import Fore, Style, init

# Initialize colorama for cross-platform colored output
init(autoreset=True)


class LogLevel(Enum):
    """Enumeration for different log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


LEVEL_ORDER = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARNING: 2,
    LogLevel.ERROR: 3,
}


class Logger:
    """
    Logger class with colored console output.

    Every logger obtained through ``get_logger`` shares the process-wide
    minimum level, so ``set_log_level`` affects all of them at once.
    """

    LEVEL_COLORS = {
        LogLevel.DEBUG: Fore.CYAN,
        LogLevel.INFO: Fore.GREEN,
        LogLevel.WARNING: Fore.YELLOW,
        LogLevel.ERROR: Fore.RED,
    }

    # One lock for all loggers; they all write to the same two streams
    _output_lock = threading.Lock()

    def __init__(self, name: str = "DeviceLocator", min_level: LogLevel = LogLevel.INFO):
        """
        Initialize the Logger.

        Args:
            name: Name of the logger (default: "DeviceLocator")
            min_level: Minimum log level to display (default: INFO)
        """
        self.name = name
        self.min_level = min_level

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Return True if a message at ``level`` would be printed."""
        return LEVEL_ORDER[level] >= LEVEL_ORDER[self.min_level]

    def _format_timestamp(self) -> str:
        return datetime.now().strftime("%H:%M:%S.%f")[:-3]

    def _emit(self, line: str, stream=None) -> None:
        with self._output_lock:
            print(line, file=stream or sys.stdout, flush=True)

    def _log(self, level: LogLevel, message: str, **kwargs) -> None:
        """
        Internal logging method that handles formatting and output.

        Args:
            level: Log level
            message: Message to log
            **kwargs: Additional context rendered as ``key=value`` pairs
        """
        if not self.is_enabled_for(level):
            return

        color = self.LEVEL_COLORS[level]
        formatted_message = (
            f"{Style.DIM}[{self._format_timestamp()}]{Style.RESET_ALL} "
            f"{color}{level.value:<7}{Style.RESET_ALL} "
            f"{Style.DIM}{self.name}:{Style.RESET_ALL} {message}"
        )

        if kwargs:
            details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
            formatted_message += f" {Style.DIM}({details}){Style.RESET_ALL}"

        self._emit(formatted_message, sys.stderr if level == LogLevel.ERROR else sys.stdout)

    def debug(self, message: str, **kwargs) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, exception: Optional[Exception] = None, **kwargs) -> None:
        """
        Log an error message.

        Args:
            message: Error message
            exception: Optional exception object for additional context
            **kwargs: Additional context information
        """
        if exception:
            kwargs["exception"] = f"{type(exception).__name__}: {exception}"
        self._log(LogLevel.ERROR, message, **kwargs)

    def success(self, message: str, **kwargs) -> None:
        """Log a success message (filtered as INFO, styled distinctly)."""
        if not self.is_enabled_for(LogLevel.INFO):
            return

        formatted_message = (
            f"{Style.DIM}[{self._format_timestamp()}]{Style.RESET_ALL} "
            f"{Fore.GREEN}{Style.BRIGHT}SUCCESS{Style.RESET_ALL} "
            f"{Style.BRIGHT}{message}{Style.RESET_ALL}"
        )
        if kwargs:
            details = " | ".join(f"{k}={v}" for k, v in kwargs.items())
            formatted_message += f" {Style.DIM}({details}){Style.RESET_ALL}"

        self._emit(formatted_message)

    def section(self, title: str) -> None:
        """Log a section header for organizing output."""
        if not self.is_enabled_for(LogLevel.INFO):
            return

        separator = "=" * 60
        self._emit(f"\n{Fore.BLUE}{Style.BRIGHT}{separator}\n  {title.upper()}\n{separator}{Style.RESET_ALL}\n")


_loggers: Dict[str, Logger] = {}
_current_level = LogLevel.INFO

# Global logger instance
logger = Logger()
_loggers[logger.name] = logger


def set_log_level(level: LogLevel) -> None:
    """
    Set the log level of every logger handed out so far and of future ones.

    Args:
        level: Minimum log level to display
    """
    global _current_level
    _current_level = level
    for existing in _loggers.values():
        existing.min_level = level


def get_logger(name: str = "DeviceLocator") -> Logger:
    """
    Get the logger registered under ``name``, creating it on first use.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    if name not in _loggers:
        _loggers[name] = Logger(name, min_level=_current_level)
    return _loggers[name]
