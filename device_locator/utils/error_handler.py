"""
Error handling for the Device Locator.

This module defines the exception hierarchy used throughout a scan and a
centralized ErrorHandler that absorbs per-probe and per-interface failures,
counting and logging them instead of letting them end the scan. Only the
global timeout or candidate exhaustion ends a session without a find.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from .logger import Logger, get_logger


class ErrorType(Enum):
    """Enumeration for different types of errors."""
    INTERFACE_ENUMERATION = "interface_enumeration"
    PROBE_FAILURE = "probe_failure"
    MALFORMED_ADDRESS = "malformed_address"
    SESSION_ENDED = "session_ended"
    CONFIGURATION = "configuration"
    SINK_CALLBACK = "sink_callback"


class ErrorSeverity(Enum):
    """Enumeration for error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class ErrorContext:
    """
    Context information for error handling.

    Attributes:
        error_type: Type of error that occurred
        severity: Severity level of the error
        operation: Operation that was being performed when error occurred
        component: Component/module where error occurred
        additional_info: Additional context information
    """
    error_type: ErrorType
    severity: ErrorSeverity
    operation: str
    component: str
    additional_info: Dict[str, Any] = field(default_factory=dict)


class DeviceLocatorError(Exception):
    """Base exception class for the Device Locator."""

    def __init__(self, message: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message)
        self.error_context = error_context


class InterfaceEnumerationError(DeviceLocatorError):
    """The operating system could not list network interfaces."""
    pass


class ProbeError(DeviceLocatorError):
    """A liveness probe failed at the network level."""

    def __init__(self, message: str, address: str, error_context: Optional[ErrorContext] = None):
        super().__init__(message, error_context)
        self.address = address


class MalformedAddressError(DeviceLocatorError):
    """A local address is not a dotted quad of four octets."""

    def __init__(self, address: str, error_context: Optional[ErrorContext] = None):
        super().__init__(f"Malformed IPv4 address: {address!r}", error_context)
        self.address = address


class SessionAlreadyEndedError(DeviceLocatorError):
    """A probe result arrived for a session that is no longer scanning."""

    def __init__(self, session_id: int, state: Any):
        super().__init__(f"Session {session_id} already ended ({state})")
        self.session_id = session_id
        self.state = state


class ConfigurationError(DeviceLocatorError):
    """Exception for configuration-related errors."""
    pass


class ErrorHandler:
    """
    Centralized error accounting.

    Errors handed to ``handle_error`` are counted per type and logged at a
    level matching their severity. Nothing is retried here; for a probe the
    next candidate or batch is the retry.
    """

    def __init__(self, logger: Optional[Logger] = None):
        """
        Initialize the ErrorHandler.

        Args:
            logger: Logger instance for error reporting
        """
        self.logger = logger or get_logger(__name__)
        self._lock = threading.Lock()
        self.error_statistics: Dict[ErrorType, int] = {error_type: 0 for error_type in ErrorType}

    def handle_error(self, error: Exception, context: ErrorContext) -> None:
        """
        Record and log an error that has been absorbed by the caller.

        Args:
            error: The exception that occurred
            context: Error context information
        """
        with self._lock:
            self.error_statistics[context.error_type] += 1
        self._log_error(error, context)

    def _log_error(self, error: Exception, context: ErrorContext) -> None:
        message = f"{context.component}: {context.operation} failed: {error}"
        details = dict(context.additional_info)

        if context.severity == ErrorSeverity.HIGH:
            self.logger.error(message, exception=error, **details)
        elif context.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(message, **details)
        else:
            self.logger.debug(message, **details)

    def get_error_statistics(self) -> Dict[str, int]:
        """Return non-zero error counts keyed by error type value."""
        with self._lock:
            return {
                error_type.value: count
                for error_type, count in self.error_statistics.items()
                if count
            }

    def reset(self) -> None:
        """Zero all error counters (called at the start of each session)."""
        with self._lock:
            for error_type in ErrorType:
                self.error_statistics[error_type] = 0
