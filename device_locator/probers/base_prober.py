"""
Base prober interface for the Device Locator.

This module defines the abstract base class that liveness probers implement.
Concrete probers only answer "is the service there"; BaseProber.run wraps
that answer with timing and turns every failure into a failed outcome.
"""

import time
from abc import ABC, abstractmethod
from typing import Optional, Tuple

from ..core.data_models import ProbeOutcome
from ..utils.logger import Logger, get_logger
from ..utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    ProbeError,
)


class BaseProber(ABC):
    """
    Abstract base class for liveness probers.

    Probers hold no session state and may be called from many worker
    threads at once.
    """

    def __init__(self, logger: Optional[Logger] = None, error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the base prober.

        Args:
            logger: Logger instance for probe diagnostics
            error_handler: ErrorHandler that absorbs probe failures
        """
        self.logger = logger or get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    @abstractmethod
    def probe(self, address: str, port: int, timeout: float) -> bool:
        """
        Check whether the service answers at ``address:port``.

        Args:
            address: Candidate IPv4 address
            port: Service port
            timeout: Seconds to wait for the response

        Returns:
            True if the service answered successfully

        Raises:
            ProbeError: On network-level failure
        """
        pass

    def check(self, address: str, port: int, timeout: float) -> Tuple[bool, Optional[int]]:
        """
        Probe and also report the protocol status the candidate answered with.

        Probers that see a status code override this; the default has none.

        Returns:
            Tuple of (success, status code or None)
        """
        return bool(self.probe(address, port, timeout)), None

    def run(self, address: str, port: int, timeout: float) -> ProbeOutcome:
        """
        Probe one candidate and never raise.

        Returns:
            ProbeOutcome describing the attempt
        """
        started = time.monotonic()
        status_code = None
        try:
            success, status_code = self.check(address, port, timeout)
            if success:
                error = None
            elif status_code is not None:
                error = f"HTTP {status_code}"
            else:
                error = "no service"
        except ProbeError as e:
            success = False
            error = str(e)
            self._record_failure(e, address, ErrorSeverity.LOW)
        except Exception as e:
            # A broken prober must not take the whole scan down with it
            success = False
            error = f"{type(e).__name__}: {e}"
            self._record_failure(e, address, ErrorSeverity.MEDIUM)

        return ProbeOutcome(
            address=address,
            success=success,
            duration=time.monotonic() - started,
            error=error,
            status_code=status_code,
        )

    def _record_failure(self, error: Exception, address: str, severity: ErrorSeverity) -> None:
        context = ErrorContext(
            error_type=ErrorType.PROBE_FAILURE,
            severity=severity,
            operation="probe",
            component=type(self).__name__,
            additional_info={"address": address},
        )
        self.error_handler.handle_error(error, context)
