"""
Consumer-facing callback contract.

The orchestrator reports through an object with the four methods of
ResultSink. Any object with these methods works; no base class is needed.
"""

from typing import Optional, Protocol

from ..utils.logger import Logger, get_logger


class ResultSink(Protocol):
    """What a consumer of scan results must provide."""

    def on_device_found(self, address: str) -> None:
        """Called exactly once for a session that found the device."""

    def on_timeout(self) -> None:
        """Called once if the global scan timer ended the session."""

    def on_exhausted(self) -> None:
        """Called once if every candidate was probed without a find."""

    def on_log_message(self, text: str) -> None:
        """Best-effort progress line; may be called from any thread."""


class ConsoleResultSink:
    """ResultSink that writes every callback to a Logger."""

    def __init__(self, logger: Optional[Logger] = None, port: int = 8082, echo_log_messages: bool = False):
        self.logger = logger or get_logger("DeviceLocator.console")
        self.port = port
        # The orchestrator already logs its progress lines itself
        self.echo_log_messages = echo_log_messages

    def on_device_found(self, address: str) -> None:
        self.logger.success(f"Device found at {address}", url=f"http://{address}:{self.port}/")

    def on_timeout(self) -> None:
        self.logger.warning("No devices found before the scan timed out")

    def on_exhausted(self) -> None:
        self.logger.warning("No devices found on any interface")

    def on_log_message(self, text: str) -> None:
        if self.echo_log_messages:
            self.logger.info(text)
