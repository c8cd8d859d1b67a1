"""
Core data models and enums for the Device Locator.

This module defines the data structures passed between the enumerator,
planner, probers and orchestrator, and the result handed to consumers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional
from datetime import datetime


class InterfaceClass(Enum):
    """How wide an address space is scanned from an interface."""
    LAN = "lan"
    TUNNEL = "tunnel"


class ScanState(Enum):
    """Lifecycle states of a scan session."""
    IDLE = "idle"
    SCANNING = "scanning"
    FOUND = "found"
    TIMED_OUT = "timed_out"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self not in (ScanState.IDLE, ScanState.SCANNING)


@dataclass
class InterfaceInfo:
    """
    A local network interface eligible as a scan origin.

    Read fresh from the operating system on every scan.

    Attributes:
        name: Interface name (e.g. "en0")
        families: Address families reported for the interface ("IPv4", "IPv6")
        is_up: Administratively up
        is_running: Operationally running
        address: First numeric IPv4 address, if any
        interface_class: LAN or TUNNEL, from configuration
    """
    name: str
    families: List[str] = field(default_factory=list)
    is_up: bool = False
    is_running: bool = False
    address: Optional[str] = None
    interface_class: InterfaceClass = InterfaceClass.LAN


@dataclass(frozen=True)
class ProbeOutcome:
    """
    Result of a single liveness probe.

    Attributes:
        address: Candidate address that was probed
        success: True only for an HTTP 200 within the timeout
        duration: Seconds spent on the probe
        error: Description of the failure, if any
        status_code: HTTP status the candidate answered with, if it answered
    """
    address: str
    success: bool
    duration: float = 0.0
    error: Optional[str] = None
    status_code: Optional[int] = None


@dataclass
class ScanStatistics:
    """
    Counters collected over one session.

    Attributes:
        interfaces_scanned: Names of interfaces whose candidates were probed
        candidates_planned: Total size of all planned candidate ranges
        batches_dispatched: Number of batches handed to the probe pool
        probes_dispatched: Number of probes submitted
        probes_failed: Number of probes that resolved to failure
        late_results_ignored: Probe results that arrived after the session ended
        errors_by_type: Absorbed error counts keyed by error type
    """
    interfaces_scanned: List[str] = field(default_factory=list)
    candidates_planned: int = 0
    batches_dispatched: int = 0
    probes_dispatched: int = 0
    probes_failed: int = 0
    late_results_ignored: int = 0
    errors_by_type: Dict[str, int] = field(default_factory=dict)


@dataclass
class ScanResult:
    """
    Terminal outcome of a scan session.

    Attributes:
        session_id: Identifier of the session
        state: Terminal state (FOUND, TIMED_OUT, EXHAUSTED or CANCELLED)
        address: Address of the found device, if any
        port: Port the service answered on
        started_at: When the session started
        duration: Seconds from start to terminal state
        statistics: Session counters
    """
    session_id: int
    state: ScanState
    address: Optional[str] = None
    port: int = 8082
    started_at: Optional[datetime] = None
    duration: float = 0.0
    statistics: ScanStatistics = field(default_factory=ScanStatistics)

    @property
    def found(self) -> bool:
        return self.state == ScanState.FOUND and self.address is not None

    @property
    def service_url(self) -> Optional[str]:
        """URL of the device's web page, or None when nothing was found."""
        if not self.found:
            return None
        return f"http://{self.address}:{self.port}/"
