"""
Mutable state of one discovery attempt.

Probe workers, interface loops, the global timer and the caller all touch
a session from different threads. Every read-modify-write goes through
the methods below under a single lock, and each terminal transition only
succeeds for the first caller, which is what guarantees that a session
reports at most one outcome.
"""

import threading
import time
from dataclasses import replace
from datetime import datetime
from typing import Dict, Optional

from .data_models import ScanResult, ScanState, ScanStatistics
from ..utils.error_handler import SessionAlreadyEndedError


class ScanSession:
    """
    One scan attempt, from ``start_scan`` to its terminal state.

    ``device_found`` and ``timed_out`` are never both true, and
    ``scanning`` turns false in the same step that sets either of them.
    """

    def __init__(self, session_id: int, port: int):
        self.session_id = session_id
        self.port = port
        self.started_at = datetime.now()
        self.statistics = ScanStatistics()

        self._lock = threading.Lock()
        self._changed = threading.Condition(self._lock)
        self._stopped = threading.Event()
        self._finished = threading.Event()
        self._started_monotonic = time.monotonic()
        self._ended_monotonic: Optional[float] = None

        self._state = ScanState.SCANNING
        self._found_address: Optional[str] = None
        self.pending_batches = 0
        self.current_batch_index = 0
        self._batch_remaining: Dict[int, int] = {}

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._state

    @property
    def scanning(self) -> bool:
        with self._lock:
            return self._state == ScanState.SCANNING

    @property
    def device_found(self) -> bool:
        with self._lock:
            return self._state == ScanState.FOUND

    @property
    def timed_out(self) -> bool:
        with self._lock:
            return self._state == ScanState.TIMED_OUT

    @property
    def found_address(self) -> Optional[str]:
        with self._lock:
            return self._found_address

    @property
    def stop_event(self) -> threading.Event:
        """Set as soon as the session leaves SCANNING; batch loops wait on it."""
        return self._stopped

    def begin_batch(self, size: int) -> int:
        """
        Register a batch about to be dispatched.

        Returns:
            Zero-based index of the batch within the session

        Raises:
            SessionAlreadyEndedError: If the session is no longer scanning
        """
        with self._lock:
            self._require_scanning()
            index = self.current_batch_index
            self.current_batch_index += 1
            self.pending_batches += 1
            self._batch_remaining[index] = size
            self.statistics.batches_dispatched += 1
            self.statistics.probes_dispatched += size
            return index

    def probe_resolved(self, batch_index: int) -> None:
        """
        Count down one probe of a batch, whatever its result.

        The batch is complete when its counter reaches zero; completion does
        not depend on which probe happened to be dispatched last.
        """
        with self._lock:
            remaining = self._batch_remaining.get(batch_index)
            if remaining is None:
                return
            if remaining > 1:
                self._batch_remaining[batch_index] = remaining - 1
                return
            del self._batch_remaining[batch_index]
            self.pending_batches -= 1
            self._changed.notify_all()

    def wait_batch(self, batch_index: int, timeout: Optional[float] = None) -> bool:
        """
        Block until a batch completes or the session stops scanning.

        Returns:
            True if every probe of the batch resolved
        """
        with self._changed:
            self._changed.wait_for(
                lambda: batch_index not in self._batch_remaining or self._state != ScanState.SCANNING,
                timeout,
            )
            return batch_index not in self._batch_remaining

    def add_target(self, interface_name: str, candidate_count: int) -> None:
        with self._lock:
            self.statistics.interfaces_scanned.append(interface_name)
            self.statistics.candidates_planned += candidate_count

    def record_failure(self) -> None:
        """
        Count a failed probe.

        Raises:
            SessionAlreadyEndedError: If the session is no longer scanning
        """
        with self._lock:
            if self._state != ScanState.SCANNING:
                self.statistics.late_results_ignored += 1
                self._require_scanning()
            self.statistics.probes_failed += 1

    def record_success(self, address: str) -> None:
        """
        Turn the session FOUND for ``address``.

        Raises:
            SessionAlreadyEndedError: If another outcome already ended the
                session; the caller must then discard the result
        """
        with self._lock:
            if self._state != ScanState.SCANNING:
                self.statistics.late_results_ignored += 1
                self._require_scanning()
            self._found_address = address
            self._finish(ScanState.FOUND)

    def mark_timed_out(self) -> bool:
        """Return True if this call moved the session to TIMED_OUT."""
        return self._transition(ScanState.TIMED_OUT)

    def mark_exhausted(self) -> bool:
        """Return True if this call moved the session to EXHAUSTED."""
        return self._transition(ScanState.EXHAUSTED)

    def cancel(self) -> bool:
        """Return True if this call moved the session to CANCELLED."""
        return self._transition(ScanState.CANCELLED)

    def wait_stopped(self, timeout: float) -> bool:
        """Sleep up to ``timeout`` seconds; return True early if the session stopped."""
        return self._stopped.wait(timeout)

    def wait_finished(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    def mark_reported(self) -> None:
        """Release ``wait_finished`` once the outcome has been delivered."""
        self._finished.set()

    def to_result(self) -> ScanResult:
        with self._lock:
            end = self._ended_monotonic if self._ended_monotonic is not None else time.monotonic()
            return ScanResult(
                session_id=self.session_id,
                state=self._state,
                address=self._found_address,
                port=self.port,
                started_at=self.started_at,
                duration=end - self._started_monotonic,
                statistics=replace(
                    self.statistics,
                    interfaces_scanned=list(self.statistics.interfaces_scanned),
                    errors_by_type=dict(self.statistics.errors_by_type),
                ),
            )

    def _transition(self, state: ScanState) -> bool:
        with self._lock:
            if self._state != ScanState.SCANNING:
                return False
            self._finish(state)
            return True

    def _finish(self, state: ScanState) -> None:
        # Caller holds the lock
        self._state = state
        self._ended_monotonic = time.monotonic()
        self._stopped.set()
        self._changed.notify_all()

    def _require_scanning(self) -> None:
        # Caller holds the lock
        if self._state != ScanState.SCANNING:
            raise SessionAlreadyEndedError(self.session_id, self._state.value)

    def __repr__(self) -> str:
        return f"ScanSession(id={self.session_id}, state={self.state.value})"
