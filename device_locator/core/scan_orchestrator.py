"""
Scan Orchestrator for the Device Locator.

This module provides the ScanOrchestrator class that drives one discovery
session at a time: it enumerates eligible interfaces, plans each one's
candidate range, probes the ranges in throttled batches, and reports the
first device found, or that none was found, to a ResultSink.
"""

import functools
import itertools
import threading
import weakref
from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Optional, Tuple

from .data_models import ProbeOutcome, ScanResult, ScanState
from .interface_enumerator import InterfaceEnumerator
from .result_sink import ResultSink
from .scan_session import ScanSession
from .subnet_planner import CandidateRange, SubnetPlanner
from ..config.config_loader import ScanConfig
from ..probers.base_prober import BaseProber
from ..probers.http_prober import HttpProber
from ..utils.logger import get_logger
from ..utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    SessionAlreadyEndedError,
)

ScanTarget = Tuple[str, CandidateRange]


class ScanOrchestrator:
    """
    Coordinates batched, concurrent probing across all scan origins.

    Lifecycle per session: IDLE -> SCANNING -> FOUND | TIMED_OUT | EXHAUSTED,
    or CANCELLED when a caller abandons it. ``start_scan`` never blocks; the
    session runs on a coordinator thread with one batch loop per interface,
    while probes run on a session-scoped thread pool. A global timer ends
    the session if batches have not finished by ``scan_timeout``.
    """

    def __init__(
        self,
        config: Optional[ScanConfig] = None,
        result_sink: Optional[ResultSink] = None,
        prober: Optional[BaseProber] = None,
        enumerator: Optional[InterfaceEnumerator] = None,
        planner: Optional[SubnetPlanner] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        """
        Initialize the scan orchestrator.

        Args:
            config: Scan tunables (defaults to ScanConfig())
            result_sink: Receiver of outcomes and log lines; held weakly,
                so the caller keeps it alive
            prober: Liveness prober (defaults to HttpProber)
            enumerator: Interface enumerator (defaults to one built from config)
            planner: Subnet planner (defaults to one built from config)
            error_handler: Shared error accounting
        """
        self.config = config or ScanConfig()
        self.logger = get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

        self.prober = prober or HttpProber(error_handler=self.error_handler)
        self.enumerator = enumerator or InterfaceEnumerator(self.config, self.error_handler)
        self.planner = planner or SubnetPlanner(self.config.tunnel_prefix_length, self.error_handler)

        self._sink_ref = weakref.ref(result_sink) if result_sink is not None else None

        # Guards _session, _timer and _last_result. Reentrant so a sink may
        # call start_scan() from inside a terminal callback.
        self._lock = threading.RLock()
        self._session: Optional[ScanSession] = None
        self._timer: Optional[threading.Timer] = None
        self._last_result: Optional[ScanResult] = None
        self._session_ids = itertools.count(1)

    @property
    def state(self) -> ScanState:
        with self._lock:
            return self._session.state if self._session else ScanState.IDLE

    @property
    def is_scanning(self) -> bool:
        return self.state == ScanState.SCANNING

    @property
    def last_result(self) -> Optional[ScanResult]:
        with self._lock:
            return self._last_result

    def start_scan(self) -> int:
        """
        Start a fresh discovery session, abandoning any session in progress.

        The abandoned session is cancelled silently: it never reports an
        outcome, and its in-flight probes are discarded when they resolve.

        Returns:
            Identifier of the new session
        """
        with self._lock:
            previous = self._session
            if previous is not None and previous.cancel():
                self.logger.info(f"Restarting scan; session {previous.session_id} abandoned")
                previous.mark_reported()
            self._cancel_timer()

            session = ScanSession(next(self._session_ids), self.config.probe_port)
            self._session = session
            self._last_result = None
            self.error_handler.reset()

            timer = threading.Timer(self.config.scan_timeout, self._on_global_timeout, args=(session,))
            timer.daemon = True
            self._timer = timer

        self.logger.info(
            f"Starting scan session {session.session_id}",
            port=self.config.probe_port,
            batch_size=self.config.batch_size,
            timeout=self.config.scan_timeout,
        )
        timer.start()
        threading.Thread(
            target=self._run_session,
            args=(session,),
            name=f"scan-session-{session.session_id}",
            daemon=True,
        ).start()
        return session.session_id

    def cancel_scan(self) -> bool:
        """
        Abandon the session in progress without reporting an outcome.

        Returns:
            True if a scanning session was cancelled
        """
        with self._lock:
            session = self._session
            if session is None or not session.cancel():
                return False
            self._cancel_timer()
            self._last_result = session.to_result()

        self.logger.info(f"Scan session {session.session_id} cancelled")
        session.mark_reported()
        return True

    def wait(self, timeout: Optional[float] = None) -> Optional[ScanResult]:
        """
        Block until the current session has reported its outcome.

        Must not be called from inside a ResultSink callback.

        Args:
            timeout: Seconds to wait, or None to wait indefinitely

        Returns:
            ScanResult of the session, or None if there is no session or the
            wait timed out
        """
        with self._lock:
            session = self._session
        if session is None or not session.wait_finished(timeout):
            return None

        with self._lock:
            if self._session is session and self._last_result is not None:
                return self._last_result
        return session.to_result()

    def _run_session(self, session: ScanSession) -> None:
        """Coordinator thread body: plan, probe until done, then settle."""
        try:
            targets = self._plan_targets(session)
            if targets and session.scanning:
                self._probe_targets(session, targets)
        except Exception as e:
            self.logger.error(f"Scan session {session.session_id} failed", exception=e)

        if session.mark_exhausted():
            self._report(session)

    def _plan_targets(self, session: ScanSession) -> List[ScanTarget]:
        """
        Resolve every eligible interface to a candidate range.

        Interfaces without an address, with a malformed address, or whose
        range duplicates one already planned are skipped.
        Names outside the configured allow-list are ignored, whichever
        enumerator reported them.
        """
        eligible = self.enumerator.list_eligible_interfaces()
        names = [name for name in self.config.allowed_interfaces if name in eligible]
        self._log(session, f"Active network interfaces: {names}")

        targets: List[ScanTarget] = []
        for name in names:
            local_address = self.enumerator.resolve_local_address(name)
            if local_address is None:
                self._log(session, f"No IPv4 address for interface {name}")
                continue
            self._log(session, f"IP Address for interface {name}: {local_address}")

            interface_class = self.enumerator.classify(name)
            candidates = self.planner.plan_candidates(local_address, interface_class)
            if not candidates:
                self._log(session, f"Nothing to scan on {name}")
                continue
            if any(candidates == planned for _, planned in targets):
                self.logger.debug(f"Range of {name} already planned, skipping")
                continue

            session.add_target(name, len(candidates))
            self._log(
                session,
                f"Scanning {len(candidates)} addresses on {name} "
                f"({interface_class.value}): {candidates[0]} - {candidates[-1]}",
            )
            targets.append((name, candidates))

        return targets

    def _probe_targets(self, session: ScanSession, targets: List[ScanTarget]) -> None:
        """Run one batch loop per target concurrently and wait for all of them."""
        workers = self.config.batch_size * len(targets)
        executor = ThreadPoolExecutor(
            max_workers=workers,
            thread_name_prefix=f"probe-{session.session_id}",
        )
        try:
            loops = [
                threading.Thread(
                    target=self._scan_interface,
                    args=(session, executor, name, candidates),
                    name=f"scan-{session.session_id}-{name}",
                    daemon=True,
                )
                for name, candidates in targets
            ]
            for loop in loops:
                loop.start()
            for loop in loops:
                loop.join()
        finally:
            # Queued probes are dropped; running ones finish on their own
            executor.shutdown(wait=False, cancel_futures=True)

    def _scan_interface(
        self,
        session: ScanSession,
        executor: ThreadPoolExecutor,
        interface_name: str,
        candidates: CandidateRange,
    ) -> None:
        """
        Probe one interface's candidates batch by batch.

        Each batch waits ``batch_delay`` before dispatch and must fully
        resolve before the next one is taken from the range. The loop ends
        when the range runs out or the session stops scanning.
        """
        remaining = iter(candidates)

        while session.scanning:
            batch = list(itertools.islice(remaining, self.config.batch_size))
            if not batch:
                self.logger.debug(f"Candidates on {interface_name} exhausted")
                return

            if session.wait_stopped(self.config.batch_delay):
                return

            try:
                batch_index = session.begin_batch(len(batch))
            except SessionAlreadyEndedError:
                return

            self.logger.debug(
                f"Dispatching batch {batch_index} on {interface_name}",
                first=batch[0],
                last=batch[-1],
            )
            for address in batch:
                future = executor.submit(self._probe_candidate, session, address)
                future.add_done_callback(functools.partial(self._on_probe_done, session, batch_index))

            session.wait_batch(batch_index)

    def _probe_candidate(self, session: ScanSession, address: str) -> Optional[ProbeOutcome]:
        """Worker-thread body for one probe; skipped once the session has ended."""
        if not session.scanning:
            return None
        self._log(session, f"Pinging {address}...", verbose=True)
        return self.prober.run(address, self.config.probe_port, self.config.probe_timeout)

    def _on_probe_done(self, session: ScanSession, batch_index: int, future: Future) -> None:
        """Fold one probe result into the session."""
        try:
            if future.cancelled():
                return
            outcome = future.result()
            if outcome is None:
                return

            if outcome.success:
                session.record_success(outcome.address)
                self._report(session)
            else:
                session.record_failure()
                self._log(session, f"Failed to connect to {outcome.address}", verbose=True)

        except SessionAlreadyEndedError as e:
            context = ErrorContext(
                error_type=ErrorType.SESSION_ENDED,
                severity=ErrorSeverity.LOW,
                operation="probe_result",
                component="ScanOrchestrator",
                additional_info={"session": session.session_id},
            )
            e.error_context = context
            self.error_handler.handle_error(e, context)
        finally:
            session.probe_resolved(batch_index)

    def _on_global_timeout(self, session: ScanSession) -> None:
        if session.mark_timed_out():
            self.logger.warning(
                f"Scan session {session.session_id} timed out after {self.config.scan_timeout}s",
                pending_batches=session.pending_batches,
            )
            self._report(session)

    def _report(self, session: ScanSession) -> None:
        """
        Deliver the terminal outcome of a session that just left SCANNING.

        Only the caller that won the session's state transition gets here,
        so each session reports once. Outcomes of sessions that are no
        longer current are dropped.
        """
        result = session.to_result()
        result.statistics.errors_by_type = self.error_handler.get_error_statistics()

        with self._lock:
            if self._session is not session:
                self.logger.debug(f"Dropping outcome of superseded session {session.session_id}")
                session.mark_reported()
                return

            self._cancel_timer()
            self._last_result = result

            if result.state == ScanState.FOUND:
                self.logger.debug(
                    f"Device found at {result.address}",
                    session=session.session_id,
                    duration=f"{result.duration:.2f}s",
                )
                self._emit(f"Device found at {result.address}")
                self._notify("on_device_found", result.address)
            else:
                self.logger.debug(
                    "No devices found",
                    session=session.session_id,
                    state=result.state.value,
                    probes=result.statistics.probes_dispatched,
                )
                self._emit("No devices found")
                if result.state == ScanState.TIMED_OUT:
                    self._notify("on_timeout")
                else:
                    self._notify("on_exhausted")

        session.mark_reported()

    def _cancel_timer(self) -> None:
        # Caller holds self._lock
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _log(self, session: ScanSession, text: str, verbose: bool = False) -> None:
        """Send a progress line to the sink unless the session has ended."""
        if not session.scanning:
            return
        if verbose:
            self.logger.debug(text)
        else:
            self.logger.info(text)
        self._notify("on_log_message", text)

    def _emit(self, text: str) -> None:
        self._notify("on_log_message", text)

    def _notify(self, callback: str, *args) -> None:
        """Invoke a sink callback; a failing sink never stops the scan."""
        sink = self._sink_ref() if self._sink_ref is not None else None
        if sink is None:
            return
        try:
            getattr(sink, callback)(*args)
        except Exception as e:
            context = ErrorContext(
                error_type=ErrorType.SINK_CALLBACK,
                severity=ErrorSeverity.MEDIUM,
                operation=callback,
                component=type(sink).__name__,
            )
            self.error_handler.handle_error(e, context)
