"""
Shared fixtures for the Device Locator test suite.

The fakes here stand in for the operating system and the network so that
scans run in milliseconds and always see the same interfaces.
"""

import pathlib
import sys
import threading
import time

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from device_locator.config.config_loader import ScanConfig
from device_locator.core.data_models import InterfaceClass
from device_locator.probers.base_prober import BaseProber
from device_locator.utils.error_handler import ProbeError


class RecordingSink:
    """ResultSink that remembers every callback."""

    def __init__(self):
        self._lock = threading.Lock()
        self.found = []
        self.timeouts = 0
        self.exhausted = 0
        self.messages = []
        self.terminal = threading.Event()

    def on_device_found(self, address):
        with self._lock:
            self.found.append(address)
        self.terminal.set()

    def on_timeout(self):
        with self._lock:
            self.timeouts += 1
        self.terminal.set()

    def on_exhausted(self):
        with self._lock:
            self.exhausted += 1
        self.terminal.set()

    def on_log_message(self, text):
        with self._lock:
            self.messages.append(text)

    @property
    def terminal_callbacks(self):
        with self._lock:
            return len(self.found) + self.timeouts + self.exhausted


class ScriptedProber(BaseProber):
    """Prober whose answers are fixed up front."""

    def __init__(self, found=(), delay=0.0, broken=(), error_handler=None):
        super().__init__(error_handler=error_handler)
        self.found = set(found)
        self.broken = set(broken)
        self.delay = delay
        self._lock = threading.Lock()
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    def probe(self, address, port, timeout):
        with self._lock:
            self.calls.append(address)
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                time.sleep(self.delay)
            if address in self.broken:
                raise ProbeError(f"Connection failed to {address}:{port}", address)
            return address in self.found
        finally:
            with self._lock:
                self.in_flight -= 1

    @property
    def call_count(self):
        with self._lock:
            return len(self.calls)


class StaticEnumerator:
    """Enumerator over a fixed {name: address} table."""

    def __init__(self, addresses, tunnels=()):
        self.addresses = dict(addresses)
        self.tunnels = set(tunnels)

    def list_eligible_interfaces(self):
        return set(self.addresses)

    def resolve_local_address(self, interface_name):
        return self.addresses.get(interface_name)

    def classify(self, interface_name):
        if interface_name in self.tunnels:
            return InterfaceClass.TUNNEL
        return InterfaceClass.LAN


@pytest.fixture
def fast_config():
    """Scan tunables with no batch delay and a generous global timeout."""
    return ScanConfig(
        lan_interfaces=["en0", "bridge100", "eth0"],
        tunnel_interfaces=["utun0"],
        probe_timeout=1.0,
        batch_size=5,
        batch_delay=0.0,
        scan_timeout=10.0,
    )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def make_sink():
    return RecordingSink


@pytest.fixture
def make_prober():
    return ScriptedProber


@pytest.fixture
def make_enumerator():
    return StaticEnumerator
