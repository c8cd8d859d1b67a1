"""
Tests for InterfaceEnumerator over a faked psutil.
"""

import socket
from types import SimpleNamespace
from unittest.mock import patch

import psutil
import pytest

from device_locator.config.config_loader import ScanConfig
from device_locator.core.data_models import InterfaceClass
from device_locator.core.interface_enumerator import InterfaceEnumerator
from device_locator.utils.error_handler import ErrorHandler


def addr(family, address):
    return SimpleNamespace(family=family, address=address)


def stat(isup=True, flags="up,broadcast,running,multicast"):
    return SimpleNamespace(isup=isup, flags=flags)


ADDRS = {
    "lo": [addr(socket.AF_INET, "127.0.0.1")],
    "en0": [addr(socket.AF_INET6, "fe80::1"), addr(socket.AF_INET, "192.168.1.42")],
    "bridge100": [addr(socket.AF_INET, "192.168.2.1")],
    "utun0": [addr(socket.AF_INET6, "fe80::2")],
    "utun1": [addr(socket.AF_INET, "10.8.0.5")],
    "docker0": [addr(socket.AF_INET, "172.17.0.1")],
}

STATS = {
    "lo": stat(),
    "en0": stat(),
    "bridge100": stat(flags="up,broadcast"),
    "utun0": stat(),
    "utun1": stat(flags=""),
    "docker0": stat(isup=False),
}


@pytest.fixture
def enumerator():
    config = ScanConfig(lan_interfaces=["en0", "bridge100"], tunnel_interfaces=["utun0", "utun1"])
    with patch.object(psutil, "net_if_addrs", return_value=ADDRS), \
            patch.object(psutil, "net_if_stats", return_value=STATS):
        yield InterfaceEnumerator(config, ErrorHandler())


class TestEligibility:
    """Allow-list and address family filtering"""

    def test_only_allow_listed_interfaces(self, enumerator):
        assert enumerator.list_eligible_interfaces() == {"en0", "bridge100", "utun0", "utun1"}

    def test_ipv6_only_interface_needs_ipv6_enabled(self, enumerator):
        enumerator.config.include_ipv6 = False
        assert "utun0" not in enumerator.list_eligible_interfaces()

    def test_os_failure_yields_nothing(self):
        handler = ErrorHandler()
        with patch.object(psutil, "net_if_addrs", side_effect=OSError("no netlink")):
            eligible = InterfaceEnumerator(ScanConfig(), handler).list_eligible_interfaces()

        assert eligible == set()
        assert handler.get_error_statistics() == {"interface_enumeration": 1}


class TestAddressResolution:
    """First IPv4 address of an up and running interface"""

    def test_first_ipv4_address(self, enumerator):
        assert enumerator.resolve_local_address("en0") == "192.168.1.42"

    def test_not_running(self, enumerator):
        assert enumerator.resolve_local_address("bridge100") is None

    def test_empty_flags_trust_isup(self, enumerator):
        assert enumerator.resolve_local_address("utun1") == "10.8.0.5"

    def test_no_ipv4_address(self, enumerator):
        assert enumerator.resolve_local_address("utun0") is None

    def test_unknown_interface(self, enumerator):
        assert enumerator.resolve_local_address("wlan9") is None


class TestDiscovery:

    def test_classify(self, enumerator):
        assert enumerator.classify("utun1") == InterfaceClass.TUNNEL
        assert enumerator.classify("en0") == InterfaceClass.LAN

    def test_discover_in_allow_list_order(self, enumerator):
        interfaces = enumerator.discover()

        assert [i.name for i in interfaces] == ["en0", "bridge100", "utun0", "utun1"]
        en0 = interfaces[0]
        assert en0.families == ["IPv6", "IPv4"]
        assert en0.is_up and en0.is_running
        assert en0.address == "192.168.1.42"
        assert interfaces[1].is_up and not interfaces[1].is_running
        assert interfaces[3].interface_class == InterfaceClass.TUNNEL
