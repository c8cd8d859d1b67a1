"""
Tests for IPv4 parsing and arithmetic helpers.
"""

import pytest

from device_locator.utils import network_utils
from device_locator.utils.error_handler import MalformedAddressError


def test_parse_octets():
    assert network_utils.parse_octets("192.168.1.42") == (192, 168, 1, 42)


@pytest.mark.parametrize("address", ["192.168.1", "192.168.1.1.1", "192.168.1.x", "192.168.1.256", "-1.0.0.0", None])
def test_parse_octets_rejects_malformed(address):
    with pytest.raises(MalformedAddressError):
        network_utils.parse_octets(address)


def test_int_conversion():
    assert network_utils.ip_to_int("10.0.0.1") == 167772161
    assert network_utils.int_to_ip(167772161) == "10.0.0.1"


def test_network_bounds():
    network, broadcast = network_utils.network_bounds("192.168.1.42", 24)

    assert network_utils.int_to_ip(network) == "192.168.1.0"
    assert network_utils.int_to_ip(broadcast) == "192.168.1.255"


def test_network_bounds_rejects_bad_prefix():
    with pytest.raises(ValueError):
        network_utils.network_bounds("192.168.1.42", 33)


def test_is_valid_ip():
    assert network_utils.is_valid_ip("8.8.8.8")
    assert not network_utils.is_valid_ip("8.8.8")
    assert not network_utils.is_valid_ip("fe80::1")
