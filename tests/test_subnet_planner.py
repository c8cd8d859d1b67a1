"""
Tests for candidate planning and CandidateRange.
"""

import pytest

from device_locator.core.data_models import InterfaceClass
from device_locator.core.subnet_planner import CandidateRange, SubnetPlanner
from device_locator.utils.error_handler import ErrorHandler


@pytest.fixture
def planner():
    return SubnetPlanner(error_handler=ErrorHandler())


def test_lan_range_skips_network_and_broadcast(planner):
    candidates = planner.plan_candidates("192.168.1.42", InterfaceClass.LAN)

    assert len(candidates) == 254
    assert candidates[0] == "192.168.1.1"
    assert candidates[-1] == "192.168.1.254"
    assert "192.168.1.42" in candidates
    assert "192.168.1.0" not in candidates
    assert "192.168.1.255" not in candidates


def test_lan_range_is_ascending(planner):
    addresses = list(planner.plan_candidates("10.0.0.7", InterfaceClass.LAN))

    assert addresses[:3] == ["10.0.0.1", "10.0.0.2", "10.0.0.3"]
    assert len(addresses) == 254


def test_tunnel_range_covers_whole_block(planner):
    candidates = planner.plan_candidates("10.8.0.5", InterfaceClass.TUNNEL)

    assert len(candidates) == 65536
    assert candidates[0] == "10.8.0.0"
    assert candidates[255] == "10.8.0.255"
    assert candidates[256] == "10.8.1.0"
    assert candidates[-1] == "10.8.255.255"


def test_tunnel_prefix_is_configurable():
    planner = SubnetPlanner(tunnel_prefix_length=20, error_handler=ErrorHandler())
    candidates = planner.plan_candidates("172.16.37.9", InterfaceClass.TUNNEL)

    assert len(candidates) == 4096
    assert candidates[0] == "172.16.32.0"
    assert candidates[-1] == "172.16.47.255"


@pytest.mark.parametrize("address", ["not.an.ip", "192.168.1", "1.2.3.4.5", "300.1.1.1", "", "a.b.c.d"])
def test_malformed_address_yields_empty_range(address):
    handler = ErrorHandler()
    planner = SubnetPlanner(error_handler=handler)

    candidates = planner.plan_candidates(address, InterfaceClass.LAN)

    assert len(candidates) == 0
    assert not candidates
    assert list(candidates) == []
    assert handler.get_error_statistics() == {"malformed_address": 1}


def test_range_is_lazy_and_restartable(planner):
    candidates = planner.plan_candidates("10.8.0.5", InterfaceClass.TUNNEL)

    first_walk = iter(candidates)
    assert next(first_walk) == "10.8.0.0"
    assert next(first_walk) == "10.8.0.1"

    assert next(iter(candidates)) == "10.8.0.0"


def test_candidate_range_basics():
    candidates = CandidateRange(3232235777, 3232235779)

    assert list(candidates) == ["192.168.1.1", "192.168.1.2", "192.168.1.3"]
    assert candidates == CandidateRange(3232235777, 3232235779)
    assert candidates != CandidateRange(3232235777, 3232235780)
    assert CandidateRange.empty() == CandidateRange(10, 5)
    assert 42 not in candidates
    assert "bogus" not in candidates
    with pytest.raises(IndexError):
        candidates[3]
    assert "3 addresses" in repr(candidates)
