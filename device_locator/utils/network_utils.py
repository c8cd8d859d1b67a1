"""
Network utility functions for IPv4 address parsing and arithmetic.

The planner works on integer forms of addresses so that large candidate
spaces can be walked without building lists of strings.
"""

import ipaddress
from typing import Tuple

from .error_handler import MalformedAddressError


def is_valid_ip(ip_address: str) -> bool:
    """
    Check if a string represents a valid IPv4 address.

    Args:
        ip_address: String to validate as IPv4 address

    Returns:
        bool: True if valid IPv4 address, False otherwise
    """
    try:
        ipaddress.IPv4Address(ip_address)
        return True
    except ipaddress.AddressValueError:
        return False


def parse_octets(ip_address: str) -> Tuple[int, int, int, int]:
    """
    Split a dotted-quad string into its four octets.

    Args:
        ip_address: Address such as "192.168.1.42"

    Returns:
        Tuple of four integers in 0..255

    Raises:
        MalformedAddressError: If the string is not exactly four
            dot-separated decimal octets
    """
    if not isinstance(ip_address, str):
        raise MalformedAddressError(repr(ip_address))

    parts = ip_address.strip().split(".")
    if len(parts) != 4:
        raise MalformedAddressError(ip_address)

    octets = []
    for part in parts:
        if not (part.isascii() and part.isdigit()):
            raise MalformedAddressError(ip_address)
        value = int(part)
        if not 0 <= value <= 255:
            raise MalformedAddressError(ip_address)
        octets.append(value)

    return octets[0], octets[1], octets[2], octets[3]


def ip_to_int(ip_address: str) -> int:
    """Convert a dotted quad to its 32-bit integer value."""
    a, b, c, d = parse_octets(ip_address)
    return (a << 24) | (b << 16) | (c << 8) | d


def int_to_ip(value: int) -> str:
    """Convert a 32-bit integer to dotted-quad notation."""
    return str(ipaddress.IPv4Address(value))


def network_bounds(ip_address: str, prefix_length: int) -> Tuple[int, int]:
    """
    Integer bounds (inclusive) of the network containing ``ip_address``.

    Args:
        ip_address: Any address inside the network
        prefix_length: CIDR prefix length (0-32)

    Returns:
        Tuple of (network address, broadcast address) as integers

    Raises:
        MalformedAddressError: If ``ip_address`` is malformed
        ValueError: If ``prefix_length`` is outside 0..32
    """
    if not 0 <= prefix_length <= 32:
        raise ValueError(f"CIDR must be between 0 and 32, got {prefix_length}")

    value = ip_to_int(ip_address)
    host_bits = 32 - prefix_length
    network = (value >> host_bits) << host_bits
    return network, network | ((1 << host_bits) - 1)
