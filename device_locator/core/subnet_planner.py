"""
Candidate address planning.

The SubnetPlanner turns a local address and an interface class into the
ordered address space to probe. Ranges are described by their integer
bounds and produce addresses on demand, so a tunnel block of millions of
candidates costs no more memory than a /24.
"""

from typing import Iterator, Optional

from .data_models import InterfaceClass
from ..utils import network_utils
from ..utils.logger import get_logger
from ..utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    MalformedAddressError,
)

DEFAULT_TUNNEL_PREFIX_LENGTH = 16


class CandidateRange:
    """
    Ascending run of IPv4 addresses between two inclusive integer bounds.

    Iterating starts from the first address every time, so the same range
    can be walked more than once. An empty range has ``first > last``.
    """

    __slots__ = ("first", "last")

    def __init__(self, first: int, last: int):
        self.first = first
        self.last = last

    @classmethod
    def empty(cls) -> "CandidateRange":
        return cls(1, 0)

    def __len__(self) -> int:
        return max(0, self.last - self.first + 1)

    def __bool__(self) -> bool:
        return self.last >= self.first

    def __iter__(self) -> Iterator[str]:
        for value in range(self.first, self.last + 1):
            yield network_utils.int_to_ip(value)

    def __getitem__(self, index: int) -> str:
        size = len(self)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("candidate index out of range")
        return network_utils.int_to_ip(self.first + index)

    def __contains__(self, address: object) -> bool:
        if not isinstance(address, str) or not network_utils.is_valid_ip(address):
            return False
        return self.first <= network_utils.ip_to_int(address) <= self.last

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CandidateRange):
            return NotImplemented
        if not self and not other:
            return True
        return (self.first, self.last) == (other.first, other.last)

    def __repr__(self) -> str:
        if not self:
            return "CandidateRange(empty)"
        return f"CandidateRange({self[0]} .. {self[-1]}, {len(self)} addresses)"


class SubnetPlanner:
    """
    Computes the candidate address space for a scan origin.

    LAN interfaces scan their own /24 without the network (.0) and
    broadcast (.255) addresses. Tunnel interfaces scan the whole block
    of ``tunnel_prefix_length`` around the local address.
    """

    def __init__(self, tunnel_prefix_length: int = DEFAULT_TUNNEL_PREFIX_LENGTH,
                 error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the SubnetPlanner.

        Args:
            tunnel_prefix_length: CIDR prefix of the block scanned from a tunnel
            error_handler: ErrorHandler that absorbs malformed addresses
        """
        self.tunnel_prefix_length = tunnel_prefix_length
        self.logger = get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def plan_candidates(self, local_address: str, interface_class: InterfaceClass) -> CandidateRange:
        """
        Plan the ordered candidates to probe from ``local_address``.

        Args:
            local_address: IPv4 address of the scanning interface
            interface_class: LAN or TUNNEL

        Returns:
            CandidateRange in ascending numeric order; empty when the
            address is malformed
        """
        try:
            if interface_class == InterfaceClass.TUNNEL:
                candidates = self._tunnel_range(local_address)
            else:
                candidates = self._lan_range(local_address)
        except MalformedAddressError as e:
            context = ErrorContext(
                error_type=ErrorType.MALFORMED_ADDRESS,
                severity=ErrorSeverity.LOW,
                operation="plan_candidates",
                component="SubnetPlanner",
                additional_info={"address": local_address},
            )
            e.error_context = context
            self.error_handler.handle_error(e, context)
            return CandidateRange.empty()

        self.logger.debug(
            f"Planned {len(candidates)} {interface_class.value} candidates from {local_address}",
            range=repr(candidates),
        )
        return candidates

    def _lan_range(self, local_address: str) -> CandidateRange:
        network, _ = network_utils.network_bounds(local_address, 24)
        return CandidateRange(network + 1, network + 254)

    def _tunnel_range(self, local_address: str) -> CandidateRange:
        network, broadcast = network_utils.network_bounds(local_address, self.tunnel_prefix_length)
        return CandidateRange(network, broadcast)
