"""
Interface enumeration for choosing scan origins.

This module provides the InterfaceEnumerator class which lists the host's
network interfaces through psutil, keeps the ones named in the configured
allow-list, and resolves the IPv4 address each one would scan from.
"""

import socket
from typing import Dict, List, Optional, Set

import psutil

from .data_models import InterfaceClass, InterfaceInfo
from ..config.config_loader import ScanConfig
from ..utils.logger import get_logger
from ..utils.error_handler import (
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
    InterfaceEnumerationError,
)


class InterfaceEnumerator:
    """
    Lists local interfaces eligible for scanning.

    Operating-system failures never propagate: they are reported to the
    error handler and the caller sees an empty result, which it treats as
    "nothing to scan".
    """

    def __init__(self, config: Optional[ScanConfig] = None, error_handler: Optional[ErrorHandler] = None):
        """
        Initialize the InterfaceEnumerator.

        Args:
            config: Scan configuration providing the interface allow-list
            error_handler: ErrorHandler that absorbs enumeration failures
        """
        self.config = config or ScanConfig()
        self.logger = get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def list_eligible_interfaces(self) -> Set[str]:
        """
        Names of allow-listed interfaces carrying an IPv4 (or IPv6) address.

        A physical interface reported once per address appears only once.

        Returns:
            Set of interface names; empty if the OS call fails
        """
        addresses = self._read_interface_addresses()
        allowed = set(self.config.allowed_interfaces)
        families = {socket.AF_INET}
        if self.config.include_ipv6:
            families.add(socket.AF_INET6)

        eligible = set()
        for name, entries in addresses.items():
            if name not in allowed:
                continue
            if any(entry.family in families for entry in entries):
                eligible.add(name)

        self.logger.debug(f"Eligible interfaces: {sorted(eligible)}")
        return eligible

    def resolve_local_address(self, interface_name: str) -> Optional[str]:
        """
        Get the first IPv4 address of an interface that is up and running.

        Args:
            interface_name: Name of the network interface

        Returns:
            Numeric IPv4 address, or None if the interface is down, missing,
            has no IPv4 address, or cannot be read
        """
        stats = self._read_interface_stats()
        if not self._is_up_and_running(stats.get(interface_name)):
            self.logger.debug(f"Interface {interface_name} is not up and running")
            return None

        for entry in self._read_interface_addresses().get(interface_name, []):
            if entry.family == socket.AF_INET and entry.address:
                return entry.address

        return None

    def classify(self, interface_name: str) -> InterfaceClass:
        """Tunnel-listed interfaces get the wide range; everything else is LAN."""
        if interface_name in self.config.tunnel_interfaces:
            return InterfaceClass.TUNNEL
        return InterfaceClass.LAN

    def discover(self) -> List[InterfaceInfo]:
        """
        Describe every eligible interface, ordered as in the allow-list.

        Interfaces with no resolvable address are included with
        ``address=None`` so the caller can log them.
        """
        eligible = self.list_eligible_interfaces()
        if not eligible:
            return []

        addresses = self._read_interface_addresses()
        stats = self._read_interface_stats()
        ordered = [name for name in self.config.allowed_interfaces if name in eligible]

        interfaces = []
        for name in ordered:
            stat = stats.get(name)
            interfaces.append(InterfaceInfo(
                name=name,
                families=self._family_names(addresses.get(name, [])),
                is_up=bool(stat and stat.isup),
                is_running=self._is_up_and_running(stat),
                address=self.resolve_local_address(name),
                interface_class=self.classify(name),
            ))
        return interfaces

    def _read_interface_addresses(self) -> Dict[str, list]:
        try:
            return psutil.net_if_addrs()
        except (OSError, psutil.Error) as e:
            self._absorb(e, "net_if_addrs")
            return {}

    def _read_interface_stats(self) -> Dict[str, object]:
        try:
            return psutil.net_if_stats()
        except (OSError, psutil.Error) as e:
            self._absorb(e, "net_if_stats")
            return {}

    def _absorb(self, error: Exception, call: str) -> None:
        context = ErrorContext(
            error_type=ErrorType.INTERFACE_ENUMERATION,
            severity=ErrorSeverity.MEDIUM,
            operation=call,
            component="InterfaceEnumerator",
        )
        self.error_handler.handle_error(
            InterfaceEnumerationError(f"Could not read network interfaces: {error}", context),
            context,
        )

    @staticmethod
    def _is_up_and_running(stat) -> bool:
        """
        Check the administrative and operational state of an interface.

        psutil reports flags as an empty string on platforms without
        IFF_RUNNING; there the up flag alone decides.
        """
        if stat is None or not stat.isup:
            return False
        flags = {flag for flag in (stat.flags or "").split(",") if flag}
        return not flags or "running" in flags

    @staticmethod
    def _family_names(entries: list) -> List[str]:
        names = []
        for entry in entries:
            if entry.family == socket.AF_INET and "IPv4" not in names:
                names.append("IPv4")
            elif entry.family == socket.AF_INET6 and "IPv6" not in names:
                names.append("IPv6")
        return names
