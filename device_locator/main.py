"""
Main entry point for the Device Locator.

This module provides the command-line interface: argument parsing,
configuration loading with overrides, and graceful shutdown handling
around a single blocking scan.
"""

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .config.config_loader import ConfigLoader, ScanConfig
from .core.interface_enumerator import InterfaceEnumerator
from .core.result_sink import ConsoleResultSink
from .core.scan_orchestrator import ScanOrchestrator
from .utils.logger import LogLevel, get_logger, set_log_level

EXIT_FOUND = 0
EXIT_NOT_FOUND = 1
EXIT_INTERRUPTED = 130


class LocatorApp:
    """
    Main application class for the Device Locator.

    Handles the CLI lifecycle: one scan, reported to the console.
    """

    def __init__(self):
        """Initialize the application."""
        self.logger = get_logger(__name__)
        self.orchestrator: Optional[ScanOrchestrator] = None
        self.sink: Optional[ConsoleResultSink] = None
        self.shutdown_requested = False

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame) -> None:
        """
        Handle shutdown signals gracefully.

        Args:
            signum: Signal number
            frame: Current stack frame
        """
        signal_name = signal.Signals(signum).name

        if not self.shutdown_requested:
            self.logger.warning(f"Received {signal_name} - cancelling scan...")
            self.shutdown_requested = True
            if self.orchestrator is not None:
                self.orchestrator.cancel_scan()
        else:
            self.logger.error("Force shutdown requested - terminating immediately")
            sys.exit(EXIT_INTERRUPTED)

    def build_config(self, args: argparse.Namespace) -> ScanConfig:
        """
        Load the YAML configuration and apply command-line overrides.

        Args:
            args: Parsed command line arguments

        Returns:
            ScanConfig to scan with
        """
        loader = ConfigLoader(args.config_dir)
        config = loader.load_scan_config()

        if args.port is not None:
            config.probe_port = args.port
        if args.scan_timeout is not None:
            config.scan_timeout = args.scan_timeout
        if args.batch_size is not None:
            config.batch_size = args.batch_size
        if args.interface:
            config.lan_interfaces = list(args.interface)

        return config

    def list_interfaces(self, config: ScanConfig) -> int:
        """Print the eligible interfaces and the address each would scan from."""
        interfaces = InterfaceEnumerator(config).discover()
        if not interfaces:
            self.logger.warning("No eligible interfaces", allowed=", ".join(config.allowed_interfaces))
            return EXIT_NOT_FOUND

        for interface in interfaces:
            self.logger.info(
                f"{interface.name}: {interface.address or 'no IPv4 address'}",
                family="/".join(interface.families),
                up=interface.is_up,
                running=interface.is_running,
                kind=interface.interface_class.value,
            )
        return EXIT_FOUND

    def run(self, args: argparse.Namespace) -> int:
        """
        Run the device locator application.

        Args:
            args: Parsed command line arguments

        Returns:
            int: Exit code (0 when the device was found)
        """
        if args.create_config:
            created = ConfigLoader(args.config_dir).create_default_config()
            return EXIT_FOUND if created else EXIT_NOT_FOUND

        config = self.build_config(args)

        if args.list_interfaces:
            return self.list_interfaces(config)

        self.logger.section("DEVICE SCAN")
        self.sink = ConsoleResultSink(port=config.probe_port)
        self.orchestrator = ScanOrchestrator(config=config, result_sink=self.sink)

        try:
            self.orchestrator.start_scan()
            result = self.orchestrator.wait()
        except KeyboardInterrupt:
            self.orchestrator.cancel_scan()
            self.logger.warning("Scan interrupted by user")
            return EXIT_INTERRUPTED

        if self.shutdown_requested or result is None:
            return EXIT_INTERRUPTED

        stats = result.statistics
        self.logger.info(
            f"Scan finished: {result.state.value}",
            duration=f"{result.duration:.2f}s",
            batches=stats.batches_dispatched,
            probes=stats.probes_dispatched,
            failed=stats.probes_failed,
        )

        if result.found:
            print(result.service_url)
            return EXIT_FOUND
        return EXIT_NOT_FOUND


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command line argument parser.

    Returns:
        argparse.ArgumentParser: Configured argument parser
    """
    parser = argparse.ArgumentParser(
        prog="device_locator",
        description="Device Locator - find the host serving HTTP on a known port on the local network",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m device_locator                            # Scan with default settings
  python -m device_locator --config-dir ./configs     # Use a custom config directory
  python -m device_locator --port 8080 -v             # Probe another port, verbose
  python -m device_locator --interface eth0           # Scan only eth0 (plus tunnels)
  python -m device_locator --list-interfaces          # Show scan origins and exit
        """
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        help="Directory containing locator_config.yml. Defaults to device_locator/config/"
    )

    parser.add_argument(
        "--port",
        type=_port,
        help="Service port to probe (overrides probe_port)"
    )

    parser.add_argument(
        "--scan-timeout",
        type=_positive_float,
        help="Seconds before the whole scan gives up (overrides scan_timeout)"
    )

    parser.add_argument(
        "--batch-size",
        type=_positive_int,
        help="Probes dispatched per batch (overrides batch_size)"
    )

    parser.add_argument(
        "--interface", "-i",
        action="append",
        help="LAN interface to scan from; may be repeated (overrides lan_interfaces)"
    )

    parser.add_argument(
        "--list-interfaces",
        action="store_true",
        help="List eligible interfaces and their addresses, then exit"
    )

    parser.add_argument(
        "--create-config",
        action="store_true",
        help="Write a default locator_config.yml into the config directory and exit"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging output (every probe)"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Device Locator {__version__}"
    )

    return parser


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _positive_float(value: str) -> float:
    number = float(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return number


def _port(value: str) -> int:
    number = _positive_int(value)
    if number > 65535:
        raise argparse.ArgumentTypeError(f"must be at most 65535, got {value}")
    return number


def main(argv: Optional[list] = None) -> int:
    """
    Main entry point for the Device Locator.

    Returns:
        int: Exit code (0 found, 1 not found, 130 interrupted)
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.config_dir and not Path(args.config_dir).is_dir() and not args.create_config:
        parser.error(f"configuration directory does not exist: {args.config_dir}")

    if args.verbose:
        set_log_level(LogLevel.DEBUG)

    app = LocatorApp()
    app.install_signal_handlers()
    return app.run(args)


if __name__ == "__main__":
    sys.exit(main())
