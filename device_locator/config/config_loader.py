"""
Configuration loader for the Device Locator.
Handles loading and validation of the YAML configuration file with fallback to defaults.
"""

import yaml
from typing import Any, List, Optional
from dataclasses import dataclass, asdict
from pathlib import Path

from ..utils.logger import get_logger
from ..utils.error_handler import (
    ConfigurationError,
    ErrorContext,
    ErrorHandler,
    ErrorSeverity,
    ErrorType,
)

DEFAULT_CONFIG_FILE = "locator_config.yml"

DEFAULT_LAN_INTERFACES = ["en0", "bridge100", "eth0", "wlan0"]
DEFAULT_TUNNEL_INTERFACES = ["utun0", "utun1"]


@dataclass
class ScanConfig:
    """Tunables for one discovery scan."""
    lan_interfaces: list = None
    tunnel_interfaces: list = None
    include_ipv6: bool = True
    probe_port: int = 8082
    probe_timeout: float = 10.0
    batch_size: int = 20
    batch_delay: float = 0.5
    scan_timeout: float = 15.0
    tunnel_prefix_length: int = 16

    def __post_init__(self):
        if self.lan_interfaces is None:
            self.lan_interfaces = list(DEFAULT_LAN_INTERFACES)
        if self.tunnel_interfaces is None:
            self.tunnel_interfaces = list(DEFAULT_TUNNEL_INTERFACES)

    @property
    def allowed_interfaces(self) -> List[str]:
        """Allow-list of interface names, LAN entries first."""
        names = list(self.lan_interfaces)
        names.extend(name for name in self.tunnel_interfaces if name not in names)
        return names

    def to_dict(self) -> dict:
        return asdict(self)


class ConfigLoader:
    """
    Loads and validates the YAML configuration file for the locator.
    Provides fallback to default configuration when the file is missing or invalid.
    """

    def __init__(self, config_dir: Optional[str] = None, error_handler: Optional[ErrorHandler] = None):
        """
        Initialize ConfigLoader.

        Args:
            config_dir: Directory containing the configuration file.
                       Defaults to the config directory relative to this file.
            error_handler: ErrorHandler that records rejected settings
        """
        if config_dir is None:
            self.config_dir = Path(__file__).parent
        else:
            self.config_dir = Path(config_dir)

        self.logger = get_logger(__name__)
        self.error_handler = error_handler or ErrorHandler(self.logger)

    def load_scan_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> ScanConfig:
        """
        Load scan configuration from YAML file.

        Args:
            config_file: Name of the configuration file

        Returns:
            ScanConfig object with loaded or default configuration
        """
        config_path = self.config_dir / config_file

        if not config_path.exists():
            self.logger.warning(f"Locator config file not found at {config_path}. Using default configuration.")
            return ScanConfig()

        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)

            if not isinstance(config_data, dict) or not isinstance(config_data.get('locator'), dict):
                self._reject(f"Invalid config structure in {config_path}. Using default configuration.", "load_scan_config")
                return ScanConfig()

            data = config_data['locator']
            defaults = ScanConfig()

            return ScanConfig(
                lan_interfaces=self._validate_interface_list(
                    data.get('lan_interfaces', defaults.lan_interfaces), 'lan_interfaces', defaults.lan_interfaces),
                tunnel_interfaces=self._validate_interface_list(
                    data.get('tunnel_interfaces', defaults.tunnel_interfaces), 'tunnel_interfaces', defaults.tunnel_interfaces),
                include_ipv6=self._validate_bool(data.get('include_ipv6', defaults.include_ipv6), 'include_ipv6', defaults.include_ipv6),
                probe_port=self._validate_port(data.get('probe_port', defaults.probe_port), defaults.probe_port),
                probe_timeout=self._validate_positive_float(
                    data.get('probe_timeout', defaults.probe_timeout), 'probe_timeout', defaults.probe_timeout),
                batch_size=self._validate_positive_int(data.get('batch_size', defaults.batch_size), 'batch_size', defaults.batch_size),
                batch_delay=self._validate_non_negative_float(
                    data.get('batch_delay', defaults.batch_delay), 'batch_delay', defaults.batch_delay),
                scan_timeout=self._validate_positive_float(
                    data.get('scan_timeout', defaults.scan_timeout), 'scan_timeout', defaults.scan_timeout),
                tunnel_prefix_length=self._validate_prefix_length(
                    data.get('tunnel_prefix_length', defaults.tunnel_prefix_length), defaults.tunnel_prefix_length),
            )

        except yaml.YAMLError as e:
            self._reject(f"Error parsing config file {config_path}: {e}", "load_scan_config", ErrorSeverity.HIGH)
            self.logger.warning("Using default locator configuration.")
            return ScanConfig()
        except OSError as e:
            self._reject(f"Could not read config file {config_path}: {e}", "load_scan_config", ErrorSeverity.HIGH)
            self.logger.warning("Using default locator configuration.")
            return ScanConfig()

    def _validate_positive_int(self, value: Any, field_name: str, default: int) -> int:
        """
        Validate that a value is a positive integer.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default value to use if validation fails

        Returns:
            Validated integer value or default
        """
        if isinstance(value, bool):
            self._reject(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}", "validate")
            return default
        try:
            int_value = int(value)
            if int_value <= 0:
                self._reject(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}", "validate")
                return default
            return int_value
        except (ValueError, TypeError):
            self._reject(f"Invalid {field_name}: {value}. Must be an integer. Using default: {default}", "validate")
            return default

    def _validate_positive_float(self, value: Any, field_name: str, default: float) -> float:
        try:
            float_value = float(value)
            if float_value <= 0:
                self._reject(f"Invalid {field_name}: {value}. Must be positive. Using default: {default}", "validate")
                return default
            return float_value
        except (ValueError, TypeError):
            self._reject(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}", "validate")
            return default

    def _validate_non_negative_float(self, value: Any, field_name: str, default: float) -> float:
        try:
            float_value = float(value)
            if float_value < 0:
                self._reject(f"Invalid {field_name}: {value}. Must not be negative. Using default: {default}", "validate")
                return default
            return float_value
        except (ValueError, TypeError):
            self._reject(f"Invalid {field_name}: {value}. Must be a number. Using default: {default}", "validate")
            return default

    def _validate_bool(self, value: Any, field_name: str, default: bool) -> bool:
        if isinstance(value, bool):
            return value
        self._reject(f"Invalid {field_name}: {value}. Must be true or false. Using default: {default}", "validate")
        return default

    def _validate_port(self, value: Any, default: int) -> int:
        port = self._validate_positive_int(value, 'probe_port', default)
        if port > 65535:
            self._reject(f"Invalid probe_port: {value}. Must be at most 65535. Using default: {default}", "validate")
            return default
        return port

    def _validate_prefix_length(self, value: Any, default: int) -> int:
        """
        Validate the tunnel prefix length.

        Anything wider than /8 would ask for more than sixteen million
        candidates, and anything narrower than /30 has no room for hosts.
        """
        prefix = self._validate_positive_int(value, 'tunnel_prefix_length', default)
        if not 8 <= prefix <= 30:
            self._reject(f"Invalid tunnel_prefix_length: {value}. Must be between 8 and 30. Using default: {default}", "validate")
            return default
        return prefix

    def _validate_interface_list(self, value: Any, field_name: str, default: list) -> list:
        """
        Validate a list of interface names.

        Args:
            value: Value to validate
            field_name: Name of the field for error messages
            default: Default list to use if validation fails

        Returns:
            Validated list of names or default
        """
        if not isinstance(value, list):
            self._reject(f"Invalid {field_name}: {value}. Must be a list. Using default: {default}", "validate")
            return list(default)

        names = []
        for name in value:
            if isinstance(name, str) and name.strip():
                if name.strip() not in names:
                    names.append(name.strip())
            else:
                self._reject(f"Invalid interface name in {field_name}: {name!r}. Skipping.", "validate")

        return names

    def _reject(self, message: str, operation: str, severity: ErrorSeverity = ErrorSeverity.MEDIUM) -> None:
        """Record a configuration problem that was replaced by a default."""
        context = ErrorContext(
            error_type=ErrorType.CONFIGURATION,
            severity=severity,
            operation=operation,
            component="ConfigLoader",
        )
        self.error_handler.handle_error(ConfigurationError(message, context), context)

    def create_default_config(self, config_file: str = DEFAULT_CONFIG_FILE) -> Optional[Path]:
        """
        Create the default configuration file if it doesn't exist.

        Returns:
            Path of the file written, or None if it already existed or could not be written
        """
        config_path = self.config_dir / config_file
        if config_path.exists():
            self.logger.info(f"Config file already exists at {config_path}")
            return None

        default_config = {'locator': ScanConfig().to_dict()}

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(config_path, 'w', encoding='utf-8') as f:
                yaml.dump(default_config, f, default_flow_style=False, indent=2, sort_keys=False)
            self.logger.info(f"Created default locator config at {config_path}")
            return config_path
        except OSError as e:
            self.logger.error(f"Failed to create default locator config: {e}")
            return None
