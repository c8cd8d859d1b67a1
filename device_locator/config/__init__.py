"""
Configuration module for the Device Locator.
Provides configuration loading and validation for scan tunables.
"""

from .config_loader import ConfigLoader, ScanConfig

__all__ = ['ConfigLoader', 'ScanConfig']
