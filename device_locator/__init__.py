"""
Device Locator

Finds the single host on the local network that serves HTTP on a known
port by probing every candidate address of the eligible interfaces in
throttled batches, and reports the first one that answers.
"""

__version__ = "1.0.0"

from .config.config_loader import ScanConfig, ConfigLoader
from .core.scan_orchestrator import ScanOrchestrator
from .core.data_models import ScanResult, ScanState

__all__ = [
    'ScanConfig',
    'ConfigLoader',
    'ScanOrchestrator',
    'ScanResult',
    'ScanState'
]
