"""
Prober modules for the Device Locator.

This package contains the base prober interface and the HTTP liveness
prober used by default.
"""

from .base_prober import BaseProber
from .http_prober import HttpProber

__all__ = [
    'BaseProber',
    'HttpProber'
]
