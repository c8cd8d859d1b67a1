"""
Core components for device location.
"""

from .data_models import (
    InterfaceClass,
    ScanState,
    InterfaceInfo,
    ProbeOutcome,
    ScanStatistics,
    ScanResult
)
from .interface_enumerator import InterfaceEnumerator
from .subnet_planner import CandidateRange, SubnetPlanner
from .scan_session import ScanSession
from .result_sink import ResultSink, ConsoleResultSink

__all__ = [
    'InterfaceClass',
    'ScanState',
    'InterfaceInfo',
    'ProbeOutcome',
    'ScanStatistics',
    'ScanResult',
    'InterfaceEnumerator',
    'CandidateRange',
    'SubnetPlanner',
    'ScanSession',
    'ResultSink',
    'ConsoleResultSink'
]
