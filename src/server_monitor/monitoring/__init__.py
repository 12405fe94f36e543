"""Game server log monitoring.

This package tails server log files incrementally and derives a small
status summary (lifecycle state, uptime, player count, session code) from
newly appended lines.

Key Components:
    - models: Tail state, status records and snapshots
    - config: Configuration dataclass for the monitoring service
    - log_reader: Incremental log reading with rotation detection
    - detectors: Pattern-based line detectors
    - status_engine: Per-path status derivation
    - registry: Caller-owned state and the ``poll`` operation

Example:
    >>> from server_monitor.monitoring import MonitorRegistry
    >>> registry = MonitorRegistry()
    >>> registry.poll("/path/to/AbioticFactor.log").to_dict()
    {'status': 'unknown', 'uptime': None}
"""

from __future__ import annotations

from .config import MonitoringConfig
from .detectors import DEFAULT_DETECTORS, Detector, DetectorKind, DetectorSet
from .log_reader import LogTailer
from .models import ServerStatus, StatusRecord, StatusSnapshot, TailResult, TailState
from .registry import MonitorRegistry
from .status_engine import StatusEngine

__all__ = [
    "MonitoringConfig",
    "MonitorRegistry",
    "LogTailer",
    "StatusEngine",
    "Detector",
    "DetectorKind",
    "DetectorSet",
    "DEFAULT_DETECTORS",
    "ServerStatus",
    "StatusRecord",
    "StatusSnapshot",
    "TailResult",
    "TailState",
]
