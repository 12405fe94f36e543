"""Game server log monitor.

Tails server log files and derives lifecycle status, uptime, player count
and session metadata from newly appended lines.
"""

from .config import ConfigError, load_config
from .monitoring import MonitoringConfig, MonitorRegistry, ServerStatus, StatusSnapshot
from .monitoring_service import MonitoringService

__all__ = [
    "ConfigError",
    "load_config",
    "MonitoringConfig",
    "MonitorRegistry",
    "MonitoringService",
    "ServerStatus",
    "StatusSnapshot",
]

__version__ = "0.1.0"
