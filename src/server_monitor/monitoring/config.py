"""Configuration for the server log monitoring system.

This module defines the configuration dataclass that controls monitoring
service behavior, including polling intervals, read sizes, and storage paths.
"""

from __future__ import annotations

from dataclasses import dataclass, field

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass
class MonitoringConfig:
    """Configuration for the monitoring service.

    Attributes:
        log_paths: Log files to poll.
        poll_interval_seconds: Seconds between monitoring polls (default: 5).
        chunk_size_bytes: Maximum bytes per underlying read call (default: 64 KiB).
        status_dir: Directory for latest status snapshots; None disables persistence.
        error_backoff_max_seconds: Upper bound for per-path error backoff (default: 300).
        log_level: Logging level name for the CLI (default: INFO).
    """

    log_paths: list[str] = field(default_factory=list)
    poll_interval_seconds: float = 5
    chunk_size_bytes: int = DEFAULT_CHUNK_SIZE
    status_dir: str | None = None
    error_backoff_max_seconds: int = 300
    log_level: str = "INFO"
