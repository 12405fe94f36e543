"""Data models for the server log monitoring system.

This module defines the core data structures used throughout the monitoring
system, including per-path tail state, derived status records, and the
status enum reported to callers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ServerStatus(Enum):
    """Lifecycle state of a monitored game server.

    Attributes:
        STARTING: Log observed, server not yet accepting sessions.
        RUNNING: A session short code was announced; server is up.
        UNKNOWN: The log file does not exist.
        ERROR: The poll failed unexpectedly.
    """

    STARTING = "starting"
    RUNNING = "running"
    UNKNOWN = "unknown"
    ERROR = "error"


@dataclass
class TailState:
    """Tracks reading position for incremental log consumption.

    Attributes:
        file_path: Canonical absolute path to the log file.
        position: Byte offset of the next unread byte.
        last_size: File size observed at the previous poll.
        last_mtime: Modification time observed at the previous poll.
        inode: Inode number observed at the previous poll.
        device: Device number observed at the previous poll.
        fragment: Bytes after the last line terminator, carried to the next read.
        seeded: Whether the first-observation seed read has been performed.
    """

    file_path: str
    position: int = 0
    last_size: int = 0
    last_mtime: float = 0.0
    inode: int = 0
    device: int = 0
    fragment: bytes = b""
    seeded: bool = False

    def reset(self) -> None:
        """Forget the read position and any buffered partial line."""
        self.position = 0
        self.fragment = b""


@dataclass
class TailResult:
    """Outcome of a single tail read."""

    text: str = ""
    not_found: bool = False


@dataclass
class StatusRecord:
    """Derived status for one monitored log file.

    Attributes:
        status: Current lifecycle state.
        uptime: Epoch seconds since which the server is considered up.
        info: Extra details; always holds ``players`` once running.
    """

    status: ServerStatus = ServerStatus.STARTING
    uptime: int | None = None
    info: dict[str, Any] = field(default_factory=dict)

    @property
    def players(self) -> int:
        return int(self.info.get("players", 0))


@dataclass
class StatusSnapshot:
    """Detached copy of a status returned from a poll."""

    status: ServerStatus
    uptime: int | None
    info: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @classmethod
    def from_record(cls, record: StatusRecord) -> StatusSnapshot:
        return cls(status=record.status, uptime=record.uptime, info=dict(record.info))

    @classmethod
    def not_found(cls) -> StatusSnapshot:
        return cls(status=ServerStatus.UNKNOWN, uptime=None)

    @classmethod
    def failed(cls, message: str) -> StatusSnapshot:
        return cls(status=ServerStatus.ERROR, uptime=None, error=message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the shape reported to callers.

        ``info`` is included only when non-empty and ``error`` only when set.
        """
        data: dict[str, Any] = {"status": self.status.value, "uptime": self.uptime}
        if self.info:
            data["info"] = dict(self.info)
        if self.error is not None:
            data["error"] = self.error
        return data
