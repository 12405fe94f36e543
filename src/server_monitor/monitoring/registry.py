"""Caller-owned registry that ties tailing and status derivation together.

A MonitorRegistry holds all per-path state. Construct one and keep it for
as long as the paths should be tracked; polls of the same path must not run
concurrently.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from pathlib import Path

from .config import DEFAULT_CHUNK_SIZE
from .detectors import DetectorSet
from .log_reader import LogTailer
from .models import StatusSnapshot
from .status_engine import StatusEngine

logger = logging.getLogger(__name__)


class MonitorRegistry:
    """Polls log files and returns derived status snapshots.

    Attributes:
        tailer: Incremental reader owning per-path read state.
        engine: Status engine owning per-path status records.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        detectors: DetectorSet | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.tailer = LogTailer(chunk_size=chunk_size)
        self.engine = StatusEngine(detectors=detectors, clock=clock)

    @staticmethod
    def _key(log_file_path: str | Path) -> str:
        # Lexical only: a symlinked log keeps its key when the link is retargeted.
        return os.path.abspath(os.path.normpath(str(log_file_path)))

    def poll(self, log_file_path: str | Path) -> StatusSnapshot:
        """Read new lines from a log file and return its current status.

        Never raises: a missing file yields an ``unknown`` snapshot and any
        other failure an ``error`` snapshot carrying the message.

        Args:
            log_file_path: Path to the log file.

        Returns:
            Snapshot of the status after this poll.
        """
        try:
            key = self._key(log_file_path)
            result = self.tailer.read_new_lines(key)
            if result.not_found:
                return StatusSnapshot.not_found()
            record = self.engine.update(key, result.text)
            return StatusSnapshot.from_record(record)
        except Exception as e:
            logger.error(f"Error reading server log {log_file_path}: {e}")
            return StatusSnapshot.failed(str(e))

    def get_status(self, log_file_path: str | Path) -> StatusSnapshot | None:
        """Return the last derived status without reading the file."""
        record = self.engine.get_record(self._key(log_file_path))
        if record is None:
            return None
        return StatusSnapshot.from_record(record)

    def forget(self, log_file_path: str | Path) -> None:
        """Discard all state for a path; the next poll seeds it afresh."""
        key = self._key(log_file_path)
        self.tailer.forget(key)
        self.engine.forget(key)
        logger.info(f"Stopped tracking {key}")

    def tracked_paths(self) -> list[str]:
        return sorted(self.tailer.tracked_paths())
