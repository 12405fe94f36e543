"""Incremental log reading with rotation detection.

This module provides efficient incremental reading of log files using byte
offsets. Truncation is detected by a shrinking file size and replacement by
a changed inode, in both cases reading restarts from the beginning.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from .config import DEFAULT_CHUNK_SIZE
from .models import TailResult, TailState

logger = logging.getLogger(__name__)


class LogTailer:
    """Reads log files incrementally without re-reading entire files.

    The first time a path is seen its whole content is read once as a seed.
    After that only bytes appended since the previous call are read. Any
    trailing partial line is buffered and prepended to the next read, so
    callers only ever see complete lines.

    Attributes:
        chunk_size: Maximum bytes requested per underlying read call.
    """

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """Initialize the tailer.

        Args:
            chunk_size: Maximum bytes requested per underlying read call.
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size
        self._states: dict[str, TailState] = {}

    def get_state(self, log_file_path: str | Path) -> TailState | None:
        """Return the stored state for a path, if any."""
        return self._states.get(str(log_file_path))

    def forget(self, log_file_path: str | Path) -> None:
        """Drop stored state so the next call seeds the file again."""
        self._states.pop(str(log_file_path), None)

    def tracked_paths(self) -> list[str]:
        return list(self._states)

    def read_new_lines(self, log_file_path: str | Path) -> TailResult:
        """Read complete lines appended since the last call.

        Args:
            log_file_path: Canonical path of the log file.

        Returns:
            TailResult holding the new complete lines joined by ``"\\n"``,
            or ``not_found`` set when the file does not exist.

        Raises:
            OSError: If the file cannot be stat'ed for reasons other than
                being absent.
        """
        log_path = Path(log_file_path)
        key = str(log_path)

        try:
            stat = log_path.stat()
        except FileNotFoundError:
            logger.debug(f"Log file does not exist: {log_path}")
            return TailResult(not_found=True)

        state = self._states.get(key)
        if state is None:
            logger.info(f"First read of log file: {log_path}")
            state = TailState(file_path=key)
            self._states[key] = state
        elif stat.st_size < state.last_size:
            logger.warning(
                f"Log file {log_path} was truncated "
                f"(size {state.last_size} -> {stat.st_size}), reading from start"
            )
            state.reset()
        elif (stat.st_ino, stat.st_dev) != (state.inode, state.device):
            logger.warning(f"Log file {log_path} was replaced, reading from start")
            state.reset()

        state.last_size = stat.st_size
        state.last_mtime = stat.st_mtime
        state.inode = stat.st_ino
        state.device = stat.st_dev

        new_bytes = b""
        if not state.seeded:
            # Seed: the whole existing file is consumed once as new content.
            new_bytes = self._read_range(log_path, 0, stat.st_size)
            state.position = len(new_bytes)
            state.seeded = True
        elif state.position < stat.st_size:
            new_bytes = self._read_range(log_path, state.position, stat.st_size)
            state.position += len(new_bytes)

        if new_bytes:
            logger.debug(
                f"Read {len(new_bytes)} bytes from {log_path} (offset now {state.position})"
            )

        pieces = (state.fragment + new_bytes).split(b"\n")
        state.fragment = pieces.pop()
        lines = [piece.decode("utf-8", errors="replace").rstrip("\r") for piece in pieces]
        return TailResult(text="\n".join(lines))

    def _read_range(self, log_path: Path, start: int, end: int) -> bytes:
        """Read bytes ``[start, end)`` in bounded chunks.

        A failed read is not fatal: it yields no bytes so the same range is
        retried on the next call.

        Args:
            log_path: File to read.
            start: First byte offset.
            end: Offset to stop at (exclusive).

        Returns:
            The bytes read, possibly fewer than requested if the file shrank.
        """
        chunks: list[bytes] = []
        remaining = end - start
        try:
            with log_path.open("rb") as f:
                f.seek(start, os.SEEK_SET)
                while remaining > 0:
                    chunk = f.read(min(self.chunk_size, remaining))
                    if not chunk:
                        break
                    chunks.append(chunk)
                    remaining -= len(chunk)
        except OSError as e:
            logger.warning(f"Failed to read {log_path} at offset {start}: {e}")
            return b""
        return b"".join(chunks)
