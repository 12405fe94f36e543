"""
MonitoringService - Background service that polls server logs on an interval.

This service runs an asyncio task that polls every configured log path through
a MonitorRegistry, keeps the latest snapshot per path, and optionally persists
each snapshot to disk as JSON.
"""

import asyncio
import hashlib
import json
import logging
import os
import time
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from .monitoring.config import MonitoringConfig
from .monitoring.models import StatusSnapshot
from .monitoring.registry import MonitorRegistry


class MonitoringService:
    """
    Background service for polling game server logs.

    Paths are polled one after another inside a single loop iteration, so at
    most one poll per path is ever in flight.
    """

    def __init__(
        self,
        config: MonitoringConfig,
        registry: MonitorRegistry | None = None,
    ):
        """
        Initialize the monitoring service.

        Args:
            config: Monitoring configuration (paths, interval, status dir)
            registry: Registry to poll through; a new one is built if omitted
        """
        self.config = config
        self.registry = registry or MonitorRegistry(chunk_size=config.chunk_size_bytes)
        self.poll_interval = config.poll_interval_seconds
        self.status_dir = Path(config.status_dir) if config.status_dir else None

        self._task: asyncio.Task | None = None
        self._running = False
        self._logger = logging.getLogger(__name__)
        self._latest: dict[str, StatusSnapshot] = {}

        # Error tracking for backoff
        self._error_counts: dict[str, int] = {}
        self._last_error_time: dict[str, float] = {}

    # ============================================================================
    # Lifecycle Methods
    # ============================================================================

    async def start(self) -> None:
        """
        Start the monitoring service.

        Raises:
            RuntimeError: If service is already running
        """
        if self._running:
            raise RuntimeError("MonitoringService is already running")

        self._logger.info(f"Starting MonitoringService for {len(self.config.log_paths)} log(s)...")

        if self.status_dir is not None:
            self.status_dir.mkdir(parents=True, exist_ok=True)
            self._logger.info(f"Status snapshots path: {self.status_dir}")

        self._running = True
        self._task = asyncio.create_task(self._monitoring_loop())

        self._logger.info(f"MonitoringService started (poll interval: {self.poll_interval}s)")

    async def stop(self, timeout: float = 5.0) -> None:
        """
        Stop the monitoring service gracefully.

        Args:
            timeout: Maximum time to wait for clean shutdown (seconds)
        """
        if not self._running:
            return

        self._logger.info("Stopping MonitoringService...")
        self._running = False

        if self._task:
            self._task.cancel()

            try:
                await asyncio.wait_for(self._task, timeout=timeout)
            except TimeoutError:
                self._logger.warning("Monitoring task did not stop within timeout")
            except asyncio.CancelledError:
                self._logger.info("Monitoring task cancelled successfully")

        self._logger.info("MonitoringService stopped")

    def is_running(self) -> bool:
        """Check if the monitoring service is currently running."""
        return self._running and self._task is not None and not self._task.done()

    # ============================================================================
    # Core Monitoring Methods
    # ============================================================================

    async def _monitoring_loop(self) -> None:
        """
        Main monitoring loop (runs in background task).

        Handles all exceptions to prevent task crashes.
        """
        self._logger.info("Monitoring loop started")

        while self._running:
            try:
                await asyncio.to_thread(self.poll_once)
                await asyncio.sleep(self.poll_interval)

            except asyncio.CancelledError:
                self._logger.info("Monitoring loop cancelled")
                break
            except Exception as e:
                self._logger.critical(f"Critical error in monitoring loop: {e}")
                await asyncio.sleep(self.poll_interval)

        self._logger.info("Monitoring loop exited")

    def poll_once(self) -> dict[str, StatusSnapshot]:
        """
        Poll every configured path once.

        Returns:
            Mapping of configured path to the snapshot from this poll
        """
        results: dict[str, StatusSnapshot] = {}
        for log_path in self.config.log_paths:
            snapshot = self.registry.poll(log_path)
            results[log_path] = snapshot
            self._latest[log_path] = snapshot

            if self.status_dir is None or self._should_skip_path(log_path):
                continue

            try:
                self._persist_snapshot(log_path, snapshot)
                self._record_success(log_path)
            except OSError as e:
                self._logger.error(f"Error persisting status for {log_path}: {e}")
                self._record_error(log_path)

        return results

    def get_latest(self, log_path: str) -> StatusSnapshot | None:
        """Return the most recent snapshot for a configured path."""
        return self._latest.get(log_path)

    def get_all_latest(self) -> dict[str, dict[str, Any]]:
        """Return the most recent snapshot of every polled path as dicts."""
        return {path: snapshot.to_dict() for path, snapshot in self._latest.items()}

    # ============================================================================
    # Persistence Methods
    # ============================================================================

    def status_file_for(self, log_path: str) -> Path:
        """
        Return the snapshot file for a log path.

        Format: <status_dir>/<log stem>-<8 hex digits of path hash>.json
        """
        if self.status_dir is None:
            raise RuntimeError("Status persistence is disabled (no status_dir configured)")
        canonical = os.path.abspath(os.path.normpath(str(log_path)))
        digest = hashlib.md5(canonical.encode("utf-8")).hexdigest()[:8]
        return self.status_dir / f"{Path(canonical).stem}-{digest}.json"

    def _persist_snapshot(self, log_path: str, snapshot: StatusSnapshot) -> Path:
        """
        Persist a snapshot to disk using an atomic write.

        Returns:
            Path to the written status file
        """
        status_file = self.status_file_for(log_path)
        status_file.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "path": log_path,
            "timestamp": datetime.now(UTC).isoformat(),
            **snapshot.to_dict(),
        }
        self._atomic_write(status_file, data)
        self._logger.debug(f"Persisted status for {log_path}: {status_file}")
        return status_file

    def _atomic_write(self, filepath: Path, data: dict) -> None:
        """
        Perform atomic write to file.

        Args:
            filepath: Target file path
            data: Data to write (will be JSON serialized)
        """
        temp_path = filepath.with_suffix(".tmp")

        with open(temp_path, "w", encoding="utf-8") as f:
            f.write(json.dumps(data, indent=2))
            f.flush()
            os.fsync(f.fileno())

        temp_path.replace(filepath)

    # ============================================================================
    # Error Handling Methods
    # ============================================================================

    def _should_skip_path(self, log_path: str) -> bool:
        """
        Determine if persistence for a path should be skipped due to recent errors.

        Implements exponential backoff based on error count.
        """
        error_count = self._error_counts.get(log_path, 0)
        if error_count == 0:
            return False

        last_error_time = self._last_error_time.get(log_path, 0)
        time_since_error = time.time() - last_error_time

        return time_since_error < self._get_backoff_seconds(error_count)

    def _record_error(self, log_path: str) -> None:
        """Record an error for a path (for backoff calculation)."""
        self._error_counts[log_path] = self._error_counts.get(log_path, 0) + 1
        self._last_error_time[log_path] = time.time()

        error_count = self._error_counts[log_path]
        backoff = self._get_backoff_seconds(error_count)

        self._logger.warning(
            f"Error recorded for {log_path} "
            f"(count: {error_count}, backoff: {backoff}s)"
        )

    def _record_success(self, log_path: str) -> None:
        """Record a successful persist (resets error tracking)."""
        self._error_counts.pop(log_path, None)
        self._last_error_time.pop(log_path, None)

    def _get_backoff_seconds(self, error_count: int) -> float:
        """
        Calculate backoff time based on error count.

        Formula: min(2^error_count, error_backoff_max_seconds) seconds
        """
        return min(2**error_count, self.config.error_backoff_max_seconds)
