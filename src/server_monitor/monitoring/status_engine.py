"""Stateful status derivation from newly read log lines.

This module provides the StatusEngine class, which keeps one StatusRecord
per log path and updates it from each batch of complete lines produced by
the tailer.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .detectors import DetectorKind, DetectorSet
from .models import ServerStatus, StatusRecord

logger = logging.getLogger(__name__)


class StatusEngine:
    """Applies detectors to log text and maintains per-path status.

    Readiness moves a record from ``starting`` to ``running`` once; later
    readiness lines do not touch the uptime. Player counts are tracked only
    while running and never drop below zero.

    Attributes:
        detectors: Detector table evaluated on every update.
    """

    def __init__(
        self,
        detectors: DetectorSet | None = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the status engine.

        Args:
            detectors: Detector table; defaults to the built-in set.
            clock: Returns the current epoch time in seconds.
        """
        self.detectors = detectors or DetectorSet()
        self._clock = clock
        self._records: dict[str, StatusRecord] = {}

    def _now(self) -> int:
        return int(self._clock())

    def get_record(self, key: str) -> StatusRecord | None:
        return self._records.get(key)

    def forget(self, key: str) -> None:
        self._records.pop(key, None)

    def update(self, key: str, lines_text: str) -> StatusRecord:
        """Update the status record for ``key`` from new log lines.

        Args:
            key: Canonical path of the log file.
            lines_text: Complete lines joined by ``"\\n"``.

        Returns:
            The updated record (the stored instance, mutated in place).
        """
        record = self._records.get(key)
        if record is None:
            record = StatusRecord(status=ServerStatus.STARTING, uptime=self._now())
            self._records[key] = record

        if not lines_text or not lines_text.strip():
            return record

        if (
            self.detectors.any_matches(DetectorKind.READINESS, lines_text)
            and record.status is not ServerStatus.RUNNING
        ):
            logger.info(f"Server is ready: {key}")
            record.status = ServerStatus.RUNNING
            record.uptime = self._now()

        if record.status is ServerStatus.RUNNING:
            record.info.setdefault("players", 0)
            connects = self.detectors.count(DetectorKind.CONNECT, lines_text)
            disconnects = self.detectors.count(DetectorKind.DISCONNECT, lines_text)
            if connects or disconnects:
                old_players = record.info["players"]
                record.info["players"] = max(0, old_players + connects - disconnects)
                if record.info["players"] != old_players:
                    logger.debug(
                        f"Player count updated for {key}: "
                        f"{old_players} -> {record.info['players']}"
                    )

        extractors = self.detectors.info_extractors
        for line in lines_text.split("\n"):
            for detector in extractors:
                detector.apply(record, line)

        return record
