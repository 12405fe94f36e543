"""Line detectors for deriving server status from log text.

Each detector is a stateless pattern tagged with the kind of effect it has
on a status record. The status engine decides when each kind is evaluated;
detectors only know how to match and, for info extractors, how to write the
captured value into a record.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .models import StatusRecord


class DetectorKind(Enum):
    """Effect a detector has when it matches."""

    READINESS = "readiness"
    CONNECT = "connect"
    DISCONNECT = "disconnect"
    INFO = "info"


@dataclass(frozen=True)
class Detector:
    """A named pattern and the effect it has on a status record.

    Attributes:
        name: Human-readable detector name, used in logs.
        pattern: Compiled regular expression matched against log text.
        kind: Which part of the status the detector feeds.
        info_key: Key written into ``StatusRecord.info`` with the first
            capture group. Any detector with an ``info_key`` also acts as an
            info extractor regardless of its kind.
    """

    name: str
    pattern: re.Pattern[str]
    kind: DetectorKind
    info_key: str | None = None

    def __post_init__(self) -> None:
        if self.info_key is not None and self.pattern.groups == 0:
            raise ValueError(
                f"Detector {self.name} sets info_key {self.info_key!r} "
                "but its pattern has no capture group"
            )

    def matches(self, text: str) -> bool:
        return self.pattern.search(text) is not None

    def count(self, text: str) -> int:
        """Count non-overlapping matches in ``text``."""
        return sum(1 for _ in self.pattern.finditer(text))

    def apply(self, record: StatusRecord, line: str) -> bool:
        """Write the captured value into ``record.info`` if ``line`` matches.

        Returns:
            True if the record was updated.
        """
        if self.info_key is None:
            return False
        match = self.pattern.search(line)
        if match is None or not match.group(1):
            return False
        record.info[self.info_key] = match.group(1)
        return True


SERVER_READY = Detector(
    name="ServerReady",
    pattern=re.compile(r"LogAbiotic: Warning: Session short code: ([A-Z0-9]+)"),
    kind=DetectorKind.READINESS,
    info_key="Session Code",
)

PLAYER_CONNECTED = Detector(
    name="PlayerConnected",
    pattern=re.compile(r"LogAbiotic: Display: CHAT LOG: .* has entered the facility\."),
    kind=DetectorKind.CONNECT,
)

PLAYER_DISCONNECTED = Detector(
    name="PlayerDisconnected",
    pattern=re.compile(r"LogAbiotic: Display: CHAT LOG: .* has exited the facility\."),
    kind=DetectorKind.DISCONNECT,
)

DEFAULT_DETECTORS: tuple[Detector, ...] = (SERVER_READY, PLAYER_CONNECTED, PLAYER_DISCONNECTED)


class DetectorSet:
    """A fixed table of detectors grouped by kind."""

    def __init__(self, detectors: tuple[Detector, ...] | list[Detector] = DEFAULT_DETECTORS):
        self.detectors = tuple(detectors)

    def of_kind(self, kind: DetectorKind) -> tuple[Detector, ...]:
        return tuple(d for d in self.detectors if d.kind is kind)

    @property
    def info_extractors(self) -> tuple[Detector, ...]:
        return tuple(d for d in self.detectors if d.info_key is not None)

    def any_matches(self, kind: DetectorKind, text: str) -> bool:
        return any(d.matches(text) for d in self.of_kind(kind))

    def count(self, kind: DetectorKind, text: str) -> int:
        return sum(d.count(text) for d in self.of_kind(kind))
