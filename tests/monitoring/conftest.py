"""Shared fixtures for monitoring tests."""

from pathlib import Path

import pytest

from server_monitor.monitoring.log_reader import LogTailer
from server_monitor.monitoring.registry import MonitorRegistry


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def temp_log_file(tmp_path: Path) -> Path:
    """Create temporary log file with initial content."""
    log_file = tmp_path / "test.log"
    log_file.write_text("Line 1\nLine 2\nLine 3\n")
    return log_file


@pytest.fixture
def empty_log_file(tmp_path: Path) -> Path:
    """Create empty log file."""
    log_file = tmp_path / "empty.log"
    log_file.write_text("")
    return log_file


@pytest.fixture
def server_log(tmp_path: Path) -> Path:
    """Create a server log that has not announced a session yet."""
    log_file = tmp_path / "AbioticFactor.log"
    log_file.write_text("LogInit: Display: Starting dedicated server\n")
    return log_file


@pytest.fixture
def tailer() -> LogTailer:
    return LogTailer()


@pytest.fixture
def registry(clock: FakeClock) -> MonitorRegistry:
    return MonitorRegistry(clock=clock)
