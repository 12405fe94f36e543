"""Tests for MonitorRegistry.poll, covering tailing and status together."""

import os
from pathlib import Path
from unittest.mock import patch

from server_monitor.monitoring.models import ServerStatus
from server_monitor.monitoring.registry import MonitorRegistry

READY = "LogAbiotic: Warning: Session short code: ABC123"
ENTERED = "LogAbiotic: Display: CHAT LOG: Bob has entered the facility."
EXITED = "LogAbiotic: Display: CHAT LOG: Bob has exited the facility."


def append(path: Path, text: str) -> None:
    with path.open("a", encoding="utf-8") as f:
        f.write(text)


class TestPollMissingFile:
    """Tests for polling a file that does not exist."""

    def test_unknown_and_no_state(self, tmp_path: Path, registry: MonitorRegistry) -> None:
        missing = tmp_path / "missing.log"

        snapshot = registry.poll(missing)

        assert snapshot.to_dict() == {"status": "unknown", "uptime": None}
        assert registry.tracked_paths() == []
        assert registry.get_status(missing) is None

    def test_file_created_later_is_seeded(
        self, tmp_path: Path, registry: MonitorRegistry
    ) -> None:
        log_file = tmp_path / "late.log"
        registry.poll(log_file)

        log_file.write_text(READY + "\n")

        assert registry.poll(log_file).status is ServerStatus.RUNNING


class TestPollStatus:
    """Tests for status derived through polling."""

    def test_first_poll_sees_existing_ready_line(
        self, server_log: Path, registry: MonitorRegistry, clock
    ) -> None:
        append(server_log, READY + "\n")

        snapshot = registry.poll(server_log)

        assert snapshot.status is ServerStatus.RUNNING
        assert snapshot.uptime == int(clock.now)
        assert snapshot.info["players"] == 0

    def test_first_poll_without_ready_is_starting(
        self, server_log: Path, registry: MonitorRegistry, clock
    ) -> None:
        snapshot = registry.poll(server_log)

        assert snapshot.to_dict() == {"status": "starting", "uptime": int(clock.now)}

    def test_example_session(self, server_log: Path, registry: MonitorRegistry) -> None:
        append(server_log, READY + "\n")
        registry.poll(server_log)

        append(server_log, ENTERED + "\n")
        snapshot = registry.poll(server_log)

        assert snapshot.status is ServerStatus.RUNNING
        assert snapshot.info == {"players": 1, "Session Code": "ABC123"}

    def test_enter_then_exit_nets_zero(self, server_log: Path, registry: MonitorRegistry) -> None:
        append(server_log, READY + "\n")
        registry.poll(server_log)

        append(server_log, ENTERED + "\n")
        assert registry.poll(server_log).info["players"] == 1

        append(server_log, EXITED + "\n")
        assert registry.poll(server_log).info["players"] == 0

    def test_exit_before_enter_never_negative(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, READY + "\n")
        registry.poll(server_log)

        append(server_log, EXITED + "\n")
        assert registry.poll(server_log).info["players"] == 0

        append(server_log, ENTERED + "\n")
        assert registry.poll(server_log).info["players"] == 1

    def test_seed_is_evaluated_only_once(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, "\n".join([READY, ENTERED, ENTERED]) + "\n")

        assert registry.poll(server_log).info["players"] == 2
        assert registry.poll(server_log).info["players"] == 2

    def test_idempotent_without_growth(
        self, server_log: Path, registry: MonitorRegistry, clock
    ) -> None:
        append(server_log, "\n".join([READY, ENTERED]) + "\n")
        first = registry.poll(server_log)
        clock.now += 120

        second = registry.poll(server_log)

        assert second == first

    def test_snapshot_is_detached_from_engine(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, READY + "\n")
        snapshot = registry.poll(server_log)

        snapshot.info["players"] = 99

        assert registry.get_status(server_log).info["players"] == 0


class TestPollPartialLines:
    """Tests for lines split across polls."""

    def test_partial_ready_line_not_detected_until_complete(
        self, server_log: Path, registry: MonitorRegistry, clock
    ) -> None:
        append(server_log, "LogAbiotic: Warning: Session short code: AB")
        assert registry.poll(server_log).status is ServerStatus.STARTING

        clock.now += 10
        append(server_log, "C123\n")
        snapshot = registry.poll(server_log)

        assert snapshot.status is ServerStatus.RUNNING
        assert snapshot.info["Session Code"] == "ABC123"
        assert snapshot.uptime == int(clock.now)

    def test_partial_connect_line_counted_once(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, READY + "\n" + "LogAbiotic: Display: CHAT LOG: Bob has ent")
        assert registry.poll(server_log).info["players"] == 0

        append(server_log, "ered the facility.\n")
        assert registry.poll(server_log).info["players"] == 1
        assert registry.poll(server_log).info["players"] == 1


class TestPollRotation:
    """Tests for truncation and rotation while running."""

    def test_truncation_keeps_uptime(
        self, server_log: Path, registry: MonitorRegistry, clock
    ) -> None:
        append(server_log, "\n".join([READY, ENTERED, EXITED, ENTERED]) + "\n")
        first = registry.poll(server_log)
        clock.now += 3600

        server_log.write_text(READY + "\n")
        snapshot = registry.poll(server_log)

        assert snapshot.status is ServerStatus.RUNNING
        assert snapshot.uptime == first.uptime

    def test_truncation_rereads_new_content(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, "\n".join([READY, "LogNet: padding " * 10]) + "\n")
        registry.poll(server_log)

        server_log.write_text("LogAbiotic: Warning: Session short code: NEW42\n")
        snapshot = registry.poll(server_log)

        assert snapshot.info["Session Code"] == "NEW42"

    def test_retargeted_symlink_keeps_status(
        self, tmp_path: Path, registry: MonitorRegistry, clock
    ) -> None:
        """Test a log symlink pointed at a new file is treated as a rotation."""
        first_log = tmp_path / "server-1.log"
        first_log.write_text("\n".join([READY, ENTERED]) + "\n")
        link = tmp_path / "current.log"
        link.symlink_to(first_log)

        first = registry.poll(link)
        assert first.info == {"players": 1, "Session Code": "ABC123"}
        clock.now += 3600

        second_log = tmp_path / "server-2.log"
        second_log.write_text("LogAbiotic: Display: CHAT LOG: Alice has entered the facility.\n")
        new_link = tmp_path / "current.log.new"
        new_link.symlink_to(second_log)
        os.replace(new_link, link)

        snapshot = registry.poll(link)

        assert snapshot.status is ServerStatus.RUNNING
        assert snapshot.uptime == first.uptime
        assert snapshot.info == {"players": 2, "Session Code": "ABC123"}
        assert registry.tracked_paths() == [os.path.abspath(link)]


class TestPollErrors:
    """Tests for fatal poll failures."""

    def test_unexpected_error_returns_error_snapshot(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        with patch.object(registry.tailer, "read_new_lines", side_effect=RuntimeError("boom")):
            snapshot = registry.poll(server_log)

        assert snapshot.to_dict() == {"status": "error", "uptime": None, "error": "boom"}

    def test_stat_failure_returns_error_snapshot(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        with patch.object(Path, "stat", side_effect=PermissionError("denied")):
            snapshot = registry.poll(server_log)

        assert snapshot.status is ServerStatus.ERROR
        assert snapshot.error == "denied"

    def test_error_does_not_overwrite_record(
        self, server_log: Path, registry: MonitorRegistry
    ) -> None:
        append(server_log, READY + "\n")
        good = registry.poll(server_log)

        with patch.object(registry.tailer, "read_new_lines", side_effect=OSError("gone")):
            registry.poll(server_log)

        assert registry.poll(server_log) == good


class TestRegistryBookkeeping:
    """Tests for tracked path helpers."""

    def test_paths_are_canonicalised(self, server_log: Path, registry: MonitorRegistry) -> None:
        relative_style = server_log.parent / "." / server_log.name

        registry.poll(relative_style)

        assert registry.tracked_paths() == [os.path.abspath(server_log)]

    def test_forget_resets_path(self, server_log: Path, registry: MonitorRegistry) -> None:
        append(server_log, READY + "\n" + ENTERED + "\n")
        registry.poll(server_log)

        registry.forget(server_log)

        assert registry.tracked_paths() == []
        assert registry.get_status(server_log) is None
        assert registry.poll(server_log).info["players"] == 1

    def test_independent_paths(self, tmp_path: Path, clock) -> None:
        registry = MonitorRegistry(clock=clock)
        a = tmp_path / "a.log"
        b = tmp_path / "b.log"
        a.write_text(READY + "\n")
        b.write_text("LogInit: booting\n")

        assert registry.poll(a).status is ServerStatus.RUNNING
        assert registry.poll(b).status is ServerStatus.STARTING
