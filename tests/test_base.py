"""Tests for FileReader and CommandRunner."""

import subprocess
from pathlib import Path
from unittest.mock import patch

from system_metrics.core.errors import (
    CommandError,
    InsufficientPermissionsError,
    MetricsFileNotFoundError,
)
from system_metrics.monitoring.base import CommandRunner, FileReader


class TestFileReader:
    """Tests for FileReader."""

    def test_read(self, tmp_path: Path) -> None:
        path = tmp_path / "memory.max"
        path.write_text("max\n")

        assert FileReader().read(path).value == "max\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        result = FileReader().read(tmp_path / "nope")

        assert isinstance(result.error, MetricsFileNotFoundError)
        assert result.error.path == str(tmp_path / "nope")

    def test_directory_is_not_readable(self, tmp_path: Path) -> None:
        result = FileReader().read(tmp_path)

        assert isinstance(result.error, InsufficientPermissionsError)
        assert not FileReader().is_readable(tmp_path)

    def test_read_lines_drops_blank_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "cgroup"
        path.write_text("4:cpu:/a\n\n0::/a\n")

        assert FileReader().read_lines(path).value == ["4:cpu:/a", "0::/a"]

    def test_exists_and_is_readable(self, tmp_path: Path) -> None:
        path = tmp_path / "stat"
        path.write_text("cpu 1 2 3 4\n")

        assert FileReader().exists(path)
        assert FileReader().is_readable(path)
        assert not FileReader().exists(tmp_path / "missing")


def _completed(returncode: int, stdout: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr="")


class TestCommandRunner:
    """Tests for CommandRunner."""

    def test_rejects_commands_not_on_allow_list(self) -> None:
        runner = CommandRunner(allowed_commands=["df"])

        with patch("system_metrics.monitoring.base.subprocess.run") as run:
            result = runner.execute("rm -rf /tmp/x")

        assert isinstance(result.error, CommandError)
        run.assert_not_called()

    def test_runs_without_shell(self) -> None:
        runner = CommandRunner(allowed_commands=["df"], timeout_seconds=5)

        with patch(
            "system_metrics.monitoring.base.subprocess.run", return_value=_completed(0, "out")
        ) as run:
            result = runner.execute("df -kPT")

        assert result.value == "out"
        args, kwargs = run.call_args
        assert args[0] == ["df", "-kPT"]
        assert kwargs["timeout"] == 5
        assert "shell" not in kwargs

    def test_exit_127_is_command_error(self) -> None:
        with patch("system_metrics.monitoring.base.subprocess.run", return_value=_completed(127)):
            result = CommandRunner().execute("df -kPT")

        assert isinstance(result.error, CommandError)

    def test_exit_126_is_permission_error(self) -> None:
        with patch("system_metrics.monitoring.base.subprocess.run", return_value=_completed(126)):
            result = CommandRunner().execute("df -kPT")

        assert isinstance(result.error, InsufficientPermissionsError)

    def test_partial_output_on_nonzero_exit(self) -> None:
        """df exits 1 when one mount is unreadable but still lists the others."""
        with patch(
            "system_metrics.monitoring.base.subprocess.run", return_value=_completed(1, "rows\n")
        ):
            assert CommandRunner().execute("df -kPT").value == "rows\n"

    def test_nonzero_exit_without_output(self) -> None:
        with patch("system_metrics.monitoring.base.subprocess.run", return_value=_completed(2)):
            assert isinstance(CommandRunner().execute("df -kPT").error, CommandError)

    def test_missing_binary(self) -> None:
        with patch(
            "system_metrics.monitoring.base.subprocess.run", side_effect=FileNotFoundError
        ):
            result = CommandRunner().execute("df -kPT")

        assert "Command not found" in str(result.error)

    def test_timeout(self) -> None:
        with patch(
            "system_metrics.monitoring.base.subprocess.run",
            side_effect=subprocess.TimeoutExpired(cmd="df", timeout=1),
        ):
            result = CommandRunner(timeout_seconds=1).execute("df -kPT")

        assert "timed out" in str(result.error)
