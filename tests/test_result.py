"""Tests for Result and the error taxonomy."""

import pytest

from system_metrics.core.errors import (
    MetricsFileNotFoundError,
    ParseError,
    SystemMetricsError,
)
from system_metrics.core.result import Result


class TestResult:
    """Tests for Result."""

    def test_success(self) -> None:
        result = Result.success(42)

        assert result.is_success()
        assert not result.is_failure()
        assert result.value == 42
        assert result.error is None
        assert result.value_or(0) == 42

    def test_failure_value_raises_carried_error(self) -> None:
        error = ParseError.for_file("/proc/stat", "Empty content")
        result: Result[int] = Result.failure(error)

        assert result.is_failure()
        assert result.error is error
        assert result.value_or(-1) == -1
        with pytest.raises(ParseError, match="Failed to parse /proc/stat: Empty content"):
            _ = result.value

    def test_success_with_none_value(self) -> None:
        result = Result.success(None)

        assert result.is_success()
        assert result.value is None

    def test_map(self) -> None:
        assert Result.success(2).map(lambda v: v * 10).value == 20

        error = MetricsFileNotFoundError("/proc/meminfo")
        mapped = Result.failure(error).map(lambda v: v * 10)
        assert mapped.error is error

    def test_callbacks(self) -> None:
        seen: list[object] = []

        Result.success("ok").on_success(seen.append).on_failure(seen.append)
        Result.failure(SystemMetricsError("bad")).on_success(seen.append).on_failure(
            lambda e: seen.append(str(e))
        )

        assert seen == ["ok", "bad"]


class TestErrors:
    """Tests for error construction helpers."""

    def test_file_not_found_keeps_path(self) -> None:
        error = MetricsFileNotFoundError.for_path("/sys/fs/cgroup/memory.max")

        assert error.path == "/sys/fs/cgroup/memory.max"
        assert isinstance(error, SystemMetricsError)
        assert "File not found" in str(error)

    def test_parse_error_for_command(self) -> None:
        error = ParseError.for_command("df -kPT", "No filesystem rows")

        assert str(error) == "Failed to parse output of 'df -kPT': No filesystem rows"
