"""Tests for /proc/meminfo and /proc/loadavg sources."""

from pathlib import Path

import pytest

from system_metrics.core.errors import MetricsFileNotFoundError, ParseError
from system_metrics.core.schemas import LoadAverage
from system_metrics.monitoring.memory import (
    LinuxProcLoadAverageSource,
    LinuxProcMeminfoMemoryMetricsSource,
    parse_meminfo,
)

MEMINFO = (
    "MemTotal:       16384000 kB\n"
    "MemFree:         2048000 kB\n"
    "MemAvailable:    8192000 kB\n"
    "Buffers:          512000 kB\n"
    "Cached:          4096000 kB\n"
    "SwapTotal:       2048000 kB\n"
    "SwapFree:        1024000 kB\n"
    "Active(anon):    1000000 kB\n"
    "HugePages_Total:       0\n"
)


class TestParseMeminfo:
    """Tests for parse_meminfo."""

    def test_converts_kb_to_bytes(self) -> None:
        values = parse_meminfo(MEMINFO)

        assert values["MemTotal"] == 16384000 * 1024
        assert values["Active(anon)"] == 1000000 * 1024
        assert values["HugePages_Total"] == 0


class TestLinuxProcMeminfoMemoryMetricsSource:
    """Tests for LinuxProcMeminfoMemoryMetricsSource."""

    def test_read(self, tmp_path: Path) -> None:
        (tmp_path / "meminfo").write_text(MEMINFO)

        memory = LinuxProcMeminfoMemoryMetricsSource(tmp_path).read().value

        assert memory.total_bytes == 16384000 * 1024
        assert memory.available_bytes == 8192000 * 1024
        assert memory.used_bytes() == 8192000 * 1024
        assert memory.used_percentage() == pytest.approx(50.0)
        assert memory.swap_used_bytes() == 1024000 * 1024

    def test_mem_available_falls_back_to_free(self, tmp_path: Path) -> None:
        (tmp_path / "meminfo").write_text("MemTotal: 1000 kB\nMemFree: 400 kB\n")

        memory = LinuxProcMeminfoMemoryMetricsSource(tmp_path).read().value

        assert memory.available_bytes == 400 * 1024

    def test_missing_mem_total(self, tmp_path: Path) -> None:
        (tmp_path / "meminfo").write_text("MemFree: 400 kB\n")

        result = LinuxProcMeminfoMemoryMetricsSource(tmp_path).read()

        assert isinstance(result.error, ParseError)

    def test_missing_file(self, tmp_path: Path) -> None:
        result = LinuxProcMeminfoMemoryMetricsSource(tmp_path).read()

        assert isinstance(result.error, MetricsFileNotFoundError)


class TestLinuxProcLoadAverageSource:
    """Tests for LinuxProcLoadAverageSource."""

    def test_read(self, tmp_path: Path) -> None:
        (tmp_path / "loadavg").write_text("0.52 0.58 0.59 2/1234 5678\n")

        load = LinuxProcLoadAverageSource(tmp_path).read().value

        assert load.one_minute == pytest.approx(0.52)
        assert load.fifteen_minutes == pytest.approx(0.59)
        assert load.running_tasks == 2
        assert load.total_tasks == 1234

    def test_too_few_fields(self, tmp_path: Path) -> None:
        (tmp_path / "loadavg").write_text("0.52 0.58 0.59\n")

        assert isinstance(LinuxProcLoadAverageSource(tmp_path).read().error, ParseError)

    def test_non_numeric_average(self, tmp_path: Path) -> None:
        (tmp_path / "loadavg").write_text("a b c 1/2 3\n")

        assert isinstance(LinuxProcLoadAverageSource(tmp_path).read().error, ParseError)

    def test_per_core(self) -> None:
        load = LoadAverage(one_minute=4.0, five_minutes=2.0, fifteen_minutes=1.0)

        normalized = load.per_core(4)

        assert normalized.one_minute == pytest.approx(1.0)
        assert normalized.fifteen_minutes == pytest.approx(0.25)
        assert load.per_core(0) == load
