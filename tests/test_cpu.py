"""Tests for /proc/stat parsing and CPU snapshot helpers."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from system_metrics.core.errors import MetricsFileNotFoundError, ParseError
from system_metrics.core.schemas import CpuCoreTimes, CpuSnapshot, CpuTimes
from system_metrics.monitoring.cpu import LinuxProcCpuMetricsSource, LinuxProcStatParser

PROC_STAT = (
    "cpu  1000 50 300 8000 100 20 30 0 0 0\n"
    "cpu0 600 25 200 3000 50 10 15 0 0 0\n"
    "cpu1 400 25 100 5000 50 10 15 0 0 0\n"
    "intr 123456 0 0\n"
    "ctxt 987654\n"
    "btime 1700000000\n"
    "processes 4242\n"
)


class TestLinuxProcStatParser:
    """Tests for LinuxProcStatParser."""

    def test_parses_aggregate_and_single_core(self) -> None:
        content = "cpu 100 50 75 200 25 10 15 5 0 0\ncpu0 100 50 75 200 25 10 15 5 0 0\n"
        snapshot = LinuxProcStatParser().parse(content).value

        assert snapshot.total.user == 100
        assert snapshot.total.steal == 5
        assert snapshot.core_count() == 1
        assert snapshot.per_core[0].core_index == 0
        assert snapshot.per_core[0].times == snapshot.total

    def test_ignores_non_cpu_lines(self) -> None:
        snapshot = LinuxProcStatParser().parse(PROC_STAT).value

        assert snapshot.core_count() == 2
        assert [c.core_index for c in snapshot.per_core] == [0, 1]
        assert snapshot.total.idle == 8000

    def test_empty_input_is_parse_error(self) -> None:
        result = LinuxProcStatParser().parse("")

        assert result.is_failure()
        assert isinstance(result.error, ParseError)

    def test_missing_aggregate_line_is_parse_error(self) -> None:
        result = LinuxProcStatParser().parse("cpu0 1 2 3 4\nintr 1\n")

        assert isinstance(result.error, ParseError)
        assert "No aggregate CPU line" in str(result.error)

    def test_too_few_fields_is_parse_error(self) -> None:
        assert isinstance(LinuxProcStatParser().parse("cpu 1 2 3\n").error, ParseError)

    def test_non_numeric_field_is_parse_error(self) -> None:
        assert isinstance(LinuxProcStatParser().parse("cpu 1 2 x 4\n").error, ParseError)

    def test_old_kernel_trailing_fields_default_to_zero(self) -> None:
        """Kernels before 2.6.11 print only four counters."""
        snapshot = LinuxProcStatParser().parse("cpu 10 20 30 40\n").value

        assert snapshot.total.idle == 40
        assert snapshot.total.iowait == 0
        assert snapshot.total.guest_nice == 0
        assert snapshot.core_count() == 0

    def test_extra_fields_ignored(self) -> None:
        snapshot = LinuxProcStatParser().parse("cpu 1 2 3 4 5 6 7 8 9 10 11 12\n").value
        assert snapshot.total.guest_nice == 10

    def test_sparse_core_indices_keep_file_order(self) -> None:
        """Offline CPUs leave gaps; the index comes from the label, not the position."""
        content = "cpu 1 1 1 1\ncpu0 1 1 1 1\ncpu3 1 1 1 1\ncpu2 1 1 1 1\n"
        snapshot = LinuxProcStatParser().parse(content).value

        assert [c.core_index for c in snapshot.per_core] == [0, 3, 2]
        assert snapshot.find_core(3) is not None
        assert snapshot.find_core(1) is None


def _core(index: int, busy: int, idle: int) -> CpuCoreTimes:
    return CpuCoreTimes(core_index=index, times=CpuTimes(user=busy, idle=idle))


class TestCpuSnapshot:
    """Tests for CpuSnapshot and CpuTimes helpers."""

    def test_total_excludes_guest_time(self) -> None:
        times = CpuTimes(user=10, nice=1, system=5, idle=80, iowait=4, guest=7, guest_nice=3)

        assert times.total() == 100
        assert times.busy() == 16

    def test_busy_and_idle_cores(self) -> None:
        snapshot = CpuSnapshot(
            total=CpuTimes(user=120, idle=180),
            per_core=(_core(0, 90, 10), _core(1, 10, 90), _core(2, 20, 80)),
        )

        assert [c.core_index for c in snapshot.find_busy_cores(50.0)] == [0]
        assert [c.core_index for c in snapshot.find_idle_cores(80.0)] == [1, 2]
        assert snapshot.busiest_core().core_index == 0
        assert snapshot.idlest_core().core_index == 1

    def test_empty_core_list(self) -> None:
        snapshot = CpuSnapshot(total=CpuTimes())

        assert snapshot.busiest_core() is None
        assert snapshot.idlest_core() is None
        assert snapshot.find_busy_cores(0.0) == []

    def test_calculate_delta(self) -> None:
        start = datetime(2024, 1, 1, 12, 0, 0)
        before = CpuSnapshot(
            total=CpuTimes(user=100, system=50, idle=850),
            per_core=(_core(0, 100, 400), _core(1, 50, 450)),
            timestamp=start,
        )
        after = CpuSnapshot(
            total=CpuTimes(user=150, system=100, idle=950),
            per_core=(_core(0, 175, 425),),
            timestamp=start + timedelta(seconds=2),
        )

        delta = CpuSnapshot.calculate_delta(before, after)

        assert delta.duration_seconds == pytest.approx(2.0)
        assert delta.usage_percentage() == pytest.approx(50.0)
        assert delta.user_percentage() == pytest.approx(25.0)
        assert delta.system_percentage() == pytest.approx(25.0)
        assert delta.idle_percentage() == pytest.approx(50.0)
        # Core 1 went offline between the two snapshots.
        assert [c.core_index for c in delta.per_core_delta] == [0]
        assert delta.core_usage_percentage(0) == pytest.approx(75.0)
        assert delta.core_usage_percentage(1) is None

    def test_counter_reset_clamps_to_zero(self) -> None:
        before = CpuSnapshot(total=CpuTimes(user=500, idle=500))
        after = CpuSnapshot(total=CpuTimes(user=10, idle=10))

        assert after.total.minus(before.total) == CpuTimes()


class TestLinuxProcCpuMetricsSource:
    """Tests for LinuxProcCpuMetricsSource."""

    def test_reads_stat_under_proc_root(self, tmp_path: Path) -> None:
        (tmp_path / "stat").write_text(PROC_STAT)

        snapshot = LinuxProcCpuMetricsSource(tmp_path).read().value

        assert snapshot.total.user == 1000
        assert snapshot.core_count() == 2

    def test_missing_stat_file(self, tmp_path: Path) -> None:
        result = LinuxProcCpuMetricsSource(tmp_path).read()

        assert result.is_failure()
        assert isinstance(result.error, MetricsFileNotFoundError)
