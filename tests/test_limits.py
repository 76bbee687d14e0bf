"""Tests for SystemLimits and the composite limits source."""

from unittest.mock import MagicMock

import pytest

from system_metrics.core.errors import MetricsFileNotFoundError, SystemMetricsError
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    CpuCoreTimes,
    CpuSnapshot,
    CpuTimes,
    LimitSource,
    MemorySnapshot,
    SystemLimits,
)
from system_metrics.monitoring.limits import CompositeSystemLimitsSource

GIB = 1024**3


def _cpu(cores: int) -> CpuSnapshot:
    return CpuSnapshot(
        total=CpuTimes(user=100, idle=100),
        per_core=tuple(CpuCoreTimes(core_index=i, times=CpuTimes()) for i in range(cores)),
    )


def _memory() -> MemorySnapshot:
    return MemorySnapshot(
        total_bytes=16 * GIB,
        available_bytes=12 * GIB,
        swap_total_bytes=2 * GIB,
        swap_free_bytes=GIB,
    )


def _source(
    container: Result, cpu: Result | None = None, memory: Result | None = None
) -> CompositeSystemLimitsSource:
    container_source = MagicMock()
    container_source.read.return_value = container
    cpu_source = MagicMock()
    cpu_source.read.return_value = cpu if cpu is not None else Result.success(_cpu(8))
    memory_source = MagicMock()
    memory_source.read.return_value = memory if memory is not None else Result.success(_memory())
    return CompositeSystemLimitsSource(container_source, cpu_source, memory_source)


class TestCompositeSystemLimitsSource:
    """Tests for CompositeSystemLimitsSource."""

    def test_container_limits_apply(self) -> None:
        container = ContainerLimits(
            cgroup_version=CgroupVersion.V1,
            cpu_quota=2.0,
            cpu_usage_cores=0.5,
            memory_limit_bytes=4 * GIB,
            memory_usage_bytes=GIB,
        )

        limits = _source(Result.success(container)).read().value

        assert limits.source is LimitSource.CGROUP_V1
        assert limits.cpu_cores == pytest.approx(2.0)
        assert limits.current_cpu_cores == pytest.approx(0.5)
        assert limits.memory_bytes == 4 * GIB
        assert limits.current_memory_bytes == GIB
        assert limits.swap_bytes == 2 * GIB
        assert limits.current_swap_bytes == GIB

    def test_unlimited_cgroup_uses_host_totals(self) -> None:
        """A cgroup without quota or memory limit is bounded by the host."""
        container = ContainerLimits(cgroup_version=CgroupVersion.V2, memory_usage_bytes=GIB)

        limits = _source(Result.success(container)).read().value

        assert limits.source is LimitSource.CGROUP_V2
        assert limits.cpu_cores == pytest.approx(8.0)
        assert limits.memory_bytes == 16 * GIB
        assert limits.current_memory_bytes == GIB

    def test_no_cgroups_uses_host(self) -> None:
        limits = _source(Result.success(ContainerLimits.unavailable())).read().value

        assert limits.source is LimitSource.HOST
        assert not limits.is_containerized()
        assert limits.cpu_cores == pytest.approx(8.0)
        assert limits.memory_bytes == 16 * GIB
        assert limits.current_memory_bytes == 4 * GIB
        assert limits.current_cpu_cores is None

    def test_container_failure_falls_back_to_host(self) -> None:
        failed = Result.failure(SystemMetricsError("cgroup read failed"))

        assert _source(failed).read().value.source is LimitSource.HOST

    def test_host_cpu_failure_propagates(self) -> None:
        missing = Result.failure(MetricsFileNotFoundError.for_path("/proc/stat"))

        result = _source(Result.success(ContainerLimits.unavailable()), cpu=missing).read()

        assert isinstance(result.error, MetricsFileNotFoundError)

    def test_memory_failure_propagates(self) -> None:
        missing = Result.failure(MetricsFileNotFoundError.for_path("/proc/meminfo"))

        result = _source(Result.success(ContainerLimits.unavailable()), memory=missing).read()

        assert isinstance(result.error, MetricsFileNotFoundError)


class TestSystemLimits:
    """Tests for SystemLimits derived values."""

    @pytest.fixture
    def limits(self) -> SystemLimits:
        return SystemLimits(
            source=LimitSource.HOST,
            cpu_cores=8.0,
            memory_bytes=16_000,
            current_cpu_cores=3.0,
            current_memory_bytes=12_000,
            swap_bytes=4_000,
            current_swap_bytes=1_000,
        )

    def test_availability(self, limits: SystemLimits) -> None:
        assert limits.available_cpu_cores() == pytest.approx(5.0)
        assert limits.available_memory_bytes() == 4_000

    def test_utilization_and_headroom(self, limits: SystemLimits) -> None:
        assert limits.cpu_utilization() == pytest.approx(37.5)
        assert limits.memory_utilization() == pytest.approx(75.0)
        assert limits.swap_utilization() == pytest.approx(25.0)
        assert limits.cpu_headroom() == pytest.approx(62.5)
        assert limits.memory_headroom() == pytest.approx(25.0)

    def test_scaling_checks(self, limits: SystemLimits) -> None:
        assert limits.can_scale_cpu(5.0)
        assert not limits.can_scale_cpu(5.5)
        assert limits.can_scale_memory(4_000)
        assert not limits.can_scale_memory(4_001)

    def test_pressure(self, limits: SystemLimits) -> None:
        assert not limits.is_memory_pressure()
        assert limits.is_memory_pressure(threshold_percentage=75.0)
        assert not limits.is_cpu_pressure()

    def test_unknown_cpu_usage(self) -> None:
        limits = SystemLimits(source=LimitSource.CGROUP_V2, cpu_cores=2.0, memory_bytes=100)

        assert limits.available_cpu_cores() is None
        assert limits.cpu_utilization() is None
        assert limits.cpu_headroom() is None
        assert not limits.is_cpu_pressure()
        assert limits.swap_utilization() is None

    def test_over_committed_memory_clamped(self) -> None:
        limits = SystemLimits(
            source=LimitSource.CGROUP_V1,
            cpu_cores=1.0,
            memory_bytes=1000,
            current_memory_bytes=1500,
        )

        assert limits.available_memory_bytes() == 0
        assert limits.memory_headroom() == 0.0
