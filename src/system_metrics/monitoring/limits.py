"""Effective resource ceiling: container limits where set, host totals otherwise."""

from __future__ import annotations

import logging

from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    LimitSource,
    MemorySnapshot,
    SystemLimits,
)
from system_metrics.monitoring.base import (
    ContainerMetricsSource,
    CpuMetricsSource,
    MemoryMetricsSource,
    SystemLimitsSource,
)

logger = logging.getLogger(__name__)


class CompositeSystemLimitsSource(SystemLimitsSource):
    """Combines container, CPU and memory sources into one SystemLimits view.

    Decision order:
    1. A readable cgroup hierarchy (v1 or v2) makes the view container-aware:
       the quota and memory limit apply, usage comes from the cgroup.
    2. A cgroup without a CPU quota or memory limit uses the host total for
       that resource.
    3. Without cgroups (or when the container read fails) host totals apply
       and CPU usage is None, since it needs two samples.
    """

    def __init__(
        self,
        container_source: ContainerMetricsSource,
        cpu_source: CpuMetricsSource,
        memory_source: MemoryMetricsSource,
    ) -> None:
        self._container_source = container_source
        self._cpu_source = cpu_source
        self._memory_source = memory_source

    def read(self) -> Result[SystemLimits]:
        memory = self._memory_source.read()
        if memory.is_failure():
            return Result.failure(memory.error)  # type: ignore[arg-type]

        container = self._container_source.read()
        if container.is_failure():
            logger.debug(f"Container limits unavailable, using host limits: {container.error}")
        elif container.value.cgroup_version is not CgroupVersion.NONE:
            return self._from_cgroup(container.value, memory.value)
        return self._from_host(memory.value)

    def _host_cores(self) -> Result[float]:
        return self._cpu_source.read().map(lambda snapshot: float(snapshot.core_count()))

    def _from_cgroup(
        self, limits: ContainerLimits, memory: MemorySnapshot
    ) -> Result[SystemLimits]:
        if limits.has_cpu_limit():
            cpu_cores = limits.cpu_quota
        else:
            host_cores = self._host_cores()
            if host_cores.is_failure():
                return Result.failure(host_cores.error)  # type: ignore[arg-type]
            cpu_cores = host_cores.value

        memory_bytes = (
            limits.memory_limit_bytes if limits.has_memory_limit() else memory.total_bytes
        )
        current_memory = (
            limits.memory_usage_bytes
            if limits.memory_usage_bytes is not None
            else memory.used_bytes()
        )
        source = (
            LimitSource.CGROUP_V2
            if limits.cgroup_version is CgroupVersion.V2
            else LimitSource.CGROUP_V1
        )
        return Result.success(
            SystemLimits(
                source=source,
                cpu_cores=cpu_cores,
                memory_bytes=memory_bytes,
                current_cpu_cores=limits.cpu_usage_cores,
                current_memory_bytes=current_memory,
                swap_bytes=memory.swap_total_bytes,
                current_swap_bytes=memory.swap_used_bytes(),
            )
        )

    def _from_host(self, memory: MemorySnapshot) -> Result[SystemLimits]:
        host_cores = self._host_cores()
        if host_cores.is_failure():
            return Result.failure(host_cores.error)  # type: ignore[arg-type]

        return Result.success(
            SystemLimits(
                source=LimitSource.HOST,
                cpu_cores=host_cores.value,
                memory_bytes=memory.total_bytes,
                current_memory_bytes=memory.used_bytes(),
                swap_bytes=memory.swap_total_bytes,
                current_swap_bytes=memory.swap_used_bytes(),
            )
        )
