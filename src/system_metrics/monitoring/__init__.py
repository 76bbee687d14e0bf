"""Monitoring module - metric sources for Linux hosts and containers.

Sources:
- LinuxCgroupMetricsSource: container limits from cgroup v1/v2
- LinuxProcCpuMetricsSource: CPU counters from /proc/stat
- LinuxProcMeminfoMemoryMetricsSource / LinuxProcLoadAverageSource
- LinuxProcProcessMetricsSource: /proc/<pid>/stat and process groups
- LinuxStatvfsStorageMetricsSource / DfStorageMetricsSource
- LinuxProcNetworkMetricsSource: /proc/net/dev and socket tables
- LinuxProcUptimeSource: /proc/uptime
- CompositeSystemLimitsSource: container limits merged with host totals

Shared utilities:
- base: FileReader, CommandRunner and the source interfaces
- io_utils: parsing helpers for kernel pseudo-files
"""

from __future__ import annotations

from system_metrics.monitoring.base import (
    CommandRunner,
    ContainerMetricsSource,
    CpuMetricsSource,
    FileReader,
    LoadAverageSource,
    MemoryMetricsSource,
    NetworkMetricsSource,
    ProcessMetricsSource,
    StorageMetricsSource,
    SystemLimitsSource,
    UptimeSource,
)
from system_metrics.monitoring.cgroups import (
    CgroupV1PathResolver,
    CgroupV2PathResolver,
    CgroupVersionDetector,
    CompositeContainerMetricsSource,
    LinuxCgroupMetricsSource,
)
from system_metrics.monitoring.cpu import LinuxProcCpuMetricsSource, LinuxProcStatParser
from system_metrics.monitoring.limits import CompositeSystemLimitsSource
from system_metrics.monitoring.memory import (
    LinuxProcLoadAverageSource,
    LinuxProcMeminfoMemoryMetricsSource,
)
from system_metrics.monitoring.network import (
    LinuxProcNetDevParser,
    LinuxProcNetTcpParser,
    LinuxProcNetworkMetricsSource,
)
from system_metrics.monitoring.process import (
    LinuxProcPidStatParser,
    LinuxProcProcessMetricsSource,
)
from system_metrics.monitoring.storage import (
    CompositeStorageMetricsSource,
    DfStorageMetricsSource,
    LinuxDfParser,
    LinuxDiskstatsParser,
    LinuxMountsParser,
    LinuxStatvfsStorageMetricsSource,
)
from system_metrics.monitoring.uptime import LinuxProcUptimeSource

__all__ = [
    "CgroupV1PathResolver",
    "CgroupV2PathResolver",
    "CgroupVersionDetector",
    "CommandRunner",
    "CompositeContainerMetricsSource",
    "CompositeStorageMetricsSource",
    "CompositeSystemLimitsSource",
    "ContainerMetricsSource",
    "CpuMetricsSource",
    "DfStorageMetricsSource",
    "FileReader",
    "LinuxCgroupMetricsSource",
    "LinuxDfParser",
    "LinuxDiskstatsParser",
    "LinuxMountsParser",
    "LinuxProcCpuMetricsSource",
    "LinuxProcLoadAverageSource",
    "LinuxProcMeminfoMemoryMetricsSource",
    "LinuxProcNetDevParser",
    "LinuxProcNetTcpParser",
    "LinuxProcNetworkMetricsSource",
    "LinuxProcPidStatParser",
    "LinuxProcProcessMetricsSource",
    "LinuxProcStatParser",
    "LinuxProcUptimeSource",
    "LinuxStatvfsStorageMetricsSource",
    "LoadAverageSource",
    "MemoryMetricsSource",
    "NetworkMetricsSource",
    "ProcessMetricsSource",
    "StorageMetricsSource",
    "SystemLimitsSource",
    "UptimeSource",
]
