"""Core module - results, errors, configuration and schemas."""

from __future__ import annotations

from system_metrics.core.config import load_config
from system_metrics.core.errors import (
    CommandError,
    InsufficientPermissionsError,
    MetricsFileNotFoundError,
    ParseError,
    ProcessNotFoundError,
    SystemMetricsError,
    UnsupportedOperatingSystemError,
)
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    CpuCoreDelta,
    CpuCoreTimes,
    CpuDelta,
    CpuSnapshot,
    CpuTimes,
    DiskIOStats,
    FileSystemType,
    LimitSource,
    LoadAverage,
    MemorySnapshot,
    MetricsConfig,
    MountPoint,
    NetworkConnectionStats,
    NetworkInterface,
    NetworkInterfaceType,
    NetworkSnapshot,
    ProcessGroupSnapshot,
    ProcessResourceUsage,
    ProcessSnapshot,
    StorageSnapshot,
    SystemLimits,
    SystemOverview,
    UptimeSnapshot,
)

__all__ = [
    "CgroupVersion",
    "CommandError",
    "ContainerLimits",
    "CpuCoreDelta",
    "CpuCoreTimes",
    "CpuDelta",
    "CpuSnapshot",
    "CpuTimes",
    "DiskIOStats",
    "FileSystemType",
    "InsufficientPermissionsError",
    "LimitSource",
    "LoadAverage",
    "load_config",
    "MemorySnapshot",
    "MetricsConfig",
    "MetricsFileNotFoundError",
    "MountPoint",
    "NetworkConnectionStats",
    "NetworkInterface",
    "NetworkInterfaceType",
    "NetworkSnapshot",
    "ParseError",
    "ProcessGroupSnapshot",
    "ProcessNotFoundError",
    "ProcessResourceUsage",
    "ProcessSnapshot",
    "Result",
    "StorageSnapshot",
    "SystemLimits",
    "SystemMetricsError",
    "SystemOverview",
    "UnsupportedOperatingSystemError",
    "UptimeSnapshot",
]
