"""system-metrics - typed snapshots of Linux host and container resources."""

from __future__ import annotations

from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    CgroupVersion,
    ContainerLimits,
    CpuSnapshot,
    MetricsConfig,
    ProcessGroupSnapshot,
    ProcessSnapshot,
    StorageSnapshot,
    SystemLimits,
    SystemOverview,
)
from system_metrics.metrics import SystemMetrics

__version__ = "0.1.0"

__all__ = [
    "CgroupVersion",
    "ContainerLimits",
    "CpuSnapshot",
    "MetricsConfig",
    "ProcessGroupSnapshot",
    "ProcessSnapshot",
    "Result",
    "StorageSnapshot",
    "SystemLimits",
    "SystemMetrics",
    "SystemOverview",
    "__version__",
]
