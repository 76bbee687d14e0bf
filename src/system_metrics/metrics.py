"""SystemMetrics facade: one configured instance of every metric source."""

from __future__ import annotations

import logging
import sys

from system_metrics.core.errors import UnsupportedOperatingSystemError
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    ContainerLimits,
    CpuSnapshot,
    LoadAverage,
    MemorySnapshot,
    MetricsConfig,
    NetworkSnapshot,
    ProcessGroupSnapshot,
    ProcessSnapshot,
    StorageSnapshot,
    SystemLimits,
    SystemOverview,
    UptimeSnapshot,
)
from system_metrics.monitoring.base import CommandRunner, FileReader
from system_metrics.monitoring.cgroups import (
    CompositeContainerMetricsSource,
    LinuxCgroupMetricsSource,
)
from system_metrics.monitoring.cpu import LinuxProcCpuMetricsSource
from system_metrics.monitoring.limits import CompositeSystemLimitsSource
from system_metrics.monitoring.memory import (
    LinuxProcLoadAverageSource,
    LinuxProcMeminfoMemoryMetricsSource,
)
from system_metrics.monitoring.network import LinuxProcNetworkMetricsSource
from system_metrics.monitoring.process import LinuxProcProcessMetricsSource
from system_metrics.monitoring.storage import (
    CompositeStorageMetricsSource,
    DfStorageMetricsSource,
    LinuxStatvfsStorageMetricsSource,
)
from system_metrics.monitoring.uptime import LinuxProcUptimeSource

logger = logging.getLogger(__name__)


class SystemMetrics:
    """Entry point for reading host and container metrics.

    Sources keep per-instance caches (cgroup version, controller paths, CPU
    usage samples), so keep one SystemMetrics per monitoring session and call
    ``reset()`` when the environment may have changed.

    Example:
        >>> metrics = SystemMetrics()
        >>> limits = metrics.container().value
        >>> limits.has_memory_limit()
    """

    def __init__(self, config: MetricsConfig | None = None) -> None:
        self.config = config or MetricsConfig()
        # procfs sources only exist on Linux; container limits degrade on their own.
        self._platform_error: UnsupportedOperatingSystemError | None = None
        if not sys.platform.startswith("linux"):
            self._platform_error = UnsupportedOperatingSystemError.for_os(sys.platform)

        file_reader = FileReader()
        runner = CommandRunner(
            allowed_commands=self.config.allowed_commands,
            timeout_seconds=self.config.command_timeout_seconds,
        )

        self._cgroups = LinuxCgroupMetricsSource(
            cgroup_root=self.config.cgroup_root,
            proc_root=self.config.proc_root,
            file_reader=file_reader,
        )
        self._container = CompositeContainerMetricsSource(self._cgroups)
        self._cpu = LinuxProcCpuMetricsSource(self.config.proc_root, file_reader)
        self._memory = LinuxProcMeminfoMemoryMetricsSource(self.config.proc_root, file_reader)
        self._load = LinuxProcLoadAverageSource(self.config.proc_root, file_reader)
        self._process = LinuxProcProcessMetricsSource(self.config.proc_root, file_reader)
        self._network = LinuxProcNetworkMetricsSource(self.config.proc_root, file_reader)
        self._uptime = LinuxProcUptimeSource(self.config.proc_root, file_reader)
        self._storage = CompositeStorageMetricsSource(
            primary=LinuxStatvfsStorageMetricsSource(
                proc_root=self.config.proc_root,
                file_reader=file_reader,
                skip_pseudo_filesystems=self.config.skip_pseudo_filesystems,
            ),
            fallback=DfStorageMetricsSource(
                proc_root=self.config.proc_root,
                file_reader=file_reader,
                command_runner=runner,
                skip_pseudo_filesystems=self.config.skip_pseudo_filesystems,
            ),
        )
        self._limits = CompositeSystemLimitsSource(self._container, self._cpu, self._memory)

    def container(self) -> Result[ContainerLimits]:
        return self._container.read()

    def cpu(self) -> Result[CpuSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._cpu.read()

    def memory(self) -> Result[MemorySnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._memory.read()

    def load_average(self) -> Result[LoadAverage]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._load.read()

    def storage(self) -> Result[StorageSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._storage.read()

    def process(self, pid: int) -> Result[ProcessSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._process.read(pid)

    def process_group(self, root_pid: int) -> Result[ProcessGroupSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._process.read_process_group(root_pid)

    def network(self) -> Result[NetworkSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._network.read()

    def uptime(self) -> Result[UptimeSnapshot]:
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._uptime.read()

    def limits(self) -> Result[SystemLimits]:
        """Effective CPU and memory ceiling: cgroup limits where set, host totals otherwise.

        Reading limits takes a container sample, so the CPU usage rate it
        reports covers the time since the previous container or limits read.
        """
        if self._platform_error is not None:
            return Result.failure(self._platform_error)
        return self._limits.read()

    def overview(self) -> SystemOverview:
        """Read every host-level section; a failed section is recorded in ``errors``."""
        sections = {
            "container": self.container,
            "cpu": self.cpu,
            "memory": self.memory,
            "load_average": self.load_average,
            "storage": self.storage,
            "network": self.network,
            "uptime": self.uptime,
        }
        values: dict[str, object] = {}
        errors: dict[str, str] = {}
        for name, read in sections.items():
            result = read()
            if result.is_success():
                values[name] = result.value
            else:
                logger.warning(f"Could not read {name} metrics: {result.error}")
                errors[name] = str(result.error)
        return SystemOverview(**values, errors=errors)

    def reset(self) -> None:
        """Clear every cache so the next read re-detects the environment."""
        self._cgroups.reset()
