"""cgroup detection, path resolution and container limit collection.

This module reads container limits directly from the cgroup filesystem, for
both hierarchies the kernel can expose:

- v2 (unified): one tree under /sys/fs/cgroup, marked by cgroup.controllers
- v1 (per controller): /sys/fs/cgroup/<controller>/<path>, where <path> comes
  from the process's membership file /proc/self/cgroup

Metrics sourced:
- cpu.max / cpu.cfs_quota_us + cpu.cfs_period_us: CPU quota (cores)
- cpu.stat usage_usec / cpuacct.usage: CPU usage (cores, as a rate)
- cpu.stat nr_throttled: throttled periods
- memory.max / memory.limit_in_bytes: memory limit
- memory.current / memory.usage_in_bytes: memory usage
- memory.events oom_kill / memory.oom_control: OOM kills

Controllers are optional (compiled out, not mounted, not delegated), so a
missing file only blanks the matching field of ContainerLimits.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Callable
from pathlib import Path

from system_metrics.core.constants import (
    CGROUP_V1_UNLIMITED_THRESHOLD,
    CGROUP_V2_MARKER,
    DEFAULT_CGROUP_ROOT,
    DEFAULT_PROC_ROOT,
)
from system_metrics.core.errors import SystemMetricsError
from system_metrics.core.result import Result
from system_metrics.core.schemas import CgroupVersion, ContainerLimits
from system_metrics.monitoring.base import ContainerMetricsSource, FileReader
from system_metrics.monitoring.io_utils import parse_int, parse_limit, read_counter

logger = logging.getLogger(__name__)


def _split_membership_line(line: str) -> tuple[str, str, str] | None:
    """Split a ``hierarchyId:controllerList:path`` line, None if malformed."""
    parts = line.split(":", 2)
    if len(parts) != 3:
        return None
    return parts[0], parts[1], parts[2]


class CgroupVersionDetector:
    """Detects which cgroup hierarchy the host exposes.

    The answer is memoized on the instance. ``reset()`` forces a fresh check,
    for tests and for long-running processes after a container migration.
    """

    def __init__(
        self,
        cgroup_root: Path = DEFAULT_CGROUP_ROOT,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
    ) -> None:
        self._cgroup_root = Path(cgroup_root)
        self._proc_root = Path(proc_root)
        self._file_reader = file_reader or FileReader()
        self._detected: CgroupVersion | None = None

    def detect(self) -> CgroupVersion:
        """Return V2, V1 or NONE. Absence of every marker is NONE, not an error."""
        if self._detected is not None:
            return self._detected

        if self._file_reader.exists(self._cgroup_root / CGROUP_V2_MARKER):
            self._detected = CgroupVersion.V2
        elif self._file_reader.exists(self._proc_root / "self" / "cgroup"):
            self._detected = CgroupVersion.V1
        else:
            self._detected = CgroupVersion.NONE

        logger.debug(f"Detected cgroup version: {self._detected.value}")
        return self._detected

    def reset(self) -> None:
        self._detected = None


class CgroupV1PathResolver:
    """Resolves (controller, file) pairs to readable paths on a v1 hierarchy."""

    def __init__(
        self,
        cgroup_root: Path = DEFAULT_CGROUP_ROOT,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
    ) -> None:
        self._cgroup_root = Path(cgroup_root)
        self._membership_file = Path(proc_root) / "self" / "cgroup"
        self._file_reader = file_reader or FileReader()
        self._mappings: dict[str, str] | None = None

    def get_mappings(self) -> dict[str, str]:
        """Map each controller to this process's path inside its hierarchy.

        Format of /proc/self/cgroup:
            4:cpu,cpuacct:/docker/abc123
            0::/docker/abc123

        The ``0::`` record belongs to the unified hierarchy and is skipped. An
        unreadable membership file yields an empty mapping.
        """
        if self._mappings is not None:
            return self._mappings

        mappings: dict[str, str] = {}
        result = self._file_reader.read(self._membership_file)
        if result.is_failure():
            logger.debug(f"Cannot read {self._membership_file}: {result.error}")
        else:
            for line in result.value.splitlines():
                if not line.strip():
                    continue
                fields = _split_membership_line(line)
                if fields is None:
                    continue
                _, controllers, path = fields
                if controllers == "":
                    continue
                for controller in controllers.split(","):
                    mappings[controller] = path

        self._mappings = mappings
        return self._mappings

    def resolve_path(self, controller: str, file: str) -> Path | None:
        """Find a readable ``file`` for ``controller``.

        Tries ``<root>/<controller>/<relative-path>/<file>`` first, then the
        controller's mount root ``<root>/<controller>/<file>``.

        Returns:
            The first readable candidate, None if neither is readable
        """
        relative = self.get_mappings().get(controller)
        if relative is not None:
            nested = self._cgroup_root / controller
            relative = relative.rstrip("/").lstrip("/")
            if relative:
                nested = nested / relative
            candidate = nested / file
            if self._file_reader.is_readable(candidate):
                return candidate
            logger.debug(f"{candidate} not readable, falling back to controller root")

        fallback = self._cgroup_root / controller / file
        if self._file_reader.is_readable(fallback):
            return fallback
        return None

    def reset(self) -> None:
        self._mappings = None


class CgroupV2PathResolver:
    """Resolves files on the unified hierarchy.

    Inside a container with its own cgroup namespace the process sits at the
    unified root. On hosts (and namespace-less containers) /proc/self/cgroup
    names a nested path such as ``0::/system.slice/app.service``; that nested
    directory is tried first, the unified root stays the fallback.
    """

    def __init__(
        self,
        cgroup_root: Path = DEFAULT_CGROUP_ROOT,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
    ) -> None:
        self._cgroup_root = Path(cgroup_root)
        self._membership_file = Path(proc_root) / "self" / "cgroup"
        self._file_reader = file_reader or FileReader()
        self._unified_path: str | None = None
        self._unified_path_resolved = False

    def get_unified_path(self) -> str | None:
        """Relative path of the ``0::<path>`` record, None if there is none."""
        if self._unified_path_resolved:
            return self._unified_path

        result = self._file_reader.read(self._membership_file)
        if result.is_success():
            for line in result.value.splitlines():
                fields = _split_membership_line(line.strip())
                if fields is not None and fields[0] == "0" and fields[1] == "":
                    self._unified_path = fields[2]
                    break

        self._unified_path_resolved = True
        return self._unified_path

    def resolve_path(self, file: str) -> Path | None:
        relative = (self.get_unified_path() or "").strip("/")
        candidates = [self._cgroup_root / file]
        if relative:
            candidates.insert(0, self._cgroup_root / relative / file)

        for candidate in candidates:
            if self._file_reader.is_readable(candidate):
                return candidate
        return None

    def reset(self) -> None:
        self._unified_path = None
        self._unified_path_resolved = False


class CpuUsageTracker:
    """Turns cumulative CPU-time counters into a usage rate in cores.

    cgroup counters only grow, so usage needs two samples. The first call for
    a given file returns None; later calls return the cores consumed since
    the previous call.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._previous: dict[str, tuple[float, float]] = {}

    def rate(self, key: str, cumulative: float, units_per_second: float) -> float | None:
        """Record ``cumulative`` and return the rate since the previous sample.

        Args:
            key: Identity of the counter (usually the file path)
            cumulative: Current counter value
            units_per_second: Counter units per CPU-second (1e6 for usec, 1e9 for ns)

        Returns:
            Cores in use, None on the first sample or after a counter reset
        """
        now = self._clock()
        previous = self._previous.get(key)
        self._previous[key] = (cumulative, now)
        if previous is None:
            return None

        delta_usage = cumulative - previous[0]
        delta_time = now - previous[1]
        if delta_usage < 0 or delta_time <= 0:
            return None
        return (delta_usage / units_per_second) / delta_time

    def reset(self) -> None:
        self._previous.clear()


class _CgroupFileReader:
    """Common plumbing for the per-version field readers."""

    def __init__(self, file_reader: FileReader, usage_tracker: CpuUsageTracker) -> None:
        self._file_reader = file_reader
        self._usage_tracker = usage_tracker

    def _read(self, path: Path | None) -> str | None:
        if path is None:
            return None
        result = self._file_reader.read(path)
        if result.is_failure():
            # Controller files can disappear between resolution and read.
            logger.debug(f"Skipping {path}: {result.error}")
            return None
        return result.value

    @staticmethod
    def _quota_cores(quota: int | None, period: int | None, host_cores: float) -> float | None:
        if quota is None or period is None or quota <= 0 or period <= 0:
            return None
        return min(quota / period, host_cores)


class CgroupV1LimitsReader(_CgroupFileReader):
    """Reads each ContainerLimits field from a v1 hierarchy."""

    def __init__(
        self,
        resolver: CgroupV1PathResolver,
        file_reader: FileReader,
        usage_tracker: CpuUsageTracker,
    ) -> None:
        super().__init__(file_reader, usage_tracker)
        self._resolver = resolver

    def _resolve(self, file: str, *controllers: str) -> Path | None:
        for controller in controllers:
            path = self._resolver.resolve_path(controller, file)
            if path is not None:
                return path
        return None

    def cpu_quota(self, host_cores: float) -> float | None:
        quota = self._read(self._resolve("cpu.cfs_quota_us", "cpu", "cpuacct"))
        period = self._read(self._resolve("cpu.cfs_period_us", "cpu", "cpuacct"))
        if quota is None or period is None:
            return None
        return self._quota_cores(parse_int(quota), parse_int(period), host_cores)

    def cpu_usage(self) -> float | None:
        path = self._resolve("cpuacct.usage", "cpuacct", "cpu")
        usage = parse_int(self._read(path) or "")
        if path is None or usage is None or usage < 0:
            return None
        return self._usage_tracker.rate(str(path), usage, 1_000_000_000)

    def cpu_throttled(self) -> int | None:
        content = self._read(self._resolve("cpu.stat", "cpu", "cpuacct"))
        return read_counter(content, "nr_throttled") if content is not None else None

    def memory_limit(self) -> int | None:
        limit = parse_limit(self._read(self._resolve("memory.limit_in_bytes", "memory")) or "")
        if limit is None or limit >= CGROUP_V1_UNLIMITED_THRESHOLD:
            return None
        return limit

    def memory_usage(self) -> int | None:
        usage = parse_int(self._read(self._resolve("memory.usage_in_bytes", "memory")) or "")
        return max(0, usage) if usage is not None else None

    def oom_kills(self) -> int | None:
        content = self._read(self._resolve("memory.oom_control", "memory"))
        if content is None:
            return None
        # oom_kill appeared in 4.13; older kernels only expose under_oom.
        return read_counter(content, "oom_kill", "under_oom")


class CgroupV2LimitsReader(_CgroupFileReader):
    """Reads each ContainerLimits field from the unified hierarchy."""

    def __init__(
        self,
        resolver: CgroupV2PathResolver,
        file_reader: FileReader,
        usage_tracker: CpuUsageTracker,
    ) -> None:
        super().__init__(file_reader, usage_tracker)
        self._resolver = resolver

    def cpu_quota(self, host_cores: float) -> float | None:
        """Parse cpu.max.

        Format:
            max 100000      (unlimited)
            200000 100000   (2 cores)
        """
        content = self._read(self._resolver.resolve_path("cpu.max"))
        if content is None:
            return None
        parts = content.split()
        if len(parts) != 2:
            return None
        return self._quota_cores(parse_limit(parts[0]), parse_int(parts[1]), host_cores)

    def cpu_usage(self) -> float | None:
        path = self._resolver.resolve_path("cpu.stat")
        content = self._read(path)
        if path is None or content is None:
            return None
        usage_usec = read_counter(content, "usage_usec")
        if usage_usec is None:
            return None
        return self._usage_tracker.rate(str(path), usage_usec, 1_000_000)

    def cpu_throttled(self) -> int | None:
        content = self._read(self._resolver.resolve_path("cpu.stat"))
        return read_counter(content, "nr_throttled") if content is not None else None

    def memory_limit(self) -> int | None:
        return parse_limit(self._read(self._resolver.resolve_path("memory.max")) or "")

    def memory_usage(self) -> int | None:
        usage = parse_int(self._read(self._resolver.resolve_path("memory.current")) or "")
        return max(0, usage) if usage is not None else None

    def oom_kills(self) -> int | None:
        content = self._read(self._resolver.resolve_path("memory.events"))
        return read_counter(content, "oom_kill") if content is not None else None


class LinuxCgroupMetricsSource(ContainerMetricsSource):
    """Reads ContainerLimits from cgroup v1 or v2, whichever the host exposes.

    Each field is read on its own: a missing controller blanks that field and
    the rest of the snapshot is still returned.
    """

    def __init__(
        self,
        cgroup_root: Path = DEFAULT_CGROUP_ROOT,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        detector: CgroupVersionDetector | None = None,
        v1_resolver: CgroupV1PathResolver | None = None,
        v2_resolver: CgroupV2PathResolver | None = None,
        usage_tracker: CpuUsageTracker | None = None,
    ) -> None:
        """Initialize the source.

        Args:
            cgroup_root: cgroup filesystem mount point
            proc_root: procfs mount point
            file_reader: Reader used for every file access
            detector: Version detector (one is created when omitted)
            v1_resolver: Resolver for v1 hierarchies
            v2_resolver: Resolver for the unified hierarchy
            usage_tracker: Turns cumulative CPU counters into usage rates
        """
        self._proc_root = Path(proc_root)
        self._file_reader = file_reader or FileReader()
        self._detector = detector or CgroupVersionDetector(
            cgroup_root, proc_root, self._file_reader
        )
        self._v1_resolver = v1_resolver or CgroupV1PathResolver(
            cgroup_root, proc_root, self._file_reader
        )
        self._v2_resolver = v2_resolver or CgroupV2PathResolver(
            cgroup_root, proc_root, self._file_reader
        )
        self._usage_tracker = usage_tracker or CpuUsageTracker()
        self._v1 = CgroupV1LimitsReader(
            self._v1_resolver,
            self._file_reader,
            self._usage_tracker,
        )
        self._v2 = CgroupV2LimitsReader(
            self._v2_resolver,
            self._file_reader,
            self._usage_tracker,
        )

    def read(self) -> Result[ContainerLimits]:
        version = self._detector.detect()
        if version is CgroupVersion.NONE:
            return Result.success(ContainerLimits.unavailable())

        reader: CgroupV1LimitsReader | CgroupV2LimitsReader = (
            self._v2 if version is CgroupVersion.V2 else self._v1
        )
        try:
            host_cores = self._host_cpu_cores()
            limits = ContainerLimits(
                cgroup_version=version,
                cpu_quota=reader.cpu_quota(host_cores),
                memory_limit_bytes=reader.memory_limit(),
                cpu_usage_cores=reader.cpu_usage(),
                memory_usage_bytes=reader.memory_usage(),
                cpu_throttled_count=reader.cpu_throttled(),
                oom_kill_count=reader.oom_kills(),
            )
        except OSError as e:
            logger.warning(f"I/O error while reading cgroup {version.value} metrics: {e}")
            return Result.failure(SystemMetricsError(f"Failed to read cgroup metrics: {e}"))

        logger.debug(f"Container limits: {limits.model_dump()}")
        return Result.success(limits)

    def _host_cpu_cores(self) -> float:
        """Count ``processor`` entries in /proc/cpuinfo, falling back to os.cpu_count()."""
        result = self._file_reader.read(self._proc_root / "cpuinfo")
        if result.is_success():
            count = sum(1 for line in result.value.splitlines() if line.startswith("processor"))
            if count > 0:
                return float(count)
        return float(os.cpu_count() or 1)

    def reset(self) -> None:
        """Drop every cache: detected version, path mappings and usage samples."""
        self._detector.reset()
        self._v1_resolver.reset()
        self._v2_resolver.reset()
        self._usage_tracker.reset()


class CompositeContainerMetricsSource(ContainerMetricsSource):
    """Selects the cgroup source on Linux and reports no limits elsewhere."""

    def __init__(self, source: ContainerMetricsSource | None = None) -> None:
        self._source = source
        if self._source is None and sys.platform.startswith("linux"):
            self._source = LinuxCgroupMetricsSource()

    def read(self) -> Result[ContainerLimits]:
        if self._source is None:
            return Result.success(ContainerLimits.unavailable())
        return self._source.read()
