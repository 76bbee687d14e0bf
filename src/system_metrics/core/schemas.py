"""Pydantic schemas for system-metrics.

This module defines every value a metrics source can return. All snapshot
models are frozen: they are built once per read and never mutated. Metrics a
host cannot provide are ``None``, never a sentinel such as ``-1`` or ``0``,
so the derived percentages below can propagate absence instead of producing
misleading numbers.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from system_metrics.core.constants import (
    DEFAULT_ALLOWED_COMMANDS,
    DEFAULT_CGROUP_ROOT,
    DEFAULT_PROC_ROOT,
)


def _percentage(part: float, whole: float) -> float:
    if whole <= 0:
        return 0.0
    return (part / whole) * 100.0


# =============================================================================
# CONTAINER / CGROUP
# =============================================================================


class CgroupVersion(str, Enum):
    """cgroup hierarchy exposed by the host."""

    V1 = "v1"  # Per-controller hierarchies (/sys/fs/cgroup/<controller>)
    V2 = "v2"  # Unified hierarchy (/sys/fs/cgroup/cgroup.controllers)
    NONE = "none"  # Non-Linux host or cgroups not mounted


class ContainerLimits(BaseModel):
    """Container resource limits and usage as seen from inside the cgroup.

    Attributes:
        cgroup_version: Hierarchy the values were read from
        cpu_quota: CPU limit in cores, None when unlimited
        memory_limit_bytes: Memory limit in bytes, None when unlimited
        cpu_usage_cores: Cores consumed since the previous read
        memory_usage_bytes: Current memory usage in bytes
        cpu_throttled_count: Number of periods the cgroup was throttled
        oom_kill_count: Number of OOM kills inside the cgroup
    """

    cgroup_version: CgroupVersion
    cpu_quota: float | None = Field(default=None, description="CPU limit in cores")
    memory_limit_bytes: int | None = Field(default=None, description="Memory limit in bytes")
    cpu_usage_cores: float | None = Field(default=None, ge=0, description="CPU usage in cores")
    memory_usage_bytes: int | None = Field(default=None, ge=0, description="Memory usage")
    cpu_throttled_count: int | None = Field(default=None, ge=0)
    oom_kill_count: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @classmethod
    def unavailable(cls) -> ContainerLimits:
        """Snapshot for hosts where no cgroup hierarchy is observable."""
        return cls(cgroup_version=CgroupVersion.NONE)

    def has_cpu_limit(self) -> bool:
        return self.cpu_quota is not None and self.cpu_quota > 0

    def has_memory_limit(self) -> bool:
        return self.memory_limit_bytes is not None and self.memory_limit_bytes > 0

    def cpu_utilization_percentage(self) -> float | None:
        """CPU usage as a percentage of the quota, clamped to [0, 100]."""
        if self.cpu_quota is None or self.cpu_usage_cores is None or self.cpu_quota <= 0:
            return None
        return max(0.0, min(100.0, (self.cpu_usage_cores / self.cpu_quota) * 100))

    def memory_utilization_percentage(self) -> float | None:
        """Memory usage as a percentage of the limit, clamped to [0, 100]."""
        if (
            self.memory_limit_bytes is None
            or self.memory_usage_bytes is None
            or self.memory_limit_bytes <= 0
        ):
            return None
        return max(0.0, min(100.0, (self.memory_usage_bytes / self.memory_limit_bytes) * 100))

    def available_cpu_cores(self) -> float | None:
        """Cores left under the quota, never negative."""
        if self.cpu_quota is None or self.cpu_usage_cores is None or self.cpu_quota <= 0:
            return None
        return max(0.0, self.cpu_quota - self.cpu_usage_cores)

    def available_memory_bytes(self) -> int | None:
        if (
            self.memory_limit_bytes is None
            or self.memory_usage_bytes is None
            or self.memory_limit_bytes <= 0
        ):
            return None
        return max(0, self.memory_limit_bytes - self.memory_usage_bytes)

    def is_cpu_throttled(self) -> bool:
        return self.cpu_throttled_count is not None and self.cpu_throttled_count > 0

    def has_oom_kills(self) -> bool:
        return self.oom_kill_count is not None and self.oom_kill_count > 0


# =============================================================================
# CPU
# =============================================================================


class CpuTimes(BaseModel):
    """Cumulative jiffy counters from one /proc/stat line (or a delta of two)."""

    user: int = Field(default=0, ge=0)
    nice: int = Field(default=0, ge=0)
    system: int = Field(default=0, ge=0)
    idle: int = Field(default=0, ge=0)
    iowait: int = Field(default=0, ge=0)
    irq: int = Field(default=0, ge=0)
    softirq: int = Field(default=0, ge=0)
    steal: int = Field(default=0, ge=0)
    guest: int = Field(default=0, ge=0)
    guest_nice: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def total(self) -> int:
        """Total ticks. Guest time is already included in user/nice."""
        return (
            self.user
            + self.nice
            + self.system
            + self.idle
            + self.iowait
            + self.irq
            + self.softirq
            + self.steal
        )

    def busy(self) -> int:
        return self.total() - self.idle - self.iowait

    def minus(self, earlier: CpuTimes) -> CpuTimes:
        """Field-wise difference, clamped at zero for counter resets."""
        return CpuTimes(
            **{
                name: max(0, getattr(self, name) - getattr(earlier, name))
                for name in CpuTimes.model_fields
            }
        )


class CpuCoreTimes(BaseModel):
    """Counters for a single core, tagged with the index from its ``cpuN`` label."""

    core_index: int = Field(ge=0)
    times: CpuTimes

    model_config = {"frozen": True}

    def busy_percentage(self) -> float:
        return _percentage(self.times.busy(), self.times.total())


class CpuCoreDelta(BaseModel):
    """Counter delta for one core between two snapshots."""

    core_index: int = Field(ge=0)
    delta: CpuTimes

    model_config = {"frozen": True}

    def usage_percentage(self) -> float:
        return _percentage(self.delta.busy(), self.delta.total())


class CpuDelta(BaseModel):
    """Difference between two CPU snapshots.

    Counters are cumulative since boot, so usage is only meaningful over an
    interval: take a snapshot, wait, take another and compare them.
    """

    total_delta: CpuTimes
    per_core_delta: tuple[CpuCoreDelta, ...] = ()
    duration_seconds: float = Field(default=0.0, ge=0)
    start_time: datetime
    end_time: datetime

    model_config = {"frozen": True}

    def _share(self, ticks: int) -> float:
        if self.duration_seconds == 0.0:
            return 0.0
        return _percentage(ticks, self.total_delta.total())

    def usage_percentage(self) -> float:
        """System-wide busy percentage (0-100) averaged over all cores."""
        return self._share(self.total_delta.busy())

    def user_percentage(self) -> float:
        return self._share(self.total_delta.user)

    def system_percentage(self) -> float:
        return self._share(self.total_delta.system)

    def idle_percentage(self) -> float:
        return self._share(self.total_delta.idle)

    def iowait_percentage(self) -> float:
        return self._share(self.total_delta.iowait)

    def core_usage_percentage(self, core_index: int) -> float | None:
        for core in self.per_core_delta:
            if core.core_index == core_index:
                return core.usage_percentage()
        return None


class CpuSnapshot(BaseModel):
    """Aggregate and per-core CPU counters from /proc/stat.

    ``per_core`` keeps file order. Consumers correlating with a specific CPU
    must use ``core_index`` rather than the position in the tuple.
    """

    total: CpuTimes
    per_core: tuple[CpuCoreTimes, ...] = ()
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    def core_count(self) -> int:
        return len(self.per_core)

    def find_core(self, core_index: int) -> CpuCoreTimes | None:
        for core in self.per_core:
            if core.core_index == core_index:
                return core
        return None

    def find_busy_cores(self, threshold: float) -> list[CpuCoreTimes]:
        """Cores whose busy share since boot is at least ``threshold`` percent."""
        return [
            c for c in self.per_core if c.times.total() > 0 and c.busy_percentage() >= threshold
        ]

    def find_idle_cores(self, threshold: float) -> list[CpuCoreTimes]:
        return [
            c
            for c in self.per_core
            if c.times.total() > 0 and _percentage(c.times.idle, c.times.total()) >= threshold
        ]

    def busiest_core(self) -> CpuCoreTimes | None:
        if not self.per_core:
            return None
        return max(self.per_core, key=lambda c: c.busy_percentage())

    def idlest_core(self) -> CpuCoreTimes | None:
        if not self.per_core:
            return None
        return min(self.per_core, key=lambda c: c.busy_percentage())

    @staticmethod
    def calculate_delta(before: CpuSnapshot, after: CpuSnapshot) -> CpuDelta:
        """Compute counter deltas between two snapshots.

        Cores missing from ``after`` (hot-unplugged) are dropped from the delta.

        Args:
            before: Earlier snapshot
            after: Later snapshot

        Returns:
            CpuDelta with usage percentage helpers
        """
        per_core: list[CpuCoreDelta] = []
        for core in before.per_core:
            later = after.find_core(core.core_index)
            if later is None:
                continue
            per_core.append(
                CpuCoreDelta(core_index=core.core_index, delta=later.times.minus(core.times))
            )

        duration = (after.timestamp - before.timestamp).total_seconds()
        return CpuDelta(
            total_delta=after.total.minus(before.total),
            per_core_delta=tuple(per_core),
            duration_seconds=max(0.0, duration),
            start_time=before.timestamp,
            end_time=after.timestamp,
        )


# =============================================================================
# MEMORY / LOAD
# =============================================================================


class MemorySnapshot(BaseModel):
    """Host memory totals from /proc/meminfo, in bytes."""

    total_bytes: int = Field(ge=0)
    free_bytes: int = Field(default=0, ge=0)
    available_bytes: int = Field(default=0, ge=0)
    buffers_bytes: int = Field(default=0, ge=0)
    cached_bytes: int = Field(default=0, ge=0)
    swap_total_bytes: int = Field(default=0, ge=0)
    swap_free_bytes: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def used_bytes(self) -> int:
        return max(0, self.total_bytes - self.available_bytes)

    def used_percentage(self) -> float:
        return _percentage(self.used_bytes(), self.total_bytes)

    def swap_used_bytes(self) -> int:
        return max(0, self.swap_total_bytes - self.swap_free_bytes)


class LoadAverage(BaseModel):
    """Run-queue averages from /proc/loadavg."""

    one_minute: float = Field(ge=0)
    five_minutes: float = Field(ge=0)
    fifteen_minutes: float = Field(ge=0)
    running_tasks: int | None = Field(default=None, ge=0)
    total_tasks: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def per_core(self, core_count: int) -> LoadAverage:
        """Normalize the averages by the number of cores."""
        if core_count <= 0:
            return self
        return self.model_copy(
            update={
                "one_minute": self.one_minute / core_count,
                "five_minutes": self.five_minutes / core_count,
                "fifteen_minutes": self.fifteen_minutes / core_count,
            }
        )


# =============================================================================
# STORAGE
# =============================================================================


class FileSystemType(str, Enum):
    """Filesystem families reported for mount points."""

    EXT4 = "ext4"
    EXT3 = "ext3"
    EXT2 = "ext2"
    XFS = "xfs"
    BTRFS = "btrfs"
    ZFS = "zfs"
    VFAT = "vfat"
    NTFS = "ntfs"
    NFS = "nfs"
    TMPFS = "tmpfs"
    DEVTMPFS = "devtmpfs"
    OVERLAY = "overlay"
    OTHER = "other"

    @classmethod
    def from_string(cls, value: str) -> FileSystemType:
        """Map a kernel filesystem name (as in /proc/mounts) to a member."""
        name = value.strip().lower()
        aliases = {
            "fat32": cls.VFAT,
            "msdos": cls.VFAT,
            "ntfs3": cls.NTFS,
            "nfs4": cls.NFS,
        }
        if name in aliases:
            return aliases[name]
        try:
            return cls(name)
        except ValueError:
            return cls.OTHER


class MountPoint(BaseModel):
    """One mounted filesystem with capacity and inode counters."""

    device: str
    mount_point: str = Field(..., min_length=1)
    fs_type: FileSystemType = Field(default=FileSystemType.OTHER)
    total_bytes: int = Field(default=0, ge=0)
    used_bytes: int = Field(default=0, ge=0)
    available_bytes: int = Field(default=0, ge=0)
    total_inodes: int = Field(default=0, ge=0)
    used_inodes: int = Field(default=0, ge=0)
    free_inodes: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def used_percentage(self) -> float:
        return _percentage(self.used_bytes, self.total_bytes)

    def available_percentage(self) -> float:
        return _percentage(self.available_bytes, self.total_bytes)

    def inodes_used_percentage(self) -> float:
        return _percentage(self.used_inodes, self.total_inodes)


class DiskIOStats(BaseModel):
    """Cumulative I/O counters for one whole disk from /proc/diskstats."""

    device: str  # Kernel device name (e.g., "sda", "nvme0n1")
    reads_completed: int = Field(default=0, ge=0)
    read_bytes: int = Field(default=0, ge=0)
    writes_completed: int = Field(default=0, ge=0)
    write_bytes: int = Field(default=0, ge=0)
    io_time_ms: int = Field(default=0, ge=0)
    weighted_io_time_ms: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def total_operations(self) -> int:
        return self.reads_completed + self.writes_completed


class StorageSnapshot(BaseModel):
    """Read-only view over a single captured mount table.

    Mount paths are unique within a snapshot; devices are not (bind mounts
    share a device). Construction rejects duplicate mount paths so that
    longest-prefix lookups always have a single winner.
    """

    mount_points: tuple[MountPoint, ...] = ()
    disk_io: tuple[DiskIOStats, ...] = ()

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_unique_mount_paths(self) -> StorageSnapshot:
        seen: set[str] = set()
        for mount in self.mount_points:
            if mount.mount_point in seen:
                raise ValueError(f"Duplicate mount path in storage snapshot: {mount.mount_point}")
            seen.add(mount.mount_point)
        return self

    def find_mount_point(self, path: str) -> MountPoint | None:
        """Return the most specific mount containing ``path``.

        A mount matches when the path equals its mount path or continues it
        with a separator, so ``/hom`` never matches ``/home``. Root matches
        every absolute path and is therefore the fallback.
        """
        best: MountPoint | None = None
        for mount in self.mount_points:
            prefix = mount.mount_point
            if prefix == "/":
                matches = path.startswith("/")
            else:
                matches = path == prefix or path.startswith(prefix.rstrip("/") + "/")
            if matches and (best is None or len(prefix) > len(best.mount_point)):
                best = mount
        return best

    def find_device(self, device: str) -> MountPoint | None:
        """First mount in table order whose device matches exactly."""
        for mount in self.mount_points:
            if mount.device == device:
                return mount
        return None

    def find_by_filesystem_type(self, fs_type: FileSystemType) -> list[MountPoint]:
        return [m for m in self.mount_points if m.fs_type == fs_type]

    def total_bytes(self) -> int:
        return sum(m.total_bytes for m in self.mount_points)

    def used_bytes(self) -> int:
        return sum(m.used_bytes for m in self.mount_points)

    def available_bytes(self) -> int:
        return sum(m.available_bytes for m in self.mount_points)

    def used_percentage(self) -> float:
        return _percentage(self.used_bytes(), self.total_bytes())


# =============================================================================
# PROCESS
# =============================================================================


class ProcessResourceUsage(BaseModel):
    """Resources held by one process."""

    cpu_times: CpuTimes = Field(default_factory=CpuTimes, description="utime/stime in ticks")
    memory_rss_bytes: int = Field(default=0, ge=0)
    memory_vms_bytes: int = Field(default=0, ge=0)
    thread_count: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class ProcessSnapshot(BaseModel):
    """Point-in-time statistics for one process from /proc/<pid>/stat."""

    pid: int = Field(ge=0)
    parent_pid: int = Field(ge=0)
    command: str = ""
    state: str = ""
    resources: ProcessResourceUsage = Field(default_factory=ProcessResourceUsage)
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class ProcessGroupSnapshot(BaseModel):
    """A root process and every descendant still alive during the walk."""

    root_pid: int = Field(ge=0)
    root: ProcessSnapshot
    children: tuple[ProcessSnapshot, ...] = ()
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    def _members(self) -> tuple[ProcessSnapshot, ...]:
        return (self.root, *self.children)

    def total_process_count(self) -> int:
        return 1 + len(self.children)

    def aggregate_memory_rss(self) -> int:
        return sum(p.resources.memory_rss_bytes for p in self._members())

    def aggregate_memory_vms(self) -> int:
        return sum(p.resources.memory_vms_bytes for p in self._members())

    def aggregate_thread_count(self) -> int:
        return sum(p.resources.thread_count for p in self._members())

    def aggregate_cpu_times(self) -> CpuTimes:
        members = self._members()
        return CpuTimes(
            user=sum(p.resources.cpu_times.user for p in members),
            system=sum(p.resources.cpu_times.system for p in members),
        )


# =============================================================================
# NETWORK
# =============================================================================


class NetworkInterfaceType(str, Enum):
    """Interface family, guessed from the kernel's naming conventions."""

    LOOPBACK = "loopback"
    ETHERNET = "ethernet"
    WIFI = "wifi"
    BRIDGE = "bridge"
    VIRTUAL = "virtual"
    OTHER = "other"

    @classmethod
    def from_name(cls, name: str) -> NetworkInterfaceType:
        if name == "lo":
            return cls.LOOPBACK
        if name.startswith(("wlan", "wlp", "wlx")):
            return cls.WIFI
        if name.startswith(("eth", "en")):
            return cls.ETHERNET
        if name.startswith(("br", "docker", "virbr")):
            return cls.BRIDGE
        if name.startswith(("veth", "tun", "tap", "wg", "vxlan")):
            return cls.VIRTUAL
        return cls.OTHER


class NetworkInterface(BaseModel):
    """Cumulative counters for one interface from /proc/net/dev."""

    name: str
    interface_type: NetworkInterfaceType = NetworkInterfaceType.OTHER
    bytes_received: int = Field(default=0, ge=0)
    packets_received: int = Field(default=0, ge=0)
    receive_errors: int = Field(default=0, ge=0)
    receive_drops: int = Field(default=0, ge=0)
    bytes_sent: int = Field(default=0, ge=0)
    packets_sent: int = Field(default=0, ge=0)
    transmit_errors: int = Field(default=0, ge=0)
    transmit_drops: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    def is_loopback(self) -> bool:
        return self.interface_type is NetworkInterfaceType.LOOPBACK


class NetworkConnectionStats(BaseModel):
    """Socket counts by state from /proc/net/{tcp,tcp6,udp,udp6}."""

    tcp_established: int = Field(default=0, ge=0)
    tcp_listening: int = Field(default=0, ge=0)
    tcp_time_wait: int = Field(default=0, ge=0)
    udp_listening: int = Field(default=0, ge=0)
    total_connections: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class NetworkSnapshot(BaseModel):
    """Interfaces in /proc/net/dev order; connections are None when unreadable."""

    interfaces: tuple[NetworkInterface, ...] = ()
    connections: NetworkConnectionStats | None = None
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    def find_interface(self, name: str) -> NetworkInterface | None:
        for interface in self.interfaces:
            if interface.name == name:
                return interface
        return None


# =============================================================================
# UPTIME
# =============================================================================


class UptimeSnapshot(BaseModel):
    """Time since boot from /proc/uptime."""

    uptime_seconds: float = Field(ge=0)
    idle_seconds: float | None = Field(
        default=None, ge=0, description="Summed idle time of all cores"
    )
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}

    def boot_time(self) -> datetime:
        return self.timestamp - timedelta(seconds=self.uptime_seconds)

    def human_readable(self) -> str:
        """Format as ``"3d 4h 5m"``."""
        days, remainder = divmod(int(self.uptime_seconds), 86400)
        hours, remainder = divmod(remainder, 3600)
        minutes = remainder // 60
        return f"{days}d {hours}h {minutes}m"


# =============================================================================
# SYSTEM LIMITS
# =============================================================================


class LimitSource(str, Enum):
    """Where the effective limits of a SystemLimits view come from."""

    HOST = "host"
    CGROUP_V1 = "cgroup_v1"
    CGROUP_V2 = "cgroup_v2"


class SystemLimits(BaseModel):
    """Effective resource ceiling for this process and its current usage.

    Inside a cgroup with limits the container's quota and memory limit apply;
    a missing container limit falls back to the host total, as on bare metal.

    Attributes:
        source: Where the limits were taken from
        cpu_cores: CPU capacity in cores
        memory_bytes: Memory capacity in bytes
        current_cpu_cores: Cores in use, None until a usage rate is known
        current_memory_bytes: Memory in use
        swap_bytes: Host swap size, None when unknown
        current_swap_bytes: Host swap in use, None when unknown
    """

    source: LimitSource
    cpu_cores: float = Field(ge=0)
    memory_bytes: int = Field(ge=0)
    current_cpu_cores: float | None = Field(default=None, ge=0)
    current_memory_bytes: int = Field(default=0, ge=0)
    swap_bytes: int | None = Field(default=None, ge=0)
    current_swap_bytes: int | None = Field(default=None, ge=0)

    model_config = {"frozen": True}

    def is_containerized(self) -> bool:
        return self.source is not LimitSource.HOST

    def available_cpu_cores(self) -> float | None:
        if self.current_cpu_cores is None:
            return None
        return max(0.0, self.cpu_cores - self.current_cpu_cores)

    def available_memory_bytes(self) -> int:
        return max(0, self.memory_bytes - self.current_memory_bytes)

    def cpu_utilization(self) -> float | None:
        """CPU usage as a percentage of capacity; may exceed 100 when over-committed."""
        if self.current_cpu_cores is None:
            return None
        if self.cpu_cores <= 0:
            return 0.0
        return (self.current_cpu_cores / self.cpu_cores) * 100.0

    def memory_utilization(self) -> float:
        return _percentage(self.current_memory_bytes, self.memory_bytes)

    def swap_utilization(self) -> float | None:
        if self.swap_bytes is None or self.current_swap_bytes is None:
            return None
        return _percentage(self.current_swap_bytes, self.swap_bytes)

    def cpu_headroom(self) -> float | None:
        utilization = self.cpu_utilization()
        return max(0.0, 100.0 - utilization) if utilization is not None else None

    def memory_headroom(self) -> float:
        return max(0.0, 100.0 - self.memory_utilization())

    def can_scale_cpu(self, additional_cores: float) -> bool:
        return (self.current_cpu_cores or 0.0) + additional_cores <= self.cpu_cores

    def can_scale_memory(self, additional_bytes: int) -> bool:
        return self.current_memory_bytes + additional_bytes <= self.memory_bytes

    def is_cpu_pressure(self, threshold_percentage: float = 80.0) -> bool:
        utilization = self.cpu_utilization()
        return utilization is not None and utilization >= threshold_percentage

    def is_memory_pressure(self, threshold_percentage: float = 80.0) -> bool:
        return self.memory_utilization() >= threshold_percentage


# =============================================================================
# OVERVIEW + CONFIGURATION
# =============================================================================


class SystemOverview(BaseModel):
    """Every host-level snapshot gathered in one call; unreadable sections are None."""

    container: ContainerLimits | None = None
    cpu: CpuSnapshot | None = None
    memory: MemorySnapshot | None = None
    load_average: LoadAverage | None = None
    storage: StorageSnapshot | None = None
    network: NetworkSnapshot | None = None
    uptime: UptimeSnapshot | None = None
    errors: dict[str, str] = Field(default_factory=dict, description="Section -> error message")
    timestamp: datetime = Field(default_factory=datetime.now)

    model_config = {"frozen": True}


class MetricsConfig(BaseModel):
    """Top-level configuration, loaded from YAML/JSON files.

    Roots are configurable so the same sources can read a host's /proc from a
    different mount (e.g. ``/host/proc`` in a sidecar) or a test fixture tree.
    """

    proc_root: Path = Field(default=DEFAULT_PROC_ROOT, description="procfs mount point")
    cgroup_root: Path = Field(default=DEFAULT_CGROUP_ROOT, description="cgroup mount point")
    command_timeout_seconds: float = Field(
        default=10.0, ge=1, le=300, description="Timeout for diagnostic commands"
    )
    allowed_commands: list[str] = Field(
        default_factory=lambda: list(DEFAULT_ALLOWED_COMMANDS),
        description="Executables the command runner may invoke",
    )
    skip_pseudo_filesystems: bool = Field(
        default=True, description="Hide proc/sysfs/tmpfs/... from storage snapshots"
    )
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is one the logging module knows."""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level
