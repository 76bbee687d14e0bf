"""Storage metrics: mount table, filesystem capacity and disk I/O counters.

Two strategies produce a StorageSnapshot:

1. statvfs (preferred): mount table from /proc/mounts, capacity and inode
   counts from ``os.statvfs`` per mount. No subprocess.
2. df (fallback): ``df -kPT`` for capacity and ``df -iP`` for inodes, run
   through the allow-listed CommandRunner.

Both attach whole-disk counters from /proc/diskstats when it is readable.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from system_metrics.core.constants import (
    DEFAULT_PROC_ROOT,
    DISKSTATS_SECTOR_SIZE,
    PSEUDO_FILESYSTEMS,
)
from system_metrics.core.errors import ParseError
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    DiskIOStats,
    FileSystemType,
    MountPoint,
    StorageSnapshot,
)
from system_metrics.monitoring.base import CommandRunner, FileReader, StorageMetricsSource

logger = logging.getLogger(__name__)

_OCTAL_ESCAPE = re.compile(r"\\([0-7]{3})")

# Partitions are skipped so that I/O is not counted twice.
_PARTITION_PATTERNS = (
    re.compile(r"(sd|vd|xvd|hd)[a-z]+\d+"),
    re.compile(r"nvme\d+n\d+p\d+"),
    re.compile(r"mmcblk\d+p\d+"),
)

DF_CAPACITY_COMMAND = "df -kPT"
DF_INODES_COMMAND = "df -iP"


@dataclass(frozen=True)
class MountEntry:
    """One line of /proc/mounts."""

    device: str
    mount_point: str
    fs_type: str
    options: str = ""


def _unescape_mount_field(value: str) -> str:
    # The kernel escapes space, tab, newline and backslash as \ooo.
    return _OCTAL_ESCAPE.sub(lambda m: chr(int(m.group(1), 8)), value)


class LinuxMountsParser:
    """Parses /proc/mounts (same format as /etc/fstab)."""

    def parse(self, content: str) -> list[MountEntry]:
        entries: list[MountEntry] = []
        for line in content.splitlines():
            parts = line.split()
            if len(parts) < 3:
                continue
            entries.append(
                MountEntry(
                    device=_unescape_mount_field(parts[0]),
                    mount_point=_unescape_mount_field(parts[1]),
                    fs_type=parts[2],
                    options=parts[3] if len(parts) > 3 else "",
                )
            )
        return entries


class LinuxDiskstatsParser:
    """Parses /proc/diskstats into per-disk counters.

    Format (whitespace separated, 0-indexed):
        [0] major [1] minor [2] name [3] reads completed [5] sectors read
        [7] writes completed [9] sectors written [12] ms doing I/O
        [13] weighted ms doing I/O
    """

    MIN_FIELDS = 14

    def parse(self, content: str) -> Result[list[DiskIOStats]]:
        if not content.strip():
            return Result.failure(ParseError.for_file("/proc/diskstats", "Empty content"))

        stats: list[DiskIOStats] = []
        for line in content.splitlines():
            fields = line.split()
            if len(fields) < self.MIN_FIELDS:
                continue
            device = fields[2]
            if any(p.fullmatch(device) for p in _PARTITION_PATTERNS):
                continue
            try:
                stats.append(
                    DiskIOStats(
                        device=device,
                        reads_completed=int(fields[3]),
                        read_bytes=int(fields[5]) * DISKSTATS_SECTOR_SIZE,
                        writes_completed=int(fields[7]),
                        write_bytes=int(fields[9]) * DISKSTATS_SECTOR_SIZE,
                        io_time_ms=int(fields[12]),
                        weighted_io_time_ms=int(fields[13]),
                    )
                )
            except ValueError:
                logger.debug(f"Skipping malformed diskstats line: {line!r}")
        return Result.success(stats)


class LinuxDfParser:
    """Parses POSIX-format ``df`` output.

    ``df -kPT``::

        Filesystem     Type 1024-blocks    Used Available Capacity Mounted on
        /dev/sda1      ext4   102400000 61440000 40960000      60% /

    ``df -iP``::

        Filesystem      Inodes  IUsed   IFree IUse% Mounted on
        /dev/sda1      1000000 600000  400000   60% /

    The header decides whether a Type column is present, so plain ``df -kP``
    output parses too. Mount paths may contain spaces.
    """

    def parse(self, output: str, command: str = DF_CAPACITY_COMMAND) -> Result[list[MountPoint]]:
        lines = [line for line in output.splitlines() if line.strip()]
        if len(lines) < 2:
            return Result.failure(ParseError.for_command(command, "No filesystem rows"))

        has_type = len(lines[0].split()) > 1 and lines[0].split()[1].lower() == "type"
        offset = 1 if has_type else 0

        mounts: list[MountPoint] = []
        for line in lines[1:]:
            parts = line.split()
            if len(parts) < 6 + offset:
                continue
            try:
                total_kb = int(parts[1 + offset])
                used_kb = int(parts[2 + offset])
                available_kb = int(parts[3 + offset])
            except ValueError:
                continue
            mounts.append(
                MountPoint(
                    device=parts[0],
                    mount_point=" ".join(parts[5 + offset :]),
                    fs_type=(
                        FileSystemType.from_string(parts[1]) if has_type else FileSystemType.OTHER
                    ),
                    total_bytes=total_kb * 1024,
                    used_bytes=used_kb * 1024,
                    available_bytes=available_kb * 1024,
                )
            )

        if not mounts:
            return Result.failure(ParseError.for_command(command, "No parseable filesystem rows"))
        return Result.success(mounts)

    def parse_inodes(
        self, output: str, command: str = DF_INODES_COMMAND
    ) -> Result[dict[str, tuple[int, int, int]]]:
        """Parse ``df -iP`` output into mount path -> (total, used, free)."""
        lines = [line for line in output.splitlines() if line.strip()]
        if len(lines) < 2:
            return Result.failure(ParseError.for_command(command, "No filesystem rows"))

        inodes: dict[str, tuple[int, int, int]] = {}
        for line in lines[1:]:
            parts = line.split()
            if len(parts) < 6:
                continue
            try:
                # Some filesystems (btrfs, vfat) report "-" for inode counts.
                total, used, free = (int(v) for v in parts[1:4])
            except ValueError:
                continue
            inodes[" ".join(parts[5:])] = (total, used, free)
        return Result.success(inodes)


def _read_disk_io(
    file_reader: FileReader, proc_root: Path, parser: LinuxDiskstatsParser
) -> tuple[DiskIOStats, ...]:
    content = file_reader.read(proc_root / "diskstats")
    if content.is_failure():
        logger.debug(f"Disk I/O counters unavailable: {content.error}")
        return ()
    return tuple(parser.parse(content.value).value_or([]))


def _dedupe_by_mount_path(mounts: list[MountPoint]) -> list[MountPoint]:
    """Keep one entry per mount path.

    A mount stacked on an existing path hides the earlier one, and statvfs(2)
    reports the visible (last) mount, so the last entry supplies the values.
    The path keeps the position of its first appearance.
    """
    by_path: dict[str, MountPoint] = {}
    for mount in mounts:
        by_path[mount.mount_point] = mount
    return list(by_path.values())


class LinuxStatvfsStorageMetricsSource(StorageMetricsSource):
    """Mount table from /proc/mounts, capacity from statvfs(2)."""

    def __init__(
        self,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        skip_pseudo_filesystems: bool = True,
        statvfs: Callable[[str], os.statvfs_result] = os.statvfs,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._file_reader = file_reader or FileReader()
        self._skip_pseudo = skip_pseudo_filesystems
        self._statvfs = statvfs
        self._mounts_parser = LinuxMountsParser()
        self._diskstats_parser = LinuxDiskstatsParser()

    def read(self) -> Result[StorageSnapshot]:
        content = self._file_reader.read(self._proc_root / "mounts")
        if content.is_failure():
            return Result.failure(content.error)  # type: ignore[arg-type]

        mounts: list[MountPoint] = []
        for entry in self._mounts_parser.parse(content.value):
            if self._skip_pseudo and entry.fs_type in PSEUDO_FILESYSTEMS:
                continue
            mount = self._stat_mount(entry)
            if mount is not None:
                mounts.append(mount)

        return Result.success(
            StorageSnapshot(
                mount_points=tuple(_dedupe_by_mount_path(mounts)),
                disk_io=_read_disk_io(self._file_reader, self._proc_root, self._diskstats_parser),
            )
        )

    def _stat_mount(self, entry: MountEntry) -> MountPoint | None:
        try:
            st = self._statvfs(entry.mount_point)
        except OSError as e:
            # Stale NFS handles, unmounted-while-reading, permission denied.
            logger.debug(f"statvfs failed for {entry.mount_point}: {e}")
            return None

        block = st.f_frsize or st.f_bsize
        return MountPoint(
            device=entry.device,
            mount_point=entry.mount_point,
            fs_type=FileSystemType.from_string(entry.fs_type),
            total_bytes=st.f_blocks * block,
            used_bytes=max(0, st.f_blocks - st.f_bfree) * block,
            available_bytes=st.f_bavail * block,
            total_inodes=st.f_files,
            used_inodes=max(0, st.f_files - st.f_ffree),
            free_inodes=st.f_ffree,
        )


class DfStorageMetricsSource(StorageMetricsSource):
    """Capacity and inode counts from the ``df`` command."""

    def __init__(
        self,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        command_runner: CommandRunner | None = None,
        skip_pseudo_filesystems: bool = True,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._file_reader = file_reader or FileReader()
        self._runner = command_runner or CommandRunner()
        self._skip_pseudo = skip_pseudo_filesystems
        self._df_parser = LinuxDfParser()
        self._diskstats_parser = LinuxDiskstatsParser()

    def read(self) -> Result[StorageSnapshot]:
        output = self._runner.execute(DF_CAPACITY_COMMAND)
        if output.is_failure():
            return Result.failure(output.error)  # type: ignore[arg-type]

        parsed = self._df_parser.parse(output.value)
        if parsed.is_failure():
            return Result.failure(parsed.error)  # type: ignore[arg-type]

        mounts = [
            m
            for m in parsed.value
            if not (self._skip_pseudo and m.fs_type.value in PSEUDO_FILESYSTEMS)
        ]

        inode_output = self._runner.execute(DF_INODES_COMMAND)
        inodes = inode_output.map(self._df_parser.parse_inodes)
        if inodes.is_success() and inodes.value.is_success():
            table = inodes.value.value
            mounts = [self._with_inodes(m, table.get(m.mount_point)) for m in mounts]
        else:
            logger.debug("Inode counts unavailable from df")

        return Result.success(
            StorageSnapshot(
                mount_points=tuple(_dedupe_by_mount_path(mounts)),
                disk_io=_read_disk_io(self._file_reader, self._proc_root, self._diskstats_parser),
            )
        )

    @staticmethod
    def _with_inodes(mount: MountPoint, inodes: tuple[int, int, int] | None) -> MountPoint:
        if inodes is None:
            return mount
        total, used, free = inodes
        return mount.model_copy(
            update={"total_inodes": total, "used_inodes": used, "free_inodes": free}
        )


class CompositeStorageMetricsSource(StorageMetricsSource):
    """statvfs first, ``df`` when the mount table yields nothing usable."""

    def __init__(
        self,
        primary: StorageMetricsSource | None = None,
        fallback: StorageMetricsSource | None = None,
    ) -> None:
        self._primary = primary or LinuxStatvfsStorageMetricsSource()
        self._fallback = fallback or DfStorageMetricsSource()

    def read(self) -> Result[StorageSnapshot]:
        primary = self._primary.read()
        if primary.is_success() and primary.value.mount_points:
            return primary

        logger.debug(f"Falling back to df for storage metrics: {primary.error}")
        fallback = self._fallback.read()
        if fallback.is_success():
            return fallback
        if primary.is_success():
            return primary
        return fallback
