"""Shared constants for system-metrics.

Centralized filesystem locations and kernel conventions used across sources.
"""

from __future__ import annotations

from pathlib import Path

# Standard mount points for the kernel pseudo-filesystems.
DEFAULT_PROC_ROOT = Path("/proc")
DEFAULT_CGROUP_ROOT = Path("/sys/fs/cgroup")

# Marker file that only exists on the unified (v2) hierarchy root.
CGROUP_V2_MARKER = "cgroup.controllers"

# Page size used to convert RSS pages from /proc/<pid>/stat into bytes.
STANDARD_PAGE_SIZE = 4096

# /proc/diskstats always counts in 512-byte sectors, whatever the device uses.
DISKSTATS_SECTOR_SIZE = 512

# cgroup v1 reports "no limit" as a page-aligned value close to LONG_MAX.
CGROUP_V1_UNLIMITED_THRESHOLD = 9_000_000_000_000_000_000

# Literal used by cgroup v2 files (cpu.max, memory.max) to mean "unlimited".
CGROUP_UNLIMITED_LITERAL = "max"

# Filesystems that never back user data and are skipped when listing mounts.
PSEUDO_FILESYSTEMS = frozenset(
    {
        "autofs",
        "binfmt_misc",
        "bpf",
        "cgroup",
        "cgroup2",
        "configfs",
        "debugfs",
        "devpts",
        "devtmpfs",
        "fusectl",
        "hugetlbfs",
        "mqueue",
        "nsfs",
        "proc",
        "pstore",
        "ramfs",
        "securityfs",
        "sysfs",
        "tmpfs",
        "tracefs",
    }
)

# Commands the command runner is allowed to execute (matched on the first word).
DEFAULT_ALLOWED_COMMANDS = ("df", "cat", "uname", "nproc", "echo", "true", "false")
