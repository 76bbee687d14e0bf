"""Shared fixtures: a fake /proc and /sys/fs/cgroup tree under tmp_path."""

from pathlib import Path

import pytest

from system_metrics.core.schemas import MetricsConfig


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)


def _stat(pid: int, comm: str, ppid: int, rss_pages: int) -> str:
    return (
        f"{pid} ({comm}) S {ppid} {pid} {pid} 0 -1 4194560 100 0 0 0 "
        f"10 5 0 0 20 0 1 0 12345 1048576 {rss_pages} "
        "18446744073709551615 1 1 0 0 0 0 0 0 0 0 0 0 17 0 0 0\n"
    )


@pytest.fixture
def host_config(tmp_path: Path) -> MetricsConfig:
    """Config pointing at a populated fake host: cgroup v2, two cores, one disk."""
    proc = tmp_path / "proc"
    cgroup = tmp_path / "cgroup"
    data = tmp_path / "data"
    data.mkdir()

    _write(
        proc / "stat",
        "cpu  100 0 50 850 0 0 0 0 0 0\n"
        "cpu0 60 0 20 420 0 0 0 0 0 0\n"
        "cpu1 40 0 30 430 0 0 0 0 0 0\n",
    )
    _write(proc / "cpuinfo", "processor\t: 0\n\nprocessor\t: 1\n")
    _write(proc / "meminfo", "MemTotal: 4000 kB\nMemFree: 1000 kB\nMemAvailable: 3000 kB\n")
    _write(proc / "loadavg", "1.00 0.50 0.25 1/100 999\n")
    _write(proc / "uptime", "93784.50 180000.00\n")
    _write(
        proc / "net" / "dev",
        "Inter-|   Receive                            |  Transmit\n"
        " face |bytes packets errs drop fifo frame compressed multicast|bytes packets errs drop\n"
        "    lo: 2048 20 0 0 0 0 0 0 2048 20 0 0 0 0 0 0\n"
        "  eth0: 1048576 900 1 2 0 0 0 0 524288 400 0 3 0 0 0 0\n",
    )
    _write(proc / "mounts", f"/dev/sda1 {data} ext4 rw 0 0\nproc /proc proc rw 0 0\n")
    _write(proc / "self" / "cgroup", "0::/\n")
    _write(proc / "10" / "stat", _stat(10, "app", 1, 100))
    _write(proc / "11" / "stat", _stat(11, "app worker", 10, 50))

    _write(cgroup / "cgroup.controllers", "cpu memory\n")
    _write(cgroup / "cpu.max", "100000 100000\n")
    _write(cgroup / "memory.max", "1048576\n")
    _write(cgroup / "memory.current", "524288\n")

    return MetricsConfig(proc_root=proc, cgroup_root=cgroup, allowed_commands=[])
