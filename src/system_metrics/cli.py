"""CLI for system-metrics.

Provides a rich command-line interface using Typer for:
- A one-shot overview of the host
- Container (cgroup) limits and usage
- CPU counters, optionally as usage over an interval
- Storage mounts and longest-prefix mount lookup
- Single processes and process groups
- Network interfaces, uptime and the effective resource limits
"""

from __future__ import annotations

import time
from pathlib import Path
from typing import TypeVar

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from system_metrics.core.config import load_config
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    ContainerLimits,
    CpuSnapshot,
    LoadAverage,
    MemorySnapshot,
    MetricsConfig,
    MountPoint,
    NetworkSnapshot,
    ProcessSnapshot,
    SystemLimits,
    UptimeSnapshot,
)
from system_metrics.metrics import SystemMetrics
from system_metrics.monitoring.io_utils import bytes_to_mb
from system_metrics.utils.logging import setup_logging

app = typer.Typer(
    name="system-metrics",
    help="Point-in-time Linux host and container metrics",
    add_completion=False,
)

console = Console()

T = TypeVar("T")


@app.callback()
def main(
    ctx: typer.Context,
    config: Path | None = typer.Option(
        None, "--config", "-c", help="Path to configuration file (YAML/JSON)"
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", "-l", help="Logging level (overrides config)"
    ),
    json_logs: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format"),
) -> None:
    """Read metrics from /proc and /sys/fs/cgroup."""
    try:
        metrics_config = load_config(config) if config is not None else MetricsConfig()
        if log_level is not None:
            metrics_config = MetricsConfig.model_validate(
                {**metrics_config.model_dump(), "log_level": log_level}
            )
    except Exception as e:
        console.print(f"[bold red]Error loading config: {e}[/]")
        raise typer.Exit(1) from e

    setup_logging(
        level=metrics_config.log_level, json_format=json_logs, rich_console=not json_logs
    )
    ctx.obj = SystemMetrics(metrics_config)


def _unwrap(result: Result[T]) -> T:
    """Return the value of a result, or print the error and exit 1."""
    if result.is_failure():
        console.print(f"[bold red]Error:[/] {result.error}")
        raise typer.Exit(1)
    return result.value


def _print_json(model: BaseModel) -> None:
    typer.echo(model.model_dump_json(indent=2))


def _fmt_mb(value: int | None) -> str:
    return f"{bytes_to_mb(value):,.1f} MB" if value is not None else "N/A"


def _fmt_pct(value: float | None) -> str:
    return f"{value:.1f}%" if value is not None else "N/A"


@app.command()
def overview(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of tables"),
) -> None:
    """Show every host-level metric section."""
    metrics: SystemMetrics = ctx.obj
    snapshot = metrics.overview()
    if as_json:
        _print_json(snapshot)
        return

    if snapshot.container is not None:
        _show_container(snapshot.container)
    if snapshot.cpu is not None:
        _show_cpu(snapshot.cpu)
    if snapshot.memory is not None or snapshot.load_average is not None:
        _show_memory(snapshot.memory, snapshot.load_average)
    if snapshot.storage is not None:
        _show_mounts(list(snapshot.storage.mount_points), title="Storage")
    if snapshot.network is not None:
        _show_network(snapshot.network)
    if snapshot.uptime is not None:
        _show_uptime(snapshot.uptime)
    for section, message in snapshot.errors.items():
        console.print(f"[yellow]{section} unavailable:[/] {message}")


@app.command()
def container(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show cgroup limits and usage for this process."""
    metrics: SystemMetrics = ctx.obj
    limits = _unwrap(metrics.container())
    if as_json:
        _print_json(limits)
    else:
        _show_container(limits)


@app.command()
def cpu(
    ctx: typer.Context,
    interval: float = typer.Option(
        0.0, "--interval", "-i", min=0.0, help="Seconds between two samples (0 = since boot)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show CPU counters, or usage over an interval."""
    metrics: SystemMetrics = ctx.obj
    before = _unwrap(metrics.cpu())
    if interval <= 0:
        if as_json:
            _print_json(before)
        else:
            _show_cpu(before)
        return

    time.sleep(interval)
    after = _unwrap(metrics.cpu())
    delta = CpuSnapshot.calculate_delta(before, after)
    if as_json:
        _print_json(delta)
        return

    table = Table(title=f"CPU usage over {delta.duration_seconds:.2f}s")
    table.add_column("CPU", style="cyan")
    table.add_column("Usage", style="green")
    table.add_row("all", _fmt_pct(delta.usage_percentage()))
    for core in delta.per_core_delta:
        table.add_row(f"cpu{core.core_index}", _fmt_pct(core.usage_percentage()))
    console.print(table)


@app.command()
def storage(
    ctx: typer.Context,
    path: str | None = typer.Option(
        None, "--path", "-p", help="Show only the mount that contains this path"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show mounted filesystems with capacity and inode usage."""
    metrics: SystemMetrics = ctx.obj
    snapshot = _unwrap(metrics.storage())

    if path is None:
        if as_json:
            _print_json(snapshot)
        else:
            _show_mounts(list(snapshot.mount_points), title="Storage")
        return

    mount = snapshot.find_mount_point(path)
    if mount is None:
        console.print(f"[bold red]Error:[/] No mount point contains {path}")
        raise typer.Exit(1)
    if as_json:
        _print_json(mount)
    else:
        _show_mounts([mount], title=f"Mount for {path}")


@app.command()
def process(
    ctx: typer.Context,
    pid: int = typer.Argument(..., help="Process ID"),
    group: bool = typer.Option(False, "--group", "-g", help="Include all descendants"),
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show statistics for a process, or for it and its descendants."""
    metrics: SystemMetrics = ctx.obj
    if not group:
        snapshot = _unwrap(metrics.process(pid))
        if as_json:
            _print_json(snapshot)
        else:
            _show_processes([snapshot], title=f"Process {pid}")
        return

    group_snapshot = _unwrap(metrics.process_group(pid))
    if as_json:
        _print_json(group_snapshot)
        return

    _show_processes([group_snapshot.root, *group_snapshot.children], title=f"Process group {pid}")
    cpu_times = group_snapshot.aggregate_cpu_times()
    console.print(
        f"[bold]{group_snapshot.total_process_count()} processes[/], "
        f"RSS {_fmt_mb(group_snapshot.aggregate_memory_rss())}, "
        f"threads {group_snapshot.aggregate_thread_count()}, "
        f"CPU ticks {cpu_times.user} user / {cpu_times.system} system"
    )


@app.command()
def network(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show interface counters and socket counts."""
    metrics: SystemMetrics = ctx.obj
    snapshot = _unwrap(metrics.network())
    if as_json:
        _print_json(snapshot)
    else:
        _show_network(snapshot)


@app.command()
def uptime(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of text"),
) -> None:
    """Show time since boot."""
    metrics: SystemMetrics = ctx.obj
    snapshot = _unwrap(metrics.uptime())
    if as_json:
        _print_json(snapshot)
    else:
        _show_uptime(snapshot)


@app.command()
def limits(
    ctx: typer.Context,
    as_json: bool = typer.Option(False, "--json", help="Print JSON instead of a table"),
) -> None:
    """Show the effective CPU and memory ceiling for this process."""
    metrics: SystemMetrics = ctx.obj
    view = _unwrap(metrics.limits())
    if as_json:
        _print_json(view)
        return

    table = Table(title=f"Limits ({view.source.value})")
    table.add_column("Resource", style="cyan")
    table.add_column("Capacity", justify="right")
    table.add_column("In use", justify="right", style="green")
    table.add_column("Utilization", justify="right")
    table.add_row(
        "CPU",
        f"{view.cpu_cores:.2f} cores",
        f"{view.current_cpu_cores:.2f} cores" if view.current_cpu_cores is not None else "N/A",
        _fmt_pct(view.cpu_utilization()),
    )
    table.add_row(
        "Memory",
        _fmt_mb(view.memory_bytes),
        _fmt_mb(view.current_memory_bytes),
        _fmt_pct(view.memory_utilization()),
    )
    if view.swap_bytes:
        table.add_row(
            "Swap",
            _fmt_mb(view.swap_bytes),
            _fmt_mb(view.current_swap_bytes),
            _fmt_pct(view.swap_utilization()),
        )
    console.print(table)


def _show_container(limits: ContainerLimits) -> None:
    """Display container limits."""
    table = Table(title="Container")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("cgroup", limits.cgroup_version.value)
    table.add_row(
        "CPU quota", f"{limits.cpu_quota:.2f} cores" if limits.cpu_quota is not None else "none"
    )
    table.add_row(
        "CPU usage",
        f"{limits.cpu_usage_cores:.2f} cores" if limits.cpu_usage_cores is not None else "N/A",
    )
    table.add_row("CPU utilization", _fmt_pct(limits.cpu_utilization_percentage()))
    table.add_row(
        "Memory limit",
        _fmt_mb(limits.memory_limit_bytes) if limits.has_memory_limit() else "none",
    )
    table.add_row("Memory usage", _fmt_mb(limits.memory_usage_bytes))
    table.add_row("Memory utilization", _fmt_pct(limits.memory_utilization_percentage()))
    table.add_row(
        "Throttled periods",
        str(limits.cpu_throttled_count) if limits.cpu_throttled_count is not None else "N/A",
    )
    table.add_row(
        "OOM kills",
        str(limits.oom_kill_count) if limits.oom_kill_count is not None else "N/A",
    )
    console.print(table)


def _show_cpu(snapshot: CpuSnapshot) -> None:
    """Display busy share since boot, per core."""
    table = Table(title=f"CPU ({snapshot.core_count()} cores, since boot)")
    table.add_column("CPU", style="cyan")
    table.add_column("Busy", style="green")
    table.add_column("User ticks", justify="right")
    table.add_column("System ticks", justify="right")
    table.add_column("Idle ticks", justify="right")

    total = snapshot.total
    table.add_row(
        "all",
        _fmt_pct(total.busy() / total.total() * 100 if total.total() else 0.0),
        str(total.user),
        str(total.system),
        str(total.idle),
    )
    for core in snapshot.per_core:
        table.add_row(
            f"cpu{core.core_index}",
            _fmt_pct(core.busy_percentage()),
            str(core.times.user),
            str(core.times.system),
            str(core.times.idle),
        )
    console.print(table)


def _show_memory(memory: MemorySnapshot | None, load: LoadAverage | None) -> None:
    table = Table(title="Memory")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="white")
    if memory is not None:
        table.add_row("Total", _fmt_mb(memory.total_bytes))
        table.add_row("Available", _fmt_mb(memory.available_bytes))
        table.add_row(
            "Used", f"{_fmt_mb(memory.used_bytes())} ({_fmt_pct(memory.used_percentage())})"
        )
        table.add_row("Swap used", _fmt_mb(memory.swap_used_bytes()))
    if load is not None:
        table.add_row(
            "Load (1/5/15)",
            f"{load.one_minute:.2f} / {load.five_minutes:.2f} / {load.fifteen_minutes:.2f}",
        )
    console.print(table)


def _show_mounts(mounts: list[MountPoint], title: str) -> None:
    table = Table(title=title)
    table.add_column("Mount", style="cyan")
    table.add_column("Device")
    table.add_column("Type")
    table.add_column("Size", justify="right")
    table.add_column("Used", justify="right", style="green")
    table.add_column("Inodes", justify="right")

    for m in mounts:
        table.add_row(
            m.mount_point,
            m.device,
            m.fs_type.value,
            _fmt_mb(m.total_bytes),
            _fmt_pct(m.used_percentage()),
            _fmt_pct(m.inodes_used_percentage()) if m.total_inodes else "N/A",
        )
    console.print(table)


def _show_processes(processes: list[ProcessSnapshot], title: str) -> None:
    table = Table(title=title)
    table.add_column("PID", style="cyan", justify="right")
    table.add_column("PPID", justify="right")
    table.add_column("Command")
    table.add_column("State")
    table.add_column("RSS", justify="right", style="green")
    table.add_column("Threads", justify="right")

    for p in processes:
        table.add_row(
            str(p.pid),
            str(p.parent_pid),
            p.command,
            p.state,
            _fmt_mb(p.resources.memory_rss_bytes),
            str(p.resources.thread_count),
        )
    console.print(table)


def _show_network(snapshot: NetworkSnapshot) -> None:
    table = Table(title="Network")
    table.add_column("Interface", style="cyan")
    table.add_column("Type")
    table.add_column("Received", justify="right", style="green")
    table.add_column("Sent", justify="right", style="green")
    table.add_column("Errors (rx/tx)", justify="right")
    table.add_column("Drops (rx/tx)", justify="right")

    for iface in snapshot.interfaces:
        table.add_row(
            iface.name,
            iface.interface_type.value,
            _fmt_mb(iface.bytes_received),
            _fmt_mb(iface.bytes_sent),
            f"{iface.receive_errors}/{iface.transmit_errors}",
            f"{iface.receive_drops}/{iface.transmit_drops}",
        )
    console.print(table)

    if snapshot.connections is not None:
        conns = snapshot.connections
        console.print(
            f"[bold]TCP[/] {conns.tcp_established} established, "
            f"{conns.tcp_listening} listening, {conns.tcp_time_wait} time-wait; "
            f"[bold]UDP[/] {conns.udp_listening} open"
        )


def _show_uptime(snapshot: UptimeSnapshot) -> None:
    console.print(
        f"[bold]Up[/] {snapshot.human_readable()} "
        f"(since {snapshot.boot_time():%Y-%m-%d %H:%M:%S})"
    )


if __name__ == "__main__":
    app()
