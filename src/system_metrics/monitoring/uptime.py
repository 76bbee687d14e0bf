"""Time since boot from /proc/uptime, e.g. ``350735.47 234388.90``."""

from __future__ import annotations

from pathlib import Path

from system_metrics.core.constants import DEFAULT_PROC_ROOT
from system_metrics.core.errors import ParseError
from system_metrics.core.result import Result
from system_metrics.core.schemas import UptimeSnapshot
from system_metrics.monitoring.base import FileReader, UptimeSource


class LinuxProcUptimeSource(UptimeSource):
    """Reads <proc-root>/uptime: seconds since boot, then summed idle seconds."""

    def __init__(
        self, proc_root: Path = DEFAULT_PROC_ROOT, file_reader: FileReader | None = None
    ) -> None:
        self._path = Path(proc_root) / "uptime"
        self._file_reader = file_reader or FileReader()

    def read(self) -> Result[UptimeSnapshot]:
        content = self._file_reader.read(self._path)
        if content.is_failure():
            return Result.failure(content.error)  # type: ignore[arg-type]

        fields = content.value.split()
        if not fields:
            return Result.failure(ParseError.for_file(self._path, "Empty content"))

        try:
            uptime = float(fields[0])
            idle = float(fields[1]) if len(fields) > 1 else None
        except ValueError as e:
            return Result.failure(ParseError.for_file(self._path, f"Non-numeric value: {e}"))

        if uptime < 0 or (idle is not None and idle < 0):
            return Result.failure(ParseError.for_file(self._path, "Negative uptime"))

        return Result.success(UptimeSnapshot(uptime_seconds=uptime, idle_seconds=idle))
