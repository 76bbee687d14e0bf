"""Host memory (/proc/meminfo) and load average (/proc/loadavg) sources."""

from __future__ import annotations

import logging
import re
from pathlib import Path

from system_metrics.core.constants import DEFAULT_PROC_ROOT
from system_metrics.core.errors import ParseError
from system_metrics.core.result import Result
from system_metrics.core.schemas import LoadAverage, MemorySnapshot
from system_metrics.monitoring.base import FileReader, LoadAverageSource, MemoryMetricsSource

logger = logging.getLogger(__name__)

# "MemTotal:       16384000 kB"
_MEMINFO_LINE = re.compile(r"^(\w+(?:\(\w+\))?):\s+(\d+)(?:\s+kB)?\s*$")


def parse_meminfo(content: str) -> dict[str, int]:
    """Parse /proc/meminfo into key -> bytes.

    Values carrying a ``kB`` unit are converted to bytes; unit-less values
    (HugePages_Total, ...) are kept as-is.
    """
    values: dict[str, int] = {}
    for line in content.splitlines():
        match = _MEMINFO_LINE.match(line.strip())
        if not match:
            continue
        value = int(match.group(2))
        values[match.group(1)] = value * 1024 if line.rstrip().endswith("kB") else value
    return values


class LinuxProcMeminfoMemoryMetricsSource(MemoryMetricsSource):
    """Reads <proc-root>/meminfo."""

    def __init__(
        self, proc_root: Path = DEFAULT_PROC_ROOT, file_reader: FileReader | None = None
    ) -> None:
        self._path = Path(proc_root) / "meminfo"
        self._file_reader = file_reader or FileReader()

    def read(self) -> Result[MemorySnapshot]:
        content = self._file_reader.read(self._path)
        if content.is_failure():
            return Result.failure(content.error)  # type: ignore[arg-type]

        values = parse_meminfo(content.value)
        if "MemTotal" not in values:
            return Result.failure(ParseError.for_file(self._path, "Missing MemTotal"))

        free = values.get("MemFree", 0)
        # MemAvailable appeared in Linux 3.14.
        available = values.get("MemAvailable")
        if available is None:
            logger.debug("MemAvailable missing, approximating with MemFree")
            available = free

        return Result.success(
            MemorySnapshot(
                total_bytes=values["MemTotal"],
                free_bytes=free,
                available_bytes=available,
                buffers_bytes=values.get("Buffers", 0),
                cached_bytes=values.get("Cached", 0),
                swap_total_bytes=values.get("SwapTotal", 0),
                swap_free_bytes=values.get("SwapFree", 0),
            )
        )


class LinuxProcLoadAverageSource(LoadAverageSource):
    """Reads <proc-root>/loadavg, e.g. ``0.52 0.58 0.59 2/1234 5678``."""

    def __init__(
        self, proc_root: Path = DEFAULT_PROC_ROOT, file_reader: FileReader | None = None
    ) -> None:
        self._path = Path(proc_root) / "loadavg"
        self._file_reader = file_reader or FileReader()

    def read(self) -> Result[LoadAverage]:
        content = self._file_reader.read(self._path)
        if content.is_failure():
            return Result.failure(content.error)  # type: ignore[arg-type]

        fields = content.value.split()
        if len(fields) < 4:
            return Result.failure(
                ParseError.for_file(self._path, f"Expected at least 4 fields, got {len(fields)}")
            )

        try:
            one, five, fifteen = (float(v) for v in fields[:3])
        except ValueError as e:
            return Result.failure(ParseError.for_file(self._path, f"Non-numeric average: {e}"))

        running: int | None = None
        total: int | None = None
        running_raw, _, total_raw = fields[3].partition("/")
        if running_raw.isdigit() and total_raw.isdigit():
            running, total = int(running_raw), int(total_raw)

        return Result.success(
            LoadAverage(
                one_minute=one,
                five_minutes=five,
                fifteen_minutes=fifteen,
                running_tasks=running,
                total_tasks=total,
            )
        )
