"""CPU counters from /proc/stat.

Format:
    cpu  4705 356 584 3699176 23 23 0 0 0 0
    cpu0 1393 280 290 1229498 7 0 0 0 0 0
    cpu1 3312 76 294 2469678 16 23 0 0 0 0
    intr 114930548 113199788 3 0 5 263 0 4 [... lots more numbers ...]
    ctxt 1990473

The aggregate ``cpu`` line and the ``cpuN`` lines share one column layout:
user nice system idle iowait irq softirq steal guest guest_nice. Older
kernels print fewer columns; missing trailing columns read as zero.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime
from pathlib import Path

from system_metrics.core.constants import DEFAULT_PROC_ROOT
from system_metrics.core.errors import ParseError
from system_metrics.core.result import Result
from system_metrics.core.schemas import CpuCoreTimes, CpuSnapshot, CpuTimes
from system_metrics.monitoring.base import CpuMetricsSource, FileReader

logger = logging.getLogger(__name__)

CPU_TIME_FIELDS = (
    "user",
    "nice",
    "system",
    "idle",
    "iowait",
    "irq",
    "softirq",
    "steal",
    "guest",
    "guest_nice",
)

# user, nice, system, idle are present on every kernel since 2.4.
MIN_CPU_FIELDS = 4

_CORE_LABEL = re.compile(r"cpu(\d+)")


class LinuxProcStatParser:
    """Parses /proc/stat content into a CpuSnapshot."""

    def __init__(self, source_name: str = "/proc/stat") -> None:
        self._source_name = source_name

    def parse(self, content: str) -> Result[CpuSnapshot]:
        """Parse the aggregate and per-core lines.

        Args:
            content: Raw /proc/stat text

        Returns:
            Result with the snapshot, or ParseError when there is no aggregate
            ``cpu`` line or a cpu line is malformed
        """
        total: CpuTimes | None = None
        per_core: list[CpuCoreTimes] = []

        for line in content.splitlines():
            tokens = line.split()
            if not tokens:
                continue
            label = tokens[0]

            if label == "cpu":
                if total is not None:
                    continue
                try:
                    total = self._parse_times(tokens[1:])
                except ValueError as e:
                    return Result.failure(ParseError.for_file(self._source_name, str(e)))
                continue

            match = _CORE_LABEL.fullmatch(label)
            if match is None:
                continue
            try:
                times = self._parse_times(tokens[1:])
            except ValueError as e:
                return Result.failure(
                    ParseError.for_file(self._source_name, f"{label}: {e}")
                )
            per_core.append(CpuCoreTimes(core_index=int(match.group(1)), times=times))

        if total is None:
            return Result.failure(
                ParseError.for_file(self._source_name, "No aggregate CPU line found")
            )

        logger.debug(f"Parsed {self._source_name}: {len(per_core)} cores")
        return Result.success(
            CpuSnapshot(total=total, per_core=tuple(per_core), timestamp=datetime.now())
        )

    @staticmethod
    def _parse_times(fields: list[str]) -> CpuTimes:
        if len(fields) < MIN_CPU_FIELDS:
            raise ValueError(
                f"expected at least {MIN_CPU_FIELDS} counters, found {len(fields)}"
            )
        values: dict[str, int] = {}
        for name, raw in zip(CPU_TIME_FIELDS, fields):
            if not raw.isdigit():
                raise ValueError(f"non-numeric {name} counter {raw!r}")
            values[name] = int(raw)
        return CpuTimes(**values)


class LinuxProcCpuMetricsSource(CpuMetricsSource):
    """Reads CPU counters from <proc-root>/stat."""

    def __init__(
        self,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        parser: LinuxProcStatParser | None = None,
    ) -> None:
        self._path = Path(proc_root) / "stat"
        self._file_reader = file_reader or FileReader()
        self._parser = parser or LinuxProcStatParser(str(self._path))

    def read(self) -> Result[CpuSnapshot]:
        result = self._file_reader.read(self._path)
        if result.is_failure():
            return Result.failure(result.error)  # type: ignore[arg-type]
        return self._parser.parse(result.value)
