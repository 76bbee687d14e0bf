"""Per-process and process-group statistics from /proc/<pid>/stat.

Format (fields are 1-indexed as in proc(5)):
    pid (comm) state ppid pgrp session tty_nr tpgid flags minflt ...

Fields used:
- 3: state
- 4: ppid
- 14, 15: utime, stime (clock ticks)
- 20: num_threads
- 23: vsize (bytes)
- 24: rss (pages)

``comm`` may contain spaces and parentheses, so the line is split on the
last closing parenthesis.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from system_metrics.core.constants import DEFAULT_PROC_ROOT, STANDARD_PAGE_SIZE
from system_metrics.core.errors import MetricsFileNotFoundError, ParseError, ProcessNotFoundError
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    CpuTimes,
    ProcessGroupSnapshot,
    ProcessResourceUsage,
    ProcessSnapshot,
)
from system_metrics.monitoring.base import FileReader, ProcessMetricsSource

logger = logging.getLogger(__name__)

# Number of fields after "(comm)" needed to reach rss (field 24).
MIN_STAT_FIELDS = 22


class LinuxProcPidStatParser:
    """Parses /proc/<pid>/stat content into a ProcessSnapshot."""

    def __init__(self, page_size: int = STANDARD_PAGE_SIZE) -> None:
        self._page_size = page_size

    def parse(self, content: str, pid: int) -> Result[ProcessSnapshot]:
        source = f"/proc/{pid}/stat"
        content = content.strip()
        if not content:
            return Result.failure(ParseError.for_file(source, "Empty content"))

        open_paren = content.find("(")
        close_paren = content.rfind(")")
        if open_paren == -1 or close_paren < open_paren:
            return Result.failure(
                ParseError.for_file(source, "Invalid format: missing command name")
            )

        command = content[open_paren + 1 : close_paren]
        fields = content[close_paren + 1 :].split()
        if len(fields) < MIN_STAT_FIELDS:
            return Result.failure(
                ParseError.for_file(source, f"Insufficient fields ({len(fields)})")
            )

        try:
            # Indices are shifted by 3: fields[0] is proc(5) field 3.
            parent_pid = int(fields[1])
            utime = int(fields[11])
            stime = int(fields[12])
            thread_count = int(fields[17])
            vsize = int(fields[20])
            rss_pages = int(fields[21])
        except ValueError as e:
            return Result.failure(ParseError.for_file(source, f"Non-numeric field: {e}"))

        resources = ProcessResourceUsage(
            cpu_times=CpuTimes(user=utime, system=stime),
            memory_rss_bytes=max(0, rss_pages) * self._page_size,
            memory_vms_bytes=vsize,
            thread_count=thread_count,
        )
        return Result.success(
            ProcessSnapshot(
                pid=pid,
                parent_pid=parent_pid,
                command=command,
                state=fields[0],
                resources=resources,
                timestamp=datetime.now(),
            )
        )


@dataclass
class ProcessGroupBuilder:
    """Mutable staging area for a process-group walk, frozen at the end."""

    root: ProcessSnapshot
    children: list[ProcessSnapshot] = field(default_factory=list)

    def add(self, snapshot: ProcessSnapshot) -> None:
        self.children.append(snapshot)

    def build(self) -> ProcessGroupSnapshot:
        return ProcessGroupSnapshot(
            root_pid=self.root.pid,
            root=self.root,
            children=tuple(self.children),
            timestamp=datetime.now(),
        )


class LinuxProcProcessMetricsSource(ProcessMetricsSource):
    """Reads process statistics from <proc-root>/<pid>/stat."""

    def __init__(
        self,
        proc_root: Path = DEFAULT_PROC_ROOT,
        file_reader: FileReader | None = None,
        parser: LinuxProcPidStatParser | None = None,
    ) -> None:
        self._proc_root = Path(proc_root)
        self._file_reader = file_reader or FileReader()
        self._parser = parser or LinuxProcPidStatParser()

    def read(self, pid: int) -> Result[ProcessSnapshot]:
        result = self._file_reader.read(self._proc_root / str(pid) / "stat")
        if result.is_failure():
            if isinstance(result.error, MetricsFileNotFoundError):
                return Result.failure(ProcessNotFoundError(pid))
            return Result.failure(result.error)  # type: ignore[arg-type]
        return self._parser.parse(result.value, pid)

    def read_process_group(self, root_pid: int) -> Result[ProcessGroupSnapshot]:
        """Read ``root_pid`` and every descendant, breadth-first.

        The process table is scanned once. Processes that exit during the
        scan are left out of the group; only a missing root is an error.
        """
        root_result = self.read(root_pid)
        if root_result.is_failure():
            return Result.failure(root_result.error)  # type: ignore[arg-type]

        builder = ProcessGroupBuilder(root=root_result.value)
        table = self._scan_process_table()

        children_of: dict[int, list[int]] = {}
        for snapshot in table.values():
            children_of.setdefault(snapshot.parent_pid, []).append(snapshot.pid)

        queue = deque(sorted(children_of.get(root_pid, [])))
        seen = {root_pid}
        while queue:
            pid = queue.popleft()
            if pid in seen:
                continue
            seen.add(pid)
            builder.add(table[pid])
            queue.extend(sorted(children_of.get(pid, [])))

        group = builder.build()
        logger.debug(f"Process group {root_pid}: {group.total_process_count()} processes")
        return Result.success(group)

    def _scan_process_table(self) -> dict[int, ProcessSnapshot]:
        """Snapshot every process that is still alive when its stat file is read."""
        table: dict[int, ProcessSnapshot] = {}
        try:
            entries = [e for e in self._proc_root.iterdir() if e.name.isdigit()]
        except OSError as e:
            logger.warning(f"Cannot list {self._proc_root}: {e}")
            return table

        for entry in entries:
            result = self.read(int(entry.name))
            if result.is_success():
                table[result.value.pid] = result.value
            else:
                logger.debug(f"Skipping pid {entry.name}: {result.error}")
        return table
