"""Collaborators and abstract sources shared by every metric family.

Every source implements a small interface with a ``read``-style method that
returns a :class:`Result`. Linux implementations read procfs/cgroupfs through
a :class:`FileReader` and run diagnostic commands through a
:class:`CommandRunner`, so tests can point them at fixture trees or mocks.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
from abc import ABC, abstractmethod
from collections.abc import Iterable
from pathlib import Path

from system_metrics.core.constants import DEFAULT_ALLOWED_COMMANDS
from system_metrics.core.errors import (
    CommandError,
    InsufficientPermissionsError,
    MetricsFileNotFoundError,
)
from system_metrics.core.result import Result
from system_metrics.core.schemas import (
    ContainerLimits,
    CpuSnapshot,
    LoadAverage,
    MemorySnapshot,
    NetworkSnapshot,
    ProcessGroupSnapshot,
    ProcessSnapshot,
    StorageSnapshot,
    SystemLimits,
    UptimeSnapshot,
)

logger = logging.getLogger(__name__)


class FileReader:
    """Reads pseudo-files and reports absence as a failed result."""

    def read(self, path: Path | str) -> Result[str]:
        """Read a whole file as text.

        Args:
            path: File to read

        Returns:
            Result with the content, or MetricsFileNotFoundError /
            InsufficientPermissionsError
        """
        path = Path(path)
        try:
            return Result.success(path.read_text(encoding="utf-8", errors="replace"))
        except (FileNotFoundError, NotADirectoryError):
            return Result.failure(MetricsFileNotFoundError.for_path(path))
        except (PermissionError, IsADirectoryError):
            return Result.failure(InsufficientPermissionsError.for_file(path))

    def read_lines(self, path: Path | str) -> Result[list[str]]:
        """Read a file and return its non-empty lines."""
        return self.read(path).map(lambda text: [line for line in text.splitlines() if line])

    def exists(self, path: Path | str) -> bool:
        return Path(path).exists()

    def is_readable(self, path: Path | str) -> bool:
        """True if ``path`` is a regular file the current process may read."""
        path = Path(path)
        return path.is_file() and os.access(path, os.R_OK)


class CommandRunner:
    """Runs allow-listed diagnostic commands without a shell."""

    def __init__(
        self,
        allowed_commands: Iterable[str] = DEFAULT_ALLOWED_COMMANDS,
        timeout_seconds: float = 10.0,
    ) -> None:
        """Initialize the runner.

        Args:
            allowed_commands: Executable names that may be run
            timeout_seconds: Per-command timeout
        """
        self._allowed = frozenset(allowed_commands)
        self._timeout = timeout_seconds

    def is_allowed(self, command: str) -> bool:
        parts = shlex.split(command)
        return bool(parts) and parts[0] in self._allowed

    def execute(self, command: str) -> Result[str]:
        """Run ``command`` and return its standard output.

        Args:
            command: Command line, e.g. ``"df -kPT"``

        Returns:
            Result with stdout, or CommandError / InsufficientPermissionsError
        """
        if not self.is_allowed(command):
            return Result.failure(CommandError(f"Command not allowed: {command}"))

        try:
            completed = subprocess.run(
                shlex.split(command),
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except FileNotFoundError:
            return Result.failure(CommandError(f"Command not found: {command}"))
        except PermissionError:
            return Result.failure(InsufficientPermissionsError.for_command(command))
        except subprocess.TimeoutExpired:
            return Result.failure(
                CommandError(f"Command timed out after {self._timeout}s: {command}")
            )

        if completed.returncode == 127:
            return Result.failure(CommandError(f"Command not found: {command}"))
        if completed.returncode == 126:
            return Result.failure(InsufficientPermissionsError.for_command(command))
        if completed.returncode != 0:
            # df exits 1 when a single mount is unreadable but still prints the rest.
            if completed.stdout.strip():
                logger.debug(
                    f"'{command}' exited with {completed.returncode}, using partial output"
                )
                return Result.success(completed.stdout)
            return Result.failure(
                CommandError(f"Command failed with exit code {completed.returncode}: {command}")
            )
        return Result.success(completed.stdout)


class ContainerMetricsSource(ABC):
    """Source of cgroup limits and usage for the current process."""

    @abstractmethod
    def read(self) -> Result[ContainerLimits]:
        pass


class CpuMetricsSource(ABC):
    """Source of cumulative CPU counters."""

    @abstractmethod
    def read(self) -> Result[CpuSnapshot]:
        pass


class MemoryMetricsSource(ABC):
    @abstractmethod
    def read(self) -> Result[MemorySnapshot]:
        pass


class LoadAverageSource(ABC):
    @abstractmethod
    def read(self) -> Result[LoadAverage]:
        pass


class StorageMetricsSource(ABC):
    """Source of the mount table with capacity and disk I/O counters."""

    @abstractmethod
    def read(self) -> Result[StorageSnapshot]:
        pass


class ProcessMetricsSource(ABC):
    """Source of per-process and process-group statistics."""

    @abstractmethod
    def read(self, pid: int) -> Result[ProcessSnapshot]:
        """Read statistics for a single process.

        Args:
            pid: Process ID

        Returns:
            Result with the snapshot, ProcessNotFoundError if it does not exist
        """
        pass

    @abstractmethod
    def read_process_group(self, root_pid: int) -> Result[ProcessGroupSnapshot]:
        """Read a process and all of its descendants.

        Args:
            root_pid: PID of the group's root process

        Returns:
            Result with the aggregated group snapshot
        """
        pass


class NetworkMetricsSource(ABC):
    """Source of interface counters and socket counts."""

    @abstractmethod
    def read(self) -> Result[NetworkSnapshot]:
        pass


class UptimeSource(ABC):
    @abstractmethod
    def read(self) -> Result[UptimeSnapshot]:
        pass


class SystemLimitsSource(ABC):
    """Source of the effective CPU and memory ceiling for this process."""

    @abstractmethod
    def read(self) -> Result[SystemLimits]:
        pass
