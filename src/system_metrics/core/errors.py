"""Error taxonomy carried by failed results."""

from __future__ import annotations


class SystemMetricsError(Exception):
    """Base class for every error a metrics source can report."""


class MetricsFileNotFoundError(SystemMetricsError):
    """A requested pseudo-file is absent."""

    def __init__(self, path: str) -> None:
        super().__init__(f"File not found: {path}")
        self.path = path

    @classmethod
    def for_path(cls, path: object) -> MetricsFileNotFoundError:
        return cls(str(path))


class InsufficientPermissionsError(SystemMetricsError):
    """A file exists but cannot be read, or a command cannot be executed."""

    @classmethod
    def for_file(cls, path: object) -> InsufficientPermissionsError:
        return cls(f"Insufficient permissions to read file: {path}")

    @classmethod
    def for_command(cls, command: str) -> InsufficientPermissionsError:
        return cls(f"Insufficient permissions to execute command: {command}")


class ParseError(SystemMetricsError):
    """Input text does not match the expected kernel or command format."""

    @classmethod
    def for_file(cls, path: object, reason: str) -> ParseError:
        return cls(f"Failed to parse {path}: {reason}")

    @classmethod
    def for_command(cls, command: str, reason: str) -> ParseError:
        return cls(f"Failed to parse output of '{command}': {reason}")


class ProcessNotFoundError(SystemMetricsError):
    """The process exited, or never existed."""

    def __init__(self, pid: int) -> None:
        super().__init__(f"Process not found: {pid}")
        self.pid = pid


class CommandError(SystemMetricsError):
    """A diagnostic command was rejected, missing or exited non-zero."""


class UnsupportedOperatingSystemError(SystemMetricsError):
    """The running operating system has no implementation for a metric."""

    @classmethod
    def for_os(cls, os_name: str) -> UnsupportedOperatingSystemError:
        return cls(f"Unsupported operating system: {os_name}")
