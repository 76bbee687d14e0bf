"""Success/failure container returned by every metrics source.

Sources never raise for expected OS variability. A missing optional metric is
a successful result with ``None`` fields; a malformed kernel file is a failed
result carrying a :class:`SystemMetricsError`.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

from system_metrics.core.errors import SystemMetricsError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Tagged union of a value or a :class:`SystemMetricsError`."""

    _value: T | None = None
    _error: SystemMetricsError | None = None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(_value=value)

    @classmethod
    def failure(cls, error: SystemMetricsError) -> Result[T]:
        return cls(_error=error)

    def is_success(self) -> bool:
        return self._error is None

    def is_failure(self) -> bool:
        return self._error is not None

    @property
    def value(self) -> T:
        """Return the value, raising the carried error if this is a failure."""
        if self._error is not None:
            raise self._error
        return self._value  # type: ignore[return-value]

    @property
    def error(self) -> SystemMetricsError | None:
        return self._error

    def value_or(self, default: U) -> T | U:
        """Return the value on success, ``default`` otherwise."""
        if self._error is not None:
            return default
        return self._value  # type: ignore[return-value]

    def map(self, mapper: Callable[[T], U]) -> Result[U]:
        """Transform the value of a successful result; failures pass through."""
        if self._error is not None:
            return Result.failure(self._error)
        return Result.success(mapper(self._value))  # type: ignore[arg-type]

    def on_success(self, callback: Callable[[T], object]) -> Result[T]:
        if self._error is None:
            callback(self._value)  # type: ignore[arg-type]
        return self

    def on_failure(self, callback: Callable[[SystemMetricsError], object]) -> Result[T]:
        if self._error is not None:
            callback(self._error)
        return self
