"""Shared parsing utilities for kernel pseudo-files.

cgroup and procfs files come in a handful of shapes: a single integer, a
single integer or the literal ``max``, and flat ``key value`` tables. The
helpers here turn those shapes into Python values and return ``None`` for
anything that does not parse, so callers can degrade one field at a time.

Functions:
    bytes_to_mb: Convert bytes to megabytes
    parse_int: Parse a single non-negative integer
    parse_limit: Parse an integer limit where ``max`` means unlimited
    parse_key_value_table: Parse ``key value`` lines into a dict
    read_counter: Extract one counter from a ``key value`` table
"""

from __future__ import annotations

from system_metrics.core.constants import CGROUP_UNLIMITED_LITERAL


def bytes_to_mb(byte_count: int | float) -> float:
    """Convert bytes to megabytes.

    Args:
        byte_count: Number of bytes

    Returns:
        Megabytes (float)
    """
    return byte_count / (1024 * 1024)


def parse_int(content: str) -> int | None:
    """Parse file content holding one integer.

    Args:
        content: Raw file content (surrounding whitespace is ignored)

    Returns:
        The integer, None if the content is not a plain decimal number
    """
    value = content.strip()
    try:
        return int(value)
    except ValueError:
        return None


def parse_limit(content: str) -> int | None:
    """Parse a cgroup limit value.

    Args:
        content: Raw file content such as ``"536870912"`` or ``"max"``

    Returns:
        The positive limit, None for ``max``, non-positive or malformed values
    """
    value = content.strip()
    if value == CGROUP_UNLIMITED_LITERAL:
        return None
    limit = parse_int(value)
    if limit is None or limit <= 0:
        return None
    return limit


def parse_key_value_table(content: str) -> dict[str, int]:
    """Parse ``key value`` lines (cpu.stat, memory.events, memory.oom_control).

    Format:
        usage_usec 123456
        nr_throttled 4

    Lines that do not have exactly two fields or whose value is not an
    integer are skipped.
    """
    result: dict[str, int] = {}
    for line in content.splitlines():
        parts = line.split()
        if len(parts) != 2:
            continue
        try:
            result[parts[0]] = int(parts[1])
        except ValueError:
            continue
    return result


def read_counter(content: str, *keys: str) -> int | None:
    """Return the first of ``keys`` present in a ``key value`` table.

    Args:
        content: Raw file content
        keys: Counter names in order of preference

    Returns:
        Counter value, None if none of the keys is present or the first one
        found holds a negative value
    """
    table = parse_key_value_table(content)
    for key in keys:
        if key in table:
            value = table[key]
            return value if value >= 0 else None
    return None
