"""Helpers for validating and parsing ring buffer capacities."""

import re

_CAPACITY_PATTERN = re.compile(r"(?P<count>\d+)(?P<unit>[km]?)")
_UNIT_FACTORS = {"": 1, "k": 1024, "m": 1024**2}


def parse_capacity(value: int | str) -> int:
    """Turn ``8``, ``"64"``, ``"4k"`` or ``"1M"`` into a slot count.

    Units are 1024-based and case-insensitive; surrounding whitespace is
    ignored.

    Raises:
        ValueError: If ``value`` is not a whole number with an optional
            ``k`` or ``m`` suffix.
    """
    if isinstance(value, int):
        return value

    match = _CAPACITY_PATTERN.fullmatch(str(value).strip().lower())
    if match is None:
        raise ValueError(f"Invalid capacity value: {value!r}")
    return int(match["count"]) * _UNIT_FACTORS[match["unit"]]


def is_power_of_two(value: int) -> bool:
    """Return True for 1, 2, 4, 8, ..."""
    return value > 0 and value & (value - 1) == 0


def next_power_of_two(value: int) -> int:
    """Return the smallest power of two that is >= ``value``."""
    if value <= 1:
        return 1
    return 1 << (value - 1).bit_length()


def capacity_errors(capacity: object) -> list[str]:
    """Return why ``capacity`` cannot be used as a slot count, if it can't."""
    if isinstance(capacity, bool) or not isinstance(capacity, int):
        return [f"capacity must be an integer, got {capacity!r}"]
    if capacity < 1:
        return [f"capacity must be >= 1, got {capacity}"]
    if not is_power_of_two(capacity):
        return [
            f"capacity must be a power of two, got {capacity} "
            f"(next is {next_power_of_two(capacity)})"
        ]
    return []
