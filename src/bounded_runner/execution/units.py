from __future__ import annotations

from datetime import timedelta
from enum import Enum


class TimeUnit(Enum):
    """Granularity of a timeout amount, valued in seconds per unit.

    Example:
        ```python
        seconds = TimeUnit.MILLISECONDS.to_seconds(250)  # 0.25
        ```
    """

    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    def __str__(self) -> str:
        """Render the unit as its upper-case name.

        Example:
            ```python
            str(TimeUnit.SECONDS)  # "SECONDS"
            ```
        """
        return self.name

    def to_seconds(self, amount: float) -> float:
        """Convert an amount in this unit to seconds.

        Example:
            ```python
            TimeUnit.MINUTES.to_seconds(2)  # 120.0
            ```
        """
        return amount * self.value

    def to_timedelta(self, amount: float) -> timedelta:
        """Convert an amount in this unit to a timedelta.

        Example:
            ```python
            TimeUnit.HOURS.to_timedelta(1)  # timedelta(hours=1)
            ```
        """
        return timedelta(seconds=self.to_seconds(amount))

    @classmethod
    def parse(cls, value: "TimeUnit | str") -> "TimeUnit":
        """Resolve a unit from a member, a name, or a short alias.

        Example:
            ```python
            TimeUnit.parse("ms") is TimeUnit.MILLISECONDS
            ```
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValueError(f"Unsupported time unit: {value!r}")
        key = value.strip().lower()
        if key in _ALIASES:
            return _ALIASES[key]
        raise ValueError(f"Unsupported time unit: {value!r}")


_ALIASES: dict[str, TimeUnit] = {
    "ns": TimeUnit.NANOSECONDS,
    "nanosecond": TimeUnit.NANOSECONDS,
    "nanoseconds": TimeUnit.NANOSECONDS,
    "us": TimeUnit.MICROSECONDS,
    "microsecond": TimeUnit.MICROSECONDS,
    "microseconds": TimeUnit.MICROSECONDS,
    "ms": TimeUnit.MILLISECONDS,
    "millisecond": TimeUnit.MILLISECONDS,
    "milliseconds": TimeUnit.MILLISECONDS,
    "s": TimeUnit.SECONDS,
    "sec": TimeUnit.SECONDS,
    "second": TimeUnit.SECONDS,
    "seconds": TimeUnit.SECONDS,
    "m": TimeUnit.MINUTES,
    "min": TimeUnit.MINUTES,
    "minute": TimeUnit.MINUTES,
    "minutes": TimeUnit.MINUTES,
    "h": TimeUnit.HOURS,
    "hour": TimeUnit.HOURS,
    "hours": TimeUnit.HOURS,
    "d": TimeUnit.DAYS,
    "day": TimeUnit.DAYS,
    "days": TimeUnit.DAYS,
}


def unit_aliases(unit: TimeUnit) -> list[str]:
    """Return the accepted short spellings of a unit, sorted.

    Example:
        ```python
        unit_aliases(TimeUnit.SECONDS)  # ["s", "sec", "second", "seconds"]
        ```
    """
    return sorted(alias for alias, member in _ALIASES.items() if member is unit)
