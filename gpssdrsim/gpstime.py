"""Calendar and GPS time representations."""

from __future__ import annotations

from dataclasses import dataclass

SECONDS_IN_WEEK = 604800.0
SECONDS_IN_HALF_WEEK = 302400.0
SECONDS_IN_DAY = 86400.0
SECONDS_IN_HOUR = 3600.0
SECONDS_IN_MINUTE = 60.0

# Cumulative day count at the start of each month in a non-leap year.
_DAYS_BEFORE_MONTH = (0, 31, 59, 90, 120, 151, 181, 212, 243, 273, 304, 334)


def _trunc_divmod(a: int, b: int) -> tuple[int, int]:
    """Integer division rounding towards zero, with the matching remainder."""
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return q, a - b * q


@dataclass(frozen=True)
class GpsTime:
    """A GPS week number and the seconds elapsed inside that week."""

    week: int
    sec: float

    def __sub__(self, other: GpsTime) -> float:
        """Return the difference between two GPS times in seconds."""
        if not isinstance(other, GpsTime):
            return NotImplemented
        return (self.sec - other.sec) + (self.week - other.week) * SECONDS_IN_WEEK

    def shifted(self, seconds: float) -> GpsTime:
        """Return a time moved by ``seconds`` within the same week number."""
        return GpsTime(self.week, self.sec + seconds)


@dataclass(frozen=True)
class DateTime:
    """A UTC calendar date and time of day."""

    y: int
    m: int
    d: int
    hh: int
    mm: int
    sec: float

    def __str__(self) -> str:
        return (
            f"{self.y:4d}/{self.m:02d}/{self.d:02d},"
            f"{self.hh:02d}:{self.mm:02d}:{self.sec:02.0f}"
        )


def date_to_gps(t: DateTime) -> GpsTime:
    """Convert a calendar date and time into GPS week and seconds of week."""
    if not 1 <= t.m <= 12:
        raise ValueError(f"invalid month: {t.m}")

    ye = t.y - 1980

    # Leap days since 5/6 January 1980.
    lpdays = _trunc_divmod(ye, 4)[0] + 1
    if _trunc_divmod(ye, 4)[1] == 0 and t.m <= 2:
        lpdays -= 1

    # Days elapsed since 5/6 January 1980.
    de = ye * 365 + _DAYS_BEFORE_MONTH[t.m - 1] + t.d + lpdays - 6

    week, day = _trunc_divmod(de, 7)
    sec = (
        day * SECONDS_IN_DAY
        + t.hh * SECONDS_IN_HOUR
        + t.mm * SECONDS_IN_MINUTE
        + t.sec
    )
    return GpsTime(week, float(sec))