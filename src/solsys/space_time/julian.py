"""Julian date handling for ephemeris lookups.

Dates are converted with the Meeus algorithm from "Astronomical Algorithms"
(2nd ed.), using the proleptic Gregorian calendar. No time scale conversion
happens here: a datetime is read as whatever time scale the caller intends
(normally TDB for ephemeris lookups).
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Tuple, Union

SECONDS_PER_DAY = 86400.0


def split(tt: float) -> Tuple[float, float]:
    """Split a number into whole and fractional parts.

    The fractional part is never negative: for negative input with a
    nonzero fraction the whole part is the next more negative integer.

    Args:
        tt: Number to split

    Returns:
        Tuple of (whole, fraction) with fraction in [0, 1)
    """
    fraction, whole = math.modf(tt)
    if tt >= 0.0 or fraction == 0.0:
        return whole, fraction
    return whole - 1.0, fraction + 1.0


def gregorian_to_jdn(year: int, month: int, day: int) -> int:
    """Convert a Gregorian date to a Julian Day Number.

    Args:
        year: Year in the Gregorian calendar
        month: Month (1-12)
        day: Day of month

    Returns:
        Julian Day Number (the JD at noon of that date)
    """
    # Jan & Feb are months 13 & 14 of the previous year
    if month <= 2:
        year -= 1
        month += 12

    a = year // 100
    b = 2 - a + (a // 4)

    return int(365.25 * (year + 4716)) + int(30.6001 * (month + 1)) + day + b - 1524


def _day_fraction(dt: datetime) -> float:
    total_seconds = (
        dt.hour * 3600 + dt.minute * 60 + dt.second + dt.microsecond / 1_000_000
    )
    return total_seconds / SECONDS_PER_DAY


@dataclass(frozen=True)
class TwoPartDate:
    """A Julian date carried as two parts for extra precision.

    Any split is allowed; whole + fraction is the date.
    """

    whole: float
    fraction: float = 0.0

    @property
    def jd(self) -> float:
        return self.whole + self.fraction

    @classmethod
    def from_julian(cls, jd: float) -> "TwoPartDate":
        whole, fraction = split(jd)
        return cls(whole, fraction)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "TwoPartDate":
        """Build a date from a timezone-aware datetime.

        The whole part is the preceding midnight, so no precision is lost
        to the magnitude of the day count.

        Raises:
            ValueError: If dt is naive
        """
        if dt.tzinfo is None:
            raise ValueError("datetime must be timezone-aware")
        dt = dt.astimezone(timezone.utc)
        jdn = gregorian_to_jdn(dt.year, dt.month, dt.day)
        return cls(jdn - 0.5, _day_fraction(dt))

    def midnight_parts(self) -> Tuple[float, float]:
        """Normalize to (last midnight at or before the date, fraction of day).

        Midnight falls on a half-integer JD. The fraction is in [0, 1).
        """
        whole, whole_fraction = split(self.whole - 0.5)
        extra, fraction = split(self.fraction)
        whole = whole + extra + 0.5
        carry, fraction = split(whole_fraction + fraction)
        return whole + carry, fraction


EpochLike = Union[TwoPartDate, float, datetime]


def as_two_part_date(epoch: EpochLike) -> TwoPartDate:
    """Coerce a float JD, a datetime, or a TwoPartDate to a TwoPartDate."""
    if isinstance(epoch, TwoPartDate):
        return epoch
    if isinstance(epoch, datetime):
        return TwoPartDate.from_datetime(epoch)
    return TwoPartDate(float(epoch), 0.0)
