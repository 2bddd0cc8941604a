"""
Day count conventions, business days and market data presets.

Supported Day Counts:
- ACT/360: Actual days / 360 (money markets, OIS)
- ACT/365: Actual days / 365
- ACT/ACT: Actual days / actual days in year (ISDA)
- 30/360: 30 days per month / 360 (US bond basis)

Year fractions are signed: a period running backwards in time gives a
negative fraction. Whether a caller accepts such periods is decided by the
convention's ``allows_negative_periods`` flag.
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional
import calendar


# Relative tolerance for FX triangulation checks
DEFAULT_FX_TOLERANCE = 1e-8


class DayCount(Enum):
    """Day count convention enumeration."""
    ACT_360 = "ACT/360"
    ACT_365 = "ACT/365"
    ACT_ACT = "ACT/ACT"
    THIRTY_360 = "30/360"

    @classmethod
    def from_string(cls, s: str) -> "DayCount":
        """Parse day count from string representation."""
        key = s.upper().replace(" ", "").replace("/", "")
        mapping = {
            "ACT360": cls.ACT_360,
            "ACT365": cls.ACT_365,
            "ACT365F": cls.ACT_365,
            "ACTACT": cls.ACT_ACT,
            "30360": cls.THIRTY_360,
        }
        if key in mapping:
            return mapping[key]
        raise ValueError(f"Unknown day count convention: {s}")

    @property
    def allows_negative_periods(self) -> bool:
        """Standard conventions only measure forward in time."""
        return False

    def year_fraction(self, start: date, end: date) -> float:
        """Year fraction from start to end under this convention."""
        return year_fraction(start, end, self)

    def __str__(self) -> str:
        return self.value


def _act_act_isda(start: date, end: date) -> float:
    """ACT/ACT ISDA for start < end: split the period at year boundaries."""
    if start.year == end.year:
        return (end - start).days / (366 if calendar.isleap(start.year) else 365)

    first = (date(start.year + 1, 1, 1) - start).days
    first /= 366 if calendar.isleap(start.year) else 365
    last = (end - date(end.year, 1, 1)).days
    last /= 366 if calendar.isleap(end.year) else 365
    return first + (end.year - start.year - 1) + last


def _thirty_360(start: date, end: date) -> float:
    d1 = min(start.day, 30)
    d2 = end.day
    if d2 == 31 and d1 == 30:
        d2 = 30
    return (360 * (end.year - start.year) + 30 * (end.month - start.month) + (d2 - d1)) / 360.0


def year_fraction(start: date, end: date, day_count: DayCount) -> float:
    """
    Calculate year fraction between two dates using specified day count convention.

    Args:
        start: Start date
        end: End date
        day_count: Day count convention

    Returns:
        Year fraction as float, negative when end is before start

    Conventions:
        ACT/360: (end - start).days / 360
        ACT/365: (end - start).days / 365
        ACT/ACT: Actual days / actual days in period's year(s)
        30/360: Assumes 30 days per month, 360 days per year
    """
    if start == end:
        return 0.0
    if end < start:
        return -year_fraction(end, start, day_count)

    actual_days = (end - start).days

    if day_count == DayCount.ACT_360:
        return actual_days / 360.0
    elif day_count == DayCount.ACT_365:
        return actual_days / 365.0
    elif day_count == DayCount.ACT_ACT:
        return _act_act_isda(start, end)
    elif day_count == DayCount.THIRTY_360:
        return _thirty_360(start, end)
    else:
        raise ValueError(f"Unknown day count: {day_count}")


def is_business_day(d: date, holidays: Optional[set] = None) -> bool:
    """
    Check if a date is a business day.

    Uses weekend-only calendar by default (Saturday/Sunday are non-business days).
    """
    if d.weekday() >= 5:
        return False
    if holidays and d in holidays:
        return False
    return True


@dataclass(frozen=True)
class MarketConventions:
    """
    Defaults applied when building market data.

    Attributes:
        day_count: Day count used to turn dates into curve times
        fx_tolerance: Relative tolerance for FX triangulation consistency
        interpolation: Default curve interpolation method name
    """
    day_count: DayCount = DayCount.ACT_360
    fx_tolerance: float = DEFAULT_FX_TOLERANCE
    interpolation: str = "linear"

    def __post_init__(self):
        if not self.fx_tolerance > 0:
            raise ValueError(f"fx_tolerance must be positive, got {self.fx_tolerance}")

    @classmethod
    def default(cls) -> "MarketConventions":
        """ACT/360 times, 1e-8 FX tolerance, linear curves."""
        return cls()

    @classmethod
    def strict(cls) -> "MarketConventions":
        """Tighter FX consistency check for fully synthetic market data."""
        return cls(fx_tolerance=1e-12)


__all__ = [
    "DEFAULT_FX_TOLERANCE",
    "DayCount",
    "MarketConventions",
    "year_fraction",
    "is_business_day",
]
