"""
Date utilities for market data.

Provides:
- Tenor parsing and normalisation ("6m" -> "6M")
- Tenor addition with business-day handling for day tenors
"""

from datetime import date, timedelta
from typing import Optional, Tuple
import re

from .conventions import is_business_day


class DateUtils:
    """Utility class for date manipulation in rates contexts."""

    # Tenor regex pattern: number + unit (D/W/M/Y)
    TENOR_PATTERN = re.compile(r'^(\d+)([DWMY])$', re.IGNORECASE)

    @staticmethod
    def parse_tenor(tenor: str) -> Tuple[int, str]:
        """
        Parse a tenor string into (amount, unit).

        Args:
            tenor: Tenor string like "1D", "3M", "2Y"

        Returns:
            Tuple of (amount, unit) where unit is D/W/M/Y

        Raises:
            ValueError: If tenor format is invalid
        """
        match = DateUtils.TENOR_PATTERN.match(str(tenor).upper().strip())
        if not match:
            raise ValueError(f"Invalid tenor format: {tenor}. Expected format like '3M', '2Y'")

        return int(match.group(1)), match.group(2).upper()

    @staticmethod
    def normalize_tenor(tenor: str) -> str:
        """Canonical upper-case form of a tenor, e.g. " 6m" -> "6M"."""
        amount, unit = DateUtils.parse_tenor(tenor)
        return f"{amount}{unit}"

    @staticmethod
    def add_tenor(start: date, tenor: str, holidays: Optional[set] = None) -> date:
        """
        Add a tenor to a date.

        Day tenors count business days; other units are calendar based and
        clip to month end ("1M" from Jan 31 is Feb 28/29).
        """
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            result = start
            days_added = 0
            while days_added < amount:
                result += timedelta(days=1)
                if is_business_day(result, holidays):
                    days_added += 1
            return result

        if unit == 'W':
            return start + timedelta(weeks=amount)

        months = amount if unit == 'M' else 12 * amount
        year = start.year + (start.month + months - 1) // 12
        month = (start.month + months - 1) % 12 + 1
        day = min(start.day, _days_in_month(year, month))
        return date(year, month, day)

    @staticmethod
    def tenor_to_years(tenor: str) -> float:
        """Convert tenor to approximate year fraction."""
        amount, unit = DateUtils.parse_tenor(tenor)

        if unit == 'D':
            return amount / 365.0
        elif unit == 'W':
            return amount * 7 / 365.0
        elif unit == 'M':
            return amount / 12.0
        return float(amount)


def _days_in_month(year: int, month: int) -> int:
    """Return number of days in a month."""
    if month == 12:
        return 31
    return (date(year, month + 1, 1) - date(year, month, 1)).days


__all__ = [
    "DateUtils",
]
