"""
Historical fixing series and the indices they belong to.

FixingSeries is an immutable, ascending date -> value series. A provider
returns FixingSeries.empty() for an index with no registered history, so
callers never need an existence check.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Iterator, Mapping, Optional, Tuple, Union
import bisect

import pandas as pd

from .dates import DateUtils
from .fx import CurrencyPair, normalize_currency


class FixingSeries:
    """
    Immutable date -> float series with unique, ascending dates.

    Attributes:
        dates: Fixing dates, ascending
        values: Fixing values aligned with dates
    """

    __slots__ = ("_dates", "_values")

    def __init__(self, dates=(), values=()):
        if len(dates) != len(values):
            raise ValueError("Dates and values must have same length")
        pairs = sorted(zip(dates, values), key=lambda p: p[0])
        for (d0, _), (d1, _) in zip(pairs, pairs[1:]):
            if d0 == d1:
                raise ValueError(f"Duplicate fixing date: {d0.isoformat()}")

        self._dates: Tuple[date, ...] = tuple(d for d, _ in pairs)
        self._values: Tuple[float, ...] = tuple(float(v) for _, v in pairs)

    @classmethod
    def empty(cls) -> "FixingSeries":
        return cls()

    @classmethod
    def of(cls, fixings: Mapping[date, float]) -> "FixingSeries":
        """Series from a {date: value} mapping."""
        return cls(list(fixings.keys()), list(fixings.values()))

    @classmethod
    def from_pandas(cls, series: pd.Series) -> "FixingSeries":
        """Series from a pandas Series indexed by date or timestamp."""
        index = pd.to_datetime(series.index)
        if index.has_duplicates:
            dupes = sorted({d.date().isoformat() for d in index[index.duplicated()]})
            raise ValueError(f"Duplicate fixing dates: {dupes}")
        return cls([d.date() for d in index], series.to_numpy(dtype=float).tolist())

    @property
    def dates(self) -> Tuple[date, ...]:
        return self._dates

    @property
    def values(self) -> Tuple[float, ...]:
        return self._values

    @property
    def is_empty(self) -> bool:
        return not self._dates

    def get(self, d: date) -> float:
        """
        Fixing on date d.

        Raises:
            KeyError: If there is no fixing on d
        """
        value = self.get_or_none(d)
        if value is None:
            raise KeyError(f"No fixing on {d.isoformat()}")
        return value

    def get_or_none(self, d: date) -> Optional[float]:
        idx = bisect.bisect_left(self._dates, d)
        if idx < len(self._dates) and self._dates[idx] == d:
            return self._values[idx]
        return None

    def latest(self) -> Tuple[date, float]:
        """Most recent (date, value)."""
        if self.is_empty:
            raise ValueError("Fixing series is empty")
        return self._dates[-1], self._values[-1]

    def subseries(self, start: date, end: date) -> "FixingSeries":
        """Fixings with start <= date < end."""
        lo = bisect.bisect_left(self._dates, start)
        hi = bisect.bisect_left(self._dates, end)
        return FixingSeries(self._dates[lo:hi], self._values[lo:hi])

    def to_pandas(self) -> pd.Series:
        return pd.Series(self._values, index=pd.Index(self._dates, name="date"),
                         dtype=float, name="fixing")

    def items(self) -> Iterator[Tuple[date, float]]:
        return zip(self._dates, self._values)

    def __len__(self) -> int:
        return len(self._dates)

    def __iter__(self) -> Iterator[date]:
        return iter(self._dates)

    def __contains__(self, d: date) -> bool:
        return self.get_or_none(d) is not None

    def __eq__(self, other) -> bool:
        if not isinstance(other, FixingSeries):
            return NotImplemented
        return self._dates == other._dates and self._values == other._values

    def __hash__(self) -> int:
        return hash((self._dates, self._values))

    def __repr__(self) -> str:
        if self.is_empty:
            return "FixingSeries(empty)"
        return (f"FixingSeries({len(self)} fixings, "
                f"{self._dates[0].isoformat()}..{self._dates[-1].isoformat()})")


@dataclass(frozen=True)
class FxIndex:
    """
    FX fixing index, e.g. USD/KRW fixed in New York.

    Attributes:
        name: Index name, the key fixings are registered under
        base: Base currency
        counter: Counter currency
        fixing_lag_days: Business days from fixing to maturity
        holidays: Holiday dates of the fixing calendar
    """
    name: str
    base: str
    counter: str
    fixing_lag_days: int = 2
    holidays: FrozenSet[date] = field(default_factory=frozenset, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "base", normalize_currency(self.base))
        object.__setattr__(self, "counter", normalize_currency(self.counter))
        object.__setattr__(self, "holidays", frozenset(self.holidays))
        if self.base == self.counter:
            raise ValueError(f"FX index {self.name} needs two different currencies")
        if self.fixing_lag_days < 0:
            raise ValueError("fixing_lag_days must be non-negative")

    @property
    def currency_pair(self) -> CurrencyPair:
        return self.base, self.counter

    def maturity_from_fixing(self, fixing_date: date) -> date:
        """Settlement date of a fixing, fixing_lag_days business days later."""
        if self.fixing_lag_days == 0:
            return fixing_date
        return DateUtils.add_tenor(fixing_date, f"{self.fixing_lag_days}D", set(self.holidays))


IndexKey = Union[str, FxIndex]


def index_name(index: IndexKey) -> str:
    """Key under which an index's fixings are stored."""
    name = getattr(index, "name", index)
    if not isinstance(name, str) or not name:
        raise ValueError(f"Index must be a name or have a name: {index!r}")
    return name


__all__ = [
    "FixingSeries",
    "FxIndex",
    "IndexKey",
    "index_name",
]
