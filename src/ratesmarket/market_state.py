"""
Market data provider: the read-only market snapshot used for pricing.

Bundles, for one valuation date:
- Discount curves by currency
- An FX rate matrix covering any number of currencies
- Historical fixing series by index

Design principles:
- Immutable after construction, safe to share between any number of
  concurrent pricing computations
- Scenarios (bumped curves, shifted FX) are new providers built from
  to_builder(); the original is never mutated
- Every failed query raises a typed error; no NaN, no silent default
"""

from dataclasses import dataclass, field
from datetime import date
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple
import logging

import numpy as np
import pandas as pd

from .conventions import DayCount, MarketConventions
from .curves.curve import Curve
from .errors import InvalidDateError, NoCurveError
from .fx import FxRateMatrix, FxRateMatrixBuilder, normalize_currency
from .timeseries import FixingSeries, IndexKey, index_name


logger = logging.getLogger(__name__)


def _as_fixing_series(series) -> FixingSeries:
    if isinstance(series, FixingSeries):
        return series
    if isinstance(series, pd.Series):
        return FixingSeries.from_pandas(series)
    if isinstance(series, Mapping):
        return FixingSeries.of(series)
    raise TypeError(f"Cannot use {type(series).__name__} as a fixing series")


@dataclass(frozen=True)
class MarketDataProvider:
    """
    Immutable multi-currency market data snapshot.

    Attributes:
        valuation_date: Market valuation date (time 0 of every curve)
        day_count: Converts dates to curve times
        discount_curves: Discount curve per currency (read-only)
        fx_matrix: Spot FX rates between all known currencies
        fixings: Historical fixing series per index name (read-only)

    Not every FX currency needs a curve and not every curve currency needs
    to be in the FX matrix; single-currency providers are valid.
    """
    valuation_date: date
    day_count: DayCount = DayCount.ACT_360
    discount_curves: Mapping[str, Curve] = field(default_factory=dict)
    fx_matrix: FxRateMatrix = field(default_factory=FxRateMatrix.empty)
    fixings: Mapping[str, FixingSeries] = field(default_factory=dict)

    def __post_init__(self):
        """Freeze mappings and normalise keys."""
        if not hasattr(self.day_count, "year_fraction"):
            raise TypeError(f"day_count must provide year_fraction(), got {self.day_count!r}")

        curves = {normalize_currency(ccy): curve for ccy, curve in self.discount_curves.items()}
        fixings = {index_name(idx): _as_fixing_series(s) for idx, s in self.fixings.items()}

        object.__setattr__(self, "discount_curves", MappingProxyType(curves))
        object.__setattr__(self, "fixings", MappingProxyType(fixings))

    def _key(self) -> Tuple:
        return (
            self.valuation_date,
            self.day_count,
            self.fx_matrix,
            frozenset(self.discount_curves.items()),
            frozenset(self.fixings.items()),
        )

    def __eq__(self, other) -> bool:
        if not isinstance(other, MarketDataProvider):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    @classmethod
    def builder(
        cls,
        valuation_date: date,
        conventions: Optional[MarketConventions] = None
    ) -> "MarketDataProviderBuilder":
        return MarketDataProviderBuilder(valuation_date, conventions)

    # ------------------------------------------------------------------
    # Discounting
    # ------------------------------------------------------------------

    @property
    def currencies(self) -> Tuple[str, ...]:
        """Currencies with a discount curve."""
        return tuple(self.discount_curves)

    @property
    def fx_currencies(self) -> Tuple[str, ...]:
        """Currencies in the FX matrix."""
        return self.fx_matrix.currencies

    def discount_curve(self, currency: str) -> Curve:
        """
        Discount curve for a currency.

        Raises:
            NoCurveError: If no curve is registered for currency
        """
        ccy = normalize_currency(currency)
        try:
            return self.discount_curves[ccy]
        except KeyError:
            raise NoCurveError(ccy, self.currencies) from None

    def relative_time(self, d: date) -> float:
        """
        Year fraction from valuation date to d under the provider day count.

        Raises:
            InvalidDateError: If d is before the valuation date and the day
                count does not allow negative periods
        """
        if d < self.valuation_date and not getattr(self.day_count, "allows_negative_periods", False):
            raise InvalidDateError(d, self.valuation_date)
        return self.day_count.year_fraction(self.valuation_date, d)

    def discount_factor(self, currency: str, d: date) -> float:
        """
        Discount factor for a currency from valuation date to d.

        Args:
            currency: Currency code, e.g. "USD"
            d: Payment date

        Returns:
            Discount factor, 1.0 on the valuation date for zero rate curves

        Raises:
            NoCurveError: If no curve is registered for currency
            InvalidDateError: If d is before the valuation date
        """
        curve = self.discount_curve(currency)
        return curve.discount_factor(self.relative_time(d))

    def discount_factors(self, currency: str, dates: Iterable[date]) -> np.ndarray:
        """Discount factors for several dates, as an array."""
        curve = self.discount_curve(currency)
        return np.array([curve.discount_factor(self.relative_time(d)) for d in dates])

    def zero_rate(self, currency: str, d: date) -> float:
        """Continuously compounded zero rate from valuation date to d."""
        return self.discount_curve(currency).zero_rate(self.relative_time(d))

    # ------------------------------------------------------------------
    # FX
    # ------------------------------------------------------------------

    def fx_rate(self, ccy_a: str, ccy_b: str) -> float:
        """
        Units of ccy_b per unit of ccy_a.

        Raises:
            UnknownCurrencyError: If either currency is not in the FX matrix
        """
        return self.fx_matrix.rate(ccy_a, ccy_b)

    def convert(self, amount: float, ccy_a: str, ccy_b: str) -> float:
        """Convert amount from ccy_a to ccy_b at spot."""
        return self.fx_matrix.convert(amount, ccy_a, ccy_b)

    # ------------------------------------------------------------------
    # Fixings
    # ------------------------------------------------------------------

    def time_series(self, index: IndexKey) -> FixingSeries:
        """
        Fixing history of an index.

        Returns an empty series when nothing was registered for the index.
        """
        return self.fixings.get(index_name(index), FixingSeries.empty())

    # ------------------------------------------------------------------
    # Scenarios
    # ------------------------------------------------------------------

    def to_builder(self) -> "MarketDataProviderBuilder":
        """Builder pre-loaded with this provider's data."""
        builder = MarketDataProviderBuilder(
            self.valuation_date,
            MarketConventions(fx_tolerance=self.fx_matrix.tolerance)
        )
        builder.day_count(self.day_count)
        builder.discount_curves(self.discount_curves)
        builder.fx_matrix(self.fx_matrix)
        for name, series in self.fixings.items():
            builder.time_series(name, series)
        return builder

    def with_discount_curve(self, currency: str, curve: Curve) -> "MarketDataProvider":
        """New provider with one discount curve added or replaced."""
        return self.to_builder().discount_curve(currency, curve).build()

    def with_fx_rate(self, ccy_a: str, ccy_b: str, rate: float) -> "MarketDataProvider":
        """
        New provider with one FX rate overridden.

        The pair may be quoted, implied or new; the other rates are
        re-triangulated around it.
        """
        return self.to_builder().fx_rate(ccy_a, ccy_b, rate).build()

    def bump_curve(self, currency: str, bp: float) -> "MarketDataProvider":
        """New provider with one currency's curve shifted in parallel by bp."""
        return self.with_discount_curve(currency, self.discount_curve(currency).bump_parallel(bp))

    def to_dict(self) -> Dict:
        """Summary for reporting."""
        return {
            'valuation_date': self.valuation_date.isoformat(),
            'day_count': str(self.day_count),
            'discount_curves': {ccy: curve.name for ccy, curve in self.discount_curves.items()},
            'fx_currencies': list(self.fx_matrix.currencies),
            'fixings': {name: len(series) for name, series in self.fixings.items()},
        }


class MarketDataProviderBuilder:
    """
    Accumulates curves, FX quotes and fixings for a MarketDataProvider.

    build() checks only what each component checks for itself: curves are
    validated when constructed, FX quotes when the matrix is built.
    """

    def __init__(self, valuation_date: date, conventions: Optional[MarketConventions] = None):
        conventions = conventions or MarketConventions.default()
        self._valuation_date = valuation_date
        self._day_count = conventions.day_count
        self._tolerance = conventions.fx_tolerance
        self._curves: Dict[str, Curve] = {}
        self._fx_base: Optional[FxRateMatrix] = None
        self._fx_quotes = FxRateMatrixBuilder(tolerance=self._tolerance)
        self._fixings: Dict[str, FixingSeries] = {}

    def valuation_date(self, valuation_date: date) -> "MarketDataProviderBuilder":
        self._valuation_date = valuation_date
        return self

    def day_count(self, day_count: DayCount) -> "MarketDataProviderBuilder":
        self._day_count = day_count
        return self

    def discount_curve(self, currency: str, curve: Curve) -> "MarketDataProviderBuilder":
        """Register a discount curve; a later curve for the same currency wins."""
        ccy = normalize_currency(currency)
        if ccy in self._curves:
            logger.debug("Replacing %s discount curve %s with %s", ccy, self._curves[ccy].name, curve.name)
        self._curves[ccy] = curve
        return self

    def discount_curves(self, curves: Mapping[str, Curve]) -> "MarketDataProviderBuilder":
        for ccy, curve in curves.items():
            self.discount_curve(ccy, curve)
        return self

    def fx_matrix(self, matrix: FxRateMatrix) -> "MarketDataProviderBuilder":
        """Use matrix as the FX base; quotes added earlier are discarded."""
        if self._fx_quotes.quotes:
            logger.debug("FX matrix replaces %d earlier quotes", len(self._fx_quotes.quotes))
        self._fx_base = matrix
        self._fx_quotes = FxRateMatrixBuilder(tolerance=self._tolerance)
        return self

    def fx_rate(self, ccy_a: str, ccy_b: str, rate: float) -> "MarketDataProviderBuilder":
        """Add an FX quote on top of any FX matrix already set."""
        self._fx_quotes.add_rate(ccy_a, ccy_b, rate)
        return self

    def time_series(self, index: IndexKey, series) -> "MarketDataProviderBuilder":
        """Register fixings (FixingSeries, {date: value} or pandas Series) for an index."""
        self._fixings[index_name(index)] = _as_fixing_series(series)
        return self

    def _build_fx(self) -> FxRateMatrix:
        quotes = self._fx_quotes
        if not quotes.currencies:
            return self._fx_base if self._fx_base is not None else FxRateMatrix.empty()

        if self._fx_base is None:
            return quotes.build()

        # Quotes added here win over the base matrix, under this builder's tolerance
        rates: Dict = {(ccy, ccy): 1.0 for ccy in quotes.currencies}
        rates.update(quotes.quotes)
        return self._fx_base.with_rates(rates, tolerance=self._tolerance)

    def build(self) -> MarketDataProvider:
        """
        Create the provider.

        Raises:
            DisconnectedCurrencyError: If the FX quotes are not connected
            InconsistentRateError: If the FX quotes disagree
        """
        provider = MarketDataProvider(
            valuation_date=self._valuation_date,
            day_count=self._day_count,
            discount_curves=dict(self._curves),
            fx_matrix=self._build_fx(),
            fixings=dict(self._fixings),
        )
        logger.debug(
            "Built market data for %s: curves=%s fx=%s fixings=%d",
            provider.valuation_date, list(provider.currencies),
            list(provider.fx_currencies), len(provider.fixings)
        )
        return provider


__all__ = [
    "MarketDataProvider",
    "MarketDataProviderBuilder",
]
