"""
Exceptions raised by market data construction and queries.

All errors derive from MarketDataError (a ValueError). Lookup failures
(missing curve, unknown currency) also derive from KeyError so that
mapping-style callers can catch them the usual way.

Hierarchy:
- MarketDataError
    - InvalidRateError          bad FX quote (non-positive, self-rate != 1)
    - DisconnectedCurrencyError FX quote graph has more than one island
    - InconsistentRateError     two FX paths disagree beyond tolerance
    - InvalidCurveError         curve nodes violate ordering/finiteness
    - InvalidDateError          query date before valuation date
    - NoCurveError              no discount curve for currency
    - UnknownCurrencyError      currency not in the FX matrix
"""

from datetime import date
from typing import Optional, Sequence, Tuple


class MarketDataError(ValueError):
    """Base exception for market data failures."""


class InvalidRateError(MarketDataError):
    """FX quote is not a valid positive rate."""

    def __init__(self, ccy_a: str, ccy_b: str, rate: float, reason: str):
        self.ccy_a = ccy_a
        self.ccy_b = ccy_b
        self.rate = rate
        super().__init__(f"Invalid FX rate {ccy_a}/{ccy_b} = {rate}: {reason}")


class DisconnectedCurrencyError(MarketDataError):
    """FX quotes do not link every currency to every other currency."""

    def __init__(self, groups: Sequence[Tuple[str, ...]]):
        self.groups = tuple(tuple(g) for g in groups)
        islands = "; ".join("{" + ", ".join(g) + "}" for g in self.groups)
        super().__init__(
            f"FX quotes form {len(self.groups)} disconnected currency groups: {islands}"
        )


class InconsistentRateError(MarketDataError):
    """A quoted FX rate disagrees with the rate implied by other quotes."""

    def __init__(
        self,
        ccy_a: str,
        ccy_b: str,
        quoted: float,
        implied: float,
        tolerance: float
    ):
        self.ccy_a = ccy_a
        self.ccy_b = ccy_b
        self.quoted = quoted
        self.implied = implied
        self.tolerance = tolerance
        super().__init__(
            f"FX rate {ccy_a}/{ccy_b} quoted as {quoted!r} but other quotes "
            f"imply {implied!r} (relative tolerance {tolerance:g})"
        )


class InvalidCurveError(MarketDataError):
    """Curve definition or curve output is invalid."""

    def __init__(self, name: Optional[str], message: str):
        self.name = name
        super().__init__(f"[{name or 'UNNAMED'}] {message}")


class InvalidDateError(MarketDataError):
    """Query date precedes the valuation date."""

    def __init__(self, query_date: date, valuation_date: date):
        self.query_date = query_date
        self.valuation_date = valuation_date
        super().__init__(
            f"Date {query_date.isoformat()} is before valuation date "
            f"{valuation_date.isoformat()}"
        )


class NoCurveError(MarketDataError, KeyError):
    """No discount curve is registered for the currency."""

    def __init__(self, currency: str, available: Sequence[str] = ()):
        self.currency = currency
        self.available = tuple(available)
        super().__init__(
            f"No discount curve for currency '{currency}'. "
            f"Available: {list(self.available)}"
        )

    def __str__(self) -> str:
        return self.args[0]


class UnknownCurrencyError(MarketDataError, KeyError):
    """Currency was never registered in the FX matrix."""

    def __init__(self, currency: str, available: Sequence[str] = ()):
        self.currency = currency
        self.available = tuple(available)
        super().__init__(
            f"Currency '{currency}' not in FX matrix. "
            f"Available: {list(self.available)}"
        )

    def __str__(self) -> str:
        return self.args[0]


__all__ = [
    "MarketDataError",
    "InvalidRateError",
    "DisconnectedCurrencyError",
    "InconsistentRateError",
    "InvalidCurveError",
    "InvalidDateError",
    "NoCurveError",
    "UnknownCurrencyError",
]
