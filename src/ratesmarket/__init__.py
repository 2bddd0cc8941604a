"""
RatesMarket: immutable multi-currency market data for pricing

A small library for:
- Interpolated discount curves per currency
- Triangulation-consistent FX rate matrices
- Historical fixing series
- A frozen market data provider combining all three

Scope: read-only market snapshots; no calibration, no trade valuation.
"""

__version__ = "0.1.0"

# Core modules
from .conventions import DayCount, MarketConventions, year_fraction
from .dates import DateUtils
from .errors import (
    MarketDataError,
    InvalidRateError,
    DisconnectedCurrencyError,
    InconsistentRateError,
    InvalidCurveError,
    InvalidDateError,
    NoCurveError,
    UnknownCurrencyError,
)

# Curves
from .curves import (
    Curve,
    CurveValueType,
    create_flat_curve,
    LinearInterpolator,
    CubicSplineInterpolator,
    LogLinearInterpolator,
)

# FX
from .fx import FxRateMatrix, FxRateMatrixBuilder

# Fixings
from .timeseries import FixingSeries, FxIndex

# Market state
from .market_state import MarketDataProvider, MarketDataProviderBuilder

# Volatility surface metadata
from .vol import (
    SimpleStrike,
    MoneynessStrike,
    LogMoneynessStrike,
    DeltaStrike,
    ParameterMetadata,
    VolSurfacePeriodParameterMetadata,
)

__all__ = [
    # Version
    "__version__",
    # Conventions
    "DayCount",
    "MarketConventions",
    "year_fraction",
    # Dates
    "DateUtils",
    # Errors
    "MarketDataError",
    "InvalidRateError",
    "DisconnectedCurrencyError",
    "InconsistentRateError",
    "InvalidCurveError",
    "InvalidDateError",
    "NoCurveError",
    "UnknownCurrencyError",
    # Curves
    "Curve",
    "CurveValueType",
    "create_flat_curve",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "LogLinearInterpolator",
    # FX
    "FxRateMatrix",
    "FxRateMatrixBuilder",
    # Fixings
    "FixingSeries",
    "FxIndex",
    # Market state
    "MarketDataProvider",
    "MarketDataProviderBuilder",
    # Volatility
    "SimpleStrike",
    "MoneynessStrike",
    "LogMoneynessStrike",
    "DeltaStrike",
    "ParameterMetadata",
    "VolSurfacePeriodParameterMetadata",
]
