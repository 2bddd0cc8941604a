"""
Shared market data fixtures.

Each factory builds a fresh value on every call; nothing is shared between
tests at module level.
"""

from datetime import date

import pytest

from ratesmarket import (
    Curve,
    DayCount,
    FixingSeries,
    FxIndex,
    FxRateMatrix,
    MarketDataProvider,
)


VALUATION_DATE = date(2011, 11, 10)
EUR_USD = 1.40
USD_KRW = 1111.11
GBP_USD = 1.50

DSC_TIMES = [0.0, 0.5, 1.0, 2.0, 5.0]
DSC_RATES = {
    "USD": [0.0100, 0.0120, 0.0120, 0.0140, 0.0140],
    "EUR": [0.0150, 0.0125, 0.0150, 0.0175, 0.0150],
    "GBP": [0.0160, 0.0135, 0.0160, 0.0185, 0.0160],
    "KRW": [0.0350, 0.0325, 0.0350, 0.0375, 0.0350],
}


def make_curve(currency: str) -> Curve:
    return Curve(f"{currency} Dsc", DSC_TIMES, DSC_RATES[currency],
                 day_count=DayCount.ACT_360, interpolation="linear")


def make_usd_krw_index() -> FxIndex:
    return FxIndex(name="USD/KRW", base="USD", counter="KRW", fixing_lag_days=2)


def make_fx_matrix() -> FxRateMatrix:
    return (
        FxRateMatrix.builder()
        .add_rate("EUR", "USD", EUR_USD)
        .add_rate("KRW", "USD", 1.0 / USD_KRW)
        .add_rate("GBP", "USD", GBP_USD)
        .build()
    )


def make_provider() -> MarketDataProvider:
    """EUR, USD, GBP and KRW curves with a connected FX matrix."""
    builder = MarketDataProvider.builder(VALUATION_DATE).day_count(DayCount.ACT_360)
    for ccy in ("EUR", "USD", "GBP", "KRW"):
        builder.discount_curve(ccy, make_curve(ccy))
    return (
        builder
        .fx_matrix(make_fx_matrix())
        .time_series(make_usd_krw_index(), FixingSeries.empty())
        .build()
    )


def make_provider_eur_usd() -> MarketDataProvider:
    """EUR and USD only, FX quoted USD->EUR."""
    return (
        MarketDataProvider.builder(VALUATION_DATE)
        .day_count(DayCount.ACT_360)
        .discount_curve("EUR", make_curve("EUR"))
        .discount_curve("USD", make_curve("USD"))
        .fx_matrix(FxRateMatrix.of("USD", "EUR", 1.0 / EUR_USD))
        .build()
    )


@pytest.fixture
def fx_matrix() -> FxRateMatrix:
    return make_fx_matrix()


@pytest.fixture
def provider() -> MarketDataProvider:
    return make_provider()


@pytest.fixture
def provider_eur_usd() -> MarketDataProvider:
    return make_provider_eur_usd()


@pytest.fixture
def usd_curve() -> Curve:
    return make_curve("USD")
