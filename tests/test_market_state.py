"""
Unit tests for market_state module.
"""

import dataclasses
import math
from datetime import date

import numpy as np
import pandas as pd
import pytest

from ratesmarket import (
    DisconnectedCurrencyError,
    FixingSeries,
    FxIndex,
    FxRateMatrix,
    InconsistentRateError,
    InvalidDateError,
    InvalidRateError,
    MarketConventions,
    MarketDataProvider,
    NoCurveError,
    UnknownCurrencyError,
)

from conftest import (
    EUR_USD,
    GBP_USD,
    USD_KRW,
    VALUATION_DATE,
    make_curve,
    make_fx_matrix,
    make_provider,
    make_usd_krw_index,
)


class _SignedAct360:
    """Day count that measures backwards periods as negative times."""
    allows_negative_periods = True

    def year_fraction(self, start, end):
        return (end - start).days / 360.0


class TestDiscounting:
    """Discount curve queries."""

    def test_discount_factor_on_valuation_date(self, provider):
        for ccy in ("USD", "EUR", "GBP", "KRW"):
            assert provider.discount_factor(ccy, VALUATION_DATE) == 1.0

    def test_zero_rate_at_time_zero(self, provider):
        assert provider.discount_curve("USD").zero_rate(0.0) == 0.01

    def test_discount_factor_at_date(self, provider):
        d = date(2012, 5, 10)  # 182 days
        t = 182 / 360
        assert provider.discount_factor("USD", d) == pytest.approx(math.exp(-0.012 * t), rel=1e-14)
        assert provider.zero_rate("USD", d) == pytest.approx(0.012)

    def test_discount_factors_array(self, provider):
        dates = [VALUATION_DATE, date(2012, 5, 10), date(2013, 11, 10)]
        dfs = provider.discount_factors("EUR", dates)

        assert isinstance(dfs, np.ndarray)
        assert dfs.shape == (3,)
        assert dfs[0] == 1.0
        assert dfs[1] == pytest.approx(provider.discount_factor("EUR", dates[1]))

    def test_currency_lookup_is_case_insensitive(self, provider):
        assert provider.discount_curve("usd") is provider.discount_curve("USD")

    def test_missing_curve(self, provider_eur_usd):
        with pytest.raises(NoCurveError) as exc_info:
            provider_eur_usd.discount_curve("GBP")
        assert exc_info.value.currency == "GBP"
        assert set(exc_info.value.available) == {"EUR", "USD"}

        # Also a KeyError for mapping-style callers
        with pytest.raises(KeyError):
            provider_eur_usd.discount_factor("GBP", VALUATION_DATE)

    def test_date_before_valuation(self, provider):
        with pytest.raises(InvalidDateError) as exc_info:
            provider.discount_factor("USD", date(2011, 11, 9))
        assert exc_info.value.valuation_date == VALUATION_DATE

    def test_negative_periods_when_day_count_allows(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .day_count(_SignedAct360())
            .discount_curve("USD", make_curve("USD"))
            .build()
        )
        df = provider.discount_factor("USD", date(2011, 11, 9))
        assert df == pytest.approx(math.exp(0.01 / 360), rel=1e-14)
        assert df > 1.0

    def test_day_count_must_measure_time(self):
        with pytest.raises(TypeError):
            MarketDataProvider(VALUATION_DATE, day_count="ACT/360")


class TestFxQueries:
    """FX queries on the provider."""

    def test_fx_rate(self, provider):
        assert provider.fx_rate("EUR", "USD") == pytest.approx(EUR_USD)
        assert provider.fx_rate("USD", "KRW") == pytest.approx(USD_KRW)
        assert provider.fx_rate("USD", "USD") == 1.0

    def test_convert_cross(self, provider):
        assert provider.convert(100, "EUR", "GBP") == pytest.approx(100 * EUR_USD / GBP_USD)

    def test_unknown_currency(self, provider):
        with pytest.raises(UnknownCurrencyError):
            provider.fx_rate("JPY", "USD")

    def test_single_currency_provider(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .discount_curve("USD", make_curve("USD"))
            .build()
        )
        assert provider.fx_currencies == ()
        assert provider.discount_factor("USD", VALUATION_DATE) == 1.0
        with pytest.raises(UnknownCurrencyError):
            provider.fx_rate("USD", "USD")

    def test_eur_usd_provider(self, provider_eur_usd):
        assert provider_eur_usd.fx_rate("EUR", "USD") == pytest.approx(EUR_USD)
        assert provider_eur_usd.fx_rate("USD", "EUR") == pytest.approx(1 / EUR_USD)
        assert set(provider_eur_usd.currencies) == {"EUR", "USD"}

    def test_curve_and_fx_currencies_independent(self, provider_eur_usd):
        """A currency may have a curve without being in the FX matrix and vice versa."""
        provider = provider_eur_usd.with_fx_rate("JPY", "USD", 1 / 77.0)
        assert "JPY" in provider.fx_currencies
        assert "JPY" not in provider.currencies


class TestFixings:
    """Historical fixing lookups."""

    def test_registered_empty_series(self, provider):
        series = provider.time_series(make_usd_krw_index())
        assert series.is_empty
        assert series == FixingSeries.empty()

    def test_unregistered_index(self, provider):
        assert provider.time_series("UNKNOWN").is_empty
        assert provider.time_series(FxIndex("EUR/GBP", "EUR", "GBP")).is_empty

    def test_lookup_by_name_or_index(self):
        index = make_usd_krw_index()
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .time_series(index, {date(2011, 11, 8): 1120.5, date(2011, 11, 9): 1118.0})
            .build()
        )
        assert provider.time_series("USD/KRW") == provider.time_series(index)
        assert provider.time_series(index).latest() == (date(2011, 11, 9), 1118.0)

    def test_pandas_series_input(self):
        history = pd.Series(
            [1.39, 1.41],
            index=pd.to_datetime(["2011-11-08", "2011-11-09"]),
        )
        provider = MarketDataProvider.builder(VALUATION_DATE).time_series("ECB EUR/USD", history).build()
        assert provider.time_series("ECB EUR/USD").get(date(2011, 11, 8)) == 1.39

    def test_bad_series_type(self):
        with pytest.raises(TypeError):
            MarketDataProvider.builder(VALUATION_DATE).time_series("X", [1.0, 2.0])


class TestImmutability:
    """Providers never change after construction."""

    def test_frozen_fields(self, provider):
        with pytest.raises(dataclasses.FrozenInstanceError):
            provider.valuation_date = date(2012, 1, 1)

    def test_read_only_mappings(self, provider):
        with pytest.raises(TypeError):
            provider.discount_curves["JPY"] = make_curve("USD")
        with pytest.raises(TypeError):
            provider.fixings["X"] = FixingSeries.empty()

    def test_builder_input_not_shared(self):
        curves = {"USD": make_curve("USD")}
        provider = MarketDataProvider(VALUATION_DATE, discount_curves=curves)
        curves["EUR"] = make_curve("EUR")
        assert provider.currencies == ("USD",)

    def test_builder_reuse(self):
        builder = MarketDataProvider.builder(VALUATION_DATE).discount_curve("USD", make_curve("USD"))
        first = builder.build()
        builder.discount_curve("EUR", make_curve("EUR"))
        second = builder.build()
        assert first.currencies == ("USD",)
        assert set(second.currencies) == {"USD", "EUR"}

    def test_equal_providers_hash_equal(self):
        """Providers built from the same data are equal values."""
        first = make_provider()
        second = make_provider()

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_scenario_not_equal(self, provider):
        bumped = provider.bump_curve("USD", 1)
        assert bumped != provider
        assert len({provider, bumped}) == 2


class TestScenarios:
    """to_builder and with_* produce new providers."""

    def test_bump_curve(self, provider):
        d = date(2013, 11, 10)
        bumped = provider.bump_curve("USD", 10)

        assert bumped.zero_rate("USD", d) - provider.zero_rate("USD", d) == pytest.approx(0.001)
        assert bumped.discount_curve("EUR") is provider.discount_curve("EUR")
        assert bumped.fx_matrix is provider.fx_matrix
        assert provider.zero_rate("USD", d) == pytest.approx(make_curve("USD").zero_rate(
            provider.day_count.year_fraction(VALUATION_DATE, d)))

    def test_with_discount_curve(self, provider_eur_usd):
        scenario = provider_eur_usd.with_discount_curve("GBP", make_curve("GBP"))
        assert "GBP" in scenario.currencies
        assert "GBP" not in provider_eur_usd.currencies

    def test_with_fx_rate_rederives_crosses(self, provider):
        scenario = provider.with_fx_rate("EUR", "USD", 1.45)

        assert scenario.fx_rate("EUR", "GBP") == pytest.approx(1.45 / GBP_USD)
        assert provider.fx_rate("EUR", "GBP") == pytest.approx(EUR_USD / GBP_USD)

    def test_with_fx_rate_overrides_implied_cross(self, provider):
        """A currently implied cross can be shocked directly."""
        scenario = provider.with_fx_rate("EUR", "GBP", 0.95)

        assert scenario.fx_rate("EUR", "GBP") == pytest.approx(0.95)
        assert scenario.fx_rate("EUR", "USD") == pytest.approx(EUR_USD)
        assert scenario.fx_rate("GBP", "USD") == pytest.approx(EUR_USD / 0.95)
        assert provider.fx_rate("EUR", "GBP") == pytest.approx(EUR_USD / GBP_USD)

    def test_with_fx_rate_new_currency(self, provider):
        scenario = provider.with_fx_rate("JPY", "USD", 1 / 77.0)

        assert scenario.fx_rate("USD", "JPY") == pytest.approx(77.0)
        assert scenario.fx_rate("EUR", "JPY") == pytest.approx(EUR_USD * 77.0)
        with pytest.raises(UnknownCurrencyError):
            provider.fx_rate("USD", "JPY")

    def test_to_builder_round_trip(self, provider):
        rebuilt = provider.to_builder().build()

        assert rebuilt.valuation_date == provider.valuation_date
        assert rebuilt.day_count == provider.day_count
        assert dict(rebuilt.discount_curves) == dict(provider.discount_curves)
        assert rebuilt.fx_matrix == provider.fx_matrix
        assert dict(rebuilt.fixings) == dict(provider.fixings)

    def test_roll_valuation_date(self, provider):
        rolled = provider.to_builder().valuation_date(date(2011, 11, 11)).build()
        assert rolled.discount_factor("USD", date(2011, 11, 11)) == 1.0
        assert provider.discount_factor("USD", date(2011, 11, 11)) < 1.0


class TestBuilderFx:
    """FX handling in the provider builder."""

    def test_fx_quotes_build_matrix(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_rate("EUR", "USD", EUR_USD)
            .fx_rate("GBP", "USD", GBP_USD)
            .build()
        )
        assert provider.convert(100, "EUR", "GBP") == pytest.approx(100 * EUR_USD / GBP_USD)

    def test_fx_rate_validated_eagerly(self):
        builder = MarketDataProvider.builder(VALUATION_DATE)
        with pytest.raises(InvalidRateError):
            builder.fx_rate("EUR", "USD", -1.0)

    def test_inconsistent_quotes(self):
        builder = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_rate("EUR", "USD", EUR_USD)
            .fx_rate("GBP", "USD", GBP_USD)
            .fx_rate("EUR", "GBP", 1.0)
        )
        with pytest.raises(InconsistentRateError):
            builder.build()

    def test_disconnected_quotes(self):
        builder = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_rate("EUR", "USD", EUR_USD)
            .fx_rate("GBP", "JPY", 190.0)
        )
        with pytest.raises(DisconnectedCurrencyError):
            builder.build()

    def test_quotes_extend_matrix(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_matrix(make_fx_matrix())
            .fx_rate("JPY", "USD", 1 / 77.0)
            .build()
        )
        assert set(provider.fx_currencies) == {"EUR", "USD", "KRW", "GBP", "JPY"}

    def test_matrix_discards_earlier_quotes(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_rate("JPY", "USD", 1 / 77.0)
            .fx_matrix(make_fx_matrix())
            .build()
        )
        assert "JPY" not in provider.fx_currencies

    def test_conventions_tolerance(self):
        builder = (
            MarketDataProvider.builder(VALUATION_DATE, MarketConventions.strict())
            .fx_rate("EUR", "USD", 1.4)
            .fx_rate("GBP", "USD", 1.5)
            .fx_rate("EUR", "GBP", 1.4 / 1.5 * (1 + 1e-10))
        )
        with pytest.raises(InconsistentRateError):
            builder.build()

        relaxed = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_rate("EUR", "USD", 1.4)
            .fx_rate("GBP", "USD", 1.5)
            .fx_rate("EUR", "GBP", 1.4 / 1.5 * (1 + 1e-10))
            .build()
        )
        assert relaxed.fx_rate("EUR", "GBP") == pytest.approx(1.4 / 1.5)

    def test_conventions_tolerance_with_base_matrix(self):
        """Quotes on top of a base matrix are resolved with the builder's tolerance."""
        base = make_fx_matrix()
        provider = (
            MarketDataProvider.builder(VALUATION_DATE, MarketConventions.strict())
            .fx_matrix(base)
            .fx_rate("JPY", "USD", 1 / 77.0)
            .build()
        )
        assert base.tolerance == 1e-8
        assert provider.fx_matrix.tolerance == MarketConventions.strict().fx_tolerance

    def test_quotes_override_base_matrix(self):
        provider = (
            MarketDataProvider.builder(VALUATION_DATE)
            .fx_matrix(make_fx_matrix())
            .fx_rate("EUR", "GBP", 0.95)
            .build()
        )
        assert provider.fx_rate("EUR", "GBP") == pytest.approx(0.95)
        assert provider.fx_rate("USD", "KRW") == pytest.approx(USD_KRW)

    def test_single_pair_matrix(self):
        provider = MarketDataProvider.builder(VALUATION_DATE).fx_matrix(FxRateMatrix.of("EUR", "USD", 1.4)).build()
        assert provider.fx_currencies == ("EUR", "USD")


class TestReporting:

    def test_to_dict(self, provider):
        summary = provider.to_dict()
        assert summary["valuation_date"] == "2011-11-10"
        assert summary["day_count"] == "ACT/360"
        assert summary["discount_curves"]["USD"] == "USD Dsc"
        assert summary["fixings"] == {"USD/KRW": 0}
