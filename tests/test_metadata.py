"""
Unit tests for volatility surface parameter metadata.
"""

import pytest

from ratesmarket.vol import (
    DeltaStrike,
    LogMoneynessStrike,
    MoneynessStrike,
    ParameterMetadata,
    SimpleStrike,
    VolSurfacePeriodParameterMetadata,
)


class TestStrike:

    def test_labels(self):
        assert SimpleStrike(0.5).label == "Strike=0.5"
        assert MoneynessStrike(1).label == "Moneyness=1.0"
        assert LogMoneynessStrike(-0.1).label == "LogMoneyness=-0.1"
        assert DeltaStrike(0.25).label == "Delta=0.25"

    def test_strike_types_differ(self):
        assert SimpleStrike(1.0) != MoneynessStrike(1.0)

    def test_delta_range(self):
        with pytest.raises(ValueError):
            DeltaStrike(1.5)


class TestParameterMetadata:
    """Tests for period/strike metadata."""

    def test_derived_label(self):
        meta = ParameterMetadata.of("6M", SimpleStrike(0.5))
        assert meta.label == "[6M, Strike=0.5]"
        assert meta.identifier == ("6M", SimpleStrike(0.5))

    def test_of_matches_explicit_label(self):
        derived = ParameterMetadata.of("6M", SimpleStrike(0.5))
        explicit = ParameterMetadata.of("6M", SimpleStrike(0.5), "[6M, Strike=0.5]")
        assert derived == explicit
        assert hash(derived) == hash(explicit)

    def test_builder_matches_of(self):
        built = ParameterMetadata.builder().period("6M").strike(SimpleStrike(0.5)).build()
        assert built == ParameterMetadata.of("6M", SimpleStrike(0.5))
        assert built.label == "[6M, Strike=0.5]"

    def test_repeated_construction(self):
        """Identical inputs give equal but distinct values."""
        first = ParameterMetadata.of("1Y", MoneynessStrike(1.0))
        second = ParameterMetadata.of("1Y", MoneynessStrike(1.0))
        assert first == second
        assert first is not second
        assert first.label == second.label

    def test_period_normalised(self):
        meta = ParameterMetadata.of("6m", SimpleStrike(0.5))
        assert meta.period == "6M"
        assert meta.label == "[6M, Strike=0.5]"
        assert meta == ParameterMetadata.builder().period("6m").strike(SimpleStrike(0.5)).build()

    def test_explicit_label_kept(self):
        meta = ParameterMetadata.of("6M", SimpleStrike(0.5), "ATM-ish")
        assert meta.label == "ATM-ish"
        assert meta != ParameterMetadata.of("6M", SimpleStrike(0.5))

    def test_empty_label_rejected(self):
        with pytest.raises(ValueError):
            ParameterMetadata.of("6M", SimpleStrike(0.5), "")

    def test_missing_strike_rejected(self):
        with pytest.raises(ValueError):
            ParameterMetadata.of("6M", None)
        with pytest.raises(ValueError):
            ParameterMetadata.builder().period("6M").build()

    def test_strike_type_checked(self):
        with pytest.raises(TypeError):
            ParameterMetadata.of("6M", 0.5)

    def test_to_builder(self):
        meta = ParameterMetadata.of("6M", SimpleStrike(0.5))
        assert meta.to_builder().build() == meta

        moved = meta.to_builder().period("1Y").label(None).build()
        assert moved.label == "[1Y, Strike=0.5]"

    def test_alias(self):
        assert ParameterMetadata is VolSurfacePeriodParameterMetadata
