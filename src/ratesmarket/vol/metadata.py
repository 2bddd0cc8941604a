"""
Parameter metadata for volatility surface nodes.

A surface node is identified by (period, strike), e.g. ("6M", Strike=0.05),
and carries a display label. When no label is given it is derived once,
at construction, as "[<period>, <strike label>]"; identical coordinates
always produce identical labels.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from ..dates import DateUtils


@dataclass(frozen=True)
class Strike:
    """Base strike; subclasses set the label prefix."""
    value: float

    prefix = "Strike"

    def __post_init__(self):
        object.__setattr__(self, "value", float(self.value))

    @property
    def label(self) -> str:
        return f"{self.prefix}={self.value!r}"


@dataclass(frozen=True)
class SimpleStrike(Strike):
    """Absolute strike level."""
    prefix = "Strike"


@dataclass(frozen=True)
class MoneynessStrike(Strike):
    """Strike as a ratio to the forward."""
    prefix = "Moneyness"


@dataclass(frozen=True)
class LogMoneynessStrike(Strike):
    """Strike as log(K / F)."""
    prefix = "LogMoneyness"


@dataclass(frozen=True)
class DeltaStrike(Strike):
    """Strike expressed as an option delta."""
    prefix = "Delta"

    def __post_init__(self):
        super().__post_init__()
        if not 0.0 <= self.value <= 1.0:
            raise ValueError(f"Delta strike must be in [0, 1], got {self.value}")


def derive_label(period: Optional[str], strike: Strike) -> str:
    """Label for a (period, strike) node: "[6M, Strike=0.05]"."""
    return f"[{period}, {strike.label}]"


@dataclass(frozen=True)
class VolSurfacePeriodParameterMetadata:
    """
    Metadata for one node of a volatility surface keyed by period and strike.

    Attributes:
        period: Expiry period, e.g. "6M" (normalised to upper case)
        strike: Strike coordinate
        label: Display label, never empty

    Use of() or builder(); both derive the label the same way.
    """
    period: Optional[str]
    strike: Strike
    label: str

    def __post_init__(self):
        if self.strike is None:
            raise ValueError("strike must not be None")
        if not isinstance(self.strike, Strike):
            raise TypeError(f"strike must be a Strike, got {type(self.strike).__name__}")
        if self.period is not None:
            object.__setattr__(self, "period", DateUtils.normalize_tenor(self.period))
        if not self.label:
            raise ValueError("label must not be empty")

    @classmethod
    def of(
        cls,
        period: Optional[str],
        strike: Strike,
        label: Optional[str] = None
    ) -> "VolSurfacePeriodParameterMetadata":
        """
        Create metadata, deriving the label when none is given.

        Args:
            period: Expiry period, e.g. "6M"
            strike: Strike coordinate
            label: Explicit label, overrides the derived one
        """
        if label is None and isinstance(strike, Strike):
            period = DateUtils.normalize_tenor(period) if period is not None else None
            label = derive_label(period, strike)
        return cls(period=period, strike=strike, label=label)

    @classmethod
    def builder(cls) -> "ParameterMetadataBuilder":
        return ParameterMetadataBuilder()

    @property
    def identifier(self) -> Tuple[Optional[str], Strike]:
        return self.period, self.strike

    def to_builder(self) -> "ParameterMetadataBuilder":
        return ParameterMetadataBuilder().period(self.period).strike(self.strike).label(self.label)


class ParameterMetadataBuilder:
    """
    Builder for VolSurfacePeriodParameterMetadata.

    build() fills in an unset label from period and strike before creating
    the value, so builder and of() give identical results for identical
    inputs.
    """

    def __init__(self):
        self._period: Optional[str] = None
        self._strike: Optional[Strike] = None
        self._label: Optional[str] = None

    def period(self, period: Optional[str]) -> "ParameterMetadataBuilder":
        self._period = period
        return self

    def strike(self, strike: Strike) -> "ParameterMetadataBuilder":
        self._strike = strike
        return self

    def label(self, label: Optional[str]) -> "ParameterMetadataBuilder":
        self._label = label
        return self

    def build(self) -> VolSurfacePeriodParameterMetadata:
        label = self._label
        if label is None and isinstance(self._strike, Strike):
            period = DateUtils.normalize_tenor(self._period) if self._period is not None else None
            label = derive_label(period, self._strike)
        return VolSurfacePeriodParameterMetadata(
            period=self._period,
            strike=self._strike,
            label=label
        )


ParameterMetadata = VolSurfacePeriodParameterMetadata


__all__ = [
    "Strike",
    "SimpleStrike",
    "MoneynessStrike",
    "LogMoneynessStrike",
    "DeltaStrike",
    "derive_label",
    "ParameterMetadata",
    "ParameterMetadataBuilder",
    "VolSurfacePeriodParameterMetadata",
]
