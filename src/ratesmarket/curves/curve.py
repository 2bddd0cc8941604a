"""
Interpolated nodal curve.

The Curve class provides:
- Discount factor P(t)
- Zero rate z(t)
- Simple forward rate f(t1, t2)
- Bumped copies for scenario analysis

A curve is a fixed set of (time, value) nodes plus an interpolation method.
Times are year fractions measured with the curve's day count; the values
are either continuously compounded zero rates or discount factors. Curves
are immutable: every bump returns a new curve.
"""

from enum import Enum
from typing import Iterable, Optional, Sequence
import logging
import math

import numpy as np
import pandas as pd

from ..conventions import DayCount
from ..errors import InvalidCurveError
from .interpolation import Interpolator, create_interpolator, normalize_method


logger = logging.getLogger(__name__)

# Time used in place of t=0 when a rate is implied from discount factors
SHORT_TIME = 1.0 / 3650.0


class CurveValueType(Enum):
    """What the node values of a curve represent."""
    ZERO_RATE = "ZeroRate"
    DISCOUNT_FACTOR = "DiscountFactor"


def _frozen_array(values: Iterable[float]) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    arr.flags.writeable = False
    return arr


class Curve:
    """
    Curve defined by interpolated nodes.

    Attributes:
        name: Curve name, unique within a market data provider
        day_count: Day count used to turn dates into node times
        value_type: Meaning of the node values
        interpolation: Name of interpolation method

    Conventions:
        - Zero rates are continuously compounded
        - Node times are strictly increasing
        - A zero rate curve gives discount factor 1.0 at t=0
    """

    def __init__(
        self,
        name: str,
        times: Sequence[float],
        values: Sequence[float],
        day_count: DayCount = DayCount.ACT_360,
        value_type: CurveValueType = CurveValueType.ZERO_RATE,
        interpolation: str = "linear"
    ):
        if not name:
            raise InvalidCurveError(name, "Curve name must not be empty")
        if not isinstance(value_type, CurveValueType):
            raise InvalidCurveError(name, f"Unknown value type: {value_type!r}")

        times = _frozen_array(times)
        values = _frozen_array(values)
        if times.ndim != 1 or times.shape != values.shape:
            raise InvalidCurveError(
                name, f"Times and values must have same length, got {times.size} and {values.size}"
            )
        if times.size < 2:
            raise InvalidCurveError(name, "Need at least 2 nodes to build curve")
        if not (np.all(np.isfinite(times)) and np.all(np.isfinite(values))):
            raise InvalidCurveError(name, "Node times and values must be finite")
        if np.any(np.diff(times) <= 0):
            raise InvalidCurveError(name, f"Node times must be strictly increasing: {times.tolist()}")
        if value_type == CurveValueType.DISCOUNT_FACTOR and np.any(values <= 0):
            raise InvalidCurveError(name, "Discount factors must be positive")

        try:
            method = normalize_method(interpolation)
        except ValueError as e:
            raise InvalidCurveError(name, str(e)) from e

        self._name = name
        self._times = times
        self._values = values
        self._day_count = day_count
        self._value_type = value_type
        self._interpolation = method

        self._interpolator: Interpolator = create_interpolator(method)
        self._interpolator.fit(times, values)

    @property
    def name(self) -> str:
        return self._name

    @property
    def times(self) -> np.ndarray:
        """Node times (read-only)."""
        return self._times

    @property
    def values(self) -> np.ndarray:
        """Node values (read-only)."""
        return self._values

    @property
    def day_count(self) -> DayCount:
        return self._day_count

    @property
    def value_type(self) -> CurveValueType:
        return self._value_type

    @property
    def interpolation(self) -> str:
        return self._interpolation

    @property
    def parameter_count(self) -> int:
        return int(self._times.size)

    def value(self, t: float) -> float:
        """Interpolated node value at time t."""
        return self._interpolator.interpolate(t)

    def discount_factor(self, t: float) -> float:
        """
        Get discount factor P(t).

        Args:
            t: Year fraction

        Returns:
            Discount factor

        Raises:
            InvalidCurveError: If the interpolated result is not finite
        """
        if self._value_type == CurveValueType.ZERO_RATE:
            df = math.exp(-self._interpolator.interpolate(t) * t)
        else:
            df = self._interpolator.interpolate(t)

        if not math.isfinite(df) or df <= 0:
            raise InvalidCurveError(self._name, f"Discount factor at t={t} is {df}")
        return df

    def zero_rate(self, t: float) -> float:
        """
        Get continuously compounded zero rate z(t).

        For discount factor curves the rate near t=0 is implied at SHORT_TIME.
        """
        if self._value_type == CurveValueType.ZERO_RATE:
            return self._interpolator.interpolate(t)
        t = max(t, SHORT_TIME)
        return -math.log(self.discount_factor(t)) / t

    def forward_rate(self, t1: float, t2: float) -> float:
        """
        Simple forward rate between t1 and t2.

        Raises:
            ValueError: If t2 is not after t1
        """
        if t2 <= t1:
            raise ValueError("t2 must be greater than t1")
        df1 = self.discount_factor(t1)
        df2 = self.discount_factor(t2)
        return (df1 / df2 - 1) / (t2 - t1)

    def nodes(self) -> pd.DataFrame:
        """Node table with columns time and value."""
        return pd.DataFrame({"time": self._times, "value": self._values})

    def with_values(self, values: Sequence[float], name: Optional[str] = None) -> "Curve":
        """Copy of this curve with new node values at the same times."""
        return Curve(
            name=name or self._name,
            times=self._times,
            values=values,
            day_count=self._day_count,
            value_type=self._value_type,
            interpolation=self._interpolation
        )

    def _shifted_values(self, bump: np.ndarray) -> np.ndarray:
        if self._value_type == CurveValueType.ZERO_RATE:
            return self._values + bump
        return self._values * np.exp(-bump * self._times)

    def bump_parallel(self, bp: float) -> "Curve":
        """
        Create a new curve with all zero rates shifted by bp basis points.

        Discount factor curves are shifted by the equivalent exp(-bump * t).
        """
        bump = np.full(self._times.shape, bp / 10000.0)
        return self.with_values(self._shifted_values(bump))

    def bump_node(self, node_index: int, bp: float) -> "Curve":
        """Create a new curve with a single node shifted by bp basis points."""
        if node_index < 0 or node_index >= self._times.size:
            raise IndexError(f"Invalid node index: {node_index}")
        bump = np.zeros(self._times.shape)
        bump[node_index] = bp / 10000.0
        return self.with_values(self._shifted_values(bump))

    def __eq__(self, other) -> bool:
        if not isinstance(other, Curve):
            return NotImplemented
        return (
            self._name == other._name
            and self._day_count == other._day_count
            and self._value_type == other._value_type
            and self._interpolation == other._interpolation
            and np.array_equal(self._times, other._times)
            and np.array_equal(self._values, other._values)
        )

    def __hash__(self) -> int:
        return hash((self._name, self._value_type, self._interpolation,
                     self._times.tobytes(), self._values.tobytes()))

    def __repr__(self) -> str:
        return (f"Curve(name={self._name!r}, nodes={self._times.size}, "
                f"type={self._value_type.value}, method={self._interpolation})")


def create_flat_curve(
    name: str,
    rate: float,
    day_count: DayCount = DayCount.ACT_360,
    max_tenor_years: float = 30.0
) -> Curve:
    """
    Create a flat zero rate curve.

    Args:
        name: Curve name
        rate: Flat continuously compounded rate
        day_count: Day count of the curve
        max_tenor_years: Last node time

    Returns:
        Flat curve
    """
    times = [t for t in (0.0, 0.25, 0.5, 1, 2, 5, 10, 20) if t < max_tenor_years]
    times.append(max_tenor_years)
    logger.debug("Flat curve %s at %.6f with %d nodes", name, rate, len(times))
    return Curve(name, times, [rate] * len(times), day_count=day_count)


__all__ = [
    "Curve",
    "CurveValueType",
    "create_flat_curve",
]
