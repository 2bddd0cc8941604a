"""
Interpolation methods for curve nodes.

Provides:
- LinearInterpolator: linear between nodes, flat outside
- LogLinearInterpolator: linear in log(value), extrapolates the last slope
- CubicSplineInterpolator: natural cubic spline, flat outside

All interpolators take year fractions as x-coordinates. Extrapolation is
deterministic: the same input always gives the same output.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple
import numpy as np


class Interpolator(ABC):
    """Abstract base class for curve interpolation."""

    def __init__(self):
        self.times: Optional[np.ndarray] = None
        self.values: Optional[np.ndarray] = None

    def fit(self, times: np.ndarray, values: np.ndarray) -> None:
        """
        Fit the interpolator to data points.

        Args:
            times: Array of year fractions (sorted ascending)
            values: Array of node values
        """
        times = np.asarray(times, dtype=np.float64)
        values = np.asarray(values, dtype=np.float64)
        if times.shape != values.shape:
            raise ValueError("Times and values must have same length")
        if len(times) < 2:
            raise ValueError("Need at least 2 points for interpolation")
        if np.any(np.diff(times) <= 0):
            raise ValueError("Times must be strictly increasing")

        self.times = times
        self.values = values
        self._prepare()

    def _prepare(self) -> None:
        """Hook for subclasses that precompute coefficients."""

    def _check_fitted(self) -> None:
        if self.times is None:
            raise RuntimeError("Interpolator not fitted")

    def _bracket(self, t: float) -> Tuple[int, float]:
        """Index of the left node of the interval holding t, and t minus that node."""
        idx = int(np.searchsorted(self.times, t, side='right')) - 1
        idx = max(0, min(idx, len(self.times) - 2))
        return idx, t - self.times[idx]

    @abstractmethod
    def interpolate(self, t: float) -> float:
        """Interpolated value at year fraction t."""

    @abstractmethod
    def derivative(self, t: float) -> float:
        """First derivative at year fraction t."""

    def __call__(self, t: float) -> float:
        return self.interpolate(t)


class LinearInterpolator(Interpolator):
    """
    Linear interpolation.

    Extrapolates flat beyond boundaries.
    """

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        return float(np.interp(t, self.times, self.values))

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0] or t >= self.times[-1]:
            return 0.0
        idx, _ = self._bracket(t)
        h = self.times[idx + 1] - self.times[idx]
        return float((self.values[idx + 1] - self.values[idx]) / h)


class LogLinearInterpolator(Interpolator):
    """
    Log-linear interpolation on positive values (typically discount factors).

    Linear in log space, which corresponds to piecewise constant forward
    rates. Flat on the left, last-slope extrapolation on the right.
    """

    def _prepare(self) -> None:
        if np.any(self.values <= 0):
            raise ValueError("Log-linear interpolation needs positive values")
        self._log_values = np.log(self.values)

    def _log_slope(self, idx: int) -> float:
        h = self.times[idx + 1] - self.times[idx]
        return (self._log_values[idx + 1] - self._log_values[idx]) / h

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0]:
            return float(self.values[0])
        idx, dx = self._bracket(t)
        return float(np.exp(self._log_values[idx] + self._log_slope(idx) * dx))

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0]:
            return 0.0
        idx, _ = self._bracket(t)
        return float(self.interpolate(t) * self._log_slope(idx))


class CubicSplineInterpolator(Interpolator):
    """
    Natural cubic spline (second derivative = 0 at boundaries).

    Extrapolates flat beyond boundaries.
    """

    def _prepare(self) -> None:
        n = len(self.times)
        h = np.diff(self.times)

        # Tridiagonal system for second derivatives, natural ends M[0] = M[n-1] = 0
        A = np.zeros((n, n))
        b = np.zeros(n)
        A[0, 0] = A[n - 1, n - 1] = 1.0
        slopes = np.diff(self.values) / h
        for i in range(1, n - 1):
            A[i, i - 1] = h[i - 1]
            A[i, i] = 2 * (h[i - 1] + h[i])
            A[i, i + 1] = h[i]
            b[i] = 6 * (slopes[i] - slopes[i - 1])
        M = np.linalg.solve(A, b)

        # S_i(x) = a + b*dx + c*dx^2 + d*dx^3
        self._coefficients = np.column_stack([
            self.values[:-1],
            slopes - h * (M[1:] + 2 * M[:-1]) / 6,
            M[:-1] / 2,
            (M[1:] - M[:-1]) / (6 * h),
        ])

    def interpolate(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0]:
            return float(self.values[0])
        if t >= self.times[-1]:
            return float(self.values[-1])
        idx, dx = self._bracket(t)
        a, b, c, d = self._coefficients[idx]
        return float(a + b * dx + c * dx**2 + d * dx**3)

    def derivative(self, t: float) -> float:
        self._check_fitted()
        if t <= self.times[0] or t >= self.times[-1]:
            return 0.0
        idx, dx = self._bracket(t)
        _, b, c, d = self._coefficients[idx]
        return float(b + 2 * c * dx + 3 * d * dx**2)


INTERPOLATORS = {
    "linear": LinearInterpolator,
    "log_linear": LogLinearInterpolator,
    "cubic_spline": CubicSplineInterpolator,
}

_ALIASES = {
    "lin": "linear",
    "loglinear": "log_linear",
    "cubic": "cubic_spline",
    "spline": "cubic_spline",
}


def normalize_method(method: str) -> str:
    """Canonical interpolation method name."""
    key = method.lower().replace("-", "_").replace(" ", "_")
    key = _ALIASES.get(key, key)
    if key not in INTERPOLATORS:
        raise ValueError(f"Unknown interpolation method: {method}")
    return key


def create_interpolator(method: str) -> Interpolator:
    """
    Factory function to create an interpolator by name.

    Args:
        method: One of "linear", "log_linear", "cubic_spline" (or an alias)

    Returns:
        Unfitted Interpolator instance
    """
    return INTERPOLATORS[normalize_method(method)]()


__all__ = [
    "Interpolator",
    "LinearInterpolator",
    "LogLinearInterpolator",
    "CubicSplineInterpolator",
    "create_interpolator",
    "normalize_method",
]
