"""
Curves package - interpolated discount curves.

Provides:
- Curve: Immutable nodal curve with discount factors and interpolation
- Interpolators used by curves
"""

from .curve import Curve, CurveValueType, create_flat_curve
from .interpolation import (
    Interpolator,
    LinearInterpolator,
    CubicSplineInterpolator,
    LogLinearInterpolator,
    create_interpolator,
)

__all__ = [
    "Curve",
    "CurveValueType",
    "create_flat_curve",
    "Interpolator",
    "LinearInterpolator",
    "CubicSplineInterpolator",
    "LogLinearInterpolator",
    "create_interpolator",
]
