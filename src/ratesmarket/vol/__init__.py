"""
Volatility module - surface node metadata.

Provides:
- Strike coordinate types
- Period/strike parameter metadata with derived labels
"""

from .metadata import (
    Strike,
    SimpleStrike,
    MoneynessStrike,
    LogMoneynessStrike,
    DeltaStrike,
    ParameterMetadata,
    ParameterMetadataBuilder,
    VolSurfacePeriodParameterMetadata,
)

__all__ = [
    "Strike",
    "SimpleStrike",
    "MoneynessStrike",
    "LogMoneynessStrike",
    "DeltaStrike",
    "ParameterMetadata",
    "ParameterMetadataBuilder",
    "VolSurfacePeriodParameterMetadata",
]
