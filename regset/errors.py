"""Exception hierarchy for regset.

Construction-time validation raises these before any dataset is returned,
so no partially built dataset is ever observable.
"""

from __future__ import annotations


class RegsetError(Exception):
    """Base exception for all regset failures."""


class DimensionMismatch(RegsetError, ValueError):
    """Raised when parallel arrays disagree on their lengths or shapes."""


class InvalidIndexing(RegsetError, ValueError):
    """Raised when an input is not addressed from the conventional base position."""


class InvalidWeights(RegsetError, ValueError):
    """Raised for negative sample weights."""


class SamplingError(RegsetError, ValueError):
    """Raised when a batch cannot be drawn (empty dataset, non-positive size)."""


class UnitParseError(RegsetError, ValueError):
    """Raised when a raw unit specification cannot be resolved."""


class RegsetConfigError(RegsetError):
    """Raised for invalid runtime configuration."""
