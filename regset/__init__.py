"""regset: unit-aware regression datasets with zero-copy batch views."""

from .data import (
    BasicDataset,
    Dataset,
    DatasetOptions,
    SubDataset,
    batch,
    random_batch,
    update_baseline_loss,
)
from .errors import (
    DimensionMismatch,
    InvalidIndexing,
    InvalidWeights,
    RegsetConfigError,
    RegsetError,
    SamplingError,
    UnitParseError,
)
from .utils import RegsetConfig


__all__ = [
    "BasicDataset",
    "Dataset",
    "DatasetOptions",
    "DimensionMismatch",
    "InvalidIndexing",
    "InvalidWeights",
    "RegsetConfig",
    "RegsetConfigError",
    "RegsetError",
    "SamplingError",
    "SubDataset",
    "UnitParseError",
    "batch",
    "random_batch",
    "update_baseline_loss",
]
