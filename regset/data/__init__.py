"""Dataset containers, batch views and samplers."""

from .base_dataset import Dataset
from .basic_dataset import BaselineState, BasicDataset, update_baseline_loss
from .options import DatasetOptions
from .sampling import batch, grouped_batch, random_batch, uniform_batch
from .units import (
    DefaultUnitResolver,
    PhysicalQuantity,
    SymbolicQuantity,
    UnitResolver,
    is_dimensionless,
    resolve_units,
)
from .views import IndexedArrayView, SubDataset


__all__ = [
    "BaselineState",
    "BasicDataset",
    "Dataset",
    "DatasetOptions",
    "DefaultUnitResolver",
    "IndexedArrayView",
    "PhysicalQuantity",
    "SubDataset",
    "SymbolicQuantity",
    "UnitResolver",
    "batch",
    "grouped_batch",
    "is_dimensionless",
    "random_batch",
    "resolve_units",
    "uniform_batch",
    "update_baseline_loss",
]
