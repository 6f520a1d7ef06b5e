"""Accessor interface shared by owning datasets and their batch views."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
import pandas as pd


if TYPE_CHECKING:
    from .basic_dataset import BaselineState, BasicDataset


class Dataset(ABC):
    """Abstract base class for regression datasets.

    A dataset exposes the feature matrix with shape ``(nfeatures, n)`` (samples
    as columns), optional per-sample targets, weights and batch-group ids, and
    per-feature metadata (names, units). :class:`~regset.data.basic_dataset.BasicDataset`
    owns the storage; :class:`~regset.data.views.SubDataset` is a non-copying view
    restricted to a list of positions. Both implement the accessors below, so
    downstream code can read either one without knowing which it holds.

    Per-sample accessors (``features``, ``targets``, ``weights``,
    ``batch_group_ids``, ``n``) depend on the selected positions; everything else
    describes the whole dataset and is identical for an owner and its views.
    """

    # ------------------------------------------------------------------ per-sample accessors
    @property
    @abstractmethod
    def features(self) -> Any:
        """Feature matrix with shape ``(nfeatures, n)``."""
        ...

    @property
    @abstractmethod
    def targets(self) -> Any | None:
        """Targets with shape ``(n,)``, or None."""
        ...

    @property
    @abstractmethod
    def weights(self) -> Any | None:
        """Non-negative per-sample weights with shape ``(n,)``, or None."""
        ...

    @property
    @abstractmethod
    def batch_group_ids(self) -> Any | None:
        """Integer group label of each sample, or None."""
        ...

    @property
    @abstractmethod
    def n(self) -> int:
        """Number of samples."""
        ...

    # ------------------------------------------------------------------ whole-dataset accessors
    @property
    @abstractmethod
    def nfeatures(self) -> int: ...

    @property
    @abstractmethod
    def index(self) -> int:
        """Output slot this dataset feeds."""
        ...

    @property
    @abstractmethod
    def dtype(self) -> np.dtype:
        """Element type of the feature matrix."""
        ...

    @property
    @abstractmethod
    def loss_dtype(self) -> np.dtype:
        """Element type used to accumulate losses."""
        ...

    @property
    @abstractmethod
    def unique_group_ids(self) -> np.ndarray | None:
        """Distinct batch-group ids of the owning dataset, in order of first appearance."""
        ...

    @property
    @abstractmethod
    def extra(self) -> Mapping[str, Any]:
        """Opaque auxiliary payload passed through to custom evaluation code."""
        ...

    @property
    @abstractmethod
    def average_target(self) -> Any | None:
        """(Weighted) mean of the targets of the owning dataset, or None."""
        ...

    @property
    @abstractmethod
    def baseline(self) -> BaselineState:
        """Mutable baseline cell of the owning dataset."""
        ...

    @property
    @abstractmethod
    def variable_names(self) -> Sequence[str]: ...

    @property
    @abstractmethod
    def display_variable_names(self) -> Sequence[str]: ...

    @property
    @abstractmethod
    def target_name(self) -> str: ...

    @property
    @abstractmethod
    def x_units_physical(self) -> tuple[Any, ...] | None: ...

    @property
    @abstractmethod
    def x_units_symbolic(self) -> tuple[Any, ...] | None: ...

    @property
    @abstractmethod
    def y_units_physical(self) -> Any | None: ...

    @property
    @abstractmethod
    def y_units_symbolic(self) -> Any | None: ...

    # ------------------------------------------------------------------ structure
    @abstractmethod
    def full_dataset(self) -> BasicDataset:
        """Return the dataset owning the storage (an owner returns itself)."""
        ...

    @abstractmethod
    def indices(self) -> np.ndarray | None:
        """Return the selected positions, or None for an owning dataset."""
        ...

    @abstractmethod
    def fraction(self) -> float:
        """Return the share of the owning dataset's samples this dataset covers."""
        ...

    @abstractmethod
    def fill(self, value: Any) -> "Dataset":
        """Overwrite every stored element with ``value``.

        Fills features, targets, weights and every array inside ``extra``.
        Callers must hold exclusive access; no reads may overlap the fill.

        Returns:
            Self for method chaining.
        """
        ...

    # ------------------------------------------------------------------ derived helpers
    @property
    def use_baseline(self) -> bool:
        return self.baseline.use_baseline

    @property
    def baseline_loss(self) -> Any:
        return self.baseline.loss

    def is_weighted(self) -> bool:
        """Return True if per-sample weights are present."""
        return self.weights is not None

    def has_units(self) -> bool:
        """Return True if physical units are attached to the features or the target."""
        return self.x_units_physical is not None or self.y_units_physical is not None

    def max_features(self) -> int:
        """Number of features an expression over this dataset may reference."""
        return self.nfeatures

    def to_frame(self) -> pd.DataFrame:
        """Materialize the dataset as a DataFrame with samples as rows.

        Columns are named by ``variable_names``, followed by the target column
        (``target_name``) and ``weight`` / ``batch_group_id`` columns when present.
        Unlike every other accessor this copies the data.

        Returns:
            DataFrame with ``n`` rows.

        Raises:
            ValueError: If two columns would share a name.
        """
        columns = dict(zip(self.variable_names, np.asarray(self.features), strict=True))
        if len(columns) != self.nfeatures:
            raise ValueError(f"variable_names must be unique to build a DataFrame, got {list(self.variable_names)}.")
        for name, values in (
            (self.target_name, self.targets),
            ("weight", self.weights),
            ("batch_group_id", self.batch_group_ids),
        ):
            if values is None:
                continue
            if name in columns:
                raise ValueError(f"Column '{name}' would overwrite a feature column of the same name.")
            columns[name] = np.asarray(values)
        return pd.DataFrame(columns)

    def __len__(self) -> int:
        return self.n


def fill_payload(payload: Any, value: Any) -> None:
    """Fill arrays in place; recurse into mappings; leave anything else untouched."""
    if payload is None:
        return
    if isinstance(payload, np.ndarray):
        payload.fill(value)
    elif isinstance(payload, Mapping):
        for item in payload.values():
            fill_payload(item, value)
    elif hasattr(payload, "fill") and callable(payload.fill):
        payload.fill(value)
