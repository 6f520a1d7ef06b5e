"""Owning dataset container and its validating constructor."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence, Sized
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import ArrayLike, DTypeLike

from regset.errors import DimensionMismatch, InvalidIndexing, InvalidWeights
from regset.utils.logging_config import get_logger
from regset.utils.strings import default_display_variable_names, default_variable_names

from .base_dataset import Dataset, fill_payload
from .options import DatasetOptions
from .units import UnitResolver, resolve_units


logger = get_logger(__name__)

_NUMERIC_KINDS = "biufc"

LossFunction = Callable[[np.ndarray, Any, Any | None], Any]


@dataclass
class BaselineState:
    """Mutable baseline cell of a dataset.

    Holds the loss of the constant predictor that always returns the (weighted)
    average target. The loss itself is computed by the caller; this cell only
    stores it. Updates are not synchronized: the updating caller must have
    exclusive access to the dataset.

    Attributes:
        loss_dtype: Element type of the stored loss.
        use_baseline: False once an infinite baseline loss has been recorded.
        loss: Stored baseline loss; the multiplicative identity until updated.
    """

    loss_dtype: np.dtype
    use_baseline: bool = True
    loss: Any = field(default=None)

    def __post_init__(self) -> None:
        if self.loss is None:
            self.loss = self.loss_dtype.type(1)

    def update(self, loss: Any) -> None:
        """Record a freshly computed baseline loss.

        A finite loss is stored and enables the baseline. A non-finite loss
        disables the baseline and resets the stored loss to one.

        Raises:
            TypeError: If an integer ``loss_dtype`` cannot hold ``loss`` exactly.
        """
        if np.isfinite(loss):
            stored = self.loss_dtype.type(loss)
            if self.loss_dtype.kind in "biu" and stored != loss:
                raise TypeError(f"Baseline loss {loss!r} cannot be stored exactly as {self.loss_dtype}.")
            self.loss = stored
            self.use_baseline = True
            return
        logger.info("baseline_disabled", loss=str(loss))
        self.loss = self.loss_dtype.type(1)
        self.use_baseline = False


class BasicDataset(Dataset):
    """Dataset owning its feature matrix and all parallel per-sample arrays.

    Build instances with :meth:`from_arrays` or :meth:`from_frame`, which validate
    every cross-field length invariant before anything is stored. The record is
    read-only after construction except for the :class:`BaselineState` cell and the
    explicit bulk :meth:`fill`. Arrays are stored as given (no copy), so any number
    of :class:`~regset.data.views.SubDataset` views may read them concurrently.

    Example:
        >>> import numpy as np
        >>> from regset.data import BasicDataset
        >>> X = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0]])
        >>> ds = BasicDataset.from_arrays(X, np.array([1.0, 2.0, 3.0]), y_units="m")
        >>> ds.n, ds.nfeatures, ds.target_name, ds.average_target
        (3, 2, 'y', np.float64(2.0))
    """

    def __init__(
        self,
        *,
        features: np.ndarray,
        targets: np.ndarray | None,
        index: int,
        weights: np.ndarray | None,
        batch_group_ids: np.ndarray | None,
        unique_group_ids: np.ndarray | None,
        extra: Mapping[str, Any],
        average_target: Any | None,
        baseline: BaselineState,
        variable_names: Sequence[str],
        display_variable_names: Sequence[str],
        target_name: str,
        x_units_physical: tuple[Any, ...] | None,
        y_units_physical: Any | None,
        x_units_symbolic: tuple[Any, ...] | None,
        y_units_symbolic: Any | None,
    ) -> None:
        """Store already validated fields; use :meth:`from_arrays` instead of calling this directly."""
        self._features = features
        self._targets = targets
        self._index = index
        self._weights = weights
        self._batch_group_ids = batch_group_ids
        self._unique_group_ids = unique_group_ids
        self._extra = extra
        self._average_target = average_target
        self._baseline = baseline
        self._variable_names = tuple(variable_names)
        self._display_variable_names = tuple(display_variable_names)
        self._target_name = target_name
        self._x_units_physical = x_units_physical
        self._y_units_physical = y_units_physical
        self._x_units_symbolic = x_units_symbolic
        self._y_units_symbolic = y_units_symbolic

    @classmethod
    def from_arrays(
        cls,
        features: ArrayLike,
        targets: ArrayLike | None = None,
        loss_dtype: DTypeLike | None = None,
        *,
        options: DatasetOptions | None = None,
        unit_resolver: UnitResolver | None = None,
        **overrides: Any,
    ) -> "BasicDataset":
        """Validate raw arrays and build a dataset.

        Args:
            features: Numeric matrix with shape ``(nfeatures, n)``; samples are columns.
            targets: Optional vector with shape ``(n,)``.
            loss_dtype: Element type for losses. Defaults to the real component type
                for complex features, ``float64`` for integer or boolean features,
                otherwise to the feature dtype.
            options: Configuration bundle; see :class:`DatasetOptions`.
            unit_resolver: Resolver for ``x_units`` / ``y_units``; defaults to
                :class:`~regset.data.units.DefaultUnitResolver`.
            **overrides: Individual :class:`DatasetOptions` fields, taking precedence over ``options``.

        Returns:
            A fully validated dataset.

        Raises:
            DimensionMismatch: If targets, weights, batch-group ids, names or feature
                units disagree with the feature matrix shape.
            InvalidIndexing: If a pandas input does not carry a default ``RangeIndex``.
            InvalidWeights: If any weight is negative.
            TypeError: If features or batch-group ids have an unsupported dtype, or an
                unknown option is passed.
        """
        options = replace(options or DatasetOptions(), **overrides)

        features = _as_array("features", features, ndim=2)
        if features.dtype.kind not in _NUMERIC_KINDS:
            raise TypeError(f"features must be numeric, got dtype {features.dtype}.")
        nfeatures, n = features.shape

        targets = _as_sample_array("targets", targets, n)
        weights = _as_sample_array("weights", options.weights, n)
        if weights is not None and np.any(weights < 0):
            raise InvalidWeights("weights must be non-negative.")

        batch_group_ids = _as_sample_array("batch_group_ids", options.batch_group_ids, n)
        unique_group_ids = None
        if batch_group_ids is not None:
            if batch_group_ids.dtype.kind not in "iu":
                raise TypeError(f"batch_group_ids must be integers, got dtype {batch_group_ids.dtype}.")
            unique_group_ids = pd.unique(batch_group_ids)

        variable_names = (
            list(options.variable_names) if options.variable_names is not None else default_variable_names(nfeatures)
        )
        if options.display_variable_names is not None:
            display_variable_names = list(options.display_variable_names)
        elif options.variable_names is not None:
            display_variable_names = list(variable_names)
        else:
            display_variable_names = default_display_variable_names(nfeatures)
        _check_length("variable_names", variable_names, nfeatures, "nfeatures")
        _check_length("display_variable_names", display_variable_names, nfeatures, "nfeatures")

        target_name = options.target_name
        if target_name is None:
            target_name = "y" if "y" not in variable_names else "target"

        resolved_loss_dtype = _resolve_loss_dtype(features.dtype, loss_dtype)
        units = resolve_units(features.dtype, options.x_units, options.y_units, nfeatures, unit_resolver)

        dataset = cls(
            features=features,
            targets=targets,
            index=options.index,
            weights=weights,
            batch_group_ids=batch_group_ids,
            unique_group_ids=unique_group_ids,
            extra=MappingProxyType(dict(options.extra)),
            average_target=_average_target(targets, weights),
            baseline=BaselineState(loss_dtype=resolved_loss_dtype),
            variable_names=variable_names,
            display_variable_names=display_variable_names,
            target_name=target_name,
            x_units_physical=units.x_physical,
            y_units_physical=units.y_physical,
            x_units_symbolic=units.x_symbolic,
            y_units_symbolic=units.y_symbolic,
        )
        logger.debug(
            "dataset_constructed",
            n=n,
            nfeatures=nfeatures,
            dtype=str(features.dtype),
            weighted=weights is not None,
            grouped=batch_group_ids is not None,
            has_units=dataset.has_units(),
        )
        return dataset

    @classmethod
    def from_frame(
        cls,
        df: pd.DataFrame,
        target: str | None = None,
        loss_dtype: DTypeLike | None = None,
        *,
        weights: str | None = None,
        batch_group_ids: str | None = None,
        options: DatasetOptions | None = None,
        unit_resolver: UnitResolver | None = None,
        **overrides: Any,
    ) -> "BasicDataset":
        """Build a dataset from a DataFrame with samples as rows.

        The ``target``, ``weights`` and ``batch_group_ids`` columns are pulled out;
        every remaining column becomes a feature, and its label the default
        variable name.

        Args:
            df: DataFrame with a default ``RangeIndex``.
            target: Name of the target column, also used as the default ``target_name``.
            loss_dtype: See :meth:`from_arrays`.
            weights: Name of the weight column.
            batch_group_ids: Name of the batch-group id column.
            options: See :meth:`from_arrays`.
            unit_resolver: See :meth:`from_arrays`.
            **overrides: See :meth:`from_arrays`.

        Returns:
            A fully validated dataset.

        Raises:
            KeyError: If a named column is missing.
            InvalidIndexing: If ``df`` does not carry a default ``RangeIndex``.
        """
        _require_default_index("df", df.index)
        special = [col for col in (target, weights, batch_group_ids) if col is not None]
        missing = [col for col in special if col not in df.columns]
        if missing:
            raise KeyError(f"Columns not found in DataFrame: {missing}")

        feature_frame = df.drop(columns=special)
        base = options or DatasetOptions()
        base = replace(
            base,
            variable_names=base.variable_names
            if base.variable_names is not None
            else [str(col) for col in feature_frame.columns],
            target_name=base.target_name if base.target_name is not None or target is None else str(target),
            weights=df[weights] if weights is not None else base.weights,
            batch_group_ids=df[batch_group_ids] if batch_group_ids is not None else base.batch_group_ids,
        )
        return cls.from_arrays(
            feature_frame.to_numpy().T,
            df[target] if target is not None else None,
            loss_dtype,
            options=base,
            unit_resolver=unit_resolver,
            **overrides,
        )

    # ------------------------------------------------------------------ accessors
    @property
    def features(self) -> np.ndarray:
        return self._features

    @property
    def targets(self) -> np.ndarray | None:
        return self._targets

    @property
    def weights(self) -> np.ndarray | None:
        return self._weights

    @property
    def batch_group_ids(self) -> np.ndarray | None:
        return self._batch_group_ids

    @property
    def n(self) -> int:
        return self._features.shape[1]

    @property
    def nfeatures(self) -> int:
        return self._features.shape[0]

    @property
    def index(self) -> int:
        return self._index

    @property
    def dtype(self) -> np.dtype:
        return self._features.dtype

    @property
    def loss_dtype(self) -> np.dtype:
        return self._baseline.loss_dtype

    @property
    def unique_group_ids(self) -> np.ndarray | None:
        return self._unique_group_ids

    @property
    def extra(self) -> Mapping[str, Any]:
        return self._extra

    @property
    def average_target(self) -> Any | None:
        return self._average_target

    @property
    def baseline(self) -> BaselineState:
        return self._baseline

    @property
    def variable_names(self) -> tuple[str, ...]:
        return self._variable_names

    @property
    def display_variable_names(self) -> tuple[str, ...]:
        return self._display_variable_names

    @property
    def target_name(self) -> str:
        return self._target_name

    @property
    def x_units_physical(self) -> tuple[Any, ...] | None:
        return self._x_units_physical

    @property
    def x_units_symbolic(self) -> tuple[Any, ...] | None:
        return self._x_units_symbolic

    @property
    def y_units_physical(self) -> Any | None:
        return self._y_units_physical

    @property
    def y_units_symbolic(self) -> Any | None:
        return self._y_units_symbolic

    # ------------------------------------------------------------------ structure
    def full_dataset(self) -> "BasicDataset":
        return self

    def indices(self) -> None:
        return None

    def fraction(self) -> float:
        return 1.0

    def fill(self, value: Any) -> "BasicDataset":
        fill_payload(self._features, value)
        fill_payload(self._targets, value)
        fill_payload(self._weights, value)
        fill_payload(self._extra, value)
        return self

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(n={self.n}, nfeatures={self.nfeatures}, dtype={self.dtype}, "
            f"weighted={self.is_weighted()}, grouped={self._batch_group_ids is not None})"
        )


def update_baseline_loss(dataset: BasicDataset, loss_function: LossFunction) -> BaselineState:
    """Evaluate the constant average-target predictor and store its loss.

    The loss itself is owned by the caller: ``loss_function(prediction, targets,
    weights)`` receives a constant prediction of ``average_target`` for every sample.
    Without targets the baseline is disabled. The caller must hold exclusive access
    to ``dataset`` for the duration of the update.

    Args:
        dataset: Dataset whose baseline cell is updated.
        loss_function: Callable returning a scalar loss.

    Returns:
        The updated baseline cell.
    """
    if dataset.targets is None or dataset.average_target is None:
        dataset.baseline.update(np.inf)
        return dataset.baseline

    prediction = np.full(dataset.n, dataset.average_target)
    dataset.baseline.update(loss_function(prediction, dataset.targets, dataset.weights))
    return dataset.baseline


def _require_default_index(name: str, index: pd.Index) -> None:
    if not index.equals(pd.RangeIndex(len(index))):
        raise InvalidIndexing(
            f"{name} must be indexed by a default RangeIndex starting at 0; "
            "call .reset_index(drop=True) before building the dataset.",
        )


def _as_array(name: str, data: Any, ndim: int) -> np.ndarray:
    if isinstance(data, pd.Series | pd.DataFrame):
        _require_default_index(name, data.index)
        data = data.to_numpy()
    array = np.asarray(data)
    if array.ndim != ndim:
        raise DimensionMismatch(f"{name} must be {ndim}-dimensional, got shape {array.shape}.")
    return array


def _as_sample_array(name: str, data: Any | None, n: int) -> np.ndarray | None:
    if data is None:
        return None
    array = _as_array(name, data, ndim=1)
    _check_length(name, array, n, "dataset size")
    return array


def _check_length(name: str, values: Sized, expected: int, what: str) -> None:
    if len(values) != expected:
        raise DimensionMismatch(f"Length of {name} ({len(values)}) must match {what} ({expected})")


def _average_target(targets: np.ndarray | None, weights: np.ndarray | None) -> Any | None:
    if targets is None or targets.dtype.kind not in _NUMERIC_KINDS or len(targets) == 0:
        return None
    if weights is not None:
        return np.sum(targets * weights) / np.sum(weights)
    return np.sum(targets) / len(targets)


def _resolve_loss_dtype(dtype: np.dtype, loss_dtype: DTypeLike | None) -> np.dtype:
    if loss_dtype is not None:
        return np.dtype(loss_dtype)
    if dtype.kind == "c":
        return np.finfo(dtype).dtype
    if dtype.kind in "biu":
        return np.dtype(np.float64)
    return dtype
