"""Non-copying batch views over an owning dataset."""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.lib.mixins import NDArrayOperatorsMixin
from numpy.typing import ArrayLike

from regset.errors import SamplingError

from .base_dataset import Dataset, fill_payload


if TYPE_CHECKING:
    from .basic_dataset import BaselineState, BasicDataset


class IndexedArrayView(NDArrayOperatorsMixin):
    """Read-only projection of an array onto selected positions of its last axis.

    Nothing is copied on construction: element access translates positions
    through ``indices`` into the base array. The view converts to a regular
    ``ndarray`` on demand (``np.asarray(view)``), so numpy functions and
    arithmetic operators accept it directly.

    Attributes:
        base: The owner's array. Samples run along its last axis.
        indices: Selected positions into the last axis; duplicates allowed.
    """

    __slots__ = ("base", "indices")

    def __init__(self, base: np.ndarray, indices: np.ndarray) -> None:
        self.base = base
        self.indices = indices

    @property
    def shape(self) -> tuple[int, ...]:
        return (*self.base.shape[:-1], len(self.indices))

    @property
    def ndim(self) -> int:
        return self.base.ndim

    @property
    def dtype(self) -> np.dtype:
        return self.base.dtype

    @property
    def size(self) -> int:
        return int(np.prod(self.shape))

    def __len__(self) -> int:
        return self.shape[0]

    def __getitem__(self, key: Any) -> Any:
        key = key if isinstance(key, tuple) else (key,)
        if any(part is Ellipsis or part is None for part in key) or len(key) > self.ndim:
            return self.to_numpy()[key]
        key = key + (slice(None),) * (self.ndim - len(key))
        *leading, last = key
        if not isinstance(last, int | np.integer) and any(
            not isinstance(part, int | np.integer | slice) for part in leading
        ):
            # two advanced indices would pair up instead of forming an outer product
            return self.to_numpy()[key]
        return self.base[(*leading, self.indices[last])]

    def __iter__(self) -> Iterator[Any]:
        for position in range(len(self)):
            yield self[position]

    def __array__(self, dtype: Any = None, copy: bool | None = None) -> np.ndarray:
        if copy is False:
            raise ValueError("An IndexedArrayView cannot be converted to an array without copying.")
        gathered = np.take(self.base, self.indices, axis=-1)
        return gathered if dtype is None else gathered.astype(dtype, copy=False)

    def __array_ufunc__(self, ufunc: np.ufunc, method: str, *inputs: Any, **kwargs: Any) -> Any:
        if any(isinstance(out, IndexedArrayView) for out in kwargs.get("out") or ()):
            return NotImplemented
        inputs = tuple(np.asarray(item) if isinstance(item, IndexedArrayView) else item for item in inputs)
        return getattr(ufunc, method)(*inputs, **kwargs)

    def to_numpy(self) -> np.ndarray:
        """Gather the selected positions into a new array."""
        return np.asarray(self)

    def fill(self, value: Any) -> None:
        """Write ``value`` into the owner's array at the selected positions."""
        self.base[..., self.indices] = value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape}, dtype={self.dtype})"


class SubDataset(Dataset):
    """A batch of a :class:`~regset.data.basic_dataset.BasicDataset`.

    Holds only a reference to the owning dataset and the selected positions.
    ``features``, ``targets``, ``weights`` and ``batch_group_ids`` are
    :class:`IndexedArrayView` projections onto those positions (or None when the
    owner has no such field); ``n`` is the number of selected positions; every
    other accessor returns the owner's value unchanged.

    The view must not outlive its owner's run, and exposes no way to change its
    selection. Views never write to the owner except through :meth:`fill`, so
    any number of them can be read concurrently.

    Example:
        >>> import numpy as np
        >>> from regset.data import BasicDataset, batch
        >>> ds = BasicDataset.from_arrays(np.arange(8.0).reshape(2, 4), np.arange(4.0))
        >>> sub = batch(ds, [3, 0, 3])
        >>> sub.n, sub.fraction(), sub.targets.to_numpy()
        (3, 0.75, array([3., 0., 3.]))
    """

    __slots__ = ("_dataset", "_indices")

    def __init__(self, dataset: BasicDataset, indices: ArrayLike) -> None:
        self._dataset = dataset
        self._indices = _as_positions(indices)

    # ------------------------------------------------------------------ per-sample accessors
    @property
    def features(self) -> IndexedArrayView:
        return IndexedArrayView(self._dataset.features, self._indices)

    @property
    def targets(self) -> IndexedArrayView | None:
        return self._project(self._dataset.targets)

    @property
    def weights(self) -> IndexedArrayView | None:
        return self._project(self._dataset.weights)

    @property
    def batch_group_ids(self) -> IndexedArrayView | None:
        return self._project(self._dataset.batch_group_ids)

    @property
    def n(self) -> int:
        return len(self._indices)

    def _project(self, values: np.ndarray | None) -> IndexedArrayView | None:
        return None if values is None else IndexedArrayView(values, self._indices)

    # ------------------------------------------------------------------ forwarded accessors
    @property
    def nfeatures(self) -> int:
        return self._dataset.nfeatures

    @property
    def index(self) -> int:
        return self._dataset.index

    @property
    def dtype(self) -> np.dtype:
        return self._dataset.dtype

    @property
    def loss_dtype(self) -> np.dtype:
        return self._dataset.loss_dtype

    @property
    def unique_group_ids(self) -> np.ndarray | None:
        return self._dataset.unique_group_ids

    @property
    def extra(self) -> Mapping[str, Any]:
        return self._dataset.extra

    @property
    def average_target(self) -> Any | None:
        return self._dataset.average_target

    @property
    def baseline(self) -> BaselineState:
        return self._dataset.baseline

    @property
    def variable_names(self) -> Sequence[str]:
        return self._dataset.variable_names

    @property
    def display_variable_names(self) -> Sequence[str]:
        return self._dataset.display_variable_names

    @property
    def target_name(self) -> str:
        return self._dataset.target_name

    @property
    def x_units_physical(self) -> tuple[Any, ...] | None:
        return self._dataset.x_units_physical

    @property
    def x_units_symbolic(self) -> tuple[Any, ...] | None:
        return self._dataset.x_units_symbolic

    @property
    def y_units_physical(self) -> Any | None:
        return self._dataset.y_units_physical

    @property
    def y_units_symbolic(self) -> Any | None:
        return self._dataset.y_units_symbolic

    # ------------------------------------------------------------------ structure
    def full_dataset(self) -> BasicDataset:
        return self._dataset

    def indices(self) -> np.ndarray:
        return self._indices

    def fraction(self) -> float:
        """Return ``n`` of this view divided by ``n`` of the owner.

        Raises:
            SamplingError: If the owner is empty.
        """
        if self._dataset.n == 0:
            raise SamplingError("Cannot compute the batch fraction of an empty dataset.")
        return self.n / self._dataset.n

    def fill(self, value: Any) -> "SubDataset":
        """Fill the owner's arrays at the selected positions, and the whole ``extra`` payload."""
        self.features.fill(value)
        fill_payload(self.targets, value)
        fill_payload(self.weights, value)
        fill_payload(self.extra, value)
        return self

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n={self.n}, of={self._dataset!r})"


def _as_positions(indices: ArrayLike) -> np.ndarray:
    positions = np.asarray(indices)
    if positions.size == 0:
        return positions.astype(np.intp).reshape(0)
    if positions.dtype.kind not in "iu":
        # masks and float positions would be cast to the wrong samples
        raise TypeError(f"Batch indices must be integer positions, got dtype {positions.dtype}.")
    if positions.ndim != 1:
        raise TypeError(f"Batch indices must be one-dimensional, got shape {positions.shape}.")
    return positions.astype(np.intp, copy=False)
