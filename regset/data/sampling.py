"""Batch sampling over an owning dataset.

Two policies are available:

- **uniform**: ``batch_size`` positions drawn independently from ``[0, n)`` with
  replacement; the batch has exactly the requested size.
- **grouped**: when the dataset carries ``batch_group_ids``, one group id is drawn
  uniformly from ``unique_group_ids`` and the batch holds every member of that
  group; its size is the group's size, not the requested one.

The random source is always passed in by the caller; nothing here creates or
locks one. Callers sharing a generator across threads must serialize access to it.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike

from regset.errors import SamplingError
from regset.utils.logging_config import get_logger

from .basic_dataset import BasicDataset
from .views import SubDataset


logger = get_logger(__name__)


def batch(dataset: BasicDataset, indices: ArrayLike) -> SubDataset:
    """Wrap explicit positions into a view.

    Positions are not range-checked here; an out-of-range position fails when the
    view's arrays are read.

    Args:
        dataset: Owning dataset.
        indices: Positions into ``[0, dataset.n)``; duplicates allowed.

    Returns:
        View over the given positions.

    Raises:
        TypeError: If ``indices`` are not integer positions (e.g. a boolean mask).
    """
    return SubDataset(dataset, indices)


def random_batch(rng: np.random.Generator, dataset: BasicDataset, batch_size: int) -> SubDataset:
    """Draw a random batch, grouped if the dataset has batch-group ids, else uniform.

    Args:
        rng: Caller-owned random generator.
        dataset: Owning dataset.
        batch_size: Requested batch size. Ignored by the grouped policy.

    Returns:
        View over the drawn positions.

    Raises:
        SamplingError: If the dataset is empty or ``batch_size`` is not positive.
    """
    if dataset.batch_group_ids is not None:
        return grouped_batch(rng, dataset)
    return uniform_batch(rng, dataset, batch_size)


def uniform_batch(rng: np.random.Generator, dataset: BasicDataset, batch_size: int) -> SubDataset:
    """Draw ``batch_size`` positions uniformly from ``[0, n)`` with replacement."""
    if dataset.n == 0:
        raise SamplingError("Cannot sample a batch from an empty dataset.")
    if batch_size < 1:
        raise SamplingError(f"batch_size must be positive, got {batch_size}.")
    indices = rng.integers(0, dataset.n, size=batch_size)
    logger.debug("uniform_batch_drawn", batch_size=batch_size, n=dataset.n)
    return SubDataset(dataset, indices)


def grouped_batch(rng: np.random.Generator, dataset: BasicDataset) -> SubDataset:
    """Draw one batch-group id and return every member of that group.

    Raises:
        SamplingError: If the dataset has no batch-group ids or is empty.
    """
    if dataset.batch_group_ids is None:
        raise SamplingError("Grouped sampling requires batch_group_ids.")
    if dataset.n == 0:
        raise SamplingError("Cannot sample a batch from an empty dataset.")
    group_id = rng.choice(dataset.unique_group_ids)
    indices = np.flatnonzero(dataset.batch_group_ids == group_id)
    logger.debug("grouped_batch_drawn", group_id=int(group_id), batch_size=len(indices))
    return SubDataset(dataset, indices)
