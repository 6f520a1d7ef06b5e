"""Test configuration for regset."""

from pathlib import Path
import sys

import numpy as np
import pytest


# Ensure the local package is importable when the repo isn't installed.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from regset.data import BasicDataset  # noqa: E402
from regset.utils import RegsetConfig  # noqa: E402


@pytest.fixture
def features() -> np.ndarray:
    """Three features, four samples (samples as columns)."""
    return np.arange(12.0).reshape(3, 4)


@pytest.fixture
def targets() -> np.ndarray:
    return np.array([1.0, 2.0, 3.0, 4.0])


@pytest.fixture
def weights() -> np.ndarray:
    return np.array([1.0, 1.0, 2.0, 0.5])


@pytest.fixture
def dataset(features: np.ndarray, targets: np.ndarray, weights: np.ndarray) -> BasicDataset:
    """Weighted dataset with units and an extra payload."""
    return BasicDataset.from_arrays(
        features,
        targets,
        weights=weights,
        x_units=["m", "s", "kg"],
        y_units="m/s",
        extra={"scale": np.ones(4)},
    )


@pytest.fixture
def group_ids() -> np.ndarray:
    return np.array([0, 0, 1, 1, 1, 2, 2, 2, 2, 0])


@pytest.fixture
def grouped_dataset(group_ids: np.ndarray) -> BasicDataset:
    """Ten samples split into three batch groups."""
    return BasicDataset.from_arrays(
        np.arange(20.0).reshape(2, 10),
        np.arange(10.0),
        batch_group_ids=group_ids,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return RegsetConfig(random_seed=0).make_rng()
