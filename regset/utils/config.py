"""Runtime configuration for regset.

All environment variable parsing lives here; other modules receive
explicit values (e.g. a random generator) instead of reading the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

import numpy as np

from regset.errors import RegsetConfigError


DEFAULT_RANDOM_SEED = 42


@dataclass(frozen=True)
class RegsetConfig:
    """Validated runtime configuration.

    Attributes:
        random_seed: Seed for the process-default random generator handed to samplers.
    """

    random_seed: int = DEFAULT_RANDOM_SEED

    @classmethod
    def from_env(cls) -> "RegsetConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            RegsetConfigError: If ``REGSET_RANDOM_SEED`` is not an integer.
        """
        return cls(random_seed=_parse_random_seed(os.getenv("REGSET_RANDOM_SEED", str(DEFAULT_RANDOM_SEED))))

    def make_rng(self) -> np.random.Generator:
        """Create the explicit default random source for sampling calls."""
        return np.random.default_rng(self.random_seed)


def _parse_random_seed(raw_value: str) -> int:
    try:
        return int(raw_value)
    except ValueError as error:
        raise RegsetConfigError(
            f"Invalid REGSET_RANDOM_SEED value: expected integer, got '{raw_value}'.",
        ) from error
