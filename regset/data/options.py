"""Configuration bundle recognized by the dataset constructor."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DatasetOptions:
    """Options for :meth:`BasicDataset.from_arrays <regset.data.basic_dataset.BasicDataset.from_arrays>`.

    Attributes:
        index: Output slot this dataset feeds (0-based).
        weights: Optional non-negative per-sample weights; enables weighted averaging.
        batch_group_ids: Optional integer group label per sample; enables grouped sampling.
        variable_names: Feature labels; generated as ``x1 .. xN`` when omitted.
        display_variable_names: Labels for terminal output; default to ``variable_names``
            when those are given, otherwise to generated subscript labels.
        target_name: Target label; defaults to ``"y"`` (or ``"target"`` if ``"y"`` is a feature name).
        extra: Opaque auxiliary payload; arrays inside it take part in :meth:`fill`.
        x_units: Raw per-feature unit specification forwarded to the unit resolver.
        y_units: Raw target unit specification forwarded to the unit resolver.
    """

    index: int = 0
    weights: Any | None = None
    batch_group_ids: Any | None = None
    variable_names: Sequence[str] | None = None
    display_variable_names: Sequence[str] | None = None
    target_name: str | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)
    x_units: Any | None = None
    y_units: Any | None = None
