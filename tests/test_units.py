"""Tests for unit resolution and cross-filling."""

from fractions import Fraction
from typing import Any

import numpy as np
import pytest

from regset.data import (
    BasicDataset,
    DefaultUnitResolver,
    PhysicalQuantity,
    SymbolicQuantity,
    UnitResolver,
    is_dimensionless,
    resolve_units,
)
from regset.data.units import SI_BASE_DIMENSIONS
from regset.errors import DimensionMismatch, UnitParseError


FLOAT64 = np.dtype("float64")


def dims(**powers: int) -> tuple[Fraction, ...]:
    return tuple(Fraction(powers.get(name, 0)) for name in SI_BASE_DIMENSIONS)


class RecordingResolver:
    """Resolver that records every raw specification it is handed."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, Any]] = []
        self._inner = DefaultUnitResolver()

    def resolve_physical(self, dtype: np.dtype, raw: Any) -> Any:
        self.calls.append(("physical", raw))
        return self._inner.resolve_physical(dtype, raw)

    def resolve_symbolic(self, dtype: np.dtype, raw: Any) -> Any:
        self.calls.append(("symbolic", raw))
        return self._inner.resolve_symbolic(dtype, raw)


class TestCrossFill:
    """Test that feature and target units are present together or not at all."""

    def test_target_units_only(self, features: np.ndarray) -> None:
        ds = BasicDataset.from_arrays(features, y_units="m/s")
        assert len(ds.x_units_physical) == len(ds.x_units_symbolic) == ds.nfeatures
        assert all(unit.is_dimensionless for unit in ds.x_units_physical)
        assert all(unit.is_dimensionless for unit in ds.x_units_symbolic)
        assert ds.y_units_physical.dimensions == dims(m=1, s=-1)
        assert ds.has_units()

    def test_no_units(self, features: np.ndarray) -> None:
        ds = BasicDataset.from_arrays(features)
        assert ds.x_units_physical is None
        assert ds.x_units_symbolic is None
        assert ds.y_units_physical is None
        assert ds.y_units_symbolic is None
        assert not ds.has_units()

    def test_feature_units_only(self, features: np.ndarray) -> None:
        ds = BasicDataset.from_arrays(features, x_units=["m", "s", None])
        assert ds.y_units_physical is None
        assert ds.x_units_physical[2].is_dimensionless
        assert ds.has_units()

    def test_resolver_receives_dimensionless_fill(self) -> None:
        resolver = RecordingResolver()
        resolve_units(FLOAT64, None, "m", 3, resolver)
        assert ("physical", [1, 1, 1]) in resolver.calls
        assert ("symbolic", [1, 1, 1]) in resolver.calls

    def test_custom_resolver_used_by_dataset(self, features: np.ndarray) -> None:
        resolver = RecordingResolver()
        BasicDataset.from_arrays(features, x_units=["m", "m", "m"], unit_resolver=resolver)
        assert ("physical", ["m", "m", "m"]) in resolver.calls


class TestUnitCount:
    """Test feature unit count validation."""

    @pytest.mark.parametrize("x_units", [["m", "s"], ["m", "s", "kg", "K"], "m"])
    def test_mismatch(self, features: np.ndarray, x_units: Any) -> None:
        with pytest.raises(DimensionMismatch, match="does not match number of units"):
            BasicDataset.from_arrays(features, x_units=x_units)

    def test_sequence_target_units(self, features: np.ndarray) -> None:
        with pytest.raises(DimensionMismatch):
            BasicDataset.from_arrays(features, y_units=["m", "s"])


class TestDefaultUnitResolver:
    """Test the built-in unit parser."""

    @pytest.fixture
    def resolver(self) -> DefaultUnitResolver:
        return DefaultUnitResolver()

    def test_satisfies_protocol(self, resolver: DefaultUnitResolver) -> None:
        assert isinstance(resolver, UnitResolver)

    def test_none_passes_through(self, resolver: DefaultUnitResolver) -> None:
        assert resolver.resolve_physical(FLOAT64, None) is None
        assert resolver.resolve_symbolic(FLOAT64, None) is None

    def test_prefixed_ratio(self, resolver: DefaultUnitResolver) -> None:
        physical = resolver.resolve_physical(FLOAT64, "km/h")
        assert physical.value == pytest.approx(1000 / 3600)
        assert physical.dimensions == dims(m=1, s=-1)

        symbolic = resolver.resolve_symbolic(FLOAT64, "km/h")
        assert symbolic.value == 1
        assert symbolic.symbols == (("h", Fraction(-1)), ("km", Fraction(1)))

    @pytest.mark.parametrize("raw", ["kg*m**2/s^2", "kg * m^2 / s^2", "J"])
    def test_energy_spellings(self, resolver: DefaultUnitResolver, raw: str) -> None:
        assert resolver.resolve_physical(FLOAT64, raw).dimensions == dims(kg=1, m=2, s=-2)

    def test_unknown_symbol(self, resolver: DefaultUnitResolver) -> None:
        with pytest.raises(UnitParseError, match="furlong"):
            resolver.resolve_physical(FLOAT64, "furlong/s")

    def test_number_is_dimensionless(self, resolver: DefaultUnitResolver) -> None:
        physical = resolver.resolve_physical(FLOAT64, 2.5)
        assert physical.value == 2.5
        assert physical.is_dimensionless
        assert is_dimensionless(physical)

    def test_quantities_pass_through(self, resolver: DefaultUnitResolver) -> None:
        physical = PhysicalQuantity(1.0, dims(K=1))
        symbolic = SymbolicQuantity(1.0, (("K", Fraction(1)),))
        assert resolver.resolve_physical(FLOAT64, physical) is physical
        assert resolver.resolve_symbolic(FLOAT64, symbolic) is symbolic

    def test_sequence_resolves_to_list(self, resolver: DefaultUnitResolver) -> None:
        resolved = resolver.resolve_symbolic(FLOAT64, ["m", None])
        assert isinstance(resolved, list)
        assert resolved[0].symbols == (("m", Fraction(1)),)
        assert resolved[1].is_dimensionless

    def test_value_uses_float_dtype(self, resolver: DefaultUnitResolver) -> None:
        assert resolver.resolve_physical(np.dtype("float32"), "mm").value.dtype == np.float32


def test_is_dimensionless_helpers() -> None:
    assert is_dimensionless(3)
    assert not is_dimensionless(PhysicalQuantity(1.0, dims(m=1)))
    assert not is_dimensionless("m")
