"""Physical and symbolic unit resolution for dataset features and targets.

Units are attached per feature (``x_units``) and to the target (``y_units``) in
two parallel representations:

- *physical* units, reduced to exponents over the SI base dimensions, used for
  dimensional computation downstream;
- *symbolic* units, which keep the symbols exactly as written (``km/h`` stays
  ``km/h``) and are used for display.

The dataset only consumes the two-function :class:`UnitResolver` interface.
:class:`DefaultUnitResolver` is a small implementation that understands plain
numbers, SI base units and a handful of common derived units, so datasets can be
built without any external units library. Anything else can be plugged in by
passing a different resolver to the constructor.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from fractions import Fraction
from numbers import Number
from typing import Any, Protocol, runtime_checkable

import numpy as np

from regset.errors import DimensionMismatch, UnitParseError
from regset.utils.logging_config import get_logger


logger = get_logger(__name__)

SI_BASE_DIMENSIONS: tuple[str, ...] = ("m", "kg", "s", "A", "K", "cd", "mol")

Exponents = tuple[Fraction, ...]

_ZERO: Exponents = (Fraction(0),) * len(SI_BASE_DIMENSIONS)


def _dims(**powers: int) -> Exponents:
    return tuple(Fraction(powers.get(name, 0)) for name in SI_BASE_DIMENSIONS)


# symbol -> (scale relative to SI, exponents over SI_BASE_DIMENSIONS)
_KNOWN_UNITS: dict[str, tuple[float, Exponents]] = {
    "m": (1.0, _dims(m=1)),
    "km": (1e3, _dims(m=1)),
    "cm": (1e-2, _dims(m=1)),
    "mm": (1e-3, _dims(m=1)),
    "kg": (1.0, _dims(kg=1)),
    "g": (1e-3, _dims(kg=1)),
    "s": (1.0, _dims(s=1)),
    "ms": (1e-3, _dims(s=1)),
    "min": (60.0, _dims(s=1)),
    "h": (3600.0, _dims(s=1)),
    "A": (1.0, _dims(A=1)),
    "K": (1.0, _dims(K=1)),
    "cd": (1.0, _dims(cd=1)),
    "mol": (1.0, _dims(mol=1)),
    "Hz": (1.0, _dims(s=-1)),
    "N": (1.0, _dims(kg=1, m=1, s=-2)),
    "J": (1.0, _dims(kg=1, m=2, s=-2)),
    "W": (1.0, _dims(kg=1, m=2, s=-3)),
    "Pa": (1.0, _dims(kg=1, m=-1, s=-2)),
    "C": (1.0, _dims(A=1, s=1)),
    "V": (1.0, _dims(kg=1, m=2, s=-3, A=-1)),
}

_FACTOR_RE = re.compile(
    r"^(?P<base>[A-Za-z]+|\d+(?:\.\d*)?(?:[eE][+-]?\d+)?)"
    r"(?:\^\(?(?P<power>-?\d+(?:/\d+)?)\)?)?$",
)
_SEPARATOR_RE = re.compile(r"\s*([*/])\s*")


@dataclass(frozen=True)
class PhysicalQuantity:
    """A scale factor together with its exponents over the SI base dimensions.

    Attributes:
        value: Scale relative to the SI unit (``km`` has value ``1000``).
        dimensions: Exponents aligned with :data:`SI_BASE_DIMENSIONS`.
    """

    value: Any
    dimensions: Exponents = _ZERO

    @property
    def is_dimensionless(self) -> bool:
        return all(power == 0 for power in self.dimensions)

    def __str__(self) -> str:
        parts = [
            name if power == 1 else f"{name}^{power}"
            for name, power in zip(SI_BASE_DIMENSIONS, self.dimensions, strict=True)
            if power != 0
        ]
        unit = " ".join(parts)
        if not unit:
            return str(self.value)
        return unit if self.value == 1 else f"{self.value} {unit}"


@dataclass(frozen=True)
class SymbolicQuantity:
    """A scale factor together with unit symbols kept as written.

    Attributes:
        value: Numeric prefactor of the unit expression (``"2 m"`` has value ``2``).
        symbols: Sorted ``(symbol, exponent)`` pairs, zero exponents removed.
    """

    value: Any
    symbols: tuple[tuple[str, Fraction], ...] = ()

    @property
    def is_dimensionless(self) -> bool:
        return not self.symbols

    def __str__(self) -> str:
        parts = [name if power == 1 else f"{name}^{power}" for name, power in self.symbols]
        unit = "*".join(parts)
        if not unit:
            return str(self.value)
        return unit if self.value == 1 else f"{self.value} {unit}"


Quantity = PhysicalQuantity | SymbolicQuantity


@runtime_checkable
class UnitResolver(Protocol):
    """Two-function interface used by the dataset constructor.

    Both methods return ``None`` for ``None`` input, a list for sequence input
    and a single quantity otherwise.
    """

    def resolve_physical(self, dtype: np.dtype, raw: Any) -> Any: ...

    def resolve_symbolic(self, dtype: np.dtype, raw: Any) -> Any: ...


class DefaultUnitResolver:
    """Resolve numbers, unit strings and quantities into physical/symbolic units.

    Accepted raw specifications:

    - ``None``: no units.
    - a real number: a dimensionless quantity with that value.
    - a string such as ``"m/s^2"``, ``"kg*m**2"`` or ``"1/h"``.
    - an already resolved :class:`PhysicalQuantity` or :class:`SymbolicQuantity`.
    - a sequence of the above (``None`` entries count as dimensionless).

    Example:
        >>> resolver = DefaultUnitResolver()
        >>> str(resolver.resolve_physical(np.dtype("float64"), "km/h"))
        '0.2777777777777778 m s^-1'
        >>> str(resolver.resolve_symbolic(np.dtype("float64"), "km/h"))
        'h^-1*km'
    """

    def resolve_physical(self, dtype: np.dtype, raw: Any) -> PhysicalQuantity | list[PhysicalQuantity] | None:
        if raw is None:
            return None
        if _is_sequence(raw):
            return [self._physical_one(dtype, item) for item in raw]
        return self._physical_one(dtype, raw)

    def resolve_symbolic(self, dtype: np.dtype, raw: Any) -> SymbolicQuantity | list[SymbolicQuantity] | None:
        if raw is None:
            return None
        if _is_sequence(raw):
            return [self._symbolic_one(dtype, item) for item in raw]
        return self._symbolic_one(dtype, raw)

    def _physical_one(self, dtype: np.dtype, raw: Any) -> PhysicalQuantity:
        if isinstance(raw, PhysicalQuantity):
            return raw
        scale, symbols = _parse(raw)
        dimensions = list(_ZERO)
        for symbol, power in symbols.items():
            unit_scale, unit_dims = _KNOWN_UNITS[symbol]
            scale *= unit_scale ** float(power)
            dimensions = [d + power * u for d, u in zip(dimensions, unit_dims, strict=True)]
        return PhysicalQuantity(value=_cast(dtype, scale), dimensions=tuple(dimensions))

    def _symbolic_one(self, dtype: np.dtype, raw: Any) -> SymbolicQuantity:
        if isinstance(raw, SymbolicQuantity):
            return raw
        scale, symbols = _parse(raw)
        return SymbolicQuantity(
            value=_cast(dtype, scale),
            symbols=tuple(sorted((name, power) for name, power in symbols.items() if power != 0)),
        )


DEFAULT_UNIT_RESOLVER = DefaultUnitResolver()


@dataclass(frozen=True)
class ResolvedUnits:
    """Per-feature and target units after cross-filling and validation."""

    x_physical: tuple[Any, ...] | None
    x_symbolic: tuple[Any, ...] | None
    y_physical: Any | None
    y_symbolic: Any | None


def resolve_units(
    dtype: np.dtype,
    x_units: Any,
    y_units: Any,
    nfeatures: int,
    resolver: UnitResolver | None = None,
) -> ResolvedUnits:
    """Resolve raw unit specifications for features and target.

    If the feature units resolve to ``None`` while the target units are present,
    the feature units are filled with ``nfeatures`` dimensionless units. This is
    done independently for the physical and the symbolic representation, so that
    feature and target units are either both present or both absent.

    Args:
        dtype: Element type of the feature matrix.
        x_units: Raw per-feature unit specification (sequence) or ``None``.
        y_units: Raw target unit specification or ``None``.
        nfeatures: Number of features the feature units must cover.
        resolver: Resolver to use; defaults to :class:`DefaultUnitResolver`.

    Returns:
        The resolved units.

    Raises:
        DimensionMismatch: If the feature units do not contain exactly one unit per
            feature, or if the target units are a sequence.
    """
    resolver = resolver or DEFAULT_UNIT_RESOLVER
    dimensionless = [1] * nfeatures

    y_physical = resolver.resolve_physical(dtype, y_units)
    y_symbolic = resolver.resolve_symbolic(dtype, y_units)
    for resolved in (y_physical, y_symbolic):
        if resolved is not None and _is_sequence(resolved):
            raise DimensionMismatch("y_units must describe a single unit, got a sequence of units.")

    x_physical = resolver.resolve_physical(dtype, x_units)
    if x_physical is None and y_physical is not None:
        x_physical = resolver.resolve_physical(dtype, dimensionless)
        logger.debug("x_units_cross_filled", representation="physical", nfeatures=nfeatures)

    x_symbolic = resolver.resolve_symbolic(dtype, x_units)
    if x_symbolic is None and y_symbolic is not None:
        x_symbolic = resolver.resolve_symbolic(dtype, dimensionless)
        logger.debug("x_units_cross_filled", representation="symbolic", nfeatures=nfeatures)

    return ResolvedUnits(
        x_physical=_check_unit_count(nfeatures, x_physical),
        x_symbolic=_check_unit_count(nfeatures, x_symbolic),
        y_physical=y_physical,
        y_symbolic=y_symbolic,
    )


def is_dimensionless(quantity: Any) -> bool:
    """Return True if ``quantity`` carries no dimensions (plain numbers count as dimensionless)."""
    if isinstance(quantity, Number):
        return True
    return bool(getattr(quantity, "is_dimensionless", False))


def _check_unit_count(nfeatures: int, units: Any) -> tuple[Any, ...] | None:
    if units is None:
        return None
    if not _is_sequence(units):
        raise DimensionMismatch(f"Number of features ({nfeatures}) does not match number of units (1)")
    if len(units) != nfeatures:
        raise DimensionMismatch(f"Number of features ({nfeatures}) does not match number of units ({len(units)})")
    return tuple(units)


def _is_sequence(raw: Any) -> bool:
    if isinstance(raw, np.ndarray):
        return raw.ndim > 0
    return isinstance(raw, Sequence) and not isinstance(raw, str)


def _cast(dtype: np.dtype, value: float) -> Any:
    # integer element types would truncate prefixes such as "mm"
    if np.dtype(dtype).kind in "fc":
        return np.dtype(dtype).type(value)
    return float(value)


def _parse(raw: Any) -> tuple[float, Mapping[str, Fraction]]:
    """Parse a raw unit into a numeric prefactor and symbol exponents."""
    if raw is None:
        return 1.0, {}
    if isinstance(raw, PhysicalQuantity):
        symbols = {name: power for name, power in zip(SI_BASE_DIMENSIONS, raw.dimensions, strict=True) if power != 0}
        return float(raw.value), symbols
    if isinstance(raw, SymbolicQuantity):
        return float(raw.value), dict(raw.symbols)
    if isinstance(raw, Number) and not isinstance(raw, bool):
        return float(raw), {}
    if not isinstance(raw, str):
        raise UnitParseError(f"Cannot interpret {raw!r} as a unit specification.")

    text = raw.strip().replace("**", "^")
    if not text:
        return 1.0, {}

    scale = 1.0
    symbols: dict[str, Fraction] = {}
    sign = 1
    # split keeps the separators: ["m", "/", "s^2"]
    for token in _SEPARATOR_RE.split(text):
        if token in ("*", "/"):
            sign = 1 if token == "*" else -1
            continue
        for piece in token.split():
            match = _FACTOR_RE.match(piece)
            if match is None:
                raise UnitParseError(f"Cannot parse unit factor '{piece}' in '{raw}'.")
            power = sign * Fraction(match.group("power") or 1)
            base = match.group("base")
            if base[0].isdigit():
                scale *= float(base) ** float(power)
            elif base in _KNOWN_UNITS:
                symbols[base] = symbols.get(base, Fraction(0)) + power
            else:
                raise UnitParseError(f"Unknown unit symbol '{base}' in '{raw}'.")
    return scale, symbols
