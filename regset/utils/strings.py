"""String helpers for generated labels."""

_SUBSCRIPT_DIGITS = str.maketrans("0123456789-", "₀₁₂₃₄₅₆₇₈₉₋")


def subscriptify(number: int) -> str:
    """Render an integer with unicode subscript digits, e.g. ``12 -> '₁₂'``."""
    return str(number).translate(_SUBSCRIPT_DIGITS)


def default_variable_names(nfeatures: int) -> list[str]:
    """Generated feature labels ``x1 .. xN``."""
    return [f"x{i}" for i in range(1, nfeatures + 1)]


def default_display_variable_names(nfeatures: int) -> list[str]:
    """Generated display labels ``x₁ .. x_N``."""
    return [f"x{subscriptify(i)}" for i in range(1, nfeatures + 1)]
