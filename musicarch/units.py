"""Length unit conversion between the engine (mm) and hosts/displays."""

from __future__ import annotations

MM_PER_INCH = 25.4
UNITS = ("mm", "inch")


def mm_to_inch(mm: float) -> float:
    return mm / MM_PER_INCH


def inch_to_mm(inch: float) -> float:
    return inch * MM_PER_INCH


def to_unit(value_mm: float, unit: str) -> float:
    """Convert an internal millimetre value into *unit*."""
    if unit == "mm":
        return value_mm
    if unit == "inch":
        return mm_to_inch(value_mm)
    raise ValueError(f"Unknown unit: {unit!r}")


def from_unit(value: float, unit: str) -> float:
    """Convert a value expressed in *unit* into millimetres."""
    if unit == "mm":
        return value
    if unit == "inch":
        return inch_to_mm(value)
    raise ValueError(f"Unknown unit: {unit!r}")


def display_value(value_mm: float, unit: str) -> int:
    """Rounded value as shown in the control panel fields."""
    return round(to_unit(value_mm, unit))
