"""Pure direction and spacing algebra for the placement engine."""

from __future__ import annotations

import math

from .models import AdvanceDir, Group, NoteDuration, RotationAxis, Vec3


DIRECTION_VECTORS: dict[AdvanceDir, Vec3] = {
    AdvanceDir.X_POS: (1.0, 0.0, 0.0),
    AdvanceDir.X_NEG: (-1.0, 0.0, 0.0),
    AdvanceDir.Y_POS: (0.0, 1.0, 0.0),
    AdvanceDir.Y_NEG: (0.0, -1.0, 0.0),
    AdvanceDir.Z_POS: (0.0, 0.0, 1.0),
    AdvanceDir.Z_NEG: (0.0, 0.0, -1.0),
}

# current -> (left, right), viewed from above.  Vertical travel cannot turn.
TURN_MAP: dict[AdvanceDir, tuple[AdvanceDir, AdvanceDir]] = {
    AdvanceDir.X_POS: (AdvanceDir.Y_POS, AdvanceDir.Y_NEG),
    AdvanceDir.Y_POS: (AdvanceDir.X_NEG, AdvanceDir.X_POS),
    AdvanceDir.X_NEG: (AdvanceDir.Y_NEG, AdvanceDir.Y_POS),
    AdvanceDir.Y_NEG: (AdvanceDir.X_POS, AdvanceDir.X_NEG),
}

_OPPOSITE: dict[AdvanceDir, AdvanceDir] = {
    AdvanceDir.X_POS: AdvanceDir.X_NEG,
    AdvanceDir.X_NEG: AdvanceDir.X_POS,
    AdvanceDir.Y_POS: AdvanceDir.Y_NEG,
    AdvanceDir.Y_NEG: AdvanceDir.Y_POS,
    AdvanceDir.Z_POS: AdvanceDir.Z_NEG,
    AdvanceDir.Z_NEG: AdvanceDir.Z_POS,
}

# The note box is authored lying along X; travel along X or Z needs a
# quarter turn so the box stands across the path.
PRE_ROTATION_AXIS: dict[str, RotationAxis] = {
    "X": RotationAxis.Z,
    "Z": RotationAxis.Y,
}


def compute_spacing(group: Group, duration: NoteDuration) -> float:
    """Travel distance consumed by one note of *duration* in *group*."""
    return abs(group.base_spacing) * duration.factor


def direction_vector(advance_dir: AdvanceDir) -> Vec3:
    return DIRECTION_VECTORS[advance_dir]


def legacy_direction(axis: str, base_spacing: float) -> AdvanceDir:
    """Resolve a reduced-form axis letter using the sign of the spacing."""
    axis = axis.strip().upper()
    if axis not in ("X", "Y", "Z"):
        raise ValueError(f"Not an axis letter: {axis!r}")
    if axis == "Z":
        return AdvanceDir.Z_NEG if base_spacing < 0 else AdvanceDir.Z_POS
    sign = "-" if base_spacing < 0 else "+"
    return AdvanceDir(axis + sign)


def displacement(advance_dir: AdvanceDir, spacing: float) -> Vec3:
    dx, dy, dz = direction_vector(advance_dir)
    return (dx * spacing, dy * spacing, dz * spacing)


def add(p: Vec3, v: Vec3) -> Vec3:
    return (p[0] + v[0], p[1] + v[1], p[2] + v[2])


def sub(p: Vec3, v: Vec3) -> Vec3:
    return (p[0] - v[0], p[1] - v[1], p[2] - v[2])


def turn(advance_dir: AdvanceDir, side: str) -> AdvanceDir | None:
    """Relative left/right turn.  None while travelling vertically."""
    if advance_dir not in TURN_MAP:
        return None
    left, right = TURN_MAP[advance_dir]
    return left if side == "left" else right


def reverse(advance_dir: AdvanceDir, *, swap_z: bool = True) -> AdvanceDir:
    if advance_dir.is_vertical and not swap_z:
        return advance_dir
    return _OPPOSITE[advance_dir]


def sync_rotation_axis(
    rotation_axis: RotationAxis,
    old_dir: AdvanceDir,
    new_dir: AdvanceDir,
) -> RotationAxis:
    """Follow the travel axis when the rotation axis was tied to it.

    A rotation axis orthogonal to the old travel axis is left alone.
    """
    if old_dir.axis != new_dir.axis and rotation_axis.value == old_dir.axis:
        return RotationAxis(new_dir.axis)
    return rotation_axis


def pre_rotation(advance_dir: AdvanceDir) -> RotationAxis | None:
    """Axis of the quarter-turn applied before the angle rotation."""
    return PRE_ROTATION_AXIS.get(advance_dir.axis)


def rotate_point(p: Vec3, center: Vec3, axis: str, degrees: float) -> Vec3:
    """Rotate *p* about an axis-aligned line through *center*.

    Right-handed: positive angles turn X toward Y about Z, Y toward Z
    about X, and Z toward X about Y.
    """
    rad = math.radians(degrees)
    cos_r = math.cos(rad)
    sin_r = math.sin(rad)
    x, y, z = p[0] - center[0], p[1] - center[1], p[2] - center[2]
    if axis == "X":
        y, z = y * cos_r - z * sin_r, y * sin_r + z * cos_r
    elif axis == "Y":
        z, x = z * cos_r - x * sin_r, z * sin_r + x * cos_r
    elif axis == "Z":
        x, y = x * cos_r - y * sin_r, x * sin_r + y * cos_r
    else:
        raise ValueError(f"Not an axis letter: {axis!r}")
    return (x + center[0], y + center[1], z + center[2])
