"""Shared placement rules for the note engine.

The engine, the in-memory scene and the web layer all derive their
defaults from this single source of truth.  All lengths are in
millimetres, the engine's internal unit.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PlacementRules:
    """Defaults and policies for group creation and placement."""

    default_length_mm: float = 3000.0
    """Whole-note box length used when a request gives none (or <= 0)."""

    default_width_mm: float = 100.0

    default_height_mm: float = 3000.0

    default_spacing_mm: float = 3000.0
    """Whole-note travel distance between consecutive notes."""

    history_limit: int = 100
    """Maximum number of undoable placements kept.  Oldest are dropped."""

    reverse_swaps_z: bool = True
    """Whether reversing spacing flips Z <-> Z- (True) or leaves the
    vertical directions untouched (False).  Both behaviours shipped in
    released versions of the plugin."""

    pre_rotation_deg: float = 90.0
    """Quarter turn applied before the angle rotation for X and Z travel."""

    display_unit: str = "mm"
    """Unit used for the presentation snapshot: "mm" or "inch"."""


# Module-level singleton, importable everywhere.
PLACEMENT_RULES = PlacementRules()
