"""Engine: the note-placement state machine and its direction algebra.

Submodules:
  models        Dataclasses, enums, angle keys and errors.
  geometry      Pure spacing/direction helpers (vectors, turns, reversal).
  hosts         Collaborator protocols and no-op fallbacks.
  serialization JSON conversion (group_to_dict, parse_group) and snapshots.
  engine        PlacementEngine.
  commands      Named command dispatch for the panel / web surface.
"""

from .models import (
    AdvanceDir, EngineState, Group, LastAction, NoteDuration, PlacementRecord,
    RotationAxis, SelectionError, UnknownCommandError, ANGLE_KEYS,
)
from .engine import PlacementEngine
from .geometry import compute_spacing, direction_vector, legacy_direction
from .serialization import group_to_dict, group_to_json, parse_group
from .commands import Command, dispatch

__all__ = [
    # Models
    "AdvanceDir", "EngineState", "Group", "LastAction", "NoteDuration",
    "PlacementRecord", "RotationAxis", "SelectionError", "UnknownCommandError",
    "ANGLE_KEYS",
    # Engine
    "PlacementEngine",
    # Geometry
    "compute_spacing", "direction_vector", "legacy_direction",
    # Serialization
    "group_to_dict", "group_to_json", "parse_group",
    # Commands
    "Command", "dispatch",
]
