"""Engine dataclasses, enums and constants."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


Vec3 = tuple[float, float, float]

ORIGIN: Vec3 = (0.0, 0.0, 0.0)


# ── Enums ──────────────────────────────────────────────────────────


class NoteDuration(Enum):
    """Note length; the value is the prototype code used in names."""

    FULL = "FN"
    HALF = "HN"
    QUARTER = "QN"
    EIGHTH = "EN"
    SIXTEENTH = "SN"

    @property
    def factor(self) -> float:
        """Scale against the group's whole-note length and spacing."""
        return DURATION_FACTORS[self]

    @property
    def code(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: Any) -> NoteDuration | None:
        """Accept an enum member, a code ("HN"), a name ("half") or a
        panel key ("1".."5").  Returns None for anything else."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        if text in DURATION_KEYS:
            return DURATION_KEYS[text]
        for member in cls:
            if text.upper() in (member.value, member.name):
                return member
        return None


DURATION_FACTORS = {
    NoteDuration.FULL: 1.0,
    NoteDuration.HALF: 0.5,
    NoteDuration.QUARTER: 0.25,
    NoteDuration.EIGHTH: 0.125,
    NoteDuration.SIXTEENTH: 0.0625,
}

DURATION_KEYS = {
    "1": NoteDuration.FULL,
    "2": NoteDuration.HALF,
    "3": NoteDuration.QUARTER,
    "4": NoteDuration.EIGHTH,
    "5": NoteDuration.SIXTEENTH,
}


class AdvanceDir(Enum):
    """Direction the reference point travels between notes."""

    X_POS = "X+"
    X_NEG = "X-"
    Y_POS = "Y+"
    Y_NEG = "Y-"
    Z_POS = "Z"
    Z_NEG = "Z-"

    @property
    def axis(self) -> str:
        """Axis letter, ignoring the sign."""
        return self.value[0]

    @property
    def is_vertical(self) -> bool:
        return self.axis == "Z"

    @classmethod
    def parse(cls, value: Any) -> AdvanceDir | None:
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        if text == "Z+":
            text = "Z"
        for member in cls:
            if member.value == text:
                return member
        return None


class RotationAxis(Enum):
    X = "X"
    Y = "Y"
    Z = "Z"

    @classmethod
    def parse(cls, value: Any) -> RotationAxis | None:
        if isinstance(value, cls):
            return value
        text = str(value).strip().upper()
        return cls.__members__.get(text)


class LastAction(Enum):
    NONE = "none"
    PLACEMENT = "placement"
    DIRECTION = "direction"


# ── Angle keys ─────────────────────────────────────────────────────

# Twelve chromatic keys, 15° apart, bottom keyboard row plus black keys.
ANGLE_KEYS = {
    "z": 0, "s": 15, "x": 30, "d": 45, "c": 60, "v": 75,
    "g": 90, "b": 105, "h": 120, "n": 135, "j": 150, "m": 165,
}

DIMENSIONS = ("length", "width", "height", "spacing")
BOX_DIMENSIONS = ("length", "width", "height")


# ── Dataclasses ────────────────────────────────────────────────────


@dataclass
class Group:
    """One parametric phrase of notes.  Lengths are in millimetres."""

    id: int
    length: float
    width: float
    height: float
    base_spacing: float
    advance_dir: AdvanceDir
    rotation_axis: RotationAxis
    reference_point: Vec3 = ORIGIN
    standard_length: float = 0.0
    standard_width: float = 0.0
    standard_height: float = 0.0
    standard_spacing: float = 0.0

    def prototype_name(self, duration: NoteDuration) -> str:
        return prototype_name(duration, self.id)

    def prototype_names(self) -> list[str]:
        return [self.prototype_name(d) for d in NoteDuration]

    def get_dimension(self, name: str) -> float:
        return self.base_spacing if name == "spacing" else getattr(self, name)

    def set_dimension(self, name: str, value: float) -> None:
        setattr(self, "base_spacing" if name == "spacing" else name, value)


def prototype_name(duration: NoteDuration, group_id: int) -> str:
    """Deterministic prototype name, e.g. ``HN_3``."""
    return f"{duration.code}_{group_id}"


def record_name(group_id: int) -> str:
    """Persisted-record key for a group, e.g. ``GroupData_3``."""
    return f"GroupData_{group_id}"


@dataclass
class PlacementRecord:
    """Undo token for one placed note."""

    handle: Any
    duration: NoteDuration
    group_id: int


@dataclass
class EngineState:
    """All mutable state of one placement session."""

    groups: list[Group] = field(default_factory=list)
    current_index: int | None = None
    current_duration: NoteDuration = NoteDuration.HALF
    current_reference_point: Vec3 = ORIGIN
    history: list[PlacementRecord] = field(default_factory=list)
    last_action: LastAction = LastAction.NONE
    next_group_id: int = 1
    saved_direction: AdvanceDir | None = None


# ── Errors ─────────────────────────────────────────────────────────


class SelectionError(Exception):
    """Raised when the host selection is not exactly one usable object."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Cannot read reference point from selection: {reason}")


class UnknownCommandError(Exception):
    """Raised when the command surface receives an unknown name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown command: {name!r}")
