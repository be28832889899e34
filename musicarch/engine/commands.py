"""Command surface: one named command per public engine operation."""

from __future__ import annotations

from enum import Enum
from typing import Any

from .models import UnknownCommandError


class Command(str, Enum):
    """Panel command names, as sent by the control panel."""

    CREATE_GROUP = "createGroup"
    UPDATE_GROUP = "updateCurrentGroup"
    SWITCH_GROUP = "switchGroup"
    SET_REFERENCE_POINT = "setReferencePoint"
    RESET_REFERENCE_POINT = "resetReferencePoint"
    REFERENCE_FROM_SELECTION = "getReferencePoint"
    SET_NOTE_DURATION = "setNoteType"
    ADVANCE_REFERENCE_POINT = "advanceReferencePoint"
    PLACE_NOTE = "placeNote"
    UNDO_LAST_PLACEMENT = "undoLastPlacement"
    SYNC_SPACING = "syncSpacing"
    SYNC_WIDTH = "syncWidth"
    REVERSE_SPACING = "reverseSpacing"
    ADJUST_DIMENSION = "adjustDimension"
    REDUCE_HALF_DIMENSION = "reduceHalfDimension"
    CHANGE_DIRECTION = "changeDirection"
    SET_GROUP_DIRECTION = "setGroupDirection"
    DELETE_GROUP = "deleteCurrentGroup"
    LOAD_GROUPS = "loadGroups"

    @classmethod
    def parse(cls, name: str) -> Command:
        try:
            return cls(name)
        except ValueError:
            raise UnknownCommandError(name) from None


# Command -> PlacementEngine method name.
HANDLERS: dict[Command, str] = {
    Command.CREATE_GROUP: "create_group",
    Command.UPDATE_GROUP: "update_group",
    Command.SWITCH_GROUP: "switch_group",
    Command.SET_REFERENCE_POINT: "set_reference_point",
    Command.RESET_REFERENCE_POINT: "reset_reference_point",
    Command.REFERENCE_FROM_SELECTION: "set_reference_point_from_selection",
    Command.SET_NOTE_DURATION: "set_note_duration",
    Command.ADVANCE_REFERENCE_POINT: "advance_reference_point",
    Command.PLACE_NOTE: "place_note",
    Command.UNDO_LAST_PLACEMENT: "undo_last_placement",
    Command.SYNC_SPACING: "sync_spacing_to_length",
    Command.SYNC_WIDTH: "sync_width_to_length",
    Command.REVERSE_SPACING: "reverse_spacing",
    Command.ADJUST_DIMENSION: "adjust_dimension",
    Command.REDUCE_HALF_DIMENSION: "reduce_half_dimension",
    Command.CHANGE_DIRECTION: "update_direction",
    Command.SET_GROUP_DIRECTION: "update_direction",
    Command.DELETE_GROUP: "delete_current_group",
    Command.LOAD_GROUPS: "load_groups",
}


def dispatch(engine, command: Command | str, args: list | None = None,
             kwargs: dict | None = None) -> Any:
    """Invoke one engine operation by command name.

    Raises UnknownCommandError for names outside ``Command``; a wrong
    argument list surfaces as TypeError from the call itself.
    """
    if not isinstance(command, Command):
        command = Command.parse(command)
    handler = getattr(engine, HANDLERS[command])
    return handler(*(args or []), **(kwargs or {}))
