"""Placement engine: the note-placement state machine.

The engine owns the groups, the current reference point, the selected
note duration and the undo history.  Every mutating operation is a
guarded no-op while no group is selected; the only error surfaced to
callers is SelectionError from set_reference_point_from_selection.

After each mutation the engine pushes a panel snapshot to the
presentation host and redraws the guide line on the geometry host.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from typing import Any

from musicarch.config import PLACEMENT_RULES, PlacementRules

from .geometry import (
    add, compute_spacing, direction_vector, displacement, pre_rotation,
    reverse, sub, sync_rotation_axis, turn,
)
from .hosts import (
    GeometryHost, PersistenceHost, PresentationHost, SelectionHost,
    NullGeometry, NullPersistence, NullPresentation, NullSelection,
)
from .models import (
    ANGLE_KEYS, BOX_DIMENSIONS, DIMENSIONS, ORIGIN,
    AdvanceDir, EngineState, Group, LastAction, NoteDuration,
    PlacementRecord, RotationAxis, Vec3,
)
from .serialization import group_snapshot, group_to_json, parse_group


log = logging.getLogger(__name__)


def _positive_or(value: Any, fallback: float) -> float:
    """Parse *value* as a positive finite number, else return *fallback*."""
    if value is None:
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number) or number <= 0:
        return fallback
    return number


class PlacementEngine:
    """Single-session note placement engine.

    Parameters
    ----------
    geometry, persistence, selection, presentation
        Host collaborators.  Any omitted host is replaced by a no-op.
    rules : PlacementRules
        Defaults and policy switches (see ``musicarch.config``).
    """

    def __init__(
        self,
        geometry: GeometryHost | None = None,
        persistence: PersistenceHost | None = None,
        selection: SelectionHost | None = None,
        presentation: PresentationHost | None = None,
        *,
        rules: PlacementRules = PLACEMENT_RULES,
    ) -> None:
        self.geometry = geometry if geometry is not None else NullGeometry()
        self.persistence = persistence if persistence is not None else NullPersistence()
        self.selection = selection if selection is not None else NullSelection()
        self.presentation = presentation if presentation is not None else NullPresentation()
        self.rules = rules
        self.state = EngineState()

    # ── Accessors ──────────────────────────────────────────────────

    @property
    def groups(self) -> list[Group]:
        return self.state.groups

    @property
    def current_group(self) -> Group | None:
        if self.state.current_index is None:
            return None
        return self.state.groups[self.state.current_index]

    @property
    def current_duration(self) -> NoteDuration:
        return self.state.current_duration

    def reference_point(self) -> Vec3:
        return self.state.current_reference_point

    def snapshot(self) -> dict:
        defaults = {
            "length": self.rules.default_length_mm,
            "width": self.rules.default_width_mm,
            "height": self.rules.default_height_mm,
            "spacing": self.rules.default_spacing_mm,
        }
        return group_snapshot(self.current_group, self.rules.display_unit, defaults)

    def guide_line(self) -> tuple[Vec3, Vec3] | None:
        """Segment from the reference point to the next advance target."""
        group = self.current_group
        if group is None:
            return None
        start = self.state.current_reference_point
        spacing = compute_spacing(group, self.state.current_duration)
        return start, add(start, displacement(group.advance_dir, spacing))

    # ── Pure helpers (kept on the engine for the command surface) ──

    @staticmethod
    def compute_spacing(group: Group, duration: NoteDuration) -> float:
        return compute_spacing(group, duration)

    @staticmethod
    def direction_vector(advance_dir: AdvanceDir | str) -> Vec3:
        parsed = AdvanceDir.parse(advance_dir)
        if parsed is None:
            raise ValueError(f"Unknown advance direction: {advance_dir!r}")
        return direction_vector(parsed)

    # ── Group lifecycle ────────────────────────────────────────────

    def create_group(
        self,
        length: Any = None,
        width: Any = None,
        height: Any = None,
        spacing: Any = None,
        advance_dir: Any = AdvanceDir.X_POS,
        rotation_axis: Any = RotationAxis.Z,
    ) -> int:
        """Append a new group built from the request and select it."""
        rules = self.rules
        length = _positive_or(length, rules.default_length_mm)
        width = _positive_or(width, rules.default_width_mm)
        height = _positive_or(height, rules.default_height_mm)
        spacing = _positive_or(spacing, rules.default_spacing_mm)

        group = Group(
            id=self._allocate_id(),
            length=length,
            width=width,
            height=height,
            base_spacing=spacing,
            advance_dir=AdvanceDir.parse(advance_dir) or AdvanceDir.X_POS,
            rotation_axis=RotationAxis.parse(rotation_axis) or RotationAxis.Z,
            reference_point=self.state.current_reference_point,
            standard_length=length,
            standard_width=width,
            standard_height=height,
            standard_spacing=spacing,
        )
        self.state.groups.append(group)
        self.state.current_index = len(self.state.groups) - 1
        self.state.last_action = LastAction.NONE
        self._remember_direction(group)
        log.info("Created group %d: length=%.1f spacing=%.1f dir=%s",
                 group.id, group.length, group.base_spacing, group.advance_dir.value)

        self._build_prototypes(group)
        self._save(group)
        self._highlight()
        self._refresh()
        return group.id

    def update_group(
        self,
        length: Any = None,
        width: Any = None,
        height: Any = None,
        spacing: Any = None,
        advance_dir: Any = None,
        rotation_axis: Any = None,
    ) -> None:
        """Apply a parameter set to the selected group in place.

        Invalid values keep the group's current value, and each valid
        value also becomes the new adjustment step.
        """
        group = self.current_group
        if group is None:
            return
        for name, raw in (("length", length), ("width", width),
                          ("height", height), ("spacing", spacing)):
            group.set_dimension(name, _positive_or(raw, group.get_dimension(name)))
            step = f"standard_{name}"
            setattr(group, step, _positive_or(raw, getattr(group, step)))

        group.advance_dir = AdvanceDir.parse(advance_dir) or group.advance_dir
        group.rotation_axis = RotationAxis.parse(rotation_axis) or group.rotation_axis
        self._remember_direction(group)
        log.info("Updated group %d: length=%.1f spacing=%.1f dir=%s",
                 group.id, group.length, group.base_spacing, group.advance_dir.value)

        self._build_prototypes(group)
        self._save(group)
        self._refresh()

    def switch_group(self, direction: str) -> None:
        """Select the previous or next group; clamped at both ends."""
        if not self.state.groups or self.state.current_index is None:
            return
        old_index = self.state.current_index
        step = {"prev": -1, "next": 1}.get(direction)
        if step is None:
            log.warning("Unknown switch direction %r", direction)
            return
        new_index = old_index + step
        if not 0 <= new_index < len(self.state.groups):
            return

        self.state.current_index = new_index
        group = self.state.groups[new_index]
        self.state.current_reference_point = group.reference_point
        self.state.last_action = LastAction.NONE
        self._remember_direction(group)
        log.info("Switched group: index %d -> %d (id %d)", old_index, new_index, group.id)
        self._highlight()
        self._refresh()

    def delete_current_group(self) -> None:
        """Remove the selected group, its prototypes, record and history."""
        group = self.current_group
        if group is None:
            return
        for name in group.prototype_names():
            self.geometry.delete_prototype(name)
        self.persistence.delete_group_record(group.id)

        index = self.state.current_index
        del self.state.groups[index]
        self.state.history = [r for r in self.state.history if r.group_id != group.id]
        self.state.last_action = LastAction.NONE

        if not self.state.groups:
            self.state.current_index = None
            self.state.saved_direction = None
        else:
            self.state.current_index = min(index, len(self.state.groups) - 1)
            current = self.state.groups[self.state.current_index]
            self.state.current_reference_point = current.reference_point
        log.info("Deleted group %d", group.id)
        self._highlight()
        self._refresh()

    def load_groups(self, records: list | None = None) -> None:
        """Replace all groups with stored records (from persistence by default)."""
        if records is None:
            records = self.persistence.load_all_group_records()
        groups = sorted((parse_group(r) for r in records), key=lambda g: g.id)

        self.state.groups = groups
        self.state.history = []
        self.state.last_action = LastAction.NONE
        self.state.next_group_id = max((g.id for g in groups), default=0) + 1
        if groups:
            self.state.current_index = 0
            self.state.current_reference_point = groups[0].reference_point
            self._remember_direction(groups[0])
        else:
            self.state.current_index = None
            self.state.saved_direction = None
        log.info("Loaded %d groups (next id %d)", len(groups), self.state.next_group_id)

        for group in groups:
            self._build_prototypes(group)
        self._highlight()
        self._refresh()

    # ── Reference point ────────────────────────────────────────────

    def set_reference_point(self, x: float, y: float, z: float) -> None:
        group = self.current_group
        if group is None:
            return
        self._move_reference_point(group, (float(x), float(y), float(z)))
        self._refresh()

    def reset_reference_point(self) -> None:
        group = self.current_group
        if group is None:
            return
        self._move_reference_point(group, ORIGIN)
        self._refresh()

    def set_reference_point_from_selection(self) -> None:
        """Adopt the origin of the single selected host object.

        Raises
        ------
        SelectionError
            If the host does not have exactly one usable object selected.
        """
        group = self.current_group
        if group is None:
            return
        x, y, z = self.selection.get_single_selected_object_origin()
        self._move_reference_point(group, (float(x), float(y), float(z)))
        self._refresh()

    def advance_reference_point(self) -> None:
        """Move the reference point one note forward (also used as a rest)."""
        group = self.current_group
        if group is None:
            return
        spacing = compute_spacing(group, self.state.current_duration)
        step = displacement(group.advance_dir, spacing)
        self._move_reference_point(group, add(self.state.current_reference_point, step))
        self.state.last_action = LastAction.PLACEMENT
        log.debug("Advanced %s by %.4f (%s)", group.advance_dir.value, spacing,
                  self.state.current_duration.code)
        self._refresh()

    # ── Notes ──────────────────────────────────────────────────────

    def set_note_duration(self, duration: Any) -> None:
        parsed = NoteDuration.parse(duration)
        if parsed is None:
            log.warning("Unknown note duration %r", duration)
            return
        self.state.current_duration = parsed
        log.debug("Note duration: %s", parsed.code)
        self._refresh_guide_line()

    def place_note(self, angle_key: Any) -> PlacementRecord | None:
        """Advance, then drop a note of the current duration at the new point.

        *angle_key* is one of the twelve keys in ``ANGLE_KEYS`` or the
        matching angle in degrees.
        """
        group = self.current_group
        if group is None:
            return None
        angle = _resolve_angle(angle_key)
        if angle is None:
            log.warning("Unknown note key %r", angle_key)
            return None

        self.advance_reference_point()
        point = self.state.current_reference_point
        duration = self.state.current_duration
        handle = self.geometry.create_instance(group.prototype_name(duration), point)

        pre_axis = pre_rotation(group.advance_dir)
        if pre_axis is not None:
            self.geometry.rotate_instance(handle, point, pre_axis.value, self.rules.pre_rotation_deg)
        self.geometry.rotate_instance(handle, point, group.rotation_axis.value, angle)

        record = PlacementRecord(handle=handle, duration=duration, group_id=group.id)
        self.state.history.append(record)
        overflow = len(self.state.history) - self.rules.history_limit
        if overflow > 0:
            del self.state.history[:overflow]
        self.state.last_action = LastAction.PLACEMENT
        log.debug("Placed %s at %s, angle %d", group.prototype_name(duration), point, angle)
        return record

    def undo_last_placement(self) -> PlacementRecord | None:
        """Erase the last note and give back exactly the spacing it used."""
        if not self.state.history:
            return None
        record = self.state.history.pop()
        if not self.geometry.delete_instance(record.handle):
            log.debug("Undo skipped: handle %r already erased", record.handle)
            return None

        group = self._group_by_id(record.group_id)
        if group is None:
            return record
        spacing = compute_spacing(group, record.duration)
        point = sub(group.reference_point, displacement(group.advance_dir, spacing))
        if group is self.current_group:
            self._move_reference_point(group, point)
        else:
            group.reference_point = point
            self._save(group)
        log.info("Undid %s note in group %d", record.duration.code, group.id)
        self._refresh()
        return record

    # ── Dimensions ─────────────────────────────────────────────────

    def sync_spacing_to_length(self) -> None:
        group = self.current_group
        if group is None:
            return
        group.base_spacing = group.length
        group.standard_spacing = abs(group.base_spacing)
        self._save(group)
        self._refresh()

    def sync_width_to_length(self) -> None:
        group = self.current_group
        if group is None:
            return
        group.width = group.length
        group.standard_width = group.width
        self._build_prototypes(group)
        self._save(group)
        self._refresh()

    def reverse_spacing(self) -> None:
        group = self.current_group
        if group is None:
            return
        group.advance_dir = reverse(group.advance_dir, swap_z=self.rules.reverse_swaps_z)
        group.base_spacing = -group.base_spacing
        group.standard_spacing = abs(group.base_spacing)
        self._remember_direction(group)
        log.info("Reversed group %d: dir=%s spacing=%.1f",
                 group.id, group.advance_dir.value, group.base_spacing)
        self._save(group)
        self._refresh()

    def adjust_dimension(self, dimension: str, delta: float) -> None:
        """Step a dimension by ``delta`` times its standard step."""
        group = self.current_group
        if group is None:
            return
        if dimension not in DIMENSIONS:
            log.warning("Unknown dimension %r", dimension)
            return
        step = getattr(group, f"standard_{dimension}")
        value = group.get_dimension(dimension) + step * float(delta)
        if dimension in BOX_DIMENSIONS and value <= 0:
            log.warning("Rejected %s adjustment to %.4f: box sides must stay positive",
                        dimension, value)
            return
        group.set_dimension(dimension, value)
        log.debug("Adjusted %s to %.4f (step %.4f)", dimension,
                  group.get_dimension(dimension), step)
        if dimension in BOX_DIMENSIONS:
            self._build_prototypes(group)
        self._save(group)
        self._refresh()

    def reduce_half_dimension(self, dimension: str) -> None:
        """Halve a dimension and make the halved value the new step."""
        group = self.current_group
        if group is None:
            return
        if dimension not in DIMENSIONS:
            log.warning("Unknown dimension %r", dimension)
            return
        value = group.get_dimension(dimension) / 2.0
        group.set_dimension(dimension, value)
        setattr(group, f"standard_{dimension}", abs(value))
        if dimension in BOX_DIMENSIONS:
            self._build_prototypes(group)
        self._save(group)
        self._refresh()

    # ── Direction ──────────────────────────────────────────────────

    def update_direction(self, target: str) -> int | None:
        """Turn left/right or set an explicit direction.

        Consecutive direction changes edit one group; the first change
        after anything else forks the current group under a new id.
        Returns the id of the group that now carries the direction.
        """
        group = self.current_group
        if group is None:
            return None

        if target in ("left", "right"):
            new_dir = turn(group.advance_dir, target)
            if new_dir is None:
                log.warning("Cannot turn %s while travelling along %s",
                            target, group.advance_dir.value)
                return None
        else:
            new_dir = AdvanceDir.parse(target)
            if new_dir is None:
                log.warning("Unknown direction %r", target)
                return None

        if self.state.last_action is not LastAction.DIRECTION:
            group = dataclasses.replace(group, id=self._allocate_id())
            self.state.groups.append(group)
            self.state.current_index = len(self.state.groups) - 1
            log.info("Forked group %d for direction change", group.id)

        old_dir = group.advance_dir
        group.advance_dir = new_dir
        group.rotation_axis = sync_rotation_axis(group.rotation_axis, old_dir, new_dir)
        group.reference_point = self.state.current_reference_point
        self._remember_direction(group)
        log.info("Direction %s -> %s (group %d, rotation %s)",
                 old_dir.value, new_dir.value, group.id, group.rotation_axis.value)

        self._build_prototypes(group)
        self._save(group)
        self.state.last_action = LastAction.DIRECTION
        self._highlight()
        self._refresh()
        return group.id

    # ── Internals ──────────────────────────────────────────────────

    def _allocate_id(self) -> int:
        existing = max((g.id for g in self.state.groups), default=0)
        gid = max(self.state.next_group_id, existing + 1)
        self.state.next_group_id = gid + 1
        return gid

    def _group_by_id(self, group_id: int) -> Group | None:
        for group in self.state.groups:
            if group.id == group_id:
                return group
        return None

    def _remember_direction(self, group: Group) -> None:
        if not group.advance_dir.is_vertical:
            self.state.saved_direction = group.advance_dir

    def _move_reference_point(self, group: Group, point: Vec3) -> None:
        self.state.current_reference_point = point
        group.reference_point = point
        self._save(group)

    def _build_prototypes(self, group: Group) -> None:
        for duration in NoteDuration:
            name = group.prototype_name(duration)
            self.geometry.clear_prototype(name)
            self.geometry.create_box_prototype(
                name, group.length * duration.factor, group.width, group.height)

    def _save(self, group: Group) -> None:
        self.persistence.save_group_record(group.id, group_to_json(group))

    def _highlight(self) -> None:
        current = self.current_group
        for group in self.state.groups:
            self.geometry.highlight_group(group.id, group is current)

    def _refresh_guide_line(self) -> None:
        line = self.guide_line()
        if line is None:
            self.geometry.clear_guide_line()
        else:
            self.geometry.show_guide_line(*line)

    def _refresh(self) -> None:
        self._refresh_guide_line()
        self.presentation.push(self.snapshot())


def _resolve_angle(angle_key: Any) -> int | None:
    if isinstance(angle_key, str):
        key = angle_key.strip().lower()
        if key in ANGLE_KEYS:
            return ANGLE_KEYS[key]
    try:
        angle = int(angle_key)
    except (TypeError, ValueError):
        return None
    return angle if angle in ANGLE_KEYS.values() else None
