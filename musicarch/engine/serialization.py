"""Group serialization: JSON conversion and legacy record migration."""

from __future__ import annotations

import json
import logging

from musicarch.units import display_value, from_unit

from .geometry import legacy_direction
from .models import AdvanceDir, Group, RotationAxis


log = logging.getLogger(__name__)

RECORD_FORMAT = 2


def group_to_dict(group: Group) -> dict:
    """Serialize a Group to a JSON-safe dict (canonical, millimetres)."""
    return {
        "format": RECORD_FORMAT,
        "unit": "mm",
        "id": group.id,
        "length": group.length,
        "width": group.width,
        "height": group.height,
        "base_spacing": group.base_spacing,
        "advance_dir": group.advance_dir.value,
        "rotation_axis": group.rotation_axis.value,
        "reference_point": list(group.reference_point),
        "standard_length": group.standard_length,
        "standard_width": group.standard_width,
        "standard_height": group.standard_height,
        "standard_spacing": group.standard_spacing,
    }


def group_to_json(group: Group) -> str:
    return json.dumps(group_to_dict(group))


def is_legacy_record(data: dict) -> bool:
    """Decide whether a stored record uses the reduced {X, Y, Z} form.

    Rules, in order:
      1. A ``format`` tag means the canonical six-direction form.
      2. Untagged with ``advance_dir`` "X" or "Y" (no sign) is legacy.
      3. Untagged "Z" is legacy only if the record also predates the
         ``standard_spacing`` field; those early versions carried the
         travel sign in ``base_spacing``.
      4. Anything else ("X+", "Z-", ...) is read as canonical.
    """
    if "format" in data:
        return False
    raw = str(data.get("advance_dir", "")).strip().upper()
    if raw in ("X", "Y"):
        return True
    return raw == "Z" and "standard_spacing" not in data


def record_unit(data: dict, default_unit: str | None = None) -> str:
    """Length unit of a stored record.

    An explicit ``unit`` field always wins, and tagged records without
    one are millimetres.  For untagged records *default_unit* is used
    when given; otherwise records carrying ``standard_spacing`` are
    inches (the plugin versions that added the step fields converted
    every length before storing it) and older ones are millimetres.
    """
    if "unit" in data:
        return data["unit"]
    if "format" in data:
        return "mm"
    if default_unit is not None:
        return default_unit
    return "inch" if "standard_spacing" in data else "mm"


def parse_group(data: dict | str, *, default_unit: str | None = None) -> Group:
    """Parse a stored group record back into a Group.

    Accepts the dict or its JSON text.  The unit of records without a
    ``unit`` field is resolved by ``record_unit``.  Missing
    ``standard_*`` fields fall back to the current values.
    """
    if isinstance(data, str):
        data = json.loads(data)

    unit = record_unit(data, default_unit)

    def length_of(key: str, fallback: float | None = None) -> float:
        if key not in data:
            return fallback
        return from_unit(float(data[key]), unit)

    length = length_of("length")
    width = length_of("width")
    height = length_of("height")
    base_spacing = length_of("base_spacing")

    if is_legacy_record(data):
        advance_dir = legacy_direction(data["advance_dir"], base_spacing)
        log.info("Migrated legacy group %s: %s -> %s",
                 data.get("id"), data["advance_dir"], advance_dir.value)
    else:
        advance_dir = AdvanceDir.parse(data["advance_dir"])
        if advance_dir is None:
            raise ValueError(f"Unknown advance_dir: {data['advance_dir']!r}")

    rotation_axis = RotationAxis.parse(data.get("rotation_axis", "Z"))
    if rotation_axis is None:
        raise ValueError(f"Unknown rotation_axis: {data['rotation_axis']!r}")

    ref = data.get("reference_point") or [0, 0, 0]
    x, y, z = (from_unit(float(v), unit) for v in ref)

    return Group(
        id=int(data["id"]),
        length=length,
        width=width,
        height=height,
        base_spacing=base_spacing,
        advance_dir=advance_dir,
        rotation_axis=rotation_axis,
        reference_point=(x, y, z),
        standard_length=length_of("standard_length", length),
        standard_width=length_of("standard_width", width),
        standard_height=length_of("standard_height", height),
        standard_spacing=length_of("standard_spacing", abs(base_spacing)),
    )


# ── Presentation ───────────────────────────────────────────────────


def group_snapshot(group: Group | None, unit: str = "mm", defaults: dict | None = None) -> dict:
    """Named-field view of a group as shown in the control panel."""
    if group is None:
        defaults = defaults or {}
        return {
            "group_id": "No group",
            "length": display_value(defaults.get("length", 3000.0), unit),
            "width": display_value(defaults.get("width", 100.0), unit),
            "height": display_value(defaults.get("height", 3000.0), unit),
            "advance_dir": AdvanceDir.X_POS.value,
            "rotation_axis": RotationAxis.Z.value,
            "spacing": display_value(defaults.get("spacing", 3000.0), unit),
            "ref_x": 0,
            "ref_y": 0,
            "ref_z": 0,
        }
    x, y, z = group.reference_point
    return {
        "group_id": f"Group {group.id}",
        "length": display_value(group.length, unit),
        "width": display_value(group.width, unit),
        "height": display_value(group.height, unit),
        "advance_dir": group.advance_dir.value,
        "rotation_axis": group.rotation_axis.value,
        "spacing": display_value(group.base_spacing, unit),
        "ref_x": display_value(x, unit),
        "ref_y": display_value(y, unit),
        "ref_z": display_value(z, unit),
    }
