"""In-memory scene: a geometry and selection host without a CAD app.

Prototypes are axis-aligned boxes centred on their local origin (length
along X, width along Y, height along Z).  Instances keep the insertion
point plus every rotation applied to them, so their world corners and
plan footprint can be recomputed at any time.
"""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field

from shapely.geometry import LineString, MultiPoint, Polygon
from shapely.ops import unary_union

from musicarch.engine.geometry import rotate_point
from musicarch.engine.models import SelectionError, Vec3


log = logging.getLogger(__name__)


@dataclass
class Prototype:
    name: str
    length: float
    width: float
    height: float
    highlighted: bool = False

    def local_corners(self) -> list[Vec3]:
        hl, hw, hh = self.length / 2, self.width / 2, self.height / 2
        return [
            (sx * hl, sy * hw, sz * hh)
            for sx, sy, sz in itertools.product((-1, 1), repeat=3)
        ]


@dataclass
class SceneInstance:
    handle: int
    prototype: str
    origin: Vec3
    rotations: list[tuple[Vec3, str, float]] = field(default_factory=list)


class InMemoryScene:
    """Geometry + selection host that keeps everything in dicts."""

    def __init__(self) -> None:
        self.prototypes: dict[str, Prototype] = {}
        self.instances: dict[int, SceneInstance] = {}
        self.guide: LineString | None = None
        self.selection: list[int] = []
        self._handles = itertools.count(1)

    # ── Geometry host ──────────────────────────────────────────────

    def create_box_prototype(self, name: str, length: float, width: float, height: float) -> None:
        highlighted = name in self.prototypes and self.prototypes[name].highlighted
        self.prototypes[name] = Prototype(name, length, width, height, highlighted)

    def clear_prototype(self, name: str) -> None:
        proto = self.prototypes.get(name)
        if proto is not None:
            proto.length = proto.width = proto.height = 0.0

    def create_instance(self, prototype_name: str, at: Vec3) -> int:
        if prototype_name not in self.prototypes:
            raise KeyError(f"No prototype named {prototype_name!r}")
        handle = next(self._handles)
        self.instances[handle] = SceneInstance(handle, prototype_name, tuple(at))
        return handle

    def rotate_instance(self, handle: int, center: Vec3, axis: str, degrees: float) -> None:
        self.instances[handle].rotations.append((tuple(center), axis, degrees))

    def delete_instance(self, handle: int) -> bool:
        if self.instances.pop(handle, None) is None:
            return False
        if handle in self.selection:
            self.selection.remove(handle)
        return True

    def delete_prototype(self, name: str) -> None:
        self.prototypes.pop(name, None)
        for handle in [h for h, i in self.instances.items() if i.prototype == name]:
            del self.instances[handle]

    def highlight_group(self, group_id: int, active: bool) -> None:
        suffix = f"_{group_id}"
        for proto in self.prototypes.values():
            if proto.name.endswith(suffix):
                proto.highlighted = active

    def show_guide_line(self, start: Vec3, end: Vec3) -> None:
        self.guide = LineString([start, end])

    def clear_guide_line(self) -> None:
        self.guide = None

    # ── Selection host ─────────────────────────────────────────────

    def select(self, *handles: int) -> None:
        self.selection = [h for h in handles if h in self.instances]

    def get_single_selected_object_origin(self) -> Vec3:
        if not self.selection:
            raise SelectionError("nothing is selected")
        if len(self.selection) > 1:
            raise SelectionError(f"{len(self.selection)} objects are selected")
        return self.instance_origin(self.selection[0])

    # ── Queries ────────────────────────────────────────────────────

    def _transform(self, inst: SceneInstance, local: Vec3) -> Vec3:
        p = (inst.origin[0] + local[0], inst.origin[1] + local[1], inst.origin[2] + local[2])
        for center, axis, degrees in inst.rotations:
            p = rotate_point(p, center, axis, degrees)
        return p

    def instance_origin(self, handle: int) -> Vec3:
        return self._transform(self.instances[handle], (0.0, 0.0, 0.0))

    def instance_corners(self, handle: int) -> list[Vec3]:
        inst = self.instances[handle]
        proto = self.prototypes[inst.prototype]
        return [self._transform(inst, c) for c in proto.local_corners()]

    def footprint(self, handle: int) -> Polygon:
        """Plan (XY) outline of a placed note."""
        corners = self.instance_corners(handle)
        return MultiPoint([(x, y) for x, y, _ in corners]).convex_hull

    def plan_area(self) -> float:
        """Area covered in plan by all placed notes, overlaps counted once."""
        if not self.instances:
            return 0.0
        return unary_union([self.footprint(h) for h in self.instances]).area

    def instances_of(self, group_id: int) -> list[int]:
        suffix = f"_{group_id}"
        return [h for h, i in self.instances.items() if i.prototype.endswith(suffix)]
