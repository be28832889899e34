"""Collaborator interfaces the engine talks to, plus no-op fallbacks.

The engine never assumes a specific 3D application.  Anything that can
build box prototypes, instantiate them, store JSON blobs and report a
selected object's origin can host it.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from typing import Any, Protocol

from .models import SelectionError, Vec3


class GeometryHost(Protocol):
    def create_box_prototype(self, name: str, length: float, width: float, height: float) -> None:
        ...

    def clear_prototype(self, name: str) -> None:
        ...

    def create_instance(self, prototype_name: str, at: Vec3) -> Any:
        ...

    def rotate_instance(self, handle: Any, center: Vec3, axis: str, degrees: float) -> None:
        ...

    def delete_instance(self, handle: Any) -> bool:
        """Erase a placed instance.  False if the handle is no longer valid."""
        ...

    def delete_prototype(self, name: str) -> None:
        ...

    def highlight_group(self, group_id: int, active: bool) -> None:
        ...

    def show_guide_line(self, start: Vec3, end: Vec3) -> None:
        ...

    def clear_guide_line(self) -> None:
        ...


class PersistenceHost(Protocol):
    def save_group_record(self, group_id: int, data: str) -> None:
        ...

    def load_all_group_records(self) -> list[str]:
        ...

    def delete_group_record(self, group_id: int) -> None:
        ...


class SelectionHost(Protocol):
    def get_single_selected_object_origin(self) -> Vec3:
        """Origin of the one selected object; raises SelectionError."""
        ...


class PresentationHost(Protocol):
    def push(self, snapshot: dict) -> None:
        ...


# ── Fallbacks ──────────────────────────────────────────────────────


@dataclass
class NullGeometry:
    """Accepts every call and hands out integer handles."""

    _handles: Any = field(default_factory=lambda: itertools.count(1))
    _live: set = field(default_factory=set)

    def create_box_prototype(self, name, length, width, height):
        pass

    def clear_prototype(self, name):
        pass

    def create_instance(self, prototype_name, at):
        handle = next(self._handles)
        self._live.add(handle)
        return handle

    def rotate_instance(self, handle, center, axis, degrees):
        pass

    def delete_instance(self, handle):
        if handle not in self._live:
            return False
        self._live.discard(handle)
        return True

    def delete_prototype(self, name):
        pass

    def highlight_group(self, group_id, active):
        pass

    def show_guide_line(self, start, end):
        pass

    def clear_guide_line(self):
        pass


class NullPersistence:
    def save_group_record(self, group_id, data):
        pass

    def load_all_group_records(self):
        return []

    def delete_group_record(self, group_id):
        pass


class NullSelection:
    def get_single_selected_object_origin(self):
        raise SelectionError("no selection host attached")


class NullPresentation:
    def push(self, snapshot):
        pass
