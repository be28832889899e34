"""Concrete hosts for running the engine outside a CAD application.

Submodules:
  scene   InMemoryScene: geometry + selection host with shapely footprints.
  store   SessionGroupStore: persistence host backed by a Session folder.
"""

from .scene import InMemoryScene, Prototype, SceneInstance
from .store import SessionGroupStore

__all__ = ["InMemoryScene", "Prototype", "SceneInstance", "SessionGroupStore"]
