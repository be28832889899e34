"""Music Architecture: procedural placement of parametric note boxes.

Subpackages:
  engine   Placement state machine, direction algebra, serialization.
  hosts    Concrete collaborators (in-memory scene, session-backed store).
  web      FastAPI command surface.
"""
