"""schemlayout — schematic layout geometry and document interchange.

Submodules:
  config       Shared layout constants (LAYOUT_RULES).
  geometry     Grid snapping, distances, orthogonal wire rendering.
  model        Entity dataclasses and chip sizing.
  resolver     Pin world positions and read-model helpers.
  sync         Connection path synchronizer.
  operations   Layout mutations.
  wires        Wire drafting, hit-testing, junction insertion.
  interchange  Canonical / legacy document export and import.
  session      One editing session.
  web          FastAPI service.
"""

__version__ = "0.1.0"
