"""Geometry kernel — grid snapping, view transforms, distances, orthogonal routing.

Submodules:
  grid        Grid snapping and world/screen coordinate transforms.
  segments    Point and point-to-segment distances.
  orthogonal  Waypoint polyline → horizontal/vertical drawable path.
"""

from .grid import snap_to_grid, snap_to_half_grid, world_to_screen, screen_to_world
from .segments import dist_sq, dist_to_segment_squared, nearest_point_on_segment
from .orthogonal import (
    Direction, generate_drawable_orthogonal_path, orthogonal_legs, is_orthogonal,
)

__all__ = [
    # Grid
    "snap_to_grid", "snap_to_half_grid", "world_to_screen", "screen_to_world",
    # Segments
    "dist_sq", "dist_to_segment_squared", "nearest_point_on_segment",
    # Orthogonal routing
    "Direction", "generate_drawable_orthogonal_path", "orthogonal_legs", "is_orthogonal",
]
