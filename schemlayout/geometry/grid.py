"""Grid snapping and world ↔ screen transforms.

World coordinates grow right (X) and down (Y), in grid-space units.
Screen coordinates are world × scale plus a pan offset in pixels.
"""

from __future__ import annotations

import math

from schemlayout.config import LAYOUT_RULES

Point = tuple[float, float]


def _round_half_up(value: float) -> int:
    # Ties round toward +inf.  The quotient is rounded first so float noise
    # (0.6 / 2 / 0.2 == 1.5000000000000002) cannot push a tie the wrong way.
    return math.floor(round(value, 9) + 0.5)


def snap_to_grid(value: float, grid: float = LAYOUT_RULES.grid_size) -> float:
    """Snap a coordinate to the nearest multiple of the grid unit."""
    return _round_half_up(value / grid) * grid


def snap_to_half_grid(value: float, grid: float = LAYOUT_RULES.grid_size) -> float:
    """Snap a coordinate to the nearest grid line offset by half a unit.

    Used for the centre of a passive along its main axis, so that both of
    its pins (one pin-to-pin half-length away) land on whole grid lines.
    """
    half = grid / 2
    return _round_half_up((value - half) / grid) * grid + half


def world_to_screen(
    x: float, y: float,
    pan: Point = (0.0, 0.0),
    scale: float = LAYOUT_RULES.scale,
) -> Point:
    """Project a world point to screen pixels."""
    return (x * scale + pan[0], y * scale + pan[1])


def screen_to_world(
    x: float, y: float,
    pan: Point = (0.0, 0.0),
    scale: float = LAYOUT_RULES.scale,
) -> Point:
    """Inverse of :func:`world_to_screen` for the same pan and scale."""
    return ((x - pan[0]) / scale, (y - pan[1]) / scale)
