"""Pin position resolver — component pose + pin → absolute world position.

Handles:
  - Chips: pins on the left/right edges (top/bottom extended the same way),
    spaced by their margins from the top-left corner, snapped to grid.
    With default margins this is ``G + index * G``; a custom
    ``margin_from_last`` shifts that pin and every later one on its side
  - Passives: pins half the pin-to-pin distance above/below the centre,
    rotated about the centre
  - Net labels: the single pin is the anchor point
  - Junction endpoints, and the read-model helpers built on them
"""

from __future__ import annotations

import math

from schemlayout.config import LAYOUT_RULES
from schemlayout.geometry import generate_drawable_orthogonal_path, snap_to_grid
from schemlayout.model.models import (
    AnchorSide, Chip, Component, Connection, Endpoint,
    JunctionRef, Layout, NetLabel, Passive, Pin, PinRef, UnresolvedRef,
)
from schemlayout.model.sizing import pins_on_side, side_offsets

Point = tuple[float, float]

# Rotation in the effective-anchor cycle: left → top → right → bottom → left
SIDES_ORDER: tuple[AnchorSide, ...] = ("left", "top", "right", "bottom")

# Exact (cos, sin) for quarter turns so rotated pins stay on the grid.
_QUARTER_TURNS = {0: (1, 0), 90: (0, 1), 180: (-1, 0), 270: (0, -1)}


def rotate_offset(dx: float, dy: float, rotation_deg: float) -> Point:
    """Rotate a centre-relative offset by *rotation_deg* (standard 2D matrix)."""
    key = rotation_deg % 360
    if key in _QUARTER_TURNS:
        cos_r, sin_r = _QUARTER_TURNS[key]
    else:
        rad = math.radians(rotation_deg)
        cos_r, sin_r = math.cos(rad), math.sin(rad)
    return (dx * cos_r - dy * sin_r, dx * sin_r + dy * cos_r)


def _chip_pin_position(chip: Chip, pin: Pin) -> Point:
    side = pin.side
    if side in ("left", "right"):
        offset = side_offsets(pins_on_side(chip.pins, side))[pin.id]
        px = chip.x if side == "left" else chip.x + chip.width
        py = chip.y + offset
    elif side in ("top", "bottom"):
        offset = side_offsets(pins_on_side(chip.pins, side))[pin.id]
        px = chip.x + offset
        py = chip.y if side == "top" else chip.y + chip.height
    else:
        px, py = chip.center
    return (snap_to_grid(px), snap_to_grid(py))


def _passive_pin_position(passive: Passive, pin: Pin) -> Point:
    half = LAYOUT_RULES.passive_pin_to_pin / 2
    if pin.side == "top":
        dy = -half
    elif pin.side == "bottom":
        dy = half
    else:
        dy = 0.0
    rx, ry = rotate_offset(0.0, dy, passive.rotation)
    return (passive.x + rx, passive.y + ry)


def pin_position(component: Component, pin: Pin) -> Point | None:
    """Absolute position of *pin* on *component*.

    Returns None if the pin does not belong to the component.
    """
    if not any(p.id == pin.id for p in component.pins):
        return None
    if isinstance(component, NetLabel):
        return (component.x, component.y)
    if isinstance(component, Passive):
        return _passive_pin_position(component, pin)
    if isinstance(component, Chip):
        return _chip_pin_position(component, pin)
    raise TypeError(f"Unknown component kind: {type(component).__name__}")


def endpoint_position(layout: Layout, endpoint: Endpoint) -> Point | None:
    """Resolve a connection endpoint; None if its target no longer exists."""
    if isinstance(endpoint, PinRef):
        comp = layout.component(endpoint.component_id)
        if comp is None:
            return None
        pin = next((p for p in comp.pins if p.id == endpoint.pin_id), None)
        if pin is None:
            return None
        return pin_position(comp, pin)
    if isinstance(endpoint, JunctionRef):
        junction = layout.junction(endpoint.junction_id)
        if junction is None:
            return None
        return (junction.x, junction.y)
    if isinstance(endpoint, UnresolvedRef):
        return None
    raise TypeError(f"Unknown endpoint kind: {type(endpoint).__name__}")


def effective_anchor_side(anchor_side: str, rotation: int) -> AnchorSide:
    """Rotate a net label's stored anchor side by ``rotation / 90`` steps."""
    if anchor_side not in SIDES_ORDER:
        return "left"
    steps = (rotation // 90) % 4
    return SIDES_ORDER[(SIDES_ORDER.index(anchor_side) + steps) % 4]


def visual_bounds(component: Component) -> tuple[float, float, float, float]:
    """Selection box ``(x, y, width, height)`` of a component, top-left origin."""
    if isinstance(component, Passive):
        main = LAYOUT_RULES.passive_pin_to_pin
        cross = LAYOUT_RULES.passive_body_width
        w, h = (cross, main) if component.is_vertical else (main, cross)
        return (component.x - w / 2, component.y - h / 2, w, h)
    if isinstance(component, NetLabel):
        w = LAYOUT_RULES.net_label_width
        h = LAYOUT_RULES.net_label_height
        return (component.x - w / 2, component.y - h / 2, w, h)
    if isinstance(component, Chip):
        return (component.x, component.y, component.width, component.height)
    raise TypeError(f"Unknown component kind: {type(component).__name__}")


def drawable_path(connection: Connection) -> list[Point]:
    """Orthogonal rendering of a connection's stored path."""
    return generate_drawable_orthogonal_path(connection.path)


def describe_position(layout: Layout, entity_id: str | None) -> str:
    """Coordinate readout for a selected entity, Y shown up-positive."""
    if not entity_id:
        return "No selection"

    comp = layout.component(entity_id)
    if comp is not None:
        if isinstance(comp, Passive):
            ref = " (center)"
        elif isinstance(comp, NetLabel):
            ref = " (pin)"
        else:
            ref = " (top-left)"
        return f"X: {comp.x:.2f}, Y: {0.0 - comp.y:.2f}{ref}"

    conn = layout.connection(entity_id)
    if conn is not None:
        start = endpoint_position(layout, conn.source)
        if start is None:
            return "Connection start invalid"
        return f"Start: X: {start[0]:.2f}, Y: {0.0 - start[1]:.2f}"

    junction = layout.junction(entity_id)
    if junction is not None:
        return f"Junction {junction.id}: X: {junction.x:.2f}, Y: {0.0 - junction.y:.2f}"

    return "No selection"


__all__ = [
    "SIDES_ORDER",
    "rotate_offset", "pin_position", "endpoint_position",
    "effective_anchor_side", "visual_bounds", "drawable_path", "describe_position",
]
