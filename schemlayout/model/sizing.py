"""Chip sizing — height and width derived from the pin layout."""

from __future__ import annotations

from typing import TYPE_CHECKING

from schemlayout.config import LAYOUT_RULES
from schemlayout.geometry.grid import snap_to_grid

if TYPE_CHECKING:
    from .models import Pin


def pins_on_side(pins: list[Pin], side: str) -> list[Pin]:
    """Pins on *side*, ordered by index."""
    return sorted((p for p in pins if p.side == side), key=lambda p: p.index)


def pin_margin(pin: Pin) -> float:
    """Spacing between *pin* and its predecessor on the same side."""
    if pin.margin_from_last is None:
        return LAYOUT_RULES.grid_size
    return pin.margin_from_last


def quantize_margin(margin: float) -> float | None:
    """Round a pin gap to whole grid units (at least one).

    Pin positions are grid-snapped, so only whole-unit gaps survive a
    trip through pin coordinates.  A one-unit gap is the default and
    comes back as None.
    """
    g = LAYOUT_RULES.grid_size
    snapped = max(g, snap_to_grid(margin))
    if abs(snapped - g) < LAYOUT_RULES.position_tolerance:
        return None
    return snapped


def side_offsets(side_pins: list[Pin]) -> dict[str, float]:
    """Offset of each pin along its edge, from the edge's start corner.

    The first pin sits one grid unit in; each later pin adds its margin.
    """
    offsets: dict[str, float] = {}
    offset = LAYOUT_RULES.grid_size
    for i, pin in enumerate(side_pins):
        if i > 0:
            offset += pin_margin(pin)
        offsets[pin.id] = offset
    return offsets


def side_length(side_pins: list[Pin]) -> float:
    """Edge length needed by a run of pins: a grid unit of margin at each end."""
    if not side_pins:
        return 0.0
    g = LAYOUT_RULES.grid_size
    return g + sum(pin_margin(p) for p in side_pins[1:]) + g


def chip_height(pins: list[Pin]) -> float:
    left = side_length(pins_on_side(pins, "left"))
    right = side_length(pins_on_side(pins, "right"))
    return max(LAYOUT_RULES.min_chip_height, left, right)


def chip_width(pins: list[Pin]) -> float:
    """Fixed width for one- or two-sided chips, grown for top/bottom pin runs."""
    has_left = any(p.side == "left" for p in pins)
    has_right = any(p.side == "right" for p in pins)
    if has_left and has_right:
        base = LAYOUT_RULES.double_sided_chip_width
    else:
        base = LAYOUT_RULES.single_sided_chip_width
    top = side_length(pins_on_side(pins, "top"))
    bottom = side_length(pins_on_side(pins, "bottom"))
    return max(base, top, bottom)
