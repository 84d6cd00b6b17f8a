"""Pin numbering — the deterministic pin order used in documents.

Chip pins are numbered counter-clockwise from the top-left corner:
left pins top-to-bottom, bottom pins left-to-right, right pins
bottom-to-top, top pins right-to-left, starting at 1.  A passive's
bottom/left pin is 1 and its top/right pin is 2.  A net label has one
implicit pin and is referenced by id instead of by number.
"""

from __future__ import annotations

from schemlayout.model.models import Chip, Component, NetLabel, Passive, Pin
from schemlayout.model.sizing import pins_on_side


def pins_in_number_order(component: Component) -> list[Pin]:
    """The component's pins ordered so that pin N is at position N - 1."""
    if isinstance(component, Chip):
        pins = component.pins
        return (
            pins_on_side(pins, "left")
            + pins_on_side(pins, "bottom")
            + pins_on_side(pins, "right")[::-1]
            + pins_on_side(pins, "top")[::-1]
            + pins_on_side(pins, "center")
        )
    if isinstance(component, Passive):
        first = [p for p in component.pins if p.side in ("bottom", "left")]
        second = [p for p in component.pins if p.side not in ("bottom", "left")]
        return first + second
    if isinstance(component, NetLabel):
        return list(component.pins)
    raise TypeError(f"Unknown component kind: {type(component).__name__}")


def pin_number(component: Component, pin: Pin) -> int:
    if isinstance(component, Passive):
        return 1 if pin.side in ("bottom", "left") else 2
    if isinstance(component, NetLabel):
        return 1
    order = pins_in_number_order(component)
    for n, p in enumerate(order, start=1):
        if p.id == pin.id:
            return n
    raise ValueError(f"Pin '{pin.id}' does not belong to '{component.id}'")


def pin_by_number(component: Component, number: int | None) -> Pin | None:
    """The pin at position *number* of the numbering order, if any."""
    if number is None or number < 1:
        return None
    if isinstance(component, Passive):
        wanted = ("bottom", "left") if number == 1 else ("top", "right") if number == 2 else ()
        return next((p for p in component.pins if p.side in wanted), None)
    order = pins_in_number_order(component)
    if number > len(order):
        return None
    return order[number - 1]
