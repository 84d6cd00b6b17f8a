"""Layout mutations — add, move, rotate, edit and delete entities.

Every operation works on an explicitly passed ``Layout`` and finishes
with a full connection-path sync, so the layout is settled the moment
the call returns.  Requests that make no sense (unknown ids, rotating a
chip, adding pins to a passive) are no-ops that return ``None``/``False``.
"""

from __future__ import annotations

import logging
import uuid

from schemlayout.config import LAYOUT_RULES
from schemlayout.geometry import snap_to_grid, snap_to_half_grid
from schemlayout.model.models import (
    ANCHOR_SIDES, Chip, Connection, Endpoint, Junction, Layout,
    NetLabel, Passive, Pin,
)
from schemlayout.model.sizing import chip_height, chip_width, pins_on_side, quantize_margin
from schemlayout.resolver import endpoint_position
from schemlayout.sync import sync_connection_paths

log = logging.getLogger(__name__)

DEFAULT_CHIP_PINS_PER_SIDE = 2


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


# ── Creation ───────────────────────────────────────────────────────


def add_chip(
    layout: Layout, x: float, y: float,
    pins_per_side: int = DEFAULT_CHIP_PINS_PER_SIDE,
) -> Chip:
    """Add a chip centred on ``(x, y)``; the top-left corner snaps to grid."""
    chip_id = new_id("chip")
    pins: list[Pin] = []
    for i in range(pins_per_side):
        pins.append(Pin(id=f"pin-{uuid.uuid4()}-L{i}", side="left", index=i))
        pins.append(Pin(id=f"pin-{uuid.uuid4()}-R{i}", side="right", index=i))

    width = chip_width(pins)
    height = chip_height(pins)
    chip = Chip(
        id=chip_id,
        name=f"U{layout.counters.chip}",
        x=snap_to_grid(x - width / 2),
        y=snap_to_grid(y - height / 2),
        pins=pins,
    )
    layout.components.append(chip)
    layout.counters.chip += 1
    log.debug("Added chip %s at (%.2f, %.2f)", chip.name, chip.x, chip.y)
    return chip


def add_passive(layout: Layout, x: float, y: float) -> Passive:
    """Add a vertical passive; its centre sits half a grid unit off-grid in Y."""
    passive_id = new_id("passive")
    passive = Passive(
        id=passive_id,
        name=f"P{layout.counters.passive}",
        x=snap_to_grid(x),
        y=snap_to_half_grid(y),
        pins=[
            Pin(id=f"pin-{uuid.uuid4()}-T0", side="top", index=0),
            Pin(id=f"pin-{uuid.uuid4()}-B0", side="bottom", index=0),
        ],
    )
    layout.components.append(passive)
    layout.counters.passive += 1
    log.debug("Added passive %s at (%.2f, %.2f)", passive.name, passive.x, passive.y)
    return passive


def add_net_label(layout: Layout, x: float, y: float, name: str | None = None) -> NetLabel:
    """Add a net label anchored at the snapped point, text growing rightward."""
    label_id = new_id("netlabel")
    label = NetLabel(
        id=label_id,
        name=name or f"NET{layout.counters.net_label}",
        x=snap_to_grid(x),
        y=snap_to_grid(y),
        pins=[Pin(id=f"pin-{uuid.uuid4()}-C0", side="center", index=0)],
        anchor_side="left",
    )
    layout.components.append(label)
    layout.counters.net_label += 1
    return label


def add_junction(layout: Layout, x: float, y: float) -> Junction:
    junction = Junction(
        id=f"junc-{layout.counters.junction}",
        x=snap_to_grid(x),
        y=snap_to_grid(y),
    )
    layout.junctions.append(junction)
    layout.counters.junction += 1
    return junction


# ── Pins ───────────────────────────────────────────────────────────


def add_pin(layout: Layout, chip_id: str, side: str) -> Pin | None:
    """Append a pin at the next free index on *side* of a chip."""
    chip = layout.component(chip_id)
    if not isinstance(chip, Chip) or side not in ("left", "right"):
        log.debug("add_pin ignored for %s on side %r", chip_id, side)
        return None
    index = len(pins_on_side(chip.pins, side))
    pin = Pin(id=f"pin-{uuid.uuid4()}-{side[0].upper()}{index}", side=side, index=index)
    chip.pins.append(pin)
    sync_connection_paths(layout)
    return pin


def set_pin_margins(
    layout: Layout, chip_id: str, margins: dict[str, float | None],
) -> bool:
    """Set ``margin_from_last`` for pins of a chip (pin id → margin).

    ``None`` restores the default spacing; other values are rounded to
    whole grid units.  The first pin on a side has no predecessor, so a
    margin given for it is ignored.  Non-positive margins are rejected.
    """
    chip = layout.component(chip_id)
    if not isinstance(chip, Chip):
        return False
    pins_by_id = {p.id: p for p in chip.pins}
    if any(pid not in pins_by_id for pid in margins):
        return False
    if any(m is not None and m <= 0 for m in margins.values()):
        return False

    for pid, margin in margins.items():
        pin = pins_by_id[pid]
        first = pins_on_side(chip.pins, pin.side)[0]
        pin.margin_from_last = (
            None if pin.id == first.id or margin is None else quantize_margin(margin)
        )
    sync_connection_paths(layout)
    return True


# ── Pose ───────────────────────────────────────────────────────────


def rotate(layout: Layout, component_id: str) -> bool:
    """Rotate a passive (0 ↔ 90) or a net label (+90); chips don't rotate.

    A passive swaps which axis is half-grid snapped so its pins stay on
    whole grid lines.  180/270 are treated as their 0/90 equivalents.
    """
    comp = layout.component(component_id)
    if isinstance(comp, Passive):
        if comp.is_vertical:
            comp.rotation = 90
            comp.x = snap_to_half_grid(comp.x)
            comp.y = snap_to_grid(comp.y)
        else:
            comp.rotation = 0
            comp.x = snap_to_grid(comp.x)
            comp.y = snap_to_half_grid(comp.y)
    elif isinstance(comp, NetLabel):
        comp.rotation = (comp.rotation + 90) % 360
    else:
        return False
    sync_connection_paths(layout)
    return True


def move(layout: Layout, component_id: str, x: float, y: float) -> bool:
    comp = layout.component(component_id)
    if comp is None:
        return False
    comp.x = x
    comp.y = y
    sync_connection_paths(layout)
    return True


def move_junction(layout: Layout, junction_id: str, x: float, y: float) -> bool:
    junction = layout.junction(junction_id)
    if junction is None:
        return False
    junction.x = x
    junction.y = y
    sync_connection_paths(layout)
    return True


def set_anchor_side(layout: Layout, label_id: str, anchor_side: str) -> bool:
    label = layout.component(label_id)
    if not isinstance(label, NetLabel) or anchor_side not in ANCHOR_SIDES:
        return False
    label.anchor_side = anchor_side
    return True


# ── Names and labels ───────────────────────────────────────────────


def rename(layout: Layout, component_id: str, name: str) -> bool:
    """Rename a component; an empty name keeps the current one."""
    comp = layout.component(component_id)
    if comp is None:
        return False
    if name:
        comp.name = name
    return True


def set_connection_label(layout: Layout, connection_id: str, label: str) -> bool:
    conn = layout.connection(connection_id)
    if conn is None:
        return False
    conn.label = label
    return True


# ── Connections ────────────────────────────────────────────────────


def connect(
    layout: Layout,
    source: Endpoint,
    target: Endpoint,
    waypoints: list[tuple[float, float]] = (),
    label: str = "",
) -> Connection | None:
    """Create a connection between two resolvable, distinct endpoints."""
    if source == target:
        return None
    start = endpoint_position(layout, source)
    end = endpoint_position(layout, target)
    if start is None or end is None:
        return None

    conn = Connection(
        id=new_id("conn"),
        source=source,
        target=target,
        path=[start, *[tuple(p) for p in waypoints], end],
        label=label,
    )
    layout.connections.append(conn)
    sync_connection_paths(layout)
    return conn


# ── Deletion ───────────────────────────────────────────────────────


def delete(layout: Layout, entity_id: str) -> bool:
    """Delete a component, junction or connection by id.

    Deleting a component removes every connection on one of its pins;
    deleting a junction removes every connection on that junction.
    """
    comp = layout.component(entity_id)
    if comp is not None:
        layout.connections = [
            c for c in layout.connections if not c.references_component(entity_id)
        ]
        layout.components = [c for c in layout.components if c.id != entity_id]
        sync_connection_paths(layout)
        return True

    junction = layout.junction(entity_id)
    if junction is not None:
        layout.connections = [
            c for c in layout.connections if not c.references_junction(entity_id)
        ]
        layout.junctions = [j for j in layout.junctions if j.id != entity_id]
        sync_connection_paths(layout)
        return True

    conn = layout.connection(entity_id)
    if conn is not None:
        layout.connections = [c for c in layout.connections if c.id != entity_id]
        return True

    return False


def delete_connection(layout: Layout, connection_id: str) -> bool:
    if layout.connection(connection_id) is None:
        return False
    return delete(layout, connection_id)


__all__ = [
    "DEFAULT_CHIP_PINS_PER_SIDE", "new_id",
    "add_chip", "add_passive", "add_net_label", "add_junction",
    "add_pin", "set_pin_margins",
    "rotate", "move", "move_junction", "set_anchor_side",
    "rename", "set_connection_label",
    "connect", "delete", "delete_connection",
]
