"""Import — canonical or legacy document → Layout.

Both versions are rebuilt into a fresh Layout; the caller's current
layout is never touched, so a failed import leaves it as it was.

Pin identities do not survive a document: chips get regenerated pins,
and every ``(boxId, pinNumber)`` reference is bound back to one of them.
The binding tries, in order:

  1. the literal pin coordinate from the document (canonical only),
     matched within ``position_tolerance`` against the rebuilt pins
  2. the counter-clockwise numbering order used on export
  3. the pin nearest to the path's own endpoint (legacy, or no pinNumber)

and otherwise falls back to an ``UnresolvedRef`` placeholder.  Steps 2
and 3 are counted as approximations; placeholders as dangling ends.
"""

from __future__ import annotations

import logging
import re
import uuid

from schemlayout.config import LAYOUT_RULES
from schemlayout.geometry import dist_sq, snap_to_grid, snap_to_half_grid
from schemlayout.model.models import (
    ANCHOR_SIDES, Chip, Component, Connection, Endpoint, Junction, JunctionRef,
    Layout, NameCounters, NetLabel, Passive, Pin, PinRef, UnresolvedRef,
)
from schemlayout.model.sizing import chip_height, chip_width, quantize_margin
from schemlayout.resolver import pin_position
from schemlayout.sync import sync_connection_paths

from .export import flip_y
from .models import DocumentFormat, ImportResult
from .numbering import pin_by_number, pins_in_number_order
from .parsing import parse_document
from .schemas import BoxDoc, EndpointDoc, LayoutDocument, NetLabelDoc, PathDoc

log = logging.getLogger(__name__)

Point = tuple[float, float]

_SIDE_LETTER = {"left": "L", "right": "R", "top": "T", "bottom": "B", "center": "C"}


# ── Helpers ────────────────────────────────────────────────────────


class _ImportContext:
    """Mutable bookkeeping shared by one import run."""

    def __init__(self, fmt: DocumentFormat) -> None:
        self.layout = Layout()
        self.format = fmt
        self.warnings: list[str] = []
        self.approximated = 0
        self.dangling = 0
        self.box_docs: dict[str, BoxDoc] = {}         # component id -> source box
        self.label_ids: dict[str, str] = {}           # document netLabelId -> component id

    def warn(self, message: str) -> None:
        log.warning(message)
        self.warnings.append(message)

    def approximate(self, message: str) -> None:
        self.approximated += 1
        self.warn(message)

    def unresolved(self, label: str, message: str) -> UnresolvedRef:
        self.dangling += 1
        self.warn(message)
        return UnresolvedRef(label)

    def result(self) -> ImportResult:
        return ImportResult(
            layout=self.layout,
            format=self.format,
            warnings=self.warnings,
            approximated=self.approximated,
            dangling=self.dangling,
        )


def _pin_id(component_id: str, side: str, index: int) -> str:
    return f"pin-{component_id}-{_SIDE_LETTER[side]}{index}"


def _name_number(name: str, prefix: str) -> int | None:
    if not name.startswith(prefix):
        return None
    m = re.match(r"\d+", name[len(prefix):])
    return int(m.group()) if m else None


def _next_number(names: list[str], prefix: str) -> int:
    numbers = [n for n in (_name_number(name, prefix) for name in names) if n is not None]
    return max(numbers, default=0) + 1


def rescan_counters(layout: Layout) -> NameCounters:
    """Counters that continue after the highest designator already in use."""
    junction_numbers = [
        n for n in (_name_number(j.id, "junc-") for j in layout.junctions) if n is not None
    ]
    return NameCounters(
        chip=_next_number([c.name for c in layout.chips()], "U"),
        passive=_next_number([c.name for c in layout.passives()], "P"),
        net_label=_next_number([c.name for c in layout.net_labels()], "NET"),
        junction=max(max(junction_numbers, default=0), len(layout.junctions)) + 1,
    )


def passive_rotation(box: BoxDoc) -> int | None:
    """Rotation implied by a two-pin count pattern, or None for a chip."""
    left, right, top, bottom = box.pin_counts()
    if (top, bottom, left, right) == (1, 1, 0, 0):
        return 0
    if (left, right, top, bottom) == (1, 1, 0, 0):
        return 90
    return None


def _build_passive(component_id: str, name: str, box: BoxDoc, rotation: int) -> Passive:
    cx, cy = box.center_x, flip_y(box.center_y)
    return Passive(
        id=component_id,
        name=name,
        x=snap_to_half_grid(cx) if rotation == 90 else snap_to_grid(cx),
        y=snap_to_half_grid(cy) if rotation == 0 else snap_to_grid(cy),
        pins=[
            Pin(id=_pin_id(component_id, "top", 0), side="top", index=0),
            Pin(id=_pin_id(component_id, "bottom", 0), side="bottom", index=0),
        ],
        rotation=rotation,
    )


def _build_chip(component_id: str, name: str, box: BoxDoc, pins: list[Pin]) -> Chip:
    width = chip_width(pins)
    height = chip_height(pins)
    return Chip(
        id=component_id,
        name=name,
        x=snap_to_grid(box.center_x - width / 2),
        y=snap_to_grid(flip_y(box.center_y) - height / 2),
        pins=pins,
    )


# ── Chip pin reconstruction ────────────────────────────────────────


def pins_from_counts(box: BoxDoc, component_id: str) -> list[Pin]:
    """Default-spaced pins for each per-side count."""
    left, right, top, bottom = box.pin_counts()
    pins: list[Pin] = []
    for side, count in (("left", left), ("right", right), ("top", top), ("bottom", bottom)):
        for i in range(count):
            pins.append(Pin(id=_pin_id(component_id, side, i), side=side, index=i))
    return pins


def _side_pins(
    component_id: str, side: str, coords: list[float],
) -> list[Pin]:
    """Pins for one edge; *coords* are positions along the edge in index order."""
    pins: list[Pin] = []
    for i, c in enumerate(coords):
        margin = quantize_margin(abs(c - coords[i - 1])) if i > 0 else None
        pins.append(Pin(
            id=_pin_id(component_id, side, i), side=side, index=i,
            margin_from_last=margin,
        ))
    return pins


def reconstruct_chip_pins(
    box: BoxDoc, component_id: str, ctx: _ImportContext | None = None,
) -> list[Pin]:
    """Rebuild chip pins (side, index, margin) from literal pin coordinates.

    Pins are clustered by X into a left and a right column and sorted
    top-to-bottom; margins are the Y gaps between neighbours.  A chip
    whose counts include top/bottom pins is split by pin number instead,
    following the export numbering order.
    """
    tol = LAYOUT_RULES.position_tolerance
    literal = [(p.pin_number, p.x, flip_y(p.y)) for p in box.pins or []]
    if not literal:
        return pins_from_counts(box, component_id)

    left, right, top, bottom = box.pin_counts()
    if top or bottom:
        ordered = sorted(literal, key=lambda p: p[0])
        runs = (("left", left), ("bottom", bottom), ("right", right), ("top", top))
        pins: list[Pin] = []
        start = 0
        for side, count in runs:
            run = ordered[start:start + count]
            start += count
            if side in ("right", "top"):
                run = run[::-1]     # numbered against the index direction
            axis = 2 if side in ("left", "right") else 1
            pins.extend(_side_pins(component_id, side, [p[axis] for p in run]))
        if start != len(ordered) and ctx is not None:
            ctx.warn(f"Box '{box.box_id or component_id}': {len(ordered)} pins listed, counts give {start}")
        return pins

    xs: list[float] = []
    for _, x, _ in sorted(literal, key=lambda p: p[1]):
        if not xs or abs(x - xs[-1]) >= tol:
            xs.append(x)
    left_x, right_x = xs[0], xs[-1]

    if len(xs) == 1:
        side = "left" if left_x <= box.center_x else "right"
        column = sorted(literal, key=lambda p: p[2])
        return _side_pins(component_id, side, [p[2] for p in column])

    left_col = sorted((p for p in literal if abs(p[1] - left_x) < tol), key=lambda p: p[2])
    right_col = sorted((p for p in literal if abs(p[1] - right_x) < tol), key=lambda p: p[2])
    stray = len(literal) - len(left_col) - len(right_col)
    if stray and ctx is not None:
        ctx.warn(f"Box '{box.box_id or component_id}': {stray} pin(s) off the left/right columns were dropped")
    return (
        _side_pins(component_id, "left", [p[2] for p in left_col])
        + _side_pins(component_id, "right", [p[2] for p in right_col])
    )


# ── Endpoint binding ───────────────────────────────────────────────


def nearest_pin(component: Component, point: Point) -> tuple[Pin, float] | None:
    """Pin whose resolved position is closest to *point*.

    Ties go to the lowest pin number.
    """
    best: tuple[Pin, float] | None = None
    for pin in pins_in_number_order(component):
        pos = pin_position(component, pin)
        if pos is None:
            continue
        d2 = dist_sq(pos, point)
        if best is None or d2 < best[1]:
            best = (pin, d2)
    return best


def _bind_nearest(
    ctx: _ImportContext, comp: Component, point: Point | None, what: str,
) -> Endpoint:
    if point is None:
        order = pins_in_number_order(comp)
        if not order:
            return ctx.unresolved(f"unknown-pin:{comp.name}", f"{what}: '{comp.name}' has no pins")
        ctx.approximate(f"{what}: no path point, bound to first pin of '{comp.name}'")
        return PinRef(comp.id, order[0].id)

    found = nearest_pin(comp, point)
    if found is None:
        return ctx.unresolved(f"unknown-pin:{comp.name}", f"{what}: '{comp.name}' has no pins")
    pin, d2 = found
    if d2 ** 0.5 > LAYOUT_RULES.position_tolerance:
        ctx.approximate(f"{what}: bound to nearest pin of '{comp.name}'")
    log.debug("%s: nearest pin %s (d=%.4f)", what, pin.id, d2 ** 0.5)
    return PinRef(comp.id, pin.id)


def _bind_numbered_pin(
    ctx: _ImportContext, comp: Component, number: int | None,
    point: Point | None, what: str,
) -> Endpoint:
    if number is None:
        return _bind_nearest(ctx, comp, point, what)

    if isinstance(comp, Chip):
        box = ctx.box_docs.get(comp.id)
        literal = next((p for p in (box.pins or []) if p.pin_number == number), None) if box else None
        if literal is not None:
            tol = LAYOUT_RULES.position_tolerance
            target = (literal.x, flip_y(literal.y))
            for pin in pins_in_number_order(comp):
                pos = pin_position(comp, pin)
                if pos and abs(pos[0] - target[0]) < tol and abs(pos[1] - target[1]) < tol:
                    return PinRef(comp.id, pin.id)
        pin = pin_by_number(comp, number)
        if pin is not None:
            ctx.approximate(f"{what}: pin {number} of '{comp.name}' bound by numbering order")
            return PinRef(comp.id, pin.id)
    else:
        pin = pin_by_number(comp, number)
        if pin is not None:
            return PinRef(comp.id, pin.id)

    return ctx.unresolved(
        f"unknown-pin:{comp.name}:{number}",
        f"{what}: '{comp.name}' has no pin {number}",
    )


def _bind_net_label(ctx: _ImportContext, ref: EndpointDoc, what: str) -> Endpoint:
    label: Component | None = None
    if ref.net_label_id is not None:
        mapped = ctx.label_ids.get(ref.net_label_id)
        label = ctx.layout.component(mapped) if mapped else None
    if label is None and ref.net_id is not None:
        label = next((nl for nl in ctx.layout.net_labels() if nl.name == ref.net_id), None)
    if label is None or not label.pins:
        key = ref.net_label_id or ref.net_id
        return ctx.unresolved(f"unknown-netlabel:{key}", f"{what}: unknown net label '{key}'")
    return PinRef(label.id, label.pins[0].id)


def _bind_endpoint(
    ctx: _ImportContext, ref: EndpointDoc, point: Point | None, what: str,
) -> Endpoint:
    layout = ctx.layout
    if ref.junction_id is not None:
        if layout.junction(ref.junction_id) is None:
            return ctx.unresolved(
                f"unknown-junction:{ref.junction_id}",
                f"{what}: unknown junction '{ref.junction_id}'",
            )
        return JunctionRef(ref.junction_id)

    if ref.net_label_id is not None or ref.net_id is not None:
        return _bind_net_label(ctx, ref, what)

    if ref.box_id is not None:
        if ctx.format == "canonical":
            comp = next(
                (c for c in layout.components
                 if c.name == ref.box_id and not isinstance(c, NetLabel)),
                None,
            )
        else:
            comp = layout.component(ref.box_id)
        if comp is None:
            return ctx.unresolved(f"unknown-box:{ref.box_id}", f"{what}: unknown box '{ref.box_id}'")
        if ctx.format == "legacy":
            return _bind_nearest(ctx, comp, point, what)
        return _bind_numbered_pin(ctx, comp, ref.pin_number, point, what)

    return ctx.unresolved("unknown-endpoint", f"{what}: endpoint names no box, label or junction")


def _build_connections(ctx: _ImportContext, paths: list[PathDoc]) -> None:
    for i, p in enumerate(paths):
        path = [(pt.x, flip_y(pt.y)) for pt in p.points]
        conn_id = p.path_id if ctx.format == "legacy" and p.path_id else f"conn-{uuid.uuid4()}"
        source = _bind_endpoint(ctx, p.source, path[0] if path else None, f"path {i} from")
        target = _bind_endpoint(ctx, p.target, path[-1] if path else None, f"path {i} to")
        ctx.layout.connections.append(Connection(
            id=conn_id, source=source, target=target, path=path,
        ))


def _build_junctions(ctx: _ImportContext, doc: LayoutDocument) -> None:
    for i, j in enumerate(doc.junctions):
        ctx.layout.junctions.append(Junction(
            id=j.junction_id or f"loaded-junc-{i}",
            x=j.x,
            y=flip_y(j.y),
        ))


# ── Canonical ──────────────────────────────────────────────────────


def canonical_to_layout(doc: LayoutDocument) -> ImportResult:
    ctx = _ImportContext("canonical")
    layout = ctx.layout

    next_chip = _next_number([b.box_id for b in doc.boxes if b.box_id], "U")
    next_passive = _next_number([b.box_id for b in doc.boxes if b.box_id], "P")
    for i, box in enumerate(doc.boxes):
        comp_id = f"loaded-box-{uuid.uuid4()}-{i}"
        rotation = passive_rotation(box)
        name = box.box_id
        if rotation is not None:
            if not name:
                name, next_passive = f"P{next_passive}", next_passive + 1
                ctx.warn(f"Box {i} has no boxId; named {name}")
            comp: Component = _build_passive(comp_id, name, box, rotation)
        else:
            if not name:
                name, next_chip = f"U{next_chip}", next_chip + 1
                ctx.warn(f"Box {i} has no boxId; named {name}")
            comp = _build_chip(comp_id, name, box, reconstruct_chip_pins(box, comp_id, ctx))
        ctx.box_docs[comp_id] = box
        layout.components.append(comp)

    for i, nl in enumerate(doc.net_labels):
        comp_id = f"loaded-nl-{uuid.uuid4()}-{i}"
        ctx.label_ids[nl.net_label_id or f"fallback-netlabel-{i}"] = comp_id
        layout.components.append(_build_net_label(ctx, comp_id, nl.net_id or nl.net_name, nl, 0))

    _build_junctions(ctx, doc)
    _build_connections(ctx, doc.paths)
    return _finish(ctx)


# ── Legacy ─────────────────────────────────────────────────────────


def legacy_to_layout(doc: LayoutDocument) -> ImportResult:
    ctx = _ImportContext("legacy")
    layout = ctx.layout

    next_chip = _next_number([b.name for b in doc.boxes if b.name], "U")
    next_passive = _next_number([b.name for b in doc.boxes if b.name], "P")
    for i, box in enumerate(doc.boxes):
        box_id = box.box_id
        if not box_id:
            box_id = f"loaded-box-{uuid.uuid4()}-{i}"
            ctx.warn(f"Box {i} has no boxId; assigned {box_id}")
        rotation = passive_rotation(box)
        if rotation is not None:
            name = box.name
            if not name:
                name, next_passive = f"P{next_passive}", next_passive + 1
            comp: Component = _build_passive(box_id, name, box, rotation)
        else:
            name = box.name
            if not name:
                name, next_chip = f"U{next_chip}", next_chip + 1
            comp = _build_chip(box_id, name, box, pins_from_counts(box, box_id))
        layout.components.append(comp)

    next_label = _next_number([nl.net_name for nl in doc.net_labels if nl.net_name], "NET")
    for i, nl in enumerate(doc.net_labels):
        comp_id = nl.net_label_id or f"loaded-nl-{uuid.uuid4()}-{i}"
        name = nl.net_name or nl.net_id
        if not name:
            name, next_label = f"NET{next_label}", next_label + 1
        ctx.label_ids[comp_id] = comp_id
        rotation = (nl.rotation // 90 * 90) % 360
        layout.components.append(_build_net_label(ctx, comp_id, name, nl, rotation))

    _build_junctions(ctx, doc)
    _build_connections(ctx, doc.paths)
    return _finish(ctx)


def _build_net_label(
    ctx: _ImportContext, comp_id: str, name: str | None,
    nl: NetLabelDoc, rotation: int,
) -> NetLabel:
    anchor = nl.anchor_position
    if anchor not in ANCHOR_SIDES:
        ctx.warn(f"Net label '{name}': unknown anchorPosition '{anchor}', using 'left'")
        anchor = "left"
    return NetLabel(
        id=comp_id,
        name=name or comp_id,
        x=snap_to_grid(nl.x),
        y=snap_to_grid(flip_y(nl.y)),
        pins=[Pin(id=_pin_id(comp_id, "center", 0), side="center", index=0)],
        rotation=rotation,
        anchor_side=anchor,
    )


def _finish(ctx: _ImportContext) -> ImportResult:
    layout = ctx.layout
    layout.counters = rescan_counters(layout)
    sync_connection_paths(layout)
    if ctx.format == "legacy" and ctx.approximated:
        ctx.warnings.append("Pin reconstruction is approximate.")
    log.info(
        "Imported %s document: %d components, %d junctions, %d connections "
        "(%d approximated, %d dangling)",
        ctx.format, len(layout.components), len(layout.junctions),
        len(layout.connections), ctx.approximated, ctx.dangling,
    )
    return ctx.result()


def import_document(source: str | bytes | dict) -> ImportResult:
    """Parse a document of either version and rebuild its Layout.

    Raises DocumentError on structural failure; never partially applies.
    """
    doc, fmt = parse_document(source)
    if fmt == "canonical":
        return canonical_to_layout(doc)
    return legacy_to_layout(doc)
