"""Export — Layout → canonical or legacy document dicts.

Internal Y grows downward; documents are Y-up, so every exported Y
(component centres, pins, labels, junctions, path points) is negated.
"""

from __future__ import annotations

import json
import logging

from schemlayout.model.models import (
    Chip, Component, Connection, Endpoint, JunctionRef, Layout,
    NetLabel, Passive, PinRef,
)
from schemlayout.resolver import effective_anchor_side, pin_position

from .models import DocumentFormat
from .numbering import pin_number

log = logging.getLogger(__name__)

UNKNOWN_REF = {"junctionId": "unknown"}


def flip_y(y: float) -> float:
    # 0.0 - y rather than -y so a zero never serializes as -0.0.
    return 0.0 - y


def _pin_counts(comp: Component) -> dict[str, int]:
    counts = {"left": 0, "right": 0, "top": 0, "bottom": 0}
    if isinstance(comp, Passive):
        if comp.is_vertical:
            counts["top"] = counts["bottom"] = 1
        else:
            counts["left"] = counts["right"] = 1
    else:
        for pin in comp.pins:
            if pin.side in counts:
                counts[pin.side] += 1
    return {
        "leftPinCount": counts["left"],
        "rightPinCount": counts["right"],
        "topPinCount": counts["top"],
        "bottomPinCount": counts["bottom"],
    }


def _center(comp: Component) -> tuple[float, float]:
    if isinstance(comp, Chip):
        cx, cy = comp.center
        return (cx, flip_y(cy))
    return (comp.x, flip_y(comp.y))


def _points(conn: Connection) -> list[dict]:
    return [{"x": x, "y": flip_y(y)} for x, y in conn.path]


# ── Canonical ──────────────────────────────────────────────────────


def _box_to_dict(comp: Component) -> dict:
    cx, cy = _center(comp)
    pins = []
    for pin in comp.pins:
        pos = pin_position(comp, pin)
        pins.append({
            "pinNumber": pin_number(comp, pin),
            "x": pos[0] if pos else 0.0,
            "y": flip_y(pos[1]) if pos else 0.0,
        })
    return {
        "boxId": comp.name,
        **_pin_counts(comp),
        "centerX": cx,
        "centerY": cy,
        "pins": pins,
    }


def _canonical_ref(layout: Layout, endpoint: Endpoint) -> dict:
    if isinstance(endpoint, JunctionRef):
        return {"junctionId": endpoint.junction_id}
    if isinstance(endpoint, PinRef):
        comp = layout.component(endpoint.component_id)
        pin = next((p for p in comp.pins if p.id == endpoint.pin_id), None) if comp else None
        if comp is not None and pin is not None:
            if isinstance(comp, NetLabel):
                return {"netLabelId": comp.id}
            return {"boxId": comp.name, "pinNumber": pin_number(comp, pin)}
    return dict(UNKNOWN_REF)


def layout_to_canonical(layout: Layout) -> dict:
    """Serialize a Layout to the canonical interchange document."""
    return {
        "boxes": [
            _box_to_dict(c) for c in layout.components if not isinstance(c, NetLabel)
        ],
        "netLabels": [
            {
                "netId": nl.name,
                "netLabelId": nl.id,
                "anchorPosition": effective_anchor_side(nl.anchor_side, nl.rotation),
                "x": nl.x,
                "y": flip_y(nl.y),
            }
            for nl in layout.net_labels()
        ],
        "paths": [
            {
                "points": _points(conn),
                "from": _canonical_ref(layout, conn.source),
                "to": _canonical_ref(layout, conn.target),
            }
            for conn in layout.connections
        ],
        "junctions": [
            {"junctionId": j.id, "x": j.x, "y": flip_y(j.y)}
            for j in layout.junctions
        ],
    }


# ── Legacy ─────────────────────────────────────────────────────────


def _legacy_ref(endpoint: Endpoint) -> dict:
    if isinstance(endpoint, JunctionRef):
        return {"junctionId": endpoint.junction_id}
    if isinstance(endpoint, PinRef):
        return {"boxId": endpoint.component_id}
    return {}


def layout_to_legacy(layout: Layout) -> dict:
    """Serialize a Layout to the legacy document (counts only, no pin coordinates)."""
    boxes = []
    for comp in layout.components:
        if isinstance(comp, NetLabel):
            continue
        cx, cy = _center(comp)
        boxes.append({
            "boxId": comp.id,
            "name": comp.name,
            **_pin_counts(comp),
            "centerX": cx,
            "centerY": cy,
        })
    return {
        "boxes": boxes,
        "paths": [
            {
                "pathId": conn.id,
                "points": _points(conn),
                "from": _legacy_ref(conn.source),
                "to": _legacy_ref(conn.target),
            }
            for conn in layout.connections
        ],
        "junctions": [
            {"junctionId": j.id, "x": j.x, "y": flip_y(j.y)}
            for j in layout.junctions
        ],
        "netLabels": [
            {
                "netLabelId": nl.id,
                "netName": nl.name,
                "x": nl.x,
                "y": flip_y(nl.y),
                "anchorPosition": nl.anchor_side,
                "rotation": nl.rotation,
            }
            for nl in layout.net_labels()
        ],
    }


def export_document(layout: Layout, fmt: DocumentFormat = "canonical") -> str:
    """Serialize a Layout to document text (2-space indented JSON)."""
    if fmt == "canonical":
        data = layout_to_canonical(layout)
    elif fmt == "legacy":
        data = layout_to_legacy(layout)
    else:
        raise ValueError(f"Unknown document format: {fmt!r}")
    log.info(
        "Exported %s document: %d boxes, %d net labels, %d paths, %d junctions",
        fmt, len(data["boxes"]), len(data["netLabels"]),
        len(data["paths"]), len(data["junctions"]),
    )
    return json.dumps(data, indent=2)
