"""
FastAPI web server — one editing session, mutated over HTTP.

Every mutating route runs a single layout operation (which finishes with
a connection-path sync) and answers with the refreshed read model, so a
client never sees a half-updated layout.
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel

from schemlayout import operations as ops
from schemlayout.interchange import DocumentError
from schemlayout.model.models import (
    Endpoint, JunctionRef, Layout, NetLabel, PinRef, UnresolvedRef,
)
from schemlayout.resolver import (
    describe_position, drawable_path, effective_anchor_side, pin_position, visual_bounds,
)
from schemlayout.session import EditorSession
from schemlayout.wires import insert_junction

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 8000

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="schemlayout")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Session state (persists across requests) ───────────────────────

_session = EditorSession()


# ── Models ─────────────────────────────────────────────────────────

class PointRequest(BaseModel):
    x: float
    y: float


class ChipRequest(PointRequest):
    pins_per_side: int = ops.DEFAULT_CHIP_PINS_PER_SIDE


class NetLabelRequest(PointRequest):
    name: str | None = None


class EndpointModel(BaseModel):
    component_id: str | None = None
    pin_id: str | None = None
    junction_id: str | None = None

    def to_endpoint(self) -> Endpoint:
        if self.junction_id is not None:
            return JunctionRef(self.junction_id)
        if self.component_id is not None and self.pin_id is not None:
            return PinRef(self.component_id, self.pin_id)
        raise HTTPException(400, "Endpoint needs component_id + pin_id or junction_id.")


class ConnectionRequest(BaseModel):
    source: EndpointModel
    target: EndpointModel
    waypoints: list[tuple[float, float]] = []
    label: str = ""


class PinRequest(BaseModel):
    side: str


class MarginsRequest(BaseModel):
    margins: dict[str, float | None]


class RenameRequest(BaseModel):
    name: str


class AnchorRequest(BaseModel):
    anchor_side: str


class LabelRequest(BaseModel):
    label: str


class SplitRequest(PointRequest):
    segment_index: int


# ── Read model ─────────────────────────────────────────────────────

def _endpoint_view(endpoint: Endpoint) -> dict:
    if isinstance(endpoint, PinRef):
        return {"component_id": endpoint.component_id, "pin_id": endpoint.pin_id}
    if isinstance(endpoint, JunctionRef):
        return {"junction_id": endpoint.junction_id}
    if isinstance(endpoint, UnresolvedRef):
        return {"unresolved": endpoint.label}
    return {}


def layout_view(layout: Layout) -> dict:
    """JSON-ready snapshot: resolved pin positions and drawable wires."""
    components = []
    for comp in layout.components:
        entry = {
            "id": comp.id,
            "kind": comp.kind,
            "name": comp.name,
            "x": comp.x,
            "y": comp.y,
            "rotation": comp.rotation,
            "bounds": list(visual_bounds(comp)),
            "position": describe_position(layout, comp.id),
            "pins": [
                {
                    "id": pin.id,
                    "side": pin.side,
                    "index": pin.index,
                    "margin_from_last": pin.margin_from_last,
                    "position": list(pin_position(comp, pin) or ()),
                }
                for pin in comp.pins
            ],
        }
        if isinstance(comp, NetLabel):
            entry["anchor_side"] = comp.anchor_side
            entry["effective_anchor_side"] = effective_anchor_side(comp.anchor_side, comp.rotation)
        components.append(entry)

    return {
        "components": components,
        "junctions": [{"id": j.id, "x": j.x, "y": j.y} for j in layout.junctions],
        "connections": [
            {
                "id": c.id,
                "source": _endpoint_view(c.source),
                "target": _endpoint_view(c.target),
                "label": c.label,
                "path": [list(p) for p in c.path],
                "drawable_path": [list(p) for p in drawable_path(c)],
                "dangling": c.is_dangling,
            }
            for c in layout.connections
        ],
    }


def _view() -> dict:
    return layout_view(_session.layout)


def _require(ok, detail: str, status: int = 404):
    if not ok:
        raise HTTPException(status, detail)
    return ok


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/layout")
def get_layout():
    return _view()


@app.post("/api/reset")
def reset_session():
    """Discard the layout and start a fresh session."""
    _session.reset()
    return {"status": "ok"}


@app.post("/api/chips")
def create_chip(req: ChipRequest):
    _require(req.pins_per_side >= 1, "pins_per_side must be at least 1.", 400)
    chip = ops.add_chip(_session.layout, req.x, req.y, req.pins_per_side)
    return {"id": chip.id, "layout": _view()}


@app.post("/api/passives")
def create_passive(req: PointRequest):
    passive = ops.add_passive(_session.layout, req.x, req.y)
    return {"id": passive.id, "layout": _view()}


@app.post("/api/net-labels")
def create_net_label(req: NetLabelRequest):
    if req.name:
        label = ops.add_net_label(_session.layout, req.x, req.y, req.name)
    else:
        label = _session.place_net_label(req.x, req.y)
    return {"id": label.id, "layout": _view()}


@app.post("/api/junctions")
def create_junction(req: PointRequest):
    junction = ops.add_junction(_session.layout, req.x, req.y)
    return {"id": junction.id, "layout": _view()}


@app.post("/api/connections")
def create_connection(req: ConnectionRequest):
    conn = ops.connect(
        _session.layout,
        req.source.to_endpoint(),
        req.target.to_endpoint(),
        waypoints=req.waypoints,
        label=req.label,
    )
    _require(conn, "Connection refused: unknown or identical endpoints.", 400)
    return {"id": conn.id, "layout": _view()}


@app.post("/api/components/{entity_id}/move")
def move_entity(entity_id: str, req: PointRequest):
    """Move a component, or a junction when the id names one."""
    layout = _session.layout
    ok = ops.move(layout, entity_id, req.x, req.y) or \
        ops.move_junction(layout, entity_id, req.x, req.y)
    _require(ok, f"No component or junction '{entity_id}'.")
    return _view()


@app.post("/api/components/{component_id}/rotate")
def rotate_component(component_id: str):
    _require(ops.rotate(_session.layout, component_id),
             f"'{component_id}' is unknown or cannot rotate.", 400)
    return _view()


@app.post("/api/components/{component_id}/pins")
def add_chip_pin(component_id: str, req: PinRequest):
    pin = ops.add_pin(_session.layout, component_id, req.side)
    _require(pin, f"Cannot add a '{req.side}' pin to '{component_id}'.", 400)
    return {"id": pin.id, "layout": _view()}


@app.post("/api/components/{component_id}/margins")
def set_margins(component_id: str, req: MarginsRequest):
    _require(ops.set_pin_margins(_session.layout, component_id, req.margins),
             "Margins rejected.", 400)
    return _view()


@app.post("/api/components/{component_id}/rename")
def rename_component(component_id: str, req: RenameRequest):
    if _session.editing_name_id == component_id:
        ok = _session.commit_name(req.name)
    else:
        ok = ops.rename(_session.layout, component_id, req.name.strip())
    _require(ok, f"No component '{component_id}'.")
    return _view()


@app.post("/api/components/{component_id}/anchor")
def set_anchor(component_id: str, req: AnchorRequest):
    _require(ops.set_anchor_side(_session.layout, component_id, req.anchor_side),
             "Anchor side rejected.", 400)
    return _view()


@app.post("/api/connections/{connection_id}/label")
def label_connection(connection_id: str, req: LabelRequest):
    _require(ops.set_connection_label(_session.layout, connection_id, req.label),
             f"No connection '{connection_id}'.")
    return _view()


@app.post("/api/connections/{connection_id}/junction")
def split_connection(connection_id: str, req: SplitRequest):
    junction = insert_junction(
        _session.layout, connection_id, req.segment_index, req.x, req.y,
    )
    _require(junction, f"Cannot split '{connection_id}' at segment {req.segment_index}.", 400)
    return {"id": junction.id, "layout": _view()}


@app.delete("/api/entities/{entity_id}")
def delete_entity(entity_id: str):
    _require(ops.delete(_session.layout, entity_id), f"No entity '{entity_id}'.")
    if _session.editing_name_id == entity_id:
        _session.editing_name_id = None
    return _view()


@app.get("/api/export")
def export_layout(format: str = "canonical"):
    _require(format in ("canonical", "legacy"), f"Unknown format '{format}'.", 400)
    filename, text = _session.export(format)
    return Response(
        content=text,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@app.post("/api/import")
async def import_layout(request: Request):
    """Replace the layout with an uploaded document (either version)."""
    body = await request.body()
    try:
        result = _session.load_document(body)
    except DocumentError as e:
        log.warning("Import rejected: %s", e)
        raise HTTPException(422, {"reason": e.reason, "path": e.path})
    return {
        "format": result.format,
        "exact": result.exact,
        "approximated": result.approximated,
        "dangling": result.dangling,
        "warnings": result.warnings,
        "layout": _view(),
    }


def main(host: str | None = None, port: int | None = None):
    import uvicorn
    host = host or os.environ.get("SCHEMLAYOUT_HOST", DEFAULT_HOST)
    port = port or int(os.environ.get("SCHEMLAYOUT_PORT", DEFAULT_PORT))
    uvicorn.run("schemlayout.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
