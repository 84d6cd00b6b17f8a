"""Wire drafting, hit-testing and junction insertion.

A wire is drawn as a gesture: ``start_wire`` on an endpoint, any number
of ``WireDraft.add_waypoint`` clicks, then ``finish_wire`` on a second
endpoint.  ``insert_junction`` splits an existing wire in two at the
point nearest to a click, sharing a new junction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from schemlayout.config import LAYOUT_RULES
from schemlayout.geometry import (
    dist_to_segment_squared, nearest_point_on_segment, orthogonal_legs, snap_to_grid,
)
from schemlayout.model.models import Connection, Endpoint, Junction, JunctionRef, Layout
from schemlayout.operations import add_junction, connect, new_id
from schemlayout.resolver import endpoint_position
from schemlayout.sync import sync_connection_paths

log = logging.getLogger(__name__)

Point = tuple[float, float]


@dataclass
class WireDraft:
    """A connection being drawn: its start endpoint and waypoints so far."""

    source: Endpoint
    waypoints: list[Point] = field(default_factory=list)

    def add_waypoint(self, x: float, y: float) -> bool:
        """Snap and append a waypoint at least one grid unit from the last.

        Returns False when the click was too close and nothing was added.
        """
        snapped = (snap_to_grid(x), snap_to_grid(y))
        if self.waypoints:
            last = self.waypoints[-1]
            g = LAYOUT_RULES.grid_size
            # Half a unit of slack absorbs float noise in snapped values.
            if abs(snapped[0] - last[0]) < g / 2 and abs(snapped[1] - last[1]) < g / 2:
                return False
        self.waypoints.append(snapped)
        return True


def start_wire(layout: Layout, source: Endpoint) -> WireDraft | None:
    start = endpoint_position(layout, source)
    if start is None:
        return None
    return WireDraft(source=source, waypoints=[start])


def finish_wire(layout: Layout, draft: WireDraft, target: Endpoint) -> Connection | None:
    """Complete a drafted wire on *target*.

    Refuses to connect an endpoint to itself or to something that does
    not resolve; the draft is left intact in that case.
    """
    return connect(layout, draft.source, target, waypoints=draft.waypoints[1:])


# ── Hit testing ────────────────────────────────────────────────────


def hit_test_connection(
    layout: Layout, x: float, y: float, threshold: float | None = None,
) -> tuple[str, int, float] | None:
    """Find the drawn wire nearest to ``(x, y)`` within *threshold*.

    Distances are measured against the orthogonal rendering.  Returns
    ``(connection_id, segment_index, distance)`` where ``segment_index``
    indexes the stored path, or None if nothing is close enough.
    """
    if threshold is None:
        threshold = LAYOUT_RULES.connection_hit_threshold
    best: tuple[str, int, float] | None = None
    best_d2 = threshold * threshold
    for conn in layout.connections:
        for seg_index, a, b in orthogonal_legs(conn.path):
            d2 = dist_to_segment_squared((x, y), a, b)
            if d2 <= best_d2:
                best_d2 = d2
                best = (conn.id, seg_index, d2 ** 0.5)
    return best


# ── Junction insertion ─────────────────────────────────────────────


def insert_junction(
    layout: Layout, connection_id: str, segment_index: int, x: float, y: float,
) -> Junction | None:
    """Split a connection at the point of stored segment *segment_index*
    nearest to ``(x, y)``.

    The junction lands on the drawn wire (snapped to grid).  The split
    connection is replaced by ``source → junction`` and
    ``junction → target``; all other waypoints are kept.  When the
    segment bends, its elbow becomes a waypoint of whichever half the
    junction does not sit on, so the drawing does not change.
    """
    conn = layout.connection(connection_id)
    if conn is None or not 0 <= segment_index < len(conn.path) - 1:
        return None

    legs = [(a, b) for i, a, b in orthogonal_legs(conn.path) if i == segment_index]
    if not legs:
        # Zero-length segment: the junction goes on its single point.
        p = conn.path[segment_index]
        legs = [(p, p)]

    best_leg = 0
    best_point = legs[0][0]
    best_d2 = float("inf")
    for k, (a, b) in enumerate(legs):
        candidate = nearest_point_on_segment((x, y), a, b)
        d2 = dist_to_segment_squared((x, y), a, b)
        if d2 < best_d2:
            best_d2 = d2
            best_leg = k
            best_point = candidate

    junction = add_junction(layout, best_point[0], best_point[1])
    jpos = (junction.x, junction.y)

    first_waypoints = list(conn.path[1:segment_index + 1])
    second_waypoints = list(conn.path[segment_index + 1:-1])
    if len(legs) == 2:
        elbow = legs[0][1]
        if elbow != jpos:
            if best_leg == 1:
                first_waypoints.append(elbow)
            else:
                second_waypoints.insert(0, elbow)

    ref = JunctionRef(junction.id)
    first = Connection(
        id=new_id("conn"),
        source=conn.source,
        target=ref,
        path=[conn.path[0], *first_waypoints, jpos],
        label=conn.label,
    )
    second = Connection(
        id=new_id("conn"),
        source=ref,
        target=conn.target,
        path=[jpos, *second_waypoints, conn.path[-1]],
    )

    position = layout.connections.index(conn)
    layout.connections[position:position + 1] = [first, second]
    sync_connection_paths(layout)
    log.debug("Split %s at junction %s", connection_id, junction.id)
    return junction


__all__ = [
    "WireDraft", "start_wire", "finish_wire",
    "hit_test_connection", "insert_junction",
]
