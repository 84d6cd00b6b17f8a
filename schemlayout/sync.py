"""Connection path synchronizer — keep wire endpoints on their pins.

Runs after every mutation that can move a pin or a junction.  For each
connection both endpoints are re-resolved and written into the first
and last path points; interior waypoints are never touched.

A connection whose pin or junction no longer exists is stale and is
removed.  A connection bound to an ``UnresolvedRef`` placeholder (left
behind by a lossy import) keeps its literal path and is reported as
dangling instead.
"""

from __future__ import annotations

import logging

from schemlayout.model.models import Connection, Layout
from schemlayout.resolver import endpoint_position

log = logging.getLogger(__name__)


def sync_connection(layout: Layout, conn: Connection) -> bool:
    """Re-anchor one connection's path. Returns False if it is stale."""
    if conn.is_dangling:
        return True

    start = endpoint_position(layout, conn.source)
    end = endpoint_position(layout, conn.target)
    if start is None or end is None:
        return False

    if len(conn.path) <= 1:
        conn.path = [start, end]
    else:
        conn.path[0] = start
        conn.path[-1] = end
    return True


def sync_connection_paths(layout: Layout) -> list[str]:
    """Re-anchor every connection and drop stale ones.

    Returns the ids of the removed connections.  Idempotent: a second
    pass with no intervening mutation changes nothing.
    """
    kept: list[Connection] = []
    removed: list[str] = []
    for conn in layout.connections:
        if sync_connection(layout, conn):
            kept.append(conn)
        else:
            removed.append(conn.id)

    if removed:
        log.warning("Removed %d stale connection(s): %s", len(removed), ", ".join(removed))
        layout.connections = kept
    return removed
