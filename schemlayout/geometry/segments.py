"""Point and point-to-segment distances."""

from __future__ import annotations

from shapely.geometry import LineString, Point as ShapelyPoint

Point = tuple[float, float]


def dist_sq(p1: Point, p2: Point) -> float:
    """Squared Euclidean distance between two points."""
    return (p1[0] - p2[0]) ** 2 + (p1[1] - p2[1]) ** 2


def dist_to_segment_squared(p: Point, v: Point, w: Point) -> float:
    """Squared distance from *p* to the segment *v*–*w*.

    The projection parameter is clamped to [0, 1]; a degenerate segment
    (v == w) reduces to the point distance.
    """
    l2 = dist_sq(v, w)
    if l2 == 0:
        return dist_sq(p, v)
    t = ((p[0] - v[0]) * (w[0] - v[0]) + (p[1] - v[1]) * (w[1] - v[1])) / l2
    t = max(0.0, min(1.0, t))
    projection = (v[0] + t * (w[0] - v[0]), v[1] + t * (w[1] - v[1]))
    return dist_sq(p, projection)


def nearest_point_on_segment(p: Point, v: Point, w: Point) -> Point:
    """Closest point to *p* lying on the segment *v*–*w*."""
    if v == w:
        return v
    seg = LineString([v, w])
    nearest = seg.interpolate(seg.project(ShapelyPoint(p)))
    return (nearest.x, nearest.y)
