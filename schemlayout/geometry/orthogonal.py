"""Orthogonal routing — turn a sparse waypoint polyline into a drawable one.

Every diagonal segment gets exactly one elbow point.  The first diagonal
segment picks its elbow from its own aspect (wide → horizontal leg first,
tall → vertical leg first); every later one turns orthogonally to the
orientation the previous elbow started with, which gives the alternating
elbows of a hand-drawn schematic. An elbow records the orientation of
its first leg; a straight segment records its own axis.
"""

from __future__ import annotations

from enum import Enum

Point = tuple[float, float]


class Direction(Enum):
    NONE = 0
    HORIZONTAL = 1
    VERTICAL = 2


def orthogonal_legs(waypoints: list[Point]) -> list[tuple[int, Point, Point]]:
    """Route *waypoints* and return the drawn legs.

    Each leg is ``(segment_index, start, end)`` where ``segment_index``
    names the waypoint segment (``waypoints[i]`` → ``waypoints[i + 1]``)
    the leg was generated from.  Zero-length segments produce no leg.
    """
    legs: list[tuple[int, Point, Point]] = []
    last_direction = Direction.NONE

    for i in range(len(waypoints) - 1):
        p1 = tuple(waypoints[i])
        p2 = tuple(waypoints[i + 1])

        if p1[0] != p2[0] and p1[1] != p2[1]:
            if last_direction == Direction.NONE:
                dx = abs(p2[0] - p1[0])
                dy = abs(p2[1] - p1[1])
                horizontal_first = dx >= dy
            else:
                horizontal_first = last_direction == Direction.VERTICAL

            if horizontal_first:
                elbow = (p2[0], p1[1])
                last_direction = Direction.HORIZONTAL
            else:
                elbow = (p1[0], p2[1])
                last_direction = Direction.VERTICAL
            legs.append((i, p1, elbow))
            legs.append((i, elbow, p2))
        elif p1[0] != p2[0]:
            legs.append((i, p1, p2))
            last_direction = Direction.HORIZONTAL
        elif p1[1] != p2[1]:
            legs.append((i, p1, p2))
            last_direction = Direction.VERTICAL

    return legs


def generate_drawable_orthogonal_path(waypoints: list[Point]) -> list[Point]:
    """Return *waypoints* with an elbow inserted into every diagonal segment.

    Input with fewer than two points is returned unchanged.
    """
    if len(waypoints) < 2:
        return list(waypoints)

    drawable: list[Point] = [tuple(waypoints[0])]
    for _, _, end in orthogonal_legs(waypoints):
        drawable.append(end)
    return drawable


def is_orthogonal(points: list[Point]) -> bool:
    """True if every consecutive pair differs along exactly one axis."""
    for a, b in zip(points, points[1:]):
        if (a[0] != b[0]) == (a[1] != b[1]):
            return False
    return True
