from __future__ import annotations

import math
from dataclasses import dataclass

from geo.ops import distance_to_segment, nearest_segment_index
from layers.types import EntityKey

Point = tuple[float, float]


@dataclass(frozen=True)
class HitTarget:
    """
    Something drawn on the surface that the pointer can grab.

    (x, y) is where it is rendered right now (override if dragged, else computed).
    """

    entity: EntityKey
    x: float
    y: float
    size: float = 0.0


@dataclass(frozen=True)
class ConnectorLine:
    """
    Connector of a dragged entity: original position, bend points, override position.
    """

    entity: EntityKey
    start: Point
    end: Point
    bends: tuple[Point, ...] = ()

    @property
    def path(self) -> list[Point]:
        return [self.start, *self.bends, self.end]


_PRIORITY = {"site": 0, "cluster": 1, "poi": 2, "road": 3}


def pick_target(
    targets: list[HitTarget], x: float, y: float, *, radius: float
) -> HitTarget | None:
    """
    Element under the pointer: the nearest one within reach of the highest-priority kind
    (site marker, then clusters, then POIs, then road labels).
    """
    best: tuple[int, float, int] | None = None
    found: HitTarget | None = None
    for order, t in enumerate(targets):
        d = math.hypot(t.x - x, t.y - y)
        if d > max(radius, t.size / 2.0):
            continue
        rank = (_PRIORITY[t.entity.kind], d, order)
        if best is None or rank < best:
            best, found = rank, t
    return found


def distance_to_path(path: list[Point], x: float, y: float) -> float:
    if len(path) < 2:
        return math.inf
    return min(
        distance_to_segment(x, y, path[i], path[i + 1]) for i in range(len(path) - 1)
    )


def pick_line(
    lines: list[ConnectorLine], x: float, y: float, *, tolerance: float
) -> ConnectorLine | None:
    best: ConnectorLine | None = None
    best_d = math.inf
    for line in lines:
        d = distance_to_path(line.path, x, y)
        if d <= tolerance and d < best_d:
            best, best_d = line, d
    return best


def pick_bend_point(
    bends: list[Point] | tuple[Point, ...], x: float, y: float, *, radius: float
) -> int | None:
    best: int | None = None
    best_d = math.inf
    for i, (bx, by) in enumerate(bends):
        d = math.hypot(bx - x, by - y)
        if d <= radius and d < best_d:
            best, best_d = i, d
    return best


def insertion_index(path: list[Point], x: float, y: float) -> int:
    """
    Index in the bend list at which a point clicked near `path` belongs.

    Segment i of the full path runs between bend i-1 and bend i, so inserting at i keeps
    the polyline order.
    """
    segment, _ = nearest_segment_index(x, y, path)
    return segment
