from __future__ import annotations

from loguru import logger

from clustering.types import Candidate, ProjectedRoad
from geo.ops import (
    centroid,
    distance_to_polyline_m,
    nearest_segment_index,
    signed_offset,
)


class _DisjointSet:
    def __init__(self, n: int):
        self.parent = list(range(n))

    def find(self, i: int) -> int:
        while self.parent[i] != i:
            self.parent[i] = self.parent[self.parent[i]]
            i = self.parent[i]
        return i

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra == rb:
            return
        # Lower root wins so group order follows candidate order.
        if ra < rb:
            self.parent[rb] = ra
        else:
            self.parent[ra] = rb


def nearest_relevant_road(
    members: list[Candidate],
    roads: list[ProjectedRoad],
    *,
    max_distance_m: float = 500.0,
) -> ProjectedRoad | None:
    """
    Road whose polyline passes closest to the members' geographic centroid,
    or None when no road is within `max_distance_m`.
    """
    if not members or not roads:
        return None
    clat, clon = centroid((m.poi.lat, m.poi.lon) for m in members)

    best: ProjectedRoad | None = None
    best_d = float("inf")
    for r in roads:
        if len(r.path) < 2:
            continue
        d = distance_to_polyline_m(clat, clon, r.road.coords)
        if d < best_d:
            best_d = d
            best = r

    if best is None or best_d > max_distance_m:
        return None
    return best


def same_side_of_road(
    a: Candidate,
    b: Candidate,
    road: ProjectedRoad,
    *,
    segment_max_px: float = 300.0,
    tolerance_px: float = 30.0,
) -> bool:
    if len(road.path) < 2:
        return True
    mid_x = (a.x + b.x) / 2.0
    mid_y = (a.y + b.y) / 2.0
    i, d = nearest_segment_index(mid_x, mid_y, road.path)
    if i < 0 or d >= segment_max_px:
        # The road is not near this pair on screen.
        return True

    start, end = road.path[i], road.path[i + 1]
    side_a = signed_offset(a.x, a.y, start, end)
    side_b = signed_offset(b.x, b.y, start, end)
    if abs(side_a) < tolerance_px or abs(side_b) < tolerance_px:
        return True
    return (side_a > 0) == (side_b > 0)


def group_by_road_side(
    members: list[Candidate],
    roads: list[ProjectedRoad],
    *,
    relevance_m: float = 500.0,
    segment_max_px: float = 300.0,
    tolerance_px: float = 30.0,
) -> list[list[Candidate]]:
    """
    Split a candidate set by side of the nearest relevant road.

    Grouping is the transitive closure (union-find) of the pairwise same-side relation,
    so a POI sitting on the line can bridge both sides.
    """
    road = nearest_relevant_road(members, roads, max_distance_m=relevance_m)
    if road is None:
        return [list(members)]

    ds = _DisjointSet(len(members))
    for i in range(len(members)):
        for j in range(i + 1, len(members)):
            if same_side_of_road(
                members[i],
                members[j],
                road,
                segment_max_px=segment_max_px,
                tolerance_px=tolerance_px,
            ):
                ds.union(i, j)

    groups: dict[int, list[Candidate]] = {}
    for i, m in enumerate(members):
        groups.setdefault(ds.find(i), []).append(m)
    out = list(groups.values())
    if len(out) > 1:
        logger.debug(f"Split {len(members)} POIs into {len(out)} groups by road {road.road.name}")
    return out
