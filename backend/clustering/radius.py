from __future__ import annotations

from typing import Callable

from loguru import logger

from clustering.road_side import group_by_road_side
from clustering.types import Candidate, Cluster, ClusterPhase, ProjectedRoad
from geo.ops import centroid, distance_m

Placement = Callable[[float, float], tuple[float, float]]


def neighbours_within(
    candidates: list[Candidate],
    i: int,
    clustered: set[int],
    *,
    radius_m: float,
) -> list[int]:
    """
    `i` followed by every other unclustered candidate within `radius_m` (inclusive),
    in fetch order.
    """
    origin = candidates[i].poi
    out = [i]
    for j, other in enumerate(candidates):
        if j == i or j in clustered:
            continue
        if distance_m(origin.lat, origin.lon, other.poi.lat, other.poi.lon) <= radius_m:
            out.append(j)
    return out


def cluster_by_radius(
    candidates: list[Candidate],
    clustered: set[int],
    clusters: list[Cluster],
    *,
    radius_m: float,
    phase: ClusterPhase,
    roads: list[ProjectedRoad],
    cluster_size: float,
    place: Placement,
    relevance_m: float = 500.0,
    segment_max_px: float = 300.0,
    tolerance_px: float = 30.0,
) -> int:
    """
    One radius phase. Appends new clusters to `clusters`, marks members in `clustered`,
    and returns how many clusters were created.

    First-found cluster wins: once a POI joins a cluster it is never reconsidered.
    """
    index_of = {id(c): k for k, c in enumerate(candidates)}
    created = 0
    for i in range(len(candidates)):
        if i in clustered:
            continue
        nearby = neighbours_within(candidates, i, clustered, radius_m=radius_m)
        if len(nearby) < 2:
            continue

        groups = group_by_road_side(
            [candidates[k] for k in nearby],
            roads,
            relevance_m=relevance_m,
            segment_max_px=segment_max_px,
            tolerance_px=tolerance_px,
        )
        for group in groups:
            if len(group) < 2:
                continue
            mx, my = centroid((m.x, m.y) for m in group)
            tx, ty = place(mx, my)
            cluster = Cluster(
                id=f"cluster_{len(clusters)}",
                members=[m.ref for m in group],
                mean_x=mx,
                mean_y=my,
                target_x=tx,
                target_y=ty,
                size=cluster_size,
                phase=phase,
                names=[m.poi.name for m in group],
            )
            clusters.append(cluster)
            clustered.update(index_of[id(m)] for m in group)
            created += 1
            logger.debug(
                f"[{phase}] cluster {cluster.id} with {len(group)} POIs: "
                f"{', '.join(cluster.names)}"
            )

    logger.info(f"{phase} phase: {created} clusters, {len(clustered)} POIs clustered so far")
    return created
