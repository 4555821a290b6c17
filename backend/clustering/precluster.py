from __future__ import annotations

from loguru import logger

from clustering.types import Candidate, Cluster
from geo.ops import centroid


def location_key(lat: float, lon: float, *, decimals: int = 5) -> str:
    # 5 decimals ~ 1 m: POIs in the same building share a key.
    return f"{lat:.{decimals}f},{lon:.{decimals}f}"


def precluster_same_location(
    candidates: list[Candidate],
    *,
    decimals: int = 5,
    cluster_size: float = 80.0,
) -> tuple[list[Cluster], set[int]]:
    """
    Group candidates that share a rounded coordinate cell.

    Returns the new clusters (in order of first appearance) and the candidate indices
    they consumed; those indices must be skipped by the radius phases.
    """
    groups: dict[str, list[int]] = {}
    for i, c in enumerate(candidates):
        groups.setdefault(location_key(c.poi.lat, c.poi.lon, decimals=decimals), []).append(i)

    clusters: list[Cluster] = []
    clustered: set[int] = set()
    for key, indices in groups.items():
        if len(indices) < 2:
            continue
        members = [candidates[i] for i in indices]
        mx, my = centroid((m.x, m.y) for m in members)
        clusters.append(
            Cluster(
                id=f"same_location_{len(clusters)}",
                members=[m.ref for m in members],
                mean_x=mx,
                mean_y=my,
                target_x=mx,
                target_y=my,
                size=cluster_size,
                phase="same-location",
                names=[m.poi.name for m in members],
            )
        )
        clustered.update(indices)
        logger.debug(f"Same-location cluster at {key}: {', '.join(m.poi.name for m in members)}")

    logger.info(
        f"Same-location phase: {len(clustered)} POIs in {len(clusters)} clusters"
    )
    return clusters, clustered
