from __future__ import annotations

from loguru import logger

from clustering.overlap import SiteObstacle, push_from_roads, resolve_overlaps
from clustering.precluster import precluster_same_location
from clustering.radius import cluster_by_radius
from clustering.types import Candidate, Cluster, ProjectedRoad
from settings.types import ClusteringSettings, OverlapSettings


def compute_clusters(
    candidates: list[Candidate],
    roads: list[ProjectedRoad],
    *,
    width: float,
    height: float,
    site: SiteObstacle | None = None,
    clustering: ClusteringSettings | None = None,
    overlap: OverlapSettings | None = None,
) -> list[Cluster]:
    """
    Full clustering run: same-location precluster, 100 m phase, 300 m fallback,
    then overlap resolution of every cluster target.

    `candidates` must already be filtered to clusterable POIs and be in fetch order.
    """
    cs = clustering or ClusteringSettings()
    ov = overlap or OverlapSettings()
    anchors = [r.anchor for r in roads]

    logger.info(f"Clustering {len(candidates)} POIs")
    clusters, clustered = precluster_same_location(
        candidates,
        decimals=cs.sameLocationDecimals,
        cluster_size=cs.defaultClusterSize,
    )

    def place(x: float, y: float) -> tuple[float, float]:
        return push_from_roads(
            x, y, anchors, min_distance=ov.minDistancePx, margin=ov.pushMarginPx
        )

    for radius_m, phase in (
        (cs.primaryRadiusMeters, "100m"),
        (cs.secondaryRadiusMeters, "300m"),
    ):
        cluster_by_radius(
            candidates,
            clustered,
            clusters,
            radius_m=radius_m,
            phase=phase,  # type: ignore[arg-type]
            roads=roads,
            cluster_size=cs.defaultClusterSize,
            place=place,
            relevance_m=cs.roadRelevanceMeters,
            segment_max_px=cs.roadSegmentMaxPx,
            tolerance_px=cs.roadSideTolerancePx,
        )

    resolve_overlaps(
        clusters,
        road_anchors=anchors,
        site=site,
        width=width,
        height=height,
        min_distance=ov.minDistancePx,
        margin=ov.pushMarginPx,
        max_attempts=ov.maxAttempts,
    )

    logger.info(
        f"Clustering complete: {len(clusters)} clusters, {len(clustered)} POIs clustered, "
        f"{len(candidates) - len(clustered)} individual"
    )
    return clusters
