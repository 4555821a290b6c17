from __future__ import annotations

import math
from dataclasses import dataclass

from clustering.types import Cluster


@dataclass(frozen=True)
class SiteObstacle:
    x: float
    y: float
    radius: float


def _push_away(
    x: float, y: float, ox: float, oy: float, distance: float
) -> tuple[float, float]:
    # Coincident points have no direction; push along +x.
    angle = math.atan2(y - oy, x - ox) if (x, y) != (ox, oy) else 0.0
    return ox + math.cos(angle) * distance, oy + math.sin(angle) * distance


def push_from_roads(
    x: float,
    y: float,
    road_anchors: list[tuple[float, float]],
    *,
    min_distance: float = 100.0,
    margin: float = 20.0,
) -> tuple[float, float]:
    """
    Single-step placement used when a cluster is created: move off the first road
    label it overlaps.
    """
    for ax, ay in road_anchors:
        if math.hypot(x - ax, y - ay) < min_distance:
            return _push_away(x, y, ax, ay, min_distance + margin)
    return x, y


def resolve_overlaps(
    clusters: list[Cluster],
    *,
    road_anchors: list[tuple[float, float]],
    site: SiteObstacle | None,
    width: float,
    height: float,
    min_distance: float = 100.0,
    margin: float = 20.0,
    max_attempts: int = 50,
) -> None:
    """
    Nudge cluster targets (in place) away from road labels, the site marker and each
    other, then clamp them into the surface.

    Clusters are processed in list order and each sees the already-moved targets of
    earlier ones, so the result is deterministic for a given order.
    """
    for index, cluster in enumerate(clusters):
        adjusted = True
        attempts = 0
        while adjusted and attempts < max_attempts:
            adjusted = False
            attempts += 1

            for ax, ay in road_anchors:
                if math.hypot(cluster.target_x - ax, cluster.target_y - ay) < min_distance:
                    cluster.target_x, cluster.target_y = _push_away(
                        cluster.target_x, cluster.target_y, ax, ay, min_distance + margin
                    )
                    adjusted = True
                    break

            if not adjusted and site is not None:
                sep = max(min_distance, site.radius + cluster.size / 2.0)
                if math.hypot(cluster.target_x - site.x, cluster.target_y - site.y) < sep:
                    cluster.target_x, cluster.target_y = _push_away(
                        cluster.target_x, cluster.target_y, site.x, site.y, sep + margin
                    )
                    adjusted = True

            if not adjusted:
                for j, other in enumerate(clusters):
                    if j == index:
                        continue
                    if (
                        math.hypot(
                            cluster.target_x - other.target_x,
                            cluster.target_y - other.target_y,
                        )
                        < min_distance
                    ):
                        cluster.target_x, cluster.target_y = _push_away(
                            cluster.target_x,
                            cluster.target_y,
                            other.target_x,
                            other.target_y,
                            min_distance + margin,
                        )
                        adjusted = True
                        break

            r = cluster.size / 2.0
            cluster.target_x = max(r, min(width - r, cluster.target_x))
            cluster.target_y = max(r, min(height - r, cluster.target_y))


def collides(
    x: float,
    y: float,
    radius: float,
    *,
    road_anchors: list[tuple[float, float]],
    site: SiteObstacle | None,
) -> bool:
    for ax, ay in road_anchors:
        if math.hypot(x - ax, y - ay) < radius + 60:
            return True
    if site is not None and math.hypot(x - site.x, y - site.y) < radius + site.radius + 40:
        return True
    return False


def find_safe_position(
    x: float,
    y: float,
    radius: float,
    *,
    road_anchors: list[tuple[float, float]],
    site: SiteObstacle | None,
    width: float,
    height: float,
    angles: int = 12,
    distances: tuple[float, ...] = (100.0, 120.0, 140.0, 160.0),
) -> tuple[float, float, bool]:
    """
    Ring search for a nearby spot free of road labels and the site marker.

    Returns (x, y, adjusted); when nothing fits the original position comes back unchanged.
    """
    step = (2 * math.pi) / angles
    for distance in distances:
        for i in range(angles):
            nx = x + math.cos(i * step) * distance
            ny = y + math.sin(i * step) * distance
            if nx < radius or nx > width - radius or ny < radius or ny > height - radius:
                continue
            if not collides(nx, ny, radius, road_anchors=road_anchors, site=site):
                return nx, ny, True
    return x, y, False
