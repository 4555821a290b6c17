from __future__ import annotations

import math
from functools import lru_cache
from typing import Iterable

from pyproj import Geod, Transformer
from shapely.geometry import LineString, Point

# Spherical earth (R = 6371 km): great-circle distances, matching the analysis radius math.
EARTH_RADIUS_M = 6_371_000.0
METERS_PER_MILE = 1609.34


@lru_cache(maxsize=1)
def sphere_geod() -> Geod:
    return Geod(a=EARTH_RADIUS_M, b=EARTH_RADIUS_M)


def distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance in meters between two lat/lon points.
    """
    if lat1 == lat2 and lon1 == lon2:
        return 0.0
    _az12, _az21, dist = sphere_geod().inv(lon1, lat1, lon2, lat2)
    return float(dist)


def offset_point(
    lat: float, lon: float, *, azimuth_deg: float, meters: float
) -> tuple[float, float]:
    """
    Point `meters` away from (lat, lon) along `azimuth_deg` (0 = north). Returns (lat, lon).
    """
    lon2, lat2, _back = sphere_geod().fwd(lon, lat, azimuth_deg, meters)
    return float(lat2), float(lon2)


@lru_cache(maxsize=32)
def local_transformer(lat0: float, lon0: float) -> Transformer:
    """
    lon/lat -> meters in an azimuthal equidistant projection centred on (lat0, lon0).

    Distances measured from the centre are exact on the sphere; nearby distances are
    accurate to well under a meter at analysis scale.
    """
    proj = (
        f"+proj=aeqd +lat_0={lat0:.6f} +lon_0={lon0:.6f} "
        f"+a={EARTH_RADIUS_M} +b={EARTH_RADIUS_M} +units=m +no_defs"
    )
    return Transformer.from_crs("EPSG:4326", proj, always_xy=True)


def distance_to_polyline_m(
    lat: float, lon: float, coords: Iterable[tuple[float, float]]
) -> float:
    """
    Distance in meters from a point to the nearest point of a (lon, lat) polyline.
    """
    pts = list(coords)
    if not pts:
        return float("inf")
    t = local_transformer(round(lat, 6), round(lon, 6))
    projected = [t.transform(plon, plat) for plon, plat in pts]
    origin = Point(*t.transform(lon, lat))
    if len(projected) == 1:
        return float(origin.distance(Point(projected[0])))
    return float(LineString(projected).distance(origin))


def distance_to_segment(
    px: float,
    py: float,
    start: tuple[float, float],
    end: tuple[float, float],
) -> float:
    # Planar (surface pixel) distance; a zero-length segment degrades to point distance.
    if start == end:
        return math.hypot(px - start[0], py - start[1])
    return float(LineString([start, end]).distance(Point(px, py)))


def nearest_segment_index(
    px: float, py: float, path: list[tuple[float, float]]
) -> tuple[int, float]:
    """
    Index `i` of the segment path[i] -> path[i + 1] closest to (px, py), and its distance.
    """
    best_i = -1
    best_d = float("inf")
    for i in range(len(path) - 1):
        d = distance_to_segment(px, py, path[i], path[i + 1])
        if d < best_d:
            best_d = d
            best_i = i
    return best_i, best_d


def signed_offset(
    px: float,
    py: float,
    start: tuple[float, float],
    end: tuple[float, float],
) -> float:
    """
    Signed perpendicular offset (pixels) of (px, py) from the infinite line start -> end.

    The sign comes from the 2D cross product, so it tells which side of the line the
    point is on; the magnitude is the perpendicular distance.
    """
    x1, y1 = start
    x2, y2 = end
    length = math.hypot(x2 - x1, y2 - y1)
    if length == 0:
        return 0.0
    cross = (px - x1) * (y2 - y1) - (py - y1) * (x2 - x1)
    return cross / length


def centroid(points: Iterable[tuple[float, float]]) -> tuple[float, float]:
    pts = list(points)
    if not pts:
        raise ValueError("centroid of an empty point set")
    sx = sum(p[0] for p in pts)
    sy = sum(p[1] for p in pts)
    return sx / len(pts), sy / len(pts)
