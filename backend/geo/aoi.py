from __future__ import annotations

import math
from dataclasses import dataclass

KM_PER_MILE = 1.60934
KM_PER_DEGREE_LAT = 111.32


@dataclass(frozen=True)
class BBox:
    """
    WGS84 bounding box in lon/lat degrees.

    Convention used throughout this repo:
    - minLon, minLat, maxLon, maxLat
    - "rectangle" dicts (north/south/east/west) are the persisted form
    """

    min_lon: float
    min_lat: float
    max_lon: float
    max_lat: float

    @classmethod
    def around(
        cls, lat: float, lon: float, radius_miles: float, *, padding: float = 1.10
    ) -> "BBox":
        """
        Analysis rectangle centred on the site, sized to the search radius plus padding.
        """
        radius_km = radius_miles * KM_PER_MILE
        lat_diff = radius_km / KM_PER_DEGREE_LAT
        lon_diff = radius_km / (KM_PER_DEGREE_LAT * math.cos(math.radians(lat)))
        return cls(
            min_lon=lon - lon_diff * padding,
            min_lat=lat - lat_diff * padding,
            max_lon=lon + lon_diff * padding,
            max_lat=lat + lat_diff * padding,
        )

    @classmethod
    def from_rectangle(cls, rect: dict[str, float]) -> "BBox":
        return cls(
            min_lon=float(rect["west"]),
            min_lat=float(rect["south"]),
            max_lon=float(rect["east"]),
            max_lat=float(rect["north"]),
        ).normalized()

    def to_rectangle(self) -> dict[str, float]:
        b = self.normalized()
        return {
            "north": b.max_lat,
            "south": b.min_lat,
            "east": b.max_lon,
            "west": b.min_lon,
        }

    def normalized(self) -> "BBox":
        min_lon = min(self.min_lon, self.max_lon)
        max_lon = max(self.min_lon, self.max_lon)
        min_lat = min(self.min_lat, self.max_lat)
        max_lat = max(self.min_lat, self.max_lat)
        return BBox(min_lon=min_lon, min_lat=min_lat, max_lon=max_lon, max_lat=max_lat)

    def center(self) -> tuple[float, float]:
        b = self.normalized()
        return (b.min_lat + b.max_lat) / 2.0, (b.min_lon + b.max_lon) / 2.0
