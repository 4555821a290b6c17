from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from layers.types import Poi


@dataclass(frozen=True)
class SiteLocation:
    lat: float
    lon: float
    address: str | None = None


class Geocoder(Protocol):
    def geocode(self, address: str) -> SiteLocation | None: ...


class PoiSource(Protocol):
    def fetch(
        self, category: str, center: tuple[float, float], radius_m: float
    ) -> list[dict[str, Any]]:
        """Raw Overpass-style elements for one category ([] when nothing or on failure)."""
        ...


class RoadSource(Protocol):
    def fetch_roads(
        self, center: tuple[float, float], radius_m: float
    ) -> list[dict[str, Any]]: ...


class LogoResolver(Protocol):
    def resolve(self, poi: Poi) -> str | None: ...


class PlaceSearch(Protocol):
    def search(
        self, query: str, center: tuple[float, float], *, limit: int = 50
    ) -> list[dict[str, Any]]:
        """Nominatim-style matches: lat, lon, display_name, osm_type, osm_id."""
        ...


class PlaceDetails(Protocol):
    def fetch_tags(self, osm_type: str, osm_id: int | str) -> dict[str, Any]: ...


@dataclass(frozen=True)
class SourceBundle:
    geocoder: Geocoder
    poi_source: PoiSource
    road_source: RoadSource
    resolver: LogoResolver
    place_search: PlaceSearch | None = None
    place_details: PlaceDetails | None = None
