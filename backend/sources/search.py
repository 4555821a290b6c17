from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Iterable, Literal

from loguru import logger

from geo.ops import METERS_PER_MILE, distance_m
from layers.loaders import format_address
from layers.types import Poi
from sources.types import LogoResolver, PlaceDetails, PlaceSearch, SiteLocation

# Searched places never belong to a fetched category.
SEARCH_CATEGORY = "other"
PLACEHOLDER_LOGO = "/Images/placeholder-logo.png"
SAME_PLACE_METERS = 100.0

SearchStatus = Literal["found", "not_found", "out_of_range", "all_exist", "no_logo"]


@dataclass(frozen=True)
class SearchOutcome:
    status: SearchStatus
    poi: Poi | None = None
    # Matches within the search radius, existing ones included.
    in_range: int = 0


def place_name(result: dict[str, Any]) -> str:
    return str(result.get("display_name") or result.get("name") or "").split(",")[0].strip()


def already_present(name: str, lat: float, lon: float, existing: Iterable[Poi]) -> bool:
    """
    True when a POI with an overlapping name (either contains the other, case
    insensitive) sits within 100 m.
    """
    wanted = name.strip().lower()
    for p in existing:
        have = p.name.strip().lower()
        if not (have == wanted or wanted in have or have in wanted):
            continue
        if distance_m(lat, lon, p.lat, p.lon) < SAME_PLACE_METERS:
            return True
    return False


def _in_range(
    results: list[dict[str, Any]], site: SiteLocation, radius_miles: float
) -> list[tuple[float, dict[str, Any]]]:
    out = []
    for r in results:
        try:
            lat, lon = float(r["lat"]), float(r["lon"])
        except (KeyError, TypeError, ValueError):
            continue
        miles = distance_m(site.lat, site.lon, lat, lon) / METERS_PER_MILE
        if miles <= radius_miles:
            out.append((miles, {**r, "lat": lat, "lon": lon}))
    out.sort(key=lambda t: t[0])
    return out


def search_poi(
    query: str,
    site: SiteLocation,
    existing: Iterable[Poi],
    *,
    search: PlaceSearch,
    resolver: LogoResolver,
    details: PlaceDetails | None = None,
    radius_miles: float = 3.0,
    limit: int = 50,
    allow_without_logo: bool = False,
) -> SearchOutcome:
    """
    Find the nearest match of `query` around the site that is not on the map yet.

    - matches farther than `radius_miles` are ignored, the rest are tried nearest first
    - a match whose name and location duplicate an existing POI is skipped
    - OSM tags (website, brand, address) are looked up for nodes and ways
    - without a logo the POI is only returned when `allow_without_logo` is set, and
      then carries a placeholder image
    """
    existing = list(existing)
    results = search.search(query, (site.lat, site.lon), limit=limit)
    if not results:
        return SearchOutcome(status="not_found")

    candidates = _in_range(results, site, radius_miles)
    if not candidates:
        return SearchOutcome(status="out_of_range")

    picked: tuple[float, dict[str, Any]] | None = None
    for miles, r in candidates:
        if already_present(place_name(r), r["lat"], r["lon"], existing):
            logger.debug(f"Skipping {place_name(r)} at {miles:.2f} mi, already on the map")
            continue
        picked = (miles, r)
        break
    if picked is None:
        return SearchOutcome(status="all_exist", in_range=len(candidates))

    miles, r = picked
    osm_type = str(r.get("osm_type") or "")
    osm_id = r.get("osm_id")
    tags: dict[str, Any] = {}
    if details is not None and osm_id is not None:
        tags = details.fetch_tags(osm_type, osm_id)

    address = format_address(tags)
    poi = Poi(
        id=str(osm_id if osm_id is not None else r.get("place_id")),
        name=place_name(r),
        lat=r["lat"],
        lon=r["lon"],
        category=SEARCH_CATEGORY,
        distance_miles=miles,
        website=tags.get("website") or tags.get("contact:website") or tags.get("brand"),
        brand=tags.get("brand"),
        prevent_clustering=True,
        props={
            "osm_type": osm_type or None,
            "osm_id": osm_id,
            "address": address if address != "N/A" else r.get("display_name") or "N/A",
            "postal_code": tags.get("addr:postcode") or "N/A",
            "search_result": True,
        },
    )

    try:
        logo = resolver.resolve(poi)
    except Exception as e:
        logger.debug(f"Logo lookup for {poi.name} failed: {e}")
        logo = None
    if not logo:
        if not allow_without_logo:
            return SearchOutcome(status="no_logo", poi=poi, in_range=len(candidates))
        logo = PLACEHOLDER_LOGO

    logger.info(f"Search '{query}': picked {poi.name} at {miles:.2f} mi")
    return SearchOutcome(
        status="found",
        poi=dataclasses.replace(poi, logo_url=logo),
        in_range=len(candidates),
    )
