from __future__ import annotations

from typing import Any

import requests
from loguru import logger

from layers.errors import SourceError
from settings.types import SourceSettings
from sources.http import fetch_json_with_retry


def _tag_filter(alternative: str) -> str:
    out = []
    for term in alternative.split("&"):
        key, sep, value = term.strip().partition("=")
        out.append(f'["{key}"="{value}"]' if sep else f'["{key}"]')
    return "".join(out)


def build_poi_query(tags: str, lat: float, lon: float, radius_m: float) -> str:
    """
    Overpass QL for every alternative in `tags` (pipe separated; `&` joins terms and a
    bare key only requires the tag), nodes and ways, returning way centres.
    """
    around = f"(around:{radius_m:.0f},{lat},{lon})"
    filters = [_tag_filter(t) for t in tags.split("|") if t.strip()]
    nodes = "".join(f"node{f}{around};" for f in filters)
    ways = "".join(f"way{f}{around};" for f in filters)
    return f"[out:json][timeout:15];({nodes}{ways});out center;"


def build_element_query(osm_type: str, osm_id: int | str) -> str | None:
    if osm_type == "node":
        return f"[out:json][timeout:15];node({int(osm_id)});out body;"
    if osm_type == "way":
        return f"[out:json][timeout:15];way({int(osm_id)});out center;"
    return None


def build_road_query(road_types: list[str], lat: float, lon: float, radius_m: float) -> str:
    pattern = "|".join(road_types)
    return (
        "[out:json][timeout:25];"
        f'(way["highway"~"^({pattern})$"](around:{radius_m:.0f},{lat},{lon}););'
        "out geom;"
    )


class OverpassClient:
    def __init__(self, settings: SourceSettings | None = None, *, session: requests.Session | None = None):
        self.settings = settings or SourceSettings()
        self.session = session

    def _post(self, query: str) -> list[dict[str, Any]]:
        s = self.settings
        data = fetch_json_with_retry(
            "POST",
            s.overpassUrl,
            retries=s.retries,
            delay_seconds=s.retryDelaySeconds,
            timeout=s.timeoutSeconds,
            session=self.session,
            data={"data": query},
            headers={"User-Agent": s.userAgent},
        )
        return list((data or {}).get("elements") or [])

    def fetch(
        self, category: str, center: tuple[float, float], radius_m: float
    ) -> list[dict[str, Any]]:
        tags = self.settings.categoryTags.get(category)
        if not tags:
            logger.warning(f"No tag mapping for category '{category}'")
            return []
        try:
            elements = self._post(build_poi_query(tags, center[0], center[1], radius_m))
        except SourceError as e:
            logger.warning(f"{category}: giving up after retries ({e})")
            return []
        logger.info(f"{category}: received {len(elements)} results")
        return elements

    def fetch_roads(
        self, center: tuple[float, float], radius_m: float
    ) -> list[dict[str, Any]]:
        try:
            elements = self._post(
                build_road_query(self.settings.roadTypes, center[0], center[1], radius_m)
            )
        except SourceError as e:
            logger.warning(f"roads: giving up after retries ({e})")
            return []
        logger.info(f"roads: received {len(elements)} ways")
        return elements

    def fetch_tags(self, osm_type: str, osm_id: int | str) -> dict[str, Any]:
        """
        OSM tags of one element; {} for relations, unknown elements or on failure.
        """
        query = build_element_query(osm_type, osm_id)
        if query is None:
            return {}
        try:
            elements = self._post(query)
        except SourceError as e:
            logger.warning(f"Details for {osm_type}/{osm_id} unavailable ({e})")
            return {}
        return dict((elements[0].get("tags") if elements else None) or {})
