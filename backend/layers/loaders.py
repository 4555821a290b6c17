from __future__ import annotations

from typing import Any

from geo.ops import METERS_PER_MILE, distance_m
from layers.types import Poi, Road


def pois_from_overpass(
    elements: list[dict[str, Any]],
    *,
    category: str,
    site_lat: float,
    site_lon: float,
) -> list[Poi]:
    """
    Input: Overpass elements fetched with `out center;` so:
    - nodes have `lat`/`lon`
    - ways/relations may have `center: {lat, lon}`

    Output is sorted by distance from the site (nearest first).
    """
    out: list[Poi] = []
    for el in elements:
        eid = el.get("id")
        tags = el.get("tags") or {}

        lon = el.get("lon")
        lat = el.get("lat")
        if lon is None or lat is None:
            center = el.get("center") or {}
            lon = center.get("lon")
            lat = center.get("lat")

        if lon is None or lat is None or eid is None:
            continue

        lat = float(lat)
        lon = float(lon)
        name = tags.get("name") or category.replace("_", " ").upper()
        props: dict[str, Any] = {
            "osm_type": el.get("type"),
            "osm_id": eid,
            "address": format_address(tags),
            "postal_code": tags.get("addr:postcode") or "N/A",
        }
        out.append(
            Poi(
                id=str(eid),
                name=str(name),
                lat=lat,
                lon=lon,
                category=category,
                distance_miles=distance_m(site_lat, site_lon, lat, lon)
                / METERS_PER_MILE,
                website=tags.get("website") or tags.get("contact:website") or tags.get("brand"),
                brand=tags.get("brand"),
                props=props,
            )
        )

    out.sort(key=lambda p: p.distance_miles)
    return out


def roads_from_overpass(
    elements: list[dict[str, Any]], *, start_index: int = 0
) -> list[Road]:
    """
    Input: Overpass JSON with `out geom;` for ways, providing `geometry: [{lat,lon}, ...]`.
    """
    out: list[Road] = []
    for el in elements:
        if el.get("type") != "way":
            continue

        eid = el.get("id")
        geom = el.get("geometry") or []
        coords: list[tuple[float, float]] = []
        for p in geom:
            lat = p.get("lat")
            lon = p.get("lon")
            if lat is None or lon is None:
                continue
            coords.append((float(lon), float(lat)))

        if len(coords) < 2:
            continue

        tags = el.get("tags") or {}
        out.append(
            Road(
                index=start_index + len(out),
                id=f"way/{eid}",
                name=str(tags.get("ref") or tags.get("name") or "Road"),
                type=str(tags.get("highway") or "road"),
                coords=coords,
                props={"osm_type": "way", "osm_id": eid},
            )
        )

    return out


def format_address(tags: dict[str, Any]) -> str:
    parts = [
        " ".join(
            str(p) for p in (tags.get("addr:housenumber"), tags.get("addr:street")) if p
        ),
        tags.get("addr:city"),
        tags.get("addr:state"),
    ]
    joined = ", ".join(str(p) for p in parts if p)
    return joined or "N/A"
