from __future__ import annotations

from typing import Any

from geo.aoi import BBox
from layers.types import AnalysisData, Poi, Road, SiteMarker


def encode_poi(p: Poi) -> dict[str, Any]:
    return {
        "id": p.id,
        "name": p.name,
        "lat": p.lat,
        "lng": p.lon,
        "category": p.category,
        "distance": p.distance_miles,
        "logo": p.logo_url,
        "website": p.website,
        "brand": p.brand,
        "preventClustering": p.prevent_clustering,
        "props": dict(p.props or {}),
    }


def decode_poi(d: dict[str, Any], *, category: str | None = None) -> Poi:
    return Poi(
        id=str(d["id"]),
        name=str(d.get("name") or ""),
        lat=float(d["lat"]),
        lon=float(d["lng"]),
        category=str(d.get("category") or category or ""),
        distance_miles=float(d.get("distance") or 0.0),
        logo_url=d.get("logo"),
        website=d.get("website"),
        brand=d.get("brand"),
        prevent_clustering=bool(d.get("preventClustering") or False),
        props=dict(d.get("props") or {}),
    )


def encode_road(r: Road) -> dict[str, Any]:
    return {
        "index": r.index,
        "id": r.id,
        "name": r.name,
        "type": r.type,
        "coords": [[lon, lat] for lon, lat in r.coords],
        "props": dict(r.props or {}),
    }


def decode_road(d: dict[str, Any]) -> Road:
    return Road(
        index=int(d["index"]),
        id=str(d.get("id") or d["index"]),
        name=str(d.get("name") or ""),
        type=str(d.get("type") or ""),
        coords=[(float(c[0]), float(c[1])) for c in d.get("coords") or []],
        props=dict(d.get("props") or {}),
    )


def encode_data(data: AnalysisData) -> dict[str, Any]:
    return {
        "site": {
            "lat": data.site.lat,
            "lng": data.site.lon,
            "radius": data.site.radius,
            "address": data.site.address,
        },
        "bounds": data.bbox.to_rectangle(),
        "pois": {
            cat: [encode_poi(p) for p in pois]
            for cat, pois in data.pois_by_category.items()
        },
        "roads": [encode_road(r) for r in data.roads],
    }


def decode_data(d: dict[str, Any]) -> AnalysisData:
    site = d["site"]
    return AnalysisData(
        site=SiteMarker(
            lat=float(site["lat"]),
            lon=float(site["lng"]),
            radius=float(site.get("radius") or 20.0),
            address=site.get("address"),
        ),
        bbox=BBox.from_rectangle(d["bounds"]),
        pois_by_category={
            str(cat): [decode_poi(p, category=cat) for p in pois]
            for cat, pois in (d.get("pois") or {}).items()
        },
        roads=[decode_road(r) for r in d.get("roads") or []],
    )


def encode_selection(
    poi_selected: dict[str, list[bool]], road_selected: list[bool]
) -> dict[str, Any]:
    return {
        "pois": {cat: list(flags) for cat, flags in poi_selected.items()},
        "roads": list(road_selected),
    }


def decode_selection(
    d: dict[str, Any] | None, data: AnalysisData
) -> tuple[dict[str, list[bool]], list[bool]]:
    """
    Stored flags laid over the fetched records; anything missing defaults to selected.
    """
    d = d or {}
    stored = d.get("pois") or {}
    pois: dict[str, list[bool]] = {}
    for cat, items in data.pois_by_category.items():
        flags = list(stored.get(cat) or [])
        pois[cat] = [bool(flags[i]) if i < len(flags) else True for i in range(len(items))]
    road_flags = list(d.get("roads") or [])
    roads = [
        bool(road_flags[i]) if i < len(road_flags) else True
        for i in range(len(data.roads))
    ]
    return pois, roads
