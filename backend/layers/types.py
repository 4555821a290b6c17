from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from geo.aoi import BBox

EntityKind = Literal["poi", "cluster", "road", "site"]
ENTITY_KINDS: tuple[EntityKind, ...] = ("poi", "cluster", "road", "site")


@dataclass(frozen=True)
class Poi:
    """
    A point of interest as fetched for one category.

    Records are read-only; surface positions and user overrides live in the session.
    """

    id: str
    name: str
    lat: float
    lon: float
    category: str
    distance_miles: float = 0.0
    logo_url: str | None = None
    website: str | None = None
    brand: str | None = None
    prevent_clustering: bool = False
    props: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class Road:
    """
    One physical road segment (never merged across fetches).
    """

    index: int
    id: str
    name: str
    type: str
    coords: list[tuple[float, float]]  # [(lon, lat), ...]
    props: dict[str, Any] = field(default_factory=dict)

    def label_anchor(self) -> tuple[float, float]:
        """
        (lon, lat) of the vertex nearest the polyline's bbox centre.

        Labels are drawn at a real vertex so they always sit on the road itself.
        """
        lons = [c[0] for c in self.coords]
        lats = [c[1] for c in self.coords]
        clon = (min(lons) + max(lons)) / 2.0
        clat = (min(lats) + max(lats)) / 2.0
        return min(self.coords, key=lambda c: (c[0] - clon) ** 2 + (c[1] - clat) ** 2)


@dataclass(frozen=True)
class SiteMarker:
    lat: float
    lon: float
    radius: float = 20.0
    address: str | None = None


@dataclass(frozen=True)
class EntityKey:
    """
    Stable key of anything the editor can override.

    - poi: "<category>-<poi_id>"
    - cluster: "<cluster_id>"
    - road: "<road_index>"
    - site: "site"
    """

    kind: EntityKind
    key: str

    @property
    def line_id(self) -> str:
        return f"{self.kind}:{self.key}"

    @classmethod
    def from_line_id(cls, line_id: str) -> "EntityKey":
        kind, _, key = (line_id or "").partition(":")
        if kind not in ENTITY_KINDS or not key:
            raise ValueError(f"Invalid line id: {line_id!r}")
        return cls(kind=kind, key=key)  # type: ignore[arg-type]

    @classmethod
    def for_poi(cls, category: str, poi_id: str) -> "EntityKey":
        return cls(kind="poi", key=f"{category}-{poi_id}")

    @classmethod
    def for_cluster(cls, cluster_id: str) -> "EntityKey":
        return cls(kind="cluster", key=cluster_id)

    @classmethod
    def for_road(cls, index: int) -> "EntityKey":
        return cls(kind="road", key=str(int(index)))

    @classmethod
    def site(cls) -> "EntityKey":
        return cls(kind="site", key="site")


@dataclass(frozen=True)
class AnalysisData:
    """
    Everything fetched for one analysis run. Restoring an analysis replays the
    same records, so cluster references by (category, index) stay valid.
    """

    site: SiteMarker
    bbox: BBox
    pois_by_category: dict[str, list[Poi]] = field(default_factory=dict)
    roads: list[Road] = field(default_factory=list)
