from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

from editor.events import InputEvent, KeyEvent, PointerEvent, SecondaryEvent, WheelEvent
from editor.modes import EditMode
from geo.aoi import BBox
from layers.types import AnalysisData, Poi, Road, SiteMarker


class ApiSite(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    radius: float = Field(default=20.0, gt=0)
    address: str | None = None


class ApiBounds(BaseModel):
    north: float
    south: float
    east: float
    west: float


class ApiSurface(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class ApiPoi(BaseModel):
    id: str
    name: str
    lat: float
    lng: float
    distance: float = 0.0
    logo: str | None = None
    website: str | None = None
    brand: str | None = None
    preventClustering: bool = False


class ApiRoad(BaseModel):
    id: str | None = None
    name: str = ""
    type: str = ""
    coords: list[tuple[float, float]]  # [[lon, lat], ...]


class CreateAnalysisRequest(BaseModel):
    analysisId: str | None = None
    site: ApiSite
    bounds: ApiBounds | None = None
    radiusMiles: float = Field(default=1.0, gt=0, le=50)
    surface: ApiSurface | None = None
    pois: dict[str, list[ApiPoi]] = Field(default_factory=dict)
    roads: list[ApiRoad] = Field(default_factory=list)

    def to_data(self) -> AnalysisData:
        site = SiteMarker(
            lat=self.site.lat,
            lon=self.site.lng,
            radius=self.site.radius,
            address=self.site.address,
        )
        bbox = (
            BBox.from_rectangle(self.bounds.model_dump())
            if self.bounds is not None
            else BBox.around(site.lat, site.lon, self.radiusMiles)
        )
        return AnalysisData(
            site=site,
            bbox=bbox,
            pois_by_category={
                cat: [
                    Poi(
                        id=p.id,
                        name=p.name,
                        lat=p.lat,
                        lon=p.lng,
                        category=cat,
                        distance_miles=p.distance,
                        logo_url=p.logo,
                        website=p.website,
                        brand=p.brand,
                        prevent_clustering=p.preventClustering,
                    )
                    for p in items
                ]
                for cat, items in self.pois.items()
            },
            roads=[
                Road(
                    index=i,
                    id=r.id or str(i),
                    name=r.name,
                    type=r.type,
                    coords=[(float(lon), float(lat)) for lon, lat in r.coords],
                )
                for i, r in enumerate(self.roads)
            ],
        )


class ProcessAnalysisRequest(BaseModel):
    analysisId: str | None = None
    address: str | None = None
    site: ApiSite | None = None
    radiusMiles: float = Field(default=1.0, gt=0, le=50)
    surface: ApiSurface | None = None
    # category -> how many POIs to keep
    pois: dict[str, int] = Field(default_factory=dict)


class OverlayKindEnum(str, Enum):
    dragged = "dragged"
    resized = "resized"
    rotations = "rotations"
    reshapes = "reshapes"
    breakpoints = "breakpoints"
    selection = "selection"


class ApiEvent(BaseModel):
    type: Literal["pointer", "wheel", "key", "secondary"]
    action: Literal["down", "move", "up"] | None = None
    x: float = 0.0
    y: float = 0.0
    deltaY: float = 0.0
    key: str | None = None

    def to_event(self) -> InputEvent:
        if self.type == "pointer":
            return PointerEvent(action=self.action or "down", x=self.x, y=self.y)
        if self.type == "wheel":
            return WheelEvent(delta_y=self.deltaY, x=self.x, y=self.y)
        if self.type == "key":
            return KeyEvent(key=self.key or "")
        return SecondaryEvent(x=self.x, y=self.y)


class EventsRequest(BaseModel):
    """
    One batch of editor input: optional mode change first, then events in order.
    """

    enter: EditMode | None = None
    toggle: EditMode | None = None
    exit: bool = False
    surface: ApiSurface | None = None
    events: list[ApiEvent] = Field(default_factory=list)
    flush: bool = False


class EventsResponse(BaseModel):
    mode: EditMode
    availableModes: dict[str, bool]
    notices: list[dict[str, Any]]
    scene: dict[str, Any]


class SearchPoiRequest(BaseModel):
    query: str = Field(min_length=1)
    # Add the match with a placeholder image when no logo is found.
    addWithoutLogo: bool = False
    radiusMiles: float | None = Field(default=None, gt=0, le=50)
