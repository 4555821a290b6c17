from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from layers.types import Poi, Road

ClusterPhase = Literal["same-location", "100m", "300m"]


@dataclass(frozen=True)
class PoiRef:
    """
    Index-based reference to a POI: category list + position in it + source id.

    The id guards against a different POI landing at the same index after a refetch.
    """

    category: str
    index: int
    poi_id: str


@dataclass(frozen=True)
class Candidate:
    ref: PoiRef
    poi: Poi
    x: float
    y: float


@dataclass(frozen=True)
class ProjectedRoad:
    road: Road
    path: list[tuple[float, float]]
    anchor: tuple[float, float]


@dataclass
class Cluster:
    id: str
    members: list[PoiRef]
    mean_x: float
    mean_y: float
    target_x: float
    target_y: float
    size: float
    phase: ClusterPhase
    names: list[str] = field(default_factory=list, repr=False)

    @property
    def mean(self) -> tuple[float, float]:
        return self.mean_x, self.mean_y

    @property
    def target(self) -> tuple[float, float]:
        return self.target_x, self.target_y
