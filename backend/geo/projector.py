from __future__ import annotations

from dataclasses import dataclass

from geo.aoi import BBox
from layers.errors import ProjectionError


@dataclass(frozen=True)
class Projector:
    """
    Linear (equirectangular) mapping of a lon/lat rectangle onto a pixel surface.

    - x grows west -> east, y grows north -> south (canvas convention)
    - at analysis scale (a few miles) no latitude correction is applied
    - a surface resize means a new Projector; positions must be re-derived
    """

    bbox: BBox
    width: float
    height: float

    def __post_init__(self) -> None:
        b = self.bbox.normalized()
        if b.max_lon - b.min_lon <= 0 or b.max_lat - b.min_lat <= 0:
            raise ProjectionError(f"Degenerate bounding rectangle: {self.bbox}")
        if self.width <= 0 or self.height <= 0:
            raise ProjectionError(
                f"Surface must have positive size, got {self.width}x{self.height}"
            )
        object.__setattr__(self, "bbox", b)

    def project(self, lat: float, lon: float) -> tuple[float, float]:
        b = self.bbox
        x = (lon - b.min_lon) / (b.max_lon - b.min_lon) * self.width
        y = (b.max_lat - lat) / (b.max_lat - b.min_lat) * self.height
        return float(x), float(y)

    def unproject(self, x: float, y: float) -> tuple[float, float]:
        b = self.bbox
        lon = b.min_lon + (x / self.width) * (b.max_lon - b.min_lon)
        lat = b.max_lat - (y / self.height) * (b.max_lat - b.min_lat)
        return float(lat), float(lon)

    def project_path(
        self, coords: list[tuple[float, float]]
    ) -> list[tuple[float, float]]:
        # coords are (lon, lat), same as Road.coords
        return [self.project(lat, lon) for lon, lat in coords]

    def resized(self, width: float, height: float) -> "Projector":
        return Projector(bbox=self.bbox, width=width, height=height)

    def contains(self, x: float, y: float, *, margin: float = 0.0) -> bool:
        return (
            margin <= x <= self.width - margin and margin <= y <= self.height - margin
        )

    def clamp(
        self, x: float, y: float, *, margin: float = 0.0
    ) -> tuple[float, float]:
        cx = max(margin, min(self.width - margin, x))
        cy = max(margin, min(self.height - margin, y))
        return float(cx), float(cy)
