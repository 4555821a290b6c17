from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class SurfaceSettings(BaseModel):
    width: int = Field(default=1200, gt=0)
    height: int = Field(default=800, gt=0)


class ClusteringSettings(BaseModel):
    """
    Distance thresholds for the precluster + two-phase radius clustering.

    `roadRelevanceMeters` and `roadSideTolerancePx` are fixed values, not scaled with
    surface size or zoom.
    """

    sameLocationDecimals: int = Field(default=5, ge=1, le=8)
    primaryRadiusMeters: float = Field(default=100.0, gt=0.0)
    secondaryRadiusMeters: float = Field(default=300.0, gt=0.0)
    roadRelevanceMeters: float = Field(default=500.0, gt=0.0)
    roadSegmentMaxPx: float = Field(default=300.0, gt=0.0)
    roadSideTolerancePx: float = Field(default=30.0, ge=0.0)
    defaultClusterSize: float = Field(default=80.0, gt=0.0)

    @model_validator(mode="after")
    def _secondary_not_smaller(self) -> "ClusteringSettings":
        if self.secondaryRadiusMeters < self.primaryRadiusMeters:
            raise ValueError("secondaryRadiusMeters must be >= primaryRadiusMeters")
        return self


class OverlapSettings(BaseModel):
    minDistancePx: float = Field(default=100.0, gt=0.0)
    pushMarginPx: float = Field(default=20.0, ge=0.0)
    maxAttempts: int = Field(default=50, ge=1, le=1000)


class SizeBounds(BaseModel):
    default: float
    min: float
    max: float

    @model_validator(mode="after")
    def _ordered(self) -> "SizeBounds":
        if not (self.min <= self.default <= self.max):
            raise ValueError("size bounds must satisfy min <= default <= max")
        return self


class EditorSettings(BaseModel):
    hitRadiusPx: float = Field(default=50.0, gt=0.0)
    resizeStep: float = Field(default=5.0, gt=0.0)
    rotationStepDeg: float = Field(default=5.0, gt=0.0)
    reshapeStepPx: float = Field(default=10.0, gt=0.0)
    reshapeMin: float = -200.0
    reshapeMax: float = 300.0
    lineClickTolerancePx: float = Field(default=10.0, gt=0.0)
    bendPointRadiusPx: float = Field(default=8.0, gt=0.0)
    bendPointMarginPx: float = Field(default=20.0, ge=0.0)
    poiSize: SizeBounds = Field(
        default_factory=lambda: SizeBounds(default=40.0, min=20.0, max=150.0)
    )
    clusterSize: SizeBounds = Field(
        default_factory=lambda: SizeBounds(default=80.0, min=40.0, max=250.0)
    )
    roadSize: SizeBounds = Field(
        default_factory=lambda: SizeBounds(default=14.0, min=8.0, max=48.0)
    )
    siteSize: SizeBounds = Field(
        default_factory=lambda: SizeBounds(default=20.0, min=8.0, max=80.0)
    )


class PersistenceSettings(BaseModel):
    # Debounce windows (seconds) per overlay kind.
    debounceSeconds: dict[str, float] = Field(
        default_factory=lambda: {
            "dragged": 1.0,
            "resized": 0.5,
            "breakpoints": 1.0,
            "rotations": 1.0,
            "reshapes": 1.0,
            "selection": 2.0,
        }
    )
    defaultDebounceSeconds: float = Field(default=1.0, ge=0.0)
    # How often the background writer checks for settled changes.
    pumpIntervalSeconds: float = Field(default=0.25, gt=0.0)


class SourceSettings(BaseModel):
    overpassUrl: str = "https://overpass-api.de/api/interpreter"
    nominatimUrl: str = "https://nominatim.openstreetmap.org/search"
    logoDevUrl: str = "https://img.logo.dev"
    userAgent: str = "poi-layout/0.1"
    retries: int = Field(default=3, ge=1, le=10)
    retryDelaySeconds: float = Field(default=3.0, ge=0.0)
    categoryDelaySeconds: float = Field(default=5.0, ge=0.0)
    logoDelaySeconds: float = Field(default=2.0, ge=0.0)
    timeoutSeconds: float = Field(default=20.0, gt=0.0)
    maxPerBrand: int = Field(default=3, ge=1)
    priorityExtra: int = Field(default=5, ge=0)
    # "|" separates alternatives, "&" joins terms of one alternative, a bare key means "has tag".
    categoryTags: dict[str, str] = Field(
        default_factory=lambda: {
            "school": "amenity=school|amenity=university|amenity=college",
            "hospital": "amenity=hospital|amenity=clinic|healthcare=hospital",
            "fast_food": "amenity=fast_food|amenity=restaurant",
            "supermarket": "shop=supermarket|shop=grocery|shop=convenience",
            "shopping_mall": "shop=mall|shop=department_store",
            "coffee_shop": "amenity=cafe|shop=coffee",
            "gas_station": "amenity=fuel|shop=gas",
            "police_station": "amenity=police",
            "fire_station": "amenity=fire_station",
            "bank": "amenity=bank",
            "park": "leisure=park|leisure=garden",
            "pharmacy": "amenity=pharmacy|shop=pharmacy|shop=chemist",
            "gym": "leisure=fitness_centre|leisure=sports_centre|leisure=gym|amenity=gym",
            "popular_locations": (
                "tourism=attraction|leisure=park&name|shop=department_store|shop=mall"
            ),
        }
    )
    # Ranked by popularity score alone: no famous-brand bonus, no brand diversity pass.
    plainRankingCategories: list[str] = Field(
        default_factory=lambda: ["popular_locations"]
    )
    searchRadiusMiles: float = Field(default=3.0, gt=0.0)
    searchLimit: int = Field(default=50, ge=1, le=50)
    roadTypes: list[str] = Field(
        default_factory=lambda: ["motorway", "trunk", "primary", "secondary"]
    )
    famousBrands: list[str] = Field(
        default_factory=lambda: [
            "Walmart",
            "Target",
            "Costco",
            "Sam's Club",
            "BJ's Wholesale Club",
            "McDonald's",
            "Burger King",
            "Wendy's",
            "KFC",
            "Subway",
            "Starbucks",
            "Dunkin'",
            "Pizza Hut",
            "Domino's",
            "Papa John's",
            "Marco's Pizza",
            "Culver's",
            "IHOP",
            "LongHorn Steakhouse",
        ]
    )


class LayoutSettings(BaseModel):
    surface: SurfaceSettings = Field(default_factory=SurfaceSettings)
    clustering: ClusteringSettings = Field(default_factory=ClusteringSettings)
    overlap: OverlapSettings = Field(default_factory=OverlapSettings)
    editor: EditorSettings = Field(default_factory=EditorSettings)
    persistence: PersistenceSettings = Field(default_factory=PersistenceSettings)
    sources: SourceSettings = Field(default_factory=SourceSettings)
