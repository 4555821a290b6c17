from __future__ import annotations

import os
from functools import lru_cache

from persistence.singleton import get_store
from persistence.store import OverlayStore
from settings.registry import get_settings
from sources.logos import LogoDevResolver
from sources.nominatim import NominatimGeocoder
from sources.overpass import OverpassClient
from sources.types import SourceBundle


def get_overlay_store() -> OverlayStore:
    return get_store()


@lru_cache(maxsize=1)
def get_sources() -> SourceBundle:
    s = get_settings().sources
    overpass = OverpassClient(s)
    nominatim = NominatimGeocoder(s)
    return SourceBundle(
        geocoder=nominatim,
        poi_source=overpass,
        road_source=overpass,
        resolver=LogoDevResolver(os.getenv("LOGODEV_API_KEY"), s),
        place_search=nominatim,
        place_details=overpass,
    )
