from .logos import LogoDevResolver
from .nominatim import NominatimGeocoder
from .overpass import OverpassClient
from .pipeline import fetch_analysis_data
from .types import Geocoder, LogoResolver, PoiSource, RoadSource, SiteLocation, SourceBundle

__all__ = [
    "Geocoder",
    "LogoDevResolver",
    "LogoResolver",
    "NominatimGeocoder",
    "OverpassClient",
    "PoiSource",
    "RoadSource",
    "SiteLocation",
    "SourceBundle",
    "fetch_analysis_data",
]
