from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from loguru import logger

from geo.aoi import BBox
from geo.ops import METERS_PER_MILE
from layers.loaders import pois_from_overpass, roads_from_overpass
from layers.types import AnalysisData, Poi, SiteMarker
from settings.types import SourceSettings
from sources.prioritize import limit_duplicate_pois, prioritize_by_brand, prioritize_by_score
from sources.types import LogoResolver, PoiSource, RoadSource, SiteLocation

Sleep = Callable[[float], Awaitable[None]]


async def fetch_category(
    category: str,
    count: int,
    site: SiteLocation,
    radius_m: float,
    *,
    poi_source: PoiSource,
    resolver: LogoResolver,
    settings: SourceSettings,
    sleep: Sleep = asyncio.sleep,
) -> list[Poi]:
    elements = await asyncio.to_thread(
        poi_source.fetch, category, (site.lat, site.lon), radius_m
    )
    pois = pois_from_overpass(
        elements, category=category, site_lat=site.lat, site_lon=site.lon
    )
    pois = limit_duplicate_pois(pois, settings.maxPerBrand)
    if category in settings.plainRankingCategories:
        pois = await prioritize_by_score(
            pois, count, resolver, delay_seconds=settings.logoDelaySeconds, sleep=sleep
        )
    else:
        pois = await prioritize_by_brand(
            pois,
            count,
            resolver,
            famous=settings.famousBrands,
            priority_extra=settings.priorityExtra,
            max_per_brand=settings.maxPerBrand,
            delay_seconds=settings.logoDelaySeconds,
            sleep=sleep,
        )
    return pois[:count]


async def fetch_analysis_data(
    site: SiteLocation,
    *,
    radius_miles: float,
    counts: dict[str, int],
    poi_source: PoiSource,
    road_source: RoadSource,
    resolver: LogoResolver,
    settings: SourceSettings | None = None,
    sleep: Sleep = asyncio.sleep,
) -> AnalysisData:
    """
    Fetch every requested category, one at a time with a pause in between, then the
    roads. A category that fails upstream comes back empty instead of aborting.
    """
    s = settings or SourceSettings()
    radius_m = radius_miles * METERS_PER_MILE

    pois_by_category: dict[str, list[Poi]] = {}
    for i, (category, count) in enumerate(counts.items()):
        if i > 0:
            await sleep(s.categoryDelaySeconds)
        logger.info(f"Fetching category {i + 1}/{len(counts)}: {category}")
        pois_by_category[category] = await fetch_category(
            category,
            int(count),
            site,
            radius_m,
            poi_source=poi_source,
            resolver=resolver,
            settings=s,
            sleep=sleep,
        )

    road_elements = await asyncio.to_thread(
        road_source.fetch_roads, (site.lat, site.lon), radius_m
    )
    roads = roads_from_overpass(road_elements)

    logger.info(
        "Fetched "
        + ", ".join(f"{c}: {len(p)}" for c, p in pois_by_category.items())
        + f"; {len(roads)} roads"
    )
    return AnalysisData(
        site=SiteMarker(lat=site.lat, lon=site.lon, address=site.address),
        bbox=BBox.around(site.lat, site.lon, radius_miles),
        pois_by_category=pois_by_category,
        roads=roads,
    )
