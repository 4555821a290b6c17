from __future__ import annotations

import asyncio
import dataclasses
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

from loguru import logger

from layers.types import Poi
from sources.types import LogoResolver

Sleep = Callable[[float], Awaitable[None]]

MAX_PER_BRAND = 3


def normalize_name(name: str) -> str:
    n = re.sub(r"[^a-z0-9\s]", "", (name or "").lower())
    return re.sub(r"\s+", " ", n).strip()


def brand_name(name: str) -> str:
    """
    First one or two normalised words: "Starbucks Downtown" -> "starbucks downtown",
    "McDonald's #1234 Main" -> "mcdonalds 1234".
    """
    return " ".join(normalize_name(name).split(" ")[:2])


def is_famous_brand(name: str, famous: list[str]) -> bool:
    # Exact full-name match only: "McDonald's Downtown" is not "McDonald's".
    n = normalize_name(name)
    return any(n == normalize_name(b) for b in famous)


def _base_name(name: str) -> str:
    return re.sub(r"\s+(#\d+|Store|Location|Branch)", "", name, flags=re.IGNORECASE).strip().lower()


def limit_duplicate_pois(pois: list[Poi], max_duplicates: int = MAX_PER_BRAND) -> list[Poi]:
    """
    Keep at most `max_duplicates` POIs per base name (store numbers and
    "Store/Location/Branch" suffixes ignored), preserving order.
    """
    counts: dict[str, int] = {}
    out: list[Poi] = []
    for p in pois:
        key = _base_name(p.name)
        if counts.get(key, 0) < max_duplicates:
            out.append(p)
            counts[key] = counts.get(key, 0) + 1
    if len(out) != len(pois):
        logger.debug(f"Filtered {len(pois)} POIs down to {len(out)} (max {max_duplicates} per name)")
    return out


def popularity_score(poi: Poi, all_pois: list[Poi], famous: list[str]) -> int:
    score = 0
    if is_famous_brand(poi.name, famous):
        score += 100
    if poi.website:
        score += 30
    if poi.brand:
        score += 40

    key = re.sub(r"[^a-z0-9]", "", poi.name.lower())
    similar = sum(1 for p in all_pois if re.sub(r"[^a-z0-9]", "", p.name.lower()) == key)
    if similar > 1:
        score += min(similar * 10, 50)

    if len(poi.name) < 15:
        score += 20
    elif len(poi.name) < 25:
        score += 10

    if not re.search(r"\d|#", poi.name):
        score += 10
    return score


@dataclass(frozen=True)
class _Ranked:
    poi: Poi
    score: int
    famous: bool
    brand: str


async def _with_logo(
    poi: Poi, resolver: LogoResolver
) -> Poi | None:
    try:
        url = await asyncio.to_thread(resolver.resolve, poi)
    except Exception as e:
        logger.debug(f"Logo lookup for {poi.name} failed: {e}")
        return None
    if not url:
        return None
    return dataclasses.replace(poi, logo_url=url)


async def prioritize_by_brand(
    pois: list[Poi],
    desired: int,
    resolver: LogoResolver,
    *,
    famous: list[str],
    priority_extra: int = 5,
    max_per_brand: int = MAX_PER_BRAND,
    delay_seconds: float = 2.0,
    sleep: Sleep = asyncio.sleep,
) -> list[Poi]:
    """
    Pick up to `desired` POIs that have a logo, favouring brand diversity.

    - rank: famous brands first, then popularity score (stable for ties)
    - first instance of every brand forms the priority list (`desired + priority_extra`)
    - logos are looked up there first; 2nd/3rd instances are only tried if still short
    - at most `max_per_brand` instances of one brand survive
    """
    if desired <= 0 or not pois:
        return []

    ranked = [
        _Ranked(
            poi=p,
            score=popularity_score(p, pois, famous),
            famous=is_famous_brand(p.name, famous),
            brand=brand_name(p.name),
        )
        for p in pois
    ]
    ranked.sort(key=lambda r: (not r.famous, -r.score))

    firsts: list[_Ranked] = []
    duplicates: list[_Ranked] = []
    seen: dict[str, int] = {}
    for r in ranked:
        n = seen.get(r.brand, 0)
        if n == 0:
            firsts.append(r)
        elif n < max_per_brand:
            duplicates.append(r)
        else:
            continue
        seen[r.brand] = n + 1

    priority = firsts[: desired + priority_extra]
    found: list[tuple[_Ranked, Poi]] = []

    async def _try(group: list[_Ranked]) -> None:
        for i, r in enumerate(group):
            if len(found) >= desired:
                return
            if i > 0:
                await sleep(delay_seconds)
            enriched = await _with_logo(r.poi, resolver)
            if enriched is not None:
                found.append((r, enriched))

    await _try(priority)
    if len(found) < desired and duplicates:
        logger.info(f"Still need {desired - len(found)} more, trying 2nd/3rd brand instances")
        await _try(duplicates)

    out: list[Poi] = []
    per_brand: dict[str, int] = {}
    for r, enriched in found:
        if per_brand.get(r.brand, 0) >= max_per_brand:
            continue
        out.append(enriched)
        per_brand[r.brand] = per_brand.get(r.brand, 0) + 1
        if len(out) >= desired:
            break

    logger.info(
        f"Prioritized {len(out)}/{desired} POIs "
        f"({sum(1 for p in out if is_famous_brand(p.name, famous))} famous brands)"
    )
    return out


async def prioritize_by_score(
    pois: list[Poi],
    desired: int,
    resolver: LogoResolver,
    *,
    delay_seconds: float = 2.0,
    sleep: Sleep = asyncio.sleep,
) -> list[Poi]:
    """
    Plain ranking for categories where brands do not matter (attractions, parks):
    popularity score without the famous-brand bonus, logos looked up best first
    until `desired` are found.
    """
    if desired <= 0 or not pois:
        return []

    # No famous list, so no brand bonus.
    ranked = sorted(pois, key=lambda p: -popularity_score(p, pois, []))
    out: list[Poi] = []
    for i, p in enumerate(ranked):
        if i > 0:
            await sleep(delay_seconds)
        enriched = await _with_logo(p, resolver)
        if enriched is not None:
            out.append(enriched)
            if len(out) >= desired:
                break

    logger.info(f"Ranked {len(out)}/{desired} POIs by score")
    return out
