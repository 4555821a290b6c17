from __future__ import annotations

import re

import requests
from loguru import logger

from layers.types import Poi
from settings.types import SourceSettings

# Categories drawn with a fixed local picture instead of a brand logo.
LOCAL_CATEGORY_IMAGES: dict[str, str] = {
    "gym": "/Images/gym.jpg",
    "park": "/Images/park.jpg",
    "police_station": "/Images/police.jpg",
    "fire_station": "/Images/firestation.png",
}

# Placeholder images from the logo service are tiny.
MIN_LOGO_BYTES = 500


def website_domain(website: str) -> str:
    domain = re.sub(r"^https?://", "", website.strip(), flags=re.IGNORECASE)
    domain = re.sub(r"^www\.", "", domain, flags=re.IGNORECASE)
    return domain.split("/")[0]


class LogoDevResolver:
    """
    Logo lookup by website domain; names without a website fall back to
    "<first word>.com". Any failure means "no logo".
    """

    def __init__(
        self,
        token: str | None,
        settings: SourceSettings | None = None,
        *,
        session: requests.Session | None = None,
    ):
        self.token = token
        self.settings = settings or SourceSettings()
        self.session = session

    def _lookup(self, domain: str) -> str | None:
        if not domain:
            return None
        http = self.session or requests
        try:
            r = http.get(
                f"{self.settings.logoDevUrl.rstrip('/')}/{domain}",
                params={"token": self.token or "", "size": 200},
                timeout=self.settings.timeoutSeconds,
            )
        except requests.RequestException as e:
            logger.debug(f"Logo lookup for {domain} failed: {e}")
            return None
        if r.status_code != 200:
            logger.debug(f"Logo lookup for {domain}: HTTP {r.status_code}")
            return None
        if len(r.content or b"") < MIN_LOGO_BYTES:
            logger.debug(f"Logo for {domain} looks like a placeholder, rejecting")
            return None
        return str(r.url)

    def resolve(self, poi: Poi) -> str | None:
        local = LOCAL_CATEGORY_IMAGES.get(poi.category)
        if local:
            return local
        if poi.website:
            return self._lookup(website_domain(poi.website))
        first = re.sub(r"[^a-z0-9\s]", "", poi.name.lower()).split(" ")[0]
        return self._lookup(f"{first}.com") if first else None
