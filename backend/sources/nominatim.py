from __future__ import annotations

from typing import Any

import requests
from loguru import logger

from layers.errors import SourceError
from settings.types import SourceSettings
from sources.http import fetch_json_with_retry
from sources.types import SiteLocation


class NominatimGeocoder:
    def __init__(self, settings: SourceSettings | None = None, *, session: requests.Session | None = None):
        self.settings = settings or SourceSettings()
        self.session = session

    def geocode(self, address: str) -> SiteLocation | None:
        if not address or not address.strip():
            return None
        s = self.settings
        try:
            results = fetch_json_with_retry(
                "GET",
                s.nominatimUrl,
                retries=s.retries,
                delay_seconds=s.retryDelaySeconds,
                timeout=s.timeoutSeconds,
                session=self.session,
                params={"q": address.strip(), "format": "json", "limit": 1},
                headers={"User-Agent": s.userAgent},
            )
        except SourceError as e:
            logger.warning(f"Geocoding '{address}' failed: {e}")
            return None
        if not results:
            return None
        item = results[0]
        return SiteLocation(
            lat=float(item["lat"]),
            lon=float(item["lon"]),
            address=str(item.get("display_name") or address),
        )

    def search(
        self, query: str, center: tuple[float, float], *, limit: int = 50
    ) -> list[dict[str, Any]]:
        """
        Every match of a free-text place search in a ~0.05 degree box around `center`.

        Raises SourceError once retries are exhausted.
        """
        if not query or not query.strip():
            return []
        s = self.settings
        lat, lon = center
        results = fetch_json_with_retry(
            "GET",
            s.nominatimUrl,
            retries=s.retries,
            delay_seconds=s.retryDelaySeconds,
            timeout=s.timeoutSeconds,
            session=self.session,
            params={
                "q": query.strip(),
                "format": "json",
                "limit": int(limit),
                "viewbox": f"{lon - 0.05},{lat - 0.05},{lon + 0.05},{lat + 0.05}",
                "bounded": 1,
            },
            headers={"User-Agent": s.userAgent},
        )
        return list(results or [])
