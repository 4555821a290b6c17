from __future__ import annotations

import time
from typing import Any, Callable

import requests
from loguru import logger

from layers.errors import SourceError


def fetch_json_with_retry(
    method: str,
    url: str,
    *,
    retries: int = 3,
    delay_seconds: float = 3.0,
    timeout: float = 20.0,
    session: requests.Session | None = None,
    sleep: Callable[[float], None] = time.sleep,
    **kwargs: Any,
) -> Any:
    """
    JSON request with a linear back-off (delay * attempt) between attempts.

    Non-2xx responses and non-JSON bodies count as failures. Raises SourceError once
    every attempt has failed.
    """
    http = session or requests
    last: Exception | None = None
    for attempt in range(1, retries + 1):
        try:
            r = http.request(method, url, timeout=timeout, **kwargs)
            r.raise_for_status()
            content_type = r.headers.get("content-type") or ""
            if "json" not in content_type:
                raise ValueError(f"Response is not JSON ({content_type or 'no content type'})")
            return r.json()
        except (requests.RequestException, ValueError) as e:
            last = e
            logger.warning(f"Attempt {attempt}/{retries} for {url} failed: {e}")
            if attempt < retries:
                sleep(delay_seconds * attempt)
    raise SourceError(f"{method} {url} failed after {retries} attempts: {last}")
