from __future__ import annotations

import pytest
import requests

from layers.errors import SourceError
from layers.types import Poi
from settings.types import SourceSettings
from sources.http import fetch_json_with_retry
from sources.logos import LogoDevResolver, website_domain
from sources.nominatim import NominatimGeocoder
from sources.overpass import (
    OverpassClient,
    build_element_query,
    build_poi_query,
    build_road_query,
)


class FakeResponse:
    def __init__(self, payload=None, *, status=200, content_type="application/json", content=b"", url=""):
        self.payload = payload
        self.status_code = status
        self.headers = {"content-type": content_type}
        self.content = content
        self.url = url

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")

    def json(self):
        return self.payload


class FakeSession:
    """
    Replays `responses` in order; an Exception item is raised instead of returned.
    """

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls: list[tuple[str, str, dict]] = []

    def request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)


def test_retry_backs_off_linearly_then_succeeds():
    sleeps: list[float] = []
    session = FakeSession(
        [
            requests.ConnectionError("reset"),
            FakeResponse(status=503),
            FakeResponse({"elements": [1]}),
        ]
    )
    data = fetch_json_with_retry(
        "POST", "http://overpass", retries=3, delay_seconds=3, session=session, sleep=sleeps.append
    )
    assert data == {"elements": [1]}
    assert sleeps == [3, 6]
    assert len(session.calls) == 3


def test_retry_gives_up_with_source_error():
    sleeps: list[float] = []
    session = FakeSession([FakeResponse("<html>", content_type="text/html")] * 3)
    with pytest.raises(SourceError):
        fetch_json_with_retry(
            "GET", "http://x", retries=3, delay_seconds=1, session=session, sleep=sleeps.append
        )
    assert sleeps == [1, 2]


def test_overpass_queries():
    q = build_poi_query("amenity=cafe|shop=coffee", 50.0, 14.0, 1609.34)
    assert q.startswith("[out:json]")
    assert 'node["amenity"="cafe"](around:1609,50.0,14.0);' in q
    assert 'way["shop"="coffee"](around:1609,50.0,14.0);' in q
    assert q.endswith("out center;")

    rq = build_road_query(["motorway", "primary"], 50.0, 14.0, 1000)
    assert '"^(motorway|primary)$"' in rq
    assert rq.endswith("out geom;")


def _settings() -> SourceSettings:
    return SourceSettings(retries=2, retryDelaySeconds=0)


def test_overpass_fetch_returns_elements():
    session = FakeSession([FakeResponse({"elements": [{"id": 1}]})])
    client = OverpassClient(_settings(), session=session)
    assert client.fetch("coffee_shop", (50.0, 14.0), 500) == [{"id": 1}]
    method, _, kwargs = session.calls[0]
    assert method == "POST"
    assert "amenity" in kwargs["data"]["data"]


def test_overpass_failure_yields_empty_category():
    session = FakeSession([requests.Timeout("slow")] * 4)
    client = OverpassClient(_settings(), session=session)
    assert client.fetch("coffee_shop", (50.0, 14.0), 500) == []
    assert client.fetch_roads((50.0, 14.0), 500) == []
    assert client.fetch("volcano", (50.0, 14.0), 500) == []
    assert len(session.calls) == 4


def test_geocoder():
    session = FakeSession(
        [FakeResponse([{"lat": "40.7", "lon": "-74.0", "display_name": "New York"}]), FakeResponse([])]
    )
    geocoder = NominatimGeocoder(_settings(), session=session)
    site = geocoder.geocode("New York")
    assert (site.lat, site.lon, site.address) == (40.7, -74.0, "New York")
    assert geocoder.geocode("Nowhere") is None
    assert geocoder.geocode("   ") is None


def test_website_domain():
    assert website_domain("https://www.starbucks.com/store/1") == "starbucks.com"
    assert website_domain("HTTP://Example.org") == "Example.org"


def test_logo_resolver():
    session = FakeSession(
        [
            FakeResponse(content=b"x" * 600, url="https://img.logo.dev/starbucks.com"),
            FakeResponse(content=b"x" * 10, url="https://img.logo.dev/tiny.com"),
            FakeResponse(status=404),
        ]
    )
    resolver = LogoDevResolver("tok", _settings(), session=session)

    def poi(name, category="coffee_shop", website=None):
        return Poi(id="1", name=name, lat=0, lon=0, category=category, website=website)

    assert resolver.resolve(poi("Starbucks", website="https://www.starbucks.com")) == (
        "https://img.logo.dev/starbucks.com"
    )
    assert resolver.resolve(poi("Tiny Place")) is None
    assert session.calls[1][1].endswith("/tiny.com")
    assert resolver.resolve(poi("Missing")) is None
    assert resolver.resolve(poi("City Park", category="park")) == "/Images/park.jpg"
    assert len(session.calls) == 3


def test_overpass_query_joins_terms_and_bare_keys():
    q = build_poi_query("tourism=attraction|leisure=park&name", 50.0, 14.0, 1000)
    assert 'node["tourism"="attraction"](around:1000,50.0,14.0);' in q
    assert 'way["leisure"="park"]["name"](around:1000,50.0,14.0);' in q


def test_element_tags_for_nodes_and_ways():
    assert build_element_query("node", 42).endswith("node(42);out body;")
    assert build_element_query("way", "7").endswith("way(7);out center;")
    assert build_element_query("relation", 1) is None

    session = FakeSession(
        [
            FakeResponse({"elements": [{"id": 42, "tags": {"brand": "Aldi"}}]}),
            FakeResponse({"elements": []}),
            requests.Timeout("slow"),
            requests.Timeout("slow"),
        ]
    )
    client = OverpassClient(_settings(), session=session)
    assert client.fetch_tags("node", 42) == {"brand": "Aldi"}
    assert client.fetch_tags("way", 7) == {}
    assert client.fetch_tags("relation", 1) == {}
    assert client.fetch_tags("node", 43) == {}
    assert len(session.calls) == 4


def test_place_search_is_bounded_around_center():
    session = FakeSession([FakeResponse([{"lat": "50.001", "lon": "14.0"}]), FakeResponse(status=500)])
    geocoder = NominatimGeocoder(SourceSettings(retries=1), session=session)
    assert geocoder.search("Aldi", (50.0, 14.0), limit=10) == [{"lat": "50.001", "lon": "14.0"}]
    params = session.calls[0][2]["params"]
    assert params["q"] == "Aldi"
    assert params["limit"] == 10
    assert params["bounded"] == 1
    assert params["viewbox"] == f"{14.0 - 0.05},{50.0 - 0.05},{14.0 + 0.05},{50.0 + 0.05}"
    assert geocoder.search("  ", (50.0, 14.0)) == []

    with pytest.raises(SourceError):
        geocoder.search("Aldi", (50.0, 14.0))
