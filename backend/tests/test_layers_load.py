from __future__ import annotations

import pytest

from layers.loaders import format_address, pois_from_overpass, roads_from_overpass

ELEMENTS = [
    {
        "type": "node",
        "id": 11,
        "lat": 50.010,
        "lon": 14.0,
        "tags": {"name": "Far Bank", "brand": "Far", "addr:street": "Elm St", "addr:housenumber": "4"},
    },
    {"type": "way", "id": 12, "center": {"lat": 50.001, "lon": 14.0}, "tags": {}},
    {"type": "node", "id": 13, "tags": {"name": "No coordinates"}},
    {"type": "node", "lat": 50.0, "lon": 14.0, "tags": {"name": "No id"}},
]


def test_pois_from_overpass_sorted_by_distance():
    pois = pois_from_overpass(ELEMENTS, category="bank", site_lat=50.0, site_lon=14.0)
    assert [p.id for p in pois] == ["12", "11"]

    near, far = pois
    assert near.name == "BANK"
    assert near.props["address"] == "N/A"
    assert near.distance_miles == pytest.approx(111.19 / 1609.34, rel=1e-3)

    assert far.brand == "Far"
    assert far.website == "Far"
    assert far.props["address"] == "4 Elm St"
    assert far.props["osm_type"] == "node"


def test_roads_from_overpass_keeps_ways_with_geometry():
    elements = [
        {
            "type": "way",
            "id": 1,
            "tags": {"highway": "primary", "ref": "US 9", "name": "Main"},
            "geometry": [{"lat": 50.0, "lon": 14.0}, {"lat": 50.01, "lon": 14.02}],
        },
        {"type": "way", "id": 2, "tags": {"highway": "trunk"}, "geometry": [{"lat": 50.0, "lon": 14.0}]},
        {"type": "node", "id": 3, "lat": 50.0, "lon": 14.0},
        {
            "type": "way",
            "id": 4,
            "tags": {"highway": "secondary", "name": "Oak Ave"},
            "geometry": [{"lat": 50.0, "lon": 14.0}, {"lat": 50.0, "lon": 14.1}, {"lat": 50.1}],
        },
    ]
    roads = roads_from_overpass(elements, start_index=5)
    assert [(r.index, r.id, r.name, r.type) for r in roads] == [
        (5, "way/1", "US 9", "primary"),
        (6, "way/4", "Oak Ave", "secondary"),
    ]
    assert roads[0].coords == [(14.0, 50.0), (14.02, 50.01)]
    assert len(roads[1].coords) == 2


def test_label_anchor_is_a_real_vertex():
    roads = roads_from_overpass(
        [
            {
                "type": "way",
                "id": 1,
                "geometry": [
                    {"lat": 50.0, "lon": 14.0},
                    {"lat": 50.004, "lon": 14.006},
                    {"lat": 50.01, "lon": 14.01},
                ],
            }
        ]
    )
    assert roads[0].label_anchor() == (14.006, 50.004)
    assert roads[0].name == "Road"


def test_format_address_joins_known_parts():
    tags = {"addr:housenumber": "4", "addr:street": "Elm St", "addr:city": "Springfield"}
    assert format_address(tags) == "4 Elm St, Springfield"
    assert format_address({"addr:street": "Elm St"}) == "Elm St"
    assert format_address({}) == "N/A"
