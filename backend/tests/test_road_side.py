from __future__ import annotations

from clustering.road_side import group_by_road_side, nearest_relevant_road, same_side_of_road
from clustering.types import Candidate, PoiRef, ProjectedRoad
from layers.types import Poi, Road

# A straight east-west road along lat 50.0, drawn horizontally at y=400.
ROAD = ProjectedRoad(
    road=Road(
        index=0,
        id="w1",
        name="Main Street",
        type="primary",
        coords=[(14.0, 50.0), (14.01, 50.0)],
    ),
    path=[(0.0, 400.0), (1200.0, 400.0)],
    anchor=(600.0, 400.0),
)

# Same shape, 0.02 degrees (~2.2 km) north of the POIs.
FAR_ROAD = ProjectedRoad(
    road=Road(
        index=1,
        id="w2",
        name="Far Street",
        type="primary",
        coords=[(14.0, 50.02), (14.01, 50.02)],
    ),
    path=[(0.0, 400.0), (1200.0, 400.0)],
    anchor=(600.0, 400.0),
)


def _cand(i: int, x: float, y: float, *, lat: float = 50.0) -> Candidate:
    poi = Poi(id=f"p{i}", name=f"P{i}", lat=lat, lon=14.005, category="bank")
    return Candidate(ref=PoiRef("bank", i, poi.id), poi=poi, x=x, y=y)


def _ids(groups):
    return [[c.ref.index for c in g] for g in groups]


def test_opposite_sides_are_split():
    a = _cand(0, 600, 300, lat=50.0005)
    b = _cand(1, 600, 500, lat=49.9995)
    assert not same_side_of_road(a, b, ROAD)
    assert _ids(group_by_road_side([a, b], [ROAD])) == [[0], [1]]


def test_same_side_stays_together():
    a = _cand(0, 500, 300)
    b = _cand(1, 700, 340)
    assert _ids(group_by_road_side([a, b], [ROAD])) == [[0, 1]]


def test_poi_within_tolerance_of_line_counts_as_both_sides():
    on_line = _cand(0, 600, 390)
    below = _cand(1, 600, 500)
    assert same_side_of_road(on_line, below, ROAD)
    assert _ids(group_by_road_side([on_line, below], [ROAD])) == [[0, 1]]


def test_poi_on_the_line_bridges_both_sides():
    above = _cand(0, 600, 300)
    below = _cand(1, 600, 500)
    on_line = _cand(2, 600, 405)
    assert _ids(group_by_road_side([above, below, on_line], [ROAD])) == [[0, 1, 2]]


def test_road_beyond_relevance_distance_is_ignored():
    a = _cand(0, 600, 300)
    b = _cand(1, 600, 500)
    assert nearest_relevant_road([a, b], [FAR_ROAD]) is None
    assert _ids(group_by_road_side([a, b], [FAR_ROAD])) == [[0, 1]]


def test_nearest_relevant_road_picks_closest():
    a = _cand(0, 600, 300)
    b = _cand(1, 600, 500)
    assert nearest_relevant_road([a, b], [FAR_ROAD, ROAD]) is ROAD
    assert nearest_relevant_road([a, b], []) is None


def test_segment_far_away_on_screen_does_not_split():
    offscreen = ProjectedRoad(
        road=ROAD.road, path=[(0.0, 2000.0), (1200.0, 2000.0)], anchor=(600.0, 2000.0)
    )
    a = _cand(0, 600, 300)
    b = _cand(1, 600, 500)
    assert same_side_of_road(a, b, offscreen)


def test_no_roads_returns_single_group():
    a = _cand(0, 600, 300)
    b = _cand(1, 600, 500)
    assert _ids(group_by_road_side([a, b], [])) == [[0, 1]]
