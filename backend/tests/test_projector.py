from __future__ import annotations

import pytest

from geo.aoi import BBox
from geo.projector import Projector
from layers.errors import ProjectionError


def _projector(width: float = 1200, height: float = 800) -> Projector:
    return Projector(
        bbox=BBox(min_lon=14.0, min_lat=50.0, max_lon=14.2, max_lat=50.1),
        width=width,
        height=height,
    )


def test_corners_map_to_surface_corners():
    p = _projector()
    assert p.project(50.1, 14.0) == pytest.approx((0.0, 0.0))
    assert p.project(50.0, 14.2) == pytest.approx((1200.0, 800.0))
    assert p.project(50.05, 14.1) == pytest.approx((600.0, 400.0))


def test_projection_is_monotonic():
    p = _projector()
    west_to_east = [14.0, 14.01, 14.05, 14.05, 14.13, 14.2]
    xs = [p.project(50.05, lon)[0] for lon in west_to_east]
    assert xs == sorted(xs)

    north_to_south = [50.1, 50.09, 50.07, 50.02, 50.0]
    ys = [p.project(lat, 14.1)[1] for lat in north_to_south]
    assert ys == sorted(ys)


def test_unproject_inverts_project():
    p = _projector()
    lat, lon = p.unproject(*p.project(50.0321, 14.1234))
    assert lat == pytest.approx(50.0321)
    assert lon == pytest.approx(14.1234)


def test_resized_projector_rescales_positions():
    p = _projector()
    x, y = p.project(50.025, 14.05)
    bigger = p.resized(2400, 1600)
    assert bigger.project(50.025, 14.05) == pytest.approx((2 * x, 2 * y))
    # The original projector is untouched.
    assert p.width == 1200


def test_inverted_rectangle_is_normalized():
    p = Projector(
        bbox=BBox(min_lon=14.2, min_lat=50.1, max_lon=14.0, max_lat=50.0),
        width=100,
        height=100,
    )
    assert p.project(50.1, 14.0) == pytest.approx((0.0, 0.0))


def test_degenerate_inputs_raise():
    with pytest.raises(ProjectionError):
        Projector(
            bbox=BBox(min_lon=14.0, min_lat=50.0, max_lon=14.0, max_lat=50.1),
            width=100,
            height=100,
        )
    with pytest.raises(ValueError):
        _projector(width=0)


def test_clamp_and_contains():
    p = _projector()
    assert p.clamp(-10, 900, margin=20) == (20.0, 780.0)
    assert p.contains(600, 400)
    assert not p.contains(5, 400, margin=10)


def test_bbox_around_pads_radius():
    b = BBox.around(50.0, 14.0, 1.0)
    lat_span = (b.max_lat - b.min_lat) / 2.0
    # 1 mile = 1.60934 km; 111.32 km per degree of latitude; 10% padding.
    assert lat_span == pytest.approx(1.60934 / 111.32 * 1.10)
    assert b.center() == pytest.approx((50.0, 14.0))
    # Longitude degrees are shorter at 50N, so the box is wider in degrees.
    assert (b.max_lon - b.min_lon) > (b.max_lat - b.min_lat)
