from __future__ import annotations

import pytest

from render.grid import GRID_PADDING_PX, MIN_LOGO_PX, cluster_box, grid_shape


@pytest.mark.parametrize(
    "count, expected",
    [(1, (1, 1)), (2, (2, 1)), (4, (2, 2)), (5, (3, 2)), (9, (3, 3))],
)
def test_balanced_grid(count, expected):
    assert grid_shape(count, 0, 0) == expected


def test_width_growth_adds_columns():
    cols, rows = grid_shape(4, 200, 0)
    assert (cols, rows) == (4, 1)


def test_height_growth_adds_rows():
    cols, rows = grid_shape(4, 0, 200)
    assert (cols, rows) == (1, 4)


def test_cluster_box_dimensions_follow_reshape():
    box = cluster_box(4, size=80)
    assert (box.width, box.height) == (120.0, 96.0)
    assert (box.cols, box.rows) == (2, 2)
    assert len(box.cells) == 4

    wide = cluster_box(4, size=80, width_add=100, height_add=-20)
    assert (wide.width, wide.height) == (220.0, 76.0)
    assert wide.cols > wide.rows


def test_cells_are_centred_and_fit_box():
    box = cluster_box(3, size=80)
    xs = [x for x, _ in box.cells]
    assert min(xs) + box.logo_size / 2 >= -box.width / 2
    assert max(xs) - box.logo_size / 2 <= box.width / 2
    row0 = box.cells[:2]
    assert row0[0][0] == pytest.approx(-row0[1][0])
    assert row0[1][0] - row0[0][0] == pytest.approx(box.logo_size + GRID_PADDING_PX)


def test_logo_has_minimum_size():
    box = cluster_box(30, size=40)
    assert box.logo_size >= 20.0


def test_shrunk_box_keeps_room_for_one_logo():
    box = cluster_box(3, size=40, width_add=-200, height_add=-200)
    floor = MIN_LOGO_PX + 2 * GRID_PADDING_PX
    assert (box.width, box.height) == (floor, floor)
    assert box.logo_size >= MIN_LOGO_PX

    narrow = cluster_box(2, size=40, width_add=-200)
    assert narrow.width == floor
    assert narrow.height == pytest.approx(48.0)
