from __future__ import annotations

import pytest

from editor.overlays import OverlayState, wrap_degrees
from layers.types import EntityKey

POI = EntityKey.for_poi("bank", "n7")
CLUSTER = EntityKey.for_cluster("cluster_2")


def test_entity_keys_and_line_ids():
    assert POI.key == "bank-n7"
    assert POI.line_id == "poi:bank-n7"
    assert EntityKey.from_line_id("cluster:same_location_0") == EntityKey.for_cluster(
        "same_location_0"
    )
    assert EntityKey.from_line_id("poi:cafe-a:b").key == "cafe-a:b"
    with pytest.raises(ValueError):
        EntityKey.from_line_id("lake:1")


@pytest.mark.parametrize(
    "angle, expected",
    [(0, 0.0), (360, 0.0), (365, 5.0), (-5, 355.0), (-725, 355.0), (-1e-15, 0.0)],
)
def test_wrap_degrees(angle, expected):
    assert wrap_degrees(angle) == pytest.approx(expected)
    assert 0.0 <= wrap_degrees(angle) < 360.0


def test_sizes_are_clamped_per_kind():
    o = OverlayState()
    assert o.size(POI) == 40.0
    assert o.adjust_size(POI, 500) == 150.0
    assert o.adjust_size(CLUSTER, -500, base=90) == 40.0
    assert o.adjust_size(EntityKey.site(), 3, base=20) == 23.0
    assert o.clear_size(POI)
    assert not o.clear_size(POI)


def test_reshape_is_clamped_per_axis():
    o = OverlayState()
    assert o.adjust_reshape("cluster_2", d_width=1000) == (300.0, 0.0)
    assert o.adjust_reshape("cluster_2", d_height=-1000) == (300.0, -200.0)
    assert o.reshapes_payload() == {"cluster_2": {"widthAdd": 300.0, "heightAdd": -200.0}}


def test_clearing_position_drops_break_path():
    o = OverlayState()
    o.set_position(POI, 10, 20)
    assert o.set_break_path(POI, [(15, 25)])
    assert o.clear_position(POI)
    assert o.break_paths == {}
    assert not o.set_break_path(POI, [(15, 25)])


def test_empty_break_path_removes_entry():
    o = OverlayState()
    o.set_position(POI, 10, 20)
    o.set_break_path(POI, [(15, 25)])
    assert o.set_break_path(POI, [])
    assert o.break_paths == {}


def test_payloads_round_trip_through_load():
    o = OverlayState()
    o.set_position(POI, 10, 20)
    o.set_position(EntityKey.site(), 600, 380)
    o.set_break_path(POI, [(12, 22), (14, 24)])
    o.adjust_size(CLUSTER, 10, base=80)
    o.rotate("3", 15)
    o.adjust_reshape("cluster_2", d_width=20)

    payloads = {
        "dragged": o.dragged_payload(),
        "resized": o.resized_payload(),
        "rotations": o.rotations_payload(),
        "reshapes": o.reshapes_payload(),
        "breakpoints": o.breakpoints_payload(),
    }
    assert payloads["dragged"]["poi"] == {"bank-n7": [10.0, 20.0]}

    restored = OverlayState()
    restored.load_payloads(payloads)
    assert restored == o


def test_load_clamps_values_and_drops_orphan_paths():
    o = OverlayState()
    o.load_payloads(
        {
            "dragged": {"poi": {"bank-n7": [1, 2]}},
            "resized": {"poi:bank-n7": 9999, "road:0": 1},
            "rotations": {"0": 725},
            "reshapes": {"cluster_2": {"widthAdd": 999}},
            "breakpoints": {
                "poi:bank-n7": [[3, 4]],
                "cluster:cluster_2": [[5, 6]],
                "site:site": [],
            },
        }
    )
    assert o.sizes == {"poi:bank-n7": 150.0, "road:0": 8.0}
    assert o.rotations == {"0": 5.0}
    assert o.reshapes == {"cluster_2": (300.0, 0.0)}
    assert o.break_paths == {"poi:bank-n7": [(3.0, 4.0)]}


def test_load_only_replaces_present_kinds():
    o = OverlayState()
    o.set_position(POI, 10, 20)
    o.rotate("1", 30)
    o.load_payloads({"rotations": {"2": 45}})
    assert o.rotations == {"2": 45.0}
    assert o.position(POI) == (10.0, 20.0)

    # Replacing positions prunes paths of entities that are no longer dragged.
    o.set_break_path(POI, [(1, 1)])
    o.load_payloads({"dragged": {}})
    assert o.break_paths == {}
