from __future__ import annotations

import pytest

from editor.events import KeyEvent, PointerEvent, WheelEvent
from editor.modes import EditMode
from geo.aoi import BBox
from geo.ops import offset_point
from layers.types import AnalysisData, EntityKey, Poi, Road, SiteMarker
from persistence.singleton import get_store, reset_store
from render.scene import build_scene
from session.context import AnalysisSession

SITE = (50.0, 14.0)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def _at(azimuth: float, meters: float) -> tuple[float, float]:
    return offset_point(*SITE, azimuth_deg=azimuth, meters=meters)


def _data() -> AnalysisData:
    cafes = [
        (_at(90.0, 1000.0), "Corner Cafe", "https://example.com/a.png"),
        (_at(90.0, 1050.0), "Bean Bar", None),
        (_at(0.0, 1000.0), "Hilltop Coffee", "https://example.com/c.png"),
    ]
    pois = [
        Poi(id=f"n{i}", name=name, lat=lat, lon=lon, category="coffee_shop", logo_url=logo)
        for i, ((lat, lon), name, logo) in enumerate(cafes)
    ]
    # North-south road 1.2 km west of the site.
    road_coords = []
    for north in (-500.0, 0.0, 500.0):
        lat, lon = offset_point(*_at(270.0, 1200.0), azimuth_deg=0.0, meters=north)
        road_coords.append((lon, lat))
    return AnalysisData(
        site=SiteMarker(lat=SITE[0], lon=SITE[1], address="1 Main St"),
        bbox=BBox.around(SITE[0], SITE[1], 1.0),
        pois_by_category={"coffee_shop": pois},
        roads=[Road(index=0, id="way/1", name="Route 9", type="primary", coords=road_coords)],
    )


@pytest.fixture()
def store(tmp_path, monkeypatch):
    monkeypatch.setenv("POI_LAYOUT_STORE_PATH", str(tmp_path / "layout.duckdb"))
    monkeypatch.setenv("POI_LAYOUT_PERSIST", "1")
    reset_store()
    yield get_store()
    reset_store()


def _target(session: AnalysisSession, kind: str):
    return next(t for t in session.hit_targets() if t.entity.kind == kind)


def _press(session, x, y, *, to=None):
    session.dispatch(PointerEvent("down", x, y))
    if to is not None:
        session.dispatch(PointerEvent("move", *to))
        x, y = to
    session.dispatch(PointerEvent("up", x, y))


def _edit(session: AnalysisSession) -> None:
    c = session.controller

    poi = _target(session, "poi")
    c.enter(EditMode.DRAG)
    _press(session, poi.x, poi.y, to=(poi.x + 100, poi.y + 50))
    c.exit()

    cluster = _target(session, "cluster")
    c.enter(EditMode.RESIZE)
    _press(session, cluster.x, cluster.y)
    session.dispatch(WheelEvent(delta_y=-1))
    c.exit()

    road = _target(session, "road")
    c.enter(EditMode.ROTATE)
    _press(session, road.x, road.y)
    session.dispatch(KeyEvent("+"))
    c.exit()

    c.enter(EditMode.RESHAPE)
    _press(session, cluster.x, cluster.y)
    session.dispatch(KeyEvent("ArrowRight"))
    c.exit()

    c.enter(EditMode.BREAK_LINES)
    mid = (poi.x + 50, poi.y + 25)
    _press(session, *mid)
    _press(session, *mid)
    c.exit()


def test_layout_of_fixture_data():
    session = AnalysisSession("a1", _data())
    layout = session.layout()
    assert [[m.index for m in cl.members] for cl in layout.clusters] == [[0, 1]]
    assert [s.ref.index for s in layout.singletons] == [2]
    kinds = sorted(t.entity.kind for t in session.hit_targets())
    assert kinds == ["cluster", "poi", "road", "site"]


def test_edits_persist_and_restore_identically(store):
    clock = FakeClock()
    session = AnalysisSession("a1", _data(), store=store, clock=clock)
    session.layout()
    session.save()

    _edit(session)
    state = session.to_state()
    poi_key = EntityKey.for_poi("coffee_shop", "n2")
    assert poi_key.key in state["dragged"]["poi"]
    assert state["rotations"] == {"0": 5.0}
    assert state["reshapes"] == {"cluster_0": {"widthAdd": 10.0, "heightAdd": 0.0}}
    assert state["resized"] == {"cluster:cluster_0": 85.0}
    assert list(state["breakpoints"]) == [poi_key.line_id]

    # Nothing is due yet on the fake clock; flushing writes every pending kind.
    assert store.read("a1")["rotations"] == {}
    assert sorted(session.flush()) == ["breakpoints", "dragged", "reshapes", "resized", "rotations"]

    restored = AnalysisSession.from_state("a1", store.read("a1"), store=store)
    assert restored.to_state() == state
    assert build_scene(restored) == build_scene(session)


def test_pump_writes_after_debounce(store):
    clock = FakeClock()
    session = AnalysisSession("a2", _data(), store=store, clock=clock)
    session.layout()
    session.save()

    session.controller.enter(EditMode.ROTATE)
    road = _target(session, "road")
    _press(session, road.x, road.y)
    session.dispatch(WheelEvent(delta_y=-1))
    assert store.read("a2")["rotations"] == {}

    clock.now = 1.0
    session.dispatch(KeyEvent("+"))
    clock.now = 2.5
    session.dispatch(KeyEvent("noop"))
    assert store.read("a2")["rotations"] == {"0": 10.0}


def test_selection_restore_keeps_frozen_clusters(store):
    session = AnalysisSession("a3", _data(), store=store)
    before = session.layout()
    session.save()
    session.set_poi_selected("coffee_shop", 1, False)
    session.flush()

    restored = AnalysisSession.from_state("a3", store.read("a3"), store=store)
    assert restored.poi_selected == {"coffee_shop": [True, False, True]}
    assert restored.layout().clusters == []
    restored.set_poi_selected("coffee_shop", 1, True)
    (cluster,) = restored.layout().clusters
    assert cluster.target == before.clusters[0].target


def test_resize_surface_rescales_frozen_targets_and_overrides(store):
    session = AnalysisSession("a4", _data(), store=store)
    before = session.layout().clusters[0]
    session.save()
    site = EntityKey.site()
    session.overlays.set_position(site, 700.0, 450.0)
    session.overlays.set_break_path(site, [(650.0, 420.0)])
    site_x, site_y = session.site_position()

    session.resize_surface(600, 400)
    assert session.site_position() == pytest.approx((site_x / 2, site_y / 2))
    (cluster,) = session.layout().clusters
    assert cluster.target == pytest.approx((before.target_x / 2, before.target_y / 2))
    assert (cluster.mean_x, cluster.mean_y) == pytest.approx((before.mean_x / 2, before.mean_y / 2))
    assert session.overlays.position(site) == (350.0, 225.0)
    assert session.overlays.break_path(site) == [(325.0, 210.0)]

    restored = AnalysisSession.from_state("a4", store.read("a4"), store=store)
    assert (restored.width, restored.height) == (600.0, 400.0)
    assert restored.to_state() == session.to_state()


def test_resize_to_same_size_writes_nothing(store):
    session = AnalysisSession("a6", _data(), store=store)
    session.layout()
    session.save()
    saved = store.read("a6")
    session.overlays.set_position(EntityKey.site(), 700.0, 450.0)
    session.resize_surface(1200, 800)
    assert store.read("a6") == saved


def test_added_poi_stays_individual_and_is_saved(store):
    session = AnalysisSession("a7", _data(), store=store)
    frozen = session.layout().clusters
    session.save()

    # Right next to the clustered cafes, yet never merged into their cluster.
    lat, lon = _at(90.0, 1020.0)
    ref = session.add_poi(Poi(id="s1", name="Aldi", lat=lat, lon=lon, category="other"))
    assert (ref.category, ref.index) == ("other", 0)

    layout = session.layout()
    assert layout.clusters == frozen
    assert [(s.ref.category, s.poi.name) for s in layout.singletons] == [
        ("coffee_shop", "Hilltop Coffee"),
        ("other", "Aldi"),
    ]
    assert session.poi(ref).prevent_clustering is True

    stored = store.read("a7")
    assert stored["data"]["pois"]["other"][0]["preventClustering"] is True
    assert stored["selection"]["pois"]["other"] == [True]
    restored = AnalysisSession.from_state("a7", stored, store=store)
    assert restored.layout().clusters == frozen


def test_scene_contents():
    session = AnalysisSession("a5", _data())
    scene = build_scene(session)
    names = [t["name"] for t in scene["data"]]
    assert names == ["Roads", "POIs", "cluster_0"]
    stats = scene["layout"]["meta"]["stats"]
    assert stats["clusters"] == 1
    assert stats["clusteredPois"] == 2
    assert stats["individualPois"] == 1
    assert stats["mode"] == "idle"
    assert scene["layout"]["yaxis"]["range"] == [800.0, 0]
    # Only the cluster member and singleton that have a logo get an image.
    assert sorted(i["source"] for i in scene["layout"]["images"]) == [
        "https://example.com/a.png",
        "https://example.com/c.png",
    ]
    assert [s["name"] for s in scene["layout"]["shapes"]] == ["cluster:cluster_0", "site:site"]
