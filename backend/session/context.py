from __future__ import annotations

import dataclasses
import threading
from typing import Any, Callable, Iterable

from loguru import logger

from clustering.engine import compute_clusters
from clustering.overlap import SiteObstacle, collides, find_safe_position
from clustering.snapshot import ClusterAssignmentStore, ClusterSnapshot, LiveLayout
from clustering.types import Candidate, Cluster, PoiRef, ProjectedRoad
from editor.controller import EditModeController
from editor.events import InputEvent, Notice
from editor.hit_test import ConnectorLine, HitTarget
from editor.modes import OverlayKind
from editor.overlays import OverlayState
from geo.projector import Projector
from layers.types import ENTITY_KINDS, AnalysisData, EntityKey, Poi
from persistence.codec import decode_data, decode_selection, encode_data, encode_selection
from persistence.store import STATE_KINDS, OverlayStore
from persistence.write_behind import WriteBehindQueue
from settings.types import EditorSettings, LayoutSettings

Point = tuple[float, float]


class AnalysisSession:
    """
    The single owner of one analysis' mutable state.

    Data records are read-only; the projector is replaced on surface resize; clusters
    are computed once through the assignment store; overlays change only through the
    edit controller (or a wholesale restore) and reach the store via the write-behind
    queue.

    `lock` serializes every mutation; request handlers and the background writer
    hold it for their whole step.
    """

    def __init__(
        self,
        analysis_id: str,
        data: AnalysisData,
        *,
        settings: LayoutSettings | None = None,
        width: float | None = None,
        height: float | None = None,
        store: OverlayStore | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.analysis_id = str(analysis_id)
        self.lock = threading.RLock()
        self.data = data
        self.settings = settings or LayoutSettings()
        self.projector = Projector(
            bbox=data.bbox,
            width=float(width or self.settings.surface.width),
            height=float(height or self.settings.surface.height),
        )
        self.poi_selected: dict[str, list[bool]] = {
            cat: [True] * len(pois) for cat, pois in data.pois_by_category.items()
        }
        self.road_selected: list[bool] = [True] * len(data.roads)
        self.cluster_store = ClusterAssignmentStore()
        self.overlays = OverlayState(settings=self.settings.editor)
        self.store = store
        self.queue: WriteBehindQueue | None = None
        if store is not None:
            persistence = self.settings.persistence
            kwargs: dict[str, Any] = {}
            if clock is not None:
                kwargs["clock"] = clock
            self.queue = WriteBehindQueue(
                lambda kind, payload: store.write(self.analysis_id, kind, payload),
                debounce_seconds=persistence.debounceSeconds,
                default_seconds=persistence.defaultDebounceSeconds,
                **kwargs,
            )
        self.controller = EditModeController(self)

    # Surface

    @property
    def width(self) -> float:
        return self.projector.width

    @property
    def height(self) -> float:
        return self.projector.height

    @property
    def editor_settings(self) -> EditorSettings:
        return self.settings.editor

    def resize_surface(self, width: float, height: float) -> None:
        """
        Re-project onto a new surface size.

        Membership stays frozen; frozen cluster targets, position overrides and bend
        points scale with the surface. The new size and the scaled positions are
        written together, so a restore never mixes two surface sizes.
        """
        with self.lock:
            old_w, old_h = self.width, self.height
            self.projector = self.projector.resized(float(width), float(height))
            sx, sy = self.width / old_w, self.height / old_h
            if sx == 1.0 and sy == 1.0:
                return
            self.cluster_store.rescale(sx, sy)
            self.overlays.scale_positions(sx, sy)
            logger.info(
                f"Analysis {self.analysis_id}: surface {old_w:.0f}x{old_h:.0f} -> "
                f"{self.width:.0f}x{self.height:.0f}"
            )
            self.save(("data", "clusters", "dragged", "breakpoints"))

    # Data views

    def poi(self, ref: PoiRef) -> Poi:
        return self.data.pois_by_category[ref.category][ref.index]

    def candidates(self) -> list[Candidate]:
        """
        Currently selected POIs in fetch order, with their projected surface position.
        """
        out: list[Candidate] = []
        for cat, pois in self.data.pois_by_category.items():
            flags = self.poi_selected.get(cat) or []
            for i, p in enumerate(pois):
                if i < len(flags) and not flags[i]:
                    continue
                x, y = self.projector.project(p.lat, p.lon)
                out.append(
                    Candidate(ref=PoiRef(category=cat, index=i, poi_id=p.id), poi=p, x=x, y=y)
                )
        return out

    def projected_roads(self) -> list[ProjectedRoad]:
        out: list[ProjectedRoad] = []
        for r in self.data.roads:
            if r.index < len(self.road_selected) and not self.road_selected[r.index]:
                continue
            if len(r.coords) < 2:
                continue
            lon, lat = r.label_anchor()
            out.append(
                ProjectedRoad(
                    road=r,
                    path=self.projector.project_path(r.coords),
                    anchor=self.projector.project(lat, lon),
                )
            )
        return out

    def site_position(self) -> Point:
        return self.projector.project(self.data.site.lat, self.data.site.lon)

    def site_radius(self) -> float:
        return self.overlays.size(EntityKey.site(), self.data.site.radius)

    def site_obstacle(self) -> SiteObstacle:
        x, y = self.site_position()
        return SiteObstacle(x=x, y=y, radius=self.site_radius())

    # Clustering

    def _compute(self, clusterable: list[Candidate]) -> list[Cluster]:
        return compute_clusters(
            clusterable,
            self.projected_roads(),
            width=self.width,
            height=self.height,
            site=self.site_obstacle(),
            clustering=self.settings.clustering,
            overlap=self.settings.overlap,
        )

    def layout(self) -> LiveLayout:
        return self.cluster_store.compute_or_restore(self.candidates(), self._compute)

    def set_poi_selected(self, category: str, index: int, selected: bool) -> None:
        flags = self.poi_selected[category]
        if not (0 <= index < len(flags)):
            raise IndexError(f"No POI {index} in category {category!r}")
        flags[index] = bool(selected)
        self.mark_changed("selection")

    def set_road_selected(self, index: int, selected: bool) -> None:
        if not (0 <= index < len(self.road_selected)):
            raise IndexError(f"No road {index}")
        self.road_selected[index] = bool(selected)
        self.mark_changed("selection")

    def add_poi(self, poi: Poi) -> PoiRef:
        """
        Append a POI (e.g. a search result) once clustering is frozen.

        The POI is selected, never joins a cluster and is drawn as an individual
        POI. Data and selection are written right away.
        """
        with self.lock:
            self.layout()
            poi = dataclasses.replace(poi, prevent_clustering=True)
            pois = [*self.data.pois_by_category.get(poi.category, []), poi]
            self.data = dataclasses.replace(
                self.data,
                pois_by_category={**self.data.pois_by_category, poi.category: pois},
            )
            self.poi_selected.setdefault(poi.category, []).append(True)
            self.save(("data", "selection"))
            logger.info(f"Analysis {self.analysis_id}: added {poi.name} to {poi.category}")
            return PoiRef(category=poi.category, index=len(pois) - 1, poi_id=poi.id)

    # Placement

    def _singleton_origin(self, c: Candidate, anchors: list[Point], site: SiteObstacle) -> Point:
        radius = self.overlays.size(EntityKey.for_poi(c.ref.category, c.poi.id)) / 2.0
        if not collides(c.x, c.y, radius, road_anchors=anchors, site=site):
            return c.x, c.y
        x, y, _ = find_safe_position(
            c.x,
            c.y,
            radius,
            road_anchors=anchors,
            site=site,
            width=self.width,
            height=self.height,
        )
        return x, y

    def original_positions(self, layout: LiveLayout | None = None) -> dict[EntityKey, Point]:
        """
        Computed (pre-override) position of every element currently on the surface.
        """
        layout = layout or self.layout()
        roads = self.projected_roads()
        anchors = [r.anchor for r in roads]
        site = self.site_obstacle()

        out: dict[EntityKey, Point] = {EntityKey.site(): (site.x, site.y)}
        for c in layout.clusters:
            out[EntityKey.for_cluster(c.id)] = c.target
        for s in layout.singletons:
            key = EntityKey.for_poi(s.ref.category, s.poi.id)
            out[key] = self._singleton_origin(s, anchors, site)
        for r in roads:
            out[EntityKey.for_road(r.road.index)] = r.anchor
        return out

    def rendered_position(self, entity: EntityKey, original: Point) -> Point:
        return self.overlays.position(entity) or original

    # EditorHost

    def hit_targets(self) -> list[HitTarget]:
        layout = self.layout()
        originals = self.original_positions(layout)
        sizes = {EntityKey.for_cluster(c.id): c.size for c in layout.clusters}
        out: list[HitTarget] = []
        for entity, origin in originals.items():
            x, y = self.rendered_position(entity, origin)
            size = self.overlays.size(entity, sizes.get(entity) or self.base_size(entity))
            if entity.kind == "site":
                size = size * 2.0
            out.append(HitTarget(entity=entity, x=x, y=y, size=size))
        return out

    def connector_lines(self) -> list[ConnectorLine]:
        originals = self.original_positions()
        out: list[ConnectorLine] = []
        for kind in ENTITY_KINDS:
            for key, end in self.overlays.positions[kind].items():
                entity = EntityKey(kind=kind, key=key)
                start = originals.get(entity)
                if start is None:
                    continue
                out.append(
                    ConnectorLine(
                        entity=entity,
                        start=start,
                        end=end,
                        bends=tuple(self.overlays.break_path(entity)),
                    )
                )
        return out

    def base_size(self, entity: EntityKey) -> float:
        if entity.kind == "cluster":
            for c in self.layout().clusters:
                if c.id == entity.key:
                    return c.size
            return self.settings.clustering.defaultClusterSize
        if entity.kind == "site":
            return self.data.site.radius
        return self.overlays.size_bounds(entity.kind).default

    def mark_changed(self, kind: OverlayKind) -> None:
        if self.queue is None:
            return
        self.queue.schedule(kind, lambda k=kind: self.payload(k))

    # Editing

    def dispatch(self, event: InputEvent) -> list[Notice]:
        with self.lock:
            self.controller.dispatch(event)
            if self.queue is not None:
                self.queue.pump()
            return self.controller.drain_notices()

    def pump(self) -> list[str]:
        """
        Write every overlay kind whose debounce has run out.
        """
        with self.lock:
            return self.queue.pump() if self.queue is not None else []

    def flush(self) -> list[str]:
        with self.lock:
            return self.queue.flush() if self.queue is not None else []

    # Persistence

    def payload(self, kind: str) -> Any:
        if kind == "data":
            return {
                **encode_data(self.data),
                "surface": {"width": self.width, "height": self.height},
            }
        if kind == "clusters":
            if self.cluster_store.snapshot is None:
                self.layout()
            return self.cluster_store.snapshot.to_dict()
        if kind == "dragged":
            return self.overlays.dragged_payload()
        if kind == "resized":
            return self.overlays.resized_payload()
        if kind == "rotations":
            return self.overlays.rotations_payload()
        if kind == "reshapes":
            return self.overlays.reshapes_payload()
        if kind == "breakpoints":
            return self.overlays.breakpoints_payload()
        if kind == "selection":
            return encode_selection(self.poi_selected, self.road_selected)
        raise ValueError(f"Unknown state kind: {kind}")

    def to_state(self) -> dict[str, Any]:
        return {kind: self.payload(kind) for kind in STATE_KINDS}

    def save(self, kinds: Iterable[str] | None = None) -> None:
        """
        Write `kinds` (default: the full state) now, dropping their pending writes.
        """
        if self.store is None:
            return
        with self.lock:
            kinds = list(STATE_KINDS if kinds is None else kinds)
            for kind in kinds:
                if self.queue is not None:
                    self.queue.cancel(kind)
                self.store.write(self.analysis_id, kind, self.payload(kind))

    def apply_state(self, state: dict[str, Any]) -> None:
        """
        Replace selection, overlays and (if present) the frozen clusters from stored
        payloads, leaving the fetched data untouched.
        """
        if "selection" in state:
            self.poi_selected, self.road_selected = decode_selection(
                state.get("selection"), self.data
            )
        if state.get("clusters") is not None:
            self.cluster_store = ClusterAssignmentStore(
                ClusterSnapshot.from_dict(state["clusters"])
            )
        self.overlays.load_payloads(state)

    @classmethod
    def from_state(
        cls,
        analysis_id: str,
        state: dict[str, Any],
        *,
        settings: LayoutSettings | None = None,
        store: OverlayStore | None = None,
        clock: Callable[[], float] | None = None,
    ) -> "AnalysisSession":
        data_payload = state["data"]
        surface = data_payload.get("surface") or {}
        session = cls(
            analysis_id,
            decode_data(data_payload),
            settings=settings,
            width=surface.get("width"),
            height=surface.get("height"),
            store=store,
            clock=clock,
        )
        session.apply_state(state)
        frozen = session.cluster_store.snapshot
        logger.info(
            f"Restored analysis {analysis_id} "
            f"({len(frozen.clusters) if frozen is not None else 0} frozen clusters)"
        )
        return session
