from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable

from loguru import logger

from clustering.types import Candidate, Cluster, ClusterPhase, PoiRef
from geo.ops import centroid


@dataclass(frozen=True)
class SnapshotCluster:
    id: str
    members: tuple[PoiRef, ...]
    mean_x: float
    mean_y: float
    target_x: float
    target_y: float
    size: float
    phase: ClusterPhase

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pois": [
                {"category": m.category, "idx": m.index, "poiId": m.poi_id}
                for m in self.members
            ],
            "meanX": self.mean_x,
            "meanY": self.mean_y,
            "clusterX": self.target_x,
            "clusterY": self.target_y,
            "size": self.size,
            "phase": self.phase,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SnapshotCluster":
        return cls(
            id=str(data["id"]),
            members=tuple(
                PoiRef(
                    category=str(p["category"]),
                    index=int(p["idx"]),
                    poi_id=str(p["poiId"]),
                )
                for p in data.get("pois") or []
            ),
            mean_x=float(data["meanX"]),
            mean_y=float(data["meanY"]),
            target_x=float(data["clusterX"]),
            target_y=float(data["clusterY"]),
            size=float(data.get("size") or 80.0),
            phase=data.get("phase") or "100m",
        )

    def scaled(self, sx: float, sy: float) -> "SnapshotCluster":
        return replace(
            self,
            mean_x=self.mean_x * sx,
            mean_y=self.mean_y * sy,
            target_x=self.target_x * sx,
            target_y=self.target_y * sy,
        )


@dataclass(frozen=True)
class ClusterSnapshot:
    clusters: tuple[SnapshotCluster, ...]

    @classmethod
    def of(cls, clusters: list[Cluster]) -> "ClusterSnapshot":
        return cls(
            clusters=tuple(
                SnapshotCluster(
                    id=c.id,
                    members=tuple(c.members),
                    mean_x=c.mean_x,
                    mean_y=c.mean_y,
                    target_x=c.target_x,
                    target_y=c.target_y,
                    size=c.size,
                    phase=c.phase,
                )
                for c in clusters
            )
        )

    def to_dict(self) -> dict[str, Any]:
        return {"clusters": [c.to_dict() for c in self.clusters]}

    def scaled(self, sx: float, sy: float) -> "ClusterSnapshot":
        return ClusterSnapshot(clusters=tuple(c.scaled(sx, sy) for c in self.clusters))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClusterSnapshot":
        return cls(
            clusters=tuple(
                SnapshotCluster.from_dict(c) for c in (data or {}).get("clusters") or []
            )
        )


@dataclass(frozen=True)
class LiveLayout:
    clusters: list[Cluster]
    singletons: list[Candidate]


ComputeFn = Callable[[list[Candidate]], list[Cluster]]


class ClusterAssignmentStore:
    """
    Holds the one-and-only clustering result of an analysis.

    The first `compute_or_restore` call clusters and freezes membership; every later
    call filters the frozen clusters to the current selection and only recomputes
    centroids. Target position, size and phase stay as frozen.
    """

    def __init__(self, snapshot: ClusterSnapshot | None = None):
        self.snapshot = snapshot

    @property
    def is_frozen(self) -> bool:
        return self.snapshot is not None

    def reset(self) -> None:
        self.snapshot = None

    def rescale(self, sx: float, sy: float) -> None:
        """
        Follow a surface resize: frozen positions scale with the surface, membership
        and size do not.
        """
        if self.snapshot is not None:
            self.snapshot = self.snapshot.scaled(sx, sy)

    def compute_or_restore(
        self, selected: list[Candidate], compute: ComputeFn
    ) -> LiveLayout:
        """
        `selected` is every currently selected POI (fetch order, with surface positions);
        `compute` runs the clustering engine on the clusterable subset.
        """
        if self.snapshot is None:
            clusterable = [c for c in selected if not c.poi.prevent_clustering]
            self.snapshot = ClusterSnapshot.of(compute(clusterable))
            logger.info(f"Froze {len(self.snapshot.clusters)} cluster assignments")
        return self.restore(selected)

    def restore(self, selected: list[Candidate]) -> LiveLayout:
        if self.snapshot is None:
            raise RuntimeError("restore() called before clusters were computed")

        by_ref = {(c.ref.category, c.ref.index): c for c in selected}
        in_cluster: set[tuple[str, int]] = set()
        live: list[Cluster] = []
        for saved in self.snapshot.clusters:
            available = [
                by_ref[(m.category, m.index)]
                for m in saved.members
                if (m.category, m.index) in by_ref
                and by_ref[(m.category, m.index)].poi.id == m.poi_id
            ]
            if len(available) < 2:
                continue
            mx, my = centroid((a.x, a.y) for a in available)
            live.append(
                Cluster(
                    id=saved.id,
                    members=[a.ref for a in available],
                    mean_x=mx,
                    mean_y=my,
                    target_x=saved.target_x,
                    target_y=saved.target_y,
                    size=saved.size,
                    phase=saved.phase,
                    names=[a.poi.name for a in available],
                )
            )
            in_cluster.update((a.ref.category, a.ref.index) for a in available)

        singletons = [
            c for c in selected if (c.ref.category, c.ref.index) not in in_cluster
        ]
        return LiveLayout(clusters=live, singletons=singletons)
