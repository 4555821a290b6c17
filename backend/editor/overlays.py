from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from layers.types import ENTITY_KINDS, EntityKey, EntityKind
from settings.types import EditorSettings, SizeBounds

Point = tuple[float, float]


def wrap_degrees(angle: float) -> float:
    wrapped = float(angle) % 360.0
    # -1e-15 % 360 rounds up to 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def clamp(value: float, lo: float, hi: float) -> float:
    return float(max(lo, min(hi, value)))


@dataclass
class OverlayState:
    """
    Every user override of an analysis, kept apart from the computed geometry.

    - positions: kind -> entity key -> overridden surface position (presence == dragged)
    - sizes: line id -> size value
    - rotations: road index key -> degrees in [0, 360)
    - reshapes: cluster id -> (width_add, height_add), each clamped
    - break_paths: line id -> ordered bend points; only kept for dragged entities
    """

    settings: EditorSettings = field(default_factory=EditorSettings)
    positions: dict[EntityKind, dict[str, Point]] = field(
        default_factory=lambda: {k: {} for k in ENTITY_KINDS}
    )
    sizes: dict[str, float] = field(default_factory=dict)
    rotations: dict[str, float] = field(default_factory=dict)
    reshapes: dict[str, tuple[float, float]] = field(default_factory=dict)
    break_paths: dict[str, list[Point]] = field(default_factory=dict)

    # Positions

    def position(self, entity: EntityKey) -> Point | None:
        return self.positions[entity.kind].get(entity.key)

    def is_dragged(self, entity: EntityKey) -> bool:
        return entity.key in self.positions[entity.kind]

    def set_position(self, entity: EntityKey, x: float, y: float) -> None:
        self.positions[entity.kind][entity.key] = (float(x), float(y))

    def clear_position(self, entity: EntityKey) -> bool:
        removed = self.positions[entity.kind].pop(entity.key, None) is not None
        # A break path has nothing to bend once the override is gone.
        self.break_paths.pop(entity.line_id, None)
        return removed

    # Sizes

    def size_bounds(self, kind: EntityKind) -> SizeBounds:
        s = self.settings
        return {
            "poi": s.poiSize,
            "cluster": s.clusterSize,
            "road": s.roadSize,
            "site": s.siteSize,
        }[kind]

    def size(self, entity: EntityKey, default: float | None = None) -> float:
        value = self.sizes.get(entity.line_id)
        if value is not None:
            return value
        return float(default) if default is not None else self.size_bounds(entity.kind).default

    def adjust_size(
        self, entity: EntityKey, delta: float, *, base: float | None = None
    ) -> float:
        bounds = self.size_bounds(entity.kind)
        value = clamp(self.size(entity, base) + delta, bounds.min, bounds.max)
        self.sizes[entity.line_id] = value
        return value

    def clear_size(self, entity: EntityKey) -> bool:
        return self.sizes.pop(entity.line_id, None) is not None

    # Rotations (roads only)

    def rotation(self, road_key: str) -> float:
        return self.rotations.get(road_key, 0.0)

    def rotate(self, road_key: str, delta_deg: float) -> float:
        value = wrap_degrees(self.rotation(road_key) + delta_deg)
        self.rotations[road_key] = value
        return value

    def clear_rotation(self, road_key: str) -> bool:
        return self.rotations.pop(road_key, None) is not None

    # Reshapes (clusters only)

    def reshape(self, cluster_id: str) -> tuple[float, float]:
        return self.reshapes.get(cluster_id, (0.0, 0.0))

    def adjust_reshape(
        self, cluster_id: str, *, d_width: float = 0.0, d_height: float = 0.0
    ) -> tuple[float, float]:
        lo, hi = self.settings.reshapeMin, self.settings.reshapeMax
        w, h = self.reshape(cluster_id)
        value = (clamp(w + d_width, lo, hi), clamp(h + d_height, lo, hi))
        self.reshapes[cluster_id] = value
        return value

    def clear_reshape(self, cluster_id: str) -> bool:
        return self.reshapes.pop(cluster_id, None) is not None

    # Break paths

    def break_path(self, entity: EntityKey) -> list[Point]:
        return list(self.break_paths.get(entity.line_id, []))

    def set_break_path(self, entity: EntityKey, points: list[Point]) -> bool:
        if not self.is_dragged(entity):
            return False
        if points:
            self.break_paths[entity.line_id] = [(float(x), float(y)) for x, y in points]
        else:
            self.break_paths.pop(entity.line_id, None)
        return True

    def clear_break_path(self, entity: EntityKey) -> bool:
        return self.break_paths.pop(entity.line_id, None) is not None

    def scale_positions(self, sx: float, sy: float) -> None:
        # Sizes, rotations and reshapes are icon-relative and stay as they are.
        self.positions = {
            kind: {k: (x * sx, y * sy) for k, (x, y) in entries.items()}
            for kind, entries in self.positions.items()
        }
        self.break_paths = {
            k: [(x * sx, y * sy) for x, y in pts] for k, pts in self.break_paths.items()
        }

    # Wire form, one payload per persisted overlay kind.

    def dragged_payload(self) -> dict[str, dict[str, list[float]]]:
        return {
            kind: {k: [p[0], p[1]] for k, p in entries.items()}
            for kind, entries in self.positions.items()
        }

    def resized_payload(self) -> dict[str, float]:
        return dict(self.sizes)

    def rotations_payload(self) -> dict[str, float]:
        return dict(self.rotations)

    def reshapes_payload(self) -> dict[str, dict[str, float]]:
        return {
            k: {"widthAdd": w, "heightAdd": h} for k, (w, h) in self.reshapes.items()
        }

    def breakpoints_payload(self) -> dict[str, list[list[float]]]:
        return {k: [[x, y] for x, y in pts] for k, pts in self.break_paths.items()}

    def load_payloads(self, payloads: dict[str, Any]) -> None:
        """
        Replace the overlay maps named in `payloads` by their stored form; kinds that are
        absent keep their current value.

        Values pass through the same clamping as live edits, and break paths of
        entities without a position override are dropped. A malformed payload raises
        before anything is replaced.
        """
        positions = self.positions
        if "dragged" in payloads:
            dragged = payloads.get("dragged") or {}
            positions = {
                kind: {
                    str(key): (float(pos[0]), float(pos[1]))
                    for key, pos in (dragged.get(kind) or {}).items()
                }
                for kind in ENTITY_KINDS
            }

        sizes = self.sizes
        if "resized" in payloads:
            sizes = {}
            for line_id, value in (payloads.get("resized") or {}).items():
                bounds = self.size_bounds(EntityKey.from_line_id(line_id).kind)
                sizes[line_id] = clamp(float(value), bounds.min, bounds.max)

        rotations = self.rotations
        if "rotations" in payloads:
            rotations = {
                str(k): wrap_degrees(float(v))
                for k, v in (payloads.get("rotations") or {}).items()
            }

        reshapes = self.reshapes
        if "reshapes" in payloads:
            lo, hi = self.settings.reshapeMin, self.settings.reshapeMax
            reshapes = {
                str(k): (
                    clamp(float(v.get("widthAdd", 0.0)), lo, hi),
                    clamp(float(v.get("heightAdd", 0.0)), lo, hi),
                )
                for k, v in (payloads.get("reshapes") or {}).items()
            }

        break_paths = self.break_paths
        if "breakpoints" in payloads:
            break_paths = {
                str(line_id): [(float(p[0]), float(p[1])) for p in pts]
                for line_id, pts in (payloads.get("breakpoints") or {}).items()
                if pts
            }

        def _dragged(line_id: str) -> bool:
            entity = EntityKey.from_line_id(line_id)
            return entity.key in positions[entity.kind]

        break_paths = {k: pts for k, pts in break_paths.items() if _dragged(k)}

        self.positions = positions
        self.sizes = sizes
        self.rotations = rotations
        self.reshapes = reshapes
        self.break_paths = break_paths
