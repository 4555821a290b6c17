from __future__ import annotations

from enum import Enum
from typing import Literal, Protocol

from editor.events import Notice
from editor.hit_test import ConnectorLine, HitTarget, pick_target
from editor.overlays import OverlayState
from layers.types import EntityKey
from settings.types import EditorSettings

OverlayKind = Literal[
    "dragged", "resized", "rotations", "reshapes", "breakpoints", "selection"
]


class EditMode(str, Enum):
    IDLE = "idle"
    DRAG = "drag"
    RESIZE = "resize"
    ROTATE = "rotate"
    RESHAPE = "reshape"
    BREAK_LINES = "break_lines"


class EditorHost(Protocol):
    """
    What a mode handler needs from the analysis it edits.
    """

    overlays: OverlayState
    editor_settings: EditorSettings
    width: float
    height: float

    def hit_targets(self) -> list[HitTarget]: ...

    def connector_lines(self) -> list[ConnectorLine]: ...

    def base_size(self, entity: EntityKey) -> float: ...

    def mark_changed(self, kind: OverlayKind) -> None: ...


class ModeHandler:
    """
    Base for one edit mode. Input only reaches a handler between `enter()` and `exit()`.

    Subclasses override the `on_*` hooks they care about and `reset_selected()` for the
    Escape behaviour; everything else is a no-op.
    """

    mode: EditMode = EditMode.IDLE
    label: str = "Idle"

    def __init__(self, host: EditorHost, notices: list[Notice]):
        self.host = host
        self.notices = notices
        self.active = False
        self.selected: EntityKey | None = None

    @property
    def settings(self) -> EditorSettings:
        return self.host.editor_settings

    @property
    def overlays(self) -> OverlayState:
        return self.host.overlays

    def notify(self, message: str, level: Literal["info", "warning"] = "info") -> None:
        self.notices.append(Notice(level=level, message=message))

    def enter(self) -> None:
        self.active = True
        self.selected = None

    def exit(self) -> None:
        self.active = False
        self.selected = None

    def pick(self, x: float, y: float) -> HitTarget | None:
        return pick_target(
            self.host.hit_targets(), x, y, radius=self.settings.hitRadiusPx
        )

    def on_pointer_down(self, x: float, y: float) -> None:
        pass

    def on_pointer_move(self, x: float, y: float) -> None:
        pass

    def on_pointer_up(self, x: float, y: float) -> None:
        pass

    def on_wheel(self, delta_y: float) -> None:
        pass

    def on_key(self, key: str) -> None:
        pass

    def on_secondary(self) -> None:
        if self.selected is not None:
            self.selected = None
            self.notify(f"{self.label}: selection released")

    def reset_selected(self) -> bool:
        """
        Drop the selected element's overlay for this mode. Returns True if anything changed.
        """
        return False


def step_from_wheel(delta_y: float, step: float) -> float:
    if delta_y == 0:
        return 0.0
    return -step if delta_y > 0 else step


def step_from_key(key: str, step: float) -> float:
    if key in ("+", "="):
        return step
    if key in ("-", "_"):
        return -step
    return 0.0
