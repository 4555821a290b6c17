from __future__ import annotations

from editor.modes import EditMode, ModeHandler
from layers.types import EntityKey

Point = tuple[float, float]


class DragMode(ModeHandler):
    mode = EditMode.DRAG
    label = "Drag"

    def __init__(self, host, notices):
        super().__init__(host, notices)
        self._pressed = False
        self._grab: Point = (0.0, 0.0)
        self.live: Point | None = None

    def enter(self) -> None:
        super().enter()
        self._release()

    def exit(self) -> None:
        super().exit()
        self._release()

    def _release(self) -> None:
        self._pressed = False
        self._grab = (0.0, 0.0)
        self.live = None

    def preview(self) -> tuple[EntityKey, Point] | None:
        if self.selected is None or self.live is None:
            return None
        return self.selected, self.live

    def on_pointer_down(self, x: float, y: float) -> None:
        target = self.pick(x, y)
        if target is None:
            self.notify("Nothing to drag here")
            return
        self.selected = target.entity
        self._pressed = True
        self._grab = (target.x - x, target.y - y)
        self.live = None

    def on_pointer_move(self, x: float, y: float) -> None:
        if not self._pressed or self.selected is None:
            return
        nx = x + self._grab[0]
        ny = y + self._grab[1]
        self.live = (
            max(0.0, min(float(self.host.width), nx)),
            max(0.0, min(float(self.host.height), ny)),
        )

    def on_pointer_up(self, x: float, y: float) -> None:
        if not self._pressed:
            return
        if self.selected is not None and self.live is not None:
            self.overlays.set_position(self.selected, *self.live)
            self.host.mark_changed("dragged")
        self._pressed = False
        self.live = None

    def on_secondary(self) -> None:
        self._release()
        super().on_secondary()

    def reset_selected(self) -> bool:
        if self.selected is None:
            return False
        had_path = bool(self.overlays.break_path(self.selected))
        if not self.overlays.clear_position(self.selected):
            return False
        self.host.mark_changed("dragged")
        if had_path:
            self.host.mark_changed("breakpoints")
        self.notify("Position reset to original")
        return True
