from __future__ import annotations

from editor.hit_test import ConnectorLine, insertion_index, pick_bend_point, pick_line
from editor.modes import EditMode, ModeHandler
from editor.overlays import OverlayState
from layers.types import EntityKey

Point = tuple[float, float]

# Extra grab slack around a bend point's drawn radius.
_GRAB_SLACK_PX = 5.0
_NOT_DRAGGED = "Drag this element first; only moved elements have a line to break"


class BreakPathEditor:
    """
    Bend-point edits on the connector of a dragged entity.

    Every method is a no-op (returning False) for an entity without a position
    override; in particular no empty path entry is ever created for it.
    """

    def __init__(self, overlays: OverlayState):
        self.overlays = overlays

    def insert_bend_point(
        self, entity: EntityKey, x: float, y: float, *, start: Point, end: Point
    ) -> bool:
        if not self.overlays.is_dragged(entity):
            return False
        bends = self.overlays.break_path(entity)
        index = insertion_index([start, *bends, end], x, y)
        bends.insert(max(index, 0), (float(x), float(y)))
        return self.overlays.set_break_path(entity, bends)

    def move_bend_point(self, entity: EntityKey, index: int, x: float, y: float) -> bool:
        bends = self.overlays.break_path(entity)
        if not (0 <= index < len(bends)):
            return False
        bends[index] = (float(x), float(y))
        return self.overlays.set_break_path(entity, bends)

    def clear(self, entity: EntityKey) -> bool:
        return self.overlays.clear_break_path(entity)


class BreakLinesMode(ModeHandler):
    mode = EditMode.BREAK_LINES
    label = "Break lines"

    def __init__(self, host, notices):
        super().__init__(host, notices)
        self.active_bend: int | None = None
        self._dragging = False
        self._insert_on_up = False

    def enter(self) -> None:
        super().enter()
        self._clear_pointer_state()

    def exit(self) -> None:
        super().exit()
        self._clear_pointer_state()

    @property
    def paths(self) -> BreakPathEditor:
        return BreakPathEditor(self.overlays)

    def _clear_pointer_state(self) -> None:
        self.active_bend = None
        self._dragging = False
        self._insert_on_up = False

    def _selected_line(self) -> ConnectorLine | None:
        if self.selected is None:
            return None
        for line in self.host.connector_lines():
            if line.entity == self.selected:
                return line
        return None

    def on_pointer_down(self, x: float, y: float) -> None:
        self._dragging = False
        self._insert_on_up = False

        current = self._selected_line()
        if current is not None:
            grab = pick_bend_point(
                current.bends,
                x,
                y,
                radius=self.settings.bendPointRadiusPx + _GRAB_SLACK_PX,
            )
            if grab is not None:
                self.active_bend = grab
                self._dragging = True
                return

        line = pick_line(
            self.host.connector_lines(),
            x,
            y,
            tolerance=self.settings.lineClickTolerancePx,
        )
        if line is None:
            target = self.pick(x, y)
            if target is not None and not self.overlays.is_dragged(target.entity):
                self.notify(_NOT_DRAGGED, "warning")
            else:
                self.notify("No line here")
            return

        if current is None or line.entity != current.entity:
            self.selected = line.entity
            self.active_bend = None
            self.notify("Line selected. Click on it to add bend points.")
            return

        self._insert_on_up = True

    def on_pointer_move(self, x: float, y: float) -> None:
        if not self._dragging or self.selected is None or self.active_bend is None:
            return
        margin = self.settings.bendPointMarginPx
        nx = max(margin, min(self.host.width - margin, x))
        ny = max(margin, min(self.host.height - margin, y))
        self.paths.move_bend_point(self.selected, self.active_bend, nx, ny)

    def on_pointer_up(self, x: float, y: float) -> None:
        if self._dragging:
            self._dragging = False
            self.host.mark_changed("breakpoints")
            return
        if not self._insert_on_up:
            return
        self._insert_on_up = False
        self.insert_at(x, y)

    def insert_at(self, x: float, y: float) -> bool:
        line = self._selected_line()
        if self.selected is None or line is None:
            self.notify(_NOT_DRAGGED, "warning")
            return False
        if not self.paths.insert_bend_point(
            self.selected, x, y, start=line.start, end=line.end
        ):
            self.notify(_NOT_DRAGGED, "warning")
            return False
        self.host.mark_changed("breakpoints")
        return True

    def on_key(self, key: str) -> None:
        if key in ("s", "S"):
            self.on_secondary()

    def on_secondary(self) -> None:
        if self.active_bend is not None:
            self.active_bend = None
            self._dragging = False
            self.notify("Bend point released")
            return
        super().on_secondary()

    def reset(self) -> bool:
        """
        Straighten the selected line and deselect it; the mode stays active.
        """
        changed = self.reset_selected()
        self.selected = None
        self._clear_pointer_state()
        return changed

    def reset_selected(self) -> bool:
        if self.selected is None or not self.paths.clear(self.selected):
            return False
        self.host.mark_changed("breakpoints")
        self.notify("Line reset to straight")
        return True
