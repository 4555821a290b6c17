from __future__ import annotations

from loguru import logger

from editor.break_lines import BreakLinesMode
from editor.drag import DragMode
from editor.events import InputEvent, KeyEvent, Notice, PointerEvent, SecondaryEvent, WheelEvent
from editor.modes import EditMode, EditorHost, ModeHandler
from editor.reshape import ReshapeMode
from editor.resize import ResizeMode
from editor.rotate import RotateMode
from layers.types import EntityKey

Point = tuple[float, float]


class EditModeController:
    """
    Single input router over mutually exclusive edit modes.

    At most one handler is active; while it is, entering any other mode is refused and
    only the active handler sees input. Escape resets the selected element's overlay
    for the active mode and returns to idle.
    """

    def __init__(self, host: EditorHost):
        self.host = host
        self.notices: list[Notice] = []
        self.handlers: dict[EditMode, ModeHandler] = {
            EditMode.DRAG: DragMode(host, self.notices),
            EditMode.RESIZE: ResizeMode(host, self.notices),
            EditMode.ROTATE: RotateMode(host, self.notices),
            EditMode.RESHAPE: ReshapeMode(host, self.notices),
            EditMode.BREAK_LINES: BreakLinesMode(host, self.notices),
        }
        self.mode = EditMode.IDLE

    @property
    def active(self) -> ModeHandler | None:
        if self.mode == EditMode.IDLE:
            return None
        return self.handlers[self.mode]

    def available_modes(self) -> dict[EditMode, bool]:
        """
        Which mode entry controls are enabled: all when idle, only the active one otherwise.
        """
        return {
            m: (self.mode == EditMode.IDLE or m == self.mode)
            for m in self.handlers
        }

    def enter(self, mode: EditMode) -> bool:
        mode = EditMode(mode)
        if mode == EditMode.IDLE:
            self.exit()
            return True
        if mode == self.mode:
            return True
        if self.mode != EditMode.IDLE:
            self._notify(
                f"Exit {self.handlers[self.mode].label} mode before entering "
                f"{self.handlers[mode].label} mode",
                "warning",
            )
            return False
        self.mode = mode
        self.handlers[mode].enter()
        logger.debug(f"Edit mode -> {mode.value}")
        self._notify(f"{self.handlers[mode].label} mode on")
        return True

    def exit(self) -> None:
        handler = self.active
        if handler is None:
            return
        handler.exit()
        self._notify(f"{handler.label} mode off")
        logger.debug(f"Edit mode {self.mode.value} -> idle")
        self.mode = EditMode.IDLE

    def toggle(self, mode: EditMode) -> bool:
        """
        Toolbar button behaviour: the active mode's button exits it, others try to enter.
        """
        mode = EditMode(mode)
        if mode == self.mode:
            self.exit()
            return True
        return self.enter(mode)

    def escape(self) -> None:
        handler = self.active
        if handler is None:
            return
        if handler.selected is not None:
            handler.reset_selected()
        self.exit()

    def dispatch(self, event: InputEvent) -> None:
        if isinstance(event, KeyEvent) and event.key == "Escape":
            self.escape()
            return
        handler = self.active
        if handler is None:
            return
        if isinstance(event, PointerEvent):
            if event.action == "down":
                handler.on_pointer_down(event.x, event.y)
            elif event.action == "move":
                handler.on_pointer_move(event.x, event.y)
            else:
                handler.on_pointer_up(event.x, event.y)
        elif isinstance(event, WheelEvent):
            handler.on_wheel(event.delta_y)
        elif isinstance(event, KeyEvent):
            handler.on_key(event.key)
        elif isinstance(event, SecondaryEvent):
            handler.on_secondary()

    def preview(self) -> tuple[EntityKey, Point] | None:
        """
        Live (uncommitted) drag position, for rendering while the pointer is held.
        """
        handler = self.active
        if isinstance(handler, DragMode):
            return handler.preview()
        return None

    @property
    def selected(self) -> EntityKey | None:
        handler = self.active
        return handler.selected if handler is not None else None

    def drain_notices(self) -> list[Notice]:
        out = list(self.notices)
        self.notices.clear()
        return out

    def _notify(self, message: str, level="info") -> None:
        self.notices.append(Notice(level=level, message=message))
