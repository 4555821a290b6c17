from __future__ import annotations

from editor.modes import EditMode, ModeHandler, step_from_key, step_from_wheel


class ResizeMode(ModeHandler):
    mode = EditMode.RESIZE
    label = "Resize"

    def on_pointer_down(self, x: float, y: float) -> None:
        target = self.pick(x, y)
        if target is None:
            if self.selected is not None:
                self.selected = None
                self.notify("Selection cleared")
            else:
                self.notify("Nothing to resize here")
            return
        self.selected = target.entity
        size = self.overlays.size(target.entity, self.host.base_size(target.entity))
        self.notify(f"Selected, size {size:g}. Use the wheel or +/- keys.")

    def _apply(self, delta: float) -> None:
        if delta == 0:
            return
        if self.selected is None:
            self.notify("Select an element to resize first")
            return
        self.overlays.adjust_size(
            self.selected, delta, base=self.host.base_size(self.selected)
        )
        self.host.mark_changed("resized")

    def on_wheel(self, delta_y: float) -> None:
        self._apply(step_from_wheel(delta_y, self.settings.resizeStep))

    def on_key(self, key: str) -> None:
        self._apply(step_from_key(key, self.settings.resizeStep))

    def reset_selected(self) -> bool:
        if self.selected is None or not self.overlays.clear_size(self.selected):
            return False
        self.host.mark_changed("resized")
        self.notify("Size reset to original")
        return True
