from __future__ import annotations

from editor.modes import EditMode, ModeHandler

_ARROWS: dict[str, tuple[int, int]] = {
    "ArrowRight": (1, 0),
    "ArrowLeft": (-1, 0),
    "ArrowUp": (0, 1),
    "ArrowDown": (0, -1),
}


class ReshapeMode(ModeHandler):
    mode = EditMode.RESHAPE
    label = "Reshape"

    def on_pointer_down(self, x: float, y: float) -> None:
        target = self.pick(x, y)
        if target is None or target.entity.kind != "cluster":
            if target is not None:
                self.notify("Only clusters can be reshaped", "warning")
            elif self.selected is not None:
                self.selected = None
                self.notify("Cluster deselected")
            else:
                self.notify("No cluster here")
            return
        self.selected = target.entity
        w, h = self.overlays.reshape(target.entity.key)
        self.notify(f"Cluster selected. Width: {w:+g}, Height: {h:+g}. Use arrow keys.")

    def on_key(self, key: str) -> None:
        direction = _ARROWS.get(key)
        if direction is None or self.selected is None:
            return
        step = self.settings.reshapeStepPx
        w, h = self.overlays.adjust_reshape(
            self.selected.key, d_width=direction[0] * step, d_height=direction[1] * step
        )
        self.host.mark_changed("reshapes")
        self.notify(f"W: {w:+g}, H: {h:+g}")

    def reset_selected(self) -> bool:
        if self.selected is None or not self.overlays.clear_reshape(self.selected.key):
            return False
        self.host.mark_changed("reshapes")
        self.notify("Cluster shape reset to original")
        return True
