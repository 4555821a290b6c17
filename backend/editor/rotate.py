from __future__ import annotations

from editor.modes import EditMode, ModeHandler, step_from_key, step_from_wheel


class RotateMode(ModeHandler):
    """
    Rotates road labels only; other elements are refused with a notice.
    """

    mode = EditMode.ROTATE
    label = "Rotate"

    def on_pointer_down(self, x: float, y: float) -> None:
        target = self.pick(x, y)
        if target is None or target.entity.kind != "road":
            if target is not None:
                self.notify("Only roads can be rotated", "warning")
            elif self.selected is not None:
                self.selected = None
                self.notify("Road deselected")
            else:
                self.notify("No road here")
            return
        self.selected = target.entity
        angle = self.overlays.rotation(target.entity.key)
        self.notify(f"Road selected, rotation {angle:g}°. Use the wheel or +/- keys.")

    def _apply(self, delta: float) -> None:
        if delta == 0 or self.selected is None:
            return
        self.overlays.rotate(self.selected.key, delta)
        self.host.mark_changed("rotations")

    def on_wheel(self, delta_y: float) -> None:
        self._apply(step_from_wheel(delta_y, self.settings.rotationStepDeg))

    def on_key(self, key: str) -> None:
        self._apply(step_from_key(key, self.settings.rotationStepDeg))

    def reset_selected(self) -> bool:
        if self.selected is None or not self.overlays.clear_rotation(self.selected.key):
            return False
        self.host.mark_changed("rotations")
        self.notify("Road rotation reset to original")
        return True
