from .break_lines import BreakLinesMode, BreakPathEditor
from .controller import EditModeController
from .events import KeyEvent, Notice, PointerEvent, SecondaryEvent, WheelEvent
from .hit_test import ConnectorLine, HitTarget
from .modes import EditMode
from .overlays import OverlayState

__all__ = [
    "BreakLinesMode",
    "BreakPathEditor",
    "ConnectorLine",
    "EditMode",
    "EditModeController",
    "HitTarget",
    "KeyEvent",
    "Notice",
    "OverlayState",
    "PointerEvent",
    "SecondaryEvent",
    "WheelEvent",
]
