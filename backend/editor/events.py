from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Union


@dataclass(frozen=True)
class PointerEvent:
    action: Literal["down", "move", "up"]
    x: float
    y: float


@dataclass(frozen=True)
class WheelEvent:
    # Positive delta_y is a notch "down" (shrink / rotate counter-clockwise).
    delta_y: float
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class KeyEvent:
    key: str


@dataclass(frozen=True)
class SecondaryEvent:
    x: float = 0.0
    y: float = 0.0


InputEvent = Union[PointerEvent, WheelEvent, KeyEvent, SecondaryEvent]


@dataclass(frozen=True)
class Notice:
    level: Literal["info", "warning"]
    message: str
