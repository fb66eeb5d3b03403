from dataclasses import dataclass
from enum import Enum


class PointerKind(str, Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"
    CANCEL = "cancel"


@dataclass
class PointerEvent:
    kind: PointerKind
    x: float  # client px
    y: float
    # displayed rect of the surface on the client; None means x/y are surface px
    rect_left: float = 0.0
    rect_top: float = 0.0
    rect_width: float | None = None
    rect_height: float | None = None


@dataclass
class LayoutUpdate:
    element: str
    field: str
    value: float


@dataclass
class LayoutNudge:
    element: str
    field: str
    direction: float = 1.0  # +1 / -1 arrow button


@dataclass
class CaptureProgress:
    progress: float  # 0..1
    running: bool = True
