"""Direct manipulation of overlay regions with a pointer.

States: idle (no session) and dragging (one DragSession). Every geometry
change goes through LayoutStore.update, the same entry point the numeric
controls use.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum

from timemark.config import InteractionConfig, config
from timemark.coords import CoordinateMapper, handle_points
from timemark.model import AnchorConfig, ElementId, ElementLayout, LayoutStore, RegionConfig

logger = logging.getLogger(__name__)

# Fixed hit-test order, first match wins
HIT_PRIORITY = (ElementId.MAP, ElementId.BOX, ElementId.VERIFIED_STAMP, ElementId.ID)


class DragMode(str, Enum):
    MOVE = "move"
    RESIZE = "resize"


@dataclass(frozen=True)
class Hit:
    target: ElementId
    mode: DragMode
    handle: str | None = None


@dataclass(frozen=True)
class DragSession:
    target: ElementId
    mode: DragMode
    handle: str | None
    start_x: float  # surface px
    start_y: float
    initial_x: float  # virtual units
    initial_y: float
    initial_w: float
    initial_h: float


def hit_test(
    layout: ElementLayout,
    mapper: CoordinateMapper,
    px: float,
    py: float,
    handle_radius: float,
    anchor_radius: float,
) -> Hit | None:
    """
    Find what the pointer (surface px) lands on.

    For regions a handle within handle_radius wins over the body, so
    resize beats move where they overlap. Anchored elements are grabbed
    within anchor_radius of their anchor point. Radii are in virtual units.
    """
    bs = mapper.base_scale
    for target in HIT_PRIORITY:
        cfg = layout.get(target)
        if isinstance(cfg, RegionConfig):
            x, y = mapper.to_pixel(cfg.x), mapper.to_pixel(cfg.y)
            w, h = mapper.to_pixel(cfg.w), mapper.to_pixel(cfg.h)
            for handle, (hx, hy) in handle_points(x, y, w, h).items():
                if math.hypot(px - hx, py - hy) < handle_radius * bs:
                    return Hit(target, DragMode.RESIZE, handle)
            if x <= px <= x + w and y <= py <= y + h:
                return Hit(target, DragMode.MOVE)
        elif isinstance(cfg, AnchorConfig):
            ax, ay = mapper.to_pixel(cfg.x), mapper.to_pixel(cfg.y)
            if math.hypot(px - ax, py - ay) < anchor_radius * bs:
                return Hit(target, DragMode.MOVE)
    return None


def resize_geometry(
    handle: str,
    x: float,
    y: float,
    w: float,
    h: float,
    dx: float,
    dy: float,
    min_size: float,
) -> tuple[float, float, float, float]:
    """
    Apply a drag delta to a rectangle through one compass handle.

    East/south edges grow the size; west/north edges move the origin and
    shrink the size. Width and height never drop below min_size.
    """
    if "e" in handle:
        w += dx
    if "s" in handle:
        h += dy
    if "w" in handle:
        x += dx
        w -= dx
    if "n" in handle:
        y += dy
        h -= dy
    return x, y, max(min_size, w), max(min_size, h)


class InteractionStateMachine:
    """Pointer-driven move/resize of map, info box, stamp and ID strip."""

    def __init__(self, store: LayoutStore, settings: InteractionConfig | None = None) -> None:
        self.store = store
        self.settings = settings or config.interaction
        self._session: DragSession | None = None

    @property
    def session(self) -> DragSession | None:
        return self._session

    @property
    def is_dragging(self) -> bool:
        return self._session is not None

    def pointer_down(
        self, px: float, py: float, mapper: CoordinateMapper, exporting: bool = False
    ) -> Hit | None:
        """Start a drag session if the pointer hits a region. Ignored while exporting or dragging."""
        if exporting or self._session is not None or not mapper.is_valid:
            return None

        hit = hit_test(
            self.store.layout,
            mapper,
            px,
            py,
            self.settings.handle_hit_radius,
            self.settings.anchor_hit_radius,
        )
        if hit is None:
            return None

        cfg = self.store.get(hit.target)
        self._session = DragSession(
            target=hit.target,
            mode=hit.mode,
            handle=hit.handle,
            start_x=px,
            start_y=py,
            initial_x=cfg.x,
            initial_y=cfg.y,
            initial_w=getattr(cfg, "w", 0.0),
            initial_h=getattr(cfg, "h", 0.0),
        )
        logger.debug("Drag started: %s %s %s", hit.target.value, hit.mode.value, hit.handle or "")
        return hit

    def pointer_move(
        self, px: float, py: float, mapper: CoordinateMapper, exporting: bool = False
    ) -> bool:
        """Apply the pointer delta since drag start. Returns True if the layout changed."""
        session = self._session
        if session is None or exporting or not mapper.is_valid:
            return False

        dx = mapper.to_virtual(px - session.start_x)
        dy = mapper.to_virtual(py - session.start_y)

        if session.mode == DragMode.MOVE:
            self.store.update(session.target, "x", session.initial_x + dx)
            self.store.update(session.target, "y", session.initial_y + dy)
            return True

        x, y, w, h = resize_geometry(
            session.handle or "",
            session.initial_x,
            session.initial_y,
            session.initial_w,
            session.initial_h,
            dx,
            dy,
            self.settings.min_region_size,
        )
        self.store.update(session.target, "x", x)
        self.store.update(session.target, "y", y)
        self.store.update(session.target, "w", w)
        self.store.update(session.target, "h", h)
        return True

    def pointer_up(self) -> None:
        """End the session (pointer up, leave or cancel). No snapping."""
        if self._session is not None:
            logger.debug("Drag finished: %s", self._session.target.value)
        self._session = None

    pointer_leave = pointer_up
    pointer_cancel = pointer_up
