import logging

from timemark import event_bus
from timemark.bus import LAYOUT_TOPIC, POINTER_TOPIC, EventBus
from timemark.coords import DisplayRect
from timemark.messages import LayoutNudge, LayoutUpdate, PointerEvent, PointerKind
from timemark.model import UnknownElementError, UnknownFieldError
from timemark.studio import Studio

logger = logging.getLogger(__name__)


class StudioNode:
    """Applies pointer and layout commands from the event bus to a Studio."""

    def __init__(self, studio: Studio, bus: EventBus | None = None) -> None:
        self.studio = studio
        self.bus = bus or event_bus

    async def start(self) -> None:
        await self.bus.subscribe(POINTER_TOPIC, self._on_pointer)
        await self.bus.subscribe(LAYOUT_TOPIC, self._on_layout)

    async def _on_pointer(self, event: PointerEvent) -> None:
        rect = None
        if event.rect_width and event.rect_height:
            rect = DisplayRect(event.rect_left, event.rect_top, event.rect_width, event.rect_height)

        if event.kind == PointerKind.DOWN:
            self.studio.pointer_down(event.x, event.y, rect)
        elif event.kind == PointerKind.MOVE:
            self.studio.pointer_move(event.x, event.y, rect)
        else:
            # up, leave и cancel одинаково завершают перетаскивание
            self.studio.pointer_up()

    async def _on_layout(self, cmd: LayoutUpdate | LayoutNudge) -> None:
        try:
            if isinstance(cmd, LayoutNudge):
                self.studio.nudge(cmd.element, cmd.field, cmd.direction)
            else:
                self.studio.update(cmd.element, cmd.field, cmd.value)
        except (UnknownElementError, UnknownFieldError) as exc:
            logger.warning("Rejected layout command %s: %s", cmd, exc)
