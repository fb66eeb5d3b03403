"""Тесты узла, применяющего команды шины к Studio."""

import asyncio

import cv2
import numpy as np

from timemark.bus import EventBus
from timemark.messages import LayoutNudge, LayoutUpdate, PointerEvent, PointerKind
from timemark.nodes.studio import StudioNode
from timemark.scheduler import ManualFrameClock
from timemark.studio import Studio


def _studio() -> Studio:
    studio = Studio(clock=ManualFrameClock())
    ok, buffer = cv2.imencode(".png", np.zeros((500, 500, 3), dtype=np.uint8))
    assert ok
    studio.load_image(buffer.tobytes())
    studio.render()
    return studio


def test_pointer_events_drag_region() -> None:
    """down/move/up через шину перемещают панель."""
    studio = _studio()
    bus = EventBus()

    async def _run_test() -> None:
        await StudioNode(studio, bus).start()
        # поверхность 500 px показана в 250 px: клиентские координаты x2
        rect = dict(rect_left=10, rect_top=20, rect_width=250, rect_height=250)
        await bus.publish_pointer(PointerEvent(PointerKind.DOWN, x=10 + 75, y=20 + 175, **rect))
        await bus.publish_pointer(PointerEvent(PointerKind.MOVE, x=10 + 80, y=20 + 175, **rect))
        await bus.publish_pointer(PointerEvent(PointerKind.CANCEL, x=0, y=0))

    asyncio.run(_run_test())

    assert studio.store.layout.box.x == 50
    assert not studio.interaction.is_dragging


def test_layout_commands() -> None:
    """update и nudge применяются, ошибки не прерывают обработку."""
    studio = _studio()
    bus = EventBus()

    async def _run_test() -> None:
        await StudioNode(studio, bus).start()
        await bus.publish_layout(LayoutUpdate("time", "scale", 1.5))
        await bus.publish_layout(LayoutNudge("id", "y", -1))
        await bus.publish_layout(LayoutUpdate("compass", "x", 1))
        await bus.publish_layout(LayoutUpdate("id", "w", 1))

    asyncio.run(_run_test())

    assert studio.store.layout.time.scale == 1.5
    assert studio.store.layout.id.y == 498


def test_bus_unsubscribe() -> None:
    """Отписанный обработчик больше не вызывается."""
    bus = EventBus()
    received: list[int] = []

    async def handler(message: int) -> None:
        received.append(message)

    async def _run_test() -> None:
        await bus.subscribe("t", handler)
        await bus.publish("t", 1)
        await bus.unsubscribe("t", handler)
        await bus.publish("t", 2)

    asyncio.run(_run_test())

    assert received == [1]
