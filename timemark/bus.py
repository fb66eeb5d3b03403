import asyncio
from collections import defaultdict
from collections.abc import Callable, Coroutine
from typing import Any, TypeVar

T = TypeVar("T")
Handler = Callable[[T], Coroutine[Any, Any, None]]

POINTER_TOPIC = "studio/pointer"
LAYOUT_TOPIC = "studio/layout"
PROGRESS_TOPIC = "capture/progress"


class EventBus:
    def __init__(self) -> None:
        self._subscribers: dict[str, list[Handler[Any]]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def subscribe(self, topic: str, handler: Handler[T]) -> None:
        async with self._lock:
            self._subscribers[topic].append(handler)  # type: ignore[arg-type]

    async def unsubscribe(self, topic: str, handler: Handler[T]) -> None:
        async with self._lock:
            if handler in self._subscribers.get(topic, []):
                self._subscribers[topic].remove(handler)  # type: ignore[arg-type]

    async def publish(self, topic: str, message: T) -> None:
        async with self._lock:
            handlers = list(self._subscribers.get(topic, []))
        if not handlers:
            return
        await asyncio.gather(*(h(message) for h in handlers))

    async def publish_pointer(self, event: Any) -> None:
        await self.publish(POINTER_TOPIC, event)

    async def publish_layout(self, cmd: Any) -> None:
        await self.publish(LAYOUT_TOPIC, cmd)

    async def publish_progress(self, progress: Any) -> None:
        await self.publish(PROGRESS_TOPIC, progress)
