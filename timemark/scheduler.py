"""Render scheduling: once per change for still sources, every frame for video."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from timemark.config import config

logger = logging.getLogger(__name__)

FrameCallback = Callable[[], None]


class FrameClock(Protocol):
    """Host per-display-frame callback (requestAnimationFrame-like)."""

    def request(self, callback: FrameCallback) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...


class AsyncioFrameClock:
    """Frame callbacks on the running asyncio loop at a fixed refresh rate."""

    def __init__(self, refresh_hz: int | None = None) -> None:
        self.refresh_hz = refresh_hz or config.render.refresh_hz

    def request(self, callback: FrameCallback) -> asyncio.TimerHandle:
        loop = asyncio.get_running_loop()
        return loop.call_later(1 / self.refresh_hz, callback)

    def cancel(self, handle: asyncio.TimerHandle) -> None:
        handle.cancel()


class ManualFrameClock:
    """
    Frame clock driven by the host: each tick() fires the callbacks
    requested so far. Used by GUI toolkits with their own frame loop.
    """

    def __init__(self) -> None:
        self._callbacks: dict[int, FrameCallback] = {}
        self._next_id = 0

    @property
    def pending(self) -> int:
        return len(self._callbacks)

    def request(self, callback: FrameCallback) -> int:
        self._next_id += 1
        self._callbacks[self._next_id] = callback
        return self._next_id

    def cancel(self, handle: int) -> None:
        self._callbacks.pop(handle, None)

    def tick(self) -> int:
        """Run due callbacks. Callbacks requested during the tick wait for the next one."""
        due = self._callbacks
        self._callbacks = {}
        for callback in due.values():
            callback()
        return len(due)


class RenderScheduler:
    """
    Decides when to render.

    Live sources (main or map video): render on every frame callback and
    re-schedule from inside the callback. Still sources: render once per
    mark_dirty(), several marks before the next frame collapse into one
    render. At most one frame callback is pending at a time.
    """

    def __init__(self, render: Callable[[], Any], clock: FrameClock) -> None:
        self._render = render
        self._clock = clock
        self._pending: Any = None
        self._running = False
        self._live = False
        self._dirty = False
        self.frames_rendered = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def live(self) -> bool:
        return self._live

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        if self._live or self._dirty:
            self._schedule()

    def stop(self) -> None:
        """Stop the loop and cancel the pending frame. Safe to call twice."""
        self._running = False
        if self._pending is not None:
            self._clock.cancel(self._pending)
            self._pending = None

    def set_live(self, live: bool) -> None:
        self._live = live
        if live and self._running:
            self._schedule()

    def mark_dirty(self) -> None:
        self._dirty = True
        if self._running:
            self._schedule()

    def _schedule(self) -> None:
        if self._pending is None:
            self._pending = self._clock.request(self._on_frame)

    def _on_frame(self) -> None:
        self._pending = None
        if not self._running:
            return
        if self._dirty or self._live:
            self._dirty = False
            try:
                self._render()
                self.frames_rendered += 1
            except Exception:
                # Кадр пропускается, следующий кадр повторит попытку
                logger.exception("Render failed, retrying on next frame")
                self._dirty = True
                self._schedule()
                return
        if self._live:
            self._schedule()
