"""Decoded input sources: still images and videos with playback controls."""

import asyncio
import io
import logging
from collections.abc import Callable

import av
import cv2
import numpy as np

logger = logging.getLogger(__name__)


def decode_image(data: bytes) -> np.ndarray:
    """
    Decode an encoded image (JPEG, PNG, ...) to RGB or RGBA.

    Raises:
        ValueError: If the bytes are not a decodable image
    """
    buffer = np.frombuffer(data, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_UNCHANGED) if buffer.size else None
    if image is None:
        raise ValueError("Cannot decode image")
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2RGB)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)


class StillSource:
    """Static image source. Never needs continuous re-rendering."""

    is_video = False

    def __init__(self, image: np.ndarray) -> None:
        self.image = image

    @classmethod
    def from_bytes(cls, data: bytes) -> "StillSource":
        return cls(decode_image(data))

    @property
    def width(self) -> int:
        return self.image.shape[1]

    @property
    def height(self) -> int:
        return self.image.shape[0]

    @property
    def current_frame(self) -> np.ndarray:
        return self.image


class VideoSource:
    """
    Decoded video with play/pause/seek and an "ended" signal.

    Metadata (intrinsic size, duration) and the first frame are available
    right after construction. Playback is an asyncio task that paces frames
    by their presentation timestamps; play() needs a running event loop.
    """

    is_video = True

    def __init__(self, data: bytes, loop: bool = False, name: str = "video") -> None:
        self.name = name
        self.loop = loop
        try:
            self._container = av.open(io.BytesIO(data))
        except av.error.FFmpegError as exc:
            raise ValueError(f"Cannot open {name}: {exc}") from exc
        if not self._container.streams.video:
            self._container.close()
            raise ValueError(f"{name} has no video stream")

        self._stream = self._container.streams.video[0]
        self._stream.thread_type = "AUTO"
        self._frames = self._container.decode(self._stream)
        self._task: asyncio.Task | None = None
        self._ended = False
        self._ended_callbacks: list[Callable[[], None]] = []

        first = self._next_frame()
        if first is None:
            self._container.close()
            raise ValueError(f"{name} has no frames")
        self._current = first.to_ndarray(format="rgb24")
        self._current_time = float(first.time or 0.0)
        self.width = first.width
        self.height = first.height
        self.duration = self._probe_duration()
        logger.info(
            "Loaded %s: %dx%d, %.2fs, loop=%s", name, self.width, self.height, self.duration, loop
        )

    def _probe_duration(self) -> float:
        stream = self._stream
        if stream.duration is not None and stream.time_base is not None:
            return float(stream.duration * stream.time_base)
        if self._container.duration is not None:
            return self._container.duration / av.time_base
        return 0.0

    @property
    def current_frame(self) -> np.ndarray:
        return self._current

    @property
    def current_time(self) -> float:
        return self._current_time

    @property
    def paused(self) -> bool:
        return self._task is None or self._task.done()

    @property
    def ended(self) -> bool:
        return self._ended

    def on_ended(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a "playback ended" callback. Returns an unsubscribe function."""
        self._ended_callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._ended_callbacks:
                self._ended_callbacks.remove(callback)

        return unsubscribe

    def play(self) -> None:
        if not self.paused:
            return
        if self._ended:
            # как у HTML video: play() после окончания начинает сначала
            self._seek_decoder(0.0)
        self._ended = False
        self._task = asyncio.get_running_loop().create_task(self._playback())

    def pause(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def seek(self, seconds: float) -> None:
        playing = not self.paused
        self.pause()
        self._ended = False
        self._seek_decoder(max(0.0, seconds))
        if playing:
            self.play()

    def close(self) -> None:
        self.pause()
        self._ended_callbacks.clear()
        self._container.close()

    def _next_frame(self) -> av.VideoFrame | None:
        try:
            return next(self._frames)
        except StopIteration:
            return None

    def _seek_decoder(self, seconds: float) -> None:
        self._container.seek(int(seconds * av.time_base), backward=True)
        self._frames = self._container.decode(self._stream)
        frame = self._next_frame()
        while frame is not None and frame.time is not None and frame.time + 1e-6 < seconds:
            candidate = self._next_frame()
            if candidate is None:
                break
            frame = candidate
        if frame is not None:
            self._current = frame.to_ndarray(format="rgb24")
            self._current_time = float(frame.time or 0.0)

    async def _playback(self) -> None:
        loop = asyncio.get_running_loop()
        origin = loop.time() - self._current_time
        while True:
            frame = self._next_frame()
            if frame is None:
                if self.loop:
                    self._seek_decoder(0.0)
                    origin = loop.time()
                    continue
                self._finish()
                return
            timestamp = float(frame.time) if frame.time is not None else self._current_time
            delay = origin + timestamp - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            else:
                await asyncio.sleep(0)
            self._current = frame.to_ndarray(format="rgb24")
            self._current_time = timestamp

    def _finish(self) -> None:
        self._ended = True
        self._task = None
        logger.info("%s playback ended at %.2fs", self.name, self._current_time)
        for callback in list(self._ended_callbacks):
            callback()
