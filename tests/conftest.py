"""Общие фикстуры тестов."""

import io
from collections.abc import Callable

import av
import numpy as np
import pytest

from timemark.coords import CoordinateMapper
from timemark.model import ElementLayout, WatermarkContent
from timemark.overlay.base import RenderContext, Scene


@pytest.fixture
def make_ctx() -> Callable[..., RenderContext]:
    """Фабрика контекста кадра для заданного размера поверхности."""

    def _make(
        width: int = 1000,
        height: int = 1000,
        layout: ElementLayout | None = None,
        content: WatermarkContent | None = None,
        exporting: bool = False,
        logo: np.ndarray | None = None,
        map_frame: np.ndarray | None = None,
    ) -> RenderContext:
        scene = Scene(
            background=np.zeros((height, width, 3), dtype=np.uint8),
            content=content or WatermarkContent(),
            layout=layout or ElementLayout(),
            logo=logo,
            map_frame=map_frame,
            exporting=exporting,
        )
        return RenderContext(scene=scene, mapper=CoordinateMapper.for_surface(width, height))

    return _make


@pytest.fixture
def black_frame() -> Callable[[int, int], np.ndarray]:
    def _make(width: int = 1000, height: int = 1000) -> np.ndarray:
        return np.zeros((height, width, 3), dtype=np.uint8)

    return _make


def encode_test_video(seconds: float = 0.5, fps: int = 10, width: int = 64, height: int = 48) -> bytes:
    """Короткий mp4 (mpeg4) в памяти: кадры с нарастающей яркостью."""
    buffer = io.BytesIO()
    container = av.open(buffer, mode="w", format="mp4")
    stream = container.add_stream("mpeg4", rate=fps)
    stream.width = width
    stream.height = height
    stream.pix_fmt = "yuv420p"
    count = max(int(seconds * fps), 1)
    for i in range(count):
        value = int(255 * i / max(count - 1, 1))
        frame = av.VideoFrame.from_ndarray(np.full((height, width, 3), value, dtype=np.uint8), format="rgb24")
        for packet in stream.encode(frame):
            container.mux(packet)
    for packet in stream.encode(None):
        container.mux(packet)
    container.close()
    return buffer.getvalue()


@pytest.fixture(scope="session")
def video_bytes() -> bytes:
    return encode_test_video()


@pytest.fixture(scope="session")
def png_bytes() -> bytes:
    import cv2

    image = np.zeros((90, 160, 3), dtype=np.uint8)
    image[:, :, 2] = 200  # красный в BGR
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()
