"""Тесты экспорта: JPEG снимок и запись видео."""

import asyncio
import io
import re
from collections.abc import Callable

import av
import cv2
import numpy as np
import pytest

from timemark import capture
from timemark.capture import (
    KNOWN_FORMATS,
    CaptureError,
    CaptureSession,
    CaptureTimeoutError,
    FrameEncoder,
    encode_jpeg,
    negotiate_format,
    still_artifact,
)
from timemark.config import CaptureConfig
from timemark.overlay.compositor import Surface


class FakeVideo:
    """Видео с ручным управлением окончанием."""

    def __init__(self, duration: float = 2.0) -> None:
        self.duration = duration
        self.current_time = 0.0
        self.calls: list[str] = []
        self._callbacks: list[Callable[[], None]] = []

    def pause(self) -> None:
        self.calls.append("pause")

    def seek(self, seconds: float) -> None:
        self.calls.append(f"seek:{seconds}")
        self.current_time = seconds

    def play(self) -> None:
        self.calls.append("play")

    def on_ended(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._callbacks.append(callback)
        return lambda: self._callbacks.remove(callback)

    def end(self) -> None:
        self.current_time = self.duration
        for callback in list(self._callbacks):
            callback()


def _surface(width: int = 64, height: int = 48) -> Surface:
    surface = Surface()
    surface.ensure_size(width, height)
    surface.frame[:] = 128
    return surface


def _count_frames(data: bytes) -> int:
    with av.open(io.BytesIO(data)) as container:
        return sum(1 for _ in container.decode(video=0))


def test_negotiate_prefers_first_supported(monkeypatch: pytest.MonkeyPatch) -> None:
    """Выбирается первый поддерживаемый формат."""
    monkeypatch.setattr(capture, "is_format_supported", lambda fmt: fmt.codec == "mpeg4")

    assert negotiate_format(CaptureConfig().formats).mime_type == "video/mp4"


def test_negotiate_falls_back_to_last(monkeypatch: pytest.MonkeyPatch) -> None:
    """Если ничего не поддерживается, используется последний формат."""
    monkeypatch.setattr(capture, "is_format_supported", lambda fmt: False)

    assert negotiate_format(CaptureConfig().formats).mime_type == "video/webm"


def test_negotiate_rejects_unknown_formats() -> None:
    with pytest.raises(CaptureError):
        negotiate_format(["video/x-unknown"])


def test_encode_jpeg_keeps_colours() -> None:
    """JPEG кодируется из RGB."""
    frame = np.zeros((32, 32, 3), dtype=np.uint8)
    frame[..., 0] = 220

    data = encode_jpeg(frame, 95)
    decoded = cv2.imdecode(np.frombuffer(data, np.uint8), cv2.IMREAD_COLOR)

    assert decoded.shape == (32, 32, 3)
    assert decoded[16, 16, 2] > 200  # красный в BGR
    assert decoded[16, 16, 0] < 30


def test_still_artifact_name() -> None:
    """Имя снимка: timemark-<ms>.jpg."""
    artifact = still_artifact(np.zeros((8, 8, 3), dtype=np.uint8))

    assert re.fullmatch(r"timemark-\d+\.jpg", artifact.filename)
    assert artifact.mime_type == "image/jpeg"
    assert artifact.data[:2] == b"\xff\xd8"


def test_frame_encoder_writes_container() -> None:
    """Кодировщик пишет mp4 в память, нечётный размер обрезается до чётного."""
    encoder = FrameEncoder(KNOWN_FORMATS["video/mp4"], 65, 49, 10, 500_000)
    frame = np.full((49, 65, 3), 90, dtype=np.uint8)

    for _ in range(5):
        encoder.encode(frame)
    data = encoder.finish()

    assert (encoder.width, encoder.height) == (64, 48)
    assert _count_frames(data) == 5


def test_capture_session_stops_on_ended() -> None:
    """По окончанию видео запись останавливается и даёт один файл."""
    video = FakeVideo()
    surface = _surface()
    exporting: list[bool] = []
    progress: list[float] = []
    settings = CaptureConfig(formats=["video/mp4"], fps=30)

    async def _run_test():
        session = CaptureSession(
            surface,
            video,
            set_exporting=exporting.append,
            on_progress=progress.append,
            settings=settings,
        )
        session.start()
        assert session.running
        assert exporting == [True]
        assert video.calls == ["pause", "seek:0.0", "play"]

        await asyncio.sleep(0.2)
        video.end()
        artifact = await session.wait()

        written = session._encoder.frames_written  # noqa: SLF001 - только для проверки
        await asyncio.sleep(0.1)
        assert session._encoder.frames_written == written
        assert not session.running
        return artifact

    artifact = asyncio.run(_run_test())

    assert exporting == [True, False]
    assert artifact.mime_type == "video/mp4"
    assert re.fullmatch(r"timemark-video-\d+\.mp4", artifact.filename)
    assert _count_frames(artifact.data) >= 2
    assert progress[-1] == 1.0


def test_capture_setup_failure_clears_exporting(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ошибка открытия кодировщика доходит до вызывающего, флаг экспорта снимается."""

    def broken_encoder(*args, **kwargs):
        raise CaptureError("no encoder")

    monkeypatch.setattr(capture, "FrameEncoder", broken_encoder)
    exporting: list[bool] = []
    video = FakeVideo()

    async def _run_test() -> None:
        session = CaptureSession(
            _surface(), video, set_exporting=exporting.append, settings=CaptureConfig(formats=["video/mp4"])
        )
        with pytest.raises(CaptureError):
            session.start()
        assert not session.running

    asyncio.run(_run_test())

    assert exporting == [True, False]
    assert "play" not in video.calls


def test_capture_empty_surface_fails() -> None:
    """Пустую поверхность записать нельзя."""
    exporting: list[bool] = []

    async def _run_test() -> None:
        session = CaptureSession(Surface(), FakeVideo(), set_exporting=exporting.append)
        with pytest.raises(CaptureError):
            session.start()

    asyncio.run(_run_test())

    assert exporting == [True, False]


def test_capture_watchdog_aborts_without_artifact() -> None:
    """Сторожевой таймаут прерывает запись без файла."""
    exporting: list[bool] = []
    video = FakeVideo()
    settings = CaptureConfig(formats=["video/mp4"], max_duration_s=0.1)

    async def _run_test() -> None:
        session = CaptureSession(_surface(), video, set_exporting=exporting.append, settings=settings)
        session.start()
        with pytest.raises(CaptureTimeoutError):
            await session.wait()
        assert not session.running

    asyncio.run(_run_test())

    assert exporting == [True, False]
    assert video.calls[-1] == "pause"


def test_capture_session_cannot_start_twice() -> None:
    async def _run_test() -> None:
        session = CaptureSession(
            _surface(), FakeVideo(), set_exporting=lambda value: None, settings=CaptureConfig(formats=["video/mp4"])
        )
        session.start()
        with pytest.raises(CaptureError):
            session.start()
        session.abort()

    asyncio.run(_run_test())
