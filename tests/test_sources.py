"""Тесты исходников: изображения и видео."""

import asyncio

import numpy as np
import pytest

from timemark.sources import StillSource, VideoSource, decode_image


def test_still_source_from_png(png_bytes: bytes) -> None:
    """PNG декодируется в RGB."""
    source = StillSource.from_bytes(png_bytes)

    assert (source.width, source.height) == (160, 90)
    assert tuple(source.current_frame[0, 0]) == (200, 0, 0)


def test_decode_image_rejects_garbage() -> None:
    """Не-изображение даёт ValueError."""
    with pytest.raises(ValueError):
        decode_image(b"definitely not an image")
    with pytest.raises(ValueError):
        decode_image(b"")


def test_decode_image_keeps_alpha() -> None:
    """Логотип с альфа-каналом остаётся RGBA."""
    import cv2

    bgra = np.zeros((10, 10, 4), dtype=np.uint8)
    bgra[..., 3] = 128
    ok, buffer = cv2.imencode(".png", bgra)
    assert ok

    image = decode_image(buffer.tobytes())

    assert image.shape == (10, 10, 4)
    assert image[0, 0, 3] == 128


def test_video_metadata_available_after_load(video_bytes: bytes) -> None:
    """Размер, длительность и первый кадр доступны сразу."""
    video = VideoSource(video_bytes)
    try:
        assert (video.width, video.height) == (64, 48)
        assert video.duration == pytest.approx(0.5, abs=0.15)
        assert video.current_frame.shape == (48, 64, 3)
        assert video.paused
        assert not video.ended
    finally:
        video.close()


def test_video_rejects_garbage() -> None:
    """Не-видео даёт ValueError."""
    with pytest.raises(ValueError):
        VideoSource(b"\x00" * 64)


def test_video_plays_to_end(video_bytes: bytes) -> None:
    """Воспроизведение доходит до конца и сообщает об этом."""
    ended: list[float] = []

    async def _run_test() -> None:
        video = VideoSource(video_bytes)
        video.on_ended(lambda: ended.append(video.current_time))
        video.play()
        await asyncio.sleep(1.0)
        assert video.ended
        assert video.paused
        assert video.current_frame.mean() > 200
        video.close()

    asyncio.run(_run_test())

    assert len(ended) == 1
    assert ended[0] == pytest.approx(0.4, abs=0.15)


def test_video_seek_rewinds(video_bytes: bytes) -> None:
    """seek(0) возвращает первый кадр."""

    async def _run_test() -> None:
        video = VideoSource(video_bytes)
        first = video.current_frame.mean()
        video.play()
        await asyncio.sleep(1.0)
        video.seek(0.0)
        assert video.current_time == pytest.approx(0.0, abs=0.01)
        assert video.current_frame.mean() == pytest.approx(first, abs=10)
        assert not video.ended
        video.close()

    asyncio.run(_run_test())


def test_looping_video_never_ends(video_bytes: bytes) -> None:
    """Зацикленное видео карты не заканчивается."""
    ended: list[int] = []

    async def _run_test() -> None:
        video = VideoSource(video_bytes, loop=True)
        video.on_ended(lambda: ended.append(1))
        video.play()
        await asyncio.sleep(1.2)
        assert not video.paused
        video.close()

    asyncio.run(_run_test())

    assert ended == []


def test_on_ended_unsubscribe(video_bytes: bytes) -> None:
    """Отписка от окончания работает."""
    ended: list[int] = []

    async def _run_test() -> None:
        video = VideoSource(video_bytes)
        unsubscribe = video.on_ended(lambda: ended.append(1))
        unsubscribe()
        video.play()
        await asyncio.sleep(1.0)
        video.close()

    asyncio.run(_run_test())

    assert ended == []
