"""Тесты превью: MJPEG и WebRTC трек."""

import asyncio
import importlib
from typing import Any

import numpy as np
import pytest

from timemark.scheduler import ManualFrameClock
from timemark.studio import Studio


class _DummyPeerConnection:
    """Заглушка RTCPeerConnection с минимальным API."""

    def __init__(self) -> None:
        self.tracks: list[Any] = []

    def addTrack(self, track: Any) -> None:  # noqa: N802 - aiortc API
        """Сохраняем добавленный трек."""
        self.tracks.append(track)


class _StatefulPeer:
    """Мок PeerConnection для теста мониторинга состояний."""

    def __init__(self) -> None:
        self.connectionState = "new"
        self._handlers: dict[str, Any] = {}
        self.closed = False

    def on(self, event: str):  # noqa: D401
        """Совместимый с aiortc декоратор для регистрации хендлеров."""

        def _register(callback):
            self._handlers[event] = callback
            return callback

        return _register

    async def close(self) -> None:
        self.closed = True

    async def emit(self, event: str) -> None:
        await self._handlers[event]()


@pytest.fixture
def studio() -> Studio:
    studio = Studio(clock=ManualFrameClock())
    return studio


def test_mjpeg_placeholder_without_source(studio: Studio) -> None:
    """Без исходника отдаётся чёрный кадр-заглушка."""
    preview = importlib.import_module("timemark.web.preview")

    async def _run_test() -> list[bytes]:
        return [part async for part in preview.generate_mjpeg(studio, max_frames=2)]

    parts = asyncio.run(_run_test())

    assert len(parts) == 2
    assert parts[0].startswith(b"--frame\r\nContent-Type: image/jpeg\r\n\r\n\xff\xd8")


def test_surface_track_serves_surface(studio: Studio) -> None:
    """Трек отдаёт кадры размера поверхности с растущим pts."""
    preview = importlib.import_module("timemark.web.preview")
    studio.surface.ensure_size(64, 48)
    studio.surface.frame[:] = 10

    async def _run_test():
        track = preview.SurfaceVideoTrack(studio)
        first = await track.recv()
        second = await track.recv()
        return first, second

    first, second = asyncio.run(_run_test())

    assert (first.width, first.height) == (64, 48)
    assert second.pts > first.pts
    assert np.all(first.to_ndarray(format="rgb24") == 10)


def test_create_peer_connection_adds_track(monkeypatch: pytest.MonkeyPatch, studio: Studio) -> None:
    """Каждое соединение получает свой трек поверхности."""
    preview = importlib.import_module("timemark.web.preview")
    monkeypatch.setattr(preview, "RTCPeerConnection", _DummyPeerConnection)

    async def _run_test() -> None:
        pc1 = await preview.create_peer_connection(studio)
        pc2 = await preview.create_peer_connection(studio)
        assert len(pc1.tracks) == 1
        assert len(pc2.tracks) == 1
        assert pc1.tracks[0] is not pc2.tracks[0]

    asyncio.run(_run_test())


def test_run_peer_connection_cleans_up_on_close() -> None:
    """Закрытое соединение удаляется из реестра."""
    server = importlib.reload(importlib.import_module("timemark.web.server"))
    peer = _StatefulPeer()
    server._peer_connections.add(peer)  # noqa: SLF001 - глобальный реестр

    async def _run_test() -> None:
        await server._run_peer_connection(peer)

        peer.connectionState = "connecting"
        await peer.emit("connectionstatechange")
        assert peer in server._peer_connections

        peer.connectionState = "closed"
        await peer.emit("connectionstatechange")
        assert peer.closed
        assert peer not in server._peer_connections

    asyncio.run(_run_test())
