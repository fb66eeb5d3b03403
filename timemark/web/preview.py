"""Live preview of the composited surface: MJPEG stream and WebRTC track."""

import asyncio
import fractions
import logging
import time
from collections.abc import AsyncIterator

import cv2
import numpy as np
from aiortc import MediaStreamTrack, RTCPeerConnection
from av import VideoFrame

from timemark.config import config
from timemark.studio import Studio

logger = logging.getLogger(__name__)

# Shown until a source is loaded
_PLACEHOLDER_SIZE = (360, 640)
VIDEO_CLOCK_RATE = 90000


def preview_frame(studio: Studio) -> np.ndarray:
    frame = studio.snapshot()
    if frame is None:
        frame = np.zeros((*_PLACEHOLDER_SIZE, 3), dtype=np.uint8)
    return frame


def encode_preview(frame: np.ndarray, quality: int | None = None) -> bytes | None:
    quality = quality or config.render.preview_jpeg_quality
    bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
    ret, buffer = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ret:
        return None
    return buffer.tobytes()


async def generate_mjpeg(studio: Studio, max_frames: int | None = None) -> AsyncIterator[bytes]:
    """Generate MJPEG parts of the current surface at preview_fps"""
    interval = 1 / config.render.preview_fps
    sent = 0
    while max_frames is None or sent < max_frames:
        frame_bytes = encode_preview(preview_frame(studio))
        if frame_bytes is None:
            logger.error("Failed to encode preview frame as JPEG")
        else:
            yield (b"--frame\r\n"
                   b"Content-Type: image/jpeg\r\n\r\n" + frame_bytes + b"\r\n")
            sent += 1
        await asyncio.sleep(interval)


class SurfaceVideoTrack(MediaStreamTrack):
    """WebRTC video track that serves snapshots of the studio surface."""

    kind = "video"

    def __init__(self, studio: Studio) -> None:
        super().__init__()
        self._studio = studio
        self._start_time: float | None = None

    async def recv(self) -> VideoFrame:
        if self._start_time is None:
            self._start_time = time.time()

        elapsed = time.time() - self._start_time
        video_frame = VideoFrame.from_ndarray(preview_frame(self._studio), format="rgb24")
        video_frame.pts = int(elapsed * VIDEO_CLOCK_RATE)
        video_frame.time_base = fractions.Fraction(1, VIDEO_CLOCK_RATE)

        await asyncio.sleep(1 / config.render.preview_fps)
        return video_frame


async def create_peer_connection(studio: Studio) -> RTCPeerConnection:
    """
    Create RTCPeerConnection with its own surface track.
    Tracks only read the surface, so peers don't share state.
    """
    pc = RTCPeerConnection()
    pc.addTrack(SurfaceVideoTrack(studio))
    logger.info("Created peer connection with surface track")
    return pc
