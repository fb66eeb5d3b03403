"""Export: still JPEG snapshots and real-time recording of the composited surface."""

import asyncio
import fractions
import io
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

import av
import cv2
import numpy as np

from timemark.config import CaptureConfig, config
from timemark.overlay.compositor import Surface

logger = logging.getLogger(__name__)


class CaptureError(RuntimeError):
    """Recording could not be started or finished."""


class CaptureTimeoutError(CaptureError):
    """Recording hit max_duration_s before the source ended."""


@dataclass(frozen=True)
class ExportFormat:
    mime_type: str
    container: str
    codec: str
    extension: str


KNOWN_FORMATS: dict[str, ExportFormat] = {
    "video/mp4;codecs=h264": ExportFormat("video/mp4;codecs=h264", "mp4", "h264", "mp4"),
    "video/mp4": ExportFormat("video/mp4", "mp4", "mpeg4", "mp4"),
    "video/webm;codecs=vp9": ExportFormat("video/webm;codecs=vp9", "webm", "libvpx-vp9", "webm"),
    "video/webm": ExportFormat("video/webm", "webm", "libvpx", "webm"),
}


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    mime_type: str
    data: bytes


def timestamp_ms() -> int:
    return int(time.time() * 1000)


def is_format_supported(fmt: ExportFormat) -> bool:
    """Check that the local FFmpeg build can mux the container and encode the codec."""
    if fmt.container not in av.formats_available:
        return False
    try:
        av.codec.Codec(fmt.codec, "w")
    except ValueError:
        return False
    return True


def negotiate_format(preferences: list[str] | None = None) -> ExportFormat:
    """
    First supported format from the preference list.

    If nothing is reported as supported, the last entry is used as-is and
    the encoder will report the failure when opened.
    """
    preferences = preferences or config.capture.formats
    candidates = [KNOWN_FORMATS[mime] for mime in preferences if mime in KNOWN_FORMATS]
    if not candidates:
        raise CaptureError(f"No known export format in {preferences}")
    for fmt in candidates:
        if is_format_supported(fmt):
            return fmt
    logger.warning("No preferred format reported as supported, falling back to %s", candidates[-1].mime_type)
    return candidates[-1]


def encode_jpeg(frame: np.ndarray, quality: int | None = None) -> bytes:
    """Encode an RGB frame as JPEG."""
    quality = quality or config.render.jpeg_quality
    bgr = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
    ok, buffer = cv2.imencode(".jpg", bgr, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ok:
        raise CaptureError("Failed to encode frame as JPEG")
    return buffer.tobytes()


def still_artifact(frame: np.ndarray, quality: int | None = None) -> ExportArtifact:
    prefix = config.capture.filename_prefix
    return ExportArtifact(
        filename=f"{prefix}-{timestamp_ms()}.jpg",
        mime_type="image/jpeg",
        data=encode_jpeg(frame, quality),
    )


class _MemoryFile(io.BytesIO):
    """In-memory output that keeps its bytes after the muxer closes it."""

    final: bytes = b""

    def close(self) -> None:
        if not self.closed:
            self.final = self.getvalue()
        super().close()


class FrameEncoder:
    """PyAV encoder writing a whole container into memory."""

    def __init__(self, fmt: ExportFormat, width: int, height: int, fps: int, bitrate: int) -> None:
        self.format = fmt
        self.fps = fps
        # yuv420p needs even dimensions
        self.width = width - width % 2
        self.height = height - height % 2
        if self.width <= 0 or self.height <= 0:
            raise CaptureError(f"Invalid frame size {width}x{height}")

        self._buffer = _MemoryFile()
        self._time_base = fractions.Fraction(1, fps)
        self._frames = 0
        try:
            self._container = av.open(self._buffer, mode="w", format=fmt.container)
            self._stream = self._container.add_stream(fmt.codec, rate=fps)
            self._stream.width = self.width
            self._stream.height = self.height
            self._stream.pix_fmt = "yuv420p"
            self._stream.bit_rate = bitrate
        except (av.error.FFmpegError, ValueError) as exc:
            raise CaptureError(f"Cannot open {fmt.mime_type} encoder: {exc}") from exc

    @property
    def frames_written(self) -> int:
        return self._frames

    def encode(self, frame: np.ndarray) -> None:
        if frame.shape[:2] != (self.height, self.width):
            frame = frame[: self.height, : self.width]
            if frame.shape[:2] != (self.height, self.width):
                frame = cv2.resize(frame, (self.width, self.height))
        video_frame = av.VideoFrame.from_ndarray(np.ascontiguousarray(frame), format="rgb24")
        video_frame.pts = self._frames
        video_frame.time_base = self._time_base
        try:
            for packet in self._stream.encode(video_frame):
                self._container.mux(packet)
        except av.error.FFmpegError as exc:
            raise CaptureError(f"Encoding failed: {exc}") from exc
        self._frames += 1

    def finish(self) -> bytes:
        """Flush the encoder, write the trailer and return the container bytes."""
        try:
            for packet in self._stream.encode(None):
                self._container.mux(packet)
        except av.error.FFmpegError as exc:
            raise CaptureError(f"Flushing encoder failed: {exc}") from exc
        finally:
            self._container.close()
        return self._buffer.final or self._buffer.getvalue()

    def close(self) -> None:
        """Abort without producing output."""
        try:
            self._container.close()
        except av.error.FFmpegError as exc:
            logger.debug("Ignoring error while aborting encoder: %s", exc)


class CaptureSession:
    """
    One real-time recording of the surface while the main video plays.

    start() rewinds the video and begins sampling the surface at the
    nominal frame rate. The video's ended signal stops the session and
    wait() yields the artifact. Recording runs in real time, so a clip of
    N seconds takes about N seconds to export.
    """

    def __init__(
        self,
        surface: Surface,
        video,
        set_exporting: Callable[[bool], None],
        render_now: Callable[[], object] | None = None,
        on_progress: Callable[[float], None] | None = None,
        settings: CaptureConfig | None = None,
    ) -> None:
        self.surface = surface
        self.video = video
        self.settings = settings or config.capture
        self._set_exporting = set_exporting
        self._render_now = render_now
        self._on_progress = on_progress
        self._encoder: FrameEncoder | None = None
        self._sampler: asyncio.Task | None = None
        self._watchdog: asyncio.TimerHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._done: asyncio.Future | None = None
        self._progress = 0.0

    @property
    def running(self) -> bool:
        return self._done is not None and not self._done.done()

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def format(self) -> ExportFormat | None:
        return None if self._encoder is None else self._encoder.format

    def start(self) -> None:
        """
        Begin recording. Must be called from the event loop.

        Raises:
            CaptureError: If no encoder could be opened. Exporting is cleared.
        """
        if self._done is not None:
            raise CaptureError("Capture session already started")
        loop = asyncio.get_running_loop()

        self._set_exporting(True)
        try:
            self.video.pause()
            self.video.seek(0.0)
            if self._render_now is not None:
                self._render_now()
            self._encoder = self._open_encoder()
        except Exception:
            self._set_exporting(False)
            raise

        self._done = loop.create_future()
        self._unsubscribe = self.video.on_ended(self.stop)
        self._sampler = loop.create_task(self._sample_loop())
        if self.settings.max_duration_s is not None:
            self._watchdog = loop.call_later(self.settings.max_duration_s, self._timeout)
        self.video.play()
        logger.info(
            "Recording started: %s, %d fps, %.1fs source",
            self._encoder.format.mime_type,
            self.settings.fps,
            self.video.duration,
        )

    async def wait(self) -> ExportArtifact:
        if self._done is None:
            raise CaptureError("Capture session not started")
        return await self._done

    def stop(self) -> None:
        """Finish the recording and resolve wait() with the artifact."""
        if not self.running or self._encoder is None:
            return
        self._teardown()
        try:
            data = self._encoder.finish()
        except CaptureError as exc:
            self._set_exporting(False)
            self._done.set_exception(exc)
            return

        fmt = self._encoder.format
        artifact = ExportArtifact(
            filename=f"{self.settings.filename_prefix}-video-{timestamp_ms()}.{fmt.extension}",
            mime_type=fmt.mime_type,
            data=data,
        )
        self._set_exporting(False)
        self._report_progress(1.0)
        logger.info(
            "Recording finished: %s, %d frames, %d bytes",
            artifact.filename,
            self._encoder.frames_written,
            len(data),
        )
        self._done.set_result(artifact)

    def abort(self, error: CaptureError | None = None) -> None:
        """Drop the recording without an artifact."""
        if not self.running:
            return
        self._teardown()
        self.video.pause()
        if self._encoder is not None:
            self._encoder.close()
        self._set_exporting(False)
        self._done.set_exception(error or CaptureError("Capture aborted"))

    def _open_encoder(self) -> FrameEncoder:
        width, height = self.surface.width, self.surface.height
        first = self.surface.snapshot()
        if first is None:
            raise CaptureError("Nothing to record: surface is empty")

        preferred = negotiate_format(self.settings.formats)
        candidates = [preferred] + [
            KNOWN_FORMATS[mime]
            for mime in self.settings.formats
            if mime in KNOWN_FORMATS and KNOWN_FORMATS[mime] != preferred
        ]
        errors = []
        for fmt in candidates:
            try:
                encoder = FrameEncoder(fmt, width, height, self.settings.fps, self.settings.bitrate)
            except CaptureError as exc:
                errors.append(str(exc))
                continue
            try:
                # some encoders only fail on the first frame
                encoder.encode(first)
            except CaptureError as exc:
                encoder.close()
                errors.append(str(exc))
                continue
            return encoder
        raise CaptureError("No usable video encoder: " + "; ".join(errors))

    async def _sample_loop(self) -> None:
        interval = 1 / self.settings.fps
        while True:
            await asyncio.sleep(interval)
            frame = self.surface.snapshot()
            if frame is None:
                continue
            try:
                self._encoder.encode(frame)
            except CaptureError as exc:
                logger.error("Recording failed: %s", exc)
                self.abort(exc)
                return
            duration = self.video.duration
            self._report_progress(self.video.current_time / duration if duration > 0 else 0.0)

    def _report_progress(self, value: float) -> None:
        self._progress = min(1.0, max(0.0, value))
        if self._on_progress is not None:
            self._on_progress(self._progress)

    def _timeout(self) -> None:
        logger.warning("Recording exceeded %.1fs, aborting", self.settings.max_duration_s)
        self.abort(CaptureTimeoutError(f"Recording exceeded {self.settings.max_duration_s}s"))

    def _teardown(self) -> None:
        if self._sampler is not None and self._sampler is not asyncio.current_task():
            self._sampler.cancel()
        self._sampler = None
        if self._watchdog is not None:
            self._watchdog.cancel()
            self._watchdog = None
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
