"""Studio: one editing session wiring sources, layout, rendering and export."""

import logging
from collections.abc import Callable

import numpy as np

from timemark.capture import CaptureError, CaptureSession, ExportArtifact, still_artifact
from timemark.config import Config, config
from timemark.coords import CoordinateMapper, DisplayRect
from timemark.interaction import Hit, InteractionStateMachine
from timemark.model import ElementConfig, ElementId, LayoutStore
from timemark.overlay.base import OverlayRenderer, Scene
from timemark.overlay.compositor import Compositor, Surface
from timemark.overlay.plugin_loader import build_renderer
from timemark.scheduler import AsyncioFrameClock, FrameClock, RenderScheduler
from timemark.sources import StillSource, VideoSource, decode_image

logger = logging.getLogger(__name__)


class Studio:
    """
    Facade used by hosts (web server, GUI, tests).

    Main image and main video are mutually exclusive, as are map image and
    map video. A loaded video (main or map) keeps the scheduler in live
    mode; still sources render once per change.
    """

    def __init__(
        self,
        settings: Config | None = None,
        clock: FrameClock | None = None,
        renderer: OverlayRenderer | None = None,
        on_progress: Callable[[float], None] | None = None,
    ) -> None:
        self.settings = settings or config
        self.store = LayoutStore()
        self.surface = Surface()
        self.compositor = Compositor(
            renderer or build_renderer(self.settings.overlay), self.settings.render.virtual_width
        )
        self.interaction = InteractionStateMachine(self.store, self.settings.interaction)
        self.scheduler = RenderScheduler(
            self.render, clock or AsyncioFrameClock(self.settings.render.refresh_hz)
        )
        self.store.subscribe(self.scheduler.mark_dirty)
        self.on_progress = on_progress

        self.image: StillSource | None = None
        self.video: VideoSource | None = None
        self.logo: np.ndarray | None = None
        self.map_image: StillSource | None = None
        self.map_video: VideoSource | None = None

        self._exporting = False
        self._capture: CaptureSession | None = None

    # --- lifecycle ---

    def start(self) -> None:
        self.scheduler.start()

    def close(self) -> None:
        """Stop the render loop and release decoders. Safe to call twice."""
        self.scheduler.stop()
        if self._capture is not None:
            self._capture.abort()
            self._capture = None
        for source in (self.video, self.map_video):
            if source is not None:
                source.close()
        self.video = None
        self.map_video = None

    @property
    def exporting(self) -> bool:
        return self._exporting

    def _set_exporting(self, value: bool) -> None:
        self._exporting = value
        self.scheduler.mark_dirty()

    @property
    def has_source(self) -> bool:
        return self.image is not None or self.video is not None

    # --- sources ---

    def load_image(self, data: bytes) -> None:
        image = StillSource.from_bytes(data)
        self._drop_video()
        self.image = image
        logger.info("Main image loaded: %dx%d", image.width, image.height)
        self._sources_changed()

    def load_video(self, data: bytes, autoplay: bool = True) -> VideoSource:
        video = VideoSource(data, loop=False, name="main video")
        self._drop_video()
        self.image = None
        self.video = video
        if autoplay:
            video.play()
        self._sources_changed()
        return video

    def load_logo(self, data: bytes) -> None:
        self.logo = decode_image(data)
        self.scheduler.mark_dirty()

    def load_map_image(self, data: bytes) -> None:
        image = StillSource.from_bytes(data)
        self._drop_map_video()
        self.map_image = image
        self._sources_changed()

    def load_map_video(self, data: bytes) -> VideoSource:
        video = VideoSource(data, loop=True, name="map video")
        self._drop_map_video()
        self.map_image = None
        self.map_video = video
        video.play()
        self._sources_changed()
        return video

    def clear_map(self) -> None:
        self._drop_map_video()
        self.map_image = None
        self._sources_changed()

    def _drop_video(self) -> None:
        if self.video is not None:
            self.video.close()
            self.video = None

    def _drop_map_video(self) -> None:
        if self.map_video is not None:
            self.map_video.close()
            self.map_video = None

    def _sources_changed(self) -> None:
        self.scheduler.set_live(self.video is not None or self.map_video is not None)
        self.scheduler.mark_dirty()

    # --- rendering ---

    def scene(self) -> Scene:
        main = self.video or self.image
        map_source = self.map_video or self.map_image
        return Scene(
            background=None if main is None else main.current_frame,
            content=self.store.content,
            layout=self.store.layout,
            logo=self.logo,
            map_frame=None if map_source is None else map_source.current_frame,
            exporting=self._exporting,
        )

    def render(self) -> bool:
        return self.compositor.render(self.surface, self.scene())

    def mapper(self) -> CoordinateMapper:
        return CoordinateMapper.for_surface(
            self.surface.width, self.surface.height, self.settings.render.virtual_width
        )

    def snapshot(self) -> np.ndarray | None:
        return self.surface.snapshot()

    # --- editing ---

    def update(self, element: ElementId | str, field: str, value) -> ElementConfig:
        return self.store.update(element, field, value)

    def nudge(self, element: ElementId | str, field: str, direction: float = 1.0) -> ElementConfig:
        """Arrow-button step: direction * nudge_step."""
        return self.store.nudge(element, field, direction * self.settings.interaction.nudge_step)

    def _pointer(self, x: float, y: float, rect: DisplayRect | None) -> tuple[CoordinateMapper, float, float]:
        mapper = self.mapper()
        if rect is not None and mapper.is_valid:
            x, y = mapper.pointer_to_surface(x, y, rect)
        return mapper, x, y

    def pointer_down(self, x: float, y: float, rect: DisplayRect | None = None) -> Hit | None:
        """Pointer press; coordinates are surface px, or client px when rect is given."""
        mapper, px, py = self._pointer(x, y, rect)
        return self.interaction.pointer_down(px, py, mapper, self._exporting)

    def pointer_move(self, x: float, y: float, rect: DisplayRect | None = None) -> bool:
        mapper, px, py = self._pointer(x, y, rect)
        return self.interaction.pointer_move(px, py, mapper, self._exporting)

    def pointer_up(self) -> None:
        self.interaction.pointer_up()

    # --- export ---

    def export_image(self) -> ExportArtifact:
        """Render without editing handles and encode the surface as JPEG."""
        if not self.has_source:
            raise CaptureError("No source loaded")
        if self._capture is not None and self._capture.running:
            raise CaptureError("Recording in progress")
        self._exporting = True
        try:
            self.render()
            frame = self.surface.snapshot()
        finally:
            self._set_exporting(False)
        artifact = still_artifact(frame, self.settings.render.jpeg_quality)
        logger.info("Image exported: %s (%d bytes)", artifact.filename, len(artifact.data))
        return artifact

    @property
    def capture(self) -> CaptureSession | None:
        return self._capture

    async def export_video(self) -> ExportArtifact:
        """
        Record the main video from the start to its end.

        Raises:
            CaptureError: No main video, a recording already runs, or no
                encoder could be opened
        """
        if self.video is None:
            raise CaptureError("No main video loaded")
        if self._capture is not None and self._capture.running:
            raise CaptureError("Recording already in progress")

        session = CaptureSession(
            self.surface,
            self.video,
            set_exporting=self._set_exporting,
            render_now=self.render,
            on_progress=self.on_progress,
            settings=self.settings.capture,
        )
        self._capture = session
        try:
            session.start()
            return await session.wait()
        finally:
            if self._capture is session:
                self._capture = None
