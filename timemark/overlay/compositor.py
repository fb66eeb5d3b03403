"""Конвейер композитинга: фон + слои водяного знака на поверхности вывода."""

import logging

import cv2
import numpy as np

from timemark.coords import VIRTUAL_WIDTH, CoordinateMapper
from timemark.overlay.base import OverlayRenderer, RenderContext, Scene

logger = logging.getLogger(__name__)


class Surface:
    """
    Поверхность вывода: RGB кадр, размер которого следует за исходником.

    Пока исходник не загружен, поверхность имеет нулевой размер.
    """

    def __init__(self) -> None:
        self.frame: np.ndarray | None = None

    @property
    def width(self) -> int:
        return 0 if self.frame is None else self.frame.shape[1]

    @property
    def height(self) -> int:
        return 0 if self.frame is None else self.frame.shape[0]

    def ensure_size(self, width: int, height: int) -> bool:
        """Переразместить буфер при смене размера. Возвращает True, если размер изменился."""
        if self.frame is not None and self.frame.shape[:2] == (height, width):
            return False
        logger.info("Surface resized to %dx%d", width, height)
        self.frame = np.zeros((height, width, 3), dtype=np.uint8)
        return True

    def snapshot(self) -> np.ndarray | None:
        return None if self.frame is None else self.frame.copy()


class Compositor:
    """
    Рендер одного кадра.

    Детерминированная функция от Scene: повторный вызов с той же сценой
    даёт тот же результат.
    """

    def __init__(self, renderer: OverlayRenderer, virtual_width: float = VIRTUAL_WIDTH) -> None:
        self.renderer = renderer
        self.virtual_width = virtual_width

    def render(self, surface: Surface, scene: Scene) -> bool:
        """
        Нарисовать сцену на поверхности.

        Returns:
            False, если исходник не загружен (ничего не нарисовано)
        """
        background = scene.background
        if background is None or background.size == 0:
            return False

        height, width = background.shape[:2]
        surface.ensure_size(width, height)
        frame = surface.frame

        frame[:] = 0
        if background.shape[:2] != frame.shape[:2]:
            background = cv2.resize(background, (frame.shape[1], frame.shape[0]))
        frame[:] = background[..., :3] if background.ndim == 3 else background[..., None]

        mapper = CoordinateMapper.for_surface(width, height, self.virtual_width)
        self.renderer.draw(frame, RenderContext(scene=scene, mapper=mapper))
        return True
