"""OpenCV рендерер водяного знака."""

import numpy as np

from timemark.overlay.base import Layer, RenderContext


class CvOverlayRenderer:
    """
    Рендерер водяного знака на основе OpenCV.

    Управляет отрисовкой всех слоёв на кадре в фиксированном порядке.
    """

    def __init__(self, layers: list[Layer]) -> None:
        """
        Инициализация рендерера.

        Args:
            layers: Список слоёв для отрисовки
        """
        # Сортируем слои по приоритету (меньше = рисуется раньше)
        self.layers = sorted(layers, key=lambda layer: layer.priority)

    def draw(self, frame: np.ndarray, ctx: RenderContext) -> None:
        """
        Отрисовать все активные слои на кадре.

        Args:
            frame: Кадр в формате RGB (numpy array), модифицируется на месте
            ctx: Контекст кадра
        """
        for layer in self.layers:
            if layer.enabled:
                layer.render(frame, ctx)
