"""Слой с врезкой карты."""

import numpy as np

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import MAP_EMPTY, WHITE, Color, blit_image, fill_rounded_rect
from timemark.overlay.layers.handles import draw_handles
from timemark.overlay.plugin_registry import register_layer


@register_layer("map_inset")
class MapInsetLayer(Layer):
    """
    Врезка с картой.

    Белая полупрозрачная рамка, внутри - изображение или текущий кадр
    видео карты, обрезанные по скруглённому прямоугольнику. Без карты
    область заливается нейтральным цветом.
    """

    def __init__(
        self,
        enabled: bool = True,
        frame_color: Color = WHITE,
        frame_alpha: float = 0.8,
        frame_width: float = 4.0,
        empty_color: Color = MAP_EMPTY,
    ) -> None:
        """
        Инициализация слоя карты.

        Args:
            enabled: Включён ли слой
            frame_color: Цвет рамки (RGB)
            frame_alpha: Непрозрачность рамки
            frame_width: Толщина рамки (виртуальные единицы)
            empty_color: Заливка при отсутствии карты (RGB)
        """
        super().__init__(enabled, priority=Layer.PRIORITY_MAP)
        self.frame_color = frame_color
        self.frame_alpha = frame_alpha
        self.frame_width = frame_width
        self.empty_color = empty_color

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        cfg = ctx.layout.map
        bs = ctx.base_scale
        x, y, w, h = ctx.px(cfg.x), ctx.px(cfg.y), ctx.px(cfg.w), ctx.px(cfg.h)
        pad = self.frame_width * bs

        fill_rounded_rect(
            frame,
            x - pad,
            y - pad,
            w + 2 * pad,
            h + 2 * pad,
            (cfg.border_radius + self.frame_width) * bs,
            self.frame_color,
            self.frame_alpha,
        )

        map_frame = ctx.scene.map_frame
        if map_frame is not None:
            blit_image(frame, map_frame, x, y, w, h, cfg.border_radius * bs)
        else:
            fill_rounded_rect(frame, x, y, w, h, cfg.border_radius * bs, self.empty_color)

        draw_handles(frame, ctx, x, y, w, h)
