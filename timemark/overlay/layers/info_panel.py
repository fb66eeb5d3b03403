"""Слой инфо-панели (подложка под текст)."""

import cv2
import numpy as np

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import (
    AMBER,
    PANEL_BOTTOM,
    PANEL_TOP,
    WHITE,
    Color,
    Shadow,
    blend_mask,
    draw_shadow,
    inner_stroke,
    rounded_rect_mask,
    vertical_gradient,
)
from timemark.overlay.plugin_registry import register_layer


@register_layer("info_panel")
class InfoPanelLayer(Layer):
    """
    Инфо-панель.

    Скруглённый прямоугольник с вертикальным градиентом, тенью и тонкой
    светлой обводкой; по желанию - уголки-скобки в стиле видоискателя.
    """

    def __init__(
        self,
        enabled: bool = True,
        brackets: bool = True,
        top_color: Color = PANEL_TOP,
        bottom_color: Color = PANEL_BOTTOM,
        bracket_color: Color = AMBER,
    ) -> None:
        """
        Инициализация слоя панели.

        Args:
            enabled: Включён ли слой
            brackets: Рисовать уголки-скобки
            top_color: Цвет градиента сверху (RGB)
            bottom_color: Цвет градиента снизу (RGB)
            bracket_color: Цвет скобок (RGB)
        """
        super().__init__(enabled, priority=Layer.PRIORITY_PANEL)
        self.brackets = brackets
        self.top_color = top_color
        self.bottom_color = bottom_color
        self.bracket_color = bracket_color

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        box = ctx.layout.box
        bs = ctx.base_scale
        x, y, w, h = ctx.panel_rect()
        ix, iy = int(round(x)), int(round(y))
        iw, ih = max(int(round(w)), 1), max(int(round(h)), 1)

        mask = rounded_rect_mask(iw, ih, box.border_radius * bs)
        draw_shadow(frame, mask, ix, iy, Shadow(blur=40 * bs, offset_y=10 * bs, alpha=0.5), box.opacity)
        blend_mask(frame, mask, ix, iy, vertical_gradient(ih, self.top_color, self.bottom_color), box.opacity)
        blend_mask(frame, inner_stroke(mask, 1.5 * bs), ix, iy, WHITE, 0.15 * box.opacity)

        if self.brackets:
            self._draw_brackets(frame, x, y, w, h, bs)

    def _draw_brackets(self, frame: np.ndarray, x: float, y: float, w: float, h: float, bs: float) -> None:
        gap = 15 * bs
        length = 40 * bs
        thickness = max(int(round(3 * bs)), 1)
        corners = [
            # левый верхний
            [(x + gap, y + gap + length), (x + gap, y + gap), (x + gap + length, y + gap)],
            # правый нижний
            [
                (x + w - gap, y + h - gap - length),
                (x + w - gap, y + h - gap),
                (x + w - gap - length, y + h - gap),
            ],
        ]
        for points in corners:
            pts = np.round(np.array(points)).astype(np.int32).reshape(-1, 1, 2)
            cv2.polylines(frame, [pts], False, self.bracket_color, thickness, cv2.LINE_AA)
