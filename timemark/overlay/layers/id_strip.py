"""Слой с вертикальной строкой ID."""

import numpy as np

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import WHITE, Color
from timemark.overlay.plugin_registry import register_layer
from timemark.overlay.text import MONO, draw_rotated_line, font_px

ID_SIZE = 22


@register_layer("id_strip")
class IdStripLayer(Layer):
    """
    Строка ID, повёрнутая на -90° вокруг точки привязки (x, y).

    Текст центрирован по точке и читается снизу вверх.
    """

    def __init__(self, enabled: bool = True, color: Color = WHITE) -> None:
        super().__init__(enabled, priority=Layer.PRIORITY_ID)
        self.color = color

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        cfg = ctx.layout.id
        text = ctx.content.id
        if not text:
            return
        bs = ctx.base_scale
        font = font_px(MONO, ID_SIZE * cfg.scale * bs)
        draw_rotated_line(
            frame,
            text,
            ctx.px(cfg.x),
            ctx.px(cfg.y),
            font,
            self.color,
            spacing=cfg.letter_spacing * bs,
            alpha=cfg.opacity,
        )
