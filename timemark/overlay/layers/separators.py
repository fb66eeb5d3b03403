"""Слой разделителей внутри панели."""

import numpy as np

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import AMBER, Color, blend_mask
from timemark.overlay.plugin_registry import register_layer
from timemark.overlay.text import BOLD, draw_line, font_px, text_width


def arrow_count(width: float, advance: float) -> int:
    """Сколько глифов целиком помещается в ширину полосы."""
    if advance <= 0 or width <= 0:
        return 0
    return int(width // advance)


@register_layer("separators")
class SeparatorsLayer(Layer):
    """
    Разделители, привязанные к панели.

    Сплошная полоса (sepLine) и лента из повторяющихся стрелок (sepArrows).
    Обе растянуты на ширину панели за вычетом отступов и двигаются вместе
    с панелью; dy отсчитывается от её верхнего края.
    """

    def __init__(
        self,
        enabled: bool = True,
        color: Color = AMBER,
        inset: float = 25.0,
        glyph: str = ">",
        glyph_size: float = 18.0,
    ) -> None:
        """
        Инициализация слоя разделителей.

        Args:
            enabled: Включён ли слой
            color: Цвет полосы и стрелок (RGB)
            inset: Горизонтальный отступ от краёв панели (виртуальные единицы)
            glyph: Повторяемый глиф ленты
            glyph_size: Базовый размер глифа (виртуальные единицы)
        """
        super().__init__(enabled, priority=Layer.PRIORITY_SEPARATORS)
        self.color = color
        self.inset = inset
        self.glyph = glyph
        self.glyph_size = glyph_size

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        bs = ctx.base_scale
        bx, by, bw, _ = ctx.panel_rect()
        inset = self.inset * bs
        width = bw - 2 * inset
        if width <= 0:
            return

        line = ctx.layout.sep_line
        thickness = max(int(round(line.thickness * bs)), 1)
        bar = np.ones((thickness, int(round(width))), dtype=np.float32)
        blend_mask(frame, bar, int(round(bx + inset)), int(round(by + line.dy * bs)), self.color, line.opacity)

        arrows = ctx.layout.sep_arrows
        font = font_px(BOLD, self.glyph_size * arrows.scale * bs)
        count = arrow_count(width, text_width(self.glyph, font))
        if count:
            draw_line(
                frame,
                self.glyph * count,
                bx + inset,
                by + arrows.dy * bs,
                font,
                self.color,
                alpha=arrows.opacity,
            )
