"""Слой штампа верификации."""

from dataclasses import dataclass

import numpy as np
from PIL import ImageFont

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import AMBER, WHITE, Shadow
from timemark.overlay.plugin_registry import register_layer
from timemark.overlay.text import BOLD, draw_line, font_px, glyph_widths, justify_spacing, text_width

WORDMARK_SIZE = 30
CAPTION_SIZE = 11
# расстояние между базовыми линиями подписи и логотипа, в размерах шрифта подписи
CAPTION_LEADING = 1.6


def draw_wordmark(
    frame: np.ndarray,
    words: tuple[str, str],
    right: float,
    baseline: float,
    font: ImageFont.FreeTypeFont,
    shadow: Shadow | None = None,
    alpha: float = 1.0,
) -> float:
    """
    Двухцветный логотип, выровненный по правому краю.

    Первое слово акцентным цветом, второе белым.

    Returns:
        Ширина логотипа (px)
    """
    first, second = words
    second_width = draw_line(frame, second, right, baseline, font, WHITE, shadow=shadow, alpha=alpha, align="right")
    first_width = draw_line(
        frame, first, right - second_width, baseline, font, AMBER, shadow=shadow, alpha=alpha, align="right"
    )
    return first_width + second_width


@dataclass(frozen=True)
class StampMetrics:
    wordmark_width: float
    caption_spacing: float


def stamp_metrics(
    words: tuple[str, str],
    caption: str,
    wordmark_font: ImageFont.FreeTypeFont,
    caption_font: ImageFont.FreeTypeFont,
) -> StampMetrics:
    """Ширина логотипа и интервал, растягивающий подпись ровно на эту ширину."""
    width = sum(text_width(word, wordmark_font) for word in words)
    return StampMetrics(width, justify_spacing(width, glyph_widths(caption, caption_font)))


@register_layer("verified_stamp")
class VerifiedStampLayer(Layer):
    """
    Штамп верификации.

    Логотип из двух слов и подпись под ним, выровненная по ширине
    логотипа. Правый нижний угол штампа - точка привязки (x, y).
    """

    def __init__(
        self,
        enabled: bool = True,
        caption: str = "PHOTO VERIFIED",
        wordmark: tuple[str, str] = ("Time", "mark"),
    ) -> None:
        """
        Инициализация штампа.

        Args:
            enabled: Включён ли слой
            caption: Подпись под логотипом
            wordmark: Два слова логотипа
        """
        super().__init__(enabled, priority=Layer.PRIORITY_STAMP)
        self.caption = caption
        self.wordmark = tuple(wordmark)

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        cfg = ctx.layout.verified_stamp
        bs = ctx.base_scale
        size = cfg.scale * bs
        wordmark_font = font_px(BOLD, WORDMARK_SIZE * size)
        caption_font = font_px(BOLD, CAPTION_SIZE * size)
        metrics = stamp_metrics(self.wordmark, self.caption, wordmark_font, caption_font)

        right, bottom = ctx.px(cfg.x), ctx.px(cfg.y)
        shadow = Shadow(blur=4 * bs, offset_x=2 * bs, offset_y=2 * bs, alpha=0.8)
        draw_wordmark(
            frame,
            self.wordmark,
            right,
            bottom - caption_font.size * CAPTION_LEADING,
            wordmark_font,
            shadow=shadow,
            alpha=cfg.opacity,
        )
        draw_line(
            frame,
            self.caption,
            right - metrics.wordmark_width,
            bottom,
            caption_font,
            WHITE,
            spacing=metrics.caption_spacing,
            shadow=shadow,
            alpha=cfg.opacity,
        )
