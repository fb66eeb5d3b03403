"""Слой с фирменным знаком в правом нижнем углу."""

import numpy as np

from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.layers.verified_stamp import draw_wordmark
from timemark.overlay.plugin_registry import register_layer
from timemark.overlay.text import BOLD, font_px

BRAND_SIZE = 24


@register_layer("brand_mark")
class BrandMarkLayer(Layer):
    """Маленький двухцветный логотип без подписи, не настраивается."""

    def __init__(self, enabled: bool = True, wordmark: tuple[str, str] = ("Time", "mark")) -> None:
        super().__init__(enabled, priority=Layer.PRIORITY_BRAND)
        self.wordmark = tuple(wordmark)

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        bs = ctx.base_scale
        height, width = frame.shape[:2]
        font = font_px(BOLD, BRAND_SIZE * bs)
        draw_wordmark(frame, self.wordmark, width - 40 * bs, height - 60 * bs, font)
