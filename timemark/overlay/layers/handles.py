"""Маркеры изменения размера."""

import numpy as np

from timemark.coords import handle_points
from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import INDIGO, WHITE, draw_disc
from timemark.overlay.plugin_registry import register_layer

HANDLE_SIZE = 12.0
HANDLE_RING = 2.0


def draw_handles(frame: np.ndarray, ctx: RenderContext, x: float, y: float, w: float, h: float) -> None:
    """
    Нарисовать 8 маркеров вокруг прямоугольника (пиксели).

    При экспорте ничего не рисуется: в выгруженном файле не должно
    быть элементов редактора.
    """
    if ctx.exporting:
        return
    bs = ctx.base_scale
    for px, py in handle_points(x, y, w, h).values():
        draw_disc(frame, px, py, HANDLE_SIZE * bs / 2, WHITE, INDIGO, HANDLE_RING * bs)


@register_layer("panel_handles")
class PanelHandlesLayer(Layer):
    """Маркеры инфо-панели, поверх текста."""

    def __init__(self, enabled: bool = True) -> None:
        super().__init__(enabled, priority=Layer.PRIORITY_HANDLES)

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        draw_handles(frame, ctx, *ctx.panel_rect())
