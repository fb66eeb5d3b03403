"""Слой с текстом панели: логотип, подразделение, задача, время, дата, строки адреса."""

import numpy as np

from timemark.model import DateMode, TextConfig, WatermarkContent
from timemark.overlay.base import Layer, RenderContext
from timemark.overlay.drawing import AMBER, RED, SLATE_300, WHITE, Color, Shadow, blit_image, draw_disc, fill_rounded_rect
from timemark.overlay.plugin_registry import register_layer
from timemark.overlay.text import BOLD, REGULAR, draw_text_block, font_px

# Базовые размеры в виртуальных единицах (умножаются на base_scale и scale элемента)
UNIT_NAME_SIZE = 36
TASK_SIZE = 26
TIME_SIZE = 100
DATE_SIZE = 32
DATE_TOP_SIZE = 34
DATE_BOTTOM_SIZE = 30
DATE_ROW_GAP = 35
INFO_SIZE = 24
INFO_TEXT_OFFSET = 28
MARKER_RADIUS = 6
LOGO_SIZE = 100
LOGO_RADIUS = 12


def split_date(date: str, mode: DateMode) -> list[str]:
    """
    Разбить дату на строки согласно режиму.

    В режиме 2-row строка делится по первому ", ": "Thứ Bảy, 07/06/2025"
    даёт ["Thứ Bảy", "07/06/2025"].
    """
    if mode != DateMode.TWO_ROW:
        return [date]
    head, _, tail = date.partition(", ")
    return [head, tail]


def text_shadow(bs: float) -> Shadow:
    return Shadow(blur=4 * bs, offset_x=2 * bs, offset_y=2 * bs, alpha=0.8)


@register_layer("text_blocks")
class TextBlocksLayer(Layer):
    """
    Текстовые элементы панели.

    Все координаты - смещения (dx, dy) от левого верхнего угла панели.
    """

    def __init__(self, enabled: bool = True, accent: Color = AMBER, marker_color: Color = RED) -> None:
        """
        Инициализация текстового слоя.

        Args:
            enabled: Включён ли слой
            accent: Цвет акцентного текста (подразделение, время)
            marker_color: Цвет маркера перед строками адреса
        """
        super().__init__(enabled, priority=Layer.PRIORITY_TEXT)
        self.accent = accent
        self.marker_color = marker_color

    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        content = ctx.content
        layout = ctx.layout

        self._draw_logo(frame, ctx)
        self._draw_text(frame, ctx, content.unit_name.upper(), layout.unit_name, BOLD, UNIT_NAME_SIZE, self.accent)
        self._draw_text(frame, ctx, content.task, layout.task, BOLD, TASK_SIZE, WHITE)
        self._draw_text(frame, ctx, content.time, layout.time, BOLD, TIME_SIZE, self.accent)
        self._draw_date(frame, ctx, content)
        self._draw_info(frame, ctx, content)

    def _draw_text(
        self,
        frame: np.ndarray,
        ctx: RenderContext,
        text: str,
        cfg: TextConfig,
        weight: str,
        size: float,
        color: Color,
        dx: float = 0.0,
        dy: float = 0.0,
    ) -> list[str]:
        bs = ctx.base_scale
        font = font_px(weight, size * cfg.scale * bs)
        x, y = ctx.panel_point(cfg.dx + dx, cfg.dy + dy)
        return draw_text_block(
            frame,
            text,
            x,
            y,
            font,
            color,
            letter_spacing=cfg.letter_spacing * bs,
            v_spacing=cfg.v_spacing * bs,
            shadow=text_shadow(bs),
        )

    def _draw_logo(self, frame: np.ndarray, ctx: RenderContext) -> None:
        cfg = ctx.layout.logo
        bs = ctx.base_scale
        size = LOGO_SIZE * cfg.scale * bs
        x, y = ctx.panel_point(cfg.dx, cfg.dy)
        if ctx.scene.logo is not None:
            blit_image(frame, ctx.scene.logo, x, y, size, size, LOGO_RADIUS * bs)
        else:
            fill_rounded_rect(frame, x, y, size, size, LOGO_RADIUS * bs, WHITE, 0.1)

    def _draw_date(self, frame: np.ndarray, ctx: RenderContext, content: WatermarkContent) -> None:
        cfg = ctx.layout.date
        lines = split_date(content.date, content.date_mode)
        if len(lines) == 1:
            self._draw_text(frame, ctx, lines[0], cfg, BOLD, DATE_SIZE, WHITE)
            return
        top, bottom = lines
        # v_spacing раздвигает строки даты вверх
        self._draw_text(frame, ctx, top, cfg, BOLD, DATE_TOP_SIZE, WHITE, dy=-(DATE_ROW_GAP + cfg.v_spacing))
        self._draw_text(frame, ctx, bottom, cfg, REGULAR, DATE_BOTTOM_SIZE, SLATE_300)

    def _draw_info(self, frame: np.ndarray, ctx: RenderContext, content: WatermarkContent) -> None:
        bs = ctx.base_scale
        layout = ctx.layout
        for text, cfg in (
            (content.info1, layout.info1),
            (content.info2, layout.info2),
            (content.info3, layout.info3),
        ):
            if not text:
                continue
            ix, iy = ctx.panel_point(cfg.dx, cfg.dy)
            draw_disc(frame, ix + MARKER_RADIUS * bs, iy - 10 * bs, MARKER_RADIUS * bs, self.marker_color)
            self._draw_text(frame, ctx, text, cfg, REGULAR, INFO_SIZE, WHITE, dx=INFO_TEXT_OFFSET)
