"""Растеризация и раскладка текста.

Глифы рисуются через Pillow (FreeType), чтобы корректно выводить
не-ASCII текст; на кадр маски накладываются через blend_mask.
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache

import numpy as np
from PIL import Image, ImageDraw, ImageFont

from timemark.config import config
from timemark.overlay.drawing import Color, Shadow, blend_mask, draw_shadow

logger = logging.getLogger(__name__)

LINE_HEIGHT = 1.2

BOLD = "bold"
REGULAR = "regular"
MONO = "mono"


@lru_cache(maxsize=256)
def load_font(weight: str, size: int) -> ImageFont.FreeTypeFont:
    """
    Загрузить шрифт нужного начертания и размера (px).

    Если файл шрифта не найден в системе, используется встроенный
    шрифт Pillow того же размера.
    """
    path = {
        BOLD: config.render.font_bold,
        REGULAR: config.render.font_regular,
        MONO: config.render.font_mono,
    }[weight]
    size = max(int(size), 1)
    try:
        return ImageFont.truetype(path, size)
    except OSError:
        logger.debug("Font %s not found, using Pillow default", path)
        return ImageFont.load_default(size=size)


def font_px(weight: str, size: float) -> ImageFont.FreeTypeFont:
    return load_font(weight, int(round(size)))


def text_width(text: str, font: ImageFont.FreeTypeFont) -> float:
    return float(font.getlength(text))


def glyph_widths(text: str, font: ImageFont.FreeTypeFont) -> list[float]:
    return [text_width(ch, font) for ch in text]


@dataclass(frozen=True)
class TextMask:
    """
    Маска строки текста.

    left/top - смещение левого верхнего угла маски относительно начала
    базовой линии; advance - ширина строки с учётом межбуквенного интервала.
    """

    mask: np.ndarray
    left: int
    top: int
    advance: float

    @property
    def width(self) -> int:
        return self.mask.shape[1]

    @property
    def height(self) -> int:
        return self.mask.shape[0]


def render_line(text: str, font: ImageFont.FreeTypeFont, spacing: float = 0.0) -> TextMask:
    """
    Отрисовать одну строку в маску.

    При ненулевом spacing строка рисуется по символам, каждый следующий
    символ сдвигается на измеренную ширину предыдущего + spacing.
    """
    runs = list(text) if spacing else [text]
    placed: list[tuple[str, float, tuple[int, int, int, int]]] = []
    pen = 0.0
    for run in runs:
        placed.append((run, pen, font.getbbox(run, anchor="ls")))
        pen += text_width(run, font) + spacing
    advance = pen - spacing if spacing and runs else pen

    boxes = [(p + l, t, p + r, b) for _, p, (l, t, r, b) in placed if r > l and b > t]
    if not boxes:
        return TextMask(np.zeros((0, 0), dtype=np.float32), 0, 0, advance)

    left = int(math.floor(min(b[0] for b in boxes)))
    top = int(math.floor(min(b[1] for b in boxes)))
    right = int(math.ceil(max(b[2] for b in boxes)))
    bottom = int(math.ceil(max(b[3] for b in boxes)))

    img = Image.new("L", (right - left, bottom - top), 0)
    draw = ImageDraw.Draw(img)
    for run, pen_x, _ in placed:
        draw.text((pen_x - left, -top), run, font=font, fill=255, anchor="ls")
    mask = np.asarray(img, dtype=np.float32) / 255.0
    return TextMask(mask, left, top, advance)


def draw_line(
    frame: np.ndarray,
    text: str,
    x: float,
    y: float,
    font: ImageFont.FreeTypeFont,
    color: Color,
    spacing: float = 0.0,
    shadow: Shadow | None = None,
    alpha: float = 1.0,
    align: str = "left",
) -> float:
    """
    Нарисовать строку; (x, y) - точка на базовой линии.

    Returns:
        Ширина нарисованной строки (px)
    """
    line = render_line(text, font, spacing)
    if align == "right":
        x -= line.advance
    elif align == "center":
        x -= line.advance / 2
    if line.mask.size:
        ix = int(round(x + line.left))
        iy = int(round(y + line.top))
        if shadow is not None:
            draw_shadow(frame, line.mask, ix, iy, shadow, alpha)
        blend_mask(frame, line.mask, ix, iy, color, alpha)
    return line.advance


def draw_text_block(
    frame: np.ndarray,
    text: str,
    x: float,
    y: float,
    font: ImageFont.FreeTypeFont,
    color: Color,
    letter_spacing: float = 0.0,
    v_spacing: float = 0.0,
    shadow: Shadow | None = None,
    alpha: float = 1.0,
) -> list[str]:
    """
    Общая раскладка текстового блока.

    Текст делится по переводам строк, каждая следующая строка ниже на
    font_size * 1.2 + v_spacing. Все величины в пикселях.

    Returns:
        Список нарисованных строк
    """
    lines = text.split("\n")
    step = font.size * LINE_HEIGHT + v_spacing
    for i, line in enumerate(lines):
        draw_line(frame, line, x, y + i * step, font, color, letter_spacing, shadow, alpha)
    return lines


def draw_rotated_line(
    frame: np.ndarray,
    text: str,
    x: float,
    y: float,
    font: ImageFont.FreeTypeFont,
    color: Color,
    spacing: float = 0.0,
    alpha: float = 1.0,
) -> None:
    """
    Строка, повёрнутая на -90° (читается снизу вверх), центрированная
    по точке привязки (x, y) на базовой линии.
    """
    line = render_line(text, font, spacing)
    if not line.mask.size:
        return
    rotated = np.rot90(line.mask, 1)
    # точка (advance / 2, базовая линия) строки переходит в (x, y)
    col = line.advance / 2 - line.left
    ix = int(round(x + line.top))
    iy = int(round(y - (line.width - col)))
    blend_mask(frame, np.ascontiguousarray(rotated), ix, iy, color, alpha)


def justify_spacing(target_width: float, widths: list[float]) -> float:
    """
    Межбуквенный интервал, при котором строка из символов с ширинами
    widths займёт ровно target_width.
    """
    if len(widths) < 2:
        return 0.0
    return (target_width - sum(widths)) / (len(widths) - 1)
