"""Примитивы отрисовки на RGB кадрах (numpy + OpenCV).

Смешивание везде обычное source-over: frame = frame * (1 - a) + color * a.
"""

import math
from dataclasses import dataclass

import cv2
import numpy as np

Color = tuple[int, int, int]

WHITE: Color = (255, 255, 255)
BLACK: Color = (0, 0, 0)
AMBER: Color = (251, 191, 36)  # #fbbf24
SLATE_300: Color = (203, 213, 225)  # #cbd5e1
RED: Color = (239, 68, 68)  # #ef4444
INDIGO: Color = (99, 102, 241)  # #6366f1
PANEL_TOP: Color = (16, 23, 42)  # #10172a
PANEL_BOTTOM: Color = (30, 41, 59)  # #1e293b
MAP_EMPTY: Color = (15, 23, 42)  # #0f172a


@dataclass(frozen=True)
class Shadow:
    """Тень в пикселях (blur как в canvas shadowBlur, т.е. sigma = blur / 2)."""

    blur: float
    offset_x: float = 0.0
    offset_y: float = 0.0
    color: Color = BLACK
    alpha: float = 1.0


def blend_mask(
    frame: np.ndarray,
    mask: np.ndarray,
    x: int,
    y: int,
    color: Color | np.ndarray,
    alpha: float = 1.0,
) -> None:
    """
    Залить цветом область кадра по маске покрытия.

    Args:
        frame: Кадр RGB uint8, модифицируется на месте
        mask: Покрытие float32 [0, 1], форма (h, w)
        x, y: Позиция левого верхнего угла маски в кадре (может выходить за кадр)
        color: Цвет RGB или массив цветов, приводимый к форме (h, w, 3)
        alpha: Общая непрозрачность
    """
    alpha = min(max(float(alpha), 0.0), 1.0)
    if alpha <= 0.0 or mask.size == 0:
        return
    fh, fw = frame.shape[:2]
    mh, mw = mask.shape[:2]
    x0, y0 = max(x, 0), max(y, 0)
    x1, y1 = min(x + mw, fw), min(y + mh, fh)
    if x0 >= x1 or y0 >= y1:
        return

    sub = mask[y0 - y : y1 - y, x0 - x : x1 - x]
    a = (np.clip(sub, 0.0, 1.0) * alpha)[..., None]

    colour = np.asarray(color, dtype=np.float32)
    if colour.ndim == 3:
        colour = np.broadcast_to(colour, (mh, mw, 3))[y0 - y : y1 - y, x0 - x : x1 - x]

    roi = frame[y0:y1, x0:x1].astype(np.float32)
    frame[y0:y1, x0:x1] = (roi * (1.0 - a) + colour * a + 0.5).astype(np.uint8)


def rounded_rect_mask(w: int, h: int, radius: float) -> np.ndarray:
    """Маска скруглённого прямоугольника (h, w), сглаженные углы."""
    w, h = max(int(w), 1), max(int(h), 1)
    mask = np.zeros((h, w), dtype=np.uint8)
    r = int(round(min(max(radius, 0.0), w / 2, h / 2)))
    if r <= 0:
        mask[:] = 255
    else:
        cv2.rectangle(mask, (r, 0), (w - 1 - r, h - 1), 255, -1)
        cv2.rectangle(mask, (0, r), (w - 1, h - 1 - r), 255, -1)
        for cx, cy in ((r, r), (w - 1 - r, r), (r, h - 1 - r), (w - 1 - r, h - 1 - r)):
            cv2.circle(mask, (cx, cy), r, 255, -1, cv2.LINE_AA)
    return mask.astype(np.float32) / 255.0


def inner_stroke(mask: np.ndarray, width: float) -> np.ndarray:
    """Внутренний контур маски заданной толщины."""
    k = 2 * max(int(round(width)), 1) + 1
    eroded = cv2.erode(mask, np.ones((k, k), dtype=np.uint8), borderType=cv2.BORDER_CONSTANT, borderValue=0)
    return np.clip(mask - eroded, 0.0, 1.0)


def vertical_gradient(h: int, top: Color, bottom: Color) -> np.ndarray:
    """Столбец цветов (h, 1, 3) для вертикального градиента."""
    t = np.linspace(0.0, 1.0, max(int(h), 1), dtype=np.float32)[:, None, None]
    return np.asarray(top, np.float32) * (1.0 - t) + np.asarray(bottom, np.float32) * t


def draw_shadow(frame: np.ndarray, mask: np.ndarray, x: int, y: int, shadow: Shadow, alpha: float = 1.0) -> None:
    """Размытая тень под маской."""
    sigma = shadow.blur / 2.0
    if sigma > 0:
        pad = int(math.ceil(sigma * 3))
        padded = cv2.copyMakeBorder(mask, pad, pad, pad, pad, cv2.BORDER_CONSTANT, value=0)
        blurred = cv2.GaussianBlur(padded, (0, 0), sigma)
    else:
        pad = 0
        blurred = mask
    blend_mask(
        frame,
        blurred,
        int(round(x - pad + shadow.offset_x)),
        int(round(y - pad + shadow.offset_y)),
        shadow.color,
        shadow.alpha * alpha,
    )


def fill_rounded_rect(
    frame: np.ndarray,
    x: float,
    y: float,
    w: float,
    h: float,
    radius: float,
    color: Color | np.ndarray,
    alpha: float = 1.0,
) -> None:
    ix, iy = int(round(x)), int(round(y))
    mask = rounded_rect_mask(int(round(w)), int(round(h)), radius)
    blend_mask(frame, mask, ix, iy, color, alpha)


def blit_image(
    frame: np.ndarray,
    image: np.ndarray,
    x: float,
    y: float,
    w: float,
    h: float,
    radius: float = 0.0,
    alpha: float = 1.0,
) -> None:
    """
    Вписать изображение в прямоугольник с обрезкой по скруглённой рамке.

    Изображение RGB или RGBA; альфа-канал учитывается.
    """
    iw, ih = max(int(round(w)), 1), max(int(round(h)), 1)
    interpolation = cv2.INTER_AREA if image.shape[1] > iw else cv2.INTER_LINEAR
    resized = cv2.resize(image, (iw, ih), interpolation=interpolation)
    mask = rounded_rect_mask(iw, ih, radius)
    if resized.ndim == 3 and resized.shape[2] == 4:
        mask = mask * (resized[..., 3].astype(np.float32) / 255.0)
        resized = resized[..., :3]
    elif resized.ndim == 2:
        resized = cv2.cvtColor(resized, cv2.COLOR_GRAY2RGB)
    blend_mask(frame, mask, int(round(x)), int(round(y)), resized.astype(np.float32), alpha)


def draw_disc(
    frame: np.ndarray,
    cx: float,
    cy: float,
    radius: float,
    color: Color,
    ring_color: Color | None = None,
    ring_width: float = 0.0,
) -> None:
    """Закрашенный круг с необязательным кольцом."""
    center = (int(round(cx)), int(round(cy)))
    r = max(int(round(radius)), 1)
    cv2.circle(frame, center, r, color, -1, cv2.LINE_AA)
    if ring_color is not None and ring_width > 0:
        cv2.circle(frame, center, r, ring_color, max(int(round(ring_width)), 1), cv2.LINE_AA)
