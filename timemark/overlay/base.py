"""Базовые интерфейсы для системы слоёв водяного знака."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Protocol

import numpy as np

from timemark.coords import CoordinateMapper
from timemark.model import ElementLayout, WatermarkContent


@dataclass(frozen=True)
class Scene:
    """
    Входные данные одного кадра.

    Неизменяемое значение, которое передаётся в каждый слой явно:
    рендер - чистая функция от Scene.
    """

    background: np.ndarray | None
    content: WatermarkContent
    layout: ElementLayout
    logo: np.ndarray | None = None
    map_frame: np.ndarray | None = None
    exporting: bool = False


@dataclass(frozen=True)
class RenderContext:
    """Scene + конвертер координат для текущего размера поверхности."""

    scene: Scene
    mapper: CoordinateMapper

    @property
    def layout(self) -> ElementLayout:
        return self.scene.layout

    @property
    def content(self) -> WatermarkContent:
        return self.scene.content

    @property
    def exporting(self) -> bool:
        return self.scene.exporting

    @property
    def base_scale(self) -> float:
        return self.mapper.base_scale

    def px(self, value: float) -> float:
        return self.mapper.to_pixel(value)

    def panel_rect(self) -> tuple[float, float, float, float]:
        """Прямоугольник инфо-панели в пикселях (x, y, w, h)."""
        box = self.layout.box
        return self.px(box.x), self.px(box.y), self.px(box.w), self.px(box.h)

    def panel_point(self, dx: float, dy: float) -> tuple[float, float]:
        """Точка со смещением относительно левого верхнего угла панели, в пикселях."""
        box = self.layout.box
        return self.px(box.x + dx), self.px(box.y + dy)


class OverlayRenderer(Protocol):
    """
    Интерфейс рендерера водяного знака.

    Рендерер управляет отрисовкой всех слоёв на кадре.
    """

    def draw(self, frame: np.ndarray, ctx: RenderContext) -> None:
        """
        Отрисовать все слои на кадре.

        Args:
            frame: Кадр в формате RGB (numpy array)
            ctx: Контекст кадра
        """
        ...


class Layer(ABC):
    """
    Базовый класс для слоя водяного знака.

    Каждый слой отвечает за отрисовку одного элемента (карта, панель,
    текст, штамп и т.д.).

    Приоритет задаёт фиксированный порядок отрисовки:
    - PRIORITY_MAP (10): врезка с картой
    - PRIORITY_PANEL (20): инфо-панель
    - PRIORITY_SEPARATORS (30): разделители
    - PRIORITY_TEXT (40): текст, логотип, строки с маркерами
    - PRIORITY_HANDLES (50): маркеры панели
    - PRIORITY_ID (60): повёрнутая строка ID
    - PRIORITY_STAMP (70): штамп верификации
    - PRIORITY_BRAND (80): фирменный знак в углу

    Слои с меньшим приоритетом рисуются раньше (снизу),
    с большим - позже (сверху).
    """

    PRIORITY_MAP = 10
    PRIORITY_PANEL = 20
    PRIORITY_SEPARATORS = 30
    PRIORITY_TEXT = 40
    PRIORITY_HANDLES = 50
    PRIORITY_ID = 60
    PRIORITY_STAMP = 70
    PRIORITY_BRAND = 80

    def __init__(self, enabled: bool = True, priority: int = PRIORITY_TEXT) -> None:
        """
        Инициализация слоя.

        Args:
            enabled: Включён ли слой
            priority: Приоритет отрисовки (меньше = раньше)
        """
        self.enabled = enabled
        self.priority = priority

    @abstractmethod
    def render(self, frame: np.ndarray, ctx: RenderContext) -> None:
        """
        Отрисовать слой на кадре.

        Args:
            frame: Кадр в формате RGB (numpy array), модифицируется на месте
            ctx: Контекст кадра (сцена и масштаб)
        """
        ...
