"""Модель данных водяного знака: текстовое содержимое и геометрия элементов.

Вся геометрия задаётся в виртуальных единицах (ширина макета 1000),
поэтому раскладка не зависит от разрешения исходника.
"""

import logging
import math
from collections.abc import Callable
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class DateMode(str, Enum):
    ONE_ROW = "1-row"
    TWO_ROW = "2-row"


class ElementId(str, Enum):
    """Закрытый набор элементов водяного знака."""

    BOX = "box"
    MAP = "map"
    LOGO = "logo"
    UNIT_NAME = "unitName"
    TASK = "task"
    TIME = "time"
    DATE = "date"
    INFO1 = "info1"
    INFO2 = "info2"
    INFO3 = "info3"
    ID = "id"
    VERIFIED_STAMP = "verifiedStamp"
    SEP_LINE = "sepLine"
    SEP_ARROWS = "sepArrows"


class UnknownElementError(KeyError):
    """Неизвестный идентификатор элемента."""


class UnknownFieldError(ValueError):
    """Поле не существует у элемента данного типа."""


class _Model(BaseModel):
    # camelCase на проводе, snake_case в коде
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class WatermarkContent(_Model):
    """Текст водяного знака. Строки могут содержать переводы строк."""

    unit_name: str = "CÔNG AN PHƯỜNG 1"
    task: str = "TUẦN TRA ĐẢM BẢO ANTT"
    time: str = "22:02"
    date: str = "Thứ Bảy, 07/06/2025"
    date_mode: DateMode = DateMode.TWO_ROW
    info1: str = "138 Cách Mạng Tháng Tám"
    info2: str = "Khu phố 3, Tây Ninh"
    info3: str = "10.967342°N, 106.853483°E"
    id: str = "LPTRBM1DGWBNAN Timemark Verified"


class RegionConfig(_Model):
    """Прямоугольная область с абсолютной привязкой (box, map). Можно растягивать."""

    x: float
    y: float
    w: float
    h: float
    scale: float = 1.0
    opacity: float = 1.0
    border_radius: float = 24.0


class AnchorConfig(_Model):
    """Элемент, привязанный к точке (id, verifiedStamp)."""

    x: float
    y: float
    scale: float = 1.0
    opacity: float = 1.0
    letter_spacing: float = 0.0


class TextConfig(_Model):
    """Элемент со смещением относительно левого верхнего угла панели."""

    dx: float
    dy: float
    scale: float = 1.0
    letter_spacing: float = 0.0
    v_spacing: float = 0.0


class SeparatorConfig(_Model):
    """Разделитель, растянутый по ширине панели; dy отсчитывается от верха панели."""

    dy: float
    scale: float = 1.0
    thickness: float = 2.0
    opacity: float = 1.0


ElementConfig = Union[RegionConfig, AnchorConfig, TextConfig, SeparatorConfig]


class ElementLayout(_Model):
    """Полный набор конфигураций элементов."""

    box: RegionConfig = RegionConfig(x=30, y=580, w=620, h=400, opacity=0.85, border_radius=24)
    map: RegionConfig = RegionConfig(x=30, y=30, w=200, h=200, opacity=0.9, border_radius=20)
    logo: TextConfig = TextConfig(dx=30, dy=25)
    unit_name: TextConfig = TextConfig(dx=160, dy=60, letter_spacing=0.5)
    task: TextConfig = TextConfig(dx=160, dy=105, letter_spacing=0.5)
    time: TextConfig = TextConfig(dx=30, dy=245, scale=1.1, letter_spacing=1)
    date: TextConfig = TextConfig(dx=270, dy=205, letter_spacing=0.5)
    info1: TextConfig = TextConfig(dx=30, dy=295)
    info2: TextConfig = TextConfig(dx=30, dy=330)
    info3: TextConfig = TextConfig(dx=30, dy=365)
    id: AnchorConfig = AnchorConfig(x=975, y=500, opacity=0.6, letter_spacing=2)
    verified_stamp: AnchorConfig = AnchorConfig(x=960, y=950)
    sep_line: SeparatorConfig = SeparatorConfig(dy=130, thickness=2, opacity=1.0)
    sep_arrows: SeparatorConfig = SeparatorConfig(dy=155, opacity=0.6)

    def get(self, element: ElementId) -> ElementConfig:
        return getattr(self, _ATTR_BY_ELEMENT[element])

    def replace_element(self, element: ElementId, cfg: ElementConfig) -> "ElementLayout":
        return self.model_copy(update={_ATTR_BY_ELEMENT[element]: cfg})


# ElementId -> имя атрибута ElementLayout ("unitName" -> "unit_name")
_ATTR_BY_ELEMENT: dict[ElementId, str] = {
    ElementId(info.alias): name for name, info in ElementLayout.model_fields.items()
}


def element_id(value: ElementId | str) -> ElementId:
    """Разобрать идентификатор элемента (camelCase или snake_case)."""
    if isinstance(value, ElementId):
        return value
    try:
        return ElementId(value)
    except ValueError:
        for element, attr in _ATTR_BY_ELEMENT.items():
            if attr == value:
                return element
    raise UnknownElementError(value)


def coerce_number(value: Any) -> float:
    """
    Привести значение числового поля к float.

    Нечисловой ввод (пустая строка, текст, None, NaN) становится 0.0.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def _resolve_field(model: type[BaseModel], field: str) -> str:
    if field in model.model_fields:
        return field
    for name, info in model.model_fields.items():
        if info.alias == field:
            return name
    raise UnknownFieldError(f"{model.__name__} has no field '{field}'")


Listener = Callable[[], None]


class LayoutStore:
    """
    Хранилище содержимого и раскладки.

    Единая точка изменения конфигурации: числовые поля формы, кнопки-стрелки
    и перетаскивание мышью проходят через update()/nudge(), поэтому все
    способы редактирования эквивалентны. Подписчики уведомляются после
    каждого изменения.
    """

    def __init__(
        self,
        layout: ElementLayout | None = None,
        content: WatermarkContent | None = None,
    ) -> None:
        self._layout = layout or ElementLayout()
        self._content = content or WatermarkContent()
        self._listeners: list[Listener] = []

    @property
    def layout(self) -> ElementLayout:
        return self._layout

    @property
    def content(self) -> WatermarkContent:
        return self._content

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Подписаться на изменения. Возвращает функцию отписки."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get(self, element: ElementId | str) -> ElementConfig:
        return self._layout.get(element_id(element))

    def replace(self, layout: ElementLayout | dict[str, Any]) -> None:
        if not isinstance(layout, ElementLayout):
            layout = ElementLayout.model_validate(layout)
        self._layout = layout
        self._notify()

    def update(self, element: ElementId | str, field: str, value: Any) -> ElementConfig:
        """
        Установить одно числовое поле элемента.

        Raises:
            UnknownElementError: Элемент не существует
            UnknownFieldError: У элемента нет такого поля
        """
        target = element_id(element)
        current = self._layout.get(target)
        name = _resolve_field(type(current), field)
        updated = current.model_copy(update={name: coerce_number(value)})
        self._layout = self._layout.replace_element(target, updated)
        self._notify()
        return updated

    def nudge(self, element: ElementId | str, field: str, delta: Any) -> ElementConfig:
        """Сдвинуть числовое поле на delta относительно текущего значения."""
        current = self.get(element)
        name = _resolve_field(type(current), field)
        base = getattr(current, name) or 0.0
        return self.update(element, name, base + coerce_number(delta))

    def set_content(self, content: WatermarkContent | dict[str, Any]) -> None:
        if not isinstance(content, WatermarkContent):
            content = WatermarkContent.model_validate(content)
        self._content = content
        self._notify()

    def update_content(self, field: str, value: Any) -> WatermarkContent:
        name = _resolve_field(WatermarkContent, field)
        data = self._content.model_dump()
        data[name] = value
        self._content = WatermarkContent.model_validate(data)
        self._notify()
        return self._content

    def reset(self) -> None:
        """Вернуть содержимое и раскладку к значениям по умолчанию."""
        self._layout = ElementLayout()
        self._content = WatermarkContent()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()
