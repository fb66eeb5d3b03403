"""Registry для плагинов слоёв."""

import logging
from typing import Type

from timemark.overlay.base import Layer

logger = logging.getLogger(__name__)

_PLUGINS: dict[str, Type[Layer]] = {}


def register_layer(name: str):
    """
    Декоратор для регистрации слоя-плагина.

    Args:
        name: Уникальное имя плагина. Повторная регистрация другим классом
            заменяет прежний класс и пишет предупреждение в лог

    Returns:
        Декоратор класса

    Example:
        @register_layer("my_plugin")
        class MyPluginLayer(Layer):
            def render(self, frame, ctx):
                pass
    """

    def decorator(cls: Type[Layer]) -> Type[Layer]:
        """Внутренний декоратор для регистрации класса."""
        previous = _PLUGINS.get(name)
        if previous is not None and previous is not cls:
            logger.warning("Layer %r re-registered: %s replaces %s", name, cls.__name__, previous.__name__)
        _PLUGINS[name] = cls
        return cls

    return decorator


def get_plugin(name: str) -> Type[Layer] | None:
    """
    Получить класс плагина по имени.

    Args:
        name: Имя плагина

    Returns:
        Класс плагина или None, если не найден
    """
    return _PLUGINS.get(name)


def list_plugins() -> dict[str, Type[Layer]]:
    """
    Получить словарь всех зарегистрированных плагинов.

    Returns:
        Словарь {имя: класс} всех плагинов
    """
    return _PLUGINS.copy()
