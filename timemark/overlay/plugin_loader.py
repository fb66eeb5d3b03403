"""Автоматическая загрузка плагинов слоёв."""

import importlib
import logging
import pkgutil
from pathlib import Path
from typing import Type

from timemark.config import OverlayConfig, config
from timemark.overlay.base import Layer
from timemark.overlay.cv_renderer import CvOverlayRenderer
from timemark.overlay.plugin_registry import list_plugins

logger = logging.getLogger(__name__)


def discover_plugins(package_name: str = "timemark.overlay.layers") -> dict[str, Type[Layer]]:
    """
    Автоматическое обнаружение и загрузка плагинов из пакета.

    Функция импортирует все модули в указанном пакете, что приводит
    к регистрации плагинов через декоратор @register_layer.

    Args:
        package_name: Имя пакета для сканирования (по умолчанию timemark.overlay.layers)

    Returns:
        Словарь {имя: класс} всех зарегистрированных плагинов
    """
    try:
        package = importlib.import_module(package_name)
    except ImportError as e:
        logger.error("Failed to import package %s: %s", package_name, e)
        return {}

    if not hasattr(package, "__file__") or package.__file__ is None:
        logger.warning("Package %s has no __file__ attribute", package_name)
        return {}

    package_path = Path(package.__file__).parent

    loaded_count = 0
    for _, module_name, _ in pkgutil.iter_modules([str(package_path)]):
        try:
            importlib.import_module(f"{package_name}.{module_name}")
            loaded_count += 1
            logger.debug("Loaded plugin module: %s.%s", package_name, module_name)
        except Exception as e:
            logger.error(
                "Failed to load plugin module %s.%s: %s", package_name, module_name, e
            )

    plugins = list_plugins()
    logger.info("Discovered %d plugins from %d modules", len(plugins), loaded_count)

    return plugins


def build_renderer(overlay: OverlayConfig | None = None) -> CvOverlayRenderer:
    """
    Собрать рендерер из слоёв, включённых в конфигурации.

    Параметры плагина (кроме enabled и priority) передаются в конструктор
    слоя; priority, если указан, переопределяет порядок отрисовки.
    """
    overlay = overlay or config.overlay
    layers: list[Layer] = []
    if not overlay.enabled:
        logger.info("Overlay disabled, renderer has no layers")
        return CvOverlayRenderer(layers)

    available_plugins = discover_plugins()

    for plugin_name, plugin_config in overlay.plugins.items():
        if not plugin_config.get("enabled", False):
            continue

        plugin_cls = available_plugins.get(plugin_name)
        if plugin_cls is None:
            logger.warning("Plugin '%s' not found, skipping", plugin_name)
            continue

        params = {
            k: v
            for k, v in plugin_config.items()
            if k not in ("enabled", "priority")
        }

        try:
            layer = plugin_cls(**params)
        except TypeError as e:
            logger.error("Failed to initialize plugin '%s': %s", plugin_name, e)
            continue

        if "priority" in plugin_config:
            layer.priority = plugin_config["priority"]

        layers.append(layer)
        logger.info("Loaded plugin '%s' with priority %d", plugin_name, layer.priority)

    return CvOverlayRenderer(layers)
