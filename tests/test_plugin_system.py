"""Тесты для системы плагинов слоёв."""

import logging

import numpy as np

from timemark.config import OverlayConfig
from timemark.overlay.base import Layer
from timemark.overlay.plugin_loader import build_renderer, discover_plugins
from timemark.overlay.plugin_registry import get_plugin, list_plugins, register_layer


def test_register_layer_decorator() -> None:
    """Тест регистрации плагина через декоратор."""

    @register_layer("test_plugin")
    class TestLayer(Layer):
        """Тестовый слой."""

        def render(self, frame: np.ndarray, ctx) -> None:
            """Заглушка метода render."""
            pass

    plugin = get_plugin("test_plugin")
    assert plugin is not None
    assert plugin == TestLayer


def test_get_plugin_returns_none_for_unknown() -> None:
    """Тест что get_plugin возвращает None для неизвестного плагина."""
    plugin = get_plugin("unknown_plugin_xyz")
    assert plugin is None


def test_list_plugins_returns_copy() -> None:
    """list_plugins возвращает копию реестра."""
    plugins = list_plugins()
    plugins["bogus"] = Layer  # type: ignore[assignment]

    assert get_plugin("bogus") is None


def test_discover_plugins_loads_all_layers() -> None:
    """Тест автоматического обнаружения плагинов."""
    plugins = discover_plugins()

    for name in (
        "map_inset",
        "info_panel",
        "separators",
        "text_blocks",
        "panel_handles",
        "id_strip",
        "verified_stamp",
        "brand_mark",
    ):
        assert name in plugins

    for plugin_name, plugin_cls in plugins.items():
        assert issubclass(plugin_cls, Layer), f"{plugin_name} is not a Layer subclass"


def test_plugin_has_priority_attribute() -> None:
    """Тест что плагины имеют атрибут priority после создания."""
    plugins = discover_plugins()

    for _plugin_name, plugin_cls in plugins.items():
        instance = plugin_cls()
        assert isinstance(instance.priority, int)


def test_discover_plugins_handles_invalid_package() -> None:
    """Тест что discover_plugins корректно обрабатывает несуществующий пакет."""
    plugins = discover_plugins("nonexistent.package.name")
    assert plugins == {}


def test_build_renderer_uses_default_config() -> None:
    """По умолчанию собираются все 8 слоёв в порядке приоритета."""
    renderer = build_renderer(OverlayConfig())

    assert len(renderer.layers) == 8
    priorities = [layer.priority for layer in renderer.layers]
    assert priorities == sorted(priorities)


def test_build_renderer_skips_disabled_and_unknown() -> None:
    """Отключенные и неизвестные плагины пропускаются."""
    overlay = OverlayConfig(
        plugins={
            "brand_mark": {"enabled": False},
            "id_strip": {"enabled": True},
            "compass": {"enabled": True},
        }
    )

    renderer = build_renderer(overlay)

    assert [type(layer).__name__ for layer in renderer.layers] == ["IdStripLayer"]


def test_build_renderer_passes_parameters_and_priority() -> None:
    """Параметры передаются в конструктор, priority переопределяется."""
    overlay = OverlayConfig(
        plugins={"info_panel": {"enabled": True, "brackets": False, "priority": 99}}
    )

    renderer = build_renderer(overlay)

    assert renderer.layers[0].brackets is False
    assert renderer.layers[0].priority == 99


def test_build_renderer_skips_bad_parameters() -> None:
    """Неверные параметры плагина не роняют сборку."""
    overlay = OverlayConfig(plugins={"id_strip": {"enabled": True, "bogus": 1}})

    assert build_renderer(overlay).layers == []


def test_build_renderer_overlay_disabled() -> None:
    """Отключенный водяной знак - рендерер без слоёв."""
    assert build_renderer(OverlayConfig(enabled=False)).layers == []


def test_register_layer_twice_warns(caplog) -> None:
    """Повторная регистрация имени другим классом пишет предупреждение."""

    @register_layer("duplicate_plugin")
    class FirstLayer(Layer):
        def render(self, frame: np.ndarray, ctx) -> None:
            pass

    with caplog.at_level(logging.WARNING, logger="timemark.overlay.plugin_registry"):
        register_layer("duplicate_plugin")(FirstLayer)
        assert not caplog.records

        @register_layer("duplicate_plugin")
        class SecondLayer(Layer):
            def render(self, frame: np.ndarray, ctx) -> None:
                pass

    assert get_plugin("duplicate_plugin") is SecondLayer
    assert "duplicate_plugin" in caplog.text
    assert "SecondLayer" in caplog.text
