"""Тесты конфигурации."""

import pytest
from pydantic import ValidationError

from timemark.config import CaptureConfig, Config, InteractionConfig, OverlayConfig, RenderConfig


def test_overlay_config_defaults() -> None:
    """Проверка дефолтных значений OverlayConfig."""
    config = OverlayConfig()

    assert config.enabled is True
    assert isinstance(config.plugins, dict)
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
        assert name in config.plugins
        assert config.plugins[name]["enabled"] is True
    assert config.plugins["verified_stamp"]["caption"] == "PHOTO VERIFIED"


def test_overlay_config_can_be_disabled() -> None:
    """Водяной знак можно отключить."""
    config = OverlayConfig(enabled=False)

    assert config.enabled is False


def test_overlay_config_plugin_parameters() -> None:
    """Можно настраивать параметры плагинов."""
    config = OverlayConfig(
        plugins={
            "info_panel": {"enabled": True, "brackets": False},
            "separators": {"enabled": False, "inset": 40},
        }
    )

    assert config.plugins["info_panel"]["brackets"] is False
    assert config.plugins["separators"]["enabled"] is False
    assert config.plugins["separators"]["inset"] == 40


def test_render_config_defaults() -> None:
    """Виртуальная ширина 1000, JPEG экспорта с качеством 95."""
    config = RenderConfig()

    assert config.virtual_width == 1000.0
    assert config.jpeg_quality == 95
    assert config.refresh_hz == 60


def test_interaction_config_defaults() -> None:
    """Пороговые значения прямого редактирования."""
    config = InteractionConfig()

    assert config.min_region_size == 100.0
    assert config.handle_hit_radius == 30.0
    assert config.anchor_hit_radius == 150.0


def test_capture_config_defaults() -> None:
    """30 кадров/с, 8 Мбит/с, h264 в mp4 первым, без таймаута."""
    config = CaptureConfig()

    assert config.fps == 30
    assert config.bitrate == 8_000_000
    assert config.formats[0] == "video/mp4;codecs=h264"
    assert config.formats[-1] == "video/webm"
    assert config.max_duration_s is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"fps": 0},
        {"bitrate": 10},
        {"max_duration_s": 0},
    ],
)
def test_capture_config_rejects_invalid_values(kwargs: dict) -> None:
    """Значения вне допустимого диапазона отклоняются."""
    with pytest.raises(ValidationError):
        CaptureConfig(**kwargs)


def test_config_aggregates_sections() -> None:
    """Главная конфигурация содержит все секции."""
    config = Config()

    assert config.server.port == 8000
    assert config.render.virtual_width == 1000.0
    assert config.capture.fps == 30
    assert config.overlay.enabled is True
