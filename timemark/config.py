from typing import Any

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    """Настройки веб-сервера"""
    host: str = Field("0.0.0.0", description="Адрес для привязки сервера")
    port: int = Field(8000, ge=1, le=65535, description="Порт сервера")
    reload: bool = Field(False, description="Auto-reload при изменении кода (для разработки)")


class RenderConfig(BaseModel):
    """Настройки композитинга"""
    # Виртуальное пространство
    virtual_width: float = Field(1000.0, gt=0.0, description="Логическая ширина макета в виртуальных единицах")

    # Планировщик
    refresh_hz: int = Field(60, ge=1, le=240, description="Частота кадров цикла перерисовки для видео")

    # Превью
    preview_fps: int = Field(15, ge=1, le=60, description="Частота кадров MJPEG превью")
    preview_jpeg_quality: int = Field(80, ge=10, le=100, description="Качество JPEG для превью")

    # Экспорт снимка
    jpeg_quality: int = Field(95, ge=10, le=100, description="Качество JPEG при экспорте снимка")

    # Шрифты (имя файла или путь, ищется в системных каталогах шрифтов)
    font_bold: str = Field("DejaVuSansCondensed-Bold.ttf", description="Жирный шрифт текстовых блоков")
    font_regular: str = Field("DejaVuSansCondensed.ttf", description="Обычный шрифт текстовых блоков")
    font_mono: str = Field("DejaVuSansMono-Bold.ttf", description="Моноширинный шрифт ID")


class InteractionConfig(BaseModel):
    """Настройки прямого редактирования мышью/касанием"""
    min_region_size: float = Field(100.0, ge=1.0, description="Минимальные w/h для box и map (виртуальные единицы)")
    handle_hit_radius: float = Field(30.0, gt=0.0, description="Радиус попадания в маркер (px при ширине 1000)")
    anchor_hit_radius: float = Field(150.0, gt=0.0, description="Радиус захвата точечных элементов (id, штамп)")
    nudge_step: float = Field(2.0, gt=0.0, description="Шаг кнопок-стрелок")


class CaptureConfig(BaseModel):
    """Настройки записи видео"""
    fps: int = Field(30, ge=1, le=60, description="Номинальная частота захвата кадров")
    bitrate: int = Field(8_000_000, ge=100_000, description="Целевой битрейт (бит/с)")
    formats: list[str] = Field(
        default_factory=lambda: [
            "video/mp4;codecs=h264",
            "video/mp4",
            "video/webm;codecs=vp9",
            "video/webm",
        ],
        description="Порядок предпочтения форматов; последний - запасной",
    )
    max_duration_s: float | None = Field(
        None, gt=0.0, description="Сторожевой таймаут записи (None - без таймаута)"
    )
    filename_prefix: str = Field("timemark", description="Префикс имени выгружаемого файла")


class OverlayConfig(BaseModel):
    """Настройки слоёв водяного знака"""
    enabled: bool = Field(True, description="Рисовать водяной знак")
    plugins: dict[str, dict[str, Any]] = Field(
        default_factory=lambda: {
            "map_inset": {"enabled": True},
            "info_panel": {"enabled": True, "brackets": True},
            "separators": {"enabled": True},
            "text_blocks": {"enabled": True},
            "panel_handles": {"enabled": True},
            "id_strip": {"enabled": True},
            "verified_stamp": {"enabled": True, "caption": "PHOTO VERIFIED"},
            "brand_mark": {"enabled": True},
        },
        description="Параметры плагинов слоёв {имя: параметры}",
    )


class Config(BaseModel):
    """Главная конфигурация приложения"""
    server: ServerConfig = ServerConfig()
    render: RenderConfig = RenderConfig()
    interaction: InteractionConfig = InteractionConfig()
    capture: CaptureConfig = CaptureConfig()
    overlay: OverlayConfig = OverlayConfig()


# Глобальный экземпляр конфигурации
config = Config()
