"""Тесты перевода координат."""

import pytest

from timemark.coords import HANDLE_IDS, CoordinateMapper, DisplayRect, handle_points


def test_base_scale_follows_surface_width() -> None:
    """base_scale = ширина / 1000."""
    assert CoordinateMapper.for_surface(1920, 1080).base_scale == pytest.approx(1.92)
    assert CoordinateMapper.for_surface(500, 900).base_scale == pytest.approx(0.5)


@pytest.mark.parametrize("width", [320, 1000, 1920, 4032])
@pytest.mark.parametrize("value", [0.0, 1.0, 333.3, 975.0])
def test_round_trip(width: int, value: float) -> None:
    """to_virtual(to_pixel(v)) == v."""
    mapper = CoordinateMapper.for_surface(width, width)

    assert mapper.to_virtual(mapper.to_pixel(value)) == pytest.approx(value)


def test_full_hd_panel_scenario() -> None:
    """Панель по умолчанию на кадре 1920x1080."""
    mapper = CoordinateMapper.for_surface(1920, 1080)

    x, y, w, h = (mapper.to_pixel(v) for v in (30, 580, 620, 400))

    assert (x, y, w, h) == pytest.approx((57.6, 1113.6, 1190.4, 768.0))


def test_zero_size_surface_is_invalid() -> None:
    """Без исходника преобразования не определены."""
    mapper = CoordinateMapper.for_surface(0, 0)

    assert not mapper.is_valid
    with pytest.raises(ValueError):
        mapper.to_pixel(10)


def test_pointer_to_surface_accounts_for_zoom() -> None:
    """Клиентские координаты масштабируются отношением размеров."""
    mapper = CoordinateMapper.for_surface(1920, 1080)
    rect = DisplayRect(left=100, top=50, width=960, height=540)

    px, py = mapper.pointer_to_surface(580, 320, rect)

    assert (px, py) == pytest.approx((960, 540))


def test_pointer_to_virtual() -> None:
    """Клиентские координаты в виртуальные единицы."""
    mapper = CoordinateMapper.for_surface(2000, 1000)
    rect = DisplayRect(left=0, top=0, width=1000, height=500)

    vx, vy = mapper.pointer_to_virtual(500, 250, rect)

    assert (vx, vy) == pytest.approx((500, 250))


def test_pointer_to_surface_rejects_empty_rect() -> None:
    mapper = CoordinateMapper.for_surface(1000, 1000)

    with pytest.raises(ValueError):
        mapper.pointer_to_surface(1, 1, DisplayRect(0, 0, 0, 0))


def test_handle_points() -> None:
    """8 маркеров: углы и середины сторон."""
    points = handle_points(10, 20, 100, 50)

    assert set(points) == set(HANDLE_IDS)
    assert points["nw"] == (10, 20)
    assert points["n"] == (60, 20)
    assert points["e"] == (110, 45)
    assert points["se"] == (110, 70)
