"""Перевод между виртуальными единицами и пикселями поверхности."""

from dataclasses import dataclass

from timemark.config import config

VIRTUAL_WIDTH = config.render.virtual_width


@dataclass(frozen=True)
class DisplayRect:
    """Прямоугольник, в котором поверхность показана клиенту (с учётом зума)."""

    left: float
    top: float
    width: float
    height: float


@dataclass(frozen=True)
class CoordinateMapper:
    """
    Конвертер координат.

    base_scale = ширина поверхности / 1000 - единственный коэффициент
    пересчёта. Пересчитывается на каждом кадре, поэтому следит за сменой
    разрешения исходника.
    """

    surface_width: int
    surface_height: int
    base_scale: float

    @classmethod
    def for_surface(
        cls, width: int, height: int = 0, virtual_width: float = VIRTUAL_WIDTH
    ) -> "CoordinateMapper":
        scale = width / virtual_width if width > 0 else 0.0
        return cls(surface_width=width, surface_height=height, base_scale=scale)

    @property
    def is_valid(self) -> bool:
        """Поверхность нулевого размера: исходник не загружен, вызывающий должен ничего не делать."""
        return self.base_scale > 0

    def to_pixel(self, value: float) -> float:
        self._check()
        return value * self.base_scale

    def to_virtual(self, value: float) -> float:
        self._check()
        return value / self.base_scale

    def pointer_to_surface(
        self, client_x: float, client_y: float, rect: DisplayRect
    ) -> tuple[float, float]:
        """
        Перевести клиентские координаты указателя в пиксели поверхности.

        Поверхность может быть показана с зумом, поэтому координаты
        масштабируются отношением собственного размера к отображаемому.
        """
        self._check()
        if rect.width <= 0 or rect.height <= 0:
            raise ValueError("Display rect has zero size")
        fx = self.surface_width / rect.width
        fy = self.surface_height / rect.height if self.surface_height else fx
        return (client_x - rect.left) * fx, (client_y - rect.top) * fy

    def pointer_to_virtual(
        self, client_x: float, client_y: float, rect: DisplayRect
    ) -> tuple[float, float]:
        px, py = self.pointer_to_surface(client_x, client_y, rect)
        return self.to_virtual(px), self.to_virtual(py)

    def _check(self) -> None:
        if not self.is_valid:
            raise ValueError("Surface has zero size, coordinates are undefined")


# Маркеры изменения размера: 4 угла + 4 середины сторон (стороны света)
HANDLE_IDS = ("nw", "n", "ne", "w", "e", "sw", "s", "se")


def handle_points(x: float, y: float, w: float, h: float) -> dict[str, tuple[float, float]]:
    """Координаты восьми маркеров прямоугольника."""
    return {
        "nw": (x, y),
        "n": (x + w / 2, y),
        "ne": (x + w, y),
        "w": (x, y + h / 2),
        "e": (x + w, y + h / 2),
        "sw": (x, y + h),
        "s": (x + w / 2, y + h),
        "se": (x + w, y + h),
    }
