"""City placement: major hex clusters first, then medium and small towns."""

import numpy as np
import structlog
from numpy.typing import NDArray

from ..board import City
from ..config import CityConfig
from ..types import CitySize, Point
from .geometry import points_in_polygon
from .grid import HexGrid

logger = structlog.get_logger()


GOODS_CATALOG: tuple[str, ...] = (
    "Bauxite",
    "Beer",
    "Cattle",
    "Cheese",
    "Coal",
    "Copper",
    "Corn",
    "Cotton",
    "Fish",
    "Flowers",
    "Fruit",
    "Hops",
    "Iron",
    "Machinery",
    "Marble",
    "Oil",
    "Sheep",
    "Steel",
    "Tobacco",
    "Tourists",
    "Wheat",
    "Wine",
    "Wood",
)

CITY_NAMES: tuple[str, ...] = (
    "Ashford",
    "Bellmoor",
    "Brackwater",
    "Carrow",
    "Dunhollow",
    "Eastmere",
    "Fallowick",
    "Glenharrow",
    "Greyhaven",
    "Halbrook",
    "Ironbridge",
    "Kestrel Point",
    "Lindenfall",
    "Marrowgate",
    "Northwold",
    "Oakmere",
    "Pellham",
    "Queensferry",
    "Redcliff",
    "Saltmarsh",
    "Stonebury",
    "Thornwick",
    "Upper Vale",
    "Westmarch",
    "Whitlow",
    "Yarrowby",
)


class CityPlacer:
    """Places cities on grid cells inside the boundary, away from lakes.

    Candidate cells are shuffled once and consumed in order, without
    replacement, across all tiers. A tier that runs out of candidates stops
    early and the next tier gets nothing.
    """

    def __init__(
        self,
        boundary: NDArray[np.float64],
        lakes: list[NDArray[np.float64]],
        grid: HexGrid,
        rng: np.random.Generator,
        config: CityConfig,
    ):
        self.boundary = boundary
        self.lakes = lakes
        self.grid = grid
        self.rng = rng
        self.config = config
        self.min_spacing = 2 * grid.horizontal_spacing

        cells = grid.cells()
        inside = points_in_polygon(cells, boundary)
        self._candidates = cells[inside]
        self.rng.shuffle(self._candidates)
        self._cursor = 0

        self._names = list(CITY_NAMES)
        self.rng.shuffle(self._names)
        self._cities: list[City] = []
        self._anchors = np.zeros((0, 2), dtype=np.float64)

    @property
    def remaining_candidates(self) -> int:
        return len(self._candidates) - self._cursor

    def place_all(self) -> list[City]:
        """Place every tier in order: major, medium, small."""
        self.place_tier(CitySize.MAJOR, self.config.major_count)
        self.place_tier(CitySize.MEDIUM, self.config.medium_count)
        self.place_tier(CitySize.SMALL, self.config.small_count)
        return list(self._cities)

    def place_tier(self, size: CitySize, count: int) -> list[City]:
        """Place up to ``count`` cities of one size."""
        placed: list[City] = []

        while len(placed) < count and self._cursor < len(self._candidates):
            center = self._candidates[self._cursor]
            self._cursor += 1

            anchors = self.anchors_for(size, (float(center[0]), float(center[1])))
            if not self.anchors_valid(anchors):
                continue

            city = self._make_city(size, anchors)
            placed.append(city)
            self._cities.append(city)
            self._anchors = np.vstack([self._anchors, np.array(anchors)])

        if len(placed) < count:
            logger.warning(
                "city_placement_exhausted",
                size=size.value,
                placed=len(placed),
                requested=count,
            )
        else:
            logger.info("cities_placed", size=size.value, placed=len(placed))

        return placed

    def anchors_for(self, size: CitySize, center: Point) -> list[Point]:
        """Anchor cells a city of this size would occupy around ``center``."""
        if size is CitySize.MAJOR:
            return [center, *self.grid.hex_ring(center)]
        return [center]

    def anchors_valid(self, anchors: list[Point]) -> bool:
        """Every anchor inside the boundary, outside lakes, clear of other cities."""
        if len(set(anchors)) != len(anchors):
            return False

        pts = np.array(anchors, dtype=np.float64)
        if not np.all(points_in_polygon(pts, self.boundary)):
            return False

        for lake in self.lakes:
            if np.any(points_in_polygon(pts, lake)):
                return False

        if len(self._anchors):
            diff = pts[:, None, :] - self._anchors[None, :, :]
            distances = np.hypot(diff[..., 0], diff[..., 1])
            if np.any(distances < self.min_spacing):
                return False

        return True

    def _make_city(self, size: CitySize, anchors: list[Point]) -> City:
        city_id = len(self._cities)
        return City(
            city_id=city_id,
            name=self._next_name(),
            size=size,
            anchors=tuple(anchors),
            goods=self._draw_goods(size),
        )

    def _next_name(self) -> str:
        if self._names:
            return self._names.pop()
        return f"City {len(self._cities) + 1}"

    def _draw_goods(self, size: CitySize) -> tuple[str, ...]:
        indices = self.rng.choice(len(GOODS_CATALOG), size=size.goods_count, replace=False)
        return tuple(GOODS_CATALOG[i] for i in indices)


def place_cities(
    boundary: NDArray[np.float64],
    lakes: list[NDArray[np.float64]],
    grid: HexGrid,
    rng: np.random.Generator,
    config: CityConfig,
) -> list[City]:
    """Place major, medium and small cities.

    Args:
        boundary: Closed continent polygon.
        lakes: Closed lake polygons.
        grid: Milepost grid layout.
        rng: Random number generator.
        config: City placement parameters.

    Returns:
        Cities in placement order; ``city_id`` is the index in this list.
    """
    return CityPlacer(boundary, lakes, grid, rng, config).place_all()
