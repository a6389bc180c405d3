"""Immutable board snapshot produced by generation."""

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, PrivateAttr

from .config import BoardConfig
from .exceptions import CityNotFoundError, MilepostNotFoundError
from .types import CitySize, Point, RiverSource, RiverTermination


class Lake(BaseModel, frozen=True):
    """Closed interior water polygon (first point repeated at the end)."""

    lake_id: int
    points: tuple[Point, ...]


class City(BaseModel, frozen=True):
    """A named city occupying one or seven grid anchors."""

    city_id: int
    name: str
    size: CitySize
    anchors: tuple[Point, ...]
    goods: tuple[str, ...]

    @property
    def center(self) -> Point:
        """The anchor the city was placed around."""
        return self.anchors[0]


class Milepost(BaseModel, frozen=True):
    """Grid cell where track may terminate.

    Carries data only; interaction handlers belong to the rendering layer.
    """

    milepost_id: int
    x: float
    y: float
    cost: int
    is_mountain: bool = False
    city_id: int | None = None

    @property
    def is_city(self) -> bool:
        return self.city_id is not None

    @property
    def position(self) -> Point:
        return (self.x, self.y)


class River(BaseModel, frozen=True):
    """Open polyline flowing from a lake edge or interior point to the coast."""

    river_id: int
    points: tuple[Point, ...]
    source: RiverSource
    termination: RiverTermination
    lake_id: int | None = None

    @property
    def start(self) -> Point:
        return self.points[0]

    @property
    def end(self) -> Point:
        return self.points[-1]


class Board(BaseModel, frozen=True):
    """Read-only result of one generation run.

    Mileposts are stored in a single indexed tuple; ``milepost_id`` is the
    position in that tuple. Coordinate lookups compare by value with a
    tolerance, never by identity.
    """

    config: BoardConfig
    boundary: tuple[Point, ...]
    lakes: tuple[Lake, ...] = ()
    cities: tuple[City, ...] = ()
    mileposts: tuple[Milepost, ...] = ()
    rivers: tuple[River, ...] = ()

    _coords: NDArray[np.float64] = PrivateAttr(
        default_factory=lambda: np.zeros((0, 2), dtype=np.float64)
    )
    _cities_by_id: dict[int, City] = PrivateAttr(default_factory=dict)

    def model_post_init(self, __context: object) -> None:
        self._coords = np.array(
            [(m.x, m.y) for m in self.mileposts], dtype=np.float64
        ).reshape(-1, 2)
        self._cities_by_id = {city.city_id: city for city in self.cities}

    # --- Milepost lookups ---

    def find_milepost_at(
        self, x: float, y: float, tolerance: float | None = None
    ) -> Milepost | None:
        """Return the milepost at (x, y), or None if no cell is that close."""
        if len(self._coords) == 0:
            return None
        if tolerance is None:
            tolerance = self.config.mileposts.coordinate_tolerance

        distances = np.hypot(self._coords[:, 0] - x, self._coords[:, 1] - y)
        index = int(np.argmin(distances))
        if distances[index] > tolerance:
            return None
        return self.mileposts[index]

    def get_milepost_at(
        self, x: float, y: float, tolerance: float | None = None
    ) -> Milepost:
        """Return the milepost at (x, y).

        Raises:
            MilepostNotFoundError: If no milepost is within tolerance.
        """
        milepost = self.find_milepost_at(x, y, tolerance)
        if milepost is None:
            raise MilepostNotFoundError(f"No milepost at ({x}, {y})")
        return milepost

    def cost_at(self, x: float, y: float) -> int:
        """Connection cost of the milepost at (x, y).

        Raises:
            MilepostNotFoundError: If no milepost is within tolerance.
        """
        return self.get_milepost_at(x, y).cost

    @property
    def city_mileposts(self) -> list[Milepost]:
        return [m for m in self.mileposts if m.is_city]

    @property
    def mountain_mileposts(self) -> list[Milepost]:
        return [m for m in self.mileposts if m.is_mountain]

    # --- City lookups ---

    def get_city(self, city_id: int) -> City:
        """Get city by ID.

        Raises:
            CityNotFoundError: If city not found.
        """
        if city_id not in self._cities_by_id:
            raise CityNotFoundError(f"City {city_id} not found")
        return self._cities_by_id[city_id]

    def city_for(self, milepost: Milepost) -> City | None:
        """Get the city a milepost anchors, or None for regular mileposts."""
        if milepost.city_id is None:
            return None
        return self.get_city(milepost.city_id)

    def cities_of_size(self, size: CitySize) -> list[City]:
        return [c for c in self.cities if c.size is size]
