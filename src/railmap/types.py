"""Core value types shared by the board model and the generators."""

from enum import Enum

# Plane coordinate (x, y). Polygons and polylines are tuples of points.
Point = tuple[float, float]


class CitySize(str, Enum):
    """City tiers, from a single-anchor town to a seven-anchor capital."""

    SMALL = "small"
    MEDIUM = "medium"
    MAJOR = "major"

    @property
    def anchor_count(self) -> int:
        """Number of grid cells a city of this size occupies."""
        return 7 if self is CitySize.MAJOR else 1

    @property
    def goods_count(self) -> int:
        """Number of distinct goods a city of this size produces."""
        return _GOODS_COUNTS[self]

    @property
    def connection_limit(self) -> int | None:
        """Maximum number of players whose track may enter the city.

        None means unlimited.
        """
        return _CONNECTION_LIMITS[self]


_GOODS_COUNTS: dict[CitySize, int] = {
    CitySize.SMALL: 1,
    CitySize.MEDIUM: 2,
    CitySize.MAJOR: 3,
}

_CONNECTION_LIMITS: dict[CitySize, int | None] = {
    CitySize.SMALL: 2,
    CitySize.MEDIUM: 3,
    CitySize.MAJOR: None,
}


class RiverSource(str, Enum):
    """Where a river starts."""

    LAKE = "lake"
    INTERIOR = "interior"


class RiverTermination(str, Enum):
    """Why river growth stopped."""

    REACHED_END = "reached_end"
    JOINED_RIVER = "joined_river"
    HIT_BOUNDARY = "hit_boundary"
