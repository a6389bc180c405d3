"""Milepost grid: plain and mountain cells plus city anchors."""

import numpy as np
import structlog
from numpy.typing import NDArray

from ..board import City, Milepost
from ..config import CityConfig, MilepostConfig
from ..types import CitySize
from .geometry import points_in_polygon
from .grid import HexGrid

logger = structlog.get_logger()


def playable_cell_mask(
    cells: NDArray[np.float64],
    boundary: NDArray[np.float64],
    lakes: list[NDArray[np.float64]],
) -> NDArray[np.bool_]:
    """Mask of cells strictly inside the boundary and outside every lake."""
    mask = points_in_polygon(cells, boundary)
    for lake in lakes:
        mask &= ~points_in_polygon(cells, lake)
    return mask


def city_anchor_cost(city: City, config: CityConfig) -> int:
    return config.major_cost if city.size is CitySize.MAJOR else config.city_cost


def build_mileposts(
    boundary: NDArray[np.float64],
    lakes: list[NDArray[np.float64]],
    cities: list[City],
    grid: HexGrid,
    rng: np.random.Generator,
    config: MilepostConfig,
    city_config: CityConfig,
) -> list[Milepost]:
    """Lay out the milepost grid across the continent.

    Regular mileposts fill every playable cell not claimed by a city anchor
    and independently roll mountain status. City anchors are merged in
    afterwards, carrying their city's fixed cost and id.

    Args:
        boundary: Closed continent polygon.
        lakes: Closed lake polygons.
        cities: Placed cities.
        grid: Milepost grid layout.
        rng: Random number generator.
        config: Milepost parameters.
        city_config: City costs.

    Returns:
        Mileposts with ``milepost_id`` equal to their list index.
    """
    cells = grid.cells()
    mask = playable_cell_mask(cells, boundary, lakes)

    anchor_coords = np.array(
        [anchor for city in cities for anchor in city.anchors], dtype=np.float64
    ).reshape(-1, 2)
    if len(anchor_coords):
        diff = cells[:, None, :] - anchor_coords[None, :, :]
        near_anchor = np.any(
            np.hypot(diff[..., 0], diff[..., 1]) <= config.coordinate_tolerance, axis=1
        )
        mask &= ~near_anchor

    regular = cells[mask]
    is_mountain = rng.random(len(regular)) < config.mountain_density

    mileposts: list[Milepost] = []
    for (x, y), mountain in zip(regular, is_mountain):
        mileposts.append(
            Milepost(
                milepost_id=len(mileposts),
                x=float(x),
                y=float(y),
                cost=config.mountain_cost if mountain else config.plain_cost,
                is_mountain=bool(mountain),
            )
        )

    for city in cities:
        cost = city_anchor_cost(city, city_config)
        for x, y in city.anchors:
            mileposts.append(
                Milepost(
                    milepost_id=len(mileposts),
                    x=x,
                    y=y,
                    cost=cost,
                    city_id=city.city_id,
                )
            )

    logger.info(
        "mileposts_built",
        regular=len(regular),
        mountains=int(np.count_nonzero(is_mountain)),
        city_anchors=len(anchor_coords),
    )
    return mileposts
