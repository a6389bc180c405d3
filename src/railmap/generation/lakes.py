"""Lake placement: rejection-sampled noisy loops inside the continent."""

import numpy as np
import structlog
from numpy.typing import NDArray

from ..config import LakeConfig
from .boundary import noisy_loop
from .geometry import (
    bounding_box,
    min_distance_between_polylines,
    min_distance_points_to_polyline,
    point_in_polygon,
    points_in_polygon,
    polylines_intersect,
)

logger = structlog.get_logger()


def is_valid_lake(
    candidate: NDArray[np.float64],
    boundary: NDArray[np.float64],
    existing: list[NDArray[np.float64]],
    config: LakeConfig,
) -> bool:
    """Check a candidate lake against the boundary and every accepted lake.

    A lake is valid when all of its points are inside the boundary and at
    least ``boundary_buffer`` from its edge, and it neither crosses, contains,
    nor comes within ``min_lake_distance`` of another lake.
    """
    if not np.all(points_in_polygon(candidate, boundary)):
        return False

    if min_distance_points_to_polyline(candidate, boundary) < config.boundary_buffer:
        return False

    for other in existing:
        if polylines_intersect(candidate, other, allow_endpoint_touch=False):
            return False
        if min_distance_between_polylines(candidate, other) < config.min_lake_distance:
            return False
        if point_in_polygon(candidate[0], other) or point_in_polygon(other[0], candidate):
            return False

    return True


def generate_lakes(
    boundary: NDArray[np.float64],
    rng: np.random.Generator,
    config: LakeConfig,
) -> list[NDArray[np.float64]]:
    """Place up to ``config.count`` non-overlapping lakes.

    Each lake gets ``config.max_attempts`` tries at a random center and
    radius; a lake that never fits is skipped and the rest still proceed.

    Args:
        boundary: Closed continent polygon.
        rng: Random number generator.
        config: Lake placement parameters.

    Returns:
        List of closed lake polygons, at most ``config.count`` long.
    """
    min_x, min_y, max_x, max_y = bounding_box(boundary)
    margin = config.boundary_buffer + config.max_radius
    lo_x, hi_x = min_x + margin, max_x - margin
    lo_y, hi_y = min_y + margin, max_y - margin

    if config.count > 0 and (lo_x >= hi_x or lo_y >= hi_y):
        logger.warning(
            "lake_area_too_small",
            requested=config.count,
            margin=margin,
        )
        return []

    lakes: list[NDArray[np.float64]] = []

    for lake_index in range(config.count):
        placed = None
        for attempt in range(config.max_attempts):
            cx = rng.uniform(lo_x, hi_x)
            cy = rng.uniform(lo_y, hi_y)
            radius = rng.uniform(config.min_radius, config.max_radius)
            candidate = noisy_loop(
                cx,
                cy,
                radius,
                rng,
                noise_scale=config.noise_scale,
                num_points=config.num_points,
            )
            if is_valid_lake(candidate, boundary, lakes, config):
                placed = candidate
                logger.debug(
                    "lake_placed",
                    lake_index=lake_index,
                    attempt=attempt,
                    radius=round(radius, 1),
                )
                break

        if placed is None:
            logger.warning(
                "lake_placement_exhausted",
                lake_index=lake_index,
                attempts=config.max_attempts,
            )
            continue

        lakes.append(placed)

    logger.info("lakes_placed", placed=len(lakes), requested=config.count)
    return lakes
