"""Post-generation validation of a finished board."""

import numpy as np
import structlog
from scipy.spatial import cKDTree

from ..board import Board
from ..types import CitySize, RiverSource
from .geometry import (
    VERTEX_EPSILON,
    as_points,
    min_distance_between_polylines,
    min_distance_points_to_polyline,
    point_in_polygon,
    points_in_polygon,
    polylines_intersect,
    segment_hits,
)

logger = structlog.get_logger()


class ValidationResult:
    """Result of board validation."""

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.passed = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.passed = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)


def validate_board(board: Board, log: bool = True) -> ValidationResult:
    """Check a generated board against its structural invariants.

    Shortfalls against the requested feature counts are warnings; broken
    geometry is an error.

    Args:
        board: Generated board.
        log: Emit the outcome as log events. Callers that report the
            result themselves pass False.

    Returns:
        ValidationResult with any errors/warnings.
    """
    result = ValidationResult()

    _check_mileposts(board, result)
    _check_lakes(board, result)
    _check_cities(board, result)
    _check_rivers(board, result)
    _check_counts(board, result)

    if not log:
        return result

    if result.passed:
        logger.info("board_validation_passed", warnings=len(result.warnings))
    else:
        logger.warning("board_validation_failed", errors=len(result.errors))
        for error in result.errors:
            logger.error("board_validation_error", detail=error)

    for warning in result.warnings:
        logger.warning("board_validation_warning", detail=warning)

    return result


def _check_mileposts(board: Board, result: ValidationResult) -> None:
    """Mileposts inside the boundary, outside lakes, ids matching positions."""
    if not board.mileposts:
        return

    coords = np.array([m.position for m in board.mileposts], dtype=np.float64)
    outside = np.count_nonzero(~points_in_polygon(coords, board.boundary))
    if outside:
        result.add_error(f"{outside} mileposts outside the boundary")

    for lake in board.lakes:
        wet = np.count_nonzero(points_in_polygon(coords, lake.points))
        if wet:
            result.add_error(f"{wet} mileposts inside lake {lake.lake_id}")

    misnumbered = sum(1 for i, m in enumerate(board.mileposts) if m.milepost_id != i)
    if misnumbered:
        result.add_error(f"{misnumbered} mileposts with ids not matching their index")

    tolerance = board.config.mileposts.coordinate_tolerance
    overlaps = cKDTree(coords).query_pairs(tolerance)
    if overlaps:
        result.add_error(f"{len(overlaps)} pairs of mileposts share a grid cell")


def _check_lakes(board: Board, result: ValidationResult) -> None:
    """Lakes separated from each other and buffered from the boundary."""
    lakes_config = board.config.lakes
    lakes = [as_points(lake.points) for lake in board.lakes]

    for lake, points in zip(board.lakes, lakes):
        gap = min_distance_points_to_polyline(points, board.boundary)
        if gap < lakes_config.boundary_buffer:
            result.add_error(
                f"Lake {lake.lake_id} is {gap:.1f} from the boundary "
                f"(min {lakes_config.boundary_buffer})"
            )

    for i in range(len(lakes)):
        for j in range(i + 1, len(lakes)):
            if polylines_intersect(lakes[i], lakes[j], allow_endpoint_touch=False):
                result.add_error(f"Lakes {i} and {j} intersect")
                continue
            gap = min_distance_between_polylines(lakes[i], lakes[j])
            if gap < lakes_config.min_lake_distance:
                result.add_error(
                    f"Lakes {i} and {j} are {gap:.1f} apart "
                    f"(min {lakes_config.min_lake_distance})"
                )


def _check_cities(board: Board, result: ValidationResult) -> None:
    """Anchors unique, inside the boundary, dry, and backed by mileposts."""
    seen: dict[tuple[float, float], int] = {}

    for city in board.cities:
        if len(city.anchors) != city.size.anchor_count:
            result.add_error(
                f"City {city.name} has {len(city.anchors)} anchors, "
                f"expected {city.size.anchor_count}"
            )
        if len(set(city.goods)) != city.size.goods_count:
            result.add_error(f"City {city.name} has {len(set(city.goods))} distinct goods")

        for anchor in city.anchors:
            if anchor in seen:
                result.add_error(
                    f"Anchor {anchor} shared by cities {seen[anchor]} and {city.city_id}"
                )
            seen[anchor] = city.city_id

            if not point_in_polygon(anchor, board.boundary):
                result.add_error(f"City {city.name} anchor {anchor} outside the boundary")
            if any(point_in_polygon(anchor, lake.points) for lake in board.lakes):
                result.add_error(f"City {city.name} anchor {anchor} inside a lake")

            milepost = board.find_milepost_at(*anchor)
            if milepost is None or milepost.city_id != city.city_id:
                result.add_error(f"City {city.name} anchor {anchor} has no city milepost")

    names = [city.name for city in board.cities]
    if len(set(names)) != len(names):
        result.add_error("Duplicate city names")


def _check_rivers(board: Board, result: ValidationResult) -> None:
    """River points clear of milepost buffers and lakes, except the start."""
    radius = board.config.rivers.milepost_buffer_radius
    coords = np.array([m.position for m in board.mileposts], dtype=np.float64).reshape(-1, 2)

    for river in board.rivers:
        points = as_points(river.points)
        tail = points[1:]

        if len(coords):
            diff = tail[:, None, :] - coords[None, :, :]
            gaps = np.hypot(diff[..., 0], diff[..., 1])
            crowded = np.count_nonzero(np.any(gaps < radius, axis=1))
            if crowded:
                result.add_error(
                    f"River {river.river_id} has {crowded} points within {radius} of a milepost"
                )

        for lake in board.lakes:
            if np.any(points_in_polygon(tail, lake.points)):
                result.add_error(f"River {river.river_id} has points inside lake {lake.lake_id}")

            start = points[0] if river.source is RiverSource.LAKE else None
            for a, b in zip(points[:-1], points[1:]):
                hits = segment_hits(a, b, lake.points[:-1], lake.points[1:])
                if start is not None and len(hits):
                    hits = hits[np.hypot(*(hits - start).T) > VERTEX_EPSILON]
                if len(hits):
                    result.add_error(
                        f"River {river.river_id} crosses lake {lake.lake_id}"
                    )
                    break


def _check_counts(board: Board, result: ValidationResult) -> None:
    """Fewer features than requested is allowed but reported."""
    config = board.config
    requested = {
        "lakes": (len(board.lakes), config.lakes.count),
        "major cities": (len(board.cities_of_size(CitySize.MAJOR)), config.cities.major_count),
        "medium cities": (len(board.cities_of_size(CitySize.MEDIUM)), config.cities.medium_count),
        "small cities": (len(board.cities_of_size(CitySize.SMALL)), config.cities.small_count),
        "rivers": (len(board.rivers), config.rivers.count),
    }
    for feature, (placed, wanted) in requested.items():
        if placed > wanted:
            result.add_error(f"Placed {placed} {feature}, more than the {wanted} requested")
        elif placed < wanted:
            result.add_warning(f"Placed {placed} of {wanted} requested {feature}")
