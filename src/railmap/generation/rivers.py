"""River growth: step-by-step paths from lakes or the interior to the coast.

Rivers are grown one fixed-length step at a time toward a chosen boundary
vertex, dodging milepost buffers and lake edges by sampling along a short
perpendicular line. Crossing an earlier river or the boundary ends the river
at the crossing point. Finished paths are post-processed in ``curves``.
"""

from dataclasses import dataclass, field

import numpy as np
import structlog
from numpy.typing import NDArray
from scipy.spatial import cKDTree

from ..board import River
from ..config import RiverConfig
from ..types import RiverSource, RiverTermination
from .curves import SegmentCheck, smooth_river
from .geometry import (
    VERTEX_EPSILON,
    as_points,
    bounding_box,
    centroid,
    distance,
    distance_point_to_polyline,
    distances_points_to_segment,
    first_segment_hit,
    points_in_polygon,
    ring_vertices,
    segment_hits,
    to_point_tuple,
    unit_vector,
)

logger = structlog.get_logger()

# Distance of the sample points used to orient a lake's outward normal
NORMAL_SAMPLE_DISTANCE = 10.0


@dataclass
class RiverStart:
    """Chosen source of a river.

    ``outward`` is the lake's local outward normal for lake starts and None
    for interior starts.
    """

    point: NDArray[np.float64]
    source: RiverSource
    lake_index: int | None = None
    outward: NDArray[np.float64] | None = None


@dataclass
class RiverGrowth:
    """Raw outcome of growing one river.

    ``deflected_steps`` holds the indices of segments that were replaced by a
    perpendicular diversion.
    """

    points: NDArray[np.float64]
    termination: RiverTermination
    deflected_steps: list[int] = field(default_factory=list)


class ObstacleField:
    """Static obstacles every river must avoid: boundary, lakes and mileposts."""

    def __init__(
        self,
        boundary: NDArray[np.float64],
        lakes: list[NDArray[np.float64]],
        milepost_coords: NDArray[np.float64],
        buffer_radius: float,
    ):
        self.boundary = as_points(boundary)
        self.lakes = [as_points(lake) for lake in lakes]
        self.coords = as_points(milepost_coords)
        self.buffer_radius = buffer_radius
        self.tree = cKDTree(self.coords) if len(self.coords) else None

    def point_clear(self, point: NDArray[np.float64]) -> bool:
        """True if the point is outside every milepost buffer."""
        if self.tree is None:
            return True
        nearest, _ = self.tree.query(point)
        return bool(nearest >= self.buffer_radius)

    def points_clear(self, points: NDArray[np.float64]) -> NDArray[np.bool_]:
        pts = as_points(points)
        if self.tree is None:
            return np.ones(len(pts), dtype=bool)
        nearest, _ = self.tree.query(pts)
        return nearest >= self.buffer_radius

    def milepost_conflict(
        self, p1: NDArray[np.float64], p2: NDArray[np.float64]
    ) -> NDArray[np.float64] | None:
        """Nearest milepost whose buffer the segment enters, or None."""
        if self.tree is None:
            return None
        midpoint = (p1 + p2) / 2
        reach = self.buffer_radius + distance(p1, p2) / 2
        indices = self.tree.query_ball_point(midpoint, r=reach)
        if not indices:
            return None

        nearby = self.coords[indices]
        gaps = distances_points_to_segment(nearby, p1, p2)
        inside = gaps < self.buffer_radius
        if not np.any(inside):
            return None
        return nearby[inside][np.argmin(gaps[inside])]

    def point_in_any_lake(self, point: NDArray[np.float64]) -> bool:
        return any(points_in_polygon(point, lake)[0] for lake in self.lakes)

    def lake_conflict(
        self,
        p1: NDArray[np.float64],
        p2: NDArray[np.float64],
        ignore_point: NDArray[np.float64] | None = None,
    ) -> NDArray[np.float64] | None:
        """Nearest lake vertex if the segment crosses a lake or ends inside one.

        Edge contacts at ``ignore_point`` (a river's own lake source) do not
        count.
        """
        for lake in self.lakes:
            hits = segment_hits(p1, p2, lake[:-1], lake[1:])
            if ignore_point is not None and len(hits):
                offsets = np.hypot(*(hits - ignore_point).T)
                hits = hits[offsets > VERTEX_EPSILON]
            if len(hits) or points_in_polygon(p2, lake)[0]:
                gaps = np.hypot(*(lake - p2).T)
                return lake[np.argmin(gaps)]
        return None

    def boundary_hits(
        self, p1: NDArray[np.float64], p2: NDArray[np.float64]
    ) -> NDArray[np.float64]:
        return segment_hits(p1, p2, self.boundary[:-1], self.boundary[1:])

    def is_safe_point(self, point: NDArray[np.float64]) -> bool:
        """Inside the boundary, outside every lake and clear of mileposts."""
        return (
            bool(points_in_polygon(point, self.boundary)[0])
            and not self.point_in_any_lake(point)
            and self.point_clear(point)
        )


class RiverPathfinder:
    """Grows rivers one at a time against a shared obstacle field.

    Accepted rivers become obstacles for the ones grown after them: a later
    river that crosses an earlier one stops at the crossing.
    """

    def __init__(
        self,
        obstacles: ObstacleField,
        rng: np.random.Generator,
        config: RiverConfig,
        horizontal_spacing: float = 35.0,
    ):
        self.obstacles = obstacles
        self.rng = rng
        self.config = config
        self.min_boundary_distance = 2 * horizontal_spacing

        min_x, min_y, max_x, max_y = bounding_box(obstacles.boundary)
        self._bbox = (min_x, min_y, max_x, max_y)
        self._bbox_center = np.array([(min_x + max_x) / 2, (min_y + max_y) / 2])
        self._ray_length = 2 * float(np.hypot(max_x - min_x, max_y - min_y))

        self._lake_sources = self._eligible_lake_vertices()
        self._river_starts = np.zeros((0, 2), dtype=np.float64)
        self._river_ends = np.zeros((0, 2), dtype=np.float64)

    # --- Start and end selection ---

    def _eligible_lake_vertices(self) -> list[tuple[int, int]]:
        eligible = []
        for lake_index, lake in enumerate(self.obstacles.lakes):
            vertices = ring_vertices(lake)
            clear = self.obstacles.points_clear(vertices)
            eligible.extend((lake_index, int(k)) for k in np.flatnonzero(clear))
        return eligible

    def lake_outward_normal(
        self, lake_index: int, vertex_index: int
    ) -> NDArray[np.float64] | None:
        """Unit normal at a lake vertex, pointing away from the lake's centroid.

        Derived from the tangent through the neighbouring vertices.
        """
        vertices = ring_vertices(self.obstacles.lakes[lake_index])
        n = len(vertices)
        point = vertices[vertex_index]
        tangent = unit_vector(vertices[(vertex_index + 1) % n] - vertices[vertex_index - 1])
        if tangent is None:
            return None

        normal = np.array([-tangent[1], tangent[0]])
        center = centroid(vertices)
        ahead = distance(point + normal * NORMAL_SAMPLE_DISTANCE, center)
        behind = distance(point - normal * NORMAL_SAMPLE_DISTANCE, center)
        return normal if ahead >= behind else -normal

    def _lake_start(self) -> RiverStart | None:
        if not self._lake_sources:
            return None
        lake_index, vertex_index = self._lake_sources[
            int(self.rng.integers(len(self._lake_sources)))
        ]
        point = ring_vertices(self.obstacles.lakes[lake_index])[vertex_index]
        return RiverStart(
            point=point.copy(),
            source=RiverSource.LAKE,
            lake_index=lake_index,
            outward=self.lake_outward_normal(lake_index, vertex_index),
        )

    def _interior_start(self) -> RiverStart | None:
        min_x, min_y, max_x, max_y = self._bbox
        for _ in range(self.config.interior_start_attempts):
            point = np.array(
                [self.rng.uniform(min_x, max_x), self.rng.uniform(min_y, max_y)]
            )
            if not self.obstacles.is_safe_point(point):
                continue
            edge_gap = distance_point_to_polyline(point, self.obstacles.boundary)
            if edge_gap < self.min_boundary_distance:
                continue
            return RiverStart(point=point, source=RiverSource.INTERIOR)
        return None

    def choose_start(self) -> RiverStart | None:
        """Pick a lake-edge vertex or a validated interior point.

        Lake sources are tried first with ``lake_source_probability``. Either
        kind falls back to the other when it has no candidate.
        """
        if self._lake_sources and self.rng.random() < self.config.lake_source_probability:
            return self._lake_start()
        start = self._interior_start()
        if start is None:
            start = self._lake_start()
        return start

    def choose_end(self, start: RiverStart) -> NDArray[np.float64] | None:
        """Boundary vertex the river will head for.

        Candidates are boundary vertices clear of every milepost buffer and,
        for lake starts, on the outward side of the lake. The chosen one is
        the candidate nearest to where a ray from the start meets the
        boundary.
        """
        vertices = ring_vertices(self.obstacles.boundary)
        valid = self.obstacles.points_clear(vertices)
        if start.outward is not None:
            valid &= (vertices - start.point) @ start.outward >= 0
        candidates = vertices[valid]
        if len(candidates) == 0:
            return None

        direction = start.outward
        if direction is None:
            direction = unit_vector(start.point - self._bbox_center)
        if direction is None:
            angle = self.rng.uniform(0, 2 * np.pi)
            direction = np.array([np.cos(angle), np.sin(angle)])

        ray_end = start.point + direction * self._ray_length
        hit = first_segment_hit(
            start.point, ray_end, self.obstacles.boundary[:-1], self.obstacles.boundary[1:]
        )
        target = np.array(hit[1]) if hit is not None else ray_end
        gaps = np.hypot(*(candidates - target).T)
        return candidates[np.argmin(gaps)].copy()

    # --- Growth ---

    def step_direction(
        self,
        current: NDArray[np.float64],
        end: NDArray[np.float64],
        start: RiverStart,
        step_index: int,
    ) -> tuple[NDArray[np.float64], bool] | None:
        """Heading for the next step, and whether it is the direct heading.

        Within the departure window of a lake start, the heading is blended
        from the outward normal toward the target, unless the direct heading
        already points outward.
        """
        direct = unit_vector(end - current)
        if direct is None:
            return None

        outward = start.outward
        if outward is None or step_index >= self.config.departure_steps:
            return direct, True
        if np.dot(direct, outward) >= 0:
            return direct, True

        weight = step_index / self.config.departure_steps
        blended = unit_vector(outward * (1 - weight) + direct * weight)
        if blended is None or np.dot(blended, outward) < 0:
            blended = unit_vector(direct - np.dot(direct, outward) * outward)
        if blended is None:
            blended = outward
        return blended, False

    def _step_blocked(
        self,
        current: NDArray[np.float64],
        proposed: NDArray[np.float64],
        source: NDArray[np.float64] | None,
    ) -> NDArray[np.float64] | None:
        """Obstacle the step runs into, or None when the step is clear."""
        obstacle = self.obstacles.milepost_conflict(current, proposed)
        if obstacle is None:
            obstacle = self.obstacles.lake_conflict(current, proposed, ignore_point=source)
        return obstacle

    def _sample_line(
        self,
        current: NDArray[np.float64],
        center: NDArray[np.float64],
        perpendicular: NDArray[np.float64],
        source: NDArray[np.float64] | None,
    ) -> NDArray[np.float64] | None:
        half = self.config.diversion_length / 2
        for _ in range(self.config.diversion_attempts):
            candidate = center + perpendicular * self.rng.uniform(-half, half)
            if distance(candidate, current) < VERTEX_EPSILON:
                continue
            if self._step_blocked(current, candidate, source) is None:
                return candidate
        return None

    def divert(
        self,
        current: NDArray[np.float64],
        proposed: NDArray[np.float64],
        obstacle: NDArray[np.float64],
        source: NDArray[np.float64] | None,
    ) -> NDArray[np.float64] | None:
        """Replace a blocked step with a clear point on a perpendicular line.

        Samples up to ``diversion_attempts`` random points on a line of
        ``diversion_length`` centred on the proposed point. When none is clear,
        the line's endpoint farther from the obstacle is tried, and after that
        a sidestep along the same line moved back onto the current point.
        Returns None if every option is blocked.
        """
        heading = unit_vector(proposed - current)
        if heading is None:
            return None
        perpendicular = np.array([-heading[1], heading[0]])
        half = self.config.diversion_length / 2

        candidate = self._sample_line(current, proposed, perpendicular, source)
        if candidate is not None:
            return candidate

        ends = (proposed + perpendicular * half, proposed - perpendicular * half)
        fallback = max(ends, key=lambda end: distance(end, obstacle))
        if self._step_blocked(current, fallback, source) is None:
            return fallback

        # Head-on approaches leave nothing reachable ahead
        return self._sample_line(current, current, perpendicular, source)

    def _first_crossing(
        self,
        current: NDArray[np.float64],
        proposed: NDArray[np.float64],
        end: NDArray[np.float64],
        heading_for_end: bool,
    ) -> tuple[NDArray[np.float64], RiverTermination] | None:
        """Earliest crossing of an earlier river or the boundary along the step."""
        crossings: list[tuple[float, NDArray[np.float64], RiverTermination]] = []

        river_hit = first_segment_hit(current, proposed, self._river_starts, self._river_ends)
        if river_hit is not None:
            t, point = river_hit
            crossings.append((t, np.array(point), RiverTermination.JOINED_RIVER))

        for point in self.obstacles.boundary_hits(current, proposed):
            if heading_for_end and distance(point, end) <= self.config.intersection_tolerance:
                continue
            t = distance(current, point) / max(distance(current, proposed), VERTEX_EPSILON)
            crossings.append((t, point, RiverTermination.HIT_BOUNDARY))

        if not crossings:
            return None
        _, point, termination = min(crossings, key=lambda c: c[0])
        return point, termination

    def grow(self, start: RiverStart, end: NDArray[np.float64]) -> RiverGrowth | None:
        """Grow a river from ``start`` toward ``end``.

        Returns None when ``max_iterations`` runs out before the river reaches
        its end or crosses something.
        """
        config = self.config
        points = [start.point.copy()]
        deflected: list[int] = []
        source = start.point if start.source is RiverSource.LAKE else None

        for _ in range(config.max_iterations):
            current = points[-1]
            if distance(current, end) <= config.arrival_epsilon:
                return RiverGrowth(np.array(points), RiverTermination.REACHED_END, deflected)

            step_index = len(points) - 1
            heading = self.step_direction(current, end, start, step_index)
            if heading is None:
                return RiverGrowth(np.array(points), RiverTermination.REACHED_END, deflected)
            direction, is_direct = heading

            if is_direct and distance(current, end) <= config.segment_length:
                proposed = end.copy()
            else:
                proposed = current + direction * config.segment_length
            heading_for_end = bool(np.array_equal(proposed, end))

            obstacle = self._step_blocked(current, proposed, source)
            if obstacle is not None:
                diverted = self.divert(current, proposed, obstacle, source)
                if diverted is None:
                    continue
                proposed = diverted
                heading_for_end = False
                deflected.append(step_index)

            crossing = self._first_crossing(current, proposed, end, heading_for_end)
            if crossing is not None:
                point, termination = crossing
                points.append(point)
                return RiverGrowth(np.array(points), termination, deflected)

            points.append(proposed)

        logger.warning(
            "river_growth_exhausted",
            source=start.source.value,
            iterations=config.max_iterations,
            steps=len(points) - 1,
        )
        return None

    # --- Validation and post-processing ---

    def _safe_segment_check(
        self, source: NDArray[np.float64] | None, end: NDArray[np.float64]
    ) -> SegmentCheck:
        tolerance = self.config.intersection_tolerance

        def is_safe_segment(a: NDArray[np.float64], b: NDArray[np.float64]) -> bool:
            if self.obstacles.milepost_conflict(a, b) is not None:
                return False
            if self.obstacles.lake_conflict(a, b, ignore_point=source) is not None:
                return False
            for point in self.obstacles.boundary_hits(a, b):
                if distance(point, end) > tolerance:
                    return False
            if len(self._river_starts):
                hits = segment_hits(a, b, self._river_starts, self._river_ends)
                if np.any(np.hypot(*(hits - end).T) > tolerance):
                    return False
            return True

        return is_safe_segment

    def river_is_valid(
        self, points: NDArray[np.float64], source: NDArray[np.float64] | None
    ) -> bool:
        """Every point after the start is dry and clear, every segment is safe."""
        if len(points) < 2:
            return False
        tail = points[1:]
        if not np.all(self.obstacles.points_clear(tail)):
            return False
        if any(self.obstacles.point_in_any_lake(p) for p in tail):
            return False
        is_safe_segment = self._safe_segment_check(source, points[-1])
        return all(is_safe_segment(a, b) for a, b in zip(points[:-1], points[1:]))

    def finish(self, growth: RiverGrowth, start: RiverStart) -> NDArray[np.float64] | None:
        """Post-process a grown river, keeping the raw path if smoothing breaks it."""
        source = start.point if start.source is RiverSource.LAKE else None
        end = growth.points[-1]
        is_safe_segment = self._safe_segment_check(source, end)

        smoothed = smooth_river(
            growth.points, self.obstacles.is_safe_point, is_safe_segment, self.config
        )
        if self.river_is_valid(smoothed, source):
            return smoothed

        logger.debug("river_smoothing_rejected", points=len(growth.points))
        if self.river_is_valid(growth.points, source):
            return growth.points
        return None

    def _accept(self, points: NDArray[np.float64]) -> None:
        self._river_starts = np.vstack([self._river_starts, points[:-1]])
        self._river_ends = np.vstack([self._river_ends, points[1:]])

    def generate(self, count: int) -> list[River]:
        """Grow up to ``count`` rivers; failures are skipped."""
        rivers: list[River] = []

        for river_index in range(count):
            start = self.choose_start()
            if start is None:
                logger.warning("river_start_unavailable", river_index=river_index)
                continue

            end = self.choose_end(start)
            if end is None:
                logger.warning("river_end_unavailable", river_index=river_index)
                continue

            growth = self.grow(start, end)
            if growth is None:
                continue
            if len(np.unique(growth.points, axis=0)) < 2:
                logger.debug("river_degenerate", river_index=river_index)
                continue

            points = self.finish(growth, start)
            if points is None:
                logger.warning("river_rejected", river_index=river_index)
                continue

            self._accept(points)
            rivers.append(
                River(
                    river_id=len(rivers),
                    points=to_point_tuple(points),
                    source=start.source,
                    termination=growth.termination,
                    lake_id=start.lake_index,
                )
            )
            logger.debug(
                "river_grown",
                river_index=river_index,
                source=start.source.value,
                termination=growth.termination.value,
                points=len(points),
                deflected=len(growth.deflected_steps),
            )

        logger.info("rivers_grown", placed=len(rivers), requested=count)
        return rivers


def generate_rivers(
    boundary: NDArray[np.float64],
    lakes: list[NDArray[np.float64]],
    milepost_coords: NDArray[np.float64],
    rng: np.random.Generator,
    config: RiverConfig,
    horizontal_spacing: float = 35.0,
) -> list[River]:
    """Grow and smooth up to ``config.count`` rivers.

    Args:
        boundary: Closed continent polygon.
        lakes: Closed lake polygons.
        milepost_coords: Every milepost coordinate, shape (N, 2).
        rng: Random number generator.
        config: River parameters.
        horizontal_spacing: Grid column spacing; interior starts keep twice
            this distance from the boundary.

    Returns:
        Accepted rivers; ``river_id`` is the index in this list.
    """
    obstacles = ObstacleField(boundary, lakes, milepost_coords, config.milepost_buffer_radius)
    pathfinder = RiverPathfinder(obstacles, rng, config, horizontal_spacing)
    return pathfinder.generate(config.count)
