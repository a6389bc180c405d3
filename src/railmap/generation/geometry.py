"""Planar geometry primitives shared by every generation stage.

All functions accept anything array-like of shape (N, 2) for point lists and
never raise on degenerate input: parallel or zero-length segments simply
produce no intersection.
"""

from collections.abc import Iterable, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..types import Point

# Denominators below this are treated as parallel segments
PARALLEL_EPSILON = 1e-10

# Distance under which two vertices count as the same point
VERTEX_EPSILON = 1e-6


def as_points(points: ArrayLike) -> NDArray[np.float64]:
    """Convert a point sequence to a float64 array of shape (N, 2)."""
    return np.asarray(points, dtype=np.float64).reshape(-1, 2)


def close_ring(points: ArrayLike) -> NDArray[np.float64]:
    """Return the loop with its first point repeated at the end."""
    ring = as_points(points)
    if len(ring) == 0 or np.array_equal(ring[0], ring[-1]):
        return ring
    return np.vstack([ring, ring[:1]])


def to_point_tuple(points: ArrayLike) -> tuple[Point, ...]:
    """Convert a point array to the immutable tuple form stored on the board."""
    return tuple((float(x), float(y)) for x, y in as_points(points))


def _edges(polygon: ArrayLike) -> tuple[NDArray[np.float64], NDArray[np.float64]]:
    ring = close_ring(polygon)
    return ring[:-1], ring[1:]


def _intersection_params(
    a1: NDArray[np.float64],
    a2: NDArray[np.float64],
    b1: NDArray[np.float64],
    b2: NDArray[np.float64],
) -> tuple[NDArray[np.float64], NDArray[np.float64], NDArray[np.bool_]]:
    """Parametric positions of segment intersections, broadcast over inputs.

    Returns:
        Tuple of (t along segment a, u along segment b, hit mask).
    """
    x1, y1 = a1[..., 0], a1[..., 1]
    x2, y2 = a2[..., 0], a2[..., 1]
    x3, y3 = b1[..., 0], b1[..., 1]
    x4, y4 = b2[..., 0], b2[..., 1]

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    parallel = np.abs(denom) < PARALLEL_EPSILON
    safe = np.where(parallel, 1.0, denom)

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / safe
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / safe

    hit = ~parallel & (t >= 0) & (t <= 1) & (u >= 0) & (u <= 1)
    return t, u, hit


def point_in_polygon(point: ArrayLike, polygon: ArrayLike) -> bool:
    """Even-odd ray casting test over the polygon's edges."""
    return bool(points_in_polygon(as_points(point), polygon)[0])


def points_in_polygon(points: ArrayLike, polygon: ArrayLike) -> NDArray[np.bool_]:
    """Vectorized even-odd test for many query points at once."""
    pts = as_points(points)
    starts, ends = _edges(polygon)
    if len(starts) == 0:
        return np.zeros(len(pts), dtype=bool)

    px = pts[:, 0:1]
    py = pts[:, 1:2]
    xi, yi = starts[:, 0], starts[:, 1]
    xj, yj = ends[:, 0], ends[:, 1]

    straddles = (yi > py) != (yj > py)
    dy = np.where(yj == yi, 1.0, yj - yi)
    x_cross = (xj - xi) * (py - yi) / dy + xi
    crossings = straddles & (px < x_cross)

    return (np.count_nonzero(crossings, axis=1) % 2) == 1


def segment_intersect(
    a1: ArrayLike, a2: ArrayLike, b1: ArrayLike, b2: ArrayLike
) -> Point | None:
    """Intersection point of two segments, or None.

    Parallel and coincident segments return None.
    """
    p1 = as_points(a1)[0]
    p2 = as_points(a2)[0]
    t, _, hit = _intersection_params(p1, p2, as_points(b1)[0], as_points(b2)[0])
    if not hit:
        return None
    x, y = p1 + float(t) * (p2 - p1)
    return (float(x), float(y))


def first_segment_hit(
    p1: ArrayLike,
    p2: ArrayLike,
    starts: ArrayLike,
    ends: ArrayLike,
) -> tuple[float, Point] | None:
    """Closest intersection of segment p1->p2 with any of the given segments.

    Returns:
        Tuple of (parameter along p1->p2, intersection point), or None.
    """
    s = as_points(starts)
    if len(s) == 0:
        return None
    a1 = as_points(p1)[0]
    a2 = as_points(p2)[0]
    t, _, hit = _intersection_params(a1, a2, s, as_points(ends))
    if not np.any(hit):
        return None
    best = float(np.min(t[hit]))
    x, y = a1 + best * (a2 - a1)
    return best, (float(x), float(y))


def segment_hits(
    p1: ArrayLike,
    p2: ArrayLike,
    starts: ArrayLike,
    ends: ArrayLike,
) -> NDArray[np.float64]:
    """All intersection points of segment p1->p2 with the given segments."""
    s = as_points(starts)
    if len(s) == 0:
        return np.zeros((0, 2), dtype=np.float64)
    a1 = as_points(p1)[0]
    a2 = as_points(p2)[0]
    t, _, hit = _intersection_params(a1, a2, s, as_points(ends))
    return a1 + t[hit][:, None] * (a2 - a1)


def distance_point_to_segment(p: ArrayLike, s1: ArrayLike, s2: ArrayLike) -> float:
    """Perpendicular distance, clamped to the segment's endpoints."""
    return float(distances_point_to_segments(p, s1, s2)[0])


def distances_point_to_segments(
    p: ArrayLike, starts: ArrayLike, ends: ArrayLike
) -> NDArray[np.float64]:
    """Distance from one point to each of many segments."""
    point = as_points(p)[0]
    s = as_points(starts)
    e = as_points(ends)
    return _point_segment_distances(point[None, :], s, e)[0]


def distances_points_to_segment(
    points: ArrayLike, s1: ArrayLike, s2: ArrayLike
) -> NDArray[np.float64]:
    """Distance from each of many points to one segment."""
    return _point_segment_distances(
        as_points(points), as_points(s1)[:1], as_points(s2)[:1]
    )[:, 0]


def _point_segment_distances(
    points: NDArray[np.float64],
    starts: NDArray[np.float64],
    ends: NDArray[np.float64],
) -> NDArray[np.float64]:
    """Distance matrix of shape (len(points), len(starts))."""
    d = ends - starts
    len_sq = np.einsum("ij,ij->i", d, d)
    rel = points[:, None, :] - starts[None, :, :]
    dot = np.einsum("pij,ij->pi", rel, d)
    # Zero-length segments fall back to the start point
    param = np.where(len_sq > 0, dot / np.where(len_sq > 0, len_sq, 1.0), -1.0)
    param = np.clip(param, 0.0, 1.0)
    closest = starts[None, :, :] + param[:, :, None] * d[None, :, :]
    return np.hypot(
        points[:, None, 0] - closest[:, :, 0], points[:, None, 1] - closest[:, :, 1]
    )


def distance_point_to_polyline(p: ArrayLike, polyline: ArrayLike) -> float:
    """Minimum distance from a point to any segment of a polyline."""
    line = as_points(polyline)
    if len(line) == 0:
        return float("inf")
    if len(line) == 1:
        return float(np.hypot(*(as_points(p)[0] - line[0])))
    return float(np.min(distances_point_to_segments(p, line[:-1], line[1:])))


def min_distance_points_to_polyline(points: ArrayLike, polyline: ArrayLike) -> float:
    """Minimum distance from any of the points to a polyline."""
    pts = as_points(points)
    line = as_points(polyline)
    if len(pts) == 0 or len(line) < 2:
        return float("inf")
    return float(np.min(_point_segment_distances(pts, line[:-1], line[1:])))


def min_distance_between_polylines(a: ArrayLike, b: ArrayLike) -> float:
    """Smallest vertex-to-segment distance between two polylines, either way round."""
    return min(
        min_distance_points_to_polyline(a, b),
        min_distance_points_to_polyline(b, a),
    )


def polylines_intersect(
    a: ArrayLike, b: ArrayLike, allow_endpoint_touch: bool = True
) -> bool:
    """True if any segment of a crosses any segment of b.

    With ``allow_endpoint_touch``, a contact that is exactly a start/end vertex
    of both polylines is not counted as a crossing.
    """
    pa = as_points(a)
    pb = as_points(b)
    if len(pa) < 2 or len(pb) < 2:
        return False

    a1, a2 = pa[:-1, None, :], pa[1:, None, :]
    b1, b2 = pb[None, :-1, :], pb[None, 1:, :]
    t, _, hit = _intersection_params(a1, a2, b1, b2)
    if not np.any(hit):
        return False
    if not allow_endpoint_touch:
        return True

    ia, ib = np.nonzero(hit)
    starts = pa[:-1][ia]
    ends = pa[1:][ia]
    points = starts + t[ia, ib][:, None] * (ends - starts)
    ends_a = pa[[0, -1]]
    ends_b = pb[[0, -1]]
    for point in points:
        on_a = np.any(np.hypot(*(ends_a - point).T) < VERTEX_EPSILON)
        on_b = np.any(np.hypot(*(ends_b - point).T) < VERTEX_EPSILON)
        if not (on_a and on_b):
            return True
    return False


def polyline_intersects_circles(
    polyline: ArrayLike, circles: Iterable[tuple[float, float, float]]
) -> bool:
    """True if any segment passes strictly within a circle's radius of its center."""
    line = as_points(polyline)
    circle_arr = np.asarray(list(circles), dtype=np.float64).reshape(-1, 3)
    if len(circle_arr) == 0 or len(line) == 0:
        return False
    if len(line) == 1:
        line = np.vstack([line, line])
    distances = _point_segment_distances(circle_arr[:, :2], line[:-1], line[1:])
    return bool(np.any(distances < circle_arr[:, 2:3]))


def polygon_area(polygon: ArrayLike) -> float:
    """Unsigned shoelace area of a polygon."""
    starts, ends = _edges(polygon)
    cross = starts[:, 0] * ends[:, 1] - ends[:, 0] * starts[:, 1]
    return float(abs(np.sum(cross)) / 2.0)


def ring_vertices(polygon: ArrayLike) -> NDArray[np.float64]:
    """Polygon vertices without the repeated closing point."""
    ring = as_points(polygon)
    if len(ring) > 1 and np.array_equal(ring[0], ring[-1]):
        return ring[:-1]
    return ring


def centroid(polygon: ArrayLike) -> NDArray[np.float64]:
    """Mean of the polygon's distinct vertices."""
    return ring_vertices(polygon).mean(axis=0)


def bounding_box(points: ArrayLike) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y)."""
    pts = as_points(points)
    min_x, min_y = pts.min(axis=0)
    max_x, max_y = pts.max(axis=0)
    return float(min_x), float(min_y), float(max_x), float(max_y)


def unit_vector(vector: ArrayLike) -> NDArray[np.float64] | None:
    """Normalized copy of a 2D vector, or None for a zero-length vector."""
    v = np.asarray(vector, dtype=np.float64).reshape(2)
    norm = float(np.hypot(v[0], v[1]))
    if norm == 0.0:
        return None
    return v / norm


def distance(p: Sequence[float] | NDArray[np.float64], q: Sequence[float] | NDArray[np.float64]) -> float:
    return float(np.hypot(p[0] - q[0], p[1] - q[1]))
