"""River post-processing: sharp-turn softening, meander and Bezier smoothing.

Every stage here takes obstacle callbacks so a reshaped point is only kept
when it stays clear of lakes, milepost buffers and the boundary. Anything
that would violate them falls back to the unmodified geometry.
"""

import math
from collections.abc import Callable

import numpy as np
from numpy.typing import NDArray

from ..config import RiverConfig
from .geometry import as_points, unit_vector

PointCheck = Callable[[NDArray[np.float64]], bool]
SegmentCheck = Callable[[NDArray[np.float64], NDArray[np.float64]], bool]


def turn_angle(
    prev: NDArray[np.float64], cur: NDArray[np.float64], nxt: NDArray[np.float64]
) -> float | None:
    """Angle between the heading into ``cur`` and the heading out of it.

    A straight run is 0 and a full reversal is pi. Returns None when either
    segment has zero length.
    """
    incoming = unit_vector(cur - prev)
    outgoing = unit_vector(nxt - cur)
    if incoming is None or outgoing is None:
        return None
    return math.acos(float(np.clip(np.dot(incoming, outgoing), -1.0, 1.0)))


def reduce_sharp_angles(
    points: NDArray[np.float64], angle_threshold: float
) -> NDArray[np.float64]:
    """Add vertices around turns whose turn angle is below ``angle_threshold``.

    The vertex is replaced by a point 70% along the incoming segment, the
    vertex itself, and a point 30% along the outgoing segment. The new
    points lie on the existing segments, so the path keeps its shape.
    """
    pts = as_points(points)
    if len(pts) < 3:
        return pts

    result = [pts[0]]
    for i in range(1, len(pts) - 1):
        prev, cur, nxt = pts[i - 1], pts[i], pts[i + 1]
        angle = turn_angle(prev, cur, nxt)
        if angle is not None and angle < angle_threshold:
            result.append(prev + (cur - prev) * 0.7)
            result.append(cur)
            result.append(cur + (nxt - cur) * 0.3)
        else:
            result.append(cur)
    result.append(pts[-1])
    return np.array(result)


def add_meander(
    points: NDArray[np.float64],
    intensity: float,
    frequency: float,
    is_safe_point: PointCheck,
    is_safe_segment: SegmentCheck,
) -> NDArray[np.float64]:
    """Offset interior points sideways along a sine wave.

    The offset is ``intensity * sin(pi * progress) * sin(2 pi * frequency *
    progress)`` so it vanishes at both ends of the river. An offset point is
    kept only if it and both of its adjoining segments are safe.
    """
    pts = as_points(points)
    if len(pts) < 3:
        return pts

    last = len(pts) - 1
    result = pts.copy()
    for i in range(1, last):
        direction = unit_vector(pts[i + 1] - result[i - 1])
        if direction is None:
            continue
        perpendicular = np.array([-direction[1], direction[0]])

        progress = i / last
        envelope = math.sin(math.pi * progress)
        offset = intensity * envelope * math.sin(2 * math.pi * frequency * progress)
        candidate = pts[i] + perpendicular * offset

        if (
            is_safe_point(candidate)
            and is_safe_segment(result[i - 1], candidate)
            and is_safe_segment(candidate, pts[i + 1])
        ):
            result[i] = candidate
    return result


def quadratic_bezier(
    start: NDArray[np.float64],
    control: NDArray[np.float64],
    end: NDArray[np.float64],
    segments: int,
) -> NDArray[np.float64]:
    """Sample ``segments + 1`` points on a quadratic Bezier curve, ends included."""
    t = np.linspace(0.0, 1.0, segments + 1)[:, None]
    return (1 - t) ** 2 * start + 2 * (1 - t) * t * control + t**2 * end


def constrained_smooth(
    points: NDArray[np.float64],
    smoothness: float,
    segments: int,
    is_safe_point: PointCheck,
    is_safe_segment: SegmentCheck,
) -> NDArray[np.float64]:
    """Round every interior corner with a validated quadratic Bezier.

    Each corner is replaced by a curve from the midpoint of its incoming
    segment to the midpoint of its outgoing segment. A curve point that fails
    ``is_safe_point`` drops back to the straight line between the midpoints;
    if the resulting chain still has an unsafe segment, the corner is kept
    as-is.
    """
    pts = as_points(points)
    if len(pts) < 3:
        return pts

    result = [pts[0]]
    for i in range(1, len(pts) - 1):
        prev, cur, nxt = pts[i - 1], pts[i], pts[i + 1]
        start = (prev + cur) / 2
        end = (cur + nxt) / 2
        control = cur + (nxt - prev) * smoothness * 0.1

        curve = quadratic_bezier(start, control, end, segments)
        for k in range(1, len(curve) - 1):
            if not is_safe_point(curve[k]):
                t = k / segments
                curve[k] = start + (end - start) * t

        if i > 1:
            # Shared with the previous corner's last point
            curve = curve[1:]

        chain = np.vstack([result[-1][None, :], curve])
        if all(is_safe_segment(a, b) for a, b in zip(chain[:-1], chain[1:])):
            result.extend(curve)
        else:
            fallback = [cur, end] if i > 1 else [start, cur, end]
            result.extend(fallback)

    result.append(pts[-1])
    return _drop_repeats(np.array(result))


def _drop_repeats(points: NDArray[np.float64]) -> NDArray[np.float64]:
    if len(points) < 2:
        return points
    step = np.hypot(*np.diff(points, axis=0).T)
    keep = np.concatenate([[True], step > 1e-9])
    return points[keep]


def smooth_river(
    points: NDArray[np.float64],
    is_safe_point: PointCheck,
    is_safe_segment: SegmentCheck,
    config: RiverConfig,
) -> NDArray[np.float64]:
    """Apply the full post-processing chain to a grown river.

    Args:
        points: Raw grown polyline.
        is_safe_point: Obstacle check for a single point.
        is_safe_segment: Obstacle check for a segment.
        config: River parameters.

    Returns:
        Post-processed polyline with the same first and last point.
    """
    softened = reduce_sharp_angles(points, config.sharp_angle_threshold)
    meandered = add_meander(
        softened,
        config.meander_intensity,
        config.meander_frequency,
        is_safe_point,
        is_safe_segment,
    )
    return constrained_smooth(
        meandered,
        config.smoothness,
        config.bezier_segments,
        is_safe_point,
        is_safe_segment,
    )
