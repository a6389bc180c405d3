"""Continent boundary: a noisy, slightly lopsided loop clamped to the board."""

import math

import numpy as np
from numpy.typing import NDArray

from ..config import BoundaryConfig


def noisy_loop(
    center_x: float,
    center_y: float,
    base_radius: float,
    rng: np.random.Generator,
    noise_scale: float = 0.5,
    num_points: int = 60,
) -> NDArray[np.float64]:
    """Generate a closed irregular loop around a center point.

    The radius at each angle is perturbed by two fixed-frequency sinusoids
    plus bounded uniform noise.

    Args:
        center_x: X coordinate of the loop's center.
        center_y: Y coordinate of the loop's center.
        base_radius: Radius before noise is applied.
        rng: Random number generator.
        noise_scale: Scale factor for the noise.
        num_points: Distinct vertices around the loop.

    Returns:
        Array of shape (num_points + 1, 2); the first point is repeated last.
    """
    theta = np.arange(num_points, dtype=np.float64) / num_points * 2 * np.pi
    noise = (
        np.sin(theta * 5) * base_radius * 0.15 * noise_scale
        + np.cos(theta * 3) * base_radius * 0.1 * noise_scale
        + (rng.random(num_points) - 0.5) * base_radius * 0.1 * noise_scale
    )
    radius = base_radius + noise
    points = np.column_stack(
        [center_x + np.cos(theta) * radius, center_y + np.sin(theta) * radius]
    )
    return np.vstack([points, points[:1]])


def boundary_radius(
    width: float,
    height: float,
    area_ratio: float,
    vertical_spacing: float,
    horizontal_spacing: float,
) -> float:
    """Base radius whose circle covers ``area_ratio`` of the board.

    Clamped so the circle never passes the margin-adjusted board edges.
    """
    cx, cy = width / 2, height / 2
    target_area = width * height * area_ratio
    max_radius_x = min(cx, width - cx - horizontal_spacing)
    max_radius_y = min(cy, height - cy - vertical_spacing)
    return min(
        math.sqrt(target_area / math.pi),
        max_radius_x * 0.98,
        max_radius_y * 0.98,
    )


def generate_boundary(
    width: float,
    height: float,
    rng: np.random.Generator,
    config: BoundaryConfig,
    vertical_spacing: float = 10.0,
    horizontal_spacing: float = 35.0,
) -> NDArray[np.float64]:
    """Generate the closed polygon bounding the playable continent.

    Each sample around the circle is perturbed by two sinusoids plus bounded
    uniform noise, stretched by anisotropic x/y terms with different phase
    offsets, then clamped into ``[margin, dimension - margin]`` per axis.

    Args:
        width: Board width.
        height: Board height.
        rng: Random number generator.
        config: Boundary shape parameters.
        vertical_spacing: Margin kept from the top and bottom edges.
        horizontal_spacing: Margin kept from the left and right edges.

    Returns:
        Array of shape (num_points + 1, 2); the first point is repeated last.
    """
    cx, cy = width / 2, height / 2
    base_radius = boundary_radius(
        width, height, config.area_ratio, vertical_spacing, horizontal_spacing
    )
    n = config.num_points
    amp = base_radius * config.noise_scale

    theta = np.arange(n, dtype=np.float64) / n * 2 * np.pi
    noise = (
        np.sin(theta * 7) * amp * 0.1
        + np.cos(theta * 4) * amp * 0.1
        + (rng.random(n) - 0.5) * amp * 0.05
    )
    radius = base_radius + noise

    # Lopsided stretch so the continent is not a plain ellipse
    x = cx + np.cos(theta) * radius * (1 + 0.12 * np.sin(theta))
    y = cy + np.sin(theta) * radius * (1 + 0.12 * np.cos(theta - 0.5))

    x = np.clip(x, horizontal_spacing, width - horizontal_spacing)
    y = np.clip(y, vertical_spacing, height - vertical_spacing)

    points = np.column_stack([x, y])
    return np.vstack([points, points[:1]])
