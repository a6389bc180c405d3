"""Shared test fixtures for railmap tests."""

import numpy as np
import pytest

from railmap.board import Board
from railmap.config import BoardConfig, CityConfig, LakeConfig, RiverConfig
from railmap.generation.generator import generate_board


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator so geometry-dependent tests are repeatable."""
    return np.random.default_rng(12345)


@pytest.fixture
def square() -> np.ndarray:
    """Closed 100x100 square with its corner at the origin."""
    return np.array(
        [(0.0, 0.0), (100.0, 0.0), (100.0, 100.0), (0.0, 100.0), (0.0, 0.0)]
    )


@pytest.fixture
def big_circle() -> np.ndarray:
    """Closed 240-gon of radius 500 centred on a 1200x1200 board."""
    theta = np.linspace(0, 2 * np.pi, 240, endpoint=False)
    points = np.column_stack([600 + 500 * np.cos(theta), 600 + 500 * np.sin(theta)])
    return np.vstack([points, points[:1]])


@pytest.fixture
def small_config() -> BoardConfig:
    """600x600 board with one lake, one major city and two rivers."""
    return BoardConfig(
        seed=7,
        width=600,
        height=600,
        lakes=LakeConfig(count=1, min_radius=20, max_radius=40),
        cities=CityConfig(major_count=1),
        rivers=RiverConfig(count=2),
    )


@pytest.fixture(scope="session")
def board() -> Board:
    """Full-size board generated once for the invariant tests."""
    return generate_board(BoardConfig(seed=2024))
