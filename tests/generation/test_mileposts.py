"""Tests for the milepost grid builder."""

import numpy as np
import pytest

from railmap.config import BoardConfig, CityConfig, MilepostConfig
from railmap.generation.cities import place_cities
from railmap.generation.geometry import points_in_polygon
from railmap.generation.grid import HexGrid
from railmap.generation.mileposts import build_mileposts, playable_cell_mask
from railmap.types import CitySize


@pytest.fixture
def grid() -> HexGrid:
    return HexGrid.from_config(BoardConfig())


@pytest.fixture
def lake() -> np.ndarray:
    theta = np.linspace(0, 2 * np.pi, 40, endpoint=False)
    points = np.column_stack([500 + 60 * np.cos(theta), 500 + 60 * np.sin(theta)])
    return np.vstack([points, points[:1]])


class TestBuildMileposts:
    """Tests for build_mileposts."""

    def test_inside_and_dry(
        self, big_circle: np.ndarray, lake: np.ndarray, grid: HexGrid, rng: np.random.Generator
    ) -> None:
        """Every milepost is inside the boundary and outside the lake."""
        mileposts = build_mileposts(
            big_circle, [lake], [], grid, rng, MilepostConfig(), CityConfig()
        )
        coords = np.array([m.position for m in mileposts])
        assert np.all(points_in_polygon(coords, big_circle))
        assert not np.any(points_in_polygon(coords, lake))

    def test_covers_playable_cells(
        self, big_circle: np.ndarray, lake: np.ndarray, grid: HexGrid, rng: np.random.Generator
    ) -> None:
        """Without cities, every playable cell becomes a milepost."""
        mileposts = build_mileposts(
            big_circle, [lake], [], grid, rng, MilepostConfig(), CityConfig()
        )
        expected = np.count_nonzero(playable_cell_mask(grid.cells(), big_circle, [lake]))
        assert len(mileposts) == expected

    def test_ids_sequential(self, big_circle: np.ndarray, grid: HexGrid, rng: np.random.Generator) -> None:
        """milepost_id is the list index."""
        mileposts = build_mileposts(big_circle, [], [], grid, rng, MilepostConfig(), CityConfig())
        assert [m.milepost_id for m in mileposts] == list(range(len(mileposts)))

    def test_no_mountains(self, big_circle: np.ndarray, grid: HexGrid, rng: np.random.Generator) -> None:
        """Zero density gives only plain mileposts."""
        mileposts = build_mileposts(
            big_circle, [], [], grid, rng, MilepostConfig(mountain_density=0.0), CityConfig()
        )
        assert all(not m.is_mountain and m.cost == 1 for m in mileposts)

    def test_all_mountains(self, big_circle: np.ndarray, grid: HexGrid, rng: np.random.Generator) -> None:
        """Density one makes every regular milepost a mountain."""
        mileposts = build_mileposts(
            big_circle, [], [], grid, rng, MilepostConfig(mountain_density=1.0), CityConfig()
        )
        assert all(m.is_mountain and m.cost == 2 for m in mileposts)

    def test_mountain_density(self, big_circle: np.ndarray, grid: HexGrid, rng: np.random.Generator) -> None:
        """Mountain share tracks the configured probability."""
        mileposts = build_mileposts(
            big_circle, [], [], grid, rng, MilepostConfig(mountain_density=0.2), CityConfig()
        )
        share = sum(m.is_mountain for m in mileposts) / len(mileposts)
        assert share == pytest.approx(0.2, abs=0.05)

    def test_city_anchors(self, big_circle: np.ndarray, grid: HexGrid, rng: np.random.Generator) -> None:
        """City anchors carry fixed costs and a city reference, once each."""
        city_config = CityConfig(major_count=1)
        cities = place_cities(big_circle, [], grid, rng, city_config)
        mileposts = build_mileposts(
            big_circle, [], cities, grid, rng, MilepostConfig(), city_config
        )

        by_position: dict[tuple[float, float], list] = {}
        for m in mileposts:
            by_position.setdefault(m.position, []).append(m)

        for city in cities:
            expected_cost = 5 if city.size is CitySize.MAJOR else 3
            for anchor in city.anchors:
                entries = by_position[anchor]
                assert len(entries) == 1
                assert entries[0].city_id == city.city_id
                assert entries[0].cost == expected_cost
                assert not entries[0].is_mountain

        assert len([m for m in mileposts if m.is_city]) == sum(len(c.anchors) for c in cities)
