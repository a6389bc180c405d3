"""Tests for the generation pipeline."""

import numpy as np
import pytest

from railmap.board import Board
from railmap.config import BoardConfig, CityConfig, LakeConfig, RiverConfig
from railmap.generation.generator import generate_board, generate_board_async
from railmap.generation.geometry import (
    min_distance_between_polylines,
    min_distance_points_to_polyline,
    points_in_polygon,
    polylines_intersect,
    segment_hits,
)
from railmap.types import CitySize, RiverSource, RiverTermination


class TestBoardInvariants:
    """Invariants every generated board satisfies."""

    def test_mileposts_inside_and_dry(self, board: Board) -> None:
        """Every milepost is inside the boundary and outside every lake."""
        coords = np.array([m.position for m in board.mileposts])
        assert np.all(points_in_polygon(coords, board.boundary))
        for lake in board.lakes:
            assert not np.any(points_in_polygon(coords, lake.points))

    def test_lakes_separated(self, board: Board) -> None:
        """Lakes never cross and keep their distances."""
        config = board.config.lakes
        for lake in board.lakes:
            gap = min_distance_points_to_polyline(lake.points, board.boundary)
            assert gap >= config.boundary_buffer
        for i, a in enumerate(board.lakes):
            for b in board.lakes[i + 1 :]:
                assert not polylines_intersect(a.points, b.points, False)
                assert min_distance_between_polylines(a.points, b.points) >= config.min_lake_distance

    def test_city_counts(self, board: Board) -> None:
        """Two majors with seven anchors each, six medium and six small cities."""
        majors = board.cities_of_size(CitySize.MAJOR)
        assert len(majors) == 2
        assert all(len(c.anchors) == 7 for c in majors)
        assert len(board.cities_of_size(CitySize.MEDIUM)) == 6
        assert len(board.cities_of_size(CitySize.SMALL)) == 6

    def test_anchors_unique_and_backed(self, board: Board) -> None:
        """Anchors are unique and each is a city milepost of its city."""
        anchors = [a for city in board.cities for a in city.anchors]
        assert len(anchors) == len(set(anchors))
        for city in board.cities:
            for anchor in city.anchors:
                milepost = board.get_milepost_at(*anchor)
                assert milepost.city_id == city.city_id
                assert board.city_for(milepost) == city

    def test_costs(self, board: Board) -> None:
        """Costs follow the milepost kind."""
        for milepost in board.mileposts:
            if milepost.city_id is not None:
                size = board.get_city(milepost.city_id).size
                assert milepost.cost == (5 if size is CitySize.MAJOR else 3)
            elif milepost.is_mountain:
                assert milepost.cost == 2
            else:
                assert milepost.cost == 1

    def test_rivers_clear(self, board: Board) -> None:
        """River points after the start avoid milepost buffers and lakes."""
        radius = board.config.rivers.milepost_buffer_radius
        coords = np.array([m.position for m in board.mileposts])
        for river in board.rivers:
            tail = np.array(river.points[1:])
            gaps = np.hypot(tail[:, None, 0] - coords[None, :, 0], tail[:, None, 1] - coords[None, :, 1])
            assert np.all(gaps >= radius)
            for lake in board.lakes:
                assert not np.any(points_in_polygon(tail, lake.points))

    def test_rivers_do_not_cross_lakes(self, board: Board) -> None:
        """No river segment crosses a lake edge except at its own source."""
        for river in board.rivers:
            points = np.array(river.points)
            for lake in board.lakes:
                edges = np.array(lake.points)
                for a, b in zip(points[:-1], points[1:]):
                    hits = segment_hits(a, b, edges[:-1], edges[1:])
                    if river.source is RiverSource.LAKE:
                        hits = hits[np.hypot(*(hits - points[0]).T) > 1e-6]
                    assert len(hits) == 0

    def test_river_lake_ids(self, board: Board) -> None:
        """Only lake-sourced rivers reference a lake."""
        for river in board.rivers:
            if river.source is RiverSource.LAKE:
                assert river.lake_id is not None
                assert 0 <= river.lake_id < len(board.lakes)
            else:
                assert river.lake_id is None
            assert river.termination in set(RiverTermination)

    def test_counts_never_exceed_request(self, board: Board) -> None:
        """Generation may fall short but never overshoots."""
        assert len(board.lakes) <= board.config.lakes.count
        assert len(board.rivers) <= board.config.rivers.count


class TestGenerateBoard:
    """Tests for generate_board."""

    def test_small_board(self, small_config: BoardConfig) -> None:
        """A small configuration generates a usable board."""
        board = generate_board(small_config)
        assert board.mileposts
        assert len(board.lakes) <= 1
        assert len(board.cities_of_size(CitySize.MAJOR)) <= 1

    def test_seed_repeatable(self, small_config: BoardConfig) -> None:
        """The same seed produces the same board."""
        a = generate_board(small_config)
        b = generate_board(small_config)
        assert a.model_dump_json() == b.model_dump_json()

    def test_injected_rng(self, small_config: BoardConfig) -> None:
        """An injected generator takes precedence over the seed."""
        a = generate_board(small_config, rng=np.random.default_rng(99))
        b = generate_board(small_config, rng=np.random.default_rng(99))
        c = generate_board(small_config)
        assert a.model_dump_json() == b.model_dump_json()
        assert a.boundary != c.boundary

    def test_featureless_board(self) -> None:
        """Zero lakes, cities and rivers still yields a milepost grid."""
        config = BoardConfig(
            seed=1,
            width=500,
            height=500,
            lakes=LakeConfig(count=0),
            cities=CityConfig(major_count=0),
            rivers=RiverConfig(count=0),
        )
        board = generate_board(config)
        assert board.lakes == ()
        assert board.cities == ()
        assert board.rivers == ()
        assert board.mileposts
        assert not board.city_mileposts

    def test_overcrowded_request_degrades(self) -> None:
        """Asking for far too many features places fewer, without raising."""
        config = BoardConfig(
            seed=3,
            width=400,
            height=400,
            lakes=LakeConfig(count=10, max_attempts=10),
            cities=CityConfig(major_count=20),
            rivers=RiverConfig(count=2),
        )
        board = generate_board(config)
        assert len(board.lakes) < 10
        assert len(board.cities_of_size(CitySize.MAJOR)) < 20


class TestGenerateBoardAsync:
    """Tests for the background-thread entry point."""

    @pytest.mark.asyncio
    async def test_async_matches_sync(self, small_config: BoardConfig) -> None:
        """The async path returns the same finished board."""
        board = await generate_board_async(small_config)
        assert board.model_dump_json() == generate_board(small_config).model_dump_json()
