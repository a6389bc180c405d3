"""Main board generation orchestration."""

import asyncio

import numpy as np
import structlog

from ..board import Board, Lake
from ..config import BoardConfig
from .boundary import generate_boundary
from .cities import place_cities
from .geometry import to_point_tuple
from .grid import HexGrid
from .lakes import generate_lakes
from .mileposts import build_mileposts
from .rivers import generate_rivers
from .validation import validate_board

logger = structlog.get_logger()


def generate_board(
    config: BoardConfig, rng: np.random.Generator | None = None
) -> Board:
    """Generate a complete board from configuration.

    Stages run strictly in order and each consumes only earlier outputs:
    boundary, lakes, cities, mileposts, rivers. A stage that places fewer
    features than requested does not stop the pipeline.

    Args:
        config: Board generation configuration.
        rng: Random number generator; built from ``config.seed`` if omitted.

    Returns:
        Immutable Board snapshot.
    """
    if rng is None:
        rng = np.random.default_rng(config.seed)
    grid = HexGrid.from_config(config)

    logger.info(
        "board_generation_started",
        width=config.width,
        height=config.height,
        seed=config.seed,
    )

    # Stage A: Continent boundary
    logger.info("stage_started", stage="boundary")
    boundary = generate_boundary(
        config.width,
        config.height,
        rng,
        config.boundary,
        vertical_spacing=config.vertical_spacing,
        horizontal_spacing=config.horizontal_spacing,
    )

    # Stage B: Lakes
    logger.info("stage_started", stage="lakes")
    lakes = generate_lakes(boundary, rng, config.lakes)

    # Stage C: Cities
    logger.info("stage_started", stage="cities")
    cities = place_cities(boundary, lakes, grid, rng, config.cities)

    # Stage D: Milepost grid
    logger.info("stage_started", stage="mileposts")
    mileposts = build_mileposts(
        boundary, lakes, cities, grid, rng, config.mileposts, config.cities
    )
    milepost_coords = np.array(
        [m.position for m in mileposts], dtype=np.float64
    ).reshape(-1, 2)

    # Stage E: Rivers
    logger.info("stage_started", stage="rivers")
    rivers = generate_rivers(
        boundary,
        lakes,
        milepost_coords,
        rng,
        config.rivers,
        horizontal_spacing=config.horizontal_spacing,
    )

    board = Board(
        config=config,
        boundary=to_point_tuple(boundary),
        lakes=tuple(
            Lake(lake_id=i, points=to_point_tuple(lake)) for i, lake in enumerate(lakes)
        ),
        cities=tuple(cities),
        mileposts=tuple(mileposts),
        rivers=tuple(rivers),
    )

    # Stage F: Validation
    logger.info("stage_started", stage="validation")
    result = validate_board(board)

    logger.info(
        "board_generation_finished",
        lakes=len(board.lakes),
        cities=len(board.cities),
        mileposts=len(board.mileposts),
        rivers=len(board.rivers),
        valid=result.passed,
    )
    return board


async def generate_board_async(config: BoardConfig) -> Board:
    """Run the generation pipeline on a worker thread.

    The board is returned only once every stage has finished.
    """
    return await asyncio.to_thread(generate_board, config)
