"""Railway board geography: data model, configuration and generation."""

from .board import Board, City, Lake, Milepost, River
from .config import BoardConfig, find_config, list_configs, load_config
from .exceptions import BoardError, CityNotFoundError, MilepostNotFoundError
from .types import CitySize, Point, RiverSource, RiverTermination

__all__ = [
    # Types
    "Point",
    "CitySize",
    "RiverSource",
    "RiverTermination",
    # Board
    "Board",
    "Lake",
    "City",
    "Milepost",
    "River",
    # Config
    "BoardConfig",
    "load_config",
    "find_config",
    "list_configs",
    # Exceptions
    "BoardError",
    "CityNotFoundError",
    "MilepostNotFoundError",
]
