"""Procedural board generation package.

This package builds the playable geography of a railway board: a noisy
continent boundary, lakes, a city hierarchy, the milepost grid and rivers.
"""

from .generator import generate_board, generate_board_async
from .grid import HexGrid
from .validation import ValidationResult, validate_board

__all__ = [
    "HexGrid",
    "ValidationResult",
    "generate_board",
    "generate_board_async",
    "validate_board",
]
