"""Hex-offset milepost grid: odd rows are shifted right by half a column."""

import math
from dataclasses import dataclass

import numpy as np
from numpy.typing import NDArray

from ..config import BoardConfig
from ..types import Point


@dataclass(frozen=True)
class HexGrid:
    """Cell layout shared by city placement, the milepost grid and snapping."""

    width: float
    height: float
    vertical_spacing: float
    horizontal_spacing: float

    @classmethod
    def from_config(cls, config: BoardConfig) -> "HexGrid":
        return cls(
            width=config.width,
            height=config.height,
            vertical_spacing=config.vertical_spacing,
            horizontal_spacing=config.horizontal_spacing,
        )

    @property
    def rows(self) -> int:
        return int(self.height // self.vertical_spacing)

    @property
    def cols(self) -> int:
        return int(self.width // self.horizontal_spacing)

    def cell(self, row: int, col: int) -> Point:
        """Coordinate of the cell at (row, col)."""
        offset = self.horizontal_spacing / 2 if row % 2 == 1 else 0.0
        x = col * self.horizontal_spacing + self.horizontal_spacing / 2 + offset
        y = row * self.vertical_spacing + self.vertical_spacing / 2
        return (x, y)

    def cells(self) -> NDArray[np.float64]:
        """Every grid cell inside the board rectangle, row by row.

        Returns:
            Array of shape (N, 2) of cell coordinates.
        """
        coords: list[Point] = []
        for row in range(self.rows + 1):
            for col in range(self.cols + 1):
                x, y = self.cell(row, col)
                if x <= self.width and y <= self.height:
                    coords.append((x, y))
        return np.array(coords, dtype=np.float64).reshape(-1, 2)

    def snap(self, point: Point) -> Point:
        """Nearest grid cell to an arbitrary point.

        Both neighbouring rows are considered since the half-column offset
        can make the farther row hold the closer cell.
        """
        x, y = point
        row_f = (y - self.vertical_spacing / 2) / self.vertical_spacing
        best: Point = point
        best_dist = math.inf
        for row in {math.floor(row_f), math.ceil(row_f)}:
            row = min(max(row, 0), self.rows)
            offset = self.horizontal_spacing / 2 if row % 2 == 1 else 0.0
            col = round((x - self.horizontal_spacing / 2 - offset) / self.horizontal_spacing)
            col = min(max(col, 0), self.cols)
            cx, cy = self.cell(row, col)
            dist = math.hypot(cx - x, cy - y)
            if dist < best_dist:
                best, best_dist = (cx, cy), dist
        return best

    def hex_ring(self, center: Point) -> list[Point]:
        """The six cells surrounding a cell, snapped to the grid."""
        cx, cy = center
        half = self.horizontal_spacing / 2
        vs = self.vertical_spacing
        offsets = [
            (0.0, -2 * vs),
            (half, -vs),
            (half, vs),
            (0.0, 2 * vs),
            (-half, vs),
            (-half, -vs),
        ]
        return [self.snap((cx + dx, cy + dy)) for dx, dy in offsets]
