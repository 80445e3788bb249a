"""
Grid geometry helpers.

Maps pointer positions on the rendered grid to tile coordinates.
Tiles are addressed relative to the grid centre, so a 41-tile grid runs
from -20 to 20 on both axes.

Author: Matthew Picone (mail@matthewpicone.com)
Date: 2026-02-10
"""

import math
from typing import List, Tuple

from logic.config import BEAR_TRAP_SIZE, CELL_SIZE_PX, GRID_SIZE


def point_to_cell(
        x: float,
        y: float,
        left: float,
        top: float,
        width: float,
        height: float,
        cols: int = GRID_SIZE,
        rows: int = GRID_SIZE,
) -> Tuple[int, int]:
    """Convert a point inside a rendered grid rectangle to a tile.

    Args:
        x, y: Point position (same space as the rectangle).
        left, top: Top-left corner of the grid rectangle.
        width, height: Rendered size of the grid rectangle.
        cols, rows: Number of tiles per axis.

    Returns:
        Tuple of (tile_x, tile_y) relative to the grid centre.

    Raises:
        ValueError: If the rectangle has no area.
    """
    if width <= 0 or height <= 0:
        raise ValueError("Grid rectangle must have a positive size")
    col = math.floor((x - left) / width * cols)
    row = math.floor((y - top) / height * rows)
    return col - cols // 2, row - rows // 2


def pixel_to_tile(
        px: float, py: float, cell_size: int = CELL_SIZE_PX, grid_size: int = GRID_SIZE
) -> Tuple[int, int]:
    """Convert an absolute pixel position on the grid to a tile."""
    extent = cell_size * grid_size
    return point_to_cell(px, py, 0, 0, extent, extent, grid_size, grid_size)


def trap_tiles(x: int, y: int, size: int = BEAR_TRAP_SIZE) -> List[Tuple[int, int]]:
    """List the tiles covered by a trap whose top-left tile is (x, y)."""
    return [(x + dx, y + dy) for dx in range(size) for dy in range(size)]
