"""Square tiling of a raster grid into evaluation extents."""

from __future__ import annotations

import math
from typing import Any, Tuple

from rasterio.transform import Affine

from racescape.errors import require_positive_int
from racescape.raster.models import Tile

CellBounds = Tuple[int, int, int, int]


def validate_tile_size(size: int | None) -> None:
    """Reject tile sizes below one cell; None means the whole raster."""
    if size is not None:
        require_positive_int("Tile size", size)


def tile_grid_shape(shape: tuple[int, int], size: int | None) -> tuple[int, int]:
    """Return the number of tile rows and columns covering the grid."""
    validate_tile_size(size)
    if size is None:
        return 1, 1
    rows, cols = shape
    return math.ceil(rows / size), math.ceil(cols / size)


def tile_polygon(bounds: CellBounds, transform: Affine) -> dict[str, Any]:
    """Return a GeoJSON polygon for cell-index bounds (row0, row1, col0, col1)."""
    row_start, row_stop, col_start, col_stop = bounds
    corners = [
        transform * (col_start, row_start),
        transform * (col_stop, row_start),
        transform * (col_stop, row_stop),
        transform * (col_start, row_stop),
    ]
    ring = [[float(x), float(y)] for x, y in corners]
    ring.append(list(ring[0]))
    return {"type": "Polygon", "coordinates": [ring]}


def whole_extent(shape: tuple[int, int]) -> Tile:
    """Return the single ungeoreferenced extent covering the whole grid."""
    rows, cols = shape
    return Tile(row=None, col=None, row_start=0, row_stop=rows, col_start=0, col_stop=cols)


def create_tiles(
    shape: tuple[int, int],
    size: int | None = None,
    *,
    transform: Affine | None = None,
) -> list[Tile]:
    """Partition a grid into row-major, zero-based square tiles.

    Edge tiles are truncated to the grid. With ``size=None`` the whole grid is
    one extent.
    """
    validate_tile_size(size)
    if size is None:
        return [whole_extent(shape)]
    rows, cols = shape
    tile_rows, tile_cols = tile_grid_shape(shape, size)
    tiles = []
    for tile_row in range(tile_rows):
        row_start = tile_row * size
        row_stop = min(rows, row_start + size)
        for tile_col in range(tile_cols):
            col_start = tile_col * size
            col_stop = min(cols, col_start + size)
            bounds = (row_start, row_stop, col_start, col_stop)
            geometry = tile_polygon(bounds, transform) if transform is not None else None
            tiles.append(
                Tile(
                    row=tile_row,
                    col=tile_col,
                    row_start=row_start,
                    row_stop=row_stop,
                    col_start=col_start,
                    col_stop=col_stop,
                    geometry=geometry,
                )
            )
    return tiles
