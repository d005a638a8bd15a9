"""Raster models, tiling and I/O helpers."""

from racescape.raster.crs import crs_equal, crs_to_string, normalize_crs
from racescape.raster.io import read_category_raster, write_grid
from racescape.raster.models import (
    METRIC_NAMES,
    AggregatedResult,
    CategoryRaster,
    MetricsRecord,
    Tile,
)
from racescape.raster.tiling import create_tiles, tile_grid_shape, tile_polygon, whole_extent

__all__ = [
    "AggregatedResult",
    "CategoryRaster",
    "METRIC_NAMES",
    "MetricsRecord",
    "Tile",
    "create_tiles",
    "crs_equal",
    "crs_to_string",
    "normalize_crs",
    "read_category_raster",
    "tile_grid_shape",
    "tile_polygon",
    "whole_extent",
    "write_grid",
]
