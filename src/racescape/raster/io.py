"""Rasterio-backed readers and writers for category stacks and result grids."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Sequence

import numpy as np
import rasterio

from racescape.errors import ShapeMismatch
from racescape.raster.crs import crs_equal
from racescape.raster.models import CategoryRaster

LOGGER = logging.getLogger("racescape.raster.io")


def _read_band(dataset, band: int) -> np.ndarray:
    """Read a band as float64 with nodata (and NaN) cells set to NaN."""
    data = dataset.read(band, masked=True).astype(np.float64)
    return np.ma.filled(data, np.nan)


def _check_alignment(reference, dataset, path: Path) -> None:
    if (dataset.height, dataset.width) != (reference.height, reference.width):
        raise ShapeMismatch(
            f"{path} has shape {(dataset.height, dataset.width)}, "
            f"expected {(reference.height, reference.width)}."
        )
    if not dataset.transform.almost_equals(reference.transform):
        raise ShapeMismatch(f"{path} is not aligned with the first layer (transform differs).")
    ref_crs = reference.crs.to_string() if reference.crs else None
    crs = dataset.crs.to_string() if dataset.crs else None
    if not crs_equal(ref_crs, crs):
        raise ShapeMismatch(f"{path} CRS {crs} differs from {ref_crs}.")


def read_category_raster(
    paths: Path | str | Sequence[Path | str],
    *,
    categories: Sequence[str] | None = None,
) -> CategoryRaster:
    """Load a category stack from one multi-band file or one file per category."""
    if isinstance(paths, (str, Path)):
        source_paths = [Path(paths)]
    else:
        source_paths = [Path(path) for path in paths]
    if not source_paths:
        raise ValueError("At least one category raster path is required.")

    layers: list[np.ndarray] = []
    labels: list[str] = []
    with ExitStack() as stack:
        datasets = [stack.enter_context(rasterio.open(path)) for path in source_paths]
        reference = datasets[0]
        for path, dataset in zip(source_paths, datasets):
            _check_alignment(reference, dataset, path)
            for band in range(1, dataset.count + 1):
                layers.append(_read_band(dataset, band))
                description = dataset.descriptions[band - 1] if dataset.descriptions else None
                if description:
                    labels.append(description)
                elif len(source_paths) > 1 and dataset.count == 1:
                    labels.append(path.stem)
                else:
                    labels.append(f"{path.stem}_{band}")
        transform = reference.transform
        crs = reference.crs.to_string() if reference.crs else None

    LOGGER.debug("Loaded %s category layers from %s file(s).", len(layers), len(source_paths))
    return CategoryRaster.from_layers(
        np.stack(layers),
        categories=categories if categories is not None else labels,
        transform=transform,
        crs=crs,
    )


def write_grid(
    path: Path,
    grid: np.ndarray,
    raster: CategoryRaster,
    *,
    nodata: float = -9999.0,
) -> Path:
    """Write a realization or density grid as a single-band GeoTIFF."""
    if grid.shape != raster.shape:
        raise ShapeMismatch(f"Grid shape {grid.shape} does not match raster {raster.shape}.")
    data = np.ma.filled(np.ma.asarray(grid).astype(np.float64), nodata)
    height, width = data.shape
    meta = {
        "driver": "GTiff",
        "height": height,
        "width": width,
        "count": 1,
        "dtype": "float64",
        "nodata": nodata,
    }
    if raster.transform is not None:
        meta["transform"] = raster.transform
    if raster.crs is not None:
        meta["crs"] = raster.crs
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(path, "w", **meta) as dataset:
        dataset.write(data, 1)
    return path
