from __future__ import annotations

from pathlib import Path
from typing import Sequence, Tuple

import numpy as np
import rasterio
from rasterio.transform import from_bounds


def write_raster(
    path: Path,
    data: np.ndarray,
    *,
    bounds: Tuple[float, float, float, float] = (0.0, 0.0, 1.0, 1.0),
    crs: str | None = "EPSG:4326",
    nodata: float | None = None,
    descriptions: Sequence[str] | None = None,
) -> Path:
    """Write a 2-D (single band) or 3-D (band, row, col) array to a GeoTIFF."""
    bands = data[np.newaxis, ...] if data.ndim == 2 else data
    count, height, width = bands.shape
    transform = from_bounds(*bounds, width=width, height=height)
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=count,
        dtype=bands.dtype,
        crs=crs,
        transform=transform,
        nodata=nodata,
    ) as dataset:
        dataset.write(bands)
        if descriptions:
            for index, description in enumerate(descriptions, start=1):
                dataset.set_band_description(index, description)
    return path
