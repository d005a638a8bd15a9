from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = ROOT / "src"
for entry in (SRC_ROOT, ROOT):
    if str(entry) not in sys.path:
        sys.path.insert(0, str(entry))

import numpy as np  # noqa: E402
import pytest  # noqa: E402
from rasterio.transform import from_origin  # noqa: E402

from racescape.raster.models import CategoryRaster  # noqa: E402


@pytest.fixture
def halves_raster() -> CategoryRaster:
    """4x4 grid: top two rows only category 1, bottom two rows only category 2."""
    first = np.zeros((4, 4))
    second = np.zeros((4, 4))
    first[:2, :] = 10.0
    second[2:, :] = 10.0
    return CategoryRaster.from_layers(
        [first, second],
        categories=("white", "black"),
        transform=from_origin(500000.0, 4000000.0, 30.0, 30.0),
        crs="EPSG:32618",
    )


@pytest.fixture
def even_raster() -> CategoryRaster:
    """4x4 grid with every cell split 50/50 between two categories."""
    layer = np.full((4, 4), 5.0)
    return CategoryRaster.from_layers([layer, layer.copy()])
