"""Data models shared by the raster pipeline."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np
from rasterio.transform import Affine

from racescape.errors import InvalidParameter, ShapeMismatch

METRIC_NAMES = ("ent", "joinent", "condent", "mutinf")

TileKey = Tuple[Optional[int], Optional[int]]


def _optional_float(value: float) -> float | None:
    """Render NaN as None for tabular output."""
    return None if math.isnan(value) else float(value)


@dataclass(frozen=True, eq=False)
class CategoryRaster:
    """Stack of co-registered per-category population layers.

    ``layers`` has shape ``(K, rows, cols)``; missing cells are NaN. The array
    is a private read-only copy so every realization can share it.
    """

    layers: np.ndarray
    categories: tuple[str, ...]
    transform: Affine | None = None
    crs: str | None = None

    @classmethod
    def from_layers(
        cls,
        layers: np.ndarray | Sequence[np.ndarray],
        *,
        categories: Sequence[str] | None = None,
        transform: Affine | None = None,
        crs: str | None = None,
        nodata: float | None = None,
    ) -> CategoryRaster:
        """Validate and freeze a layer stack."""
        if not isinstance(layers, np.ndarray):
            expected = np.shape(layers[0]) if len(layers) else None
            for index, layer in enumerate(layers):
                if np.shape(layer) != expected:
                    raise ShapeMismatch(
                        f"Layer {index} has shape {np.shape(layer)}, expected {expected}."
                    )
        data = np.array(layers, dtype=np.float64)
        if data.ndim == 2:
            data = data[np.newaxis, ...]
        if data.ndim != 3:
            raise InvalidParameter("Category layers must be a (K, rows, cols) array.")
        if data.shape[0] < 1 or data.shape[1] < 1 or data.shape[2] < 1:
            raise InvalidParameter("Category layers must not be empty.")
        if nodata is not None and not np.isnan(nodata):
            data[data == nodata] = np.nan
        if np.any(data[~np.isnan(data)] < 0):
            raise InvalidParameter("Category values must be non-negative.")
        if categories is None:
            labels = tuple(str(index) for index in range(1, data.shape[0] + 1))
        else:
            labels = tuple(str(label) for label in categories)
        if len(labels) != data.shape[0]:
            raise InvalidParameter(
                f"Expected {data.shape[0]} category labels, got {len(labels)}."
            )
        data.setflags(write=False)
        return cls(layers=data, categories=labels, transform=transform, crs=crs)

    @property
    def count(self) -> int:
        return int(self.layers.shape[0])

    @property
    def shape(self) -> tuple[int, int]:
        return int(self.layers.shape[1]), int(self.layers.shape[2])

    def nodata_mask(self) -> np.ndarray:
        """Return True where a cell has no population in any category."""
        totals = np.nansum(self.layers, axis=0)
        all_missing = np.isnan(self.layers).all(axis=0)
        return all_missing | (totals <= 0)


@dataclass(frozen=True)
class Tile:
    """Square block of cells evaluated as one extent.

    ``row``/``col`` are zero-based tile indices, both None for the whole-area
    extent.
    """

    row: int | None
    col: int | None
    row_start: int
    row_stop: int
    col_start: int
    col_stop: int
    geometry: Mapping[str, Any] | None = None

    @property
    def key(self) -> TileKey:
        return (self.row, self.col)

    @property
    def window(self) -> tuple[slice, slice]:
        return slice(self.row_start, self.row_stop), slice(self.col_start, self.col_stop)

    @property
    def cell_count(self) -> int:
        return (self.row_stop - self.row_start) * (self.col_stop - self.col_start)


@dataclass(frozen=True)
class MetricsRecord:
    """Metrics of one realization over one extent; NaN when the extent was invalid."""

    realization: int
    row: int | None
    col: int | None
    ent: float
    joinent: float
    condent: float
    mutinf: float

    @property
    def key(self) -> TileKey:
        return (self.row, self.col)

    @property
    def is_valid(self) -> bool:
        return not math.isnan(self.ent)

    def as_dict(self) -> dict[str, Any]:
        return {
            "realization": self.realization,
            "row": self.row,
            "col": self.col,
            "ent": _optional_float(self.ent),
            "joinent": _optional_float(self.joinent),
            "condent": _optional_float(self.condent),
            "mutinf": _optional_float(self.mutinf),
        }


@dataclass(frozen=True)
class AggregatedResult:
    """Metric means (and variances) across realizations for one extent."""

    row: int | None
    col: int | None
    ent: float
    joinent: float
    condent: float
    mutinf: float
    n_valid: int
    variance: Mapping[str, float | None] = field(default_factory=dict)
    geometry: Mapping[str, Any] | None = None

    @property
    def key(self) -> TileKey:
        return (self.row, self.col)

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "row": self.row,
            "col": self.col,
            "ent": _optional_float(self.ent),
            "joinent": _optional_float(self.joinent),
            "condent": _optional_float(self.condent),
            "mutinf": _optional_float(self.mutinf),
            "n_valid": self.n_valid,
        }
        for name, value in self.variance.items():
            payload[f"{name}_var"] = value
        return payload
