"""Moving-window statistics of category densities."""

from __future__ import annotations

import numpy as np

from racescape.errors import InvalidParameter, ShapeMismatch, require_positive_int
from racescape.raster.models import CategoryRaster

WINDOW_FUNCTIONS = ("mean", "geometric_mean", "focal")


def validate_window(window_size: int, fun: str) -> int:
    """Validate window options and return the window size as an int."""
    size = require_positive_int("Window size", window_size)
    if fun not in WINDOW_FUNCTIONS:
        raise InvalidParameter(
            f"Unknown window function: {fun!r} (expected one of {', '.join(WINDOW_FUNCTIONS)})."
        )
    return size


def _window_bounds(length: int, window_size: int) -> tuple[np.ndarray, np.ndarray]:
    """Return per-index [start, stop) of a window truncated to ``length``.

    Even sizes reach one cell further down/right than up/left.
    """
    before = (window_size - 1) // 2
    after = window_size // 2
    index = np.arange(length)
    start = np.clip(index - before, 0, length)
    stop = np.clip(index + after + 1, 0, length)
    return start, stop


def _window_sum(values: np.ndarray, window_size: int) -> np.ndarray:
    """Sum ``values`` over each cell's truncated window using a summed-area table."""
    rows, cols = values.shape
    table = np.zeros((rows + 1, cols + 1), dtype=np.float64)
    table[1:, 1:] = values.cumsum(axis=0).cumsum(axis=1)
    row_start, row_stop = _window_bounds(rows, window_size)
    col_start, col_stop = _window_bounds(cols, window_size)
    return (
        table[np.ix_(row_stop, col_stop)]
        - table[np.ix_(row_start, col_stop)]
        - table[np.ix_(row_stop, col_start)]
        + table[np.ix_(row_start, col_start)]
    )


def _window_count(mask: np.ndarray, window_size: int) -> np.ndarray:
    return np.rint(_window_sum(mask.astype(np.float64), window_size))


def _window_mean(values: np.ndarray, window_size: int) -> np.ndarray:
    valid = ~np.isnan(values)
    sums = np.maximum(_window_sum(np.where(valid, values, 0.0), window_size), 0.0)
    counts = _window_count(valid, window_size)
    with np.errstate(invalid="ignore", divide="ignore"):
        return np.where(counts > 0, sums / counts, np.nan)


def _window_geometric_mean(values: np.ndarray, window_size: int) -> np.ndarray:
    """Geometric mean of window values with zeros left out of the product.

    Zeros still count in the denominator: the result is
    ``exp(sum(log v for v > 0) / n_valid)``. A window with no positive value
    gives 0 and a window with no valid value gives NaN.
    """
    valid = ~np.isnan(values)
    positive = valid & (np.nan_to_num(values, nan=0.0) > 0)
    with np.errstate(divide="ignore", invalid="ignore"):
        logs = np.where(positive, np.log(np.where(positive, values, 1.0)), 0.0)
    log_sums = _window_sum(logs, window_size)
    positive_counts = _window_count(positive, window_size)
    valid_counts = _window_count(valid, window_size)
    with np.errstate(invalid="ignore", divide="ignore"):
        result = np.where(positive_counts > 0, np.exp(log_sums / valid_counts), 0.0)
    return np.where(valid_counts > 0, result, np.nan)


def window_statistic(values: np.ndarray, window_size: int, fun: str = "mean") -> np.ndarray:
    """Apply a window function to one 2-D layer; NaN marks missing values."""
    size = validate_window(window_size, fun)
    data = np.asarray(values, dtype=np.float64)
    if data.ndim != 2:
        raise InvalidParameter("Window statistics require a 2-D layer.")
    if fun == "focal":
        return data.copy()
    if fun == "geometric_mean":
        return _window_geometric_mean(data, size)
    return _window_mean(data, size)


def local_composition(raster: CategoryRaster, window_size: int, fun: str = "mean") -> np.ndarray:
    """Return the window statistic of every category layer, shape (K, rows, cols)."""
    validate_window(window_size, fun)
    return np.stack([window_statistic(layer, window_size, fun) for layer in raster.layers])


def density_grid(
    realization: np.ma.MaskedArray,
    raster: CategoryRaster,
    window_size: int,
    fun: str = "mean",
    *,
    composition: np.ndarray | None = None,
) -> np.ma.MaskedArray:
    """Return, per cell, the local density of the cell's own realized category.

    ``composition`` may be passed to reuse a precomputed ``local_composition``.
    """
    validate_window(window_size, fun)
    if realization.shape != raster.shape:
        raise ShapeMismatch(
            f"Realization shape {realization.shape} does not match raster {raster.shape}."
        )
    if composition is None:
        composition = local_composition(raster, window_size, fun)
    mask = np.ma.getmaskarray(realization)
    index = np.where(mask, 1, np.ma.getdata(realization)).astype(np.intp) - 1
    own = np.take_along_axis(composition, index[np.newaxis, ...], axis=0)[0]
    return np.ma.MaskedArray(own, mask=mask.copy())
