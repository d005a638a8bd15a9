"""Categorical sampling of per-cell population shares into realizations."""

from __future__ import annotations

import logging
from typing import Iterator, Sequence

import numpy as np

from racescape.errors import require_positive_int
from racescape.logging_utils import log_context
from racescape.raster.models import CategoryRaster

LOGGER = logging.getLogger("racescape.sampling")


def _cumulative_shares(values: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Return cumulative shares along axis 0 and the NoData mask.

    The cumulative sum is divided by its own last element, so the final share
    is exactly 1.0 and a category whose value is zero repeats the previous
    share exactly.
    """
    filled = np.nan_to_num(np.asarray(values, dtype=np.float64), nan=0.0)
    cumulative = np.cumsum(filled, axis=0)
    totals = cumulative[-1]
    missing = np.isnan(values).all(axis=0) | (totals <= 0)
    with np.errstate(invalid="ignore", divide="ignore"):
        shares = cumulative / np.where(missing, 1.0, totals)
    return shares, missing


def category_probabilities(values: np.ndarray | Sequence[float]) -> np.ndarray:
    """Return ``v_k / sum(v)`` along axis 0; NaN where a cell is NoData."""
    data = np.asarray(values, dtype=np.float64)
    filled = np.nan_to_num(data, nan=0.0)
    totals = filled.sum(axis=0)
    missing = np.isnan(data).all(axis=0) | (totals <= 0)
    with np.errstate(invalid="ignore", divide="ignore"):
        probabilities = filled / np.where(missing, 1.0, totals)
    return np.where(missing, np.nan, probabilities)


def _draw(shares: np.ndarray, uniforms: np.ndarray) -> np.ndarray:
    """Map uniforms in [0, 1) to 1-based category indices through cumulative shares."""
    return (uniforms[np.newaxis, ...] >= shares).sum(axis=0) + 1


def sample_cell(values: Sequence[float], rng: np.random.Generator) -> int | None:
    """Draw one category (1..K) for a single cell, or None for NoData."""
    data = np.asarray(values, dtype=np.float64)
    if data.ndim != 1 or data.size == 0:
        raise ValueError("Cell values must be a non-empty 1-D sequence.")
    shares, missing = _cumulative_shares(data)
    if missing:
        return None
    return int(_draw(shares, np.asarray(rng.random())))


def sample_realization(raster: CategoryRaster, rng: np.random.Generator) -> np.ma.MaskedArray:
    """Draw one category per cell for the whole grid.

    Returns a masked integer array of 1-based category indices, masked where a
    cell has no population. One uniform variate is drawn for every cell,
    including NoData cells, so the stream position does not depend on the mask.
    """
    shares, missing = _cumulative_shares(raster.layers)
    uniforms = rng.random(raster.shape)
    categories = _draw(shares, uniforms).astype(np.int32)
    categories[missing] = 0
    return np.ma.MaskedArray(categories, mask=missing.copy())


def realization_generators(n: int, seed: int | None = None) -> list[np.random.Generator]:
    """Return ``n`` independent generators spawned from one seed sequence."""
    count = require_positive_int("Number of realizations", n)
    children = np.random.SeedSequence(seed).spawn(count)
    return [np.random.default_rng(child) for child in children]


def iter_realizations(
    raster: CategoryRaster,
    n: int,
    *,
    seed: int | None = None,
) -> Iterator[tuple[int, np.ma.MaskedArray]]:
    """Yield ``(realization_id, realization)`` pairs with 1-based ids."""
    for index, rng in enumerate(realization_generators(n, seed), start=1):
        LOGGER.debug("Sampling realization", extra=log_context(index))
        yield index, sample_realization(raster, rng)


def generate_realizations(
    raster: CategoryRaster,
    n: int,
    *,
    seed: int | None = None,
) -> list[np.ma.MaskedArray]:
    """Return ``n`` independent realizations of a category raster."""
    return [realization for _, realization in iter_realizations(raster, n, seed=seed)]
