"""Joint distribution of realized category versus neighbourhood composition."""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from racescape.errors import InsufficientData, InvalidParameter, ShapeMismatch
from racescape.raster.models import Tile

WEIGHT_MODES = ("count", "density")


@dataclass(frozen=True, eq=False)
class JointDistribution:
    """K x K probabilities: rows are realized categories, columns dominant neighbours."""

    table: np.ndarray
    valid_cells: int
    total_cells: int

    @property
    def missing_share(self) -> float:
        return 1.0 - self.valid_cells / self.total_cells


def validate_threshold(threshold: float) -> float:
    """Return ``threshold`` as a float in [0, 1] or raise InvalidParameter."""
    if isinstance(threshold, bool):
        raise InvalidParameter(f"Threshold must be a number, got {threshold!r}.")
    try:
        value = float(threshold)
    except (TypeError, ValueError) as exc:
        raise InvalidParameter(f"Threshold must be a number, got {threshold!r}.") from exc
    if math.isnan(value) or not 0.0 <= value <= 1.0:
        raise InvalidParameter(f"Threshold must be within [0, 1], got {threshold!r}.")
    return value


def validate_weight(weight: str) -> str:
    if weight not in WEIGHT_MODES:
        raise InvalidParameter(
            f"Unknown weight mode: {weight!r} (expected one of {', '.join(WEIGHT_MODES)})."
        )
    return weight


def dominant_category(composition: np.ndarray) -> np.ndarray:
    """Return the 1-based category with the largest local statistic per cell.

    Ties resolve to the lowest category index; missing statistics count as 0.
    Values within a relative ``1e-9`` of the cell maximum count as ties, so
    summed-area rounding noise cannot pick the column.
    """
    filled = np.nan_to_num(composition, nan=0.0)
    peak = filled.max(axis=0)
    tolerance = 1e-9 * np.abs(peak)
    return np.argmax(filled >= peak - tolerance, axis=0) + 1


def check_coverage(realization: np.ma.MaskedArray, tile: Tile, threshold: float) -> tuple[int, int]:
    """Return ``(valid_cells, total_cells)`` for a tile, or raise InsufficientData.

    The tile is accepted while its missing-cell share is at most ``threshold``;
    the boundary itself is accepted.
    """
    limit = validate_threshold(threshold)
    mask = np.ma.getmaskarray(realization)[tile.window]
    total = int(mask.size)
    if total == 0:
        raise InsufficientData("Extent contains no cells.", missing_share=1.0)
    missing = int(mask.sum())
    missing_share = missing / total
    if missing == total:
        raise InsufficientData("Extent has no populated cells.", missing_share=missing_share)
    if missing_share > limit and not math.isclose(missing_share, limit, abs_tol=1e-12):
        raise InsufficientData(
            f"Missing share {missing_share:.3f} exceeds threshold {limit:.3f}.",
            missing_share=missing_share,
        )
    return total - missing, total


def build_joint_distribution(
    realization: np.ma.MaskedArray,
    composition: np.ndarray,
    tile: Tile,
    *,
    threshold: float,
    density: np.ma.MaskedArray | None = None,
    weight: str = "count",
) -> JointDistribution:
    """Tabulate realized categories against dominant neighbourhood categories.

    With ``weight="density"`` each cell contributes its own-category local
    density instead of 1. The table is normalized by its total weight.
    """
    validate_weight(weight)
    if composition.shape[1:] != realization.shape:
        raise ShapeMismatch(
            f"Composition grid {composition.shape[1:]} does not match realization "
            f"{realization.shape}."
        )
    valid_cells, total_cells = check_coverage(realization, tile, threshold)

    window = tile.window
    mask = np.ma.getmaskarray(realization)[window]
    categories = np.ma.getdata(realization)[window][~mask].astype(np.intp) - 1
    neighbours = dominant_category(composition[(slice(None), *window)])[~mask] - 1

    if weight == "density":
        if density is None:
            raise InvalidParameter("Density weighting requires a density grid.")
        weights = np.nan_to_num(np.ma.getdata(density)[window][~mask].astype(np.float64), nan=0.0)
    else:
        weights = np.ones(categories.shape, dtype=np.float64)

    count = composition.shape[0]
    table = np.zeros((count, count), dtype=np.float64)
    np.add.at(table, (categories, neighbours), weights)
    total_weight = float(table.sum())
    if total_weight <= 0:
        raise InsufficientData("Extent has zero total weight.")
    return JointDistribution(
        table=table / total_weight,
        valid_cells=valid_cells,
        total_cells=total_cells,
    )
