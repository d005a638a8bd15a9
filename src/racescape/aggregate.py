"""Per-extent metrics and their reduction across realizations."""

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import numpy as np

from racescape.errors import InsufficientData
from racescape.exposure import build_joint_distribution
from racescape.logging_utils import log_context
from racescape.metrics import information_metrics
from racescape.raster.models import (
    METRIC_NAMES,
    AggregatedResult,
    MetricsRecord,
    Tile,
    TileKey,
)

LOGGER = logging.getLogger("racescape.aggregate")


def _missing_record(realization_id: int, tile: Tile) -> MetricsRecord:
    return MetricsRecord(
        realization=realization_id,
        row=tile.row,
        col=tile.col,
        ent=np.nan,
        joinent=np.nan,
        condent=np.nan,
        mutinf=np.nan,
    )


def extent_metrics(
    realization_id: int,
    realization: np.ma.MaskedArray,
    composition: np.ndarray,
    tiles: Iterable[Tile],
    *,
    threshold: float,
    density: np.ma.MaskedArray | None = None,
    weight: str = "count",
) -> list[MetricsRecord]:
    """Return one MetricsRecord per tile for a single realization.

    Tiles failing the missing-data gate get NaN metrics; every other error
    propagates.
    """
    records = []
    for tile in tiles:
        try:
            joint = build_joint_distribution(
                realization,
                composition,
                tile,
                threshold=threshold,
                density=density,
                weight=weight,
            )
        except InsufficientData as exc:
            LOGGER.debug(
                "Extent skipped: %s",
                exc,
                extra=log_context(realization_id, tile.key),
            )
            records.append(_missing_record(realization_id, tile))
            continue
        values = information_metrics(joint.table)
        records.append(
            MetricsRecord(
                realization=realization_id,
                row=tile.row,
                col=tile.col,
                ent=values.ent,
                joinent=values.joinent,
                condent=values.condent,
                mutinf=values.mutinf,
            )
        )
    return records


def _variance(values: np.ndarray) -> float | None:
    """Sample variance, or None when fewer than two values are available."""
    if values.size < 2:
        return None
    return float(np.var(values, ddof=1))


def aggregate_records(
    records: Iterable[MetricsRecord],
    tiles: Sequence[Tile],
    *,
    variance: bool = True,
) -> list[AggregatedResult]:
    """Average metrics per extent over the realizations where it was valid.

    Results follow the order of ``tiles``; an extent invalid in every
    realization keeps NaN metrics and ``n_valid == 0``.
    """
    grouped: dict[TileKey, list[MetricsRecord]] = {tile.key: [] for tile in tiles}
    for record in records:
        if record.key not in grouped:
            raise KeyError(f"Metrics record for unknown tile {record.key}.")
        if record.is_valid:
            grouped[record.key].append(record)

    results = []
    for tile in tiles:
        valid = grouped[tile.key]
        means: dict[str, float] = {}
        spreads: dict[str, float | None] = {}
        for name in METRIC_NAMES:
            values = np.array([getattr(record, name) for record in valid], dtype=np.float64)
            means[name] = float(values.mean()) if values.size else np.nan
            if variance:
                spreads[name] = _variance(values)
        if not valid:
            LOGGER.debug("Extent invalid in every realization.", extra=log_context(tile=tile.key))
        results.append(
            AggregatedResult(
                row=tile.row,
                col=tile.col,
                ent=means["ent"],
                joinent=means["joinent"],
                condent=means["condent"],
                mutinf=means["mutinf"],
                n_valid=len(valid),
                variance=spreads,
                geometry=tile.geometry,
            )
        )
    return results
