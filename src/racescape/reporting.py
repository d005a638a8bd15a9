"""Tabular and GeoJSON views of metrics results."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Any, Iterable

from racescape.raster.models import METRIC_NAMES, AggregatedResult, MetricsRecord

RECORD_FIELDS = ("realization", "row", "col", *METRIC_NAMES)


def records_table(records: Iterable[MetricsRecord]) -> list[dict[str, Any]]:
    """Return MetricsRecords as plain dict rows."""
    return [record.as_dict() for record in records]


def results_table(results: Iterable[AggregatedResult]) -> list[dict[str, Any]]:
    """Return AggregatedResults as plain dict rows without geometry."""
    return [result.as_dict() for result in results]


def write_records_csv(records: Iterable[MetricsRecord], path: Path) -> Path:
    """Write the flat per-realization metrics table; missing values are empty cells."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=RECORD_FIELDS)
        writer.writeheader()
        for row in records_table(records):
            writer.writerow({key: "" if value is None else value for key, value in row.items()})
    return path


def results_feature_collection(
    results: Iterable[AggregatedResult],
    *,
    crs: str | None = None,
) -> dict[str, Any]:
    """Return tiled results as a GeoJSON FeatureCollection.

    Results without geometry (the whole-area extent) are left out.
    """
    features = [
        {"type": "Feature", "geometry": dict(result.geometry), "properties": result.as_dict()}
        for result in results
        if result.geometry is not None
    ]
    collection: dict[str, Any] = {"type": "FeatureCollection", "features": features}
    if crs:
        collection["crs"] = {"type": "name", "properties": {"name": crs}}
    return collection


def write_results_geojson(
    results: Iterable[AggregatedResult],
    path: Path,
    *,
    crs: str | None = None,
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = results_feature_collection(results, crs=crs)
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path
