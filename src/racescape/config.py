"""Run configuration loading and validation."""

from __future__ import annotations

import json
import numbers
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping

from racescape.contracts import SCHEMA_VERSION, validate_run_config
from racescape.errors import InvalidParameter, require_positive_int
from racescape.exposure import validate_threshold, validate_weight
from racescape.raster.tiling import validate_tile_size
from racescape.window import validate_window


def _is_integer(value: object) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


@dataclass(frozen=True)
class RunConfig:
    """Options of one metrics computation.

    ``n`` realizations are drawn; densities use a ``window_size`` square window
    reduced with ``fun``; ``size`` is the tile side in cells (None for the whole
    raster); ``threshold`` is the largest tolerated missing-cell share per
    extent. ``jobs=0`` uses every available core.
    """

    n: int = 30
    window_size: int = 3
    fun: str = "mean"
    size: int | None = None
    threshold: float = 0.75
    seed: int | None = None
    jobs: int = 1
    weight: str = "count"
    variance: bool = True

    def validate(self) -> RunConfig:
        """Raise InvalidParameter for any out-of-range option; return self."""
        require_positive_int("Number of realizations", self.n)
        validate_window(self.window_size, self.fun)
        validate_tile_size(self.size)
        validate_threshold(self.threshold)
        validate_weight(self.weight)
        if not _is_integer(self.jobs) or self.jobs < 0:
            raise InvalidParameter(f"jobs must be >= 0, got {self.jobs!r}.")
        if self.seed is not None and (not _is_integer(self.seed) or self.seed < 0):
            raise InvalidParameter(f"seed must be a non-negative integer, got {self.seed!r}.")
        return self

    def resolved_jobs(self) -> int:
        """Return the worker count, capped at the number of realizations."""
        if self.jobs == 0:
            return max(1, min(os.cpu_count() or 1, int(self.n)))
        return max(1, min(int(self.jobs), int(self.n)))

    def as_dict(self) -> dict[str, Any]:
        return {
            "schema_version": SCHEMA_VERSION,
            "n": self.n,
            "window_size": self.window_size,
            "fun": self.fun,
            "size": self.size,
            "threshold": self.threshold,
            "seed": self.seed,
            "jobs": self.jobs,
            "weight": self.weight,
            "variance": self.variance,
        }

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> RunConfig:
        """Build a validated RunConfig from a JSON-like mapping."""
        validate_run_config(payload)
        known = {field.name for field in fields(cls)}
        options = {key: value for key, value in payload.items() if key in known}
        return cls(**options).validate()


def load_run_config(path: Path) -> RunConfig:
    """Load a run configuration from a JSON file."""
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidParameter(f"Run config {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidParameter("Run config must be a JSON object.")
    return RunConfig.from_mapping(data)
