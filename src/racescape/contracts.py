"""Schema validation helpers for run configuration payloads."""

from __future__ import annotations

import json
from importlib import resources
from typing import Any, Mapping

import jsonschema

from racescape.errors import InvalidParameter

SCHEMA_VERSION = "1"


def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema bundled in the package."""
    with resources.files("racescape.schemas").joinpath(name).open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_run_config(payload: Mapping[str, Any]) -> None:
    """Validate a run configuration payload, raising InvalidParameter on failure."""
    schema = _load_schema("run_config.schema.json")
    try:
        jsonschema.validate(dict(payload), schema)
    except jsonschema.ValidationError as exc:
        location = ".".join(str(part) for part in exc.absolute_path) or "config"
        raise InvalidParameter(f"Invalid run config at {location}: {exc.message}") from exc
