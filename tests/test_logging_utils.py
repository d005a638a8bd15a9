from __future__ import annotations

import json
import logging
from pathlib import Path

import numpy as np
import pytest

from racescape.config import RunConfig
from racescape.logging_utils import (
    EXTENT_LOGGER,
    ExtentFilter,
    HumanFormatter,
    JsonFormatter,
    LogOptions,
    configure_logging,
    log_context,
)
from racescape.pipeline import compute_metrics
from racescape.raster.models import CategoryRaster


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("racescape")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def _record(name: str, level: int, message: str, **extra) -> logging.LogRecord:
    record = logging.LogRecord(name, level, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_log_context_skips_missing_parts() -> None:
    assert log_context() == {}
    assert log_context(3) == {"realization": 3}
    assert log_context(tile=(None, None)) == {"tile": (None, None)}


def test_json_formatter_hoists_context() -> None:
    record = _record("racescape.aggregate", logging.DEBUG, "skipped", realization=2, tile=(0, 1), cells=16)
    payload = json.loads(JsonFormatter().format(record))
    assert payload["level"] == "debug"
    assert payload["realization"] == 2
    assert payload["tile"] == [0, 1]
    assert payload["extra"] == {"cells": 16}


def test_human_formatter_prefixes_context() -> None:
    formatter = HumanFormatter("%(levelname)s: %(message)s")
    assert formatter.format(_record("racescape", logging.INFO, "done")) == "INFO: done"
    record = _record("racescape", logging.INFO, "done", realization=3, tile=(None, None))
    assert formatter.format(record) == "[r3 tile -,-] INFO: done"


def test_extent_filter() -> None:
    extent_debug = _record(EXTENT_LOGGER, logging.DEBUG, "skipped")
    pipeline_debug = _record("racescape.pipeline", logging.DEBUG, "evaluated")
    extent_warning = _record(EXTENT_LOGGER, logging.WARNING, "odd")

    quiet = ExtentFilter(show_extents=False)
    assert not quiet.filter(extent_debug)
    assert quiet.filter(pipeline_debug)
    assert quiet.filter(extent_warning)
    assert ExtentFilter(show_extents=True).filter(extent_debug)


def test_configure_logging_levels() -> None:
    logger = configure_logging(LogOptions(quiet=True))
    assert logger.name == "racescape"
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.WARNING

    logger = configure_logging(LogOptions(verbose=1))
    assert len(logger.handlers) == 1
    assert logger.handlers[0].level == logging.DEBUG


def test_configure_logging_leaves_root_alone() -> None:
    root_handlers = list(logging.getLogger().handlers)
    configure_logging(LogOptions())
    assert logging.getLogger().handlers == root_handlers


def test_run_writes_context_to_log_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "run.jsonl"
    configure_logging(LogOptions(log_file=log_path))
    layers = np.ones((2, 4, 4))
    layers[:, :, 2:] = np.nan
    raster = CategoryRaster.from_layers(layers)

    compute_metrics(raster, RunConfig(n=2, size=2, threshold=0.0, seed=3))
    for handler in logging.getLogger("racescape").handlers:
        handler.flush()

    entries = [json.loads(line) for line in log_path.read_text(encoding="utf-8").splitlines()]
    skipped = [entry for entry in entries if entry["logger"] == EXTENT_LOGGER and "realization" in entry]
    assert {entry["realization"] for entry in skipped} == {1, 2}
    assert all(entry["tile"][1] == 1 for entry in skipped)
    assert any(entry["level"] == "warning" for entry in entries)
