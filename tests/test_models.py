from __future__ import annotations

import numpy as np
import pytest

from racescape.errors import InvalidParameter, ShapeMismatch
from racescape.raster.models import AggregatedResult, CategoryRaster, MetricsRecord


def test_from_layers_promotes_single_layer() -> None:
    raster = CategoryRaster.from_layers(np.ones((3, 2)))
    assert raster.count == 1
    assert raster.shape == (3, 2)
    assert raster.categories == ("1",)


def test_from_layers_is_read_only_copy() -> None:
    source = np.ones((2, 2, 2))
    raster = CategoryRaster.from_layers(source)
    source[0, 0, 0] = 99.0
    assert raster.layers[0, 0, 0] == 1.0
    with pytest.raises(ValueError):
        raster.layers[0, 0, 0] = 5.0


def test_from_layers_converts_nodata_sentinel() -> None:
    layers = np.array([[[1.0, -9999.0]], [[2.0, -9999.0]]])
    raster = CategoryRaster.from_layers(layers, nodata=-9999.0)
    assert np.isnan(raster.layers[:, 0, 1]).all()
    assert raster.nodata_mask().tolist() == [[False, True]]


@pytest.mark.parametrize(
    "layers,kwargs,message",
    [
        (np.ones(4), {}, "rows, cols"),
        (np.ones((2, 0, 3)), {}, "empty"),
        (-np.ones((1, 2, 2)), {}, "non-negative"),
        (np.ones((2, 2, 2)), {"categories": ["only"]}, "category labels"),
    ],
)
def test_from_layers_rejects_invalid(layers, kwargs, message) -> None:
    with pytest.raises(InvalidParameter, match=message):
        CategoryRaster.from_layers(layers, **kwargs)


def test_from_layers_rejects_mismatched_shapes() -> None:
    with pytest.raises(ShapeMismatch, match="Layer 1 has shape"):
        CategoryRaster.from_layers([np.ones((4, 4)), np.ones((3, 4))])


def test_nodata_mask_flags_unpopulated_cells() -> None:
    layers = np.array([[[0.0, 1.0, np.nan]], [[0.0, np.nan, np.nan]]])
    raster = CategoryRaster.from_layers(layers)
    assert raster.nodata_mask().tolist() == [[True, False, True]]


def test_metrics_record_as_dict_renders_missing_as_none() -> None:
    record = MetricsRecord(1, 0, 2, 1.0, 1.5, 0.5, float("nan"))
    assert record.key == (0, 2)
    assert record.as_dict() == {
        "realization": 1,
        "row": 0,
        "col": 2,
        "ent": 1.0,
        "joinent": 1.5,
        "condent": 0.5,
        "mutinf": None,
    }


def test_aggregated_result_includes_variance_columns() -> None:
    result = AggregatedResult(
        row=None,
        col=None,
        ent=1.0,
        joinent=2.0,
        condent=0.0,
        mutinf=1.0,
        n_valid=4,
        variance={"ent": 0.1, "mutinf": None},
    )
    payload = result.as_dict()
    assert payload["n_valid"] == 4
    assert payload["ent_var"] == 0.1
    assert payload["mutinf_var"] is None
    assert "geometry" not in payload
