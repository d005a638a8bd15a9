from __future__ import annotations

import numpy as np
import pytest

from racescape.errors import InvalidParameter
from racescape.raster.models import CategoryRaster
from racescape.sampling import (
    category_probabilities,
    generate_realizations,
    iter_realizations,
    realization_generators,
    sample_cell,
    sample_realization,
)


def test_category_probabilities_normalizes_and_flags_nodata() -> None:
    values = np.array(
        [
            [[1.0, 0.0, np.nan]],
            [[3.0, 0.0, np.nan]],
        ]
    )
    probabilities = category_probabilities(values)
    assert probabilities[:, 0, 0] == pytest.approx([0.25, 0.75])
    assert np.isnan(probabilities[:, 0, 1]).all()
    assert np.isnan(probabilities[:, 0, 2]).all()


def test_category_probabilities_treats_partial_nan_as_zero() -> None:
    probabilities = category_probabilities([np.nan, 2.0])
    assert probabilities.tolist() == [0.0, 1.0]


@pytest.mark.parametrize("values,expected", [([0.0, 7.0, 0.0], 2), ([4.0, 0.0], 1), ([0.0, 0.0, 1e-9], 3)])
def test_sample_cell_certain_category(values, expected) -> None:
    rng = np.random.default_rng(0)
    assert all(sample_cell(values, rng) == expected for _ in range(500))


def test_sample_cell_nodata() -> None:
    rng = np.random.default_rng(0)
    assert sample_cell([0.0, 0.0], rng) is None
    assert sample_cell([np.nan, np.nan], rng) is None


def test_sample_cell_rejects_bad_shape() -> None:
    with pytest.raises(ValueError, match="1-D"):
        sample_cell(np.ones((2, 2)), np.random.default_rng(0))


def test_sample_cell_frequencies_follow_probabilities() -> None:
    rng = np.random.default_rng(42)
    draws = np.array([sample_cell([1.0, 3.0], rng) for _ in range(20000)])
    assert (draws == 2).mean() == pytest.approx(0.75, abs=0.02)


def test_sample_realization_homogeneous_cells_and_mask() -> None:
    first = np.array([[5.0, 0.0], [0.0, np.nan]])
    second = np.array([[0.0, 2.0], [0.0, np.nan]])
    raster = CategoryRaster.from_layers([first, second])

    for seed in range(20):
        realization = sample_realization(raster, np.random.default_rng(seed))
        assert realization.mask.tolist() == [[False, False], [True, True]]
        assert realization[0, 0] == 1
        assert realization[0, 1] == 2


def test_sample_realization_never_picks_zero_probability_category() -> None:
    layers = np.zeros((3, 20, 20))
    layers[0] = 1.0
    layers[1] = 3.0
    raster = CategoryRaster.from_layers(layers)
    realization = sample_realization(raster, np.random.default_rng(7))
    assert set(np.unique(realization.compressed())) <= {1, 2}


def test_generate_realizations_deterministic(even_raster: CategoryRaster) -> None:
    first = generate_realizations(even_raster, 5, seed=123)
    second = generate_realizations(even_raster, 5, seed=123)
    assert len(first) == 5
    for left, right in zip(first, second):
        assert np.array_equal(left.filled(0), right.filled(0))
        assert np.array_equal(left.mask, right.mask)


def test_realizations_are_independent() -> None:
    layers = np.ones((2, 30, 30))
    raster = CategoryRaster.from_layers(layers)
    realizations = generate_realizations(raster, 3, seed=9)
    assert not np.array_equal(realizations[0].filled(0), realizations[1].filled(0))


def test_realization_stream_depends_only_on_index() -> None:
    short = [rng.random() for rng in realization_generators(2, seed=5)]
    long = [rng.random() for rng in realization_generators(4, seed=5)]
    assert short == long[:2]


def test_iter_realizations_ids_start_at_one(even_raster: CategoryRaster) -> None:
    ids = [index for index, _ in iter_realizations(even_raster, 3, seed=1)]
    assert ids == [1, 2, 3]


@pytest.mark.parametrize("n", [0, -3, 2.5, True])
def test_generate_realizations_rejects_bad_n(even_raster: CategoryRaster, n) -> None:
    with pytest.raises(InvalidParameter, match="positive integer"):
        generate_realizations(even_raster, n)
