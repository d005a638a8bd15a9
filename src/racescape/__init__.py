"""Zoneless diversity and segregation metrics from race/ethnicity rasters."""

from racescape.aggregate import aggregate_records, extent_metrics
from racescape.config import RunConfig, load_run_config
from racescape.errors import InsufficientData, InvalidParameter, ShapeMismatch
from racescape.exposure import JointDistribution, build_joint_distribution
from racescape.logging_utils import LogOptions, configure_logging
from racescape.metrics import InformationMetrics, information_metrics
from racescape.pipeline import MetricsResult, compute_metrics
from racescape.raster import CategoryRaster, create_tiles, read_category_raster
from racescape.sampling import generate_realizations, sample_realization
from racescape.window import density_grid, local_composition, window_statistic

__version__ = "0.1.0"

__all__ = [
    "CategoryRaster",
    "InformationMetrics",
    "InsufficientData",
    "InvalidParameter",
    "JointDistribution",
    "LogOptions",
    "MetricsResult",
    "RunConfig",
    "ShapeMismatch",
    "__version__",
    "aggregate_records",
    "build_joint_distribution",
    "compute_metrics",
    "configure_logging",
    "create_tiles",
    "density_grid",
    "extent_metrics",
    "generate_realizations",
    "information_metrics",
    "load_run_config",
    "local_composition",
    "read_category_raster",
    "sample_realization",
    "window_statistic",
]
