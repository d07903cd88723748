"""Time-windowed rolling means with bootstrap confidence intervals."""

from .base import EstimationConfig, ResultRow, RollingDiagnostics, WindowSpec
from .bootstrap import BootstrapReplicates, bootstrap, empirical_influence
from .errors import (
    ColumnConflict,
    DegenerateBootstrap,
    InvalidConfig,
    InvalidIntervalType,
    InvalidSpan,
    InvalidUnit,
    MissingColumn,
    TimeWindowError,
)
from .estimator import estimate, mean_ci, window_mean
from .intervals import confidence_interval, interval_bounds
from .log import configure_logging
from .rolling import rolling_mean
from .selector import lookback_bounds, select_window

__all__ = [
    "WindowSpec",
    "EstimationConfig",
    "ResultRow",
    "RollingDiagnostics",
    "BootstrapReplicates",
    "bootstrap",
    "empirical_influence",
    "confidence_interval",
    "interval_bounds",
    "estimate",
    "mean_ci",
    "window_mean",
    "select_window",
    "lookback_bounds",
    "rolling_mean",
    "configure_logging",
    "TimeWindowError",
    "InvalidUnit",
    "InvalidSpan",
    "InvalidIntervalType",
    "InvalidConfig",
    "MissingColumn",
    "ColumnConflict",
    "DegenerateBootstrap",
]
