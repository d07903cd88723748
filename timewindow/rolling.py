"""Time-based rolling mean over an irregularly sampled table."""

from __future__ import annotations

from concurrent.futures import Executor, ProcessPoolExecutor
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, List, Optional

import numpy as np
import pandas as pd
from loguru import logger

from .base import EstimationConfig, ResultRow, RollingDiagnostics, WindowSpec
from .config import (
    DEFAULT_INTERVAL_TYPE,
    DEFAULT_PARALLELISM,
    DEFAULT_REPLICATES,
    DEFAULT_UNIT,
    LOWER_CI_COLUMN,
    MEAN_COLUMN,
    UPPER_CI_COLUMN,
    default_worker_count,
)
from .errors import ColumnConflict, MissingColumn
from .estimator import estimate
from .log import timing
from .selector import lookback_bounds

DIAGNOSTICS_ATTR = "diagnostics"


def rolling_mean(
    frame: pd.DataFrame,
    value_column: str,
    time_column: str,
    *,
    unit: str = DEFAULT_UNIT,
    span: float,
    confidence: Optional[float] = None,
    drop_na: bool = False,
    interval_type: str = DEFAULT_INTERVAL_TYPE,
    replicates: int = DEFAULT_REPLICATES,
    parallelism: str = DEFAULT_PARALLELISM,
    worker_count: Optional[int] = None,
    cluster: Optional[Executor] = None,
    random_state: Optional[int] = None,
) -> pd.DataFrame:
  """Rolling mean (and optional bootstrap CI) over a trailing time window.

  Each row's window holds the values of the earlier rows stamped no more than
  `span` `unit`s before it. The frame comes back sorted by `time_column`
  (stable, index reset) with a `mean` column, plus `lower_ci` and `upper_ci`
  when `confidence` is set. Rows whose window holds one value or fewer get
  NaN; their count, and the count of rows whose interval could not be formed,
  are logged once and kept in ``result.attrs["diagnostics"]``.
  """
  spec = WindowSpec(unit=unit, span=span)
  config = EstimationConfig(
      confidence=confidence,
      drop_na=drop_na,
      interval_type=interval_type,
      replicates=replicates,
      parallelism=parallelism,
      worker_count=default_worker_count() if worker_count is None else worker_count,
      cluster=cluster,
      random_state=random_state,
  )
  _check_columns(frame, value_column, time_column, config)

  stamps = _timestamps(frame[time_column])
  order = np.argsort(stamps, kind="stable")
  ordered = frame.iloc[order].reset_index(drop=True)
  times = stamps[order]
  values = ordered[value_column].to_numpy(dtype=np.float64, na_value=np.nan)

  logger.debug(
      f"rolling_mean: rows={len(ordered)} unit={spec.unit} span={spec.span} "
      f"confidence={config.confidence} interval_type={config.interval_type}"
  )
  with timing("rolling_mean"), _worker_pool(config) as run_config:
    bounds = lookback_bounds(times, spec)
    rows: List[ResultRow] = [
        estimate(values[bounds[idx]:idx], run_config) for idx in range(len(ordered))
    ]

  result = ordered.copy()
  result[MEAN_COLUMN] = np.array([row.mean for row in rows], dtype=np.float64)
  if config.wants_interval:
    records = [row.as_record(True) for row in rows]
    result[LOWER_CI_COLUMN] = np.array([rec[LOWER_CI_COLUMN] for rec in records], dtype=np.float64)
    result[UPPER_CI_COLUMN] = np.array([rec[UPPER_CI_COLUMN] for rec in records], dtype=np.float64)

  diagnostics = RollingDiagnostics(
      rows=len(rows),
      insufficient_rows=sum(row.insufficient for row in rows),
      degenerate_rows=sum(row.degenerate for row in rows),
      metadata={"unit": spec.unit, "span": spec.span},
  )
  _report(diagnostics, config)
  result.attrs[DIAGNOSTICS_ATTR] = diagnostics
  return result


def _check_columns(
    frame: pd.DataFrame,
    value_column: str,
    time_column: str,
    config: EstimationConfig,
) -> None:
  for column in (value_column, time_column):
    if column not in frame.columns:
      raise MissingColumn(f"Column {column!r} not found in the input frame.")
  outputs = [MEAN_COLUMN]
  if config.wants_interval:
    outputs += [LOWER_CI_COLUMN, UPPER_CI_COLUMN]
  clashes = [name for name in outputs if name in frame.columns]
  if clashes:
    raise ColumnConflict(
        f"Input frame already has output column(s) {', '.join(clashes)}; rename them first."
    )


def _timestamps(column: pd.Series) -> np.ndarray:
  """Column as naive datetime64[ns].

  Offset-aware stamps, mixed offsets included, are moved to UTC; naive
  stamps keep their wall-clock value.
  """
  stamps = pd.to_datetime(column, utc=True).dt.tz_localize(None)
  if stamps.isna().any():
    raise ValueError(f"Time column {column.name!r} contains missing timestamps.")
  return stamps.to_numpy(dtype="datetime64[ns]")


@contextmanager
def _worker_pool(config: EstimationConfig) -> Iterator[EstimationConfig]:
  """Opens one process pool for the whole call when the bootstrap fans out."""
  if (
      not config.wants_interval
      or config.parallelism == "none"
      or config.worker_count == 1
      or config.cluster is not None
  ):
    yield config
    return
  logger.debug(f"Starting {config.parallelism} pool with {config.worker_count} workers.")
  with ProcessPoolExecutor(max_workers=config.worker_count) as pool:
    yield replace(config, cluster=pool)


def _report(diagnostics: RollingDiagnostics, config: EstimationConfig) -> None:
  if diagnostics.insufficient_rows:
    logger.warning(
        f"{diagnostics.insufficient_rows} of {diagnostics.rows} rows produced NA because the "
        "specified time window (span) is too short. Specify a larger span to eliminate NAs."
    )
  if diagnostics.degenerate_rows:
    logger.warning(
        f"{diagnostics.degenerate_rows} of {diagnostics.rows} rows have NA {config.interval_type} "
        "confidence bounds because the bootstrap replicates could not support an interval."
    )
