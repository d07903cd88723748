"""Mean and bootstrap confidence interval for a single window."""

from __future__ import annotations

import warnings
from functools import partial

import numpy as np
from loguru import logger

from .base import EstimationConfig, ResultRow
from .bootstrap import bootstrap
from .errors import DegenerateBootstrap
from .intervals import confidence_interval, interval_bounds


def window_mean(window: np.ndarray, drop_na: bool = False) -> float:
  """Arithmetic mean; NaN when NaNs are kept or nothing finite remains."""
  window = np.asarray(window, dtype=np.float64)
  if not drop_na:
    return float(np.mean(window)) if window.size else float("nan")
  with warnings.catch_warnings():
    warnings.simplefilter("ignore", category=RuntimeWarning)
    return float(np.nanmean(window)) if window.size else float("nan")


def mean_and_variance(data: np.ndarray, indices: np.ndarray, drop_na: bool = False) -> np.ndarray:
  """Resample mean and its plug-in variance ``(k - 1) * s^2 / k^2``.

  `k` is the resample size; `s^2` uses the n - 1 denominator.
  """
  sample = data[indices]
  k = len(sample)
  with warnings.catch_warnings():
    warnings.simplefilter("ignore", category=RuntimeWarning)
    center = np.nanmean(sample) if drop_na else np.mean(sample)
    spread = np.nanvar(sample, ddof=1) if drop_na else np.var(sample, ddof=1)
  return np.array([center, (k - 1) * spread / k**2], dtype=np.float64)


def estimate(window: np.ndarray, config: EstimationConfig) -> ResultRow:
  """Mean of `window` and, when a confidence level is set, its bootstrap CI.

  Windows with one value or fewer come back as an all-NaN row flagged
  `insufficient`. Intervals the bootstrap cannot form come back as NaN bounds
  flagged `degenerate`.
  """
  window = np.asarray(window, dtype=np.float64)
  if len(window) <= 1:
    return ResultRow.missing(with_interval=config.wants_interval)

  if not config.wants_interval:
    return ResultRow(mean=window_mean(window, config.drop_na))

  statistic = partial(mean_and_variance, drop_na=config.drop_na)
  boot = bootstrap(
      window,
      statistic,
      config.replicates,
      parallelism=config.parallelism,
      worker_count=config.worker_count,
      cluster=config.cluster,
      random_state=config.random_state,
  )
  center = float(boot.t0[0])
  try:
    interval = confidence_interval(boot, config.confidence, config.interval_type)
  except DegenerateBootstrap as exc:
    logger.debug(f"No {config.interval_type} interval for window of {len(window)}: {exc}")
    nan = float("nan")
    return ResultRow(mean=center, lower_ci=nan, upper_ci=nan, degenerate=True)

  lower, upper = interval_bounds(interval, config.interval_type)
  return ResultRow(mean=center, lower_ci=lower, upper_ci=upper)


mean_ci = estimate
