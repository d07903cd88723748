"""Bootstrap confidence intervals.

Each builder returns a 1-D array. The normal interval has the layout
``(conf, lower, upper)``; the other four share
``(conf, rank_lo, rank_hi, lower, upper)`` where the ranks are the
(possibly fractional) order-statistic positions the endpoints came from.
"""

from __future__ import annotations

from typing import Callable, Dict, Tuple

import numpy as np
from loguru import logger
from scipy.stats import norm

from .bootstrap import BootstrapReplicates, empirical_influence
from .config import INTERVAL_TYPES
from .errors import DegenerateBootstrap, InvalidIntervalType


def _is_constant(values: np.ndarray) -> bool:
  if np.ptp(values) == 0:
    return True
  center = np.nanmean(values)
  eps = min(1e-8, abs(center) / 1e6)
  return bool(np.all(np.abs(values - center) < eps))


def order_statistic_quantiles(t: np.ndarray, alpha: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
  """Quantiles of `t` at levels `alpha`, interpolated on the normal scale.

  Position ``(R + 1) * alpha`` is looked up among the sorted finite values;
  fractional positions interpolate between neighbouring order statistics in
  standard-normal quantile space. Returns ``(ranks, quantiles)``.
  """
  t = np.sort(t[np.isfinite(t)])
  r = len(t)
  if r == 0:
    raise DegenerateBootstrap("No finite bootstrap replicates to take quantiles from.")
  alpha = np.asarray(alpha, dtype=np.float64)
  rank = (r + 1) * alpha
  if not np.all((rank > 1) & (rank < r)):
    logger.warning("Extreme order statistics used as endpoints; consider more replicates.")

  k = np.trunc(rank).astype(int)
  out = np.empty_like(rank)
  for pos, (rk, kk, level) in enumerate(zip(rank, k, alpha)):
    if kk == 0:
      out[pos] = t[0]
    elif kk >= r:
      out[pos] = t[r - 1]
    elif kk == rk:
      out[pos] = t[kk - 1]
    else:
      z = norm.ppf(level)
      z_k = norm.ppf(kk / (r + 1))
      z_next = norm.ppf((kk + 1) / (r + 1))
      out[pos] = t[kk - 1] + (z - z_k) / (z_next - z_k) * (t[kk] - t[kk - 1])
  return np.round(rank, 2), out


def normal_interval(boot: BootstrapReplicates, confidence: float) -> np.ndarray:
  """Bias-corrected normal approximation around the original statistic.

  The standard error comes from the variance component of the original
  statistic when the statistic carries one, else from the replicates.
  """
  t0, t = _primary(boot)
  if boot.t0.size > 1 and np.isfinite(boot.t0[1]):
    variance = boot.t0[1]
  else:
    variance = np.var(t, ddof=1)
  bias = np.mean(t) - t0
  margin = np.sqrt(variance) * norm.ppf((1 + confidence) / 2)
  return np.array([confidence, t0 - bias - margin, t0 - bias + margin])


def basic_interval(boot: BootstrapReplicates, confidence: float) -> np.ndarray:
  t0, t = _primary(boot)
  ranks, qq = order_statistic_quantiles(t, (1 + np.array([confidence, -confidence])) / 2)
  return np.concatenate([[confidence], ranks, 2 * t0 - qq])


def percentile_interval(boot: BootstrapReplicates, confidence: float) -> np.ndarray:
  _, t = _primary(boot)
  ranks, qq = order_statistic_quantiles(t, (1 + np.array([-confidence, confidence])) / 2)
  return np.concatenate([[confidence], ranks, qq])


def studentized_interval(boot: BootstrapReplicates, confidence: float) -> np.ndarray:
  """Bootstrap-t interval; needs the variance as the statistic's second entry."""
  t0, t = _primary(boot)
  if boot.t0.size < 2 or boot.t.shape[1] < 2:
    raise DegenerateBootstrap("Studentized intervals need a variance estimate for every replicate.")
  var_t0 = boot.t0[1]
  var_t = boot.t[:, 1][np.isfinite(boot.t[:, 0])]
  if not np.isfinite(var_t0):
    raise DegenerateBootstrap("Original-sample variance estimate is not finite.")
  with np.errstate(divide="ignore", invalid="ignore"):
    z = (t - t0) / np.sqrt(var_t)
  z = z[np.isfinite(z)]
  if z.size == 0:
    raise DegenerateBootstrap("Every studentized replicate is undefined (zero variance).")
  ranks, qz = order_statistic_quantiles(z, (1 + np.array([confidence, -confidence])) / 2)
  return np.concatenate([[confidence], ranks, t0 - np.sqrt(var_t0) * qz])


def bca_interval(boot: BootstrapReplicates, confidence: float) -> np.ndarray:
  """Bias-corrected and accelerated percentile interval."""
  t0, t = _primary(boot)
  with np.errstate(divide="ignore"):
    w = norm.ppf(np.sum(t < t0) / len(t))
  if not np.isfinite(w):
    raise DegenerateBootstrap("Estimated bias adjustment 'w' is infinite.")
  influence = empirical_influence(boot.data, boot.statistic)
  with np.errstate(divide="ignore", invalid="ignore"):
    a = np.sum(influence**3) / (6 * np.sum(influence**2) ** 1.5)
  if not np.isfinite(a):
    raise DegenerateBootstrap("Estimated acceleration 'a' is not finite.")
  z_alpha = norm.ppf((1 + np.array([-confidence, confidence])) / 2)
  adjusted = norm.cdf(w + (w + z_alpha) / (1 - a * (w + z_alpha)))
  ranks, qq = order_statistic_quantiles(t, adjusted)
  return np.concatenate([[confidence], ranks, qq])


_BUILDERS: Dict[str, Callable[[BootstrapReplicates, float], np.ndarray]] = {
    "norm": normal_interval,
    "basic": basic_interval,
    "stud": studentized_interval,
    "perc": percentile_interval,
    "bca": bca_interval,
}


def confidence_interval(
    boot: BootstrapReplicates,
    confidence: float,
    interval_type: str,
) -> np.ndarray:
  """Builds the `interval_type` interval at level `confidence`."""
  if interval_type not in INTERVAL_TYPES:
    raise InvalidIntervalType(
        f"interval_type must be one of {', '.join(INTERVAL_TYPES)}; got {interval_type!r}."
    )
  return _BUILDERS[interval_type](boot, confidence)


def interval_bounds(interval: np.ndarray, interval_type: str) -> Tuple[float, float]:
  """Lower and upper endpoints of an interval built by `confidence_interval`."""
  if interval_type == "norm":
    return float(interval[1]), float(interval[2])
  return float(interval[-2]), float(interval[-1])


def _primary(boot: BootstrapReplicates) -> Tuple[float, np.ndarray]:
  t0 = float(boot.t0[0])
  if not np.isfinite(t0):
    raise DegenerateBootstrap("Statistic on the original sample is not finite.")
  t = boot.t[:, 0]
  finite = t[np.isfinite(t)]
  if finite.size == 0 or _is_constant(finite):
    raise DegenerateBootstrap("All bootstrap replicates are equal; no interval can be formed.")
  return t0, finite
