from __future__ import annotations

from functools import partial

import numpy as np
import pytest
from scipy.stats import norm

from timewindow import BootstrapReplicates, DegenerateBootstrap, InvalidIntervalType, bootstrap
from timewindow.config import INTERVAL_TYPES
from timewindow.estimator import mean_and_variance
from timewindow.intervals import (
    basic_interval,
    confidence_interval,
    interval_bounds,
    normal_interval,
    order_statistic_quantiles,
    percentile_interval,
    studentized_interval,
)


def _replicates(t0, t, data=None):
  data = np.arange(1.0, 11.0) if data is None else data
  return BootstrapReplicates(
      data=data,
      statistic=partial(mean_and_variance, drop_na=False),
      t0=np.asarray(t0, dtype=np.float64),
      t=np.asarray(t, dtype=np.float64),
  )


@pytest.fixture
def ladder():
  """99 replicates 1..99 around an original statistic of 50 with variance 4."""
  means = np.arange(1.0, 100.0)
  return _replicates([50.0, 4.0], np.column_stack([means, np.full_like(means, 4.0)]))


def test_integer_ranks_hit_order_statistics():
  ranks, qq = order_statistic_quantiles(np.arange(1.0, 100.0), np.array([0.25, 0.5]))
  assert ranks.tolist() == [25.0, 50.0]
  assert qq.tolist() == [25.0, 50.0]


def test_fractional_ranks_interpolate_between_neighbours():
  _, qq = order_statistic_quantiles(np.arange(1.0, 100.0), np.array([0.253]))
  assert 25.0 < qq[0] < 26.0


def test_extreme_order_statistics_warn(log_records):
  _, qq = order_statistic_quantiles(np.array([3.0, 1.0, 2.0]), np.array([0.025, 0.975]))
  assert qq.tolist() == [1.0, 3.0]
  assert any("Extreme order statistics" in rec["message"] for rec in log_records)


def test_basic_interval_reflects_quantiles(ladder):
  out = basic_interval(ladder, 0.5)
  assert out.shape == (5,)
  assert out[0] == 0.5
  assert out[-2:].tolist() == [25.0, 75.0]


def test_percentile_interval_is_plain_quantiles(ladder):
  out = percentile_interval(ladder, 0.5)
  assert out[1:3].tolist() == [25.0, 75.0]
  assert out[-2:].tolist() == [25.0, 75.0]


def test_normal_interval_uses_bias_and_variance(ladder):
  out = normal_interval(ladder, 0.95)
  half_width = 2.0 * norm.ppf(0.975)
  assert out.shape == (3,)
  assert out[1] == pytest.approx(50.0 - half_width)
  assert out[2] == pytest.approx(50.0 + half_width)


def test_normal_interval_shifts_by_bias():
  means = np.arange(1.0, 100.0) + 10.0
  boot = _replicates([50.0, 4.0], np.column_stack([means, np.full_like(means, 4.0)]))
  out = normal_interval(boot, 0.9)
  assert (out[1] + out[2]) / 2 == pytest.approx(40.0)


def test_studentized_interval(ladder):
  out = studentized_interval(ladder, 0.5)
  assert out[-2:].tolist() == pytest.approx([25.0, 75.0])


def test_studentized_interval_needs_nonzero_variances():
  means = np.arange(1.0, 100.0)
  boot = _replicates([50.0, 4.0], np.column_stack([means, np.zeros_like(means)]))
  with pytest.raises(DegenerateBootstrap):
    studentized_interval(boot, 0.9)


@pytest.mark.parametrize("interval_type", INTERVAL_TYPES)
def test_constant_replicates_are_degenerate(interval_type):
  t = np.column_stack([np.full(50, 3.0), np.zeros(50)])
  with pytest.raises(DegenerateBootstrap):
    confidence_interval(_replicates([3.0, 0.0], t), 0.95, interval_type)


@pytest.mark.parametrize("interval_type", INTERVAL_TYPES)
def test_nan_original_statistic_is_degenerate(interval_type, ladder):
  boot = _replicates([np.nan, np.nan], ladder.t)
  with pytest.raises(DegenerateBootstrap):
    confidence_interval(boot, 0.95, interval_type)


@pytest.mark.parametrize("interval_type", INTERVAL_TYPES)
def test_real_bootstrap_brackets_the_mean(interval_type):
  data = np.random.default_rng(3).normal(loc=5.0, scale=1.5, size=40)
  boot = bootstrap(data, partial(mean_and_variance, drop_na=False), 999, random_state=11)
  lower, upper = interval_bounds(confidence_interval(boot, 0.95, interval_type), interval_type)
  assert lower < data.mean() < upper
  assert upper - lower < 3.0


def test_unknown_interval_type(ladder):
  with pytest.raises(InvalidIntervalType):
    confidence_interval(ladder, 0.95, "all")


def test_interval_bounds_layout():
  assert interval_bounds(np.array([0.9, 1.0, 2.0]), "norm") == (1.0, 2.0)
  assert interval_bounds(np.array([0.9, 5.0, 95.0, 1.0, 2.0]), "perc") == (1.0, 2.0)
