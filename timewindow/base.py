"""Shared datatypes for time-windowed estimation."""

from __future__ import annotations

import math
import numbers
from concurrent.futures import Executor
from dataclasses import dataclass, field
from typing import Dict, Optional

from .config import (
    DEFAULT_INTERVAL_TYPE,
    DEFAULT_PARALLELISM,
    DEFAULT_REPLICATES,
    INTERVAL_TYPES,
    LOWER_CI_COLUMN,
    MEAN_COLUMN,
    PARALLEL_MODES,
    UNITS,
    UPPER_CI_COLUMN,
)
from .errors import InvalidConfig, InvalidIntervalType, InvalidSpan, InvalidUnit


@dataclass(frozen=True)
class WindowSpec:
  """Lookback duration: `span` expressed in `unit`."""

  unit: str
  span: float

  def __post_init__(self) -> None:
    if self.unit not in UNITS:
      raise InvalidUnit(f"unit must be one of {', '.join(UNITS)}; got {self.unit!r}.")
    if isinstance(self.span, bool) or not isinstance(self.span, numbers.Real):
      raise InvalidSpan(f"span must be a number, got {self.span!r}.")
    if not math.isfinite(self.span) or self.span <= 0:
      raise InvalidSpan(f"span must be positive and finite, got {self.span!r}.")


@dataclass(frozen=True)
class EstimationConfig:
  """Validated estimator options, built once per rolling call."""

  confidence: Optional[float] = None
  drop_na: bool = False
  interval_type: str = DEFAULT_INTERVAL_TYPE
  replicates: int = DEFAULT_REPLICATES
  parallelism: str = DEFAULT_PARALLELISM
  worker_count: int = 1
  cluster: Optional[Executor] = field(default=None, compare=False, repr=False)
  random_state: Optional[int] = None

  def __post_init__(self) -> None:
    if self.interval_type not in INTERVAL_TYPES:
      raise InvalidIntervalType(
          f"interval_type must be one of {', '.join(INTERVAL_TYPES)}; got {self.interval_type!r}."
      )
    if self.confidence is not None:
      if not isinstance(self.confidence, numbers.Real) or not 0.0 < self.confidence < 1.0:
        raise InvalidConfig(f"confidence must lie strictly between 0 and 1, got {self.confidence!r}.")
    if isinstance(self.replicates, bool) or not isinstance(self.replicates, numbers.Integral):
      raise InvalidConfig(f"replicates must be an integer, got {self.replicates!r}.")
    if self.replicates <= 0:
      raise InvalidConfig(f"replicates must be positive, got {self.replicates}.")
    if self.parallelism not in PARALLEL_MODES:
      raise InvalidConfig(
          f"parallelism must be one of {', '.join(PARALLEL_MODES)}; got {self.parallelism!r}."
      )
    if isinstance(self.worker_count, bool) or not isinstance(self.worker_count, numbers.Integral):
      raise InvalidConfig(f"worker_count must be an integer, got {self.worker_count!r}.")
    if self.worker_count <= 0:
      raise InvalidConfig(f"worker_count must be positive, got {self.worker_count}.")

  @property
  def wants_interval(self) -> bool:
    return self.confidence is not None


@dataclass(frozen=True)
class ResultRow:
  """Estimate for one row of the sorted series.

  `lower_ci`/`upper_ci` stay `None` when no confidence level was requested.
  `insufficient` marks rows whose window held one value or fewer, and
  `degenerate` marks rows where the bootstrap could not produce an interval.
  """

  mean: float
  lower_ci: Optional[float] = None
  upper_ci: Optional[float] = None
  insufficient: bool = False
  degenerate: bool = False

  @classmethod
  def missing(cls, *, with_interval: bool) -> "ResultRow":
    nan = float("nan")
    if with_interval:
      return cls(mean=nan, lower_ci=nan, upper_ci=nan, insufficient=True)
    return cls(mean=nan, insufficient=True)

  def as_record(self, with_interval: bool) -> Dict[str, float]:
    record = {MEAN_COLUMN: self.mean}
    if with_interval:
      record[LOWER_CI_COLUMN] = float("nan") if self.lower_ci is None else self.lower_ci
      record[UPPER_CI_COLUMN] = float("nan") if self.upper_ci is None else self.upper_ci
    return record


@dataclass(frozen=True)
class RollingDiagnostics:
  """Per-call counts of rows that came back without a usable estimate."""

  rows: int
  insufficient_rows: int = 0
  degenerate_rows: int = 0
  metadata: Dict[str, object] = field(default_factory=dict)
