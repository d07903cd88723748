"""Time-based lookback window selection."""

from __future__ import annotations

import math
from typing import Optional

import numpy as np
import pandas as pd
from dateutil.relativedelta import relativedelta

from .base import WindowSpec
from .config import CALENDAR_UNITS

_MONTHS_PER_UNIT = {"years": 12, "months": 1}
_NANOS_PER_UNIT = {
    "weeks": 7 * 86_400 * 10**9,
    "days": 86_400 * 10**9,
    "hours": 3_600 * 10**9,
    "minutes": 60 * 10**9,
    "seconds": 10**9,
}
# datetime64[ns] covers roughly 1677-2262; no two stamps lie further apart
_MAX_STAMP_DISTANCE_NS = 2**64
_MAX_STAMP_DISTANCE_MONTHS = 12 * 600
_EARLIEST_NS = pd.Timestamp.min.value


def _calendar_lower_edge(anchor: pd.Timestamp, months: float) -> Optional[pd.Timestamp]:
  """Steps back `months` calendar months, prorating any fractional part.

  The whole months go through relativedelta so month ends clamp the usual
  way (31 March minus one month lands on the last day of February). The
  remaining fraction is taken of the calendar month that precedes the
  whole-month point. Returns None when the edge falls before the earliest
  representable timestamp.
  """
  if months >= _MAX_STAMP_DISTANCE_MONTHS:
    return None
  whole = int(math.floor(months))
  fraction = months - whole
  try:
    edge = anchor - relativedelta(months=whole)
    if fraction > 0:
      month_length = edge - (edge - relativedelta(months=1))
      edge = edge - month_length * fraction
    return pd.Timestamp(edge)
  except (OverflowError, ValueError):  # OutOfBoundsDatetime is a ValueError
    return None


def _span_nanos(spec: WindowSpec) -> Optional[int]:
  """Fixed-unit span in nanoseconds; None when it exceeds any stamp distance."""
  nanos = spec.span * _NANOS_PER_UNIT[spec.unit]
  if nanos >= _MAX_STAMP_DISTANCE_NS:
    return None
  return int(round(nanos))


def lower_edge(anchor: pd.Timestamp, spec: WindowSpec) -> Optional[pd.Timestamp]:
  """Earliest timestamp still inside the window that ends at `anchor`.

  None means the window reaches back past every representable timestamp,
  so it is bounded only by the start of the series.
  """
  if spec.unit in CALENDAR_UNITS:
    return _calendar_lower_edge(anchor, spec.span * _MONTHS_PER_UNIT[spec.unit])
  nanos = _span_nanos(spec)
  if nanos is None:
    return None
  edge = pd.Timestamp(anchor).value - nanos
  if edge <= _EARLIEST_NS:
    return None
  return pd.Timestamp(edge)


def lookback_bounds(times: np.ndarray, spec: WindowSpec) -> np.ndarray:
  """Returns, for every row of a sorted series, the first index in its window.

  Row `i`'s window is the slice `[bounds[i], i)`; rows earlier than
  `bounds[i]` lie more than `spec.span` units before row `i`.
  """
  times = np.asarray(times, dtype="datetime64[ns]")
  if times.size == 0:
    return np.zeros(0, dtype=np.intp)
  stamps = times.astype(np.int64)
  first = int(stamps[0])

  if spec.unit not in CALENDAR_UNITS:
    nanos = _span_nanos(spec)
    if nanos is not None and nanos < 2**63 and first - nanos > _EARLIEST_NS:
      return np.searchsorted(stamps, stamps - np.int64(nanos), side="left")

  edges = []
  for ts in times:
    edge = lower_edge(pd.Timestamp(ts), spec)
    edges.append(first if edge is None else max(edge.value, first))
  return np.searchsorted(stamps, np.array(edges, dtype=np.int64), side="left")


def select_window(
    times: np.ndarray,
    values: np.ndarray,
    index: int,
    spec: WindowSpec,
) -> np.ndarray:
  """Values of the rows before `index` that lie within the lookback span.

  `times` must be sorted ascending. The row at `index` never contributes to
  its own window, and the first row always gets an empty window.
  """
  if len(times) != len(values):
    raise ValueError("Times and values must align for window selection.")
  if not 0 <= index < len(times):
    raise IndexError(f"Row index {index} is out of range for a series of {len(times)} rows.")
  if index == 0:
    return np.empty(0, dtype=np.float64)

  times = np.asarray(times, dtype="datetime64[ns]")
  edge = lower_edge(pd.Timestamp(times[index]), spec)
  if edge is None:
    start = 0
  else:
    start = int(np.searchsorted(times[:index], edge.to_datetime64(), side="left"))
  return np.asarray(values[start:index], dtype=np.float64)
