"""Defaults and environment-driven settings."""

from __future__ import annotations

import os
from typing import Optional

from .errors import InvalidConfig

UNITS = ("years", "months", "weeks", "days", "hours", "minutes", "seconds")
CALENDAR_UNITS = ("years", "months")
INTERVAL_TYPES = ("norm", "basic", "stud", "perc", "bca")
PARALLEL_MODES = ("none", "multicore", "snow")

DEFAULT_UNIT = "years"
DEFAULT_INTERVAL_TYPE = "basic"
DEFAULT_REPLICATES = 1000
DEFAULT_PARALLELISM = "none"

MEAN_COLUMN = "mean"
LOWER_CI_COLUMN = "lower_ci"
UPPER_CI_COLUMN = "upper_ci"

NCPUS_ENV_VAR = "TIMEWINDOW_NCPUS"


def default_worker_count(environ: Optional[dict] = None) -> int:
  """Returns the worker count to use when a caller does not give one."""
  env = os.environ if environ is None else environ
  raw = env.get(NCPUS_ENV_VAR)
  if raw is None or not str(raw).strip():
    return 1
  try:
    count = int(str(raw).strip())
  except ValueError as exc:
    raise InvalidConfig(f"{NCPUS_ENV_VAR} must be an integer, got {raw!r}.") from exc
  if count <= 0:
    raise InvalidConfig(f"{NCPUS_ENV_VAR} must be positive, got {count}.")
  return count
