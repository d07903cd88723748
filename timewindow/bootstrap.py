"""Nonparametric bootstrap: resample with replacement and reduce."""

from __future__ import annotations

from concurrent.futures import Executor, ProcessPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from loguru import logger

from .config import PARALLEL_MODES
from .errors import InvalidConfig

# statistic(data, indices) -> 1-D array of statistics for the resample data[indices]
Statistic = Callable[[np.ndarray, np.ndarray], np.ndarray]


@dataclass(frozen=True)
class BootstrapReplicates:
  """Original-sample statistics plus one row of statistics per resample."""

  data: np.ndarray
  statistic: Statistic
  t0: np.ndarray
  t: np.ndarray

  @property
  def replicates(self) -> int:
    return int(self.t.shape[0])


def split_replicates(replicates: int, chunks: int) -> List[int]:
  """Splits `replicates` into at most `chunks` near-equal positive counts."""
  chunks = max(1, min(chunks, replicates))
  base, extra = divmod(replicates, chunks)
  return [base + (1 if idx < extra else 0) for idx in range(chunks)]


def _resample_chunk(
    data: np.ndarray,
    statistic: Statistic,
    count: int,
    seed: np.random.SeedSequence,
) -> np.ndarray:
  rng = np.random.default_rng(seed)
  n = len(data)
  rows = []
  for _ in range(count):
    indices = rng.integers(0, n, size=n)
    rows.append(np.atleast_1d(np.asarray(statistic(data, indices), dtype=np.float64)))
  return np.vstack(rows)


def bootstrap(
    data: np.ndarray,
    statistic: Statistic,
    replicates: int,
    *,
    parallelism: str = "none",
    worker_count: int = 1,
    cluster: Optional[Executor] = None,
    random_state: Optional[int] = None,
) -> BootstrapReplicates:
  """Draws `replicates` resamples of `data` and applies `statistic` to each.

  The replicate count is cut into `worker_count` chunks, each seeded from an
  independent child of `random_state`, so a fixed seed gives the same matrix
  whether the chunks run serially or on a pool. `statistic` must be
  picklable for the process-based modes.
  """
  if parallelism not in PARALLEL_MODES:
    raise InvalidConfig(f"parallelism must be one of {', '.join(PARALLEL_MODES)}; got {parallelism!r}.")
  if replicates <= 0:
    raise InvalidConfig(f"replicates must be positive, got {replicates}.")
  data = np.asarray(data, dtype=np.float64)
  if data.size == 0:
    raise ValueError("Bootstrap data must be non-empty.")

  t0 = np.atleast_1d(np.asarray(statistic(data, np.arange(len(data))), dtype=np.float64))
  counts = split_replicates(replicates, worker_count)
  seeds = np.random.SeedSequence(random_state).spawn(len(counts))

  if parallelism == "none" or len(counts) == 1:
    chunks = [_resample_chunk(data, statistic, count, seed) for count, seed in zip(counts, seeds)]
  elif cluster is not None:
    chunks = _run_on(cluster, data, statistic, counts, seeds)
  else:
    logger.debug(f"[bootstrap] {parallelism} fan-out | workers={len(counts)} replicates={replicates}")
    with ProcessPoolExecutor(max_workers=len(counts)) as pool:
      chunks = _run_on(pool, data, statistic, counts, seeds)

  return BootstrapReplicates(data=data, statistic=statistic, t0=t0, t=np.vstack(chunks))


def _run_on(
    executor: Executor,
    data: np.ndarray,
    statistic: Statistic,
    counts: List[int],
    seeds: List[np.random.SeedSequence],
) -> List[np.ndarray]:
  futures = [
      executor.submit(_resample_chunk, data, statistic, count, seed)
      for count, seed in zip(counts, seeds)
  ]
  # keep submission order so seeded runs line up with the serial path
  return [future.result() for future in futures]


def empirical_influence(data: np.ndarray, statistic: Statistic) -> np.ndarray:
  """Jackknife estimate of each observation's influence on statistic[0]."""
  data = np.asarray(data, dtype=np.float64)
  n = len(data)
  if n < 2:
    raise ValueError("Empirical influence needs at least two observations.")
  everything = np.arange(n)
  leave_one_out = np.array(
      [np.atleast_1d(statistic(data, np.delete(everything, idx)))[0] for idx in range(n)],
      dtype=np.float64,
  )
  return (n - 1) * (leave_one_out.mean() - leave_one_out)
