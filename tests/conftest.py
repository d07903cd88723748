from __future__ import annotations

from typing import Dict, List

import numpy as np
import pandas as pd
import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def silence_logger():
  logger.remove()
  logger.add(lambda msg: None)
  yield
  logger.remove()


@pytest.fixture
def log_records() -> List[Dict]:
  """Captures loguru records emitted during the test."""
  records: List[Dict] = []
  handler_id = logger.add(lambda msg: records.append(msg.record), level="DEBUG")
  yield records
  logger.remove(handler_id)


@pytest.fixture
def three_days() -> pd.DataFrame:
  return pd.DataFrame({
      "when": pd.to_datetime(["2020-01-01", "2020-01-02", "2020-01-03"]),
      "value": [10.0, 20.0, 30.0],
  })


@pytest.fixture
def irregular_frame() -> pd.DataFrame:
  """Forty irregularly spaced observations over roughly two months, shuffled."""
  rng = np.random.default_rng(1234)
  offsets = np.cumsum(rng.exponential(scale=36.0, size=40))
  stamps = pd.Timestamp("2021-01-01") + pd.to_timedelta(offsets, unit="h")
  frame = pd.DataFrame({
      "when": stamps,
      "value": rng.normal(loc=8.0, scale=2.0, size=40),
      "site": [f"S{idx % 3}" for idx in range(40)],
  })
  return frame.sample(frac=1.0, random_state=7).reset_index(drop=True)
