from __future__ import annotations

import pytest
from loguru import logger

import timewindow.log as log_module
from timewindow import InvalidConfig, configure_logging
from timewindow.config import NCPUS_ENV_VAR, default_worker_count
from timewindow.log import timing


def test_worker_count_falls_back_to_one():
  assert default_worker_count({}) == 1
  assert default_worker_count({NCPUS_ENV_VAR: "  "}) == 1


def test_worker_count_from_environment():
  assert default_worker_count({NCPUS_ENV_VAR: "4"}) == 4


@pytest.mark.parametrize("raw", ["four", "0", "-2"])
def test_worker_count_rejects_bad_values(raw):
  with pytest.raises(InvalidConfig):
    default_worker_count({NCPUS_ENV_VAR: raw})


def test_configure_logging_filters_by_level(monkeypatch):
  monkeypatch.setattr(log_module, "_configured", False)
  lines = []
  assert configure_logging("WARNING", sink=lines.append)
  logger.info("quiet")
  logger.warning("loud")
  assert len(lines) == 1
  assert "loud" in lines[0]


def test_configure_logging_runs_once_unless_forced(monkeypatch):
  monkeypatch.setattr(log_module, "_configured", False)
  first, second = [], []
  assert configure_logging(sink=first.append)
  assert not configure_logging(sink=second.append)
  assert configure_logging(sink=second.append, force=True)
  logger.info("hello")
  assert not first
  assert second


def test_configure_logging_writes_file(tmp_path, monkeypatch):
  monkeypatch.setattr(log_module, "_configured", False)
  target = tmp_path / "logs" / "timewindow.log"
  configure_logging("INFO", sink=lambda msg: None, log_file=target)
  logger.info("to disk")
  logger.complete()
  logger.remove()
  assert "to disk" in target.read_text()


def test_timing_logs_elapsed(log_records):
  with timing("unit-test"):
    pass
  assert any(rec["message"].startswith("[unit-test] took") for rec in log_records)
