"""Loguru setup and timing helpers."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter
from typing import Iterator, Optional, Union

from loguru import logger

_LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}"
_configured = False


def configure_logging(
    level: str = "INFO",
    *,
    sink=sys.stderr,
    log_file: Optional[Union[str, Path]] = None,
    rotation: str = "1 day",
    retention: str = "30 days",
    force: bool = False,
) -> bool:
  """Replaces loguru's handlers with a console sink and an optional file sink.

  Runs once per process unless `force` is set. Returns True when handlers
  were (re)installed.
  """
  global _configured
  if _configured and not force:
    return False

  logger.remove()
  logger.add(sink, level=level, format=_LOG_FORMAT)
  if log_file is not None:
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        str(path),
        level=level,
        format=_LOG_FORMAT,
        rotation=rotation,
        retention=retention,
        enqueue=True,  # worker processes share the file
    )
  _configured = True
  logger.debug(f"Logging configured at level {level}.")
  return True


@contextmanager
def timing(label: str) -> Iterator[None]:
  """Logs the wall time spent inside the block at debug level."""
  start = perf_counter()
  try:
    yield
  finally:
    logger.debug(f"[{label}] took {perf_counter() - start:.4f}s")
