"""Exceptions raised by the rolling-window routines."""

from __future__ import annotations


class TimeWindowError(Exception):
  """Base class for every error raised by this package."""


class InvalidUnit(TimeWindowError, ValueError):
  """Raised when a window unit is not one of the supported calendar units."""


class InvalidSpan(TimeWindowError, ValueError):
  """Raised when the lookback span is not a positive finite number."""


class InvalidIntervalType(TimeWindowError, ValueError):
  """Raised for an unrecognised bootstrap interval type."""


class InvalidConfig(TimeWindowError, ValueError):
  """Raised for estimation options outside their allowed range."""


class MissingColumn(TimeWindowError, KeyError):
  """Raised when the value or time column is absent from the input frame."""


class ColumnConflict(TimeWindowError, ValueError):
  """Raised when the input frame already carries one of the output columns."""


class DegenerateBootstrap(TimeWindowError):
  """Raised when bootstrap replicates cannot support the requested interval.

  The estimator turns this into NA interval bounds for the affected row
  instead of letting it abort a rolling call.
  """
