# gpxstats/errors

"""
gpxstats.errors

Central exception hierarchy for gpxstats.

Rationale:
  - Modules raise specific, meaningful errors.
  - Callers can catch GpxStatsError (broad) or specific subclasses (narrow).
  - Every error is fatal for the run; only the CLI catches them.
"""

from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Optional


class GpxStatsError(RuntimeError):
    """Base class for all gpxstats runtime errors."""

    # Input file the error was raised for, filled in by the assembler.
    path: Optional[Path] = None


class ConfigError(GpxStatsError):
    """A config file exists but could not be parsed."""


# ---- Input errors ------------------------------

class FileReadError(GpxStatsError):
    """An input file could not be read."""

class ParseError(GpxStatsError):
    """GPX markup could not be parsed or did not contain expected structures."""


# ---- Point errors ------------------------------

class PointError(GpxStatsError):
    """A single track point could not be normalized."""

class InvalidCoordinate(PointError):
    """Latitude or longitude is not a usable decimal degree value."""

class InvalidElevation(PointError):
    """Elevation is present but not a usable number."""


class InvalidTimestamp(PointError):
    """
    Timestamp could not be parsed, even after retrying it as UTC.

    The first (unretried) failure is chained as __cause__.
    """

    def __init__(self, raw: str) -> None:
        super().__init__(f"invalid date/time: {raw!r}")
        self.raw = raw


# ---- Analysis errors ---------------------------

class TimeWentBackwards(GpxStatsError):
    """A point is timestamped earlier than the point before it."""

    def __init__(self, previous: dt.datetime, current: dt.datetime, where: str = "") -> None:
        msg = f"time went backwards: {current.isoformat()} follows {previous.isoformat()}"
        if where:
            msg = f"{where}: {msg}"
        super().__init__(msg)
        self.previous = previous
        self.current = current
