# gpxstats/normalize/point.py
"""
Point normalization: RawPoint (strings) -> Point (typed, UTC).

Timestamps are parsed strictly as RFC 3339 date-times with an offset.
Some devices write local-looking times with no offset at all; for those
we retry once as UTC and warn (once per run) that we did so.
"""

from __future__ import annotations

import datetime as _dt
import math
import re
import threading
from dataclasses import dataclass
from typing import Optional

from gpxstats.errors import InvalidCoordinate, InvalidElevation, InvalidTimestamp
from gpxstats.formats.gpx import RawPoint
from gpxstats.util.logging import warn

FEET_TO_METERS = 0.3048

_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt ](\d{2}):(\d{2}):(\d{2})(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)


@dataclass(frozen=True)
class Point:
    lat: float
    lon: float
    time: _dt.datetime
    ele: Optional[float] = None


def parse_time_utc(text: str) -> _dt.datetime:
    """
    Parse an RFC 3339 timestamp and return it as a tz-aware UTC datetime.

    Expected examples:
      - "2026-01-02T21:14:44Z"
      - "2026-01-02T21:14:44.123Z"
      - "2026-01-02T21:14:44-07:00"

    Raises ValueError when the text is not of that shape (an offset is required)
    or names an impossible date/time.
    """
    m = _RFC3339.match(text)
    if not m:
        raise ValueError(f"not an RFC 3339 date-time with offset: {text!r}")

    year, month, day, hour, minute, second = (int(g) for g in m.group(1, 2, 3, 4, 5, 6))
    frac = m.group(7) or ""
    micro = int(frac[:6].ljust(6, "0")) if frac else 0

    if m.group(8):
        tz = _dt.timezone.utc
    else:
        off_h, off_m = int(m.group(10)), int(m.group(11))
        if off_h > 23 or off_m > 59:
            raise ValueError(f"bad UTC offset in {text!r}")
        offset = _dt.timedelta(hours=off_h, minutes=off_m)
        tz = _dt.timezone(-offset if m.group(9) == "-" else offset)

    dt = _dt.datetime(year, month, day, hour, minute, second, micro, tzinfo=tz)
    return dt.astimezone(_dt.timezone.utc)


def parse_coordinate(text: str, *, axis: str, limit: float) -> float:
    """Parse decimal degrees, rejecting non-finite and out-of-range values."""
    try:
        v = float(text)
    except ValueError as e:
        raise InvalidCoordinate(f"invalid {axis}: {text!r}") from e
    if not math.isfinite(v) or abs(v) > limit:
        raise InvalidCoordinate(f"invalid {axis}: {text!r} (must be within ±{limit:g})")
    return v


def parse_elevation(text: Optional[str]) -> Optional[float]:
    """
    Parse an elevation in meters.

    A trailing "ft" means feet ("1200ft", "1200 ft") and is converted.
    None stays None: no elevation fix is not the same as sea level.
    """
    if text is None:
        return None
    s = text.strip()
    scale = 1.0
    if s.endswith("ft"):
        s = s[:-2].strip()
        scale = FEET_TO_METERS
    try:
        v = float(s)
    except ValueError as e:
        raise InvalidElevation(f"invalid elevation: {text!r}") from e
    if not math.isfinite(v):
        raise InvalidElevation(f"invalid elevation: {text!r}")
    return v * scale


class PointNormalizer:
    """
    Converts RawPoints into Points for one run.

    Owns the run-scoped "missing timezone already reported" flag, so the
    warning fires at most once per normalizer no matter how many points
    (or files, or threads) hit the UTC fallback.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.warned_missing_tz = False

    def _note_missing_tz(self, raw: str) -> None:
        with self._lock:
            if self.warned_missing_tz:
                return
            self.warned_missing_tz = True
        warn(f"timestamp {raw!r} has no timezone information; assuming UTC")

    def parse_time(self, raw: str) -> _dt.datetime:
        try:
            return parse_time_utc(raw)
        except ValueError as first:
            try:
                dt = parse_time_utc(raw + "Z")
            except ValueError:
                raise InvalidTimestamp(raw) from first
        self._note_missing_tz(raw)
        return dt

    def normalize(self, raw: RawPoint) -> Point:
        return Point(
            lat=parse_coordinate(raw.latitude, axis="latitude", limit=90.0),
            lon=parse_coordinate(raw.longitude, axis="longitude", limit=180.0),
            ele=parse_elevation(raw.elevation),
            time=self.parse_time(raw.time),
        )
