# gpxstats/analyze/geo.py
"""
Distance and speed between track points.

Great-circle distance on a sphere of fixed mean radius. The Earth is not a
sphere, and elevation is ignored, but at track-point spacing both errors are
far smaller than GPS noise.
"""

from __future__ import annotations

import datetime as dt
import math

from haversine import Unit, haversine

from gpxstats.normalize.point import Point

EARTH_RADIUS_M = 6_371_000.0


def distance(a: Point, b: Point) -> float:
    """Great-circle distance in meters."""
    # haversine's own METERS unit uses a different radius; scale the angle ourselves.
    angle = haversine((a.lat, a.lon), (b.lat, b.lon), unit=Unit.RADIANS)
    return EARTH_RADIUS_M * angle


def dist_time_speed(a: Point, b: Point) -> tuple[float, dt.timedelta, float]:
    """
    Return (distance m, elapsed time, speed m/s) between two points.

    Elapsed time is absolute, so argument order does not matter.
    With zero elapsed time the speed is inf if the points differ, else 0.0.
    """
    d = distance(a, b)
    elapsed = abs(b.time - a.time)
    secs = elapsed.total_seconds()
    if secs == 0:
        return d, elapsed, (math.inf if d > 0 else 0.0)
    return d, elapsed, d / secs
