# gpxstats/analyze/track.py
"""
Track analysis functions for gpxstats

Each segment is folded point by point through two small accumulators:

  DistanceSmoother  - keeps the last *accepted* point; a new point is only
                      accepted once it is at least min_distance away, so
                      GPS jitter while standing still adds no distance.
  ElevationSmoother - tracks the elevation range on every sample, but only
                      counts gain once the change from the last accepted
                      reading reaches min_elevation_gain.

The smoothers hold no I/O and can be driven directly in tests.
"""

from __future__ import annotations

import datetime as dt
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence

from gpxstats.analyze.assemble import Track
from gpxstats.analyze.geo import dist_time_speed
from gpxstats.config import AnalyzeConfig
from gpxstats.errors import TimeWentBackwards
from gpxstats.normalize.point import Point

ZERO = dt.timedelta(0)


@dataclass
class DistanceSmoother:
    min_distance: float
    min_moving_speed: float
    total: float = 0.0
    moving: dt.timedelta = ZERO
    last: Optional[Point] = None

    def feed(self, p: Point) -> bool:
        """Offer a point; return True if it was accepted as the new reference."""
        if self.last is None:
            self.last = p
            return True

        dist, elapsed, speed = dist_time_speed(self.last, p)
        if dist < self.min_distance:
            return False

        self.total += dist
        if speed >= self.min_moving_speed:
            self.moving += elapsed
        self.last = p
        return True


@dataclass
class ElevationSmoother:
    min_gain: float
    start: Optional[float] = None
    end: Optional[float] = None
    min: Optional[float] = None
    max: Optional[float] = None
    gain: float = 0.0
    last: Optional[float] = None

    def feed(self, ele: float, used_for_distance: bool) -> None:
        # Range tracking is never smoothed.
        if self.start is None:
            self.start = ele
        self.min = ele if self.min is None else min(self.min, ele)
        self.max = ele if self.max is None else max(self.max, ele)
        self.end = ele

        if self.last is None:
            self.last = ele
            return
        if not used_for_distance:
            return
        if abs(ele - self.last) >= self.min_gain:
            if ele > self.last:
                self.gain += ele - self.last
            self.last = ele


@dataclass(frozen=True)
class DeltaStats:
    mean: dt.timedelta
    median: dt.timedelta
    mode: dt.timedelta


def delta_stats(deltas: Sequence[dt.timedelta]) -> DeltaStats:
    """
    Mean, median and mode of point-to-point time deltas.

    - An empty input is treated as a single zero delta.
    - median is the lower-middle element on even counts (no interpolation).
    - mode ties go to the smallest delta.
    """
    ordered = sorted(deltas) or [ZERO]
    n = len(ordered)

    counts = Counter(ordered)
    best = max(counts.values())
    mode = min(d for d, c in counts.items() if c == best)

    return DeltaStats(
        mean=sum(ordered, ZERO) / n,
        median=ordered[(n - 1) // 2],
        mode=mode,
    )


@dataclass(frozen=True)
class SegmentStats:
    points: int
    ele_start: Optional[float]
    ele_end: Optional[float]
    ele_min: Optional[float]
    ele_max: Optional[float]
    ele_gain: float
    distance: float
    time_total: dt.timedelta
    time_moving: dt.timedelta
    deltas: DeltaStats = field(repr=False)


def analyze_segment(points: Sequence[Point], cfg: AnalyzeConfig, *, where: str = "") -> Optional[SegmentStats]:
    """
    Compute SegmentStats for an ordered run of points.

    Returns None for an empty segment.
    Raises TimeWentBackwards if a point is earlier than the one before it.
    """
    if not points:
        return None

    dist = DistanceSmoother(cfg.min_distance, cfg.min_moving_speed)
    ele = ElevationSmoother(cfg.min_elevation_gain)
    deltas: list[dt.timedelta] = []
    prev: Optional[Point] = None

    for p in points:
        if prev is not None:
            if p.time < prev.time:
                raise TimeWentBackwards(prev.time, p.time, where)
            deltas.append(p.time - prev.time)

        used = dist.feed(p)
        if p.ele is not None:
            ele.feed(p.ele, used)
        prev = p

    return SegmentStats(
        points=len(points),
        ele_start=ele.start,
        ele_end=ele.end,
        ele_min=ele.min,
        ele_max=ele.max,
        ele_gain=ele.gain,
        distance=dist.total,
        time_total=points[-1].time - points[0].time,
        time_moving=dist.moving,
        deltas=delta_stats(deltas),
    )


@dataclass(frozen=True)
class TrackReport:
    name: str
    segments: list[Optional[SegmentStats]]


def analyze_tracks(tracks: Sequence[Track], cfg: AnalyzeConfig) -> list[TrackReport]:
    """Analyze every segment of every track; None marks an empty segment."""
    reports: list[TrackReport] = []
    for tnum, track in enumerate(tracks, start=1):
        stats = [
            analyze_segment(seg.points, cfg, where=f"track {tnum} ({track.name}) segment {snum}")
            for snum, seg in enumerate(track.segments, start=1)
        ]
        reports.append(TrackReport(name=track.name, segments=stats))
    return reports
