# gpxstats/analyze/report.py
"""
Human and TSV rendering of analysis results.
"""

from __future__ import annotations

import datetime as dt
from typing import Optional, TextIO

from gpxstats.analyze.track import SegmentStats, TrackReport
from gpxstats.config import AnalyzeConfig

M_TO_FT = 3.2808399
M_TO_MI = 0.00062137119
M_TO_KM = 0.001


def fmt_elevation(m: Optional[float], *, metric: bool) -> str:
    if m is None:
        return "n/a"
    if metric:
        return f"{m:.1f} m"
    return f"{m * M_TO_FT:.1f} ft"


def fmt_distance(m: float, *, metric: bool) -> str:
    if metric:
        return f"{m * M_TO_KM:.1f} km"
    return f"{m * M_TO_MI:.1f} mi"


def fmt_duration(d: dt.timedelta) -> str:
    """H:MM, truncating seconds."""
    total_min = int(d.total_seconds()) // 60
    hours, mins = divmod(total_min, 60)
    return f"{hours}:{mins:02d}"


def fmt_seconds(d: dt.timedelta) -> str:
    s = f"{d.total_seconds():.3f}".rstrip("0").rstrip(".")
    return f"{s} s"


def print_parameters(cfg: AnalyzeConfig, out: TextIO) -> None:
    print("parameters:", file=out)
    print(f"  min elevation gain: {cfg.min_elevation_gain:.1f} m", file=out)
    print(f"  min distance: {cfg.min_distance:.1f} m", file=out)
    print(f"  standstill time: {cfg.standstill_time:g} s", file=out)
    print(f"  min moving speed = {cfg.min_moving_speed:g} m/s", file=out)


def print_segment(stats: SegmentStats, out: TextIO, *, metric: bool) -> None:
    def e(v: Optional[float]) -> str:
        return fmt_elevation(v, metric=metric)

    print(f"    starting elevation: {e(stats.ele_start)}", file=out)
    print(f"    ending elevation: {e(stats.ele_end)}", file=out)
    print(f"    min elevation: {e(stats.ele_min)}", file=out)
    print(f"    max elevation: {e(stats.ele_max)}", file=out)
    print(f"    elevation gain: {e(stats.ele_gain)}", file=out)
    print(f"    total distance: {fmt_distance(stats.distance, metric=metric)}", file=out)
    print(f"    total time: {fmt_duration(stats.time_total)}", file=out)
    print(f"    moving time: {fmt_duration(stats.time_moving)}", file=out)
    print(f"    time delta mean: {fmt_seconds(stats.deltas.mean)}", file=out)
    print(f"    time delta median: {fmt_seconds(stats.deltas.median)}", file=out)
    print(f"    time delta mode: {fmt_seconds(stats.deltas.mode)}", file=out)


def print_report(reports: list[TrackReport], cfg: AnalyzeConfig, out: TextIO) -> None:
    print_parameters(cfg, out)
    for tnum, track in enumerate(reports, start=1):
        print(f"track {tnum}: {track.name}", file=out)
        for snum, stats in enumerate(track.segments, start=1):
            print(f"  segment {snum}:", file=out)
            if stats is None:
                print("    no points", file=out)
                continue
            print_segment(stats, out, metric=cfg.metric)


TSV_COLUMNS = (
    "track", "segment", "points",
    "ele_start_m", "ele_end_m", "ele_min_m", "ele_max_m", "ele_gain_m",
    "distance_m", "time_total_s", "time_moving_s",
    "delta_mean_s", "delta_median_s", "delta_mode_s",
)


def _cell(v: Optional[float], fmt: str = ".2f") -> str:
    return "" if v is None else format(v, fmt)


def print_tsv(reports: list[TrackReport], out: TextIO) -> None:
    """One row per segment, SI units; empty cells for undefined values."""
    print("\t".join(TSV_COLUMNS), file=out)
    for track in reports:
        for snum, s in enumerate(track.segments, start=1):
            if s is None:
                row = [track.name, str(snum), "0"] + [""] * (len(TSV_COLUMNS) - 3)
            else:
                row = [
                    track.name, str(snum), str(s.points),
                    _cell(s.ele_start), _cell(s.ele_end), _cell(s.ele_min), _cell(s.ele_max),
                    _cell(s.ele_gain),
                    _cell(s.distance),
                    _cell(s.time_total.total_seconds(), ".1f"),
                    _cell(s.time_moving.total_seconds(), ".1f"),
                    _cell(s.deltas.mean.total_seconds(), ".3f"),
                    _cell(s.deltas.median.total_seconds(), ".3f"),
                    _cell(s.deltas.mode.total_seconds(), ".3f"),
                ]
            print("\t".join(row), file=out)
