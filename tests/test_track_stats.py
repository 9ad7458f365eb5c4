import datetime as dt

import pytest

from gpxstats.analyze.assemble import Segment, Track
from gpxstats.analyze.track import (
    DistanceSmoother,
    ElevationSmoother,
    analyze_segment,
    analyze_tracks,
    delta_stats,
)
from gpxstats.config import AnalyzeConfig
from gpxstats.errors import TimeWentBackwards

S = dt.timedelta(seconds=1)
STEP_M = 11.119492664455873  # 0.0001 degrees of longitude at the equator


def walk(pt, n, *, step_secs=10, eles=None):
    """n points heading east 0.0001 deg (~11.1 m) per step."""
    eles = eles or [None] * n
    return [pt(0, i * 0.0001, secs=i * step_secs, ele=eles[i]) for i in range(n)]


# ---- delta statistics --------------------------

def test_delta_stats_example():
    stats = delta_stats([5 * S, 1 * S, 2 * S, 1 * S])
    assert stats.mean == 2.25 * S
    assert stats.median == 1 * S
    assert stats.mode == 1 * S


def test_delta_stats_odd_count_median():
    assert delta_stats([3 * S, 1 * S, 2 * S]).median == 2 * S


def test_delta_stats_mode_tie_goes_to_smallest():
    assert delta_stats([4 * S, 4 * S, 2 * S, 2 * S, 9 * S]).mode == 2 * S


def test_delta_stats_empty_is_single_zero():
    stats = delta_stats([])
    assert stats.mean == stats.median == stats.mode == dt.timedelta(0)


# ---- smoothers ---------------------------------

def test_distance_smoother_rejects_jitter(pt):
    d = DistanceSmoother(min_distance=5.0, min_moving_speed=0.5)
    assert d.feed(pt(0, 0, secs=0))
    assert not d.feed(pt(0, 0.00001, secs=1))   # ~1.1 m from the reference
    assert not d.feed(pt(0, 0.00002, secs=2))   # ~2.2 m, still measured from the first point
    assert d.feed(pt(0, 0.0001, secs=3))        # ~11.1 m
    assert d.total == pytest.approx(STEP_M)
    assert d.moving == 3 * S
    assert d.last.time.second == 3


def test_distance_smoother_slow_pairs_are_not_moving(pt):
    d = DistanceSmoother(min_distance=1.0, min_moving_speed=1.0)
    d.feed(pt(0, 0, secs=0))
    assert d.feed(pt(0, 0.0001, secs=60))       # 11.1 m in a minute
    assert d.total == pytest.approx(STEP_M)
    assert d.moving == dt.timedelta(0)


def test_elevation_smoother_range_is_not_gated():
    e = ElevationSmoother(min_gain=10.0)
    for ele, used in [(100, True), (103, False), (95, False), (101, True)]:
        e.feed(ele, used)
    assert (e.start, e.end, e.min, e.max, e.gain) == (100, 101, 95, 103, 0.0)


def test_elevation_gain_needs_distance_acceptance():
    e = ElevationSmoother(min_gain=10.0)
    e.feed(100, True)
    e.feed(130, False)
    assert e.gain == 0.0
    assert e.last == 100
    e.feed(130, True)
    assert e.gain == 30.0
    assert e.last == 130


def test_elevation_descent_moves_reference_without_gain():
    e = ElevationSmoother(min_gain=10.0)
    for ele in (200, 150, 165):
        e.feed(ele, True)
    assert e.gain == 15.0
    assert e.last == 165


# ---- segment analysis --------------------------

def test_empty_segment_has_no_stats():
    assert analyze_segment([], AnalyzeConfig()) is None


def test_single_point_segment(pt):
    stats = analyze_segment([pt(ele=42.0)], AnalyzeConfig())
    assert stats.points == 1
    assert stats.ele_start == stats.ele_end == stats.ele_min == stats.ele_max == 42.0
    assert stats.ele_gain == 0.0
    assert stats.distance == 0.0
    assert stats.time_total == stats.time_moving == dt.timedelta(0)
    assert stats.deltas.mean == stats.deltas.median == stats.deltas.mode == dt.timedelta(0)


def test_constant_speed_is_all_moving(pt):
    points = walk(pt, 6)
    stats = analyze_segment(points, AnalyzeConfig())
    assert stats.time_total == 50 * S
    assert stats.time_moving == stats.time_total
    assert stats.distance == pytest.approx(5 * STEP_M)
    assert stats.deltas.mean == stats.deltas.median == stats.deltas.mode == 10 * S


def test_constant_elevation(pt):
    stats = analyze_segment(walk(pt, 4, eles=[7.5] * 4), AnalyzeConfig(min_elevation_gain=0.0))
    assert stats.ele_start == stats.ele_end == stats.ele_min == stats.ele_max == 7.5
    assert stats.ele_gain == 0.0


def test_descending_only_has_no_gain(pt):
    stats = analyze_segment(walk(pt, 4, eles=[900.0, 600.0, 300.0, 0.0]), AnalyzeConfig())
    assert stats.ele_gain == 0.0
    assert (stats.ele_start, stats.ele_end, stats.ele_min, stats.ele_max) == (900.0, 0.0, 0.0, 900.0)


def test_sample_profile(pt):
    stats = analyze_segment(walk(pt, 5, eles=[100.0, 105.0, 112.0, 108.0, 125.0]), AnalyzeConfig())
    assert stats.ele_gain == pytest.approx(25.0)
    assert (stats.ele_min, stats.ele_max) == (100.0, 125.0)


def test_points_without_elevation_leave_elevation_undefined(pt):
    stats = analyze_segment(walk(pt, 3), AnalyzeConfig())
    assert stats.ele_start is None
    assert stats.ele_min is None
    assert stats.ele_gain == 0.0


def test_stopped_points_still_count_for_time_and_range(pt):
    points = [
        pt(0, 0.0000, secs=0, ele=10.0),
        pt(0, 0.0000, secs=30, ele=40.0),   # standing still: no distance, no gain
        pt(0, 0.0001, secs=31, ele=40.0),
    ]
    stats = analyze_segment(points, AnalyzeConfig())
    assert stats.distance == pytest.approx(STEP_M)
    assert stats.time_total == 31 * S
    assert stats.time_moving == 31 * S    # 0.36 m/s is above the 0.1 m/s default
    assert stats.ele_max == 40.0
    assert stats.ele_gain == 30.0


def test_time_went_backwards(pt):
    points = [pt(secs=0), pt(0, 0.0001, secs=10), pt(0, 0.0002, secs=9)]
    with pytest.raises(TimeWentBackwards) as exc:
        analyze_segment(points, AnalyzeConfig(), where="track 1 (x) segment 1")
    assert exc.value.previous == points[1].time
    assert exc.value.current == points[2].time
    assert "track 1 (x) segment 1" in str(exc.value)


def test_repeated_timestamps_are_allowed(pt):
    points = [pt(0, 0, secs=0), pt(0, 0.0001, secs=0), pt(0, 0.0002, secs=10)]
    stats = analyze_segment(points, AnalyzeConfig())
    assert stats.distance == pytest.approx(2 * STEP_M)
    assert stats.time_moving == 10 * S
    assert stats.deltas.median == dt.timedelta(0)


def test_analyze_tracks_marks_empty_segments(pt):
    tracks = [
        Track(name="a", segments=[Segment(points=walk(pt, 3)), Segment()]),
        Track(name="b", segments=[Segment(points=[pt()])]),
    ]
    reports = analyze_tracks(tracks, AnalyzeConfig())
    assert [r.name for r in reports] == ["a", "b"]
    assert reports[0].segments[0].points == 3
    assert reports[0].segments[1] is None
    assert reports[1].segments[0].points == 1


def test_analyze_tracks_names_the_failing_segment(pt):
    tracks = [Track(name="hike", segments=[Segment(points=[pt(secs=5), pt(secs=1)])])]
    with pytest.raises(TimeWentBackwards, match=r"track 1 \(hike\) segment 1"):
        analyze_tracks(tracks, AnalyzeConfig())
