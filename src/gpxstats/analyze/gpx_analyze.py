#!/usr/bin/env python3
"""
gpxstats: summarize GPX track logs.

Reads one or more GPX files, consolidates their tracks per the join flags,
and prints per-segment elevation, distance and timing statistics.

Every file is read and every segment analyzed before anything is printed,
so an error anywhere means no report at all (exit status 1).
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from gpxstats.analyze.assemble import assemble_tracks, iter_gpx
from gpxstats.analyze.report import print_report, print_tsv
from gpxstats.analyze.track import analyze_tracks
from gpxstats.config import AnalyzeConfig, load_config
from gpxstats.errors import GpxStatsError, PointError
from gpxstats.normalize.point import PointNormalizer
from gpxstats.util.logging import log


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="gpxstats", description="gpxstats: Summarize GPX track logs.")
    ap.add_argument("gpx", nargs="+", type=Path,
                    help="One or more GPX files, processed in order.")
    ap.add_argument("-e", "--min-elevation-gain", type=float, default=None, metavar="METERS",
                    help="Minimum change in elevation for a point to contribute to elevation gain (default: 10).")
    ap.add_argument("-d", "--min-distance", type=float, default=None, metavar="METERS",
                    help="Minimum change in distance for a point to contribute to total distance (default: 1).")
    ap.add_argument("-t", "--standstill-time", type=float, default=None, metavar="SECONDS",
                    help="Time without moving --min-distance after which points stop counting as moving (default: 10).")
    ap.add_argument("--join-segments", action="store_true", default=None,
                    help="Merge all segments of a track into one.")
    ap.add_argument("--join-tracks", action="store_true", default=None,
                    help="Merge all tracks of all files into one (implies --join-segments).")
    ap.add_argument("--filter-zero-ele", action="store_true", default=None,
                    help="Drop points whose elevation is exactly 0.")
    ap.add_argument("--filter-ele-below", type=float, default=None, metavar="METERS",
                    help="Drop points whose elevation is below this value.")
    ap.add_argument("--metric", action="store_true", default=None,
                    help="Print meters/kilometers instead of feet/miles.")
    ap.add_argument("--tsv", action="store_true",
                    help="Print tab-separated output (good for piping).")
    ap.add_argument("--config", type=Path, default=None,
                    help="User config file (default: ~/.config/gpxstats/config.toml).")
    ap.add_argument("--verbose", action="store_true",
                    help="More logging.")
    return ap


def resolve_config(args: argparse.Namespace) -> AnalyzeConfig:
    """Config files/env first, then CLI flags on top."""
    cfg = load_config(user_config_path=args.config)
    return cfg.override(
        "cli",
        min_elevation_gain=args.min_elevation_gain,
        min_distance=args.min_distance,
        standstill_time=args.standstill_time,
        join_segments=args.join_segments,
        join_tracks=args.join_tracks,
        filter_zero_ele=args.filter_zero_ele,
        filter_ele_below=args.filter_ele_below,
        metric=args.metric,
    )


def validate_config(cfg: AnalyzeConfig) -> Optional[str]:
    """Return a usage error message, or None if the settings are usable."""
    if cfg.min_elevation_gain < 0:
        return "min elevation gain must not be negative"
    if cfg.min_distance < 0:
        return "min distance must not be negative"
    if cfg.standstill_time <= 0:
        return "standstill time must be positive"
    return None


def format_error(e: GpxStatsError) -> str:
    msg = str(e)
    if isinstance(e, PointError) and e.__cause__ is not None:
        msg = f"{msg} ({e.__cause__})"
    if e.path is not None:
        msg = f"{e.path}: {msg}"
    return f"error: {msg}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)  # parse out the arguments into `args`

    try:
        cfg = resolve_config(args)
    except GpxStatsError as e:
        print(format_error(e), file=sys.stderr)
        return 1

    problem = validate_config(cfg)
    if problem:
        ap.error(problem)

    if args.verbose:
        for key, origin in sorted(cfg.source.items()):
            log(f"{key} <- {origin}")

    try:
        tracks = assemble_tracks(
            iter_gpx(args.gpx, verbose=args.verbose),
            cfg,
            PointNormalizer(),
            verbose=args.verbose,
        )
        reports = analyze_tracks(tracks, cfg)
    except GpxStatsError as e:
        print(format_error(e), file=sys.stderr)
        return 1

    if args.tsv:
        print_tsv(reports, sys.stdout)
    else:
        for path in args.gpx:
            print(f"input: {path}")
        print_report(reports, cfg, sys.stdout)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
