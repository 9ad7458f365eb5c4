# gpxstats/analyze/assemble.py
"""
Consolidate parsed GPX files into the run's working set of tracks.

Join policy:
  - join_tracks: every track of every file lands in one Track (named after
    the first file), with a single Segment.
  - join_segments: each track keeps its identity, but its segments merge.
  - neither: tracks and segments map one-to-one.

Elevation filters are applied here, before any analysis.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional

from gpxstats.config import AnalyzeConfig
from gpxstats.errors import GpxStatsError
from gpxstats.formats.gpx import RawGpx, read_gpx
from gpxstats.normalize.point import Point, PointNormalizer
from gpxstats.util.logging import log

UNNAMED = "unnamed"


@dataclass
class Segment:
    points: list[Point] = field(default_factory=list)


@dataclass
class Track:
    name: str
    segments: list[Segment] = field(default_factory=list)


def keep_point(p: Point, cfg: AnalyzeConfig) -> bool:
    """Apply the elevation filters. Points without elevation always pass."""
    if p.ele is None:
        return True
    if cfg.filter_zero_ele and p.ele == 0:
        return False
    if cfg.filter_ele_below is not None and p.ele < cfg.filter_ele_below:
        return False
    return True


def iter_gpx(paths: Iterable[Path], *, verbose: bool = False) -> Iterator[tuple[Path, RawGpx]]:
    """Read files lazily, in order, tagging any failure with its path."""
    for path in paths:
        if verbose:
            log(f"Reading {path}")
        try:
            doc = read_gpx(path)
        except GpxStatsError as e:
            e.path = path
            raise
        yield path, doc


def assemble_tracks(
    files: Iterable[tuple[Path, RawGpx]],
    cfg: AnalyzeConfig,
    normalizer: Optional[PointNormalizer] = None,
    *,
    verbose: bool = False,
) -> list[Track]:
    """
    Build the working set from (path, parsed document) pairs.

    Returns the tracks in input order. No statistics are computed here.
    """
    if normalizer is None:
        normalizer = PointNormalizer()

    tracks: list[Track] = []
    joined: Optional[Track] = None
    first_name: Optional[str] = None

    for path, doc in files:
        file_name = doc.name or UNNAMED
        if first_name is None:
            first_name = file_name
        kept = dropped = 0

        try:
            for raw_track in doc.tracks:
                if cfg.join_tracks:
                    if joined is None:
                        joined = Track(name=first_name)
                        tracks.append(joined)
                    track = joined
                else:
                    track = Track(name=raw_track.name or file_name)
                    tracks.append(track)

                for raw_seg in raw_track.segments:
                    if cfg.effective_join_segments and track.segments:
                        seg = track.segments[0]
                    else:
                        seg = Segment()
                        track.segments.append(seg)

                    for raw_pt in raw_seg.points:
                        p = normalizer.normalize(raw_pt)
                        if keep_point(p, cfg):
                            seg.points.append(p)
                            kept += 1
                        else:
                            dropped += 1
        except GpxStatsError as e:
            e.path = path
            raise

        if verbose:
            log(f"{path}: {len(doc.tracks)} track(s), {kept} point(s) kept, {dropped} filtered")

    return tracks
