# gpxstats/formats/gpx.py
"""
GPX reading for gpxstats

This module is intentionally format-focused:
- GPX namespace handling (1.1, 1.0, or none)
- safely reading an ElementTree
- binding <trk>/<trkseg>/<trkpt> into plain string-valued records

Key design principle:
  Nothing here interprets values. Coordinates, elevations and times stay
  strings; gpxstats.normalize.point turns them into typed points.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
from xml.etree import ElementTree as ET

from gpxstats.errors import FileReadError, ParseError


def _namespace_of(elem: ET.Element) -> str:
    """
    Return the namespace URI of an element ("" if unqualified).

    ElementTree represents namespaced tags internally as
      "{namespace-uri}tag"
    """
    if elem.tag.startswith("{"):
        return elem.tag[1:].split("}", 1)[0]
    return ""


def _local_name(elem: ET.Element) -> str:
    return elem.tag.rsplit("}", 1)[-1]


class _Names:
    """Qualified-name builder bound to one document's namespace."""

    def __init__(self, ns: str) -> None:
        self.ns = ns

    def __call__(self, tag: str) -> str:
        return f"{{{self.ns}}}{tag}" if self.ns else tag


def _text(parent: ET.Element, tag: str) -> Optional[str]:
    """Stripped text of a direct child, or None if missing/empty."""
    child = parent.find(tag)
    if child is None or child.text is None:
        return None
    s = child.text.strip()
    return s or None


@dataclass(frozen=True)
class RawPoint:
    latitude: str
    longitude: str
    time: str
    elevation: Optional[str] = None


@dataclass
class RawSegment:
    points: list[RawPoint] = field(default_factory=list)


@dataclass
class RawTrack:
    name: Optional[str] = None
    segments: list[RawSegment] = field(default_factory=list)


@dataclass
class RawGpx:
    """One parsed GPX document (tracks only)."""
    name: Optional[str] = None
    creator: str = ""
    tracks: list[RawTrack] = field(default_factory=list)


def _bind_point(trkpt: ET.Element, qn: _Names, index: int) -> RawPoint:
    lat = trkpt.get("lat")
    lon = trkpt.get("lon")
    if lat is None or lon is None:
        raise ParseError(f"trkpt #{index} is missing its lat/lon attributes")

    # GPX 1.1 marks <time> optional, but a point without one is useless here.
    t = _text(trkpt, qn("time"))
    if t is None:
        raise ParseError(f"trkpt #{index} ({lat}, {lon}) has no <time>")

    return RawPoint(
        latitude=lat.strip(),
        longitude=lon.strip(),
        time=t,
        elevation=_text(trkpt, qn("ele")),
    )


def parse_gpx(root: ET.Element) -> RawGpx:
    """
    Bind an already-parsed GPX root element into RawGpx.

    Raises:
      ParseError if the document is not GPX or a point is structurally incomplete.
    """
    if _local_name(root) != "gpx":
        raise ParseError(f"root element is <{_local_name(root)}>, expected <gpx>")

    qn = _Names(_namespace_of(root))

    name = None
    md = root.find(qn("metadata"))
    if md is not None:
        name = _text(md, qn("name"))
    elif root.find(qn("name")) is not None:
        # GPX 1.0 keeps the document name directly under <gpx>
        name = _text(root, qn("name"))

    doc = RawGpx(name=name, creator=(root.get("creator") or "").strip())

    index = 0
    for trk in root.findall(qn("trk")):
        track = RawTrack(name=_text(trk, qn("name")))
        for trkseg in trk.findall(qn("trkseg")):
            seg = RawSegment()
            for trkpt in trkseg.findall(qn("trkpt")):
                index += 1
                seg.points.append(_bind_point(trkpt, qn, index))
            track.segments.append(seg)
        doc.tracks.append(track)

    return doc


def read_gpx(path: Path) -> RawGpx:
    """
    Read a GPX file and bind its tracks.

    Raises:
      FileReadError if the file cannot be read
      ParseError if the markup is malformed or not GPX
    """
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise FileReadError(f"failed to read GPX file: {path} ({e.strerror or e})") from e

    try:
        root = ET.fromstring(data)
    except ET.ParseError as e:
        raise ParseError(f"failed to parse GPX: {path} ({e})") from e

    return parse_gpx(root)
