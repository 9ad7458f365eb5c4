import datetime as dt
from pathlib import Path

import pytest

from gpxstats.config import ENV_MAP
from gpxstats.normalize.point import Point

T0 = dt.datetime(2021, 1, 1, 10, 0, 0, tzinfo=dt.timezone.utc)


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    # Keep a developer's ~/.config/gpxstats and GPXSTATS_* out of the tests.
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for env in ENV_MAP:
        monkeypatch.delenv(env, raising=False)


@pytest.fixture
def sample_gpx_path() -> Path:
    return Path(__file__).parent / "data" / "sample.gpx"


@pytest.fixture
def pt():
    """Build a Point at `secs` seconds after 2021-01-01T10:00:00Z."""
    def _pt(lat=0.0, lon=0.0, secs=0, ele=None):
        return Point(lat=lat, lon=lon, time=T0 + dt.timedelta(seconds=secs), ele=ele)
    return _pt


@pytest.fixture
def write_gpx(tmp_path):
    """Write a GPX 1.1 document around `body` and return its path."""
    def _write(body: str, name: str = "track.gpx", metadata_name=None) -> Path:
        md = f"<metadata><name>{metadata_name}</name></metadata>" if metadata_name else ""
        path = tmp_path / name
        path.write_text(
            '<?xml version="1.0" encoding="UTF-8"?>\n'
            '<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">'
            f"{md}{body}</gpx>\n",
            encoding="utf-8",
        )
        return path
    return _write
