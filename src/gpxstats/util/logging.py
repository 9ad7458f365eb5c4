# gpxstats/util/logging.py
from __future__ import annotations

import datetime
import sys


def _stamp() -> str:
    return datetime.datetime.now().astimezone().isoformat(timespec="seconds")

def log(msg: str) -> None:
    """Print a timestamped log line (local time with timezone)."""
    print(f"{_stamp()}  {msg}", file=sys.stderr)

def warn(msg: str) -> None:
    """Print a timestamped warning line to stderr."""
    print(f"{_stamp()}  WARNING: {msg}", file=sys.stderr)
