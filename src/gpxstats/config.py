"""
gpxstats configuration loader

This module centralizes *all* configuration handling for gpxstats.

Design goals:
- Keep the CLI Unix-friendly: flags override everything.
- Provide sensible defaults if no config exists.
- Allow per-machine config without committing personal preferences:
    ~/.config/gpxstats/config.toml
- Allow repo-local config:
    <repo_root>/config/config.toml
- Allow environment variable overrides for automation.

Precedence (highest to lowest) for any given value:
1) CLI argument (applied by gpxstats.analyze.gpx_analyze)
2) Environment variables (GPXSTATS_*)
3) User config: ~/.config/gpxstats/config.toml
4) Repo config: <repo_root>/config/config.toml
5) Hard defaults (see AnalyzeConfig)

All analysis settings live in the [analyze] table:

    [analyze]
    min_elevation_gain = 10.0   # meters
    min_distance = 1.0          # meters
    standstill_time = 10.0      # seconds
    join_segments = false
    join_tracks = false
    filter_zero_ele = false
    filter_ele_below = -100.0   # meters; omit to disable
    metric = false
"""

from __future__ import annotations

import dataclasses
import math
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from gpxstats.errors import ConfigError

# ---------------------------------------------------------------------------
# TOML loading helpers
# ---------------------------------------------------------------------------
def _load_toml(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file at `path`.

    Behavior:
    - If the file does not exist, return an empty dict (non-fatal).
    - If the file exists but is invalid TOML, raise ConfigError
      with a clear, user-facing message.
    """
    if not path.is_file():
        return {}

    try:
        return tomllib.loads(path.read_text(encoding="utf-8")) or {}
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        # Wrap parsing errors with file context for usability
        raise ConfigError(f"Failed to parse TOML config: {path} ({e})") from e


# ---------------------------------------------------------------------------
# Generic coercion helpers
# ---------------------------------------------------------------------------
def _as_bool(v: Any, default: bool) -> bool:
    """
    Coerce loosely-typed config values into booleans.

    Accepts common truthy / falsy representations so that TOML,
    environment variables and user overrides all behave consistently.
    """
    if v is None:
        return default
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in ("true", "yes", "y", "1", "on"):
            return True
        if s in ("false", "no", "n", "0", "off"):
            return False
    return default


def _as_float(v: Any, default: Optional[float]) -> Optional[float]:
    """
    Coerce config values into finite floats.

    Strings are parsed; anything unusable falls back to `default`.
    """
    if v is None or isinstance(v, bool):
        return default
    if isinstance(v, (int, float)):
        f = float(v)
    elif isinstance(v, str):
        try:
            f = float(v.strip())
        except ValueError:
            return default
    else:
        return default
    return f if math.isfinite(f) else default


# ---------------------------------------------------------------------------
# Repo discovery
# ---------------------------------------------------------------------------
def find_repo_root(start: Path) -> Optional[Path]:
    """
    Walk upward from `start` looking for the gpxstats repo root.

    Heuristic:
    - The presence of a `config/config.toml` file marks the repo root
    """
    start = start.resolve()
    for p in [start] + list(start.parents):
        if (p / "config" / "config.toml").is_file():
            return p
    return None


def default_user_config_path() -> Path:
    return Path.home() / ".config" / "gpxstats" / "config.toml"


# ---------------------------------------------------------------------------
# Typed config dataclass
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class AnalyzeConfig:
    """
    Parsed and merged analysis configuration.

    This object is what the assembler and analyzer consume.

    Attributes:
    - min_elevation_gain: meters of climb/descent before gain is counted
    - min_distance: meters of movement before a point counts for distance
    - standstill_time: seconds without min_distance movement that mean "stopped"
    - join_segments / join_tracks: consolidation policy
    - filter_zero_ele / filter_ele_below: elevation filters
    - metric: display meters/kilometers instead of feet/miles
    - source: provenance map showing where each value came from
    """

    min_elevation_gain: float = 10.0
    min_distance: float = 1.0
    standstill_time: float = 10.0
    join_segments: bool = False
    join_tracks: bool = False
    filter_zero_ele: bool = False
    filter_ele_below: Optional[float] = None
    metric: bool = False
    source: dict[str, str] = field(default_factory=dict, compare=False)

    @property
    def effective_join_segments(self) -> bool:
        """Joining tracks always joins their segments too."""
        return self.join_segments or self.join_tracks

    @property
    def min_moving_speed(self) -> float:
        """Slowest speed (m/s) that still counts as moving."""
        return self.min_distance / self.standstill_time

    def override(self, label: str, **changes: Any) -> "AnalyzeConfig":
        """
        Return a copy with `changes` applied, ignoring None values.

        Each applied key is recorded in `source` under `label`.
        """
        applied = {k: v for k, v in changes.items() if v is not None}
        src = dict(self.source)
        for k in applied:
            src[f"analyze.{k}"] = label
        return dataclasses.replace(self, source=src, **applied)


_FLOAT_KEYS = ("min_elevation_gain", "min_distance", "standstill_time", "filter_ele_below")
_BOOL_KEYS = ("join_segments", "join_tracks", "filter_zero_ele", "metric")

ENV_MAP = {
    "GPXSTATS_MIN_ELEVATION_GAIN": "min_elevation_gain",
    "GPXSTATS_MIN_DISTANCE": "min_distance",
    "GPXSTATS_STANDSTILL_TIME": "standstill_time",
    "GPXSTATS_JOIN_SEGMENTS": "join_segments",
    "GPXSTATS_JOIN_TRACKS": "join_tracks",
    "GPXSTATS_FILTER_ZERO_ELE": "filter_zero_ele",
    "GPXSTATS_FILTER_ELE_BELOW": "filter_ele_below",
    "GPXSTATS_METRIC": "metric",
}


def _coerce(key: str, raw: Any, current: Any) -> Any:
    if key in _BOOL_KEYS:
        return _as_bool(raw, current)
    return _as_float(raw, current)


def _parse_analyze_section(cfg: dict[str, Any]) -> dict[str, Any]:
    """
    Extract the raw [analyze] table, keeping only known keys.

    Values are still loosely typed here; coercion happens during merge.
    """
    section = cfg.get("analyze", {}) or {}
    if not isinstance(section, dict):
        return {}
    return {k: v for k, v in section.items() if k in _FLOAT_KEYS + _BOOL_KEYS}


# ---------------------------------------------------------------------------
# Main config loader
# ---------------------------------------------------------------------------
def load_config(
    repo_root: Optional[Path] = None,
    repo_config_path: Optional[Path] = None,
    user_config_path: Optional[Path] = None,
    environ: Optional[dict[str, str]] = None,
) -> AnalyzeConfig:
    """
    Load, merge, and normalize all gpxstats configuration.

    This function is the single authoritative entry point
    for configuration access. CLI overrides are layered on
    afterwards with AnalyzeConfig.override().
    """
    if environ is None:
        environ = dict(os.environ)

    # Locate repo and config files
    if repo_root is None:
        repo_root = find_repo_root(Path(__file__).resolve())
    if repo_config_path is None and repo_root is not None:
        repo_config_path = repo_root / "config" / "config.toml"
    if user_config_path is None:
        user_config_path = default_user_config_path()

    defaults = AnalyzeConfig()
    values: dict[str, Any] = {
        f.name: getattr(defaults, f.name)
        for f in dataclasses.fields(AnalyzeConfig)
        if f.name != "source"
    }
    src = {f"analyze.{k}": "default" for k in values}

    # Repo config, then user config (user overrides repo)
    for path, label in ((repo_config_path, "repo"), (user_config_path, "user")):
        if path is None:
            continue
        for key, raw in _parse_analyze_section(_load_toml(path)).items():
            values[key] = _coerce(key, raw, values[key])
            src[f"analyze.{key}"] = f"{label}:{path}"

    # Environment variable overrides (highest non-CLI precedence)
    for env, key in ENV_MAP.items():
        raw = environ.get(env)
        if raw is None or not raw.strip():
            continue
        values[key] = _coerce(key, raw, values[key])
        src[f"analyze.{key}"] = f"env:{env}"

    return AnalyzeConfig(source=src, **values)
