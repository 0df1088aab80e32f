from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml

from settings.types import GeoAggSettings


def _settings_path() -> Path | None:
    raw = (os.getenv("GEOAGG_SETTINGS_PATH") or "").strip()
    return Path(raw) if raw else None


def _load_yaml(path: Path) -> dict:
    raw = path.read_text(encoding="utf-8")
    data = yaml.safe_load(raw) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Invalid settings yaml root: {path}")
    return data


def _env_overrides() -> dict[str, Any]:
    out: dict[str, Any] = {}
    for env_name, key in (
        ("GEOAGG_MAX_PRECISION", "maxPrecision"),
        ("GEOAGG_COLLAR_SCALE", "collarScale"),
        ("GEOAGG_GRID_BOUNDS", "gridBounds"),
    ):
        v = (os.getenv(env_name) or "").strip()
        if v:
            out[key] = v.lower() if key == "gridBounds" else v
    return out


@lru_cache(maxsize=1)
def get_settings() -> GeoAggSettings:
    """
    Settings from `GEOAGG_SETTINGS_PATH` (optional YAML), then env overrides.
    """
    data: dict[str, Any] = {}
    path = _settings_path()
    if path is not None:
        if not path.exists():
            raise FileNotFoundError(f"Settings file not found: {path}")
        data.update(_load_yaml(path))
    data.update(_env_overrides())
    return GeoAggSettings.model_validate(data)


def clear_settings_cache() -> None:
    """
    Forget cached settings so env/YAML changes are picked up (tests, dev reloads).
    """
    get_settings.cache_clear()
