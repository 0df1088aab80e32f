from __future__ import annotations

import math
from functools import lru_cache
from typing import Any

# Geohash precision range supported by the search engine.
MIN_PRECISION = 1
MAX_ENGINE_PRECISION = 12

DEFAULT_MAX_PRECISION = 7
DEFAULT_PRECISION = 2

MAX_ZOOM = 21
MIN_GEOHASH_PIXELS = 16
_TILE_PIXELS = 256


def geohash_cells(precision: int, axis: int) -> int:
    """
    Number of geohash cells along one axis at the given precision.

    Each geohash character holds 5 bits, alternating between 3 and 2 bits per axis,
    so the per-character split is 8x4 on odd positions and 4x8 on even ones.
    axis=0 counts columns (longitude), axis=1 counts rows (latitude).
    """
    cells = 1
    for i in range(1, int(precision) + 1):
        cells *= 4 if i % 2 == axis else 8
    return cells


def geohash_columns(precision: int) -> int:
    return geohash_cells(precision, 0)


def clamp_max_precision(max_precision: int) -> int:
    return max(MIN_PRECISION, min(MAX_ENGINE_PRECISION, int(max_precision)))


@lru_cache(maxsize=16)
def zoom_precision_table(
    max_precision: int = DEFAULT_MAX_PRECISION,
    *,
    min_geohash_pixels: int = MIN_GEOHASH_PIXELS,
) -> dict[int, int]:
    """
    zoom -> geohash precision for zoom levels 0..21.

    Pick the finest precision whose cells still span at least `min_geohash_pixels`
    screen pixels horizontally at that zoom.
    """
    top = clamp_max_precision(max_precision)
    out: dict[int, int] = {}
    for zoom in range(0, MAX_ZOOM + 1):
        world_pixels = _TILE_PIXELS * 2**zoom
        out[zoom] = MIN_PRECISION
        for precision in range(2, top + 1):
            if world_pixels / geohash_columns(precision) >= min_geohash_pixels:
                out[zoom] = precision
            else:
                break
    return out


def parse_zoom(raw: Any) -> int:
    """
    Normalize a zoom value (int, float or numeric string) into 0..21.

    Zoom 0 is a real zoom level. Fractional zooms are floored.
    """
    if isinstance(raw, bool):
        raise ValueError(f"Invalid zoom level: {raw!r}")
    try:
        z = float(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid zoom level: {raw!r}") from None
    if math.isnan(z):
        raise ValueError(f"Invalid zoom level: {raw!r}")
    if math.isinf(z):
        return 0 if z < 0 else MAX_ZOOM
    return max(0, min(MAX_ZOOM, int(math.floor(z))))


def map_zoom_to_precision(
    zoom: Any,
    *,
    max_precision: int = DEFAULT_MAX_PRECISION,
    min_geohash_pixels: int = MIN_GEOHASH_PIXELS,
) -> int:
    table = zoom_precision_table(
        clamp_max_precision(max_precision), min_geohash_pixels=int(min_geohash_pixels)
    )
    return table[parse_zoom(zoom)]


def parse_precision(
    raw: Any,
    *,
    default: int = DEFAULT_PRECISION,
    max_precision: int = MAX_ENGINE_PRECISION,
) -> int:
    """
    Literal precision entered by the user (used when auto precision is off).

    Passed through as entered, only held to the engine range.
    """
    top = clamp_max_precision(max_precision)
    try:
        p = int(raw)
    except (TypeError, ValueError):
        p = int(default)
    return max(MIN_PRECISION, min(top, p))
