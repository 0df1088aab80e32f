from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from geo.bounds import BoundingBox, GeoPoint

COLLAR_SCALE = 0.5
# ~1m at the equator; keeps collars stable against float noise from the map widget.
_COORD_DECIMALS = 5


@dataclass(frozen=True)
class MapCollar:
    """
    A cached region larger than the viewport, tagged with the zoom it was computed at.
    """

    bounds: BoundingBox
    zoom: int

    @classmethod
    def from_dict(cls, raw: Any) -> "MapCollar":
        if isinstance(raw, MapCollar):
            return raw
        if not isinstance(raw, Mapping) or raw.get("zoom") is None:
            raise ValueError(f"Invalid map collar: {raw!r}")
        try:
            zoom = int(raw["zoom"])
        except (TypeError, ValueError):
            raise ValueError(f"Invalid map collar zoom: {raw['zoom']!r}") from None
        return cls(bounds=BoundingBox.from_dict(raw), zoom=zoom)

    def as_dict(self) -> dict[str, Any]:
        return {**self.bounds.as_dict(), "zoom": self.zoom}


def expand(viewport: BoundingBox, scale: float = COLLAR_SCALE) -> BoundingBox:
    """
    Grow the viewport on all four sides by `scale` times its height/width.

    Latitudes clamp to [-90, 90] and longitudes to [-180, 180]; viewports crossing the
    antimeridian are not unwrapped.
    """
    top_left = viewport.top_left
    bottom_right = viewport.bottom_right

    lat_diff = round(abs(top_left.lat - bottom_right.lat), _COORD_DECIMALS)
    lon_diff = round(abs(bottom_right.lon - top_left.lon), _COORD_DECIMALS)
    # The map can report a zero height before it is laid out.
    if lat_diff == 0:
        lat_diff = lon_diff

    lat_delta = lat_diff * float(scale)
    lon_delta = lon_diff * float(scale)

    # Rounding may pull an edge inside the viewport when the margin is tiny; never
    # let the collar end up smaller than the raw viewport.
    top = min(90.0, max(top_left.lat, round(top_left.lat, _COORD_DECIMALS) + lat_delta))
    bottom = max(-90.0, min(bottom_right.lat, round(bottom_right.lat, _COORD_DECIMALS) - lat_delta))
    left = max(-180.0, min(top_left.lon, round(top_left.lon, _COORD_DECIMALS) - lon_delta))
    right = min(180.0, max(bottom_right.lon, round(bottom_right.lon, _COORD_DECIMALS) + lon_delta))

    return BoundingBox(
        top_left=GeoPoint(lat=top, lon=left),
        bottom_right=GeoPoint(lat=bottom, lon=right),
    )


def contains(collar: BoundingBox, viewport: BoundingBox) -> bool:
    """
    True iff `viewport` lies fully inside `collar` (shared edges count as inside).
    """
    if viewport.top_left.lat > collar.top_left.lat or viewport.top_left.lon < collar.top_left.lon:
        return False
    if (
        viewport.bottom_right.lat < collar.bottom_right.lat
        or viewport.bottom_right.lon > collar.bottom_right.lon
    ):
        return False
    return True
