from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float

    @classmethod
    def from_dict(cls, raw: Any) -> "GeoPoint":
        if isinstance(raw, GeoPoint):
            return raw
        if not isinstance(raw, Mapping):
            raise ValueError(f"Invalid geo point: {raw!r}")
        try:
            return cls(lat=float(raw["lat"]), lon=float(raw["lon"]))
        except (KeyError, TypeError, ValueError):
            raise ValueError(f"Invalid geo point: {raw!r}") from None

    def as_dict(self) -> dict[str, float]:
        return {"lat": self.lat, "lon": self.lon}


@dataclass(frozen=True)
class BoundingBox:
    """
    WGS84 bounding box given by its north-west and south-east corners.

    This matches the geo_bounding_box shape used by the search engine:
    - top_left: {lat, lon}  (north-west)
    - bottom_right: {lat, lon}  (south-east)
    """

    top_left: GeoPoint
    bottom_right: GeoPoint

    def __post_init__(self) -> None:
        if self.top_left.lat < self.bottom_right.lat:
            raise ValueError(
                f"top_left.lat ({self.top_left.lat}) is south of bottom_right.lat ({self.bottom_right.lat})"
            )
        if self.top_left.lon > self.bottom_right.lon:
            raise ValueError(
                f"top_left.lon ({self.top_left.lon}) is east of bottom_right.lon ({self.bottom_right.lon})"
            )

    @classmethod
    def from_dict(cls, raw: Any) -> "BoundingBox":
        if isinstance(raw, BoundingBox):
            return raw
        if not isinstance(raw, Mapping) or "top_left" not in raw or "bottom_right" not in raw:
            raise ValueError(f"Invalid bounding box: {raw!r}")
        return cls(
            top_left=GeoPoint.from_dict(raw["top_left"]),
            bottom_right=GeoPoint.from_dict(raw["bottom_right"]),
        )

    @property
    def height(self) -> float:
        return self.top_left.lat - self.bottom_right.lat

    @property
    def width(self) -> float:
        return self.bottom_right.lon - self.top_left.lon

    def as_dict(self) -> dict[str, dict[str, float]]:
        return {
            "top_left": self.top_left.as_dict(),
            "bottom_right": self.bottom_right.as_dict(),
        }
