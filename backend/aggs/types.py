from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, Field

ClauseType = Literal["filter", "geohash_grid", "geo_centroid"]


@dataclass(frozen=True)
class AggregationFlags:
    is_filtered_by_collar: bool = True
    use_geocentroid: bool = True


@dataclass(frozen=True)
class AggregationClause:
    """
    One step of the aggregation request, in the order it must be nested.
    """

    type: ClauseType
    params: dict[str, Any]
    id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id or self.type, "type": self.type, "params": self.params}


@dataclass
class VisContext:
    """
    The map visualization an aggregation belongs to.

    `params` holds vis-level params (mapZoom, mapCenter); `ui_state` is the optional
    persisted UI state (zoom after user interaction).
    """

    session_state: Any
    params: dict[str, Any] = field(default_factory=dict)
    ui_state: dict[str, Any] | None = None

    def has_ui_state(self) -> bool:
        return self.ui_state is not None

    def ui_state_val(self, key: str) -> Any | None:
        return (self.ui_state or {}).get(key)


class GeohashAggParams(BaseModel):
    """
    User-editable params of the geohash grid aggregation.
    """

    autoPrecision: bool = True
    # Literal precision; only used when autoPrecision is off. Kept loose, the UI sends strings.
    precision: int | str | None = Field(default=2)
    isFilteredByCollar: bool = True
    useGeocentroid: bool = True

    def flags(self) -> AggregationFlags:
        return AggregationFlags(
            is_filtered_by_collar=bool(self.isFilteredByCollar),
            use_geocentroid=bool(self.useGeocentroid),
        )


@dataclass
class AggConfig:
    field_name: str
    params: GeohashAggParams
    vis: VisContext
    id: str = "geohash_grid"
