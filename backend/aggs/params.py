from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from aggs.types import AggConfig
from engine.types import MAP_ZOOM_KEY
from lod.precision import map_zoom_to_precision, parse_precision, parse_zoom
from settings.registry import get_settings
from settings.types import GeoAggSettings

logger = logging.getLogger(__name__)


class ParamDescriptor(Protocol):
    """
    A UI-editable aggregation param.

    `write` runs right before the request is finalized and copies the param's
    effective value into `output["params"]`.
    """

    name: str
    default: Any

    def write(self, agg: AggConfig, output: dict[str, Any]) -> None: ...


@dataclass(frozen=True)
class FieldParam:
    name: str = "field"
    default: Any = None

    def write(self, agg: AggConfig, output: dict[str, Any]) -> None:
        output.setdefault("params", {})[self.name] = agg.field_name


@dataclass(frozen=True)
class BoolParam:
    name: str
    default: bool = True

    def write(self, agg: AggConfig, output: dict[str, Any]) -> None:
        value = getattr(agg.params, self.name, None)
        output.setdefault("params", {})[self.name] = self.default if value is None else bool(value)


@dataclass(frozen=True)
class VisOnlyParam:
    """
    Tracked with the vis (map zoom/center) but never sent with the request.
    """

    name: str
    default: Any = None

    def write(self, agg: AggConfig, output: dict[str, Any]) -> None:
        return None


def current_zoom(agg: AggConfig) -> Any | None:
    """
    Zoom from UI state when present, otherwise from vis params.

    Zoom 0 is a valid zoom level, so presence is checked with `is None`.
    """
    vis = agg.vis
    if vis.has_ui_state():
        z = vis.ui_state_val(MAP_ZOOM_KEY)
        if z is not None:
            try:
                parse_zoom(z)
                return z
            except ValueError:
                logger.debug(f"Ignoring invalid UI state zoom {z!r}")
    return vis.params.get(MAP_ZOOM_KEY)


@dataclass(frozen=True)
class PrecisionParam:
    name: str = "precision"
    settings: GeoAggSettings | None = None

    @property
    def default(self) -> int:
        return self._settings().defaultPrecision

    def _settings(self) -> GeoAggSettings:
        return self.settings or get_settings()

    def resolve(self, agg: AggConfig) -> int:
        s = self._settings()
        zoom = current_zoom(agg)
        if agg.params.autoPrecision and zoom is not None:
            try:
                return map_zoom_to_precision(
                    zoom, max_precision=s.maxPrecision, min_geohash_pixels=s.minGeohashPixels
                )
            except ValueError as e:
                logger.warning(f"Falling back to literal precision: {e}")
        return parse_precision(agg.params.precision, default=s.defaultPrecision)

    def write(self, agg: AggConfig, output: dict[str, Any]) -> None:
        output.setdefault("params", {})[self.name] = self.resolve(agg)


def geohash_params(settings: GeoAggSettings | None = None) -> list[ParamDescriptor]:
    """
    Params of the geohash grid aggregation, in editor order.
    """
    return [
        FieldParam(),
        BoolParam(name="autoPrecision"),
        BoolParam(name="useGeocentroid"),
        BoolParam(name="isFilteredByCollar"),
        VisOnlyParam(name="mapZoom", default=2),
        VisOnlyParam(name="mapCenter", default=[0, 0]),
        PrecisionParam(settings=settings),
    ]


def get_param(name: str, settings: GeoAggSettings | None = None) -> ParamDescriptor:
    for p in geohash_params(settings):
        if p.name == name:
            return p
    raise KeyError(f"Unknown geohash param: {name}")


def write_params(agg: AggConfig, settings: GeoAggSettings | None = None) -> dict[str, Any]:
    output: dict[str, Any] = {"params": {}}
    for p in geohash_params(settings):
        p.write(agg, output)
    return output
