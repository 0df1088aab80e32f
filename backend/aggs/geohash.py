from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from aggs.params import PrecisionParam, current_zoom
from aggs.types import AggConfig, AggregationClause, AggregationFlags
from engine.collar_cache import resolve_collar
from engine.types import MAP_BOUNDS_KEY, MAP_ZOOM_KEY, SessionState
from geo.bounds import BoundingBox
from geo.collar import MapCollar
from lod.precision import parse_zoom
from settings.registry import get_settings
from settings.types import GeoAggSettings, GridBoundsSource

logger = logging.getLogger(__name__)

FILTER_AGG_ID = "filter_agg"


def build_aggregations(
    field: str,
    flags: AggregationFlags,
    collar: MapCollar | None,
    precision: int,
    *,
    viewport: BoundingBox | None = None,
    grid_bounds: GridBoundsSource = "viewport",
    grid_id: str = "geohash_grid",
) -> list[AggregationClause]:
    """
    Compose the ordered clause list: filter -> geohash_grid -> geo_centroid.

    The filter needs a collar; without one (no viewport/zoom known yet) it is skipped.
    The grid clause is always emitted.
    """
    out: list[AggregationClause] = []

    if flags.is_filtered_by_collar and collar is not None:
        out.append(
            AggregationClause(
                type="filter",
                id=FILTER_AGG_ID,
                params={"field": field, "ignore_unmapped": True, **collar.bounds.as_dict()},
            )
        )

    grid_params: dict[str, Any] = {"field": field, "precision": int(precision)}
    box = _grid_box(grid_bounds, viewport=viewport, collar=collar)
    if box is not None:
        grid_params.update(box.as_dict())
    out.append(AggregationClause(type="geohash_grid", id=grid_id, params=grid_params))

    if flags.use_geocentroid:
        out.append(
            AggregationClause(type="geo_centroid", id=f"{grid_id}_centroid", params={"field": field})
        )
    return out


def _grid_box(
    source: GridBoundsSource,
    *,
    viewport: BoundingBox | None,
    collar: MapCollar | None,
) -> BoundingBox | None:
    if source == "viewport":
        return viewport
    if source == "collar":
        return collar.bounds if collar is not None else viewport
    return None


def _read_viewport(session_state: SessionState) -> BoundingBox | None:
    raw = session_state.get(MAP_BOUNDS_KEY)
    if raw is None:
        return None
    try:
        return BoundingBox.from_dict(raw)
    except ValueError as e:
        logger.warning(f"Ignoring malformed map bounds in session state: {e}")
        return None


def _read_zoom(agg: AggConfig) -> int | None:
    # Collars are keyed by the vis zoom; UI state only feeds precision.
    raw = agg.vis.params.get(MAP_ZOOM_KEY)
    if raw is None:
        return None
    try:
        return parse_zoom(raw)
    except ValueError as e:
        logger.warning(f"Ignoring invalid map zoom: {e}")
        return None


@dataclass(frozen=True)
class GeohashRequest:
    clauses: list[AggregationClause]
    precision: int
    collar: MapCollar | None
    collar_recomputed: bool
    viewport: BoundingBox | None


def build_request(agg: AggConfig, settings: GeoAggSettings | None = None) -> GeohashRequest:
    s = settings or get_settings()
    flags = agg.params.flags()
    session_state = agg.vis.session_state

    viewport = _read_viewport(session_state)
    zoom = _read_zoom(agg)

    collar: MapCollar | None = None
    recomputed = False
    if flags.is_filtered_by_collar and viewport is not None and zoom is not None:
        collar, recomputed = resolve_collar(session_state, viewport, zoom, scale=s.collarScale)

    precision = PrecisionParam(settings=s).resolve(agg)
    clauses = build_aggregations(
        agg.field_name,
        flags,
        collar,
        precision,
        viewport=viewport,
        grid_bounds=s.gridBounds,
        grid_id=agg.id,
    )
    logger.debug(
        f"Built {[c.type for c in clauses]} for {agg.field_name} "
        f"(zoom={current_zoom(agg)}, precision={precision}, collarRecomputed={recomputed})"
    )
    return GeohashRequest(
        clauses=clauses,
        precision=precision,
        collar=collar,
        collar_recomputed=recomputed,
        viewport=viewport,
    )


def get_request_aggs(agg: AggConfig, settings: GeoAggSettings | None = None) -> list[AggregationClause]:
    return build_request(agg, settings).clauses
