from __future__ import annotations

import logging

from engine.types import MAP_COLLAR_KEY, SessionState
from geo.bounds import BoundingBox
from geo.collar import COLLAR_SCALE, MapCollar, contains, expand

logger = logging.getLogger(__name__)


def _stored_collar(session_state: SessionState) -> MapCollar | None:
    raw = session_state.get(MAP_COLLAR_KEY)
    if raw is None:
        return None
    try:
        return MapCollar.from_dict(raw)
    except ValueError as e:
        logger.warning(f"Ignoring malformed map collar in session state: {e}")
        return None


def resolve_collar(
    session_state: SessionState,
    viewport: BoundingBox,
    zoom: int,
    *,
    scale: float = COLLAR_SCALE,
) -> tuple[MapCollar, bool]:
    """
    Reuse the stored collar while it still covers the viewport at the same zoom,
    otherwise recompute it and persist it into session state.

    Returns (collar, recomputed). Reuse never writes to session state.
    """
    stored = _stored_collar(session_state)

    if stored is not None and stored.zoom == zoom and contains(stored.bounds, viewport):
        logger.debug(f"Reusing map collar at zoom {zoom}")
        return stored, False

    collar = MapCollar(bounds=expand(viewport, scale), zoom=zoom)
    session_state.set(MAP_COLLAR_KEY, collar.as_dict())
    if stored is None:
        reason = "no collar"
    elif stored.zoom != zoom:
        reason = f"zoom changed {stored.zoom} -> {zoom}"
    else:
        reason = "viewport left collar"
    logger.debug(f"Recomputed map collar ({reason}): {collar.as_dict()}")
    return collar, True


def get_or_update_collar(
    session_state: SessionState,
    viewport: BoundingBox,
    zoom: int,
    *,
    scale: float = COLLAR_SCALE,
) -> MapCollar:
    collar, _recomputed = resolve_collar(session_state, viewport, zoom, scale=scale)
    return collar
