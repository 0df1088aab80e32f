from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

GridBoundsSource = Literal["viewport", "collar", "none"]


class GeoAggSettings(BaseModel):
    """
    Tunables for geohash aggregation requests.

    Field names follow the camelCase used in settings YAML.
    """

    # Finest geohash precision auto precision may pick (engine supports up to 12).
    maxPrecision: int = Field(default=7, ge=1, le=12)
    # Used when a literal precision can't be parsed.
    defaultPrecision: int = Field(default=2, ge=1, le=12)
    # Collar margin as a fraction of viewport height/width on each side.
    collarScale: float = Field(default=0.5, gt=0.0)
    # Which box bounds the geohash_grid clause.
    gridBounds: GridBoundsSource = "viewport"
    minGeohashPixels: int = Field(default=16, ge=1)
