from __future__ import annotations

from typing import Any, Protocol

# Session state keys shared with the map visualization.
MAP_BOUNDS_KEY = "mapBounds"
MAP_COLLAR_KEY = "mapCollar"
MAP_ZOOM_KEY = "mapZoom"


class SessionState(Protocol):
    """
    Key-value store owned by the visualization session.

    - InMemorySessionState: dict-backed, used by the API and tests
    - host UI stores: anything exposing get/set
    """

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...
