from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from engine.types import SessionState


@dataclass
class InMemorySessionState(SessionState):
    """
    Dict-backed session state. Tracks writes so callers can tell reuse from recompute.
    """

    values: dict[str, Any] = field(default_factory=dict)
    writes: int = 0

    def get(self, key: str) -> Any | None:
        return self.values.get(key)

    def set(self, key: str, value: Any) -> None:
        self.values[key] = value
        self.writes += 1


class SessionRegistry:
    """
    Bounded map of session id -> session state for the HTTP surface.

    Oldest sessions are evicted first once `max_sessions` is exceeded.
    """

    def __init__(self, max_sessions: int = 1_000):
        self.max_sessions = int(max_sessions)
        self._sessions: dict[str, InMemorySessionState] = {}
        self._lock = threading.RLock()

    def get_or_create(self, session_id: str) -> InMemorySessionState:
        sid = (session_id or "").strip() or "default"
        with self._lock:
            state = self._sessions.get(sid)
            if state is None:
                state = InMemorySessionState()
                self._sessions[sid] = state
                if len(self._sessions) > self.max_sessions:
                    oldest = next(iter(self._sessions.keys()))
                    if oldest != sid:
                        self._sessions.pop(oldest, None)
            return state

    def drop(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop((session_id or "").strip(), None) is not None

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
