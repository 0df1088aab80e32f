from __future__ import annotations

import json

from engine.collar_cache import get_or_update_collar, resolve_collar
from engine.in_memory import InMemorySessionState, SessionRegistry
from geo.bounds import BoundingBox

INITIAL_VIEWPORT = BoundingBox.from_dict(
    {"top_left": {"lat": 1.0, "lon": -1.0}, "bottom_right": {"lat": -1.0, "lon": 1.0}}
)


def _seeded_session() -> InMemorySessionState:
    return InMemorySessionState(
        values={
            "mapCollar": {
                "top_left": {"lat": 1.5, "lon": -1.5},
                "bottom_right": {"lat": -1.5, "lon": 1.5},
                "zoom": 10,
            }
        }
    )


def test_first_call_computes_and_persists_collar():
    session = InMemorySessionState()
    collar, recomputed = resolve_collar(session, INITIAL_VIEWPORT, 10)
    assert recomputed
    assert session.writes == 1
    assert session.get("mapCollar") == collar.as_dict()
    assert collar.zoom == 10


def test_contained_viewport_reuses_collar_without_writing():
    session = _seeded_session()
    before = json.dumps(session.get("mapCollar"))
    moved = BoundingBox.from_dict(
        {"top_left": {"lat": 1.1, "lon": -1.1}, "bottom_right": {"lat": -0.9, "lon": 0.9}}
    )

    collar, recomputed = resolve_collar(session, moved, 10)

    assert not recomputed
    assert session.writes == 0
    assert json.dumps(session.get("mapCollar")) == before
    assert collar.as_dict() == session.get("mapCollar")


def test_viewport_outside_collar_forces_recompute():
    session = _seeded_session()
    far = BoundingBox.from_dict(
        {"top_left": {"lat": 10.0, "lon": -10.0}, "bottom_right": {"lat": 9.0, "lon": -9.0}}
    )
    collar = get_or_update_collar(session, far, 10)
    assert session.writes == 1
    assert collar.as_dict() == {
        "top_left": {"lat": 10.5, "lon": -10.5},
        "bottom_right": {"lat": 8.5, "lon": -8.5},
        "zoom": 10,
    }


def test_zoom_change_forces_recompute_even_when_contained():
    session = _seeded_session()
    collar, recomputed = resolve_collar(session, INITIAL_VIEWPORT, 9)
    assert recomputed
    assert collar.zoom == 9
    assert session.get("mapCollar")["zoom"] == 9


def test_zoom_zero_collar_is_reused():
    session = InMemorySessionState()
    first = get_or_update_collar(session, INITIAL_VIEWPORT, 0)
    second = get_or_update_collar(session, INITIAL_VIEWPORT, 0)
    assert first == second
    assert session.writes == 1


def test_repeated_calls_are_idempotent():
    session = InMemorySessionState()
    first = get_or_update_collar(session, INITIAL_VIEWPORT, 10)
    stored = json.dumps(session.get("mapCollar"))
    for _ in range(3):
        assert get_or_update_collar(session, INITIAL_VIEWPORT, 10) == first
    assert json.dumps(session.get("mapCollar")) == stored
    assert session.writes == 1


def test_malformed_stored_collar_is_replaced():
    session = InMemorySessionState(values={"mapCollar": {"zoom": 10, "top_left": "nope"}})
    collar, recomputed = resolve_collar(session, INITIAL_VIEWPORT, 10)
    assert recomputed
    assert session.get("mapCollar") == collar.as_dict()


def test_custom_scale_changes_margin():
    session = InMemorySessionState()
    collar = get_or_update_collar(session, INITIAL_VIEWPORT, 10, scale=1.0)
    assert collar.bounds.top_left.lat == 3.0
    assert collar.bounds.bottom_right.lon == 3.0


def test_session_registry_evicts_oldest():
    reg = SessionRegistry(max_sessions=2)
    a = reg.get_or_create("a")
    reg.get_or_create("b")
    assert reg.get_or_create("a") is a
    reg.get_or_create("c")
    assert len(reg) == 2
    assert reg.get_or_create("a") is not a
    assert reg.drop("c")
    assert not reg.drop("missing")


def test_point_viewport_collar_is_reused():
    session = InMemorySessionState()
    point = BoundingBox.from_dict(
        {"top_left": {"lat": 1.000004, "lon": 1.000004}, "bottom_right": {"lat": 1.000004, "lon": 1.000004}}
    )
    results = [resolve_collar(session, point, 10)[1] for _ in range(3)]
    assert results == [True, False, False]
    assert session.writes == 1


def test_tiny_scale_collar_is_reused():
    session = InMemorySessionState()
    viewport = BoundingBox.from_dict(
        {"top_left": {"lat": 1.000004, "lon": -1.0}, "bottom_right": {"lat": -0.999996, "lon": 1.0}}
    )
    results = [resolve_collar(session, viewport, 10, scale=1e-6)[1] for _ in range(3)]
    assert results == [True, False, False]
    assert session.writes == 1
