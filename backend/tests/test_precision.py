from __future__ import annotations

import pytest

from lod.precision import (
    geohash_columns,
    map_zoom_to_precision,
    parse_precision,
    parse_zoom,
    zoom_precision_table,
)

ZOOM_TO_PRECISION = {
    0: 1,
    1: 2,
    2: 2,
    3: 2,
    4: 3,
    5: 3,
    6: 4,
    7: 4,
    8: 4,
    9: 5,
    10: 5,
    11: 6,
    12: 6,
    13: 6,
    14: 7,
    15: 7,
    16: 7,
    17: 7,
    18: 7,
    19: 7,
    20: 7,
    21: 7,
}


@pytest.mark.parametrize("zoom,precision", sorted(ZOOM_TO_PRECISION.items()))
def test_zoom_maps_to_expected_precision(zoom, precision):
    assert map_zoom_to_precision(zoom) == precision


def test_default_table_matches_exactly():
    assert zoom_precision_table() == ZOOM_TO_PRECISION


def test_zoom_zero_is_a_real_zoom_level():
    assert map_zoom_to_precision(0) == 1
    assert map_zoom_to_precision("0") == 1
    assert map_zoom_to_precision(0.0) == 1


def test_zoom_from_ui_state_strings():
    assert map_zoom_to_precision("10") == 5
    assert map_zoom_to_precision("14") == 7


def test_out_of_table_zoom_clamps():
    assert map_zoom_to_precision(-3) == 1
    assert map_zoom_to_precision(30) == 7
    assert map_zoom_to_precision(float("inf")) == 7


def test_fractional_zoom_is_floored():
    assert parse_zoom(10.9) == 10
    assert map_zoom_to_precision(13.99) == 6


def test_non_numeric_zoom_is_rejected():
    with pytest.raises(ValueError):
        parse_zoom("far away")
    with pytest.raises(ValueError):
        parse_zoom(None)


def test_precision_is_monotonic_in_zoom():
    table = zoom_precision_table()
    values = [table[z] for z in sorted(table)]
    assert values == sorted(values)


def test_higher_max_precision_keeps_refining():
    table = zoom_precision_table(12)
    assert table[14] == 7
    assert table[16] == 8
    assert table[21] == 10
    # Capped at the engine range even if asked for more.
    assert zoom_precision_table(20) == table


def test_geohash_columns_alternate_bits():
    assert [geohash_columns(p) for p in range(1, 5)] == [8, 32, 256, 1024]


def test_parse_precision_literal_values():
    assert parse_precision(4) == 4
    assert parse_precision("5") == 5
    assert parse_precision("not a number") == 2
    assert parse_precision(None, default=3) == 3
    assert parse_precision(11) == 11
    assert parse_precision(15) == 12
    assert parse_precision(11, max_precision=7) == 7
    assert parse_precision(11, max_precision=12) == 11
    assert parse_precision(0) == 1
