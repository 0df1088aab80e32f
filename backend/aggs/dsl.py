from __future__ import annotations

from typing import Any

from aggs.types import AggregationClause

_BOX_KEYS = ("top_left", "bottom_right")


def _box(params: dict[str, Any]) -> dict[str, Any] | None:
    if not all(k in params for k in _BOX_KEYS):
        return None
    return {k: params[k] for k in _BOX_KEYS}


def clause_body(clause: AggregationClause) -> dict[str, Any]:
    """
    Search-engine body of a single clause (without sub-aggregations).
    """
    p = clause.params
    if clause.type == "filter":
        return {
            "filter": {
                "geo_bounding_box": {
                    "ignore_unmapped": bool(p.get("ignore_unmapped", True)),
                    p["field"]: _box(p),
                }
            }
        }
    if clause.type == "geohash_grid":
        grid: dict[str, Any] = {"field": p["field"], "precision": int(p["precision"])}
        box = _box(p)
        if box is not None:
            grid["bounds"] = box
        return {"geohash_grid": grid}
    if clause.type == "geo_centroid":
        return {"geo_centroid": {"field": p["field"]}}
    raise ValueError(f"Unknown aggregation clause type: {clause.type}")


def to_search_aggs(clauses: list[AggregationClause]) -> dict[str, Any]:
    """
    Nest the ordered clauses into an aggregation tree.

    Buckets nest inside each other (filter -> geohash_grid); metrics sit inside the
    innermost bucket.
    """
    root: dict[str, Any] = {}
    level = root
    for clause in clauses:
        body = clause_body(clause)
        level[clause.id or clause.type] = body
        if clause.type != "geo_centroid":
            body["aggs"] = {}
            level = body["aggs"]
    return root
