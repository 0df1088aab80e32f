from .dsl import to_search_aggs
from .geohash import GeohashRequest, build_aggregations, build_request, get_request_aggs
from .params import geohash_params, write_params
from .types import AggConfig, AggregationClause, AggregationFlags, GeohashAggParams, VisContext

__all__ = [
    "AggConfig",
    "AggregationClause",
    "AggregationFlags",
    "GeohashAggParams",
    "GeohashRequest",
    "VisContext",
    "build_aggregations",
    "build_request",
    "geohash_params",
    "get_request_aggs",
    "to_search_aggs",
    "write_params",
]
