from __future__ import annotations

CREATE_EVENTS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS events (
  ts_ms BIGINT,
  endpoint TEXT,
  session_id TEXT,
  field TEXT,
  zoom INTEGER,
  precision INTEGER,
  collar_recomputed BOOLEAN,
  clause_types TEXT,
  viewport_top DOUBLE,
  viewport_left DOUBLE,
  viewport_bottom DOUBLE,
  viewport_right DOUBLE,
  stats_json TEXT
);
"""

SUMMARY_SQL_TEMPLATE = """
SELECT
  endpoint,
  COUNT(*) AS n,
  AVG(CASE WHEN collar_recomputed THEN 1 ELSE 0 END) AS recompute_rate,
  AVG(precision) AS avg_precision,
  AVG(try_cast(json_extract(stats_json, '$.timingsMs.total') AS DOUBLE)) AS avg_total_ms
FROM events
{where_sql}
GROUP BY endpoint
ORDER BY endpoint
"""

INSERT_EVENTS_SQL = """
INSERT INTO events
  (ts_ms, endpoint, session_id, field, zoom, precision, collar_recomputed, clause_types,
   viewport_top, viewport_left, viewport_bottom, viewport_right, stats_json)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
"""
