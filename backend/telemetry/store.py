from __future__ import annotations

import json
import queue
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import duckdb

from telemetry.config import telemetry_enabled, telemetry_path
from telemetry.sql import CREATE_EVENTS_TABLE_SQL, INSERT_EVENTS_SQL, SUMMARY_SQL_TEMPLATE

__all__ = ["TelemetryStore", "telemetry_enabled", "telemetry_path"]


def _safe_float(v) -> float | None:
    try:
        if v is None:
            return None
        return float(v)
    except (TypeError, ValueError):
        return None


@dataclass
class TelemetryStore:
    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _q: "queue.Queue[dict[str, Any]]" = field(default_factory=queue.Queue, repr=False)
    _stop: threading.Event = field(default_factory=threading.Event, repr=False)
    _worker: threading.Thread | None = field(default=None, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_EVENTS_TABLE_SQL)

    def start(self) -> None:
        if self._worker is not None:
            return
        self._stop.clear()
        self._worker = threading.Thread(
            target=self._run, name="telemetry-writer", daemon=True
        )
        self._worker.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        """
        Stop the writer thread and flush what is still queued.
        """
        self._stop.set()
        w = self._worker
        if w is not None and w.is_alive():
            w.join(timeout=timeout_s)
        self._worker = None

    def record(
        self,
        *,
        endpoint: str,
        session_id: str,
        field_name: str,
        zoom: int | None,
        precision: int,
        collar_recomputed: bool,
        clause_types: list[str],
        viewport: dict[str, dict[str, float]] | None,
        stats: dict[str, Any],
    ) -> None:
        # Non-blocking: enqueue and return; the writer thread batches inserts.
        self.start()
        tl = (viewport or {}).get("top_left") or {}
        br = (viewport or {}).get("bottom_right") or {}
        try:
            self._q.put_nowait(
                {
                    "ts_ms": int(time.time() * 1000),
                    "endpoint": str(endpoint),
                    "session_id": str(session_id),
                    "field": str(field_name),
                    "zoom": None if zoom is None else int(zoom),
                    "precision": int(precision),
                    "collar_recomputed": bool(collar_recomputed),
                    "clause_types": json.dumps(list(clause_types)),
                    "viewport_top": _safe_float(tl.get("lat")),
                    "viewport_left": _safe_float(tl.get("lon")),
                    "viewport_bottom": _safe_float(br.get("lat")),
                    "viewport_right": _safe_float(br.get("lon")),
                    "stats_json": json.dumps(stats, ensure_ascii=False),
                }
            )
        except queue.Full:
            # drop telemetry on overload
            pass

    def flush(self, *, timeout_s: float = 2.0) -> None:
        """
        Wait until queued events are written (used by tests).
        """
        if self._worker is None:
            return
        deadline = time.time() + timeout_s
        while time.time() < deadline:
            if self._q.unfinished_tasks == 0:
                break
            time.sleep(0.01)
        # Give the writer thread time to flush on its time-based trigger.
        time.sleep(0.55)

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        """
        Run a read query on the store's own connection.

        DuckDB holds a file lock, so readers go through the backend process.
        """
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def summary(
        self,
        *,
        endpoint: str | None = None,
        since_ms: int | None = None,
    ) -> list[dict[str, Any]]:
        where = []
        params: list[Any] = []
        if endpoint:
            where.append("endpoint = ?")
            params.append(endpoint)
        if since_ms is not None:
            where.append("ts_ms >= ?")
            params.append(int(since_ms))

        where_sql = f"WHERE {' AND '.join(where)}" if where else ""
        rows = self.query(SUMMARY_SQL_TEMPLATE.format(where_sql=where_sql), params)

        out: list[dict[str, Any]] = []
        for endpoint_v, n, recompute_rate, avg_precision, avg_ms in rows:
            out.append(
                {
                    "endpoint": endpoint_v,
                    "n": int(n),
                    "collarRecomputeRate": _safe_float(recompute_rate),
                    "avgPrecision": _safe_float(avg_precision),
                    "avgTotalMs": _safe_float(avg_ms),
                }
            )
        return out

    def reset(self) -> None:
        # Stop the writer first so it can't write to a closed connection.
        self.stop(timeout_s=2.0)
        with self._lock:
            self.conn.close()
            self.path.unlink(missing_ok=True)

    def _run(self) -> None:
        self.ensure_schema()
        batch: list[dict[str, Any]] = []
        last_flush = time.time()

        def flush_batch() -> None:
            nonlocal batch
            if not batch:
                return
            with self._lock:
                self.conn.executemany(
                    INSERT_EVENTS_SQL,
                    [
                        (
                            e["ts_ms"],
                            e["endpoint"],
                            e["session_id"],
                            e["field"],
                            e["zoom"],
                            e["precision"],
                            e["collar_recomputed"],
                            e["clause_types"],
                            e["viewport_top"],
                            e["viewport_left"],
                            e["viewport_bottom"],
                            e["viewport_right"],
                            e["stats_json"],
                        )
                        for e in batch
                    ],
                )
                self.conn.execute("CHECKPOINT;")
            batch = []

        while not self._stop.is_set():
            try:
                e = self._q.get(timeout=0.1)
            except queue.Empty:
                e = None

            if e is not None:
                batch.append(e)
                self._q.task_done()

            # Flush on size or time.
            now = time.time()
            if len(batch) >= 250 or (batch and (now - last_flush) >= 0.5):
                flush_batch()
                last_flush = now

        # Drain remaining
        try:
            while True:
                e = self._q.get_nowait()
                batch.append(e)
                self._q.task_done()
        except queue.Empty:
            pass
        flush_batch()
