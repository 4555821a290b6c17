from __future__ import annotations

import json
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import duckdb

from persistence.sql import (
    CREATE_OVERLAYS_TABLE_SQL,
    DELETE_ANALYSIS_SQL,
    LIST_ANALYSES_SQL,
    SELECT_ANALYSIS_SQL,
    UPSERT_OVERLAY_SQL,
)

STATE_KINDS: tuple[str, ...] = (
    "data",
    "clusters",
    "dragged",
    "resized",
    "rotations",
    "reshapes",
    "breakpoints",
    "selection",
)


class OverlayStore(Protocol):
    def write(self, analysis_id: str, kind: str, payload: Any) -> None: ...

    def read(self, analysis_id: str) -> dict[str, Any]: ...

    def list_analyses(self) -> list[dict[str, Any]]: ...

    def delete(self, analysis_id: str) -> None: ...


@dataclass
class DuckDBOverlayStore:
    """
    Per-analysis keyed store: one JSON payload per state kind, last write wins.

    Writes are synchronous; callers defer them through the write-behind queue.
    """

    path: Path
    conn: duckdb.DuckDBPyConnection
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)

    def ensure_schema(self) -> None:
        with self._lock:
            self.conn.execute(CREATE_OVERLAYS_TABLE_SQL)

    def write(self, analysis_id: str, kind: str, payload: Any) -> None:
        if kind not in STATE_KINDS:
            raise ValueError(f"Unknown state kind: {kind}")
        with self._lock:
            self.conn.execute(
                UPSERT_OVERLAY_SQL,
                [
                    str(analysis_id),
                    kind,
                    int(time.time() * 1000),
                    json.dumps(payload, ensure_ascii=False),
                ],
            )

    def read(self, analysis_id: str) -> dict[str, Any]:
        """
        Full stored state of an analysis ({} if unknown).
        """
        rows = self.query(SELECT_ANALYSIS_SQL, [str(analysis_id)])
        return {kind: json.loads(payload) for kind, payload in rows if payload}

    def list_analyses(self) -> list[dict[str, Any]]:
        rows = self.query(LIST_ANALYSES_SQL)
        return [
            {"analysisId": aid, "kinds": int(n), "updatedMs": int(ts or 0)}
            for aid, n, ts in rows
        ]

    def delete(self, analysis_id: str) -> None:
        with self._lock:
            self.conn.execute(DELETE_ANALYSIS_SQL, [str(analysis_id)])

    def query(self, sql: str, params: list[Any] | None = None) -> list[tuple]:
        with self._lock:
            if params:
                return self.conn.execute(sql, params).fetchall()
            return self.conn.execute(sql).fetchall()

    def close(self) -> None:
        with self._lock:
            self.conn.close()

    def reset(self) -> None:
        # Drop the database file entirely (tests / dev resets).
        with self._lock:
            try:
                self.conn.close()
            except Exception:
                pass
            self.path.unlink(missing_ok=True)


@dataclass
class MemoryOverlayStore:
    """
    Dict-backed store for sessions that run with persistence switched off.
    """

    rows: dict[str, dict[str, Any]] = field(default_factory=dict)
    updated_ms: dict[str, int] = field(default_factory=dict)

    def write(self, analysis_id: str, kind: str, payload: Any) -> None:
        if kind not in STATE_KINDS:
            raise ValueError(f"Unknown state kind: {kind}")
        # Same JSON boundary as the DuckDB store, so restores behave identically.
        self.rows.setdefault(str(analysis_id), {})[kind] = json.loads(json.dumps(payload))
        self.updated_ms[str(analysis_id)] = int(time.time() * 1000)

    def read(self, analysis_id: str) -> dict[str, Any]:
        return json.loads(json.dumps(self.rows.get(str(analysis_id), {})))

    def list_analyses(self) -> list[dict[str, Any]]:
        out = [
            {"analysisId": aid, "kinds": len(kinds), "updatedMs": self.updated_ms.get(aid, 0)}
            for aid, kinds in self.rows.items()
        ]
        return sorted(out, key=lambda r: r["updatedMs"], reverse=True)

    def delete(self, analysis_id: str) -> None:
        self.rows.pop(str(analysis_id), None)
        self.updated_ms.pop(str(analysis_id), None)
