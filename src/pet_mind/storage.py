"""SQLite storage. Un archivo = una mascota."""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path

from pet_mind.models import Trace


class Storage:
    """SQLite backend. Zero config. Portable.

    Memories are kept as a single opaque blob per key; the caller owns the
    format. Traces get their own table.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path) if str(path) != ":memory:" else None
        # Timer threads may persist; the memory store serializes access.
        self.conn = sqlite3.connect(str(path), check_same_thread=False)
        try:
            if self.path is not None:
                self.conn.execute("PRAGMA journal_mode=WAL")
            self._init_schema()
        except sqlite3.Error:
            self.conn.close()
            raise

    def _init_schema(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS kv (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at REAL NOT NULL
            );

            CREATE TABLE IF NOT EXISTS traces (
                id TEXT PRIMARY KEY,
                operation TEXT NOT NULL,
                input_text TEXT NOT NULL DEFAULT '',
                output_text TEXT NOT NULL DEFAULT '',
                duration_ms REAL,
                metadata TEXT NOT NULL DEFAULT '{}',
                created_at REAL NOT NULL
            );
            CREATE INDEX IF NOT EXISTS idx_traces_operation
                ON traces(operation);
            CREATE INDEX IF NOT EXISTS idx_traces_created
                ON traces(created_at DESC);
        """)
        self.conn.commit()

    # ── Blobs ──────────────────────────────────────────────────────────

    def save_blob(self, key: str, value: str) -> None:
        self.conn.execute(
            """INSERT OR REPLACE INTO kv (key, value, updated_at)
               VALUES (?, ?, ?)""",
            (key, value, time.time()),
        )
        self.conn.commit()

    def load_blob(self, key: str) -> str | None:
        row = self.conn.execute(
            "SELECT value FROM kv WHERE key = ?", (key,)
        ).fetchone()
        if row is None:
            return None
        return row[0]

    def delete_blob(self, key: str) -> bool:
        cursor = self.conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        self.conn.commit()
        return cursor.rowcount > 0

    # ── Traces ─────────────────────────────────────────────────────────

    def save_trace(self, trace: Trace) -> None:
        self.conn.execute(
            """INSERT INTO traces
               (id, operation, input_text, output_text,
                duration_ms, metadata, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                trace.id, trace.operation, trace.input_text,
                trace.output_text, trace.duration_ms,
                json.dumps(trace.metadata), trace.created_at,
            ),
        )
        self.conn.commit()

    def load_traces(self, operation: str | None = None,
                    limit: int = 100) -> list[Trace]:
        query = "SELECT * FROM traces WHERE 1=1"
        params: list = []
        if operation is not None:
            query += " AND operation = ?"
            params.append(operation)
        query += " ORDER BY created_at DESC LIMIT ?"
        params.append(limit)
        rows = self.conn.execute(query, params).fetchall()
        return [self._row_to_trace(r) for r in rows]

    # ── Close ──────────────────────────────────────────────────────────

    def close(self) -> None:
        self.conn.close()

    # ── Row mappers ────────────────────────────────────────────────────

    @staticmethod
    def _row_to_trace(row: tuple) -> Trace:
        return Trace(
            id=row[0],
            operation=row[1],
            input_text=row[2],
            output_text=row[3],
            duration_ms=row[4],
            metadata=json.loads(row[5]),
            created_at=row[6],
        )
