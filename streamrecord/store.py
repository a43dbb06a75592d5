from __future__ import annotations

import json
import sqlite3
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, Optional

from .config import db_path


SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS meta (
        key TEXT PRIMARY KEY,
        value TEXT
    )
    """,
    # key-value records; expires_at is epoch seconds, NULL = no expiry
    """
    CREATE TABLE IF NOT EXISTS kv (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        expires_at REAL,
        updated_at TEXT DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE INDEX IF NOT EXISTS idx_kv_expires ON kv(expires_at)
    """,
]

SCHEMA_VERSION = "1"


@dataclass
class Store:
    """Key-value store with per-key TTL on top of SQLite.

    Only get/put semantics are exposed to the rest of the app; expired rows
    read as absent and are purged lazily by :meth:`sweep`.
    """

    db_path: str = field(default_factory=db_path)
    clock: Any = time.time
    _mem: Optional[sqlite3.Connection] = field(default=None, init=False, repr=False)

    def __post_init__(self):
        if self.db_path == ":memory:":
            self._mem = sqlite3.connect(":memory:", check_same_thread=False)
        else:
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        with self.connect() as con:
            cur = con.cursor()
            for stmt in SCHEMA:
                cur.execute(stmt)
            cur.execute("INSERT OR IGNORE INTO meta(key,value) VALUES('schema_version',?)", (SCHEMA_VERSION,))
            con.commit()

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        if self._mem is not None:
            yield self._mem
            return
        con = sqlite3.connect(self.db_path)
        try:
            con.execute("PRAGMA journal_mode=WAL")
            con.execute("PRAGMA synchronous=NORMAL")
        except sqlite3.DatabaseError:
            pass
        try:
            yield con
        finally:
            con.close()

    def get(self, key: str) -> Optional[str]:
        with self.connect() as con:
            row = con.execute("SELECT value, expires_at FROM kv WHERE key=?", (key,)).fetchone()
        if not row:
            return None
        value, expires_at = row
        if expires_at is not None and expires_at <= self.clock():
            return None
        return value

    def put(self, key: str, value: str, ttl_s: Optional[float] = None) -> None:
        expires_at = self.clock() + ttl_s if ttl_s else None
        with self.connect() as con:
            con.execute(
                """
                INSERT INTO kv(key, value, expires_at, updated_at)
                VALUES(?,?,?,datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    expires_at=excluded.expires_at,
                    updated_at=datetime('now')
                """,
                (key, value, expires_at),
            )
            con.commit()

    def delete(self, key: str) -> None:
        with self.connect() as con:
            con.execute("DELETE FROM kv WHERE key=?", (key,))
            con.commit()

    def get_json(self, key: str) -> Any:
        raw = self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    def put_json(self, key: str, data: Any, ttl_s: Optional[float] = None) -> None:
        self.put(key, json.dumps(data), ttl_s=ttl_s)

    def sweep(self) -> int:
        """Delete expired rows; returns how many were removed."""
        with self.connect() as con:
            cur = con.execute("DELETE FROM kv WHERE expires_at IS NOT NULL AND expires_at <= ?", (self.clock(),))
            con.commit()
            return cur.rowcount

    def count(self) -> int:
        with self.connect() as con:
            row = con.execute("SELECT COUNT(*) FROM kv").fetchone()
        return int(row[0]) if row else 0

    def get_meta(self, key: str) -> Optional[str]:
        with self.connect() as con:
            row = con.execute("SELECT value FROM meta WHERE key=?", (key,)).fetchone()
            return row[0] if row else None
