# src/dinostake/runtime/sqlite_db.py
from __future__ import annotations

import json
import os
import random
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Mapping, Optional

from dinostake.runtime.doc_store import DocumentStore

Json = Dict[str, Any]


def _now_ms() -> int:
    return int(time.time() * 1000)


def _canon_json(obj: Any) -> str:
    """Canonical JSON encoding.

    Unknown types (e.g. Decimal) must be converted by the record layer first;
    never coerce with default=str here.
    """
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def _env_int(name: str, default: int) -> int:
    try:
        raw = str(os.environ.get(name, "")).strip()
        return int(raw) if raw else int(default)
    except Exception:
        return int(default)


class SqliteDB:
    """SQLite manager for the document store.

    Design goals:
      - single durable DB file
      - cross-thread safe by never sharing connections
      - bounded retry on writer-lock contention in write_tx()
    """

    SCHEMA_VERSION = 1

    def __init__(self, *, path: str) -> None:
        self.path = str(path)

    @staticmethod
    def _sqlite_synchronous_pragma() -> str:
        """PRAGMA synchronous: FULL in prod, NORMAL otherwise.

        Override with DINOSTAKE_SQLITE_SYNCHRONOUS in {OFF,NORMAL,FULL,EXTRA}.
        """
        mode = (os.environ.get("DINOSTAKE_MODE") or "prod").strip().lower()
        default = "FULL" if mode == "prod" else "NORMAL"
        raw = (os.environ.get("DINOSTAKE_SQLITE_SYNCHRONOUS") or default).strip().upper()
        if raw not in {"OFF", "NORMAL", "FULL", "EXTRA"}:
            raw = default
        return raw

    def ensure_parent_dir(self) -> None:
        Path(self.path).parent.mkdir(parents=True, exist_ok=True)

    def _connect(self) -> sqlite3.Connection:
        self.ensure_parent_dir()

        connect_timeout_s = float(_env_int("DINOSTAKE_SQLITE_CONNECT_TIMEOUT_MS", 30_000)) / 1000.0

        con = sqlite3.connect(
            self.path,
            timeout=connect_timeout_s,
            isolation_level=None,  # we manage BEGIN/COMMIT ourselves
            check_same_thread=False,
        )
        con.row_factory = sqlite3.Row

        allow_non_wal = (os.environ.get("DINOSTAKE_SQLITE_ALLOW_NON_WAL") or "").strip() in {"1", "true", "TRUE"}
        row = con.execute("PRAGMA journal_mode=WAL;").fetchone()
        mode = str(row[0]).strip().lower() if row is not None else ""
        if mode and mode != "wal" and not allow_non_wal:
            con.close()
            raise RuntimeError(f"sqlite journal_mode is '{mode}', expected 'wal'")

        con.execute(f"PRAGMA synchronous={self._sqlite_synchronous_pragma()};")
        con.execute("PRAGMA foreign_keys=ON;")
        con.execute("PRAGMA temp_store=MEMORY;")

        busy_ms = max(0, _env_int("DINOSTAKE_SQLITE_BUSY_TIMEOUT_MS", int(connect_timeout_s * 1000)))
        con.execute(f"PRAGMA busy_timeout={busy_ms};")

        return con

    def init_schema(self) -> None:
        with self.write_tx() as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                  key TEXT PRIMARY KEY,
                  value TEXT NOT NULL
                );
                """
            )
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                  doc_key TEXT PRIMARY KEY,
                  doc_json TEXT NOT NULL,
                  updated_ts_ms INTEGER NOT NULL
                );
                """
            )

            row = con.execute("SELECT value FROM meta WHERE key='schema_version' LIMIT 1;").fetchone()
            if row is None:
                con.execute("INSERT INTO meta(key, value) VALUES('schema_version', ?);", (str(self.SCHEMA_VERSION),))
            else:
                try:
                    v = int(str(row["value"]))
                except Exception:
                    v = 0
                if v != self.SCHEMA_VERSION:
                    raise RuntimeError(
                        f"sqlite schema_version mismatch: have={v} want={self.SCHEMA_VERSION}. "
                        "Refuse to start to avoid corrupting data."
                    )

    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        con = self._connect()
        try:
            yield con
        finally:
            con.close()

    @staticmethod
    def _is_locked_error(e: Exception) -> bool:
        msg = str(e).lower()
        return ("database is locked" in msg) or ("database is busy" in msg)

    def _backoff(self, attempt: int) -> None:
        base_sleep = max(0.001, float(_env_int("DINOSTAKE_SQLITE_WRITE_BACKOFF_BASE_MS", 5)) / 1000.0)
        max_sleep = max(base_sleep, float(_env_int("DINOSTAKE_SQLITE_WRITE_BACKOFF_MAX_MS", 250)) / 1000.0)
        sleep_s = min(max_sleep, base_sleep * (2.0 ** min(attempt, 8)))
        time.sleep(sleep_s * (0.5 + random.random()))

    @contextmanager
    def write_tx(self) -> Iterator[sqlite3.Connection]:
        """Write transaction with bounded retry on BEGIN IMMEDIATE / COMMIT contention.

        Raises (fail closed) once DINOSTAKE_SQLITE_WRITE_DEADLINE_MS is exhausted.
        """
        deadline_ts = _now_ms() + max(250, _env_int("DINOSTAKE_SQLITE_WRITE_DEADLINE_MS", 30_000))

        with self.connection() as con:
            attempt = 0
            while True:
                try:
                    con.execute("BEGIN IMMEDIATE;")
                    break
                except sqlite3.OperationalError as e:
                    if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                        raise
                    self._backoff(attempt)
                    attempt += 1

            try:
                yield con

                c_attempt = 0
                while True:
                    try:
                        con.execute("COMMIT;")
                        break
                    except sqlite3.OperationalError as e:
                        if not self._is_locked_error(e) or _now_ms() >= deadline_ts:
                            raise
                        self._backoff(c_attempt)
                        c_attempt += 1
            except Exception:
                try:
                    con.execute("ROLLBACK;")
                except sqlite3.Error:
                    pass
                raise


class SqliteDocumentStore(DocumentStore):
    """Document store persisted in SQLite; merges run inside one write transaction."""

    def __init__(self, *, db: SqliteDB) -> None:
        super().__init__()
        self._db = db
        self._db.init_schema()

    @staticmethod
    def _load(row: Optional[sqlite3.Row], key: str) -> Optional[Json]:
        if row is None:
            return None
        doc = json.loads(str(row["doc_json"]))
        if not isinstance(doc, dict):
            raise ValueError(f"document {key!r} is not a JSON object")
        return doc

    def get(self, key: str) -> Optional[Json]:
        with self._db.connection() as con:
            row = con.execute("SELECT doc_json FROM documents WHERE doc_key=?;", (key,)).fetchone()
            return self._load(row, key)

    def _merge_many(self, updates: Mapping[str, Json]) -> Dict[str, Json]:
        committed: Dict[str, Json] = {}
        now = _now_ms()
        with self._db.write_tx() as con:
            for key, fields in updates.items():
                base = committed.get(key)
                if base is None:
                    row = con.execute("SELECT doc_json FROM documents WHERE doc_key=?;", (key,)).fetchone()
                    base = self._load(row, key) or {}
                base.update(fields)
                committed[key] = base
                con.execute(
                    """
                    INSERT INTO documents(doc_key, doc_json, updated_ts_ms)
                    VALUES(?, ?, ?)
                    ON CONFLICT(doc_key) DO UPDATE SET
                      doc_json=excluded.doc_json,
                      updated_ts_ms=excluded.updated_ts_ms;
                    """,
                    (key, _canon_json(base), now),
                )
        return committed


__all__ = ["SqliteDB", "SqliteDocumentStore"]
