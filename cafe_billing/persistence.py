"""SQLite persistence for whole-record JSON documents."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Mapping

from cafe_billing.config import DB_PATH
from cafe_billing.errors import CorruptRecord
from cafe_billing.models import format_timestamp, utc_now

logger = logging.getLogger(__name__)


class RecordStore:
    """Key to JSON document store where every write replaces a whole record."""

    def __init__(self, db_path: str | Path | None = None) -> None:
        self.db_path = Path(db_path if db_path is not None else DB_PATH)
        self._schema_ready = False

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def bootstrap_schema(self) -> None:
        """Create persistence schema if it does not already exist."""
        if self._schema_ready:
            return
        with self._connect() as conn:
            conn.executescript(
                """
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
        conn.close()
        self._schema_ready = True

    def read(self, key: str) -> Any | None:
        """Return the decoded record, or None when nothing is stored under key."""
        self.bootstrap_schema()
        conn = self._connect()
        try:
            row = conn.execute("SELECT payload FROM records WHERE key = ?", (key,)).fetchone()
        finally:
            conn.close()
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except json.JSONDecodeError as exc:
            raise CorruptRecord(key, str(exc)) from exc

    def write(self, key: str, value: Any) -> None:
        self.write_many({key: value})

    def write_many(self, records: Mapping[str, Any]) -> None:
        """Replace several records in one transaction."""
        payloads = [(key, json.dumps(value, ensure_ascii=False)) for key, value in records.items()]
        updated_at = format_timestamp(utc_now())
        self.bootstrap_schema()
        conn = self._connect()
        try:
            with conn:
                conn.executemany(
                    """
                    INSERT INTO records (key, payload, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET payload = excluded.payload, updated_at = excluded.updated_at
                    """,
                    [(key, payload, updated_at) for key, payload in payloads],
                )
        finally:
            conn.close()
        logger.debug("records_written keys=%s", sorted(records))

    def delete(self, key: str) -> None:
        self.bootstrap_schema()
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM records WHERE key = ?", (key,))
        finally:
            conn.close()
        logger.debug("record_deleted key=%s", key)
