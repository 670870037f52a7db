"""
Repositories (SQL-only)
=======================
- Pure CRUD over the ``links`` table; no network logic here.
- Every call runs the blocking sqlite work in a worker thread while holding
  the shared lock, so concurrent callers see one writer at a time.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import time
from typing import List, Optional

from ..errors import DuplicateServerID, PersistenceFailed, RecordNotFound
from ..model import LinkRecord
from .db import connect, migrate

logger = logging.getLogger(__name__)


def _to_record(row: sqlite3.Row) -> LinkRecord:
    return LinkRecord(server_id=row["server_id"], local_id=row["local_id"])


class LinkStore:
    """Async CRUD helpers for the ``links`` table."""

    def __init__(self, conn: sqlite3.Connection, lock: asyncio.Lock | None = None):
        self.conn = conn
        self._lock = lock or asyncio.Lock()

    @classmethod
    def open(cls, path: Optional[str] = None) -> LinkStore:
        """Connect to ``path`` (in-memory when ``None``) and apply the schema."""
        conn = connect(path)
        migrate(conn)
        logger.debug("Link store opened at %s", path or ":memory:")
        return cls(conn)

    def close(self) -> None:
        self.conn.close()

    async def save(self, record: LinkRecord) -> None:
        """
        Insert ``record``, or update the stored row with the same ``local_id``.

        :raises DuplicateServerID: another row already holds ``record.server_id``.
        :raises PersistenceFailed: sqlite rejected the write.
        """

        def _run() -> None:
            with self.conn:
                existing = self.conn.execute(
                    "SELECT local_id FROM links WHERE local_id=?", (record.local_id,)
                ).fetchone()
                if existing is not None:
                    self.conn.execute(
                        "UPDATE links SET server_id=? WHERE local_id=?",
                        (record.server_id, record.local_id),
                    )
                    return
                taken = self.conn.execute(
                    "SELECT 1 FROM links WHERE server_id=?", (record.server_id,)
                ).fetchone()
                if taken is not None:
                    raise DuplicateServerID(record.server_id)
                self.conn.execute(
                    "INSERT INTO links (local_id, server_id, created_ts) VALUES (?, ?, ?)",
                    (record.local_id, record.server_id, time.time()),
                )

        try:
            async with self._lock:
                await asyncio.to_thread(_run)  # blocking sqlite call
        except sqlite3.IntegrityError as exc:
            # an in-place update collided with another row's server id
            raise DuplicateServerID(record.server_id) from exc
        except sqlite3.Error as exc:
            raise PersistenceFailed(exc) from exc

    async def load_all(self) -> List[LinkRecord]:
        """Return every stored record, oldest first."""
        sql = "SELECT local_id, server_id FROM links ORDER BY created_ts, rowid"

        def _query() -> List[LinkRecord]:
            return [_to_record(row) for row in self.conn.execute(sql).fetchall()]

        try:
            async with self._lock:
                return await asyncio.to_thread(_query)  # blocking sqlite call
        except sqlite3.Error as exc:
            raise PersistenceFailed(exc) from exc

    async def delete(self, server_id: str) -> None:
        """
        Remove the record holding ``server_id``.

        :raises RecordNotFound: nothing is stored under ``server_id``.
        """

        def _run() -> int:
            with self.conn:
                cur = self.conn.execute("DELETE FROM links WHERE server_id=?", (server_id,))
                return cur.rowcount

        try:
            async with self._lock:
                deleted = await asyncio.to_thread(_run)
        except sqlite3.Error as exc:
            raise PersistenceFailed(exc) from exc

        if not deleted:
            raise RecordNotFound(server_id)

    async def fetch_by_id(self, local_id: str) -> Optional[LinkRecord]:
        """Return the record stored under ``local_id`` or ``None``."""
        return await self._fetch_one("SELECT local_id, server_id FROM links WHERE local_id=?", local_id)

    async def fetch_by_server_id(self, server_id: str) -> Optional[LinkRecord]:
        """Return the record holding ``server_id`` or ``None``."""
        return await self._fetch_one("SELECT local_id, server_id FROM links WHERE server_id=?", server_id)

    async def _fetch_one(self, sql: str, key: str) -> Optional[LinkRecord]:
        def _query() -> Optional[LinkRecord]:
            row = self.conn.execute(sql, (key,)).fetchone()
            return _to_record(row) if row else None

        try:
            async with self._lock:
                return await asyncio.to_thread(_query)
        except sqlite3.Error as exc:
            raise PersistenceFailed(exc) from exc
