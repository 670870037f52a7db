"""
SQLite bootstrap and connection helpers
=======================================

- ``:memory:`` databases for tests and throwaway sessions.
- WAL + pragmatic PRAGMAs for file-backed databases.
"""

from __future__ import annotations

import pathlib
import sqlite3
from typing import Optional

MEMORY = ":memory:"


def connect(path: Optional[str] = None) -> sqlite3.Connection:
    target = path or MEMORY
    if target != MEMORY:
        pathlib.Path(target).parent.mkdir(parents=True, exist_ok=True)

    # Autocommit; we use explicit `with conn:` blocks in worker threads.
    conn = sqlite3.connect(
        target,
        isolation_level=None,
        check_same_thread=False,
    )

    if target != MEMORY:
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
    conn.execute("PRAGMA busy_timeout=3000;")    # 3s

    # dict-like rows
    conn.row_factory = sqlite3.Row

    return conn


def migrate(conn: sqlite3.Connection) -> None:
    """
    Execute schema.sql (idempotent). The schema only uses IF NOT EXISTS
    statements.
    """
    schema_file = pathlib.Path(__file__).with_name("schema.sql")
    sql = schema_file.read_text(encoding="utf-8")
    with conn:  # single transaction for the whole migration
        conn.executescript(sql)
