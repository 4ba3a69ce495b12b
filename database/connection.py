"""SQLite connection helpers."""

from __future__ import annotations

import sqlite3
from pathlib import Path

_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"


def get_db(db_path: str, timeout: float = 5.0) -> sqlite3.Connection:
    """Return a configured SQLite connection.

    Enables WAL mode, foreign keys, and sqlite3.Row factory. *timeout* is
    how long a writer waits on another writer's lock before giving up.
    """
    conn = sqlite3.connect(db_path, timeout=timeout)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA foreign_keys=ON")
    return conn


def apply_schema(conn: sqlite3.Connection) -> None:
    """Execute schema.sql against an open connection."""
    conn.executescript(_SCHEMA_PATH.read_text())


def init_database(db_path: str, seed: bool = True) -> None:
    """Create all tables and optionally load the default code library.

    Safe to call repeatedly: the schema uses CREATE TABLE IF NOT EXISTS and
    seeding skips codes that already exist.
    """
    from database.seed import seed_code_library

    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_db(db_path)
    try:
        apply_schema(conn)
        if seed:
            seed_code_library(conn)
    finally:
        conn.close()
