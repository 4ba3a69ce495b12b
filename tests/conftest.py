"""Shared test fixtures."""

from __future__ import annotations

import sqlite3
from collections.abc import Generator
from pathlib import Path
from typing import Any

import pytest

from config import settings
from database.connection import apply_schema, get_db, init_database
from database.seed import seed_code_library
from services.sku_allocator import allocate_sku


@pytest.fixture
def db() -> Generator[sqlite3.Connection, None, None]:
    """In-memory SQLite database with the full schema and default codes."""
    conn = sqlite3.connect(":memory:")
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys=ON")
    apply_schema(conn)
    seed_code_library(conn)
    yield conn
    conn.close()


@pytest.fixture
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """File-backed, seeded database that the app and CLI are pointed at."""
    path = str(tmp_path / "inventory.db")
    init_database(path)
    monkeypatch.setattr(settings, "database_path", path)
    return path


@pytest.fixture
def file_db(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """A connection to the same file the app uses."""
    conn = get_db(db_path)
    yield conn
    conn.close()


@pytest.fixture
def client(db_path: str):
    """Flask test client backed by the file database."""
    from api.app import create_app

    app = create_app()
    app.config["TESTING"] = True
    return app.test_client()


@pytest.fixture
def sample_item(db: sqlite3.Connection) -> dict[str, Any]:
    """Allocate and return a Blue Floral Dress, size M, bought 2025-10-17."""
    return allocate_sku(db, "DR", "BL", "FL", "MD", "2025-10-17", "12.50", "39.99")
