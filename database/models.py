"""Database CRUD operations.

Implements all data-access functions for the attribute code library, the
inventory ledger, and the per-key sequence high-water marks.
"""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from typing import Any

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    """Convert a sqlite3.Row to a plain dict, or return None."""
    if row is None:
        return None
    return dict(row)


def _rows_to_list(rows: list[sqlite3.Row]) -> list[dict[str, Any]]:
    """Convert a list of sqlite3.Row to a list of dicts."""
    return [dict(r) for r in rows]


def _inventory_row(row: sqlite3.Row | None) -> dict[str, Any] | None:
    """Like _row_to_dict, but exposes the sync flag as a bool."""
    item = _row_to_dict(row)
    if item is not None:
        item["synced_to_loyverse"] = bool(item["synced_to_loyverse"])
    return item


def _now() -> str:
    """Return the current UTC timestamp as an ISO-8601 string."""
    return datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")


def _build_update(
    table: str,
    key_column: str,
    key: Any,
    fields: dict[str, Any],
    allowed: set[str],
) -> tuple[str, list[Any]]:
    """Build a dynamic UPDATE statement from validated field names.

    Only columns in *allowed* are accepted — this whitelist check prevents
    SQL injection even though column names are interpolated into the query.

    Returns (sql, params) ready for ``conn.execute()``.
    """
    to_set: dict[str, Any] = {}
    for name, value in fields.items():
        if name in allowed:
            to_set[name] = value
    if not to_set:
        msg = "No valid fields to update"
        raise ValueError(msg)

    clauses = [f"{col} = ?" for col in to_set]
    params = list(to_set.values())
    params.append(key)
    sql = f"UPDATE {table} SET {', '.join(clauses)} WHERE {key_column} = ?"  # noqa: S608
    return sql, params


# ---------------------------------------------------------------------------
# Code library
# ---------------------------------------------------------------------------

CATEGORIES = ("types", "colors", "patterns", "sizes")

# Inventory column that references each category's code.
CATEGORY_COLUMNS = {
    "types": "type_code",
    "colors": "color_code",
    "patterns": "pattern_code",
    "sizes": "size_code",
}

_CATEGORY_ORDER = {
    "types": "name",
    "colors": "name",
    "patterns": "name",
    "sizes": "sort_order",
}


def _category_table(category: str) -> str:
    """Return the table for *category*, rejecting anything unknown."""
    if category not in CATEGORIES:
        msg = f"Invalid category: {category!r}"
        raise ValueError(msg)
    return category


def list_codes(conn: sqlite3.Connection, category: str) -> list[dict[str, Any]]:
    """Return every code in a category (sizes by rank, others by name)."""
    table = _category_table(category)
    order = _CATEGORY_ORDER[category]
    return _rows_to_list(
        conn.execute(f"SELECT * FROM {table} ORDER BY {order}").fetchall()  # noqa: S608
    )


def get_code_library(conn: sqlite3.Connection) -> dict[str, list[dict[str, Any]]]:
    """Return all four categories keyed by category name."""
    return {category: list_codes(conn, category) for category in CATEGORIES}


def get_code(
    conn: sqlite3.Connection,
    category: str,
    code: str,
) -> dict[str, Any] | None:
    """Return a single code from a category, or None."""
    table = _category_table(category)
    return _row_to_dict(
        conn.execute(f"SELECT * FROM {table} WHERE code = ?", (code,)).fetchone()  # noqa: S608
    )


def next_size_sort_order(conn: sqlite3.Connection) -> int:
    """Return the rank a newly added size should take."""
    row = conn.execute("SELECT COALESCE(MAX(sort_order), 0) FROM sizes").fetchone()
    return int(row[0]) + 1


def create_code(
    conn: sqlite3.Connection,
    category: str,
    code: str,
    name: str,
    hex_value: str | None = None,
    abbrev: str | None = None,
    sort_order: int | None = None,
) -> dict[str, Any] | None:
    """Insert a code and return it, or None if it already exists in the category."""
    table = _category_table(category)
    try:
        if table == "colors":
            conn.execute(
                "INSERT INTO colors (code, name, hex_value) VALUES (?, ?, ?)",
                (code, name, hex_value),
            )
        elif table == "sizes":
            if sort_order is None:
                sort_order = next_size_sort_order(conn)
            conn.execute(
                "INSERT INTO sizes (code, name, abbrev, sort_order) VALUES (?, ?, ?, ?)",
                (code, name, abbrev or code, sort_order),
            )
        else:
            conn.execute(
                f"INSERT INTO {table} (code, name) VALUES (?, ?)",  # noqa: S608
                (code, name),
            )
        conn.commit()
    except sqlite3.IntegrityError:
        conn.rollback()
        return None
    return get_code(conn, category, code)


def count_code_usage(conn: sqlite3.Connection, category: str, code: str) -> int:
    """Return how many inventory rows reference *code* in *category*."""
    _category_table(category)
    column = CATEGORY_COLUMNS[category]
    row = conn.execute(
        f"SELECT COUNT(*) FROM inventory WHERE {column} = ?",  # noqa: S608
        (code,),
    ).fetchone()
    return int(row[0])


def delete_code(conn: sqlite3.Connection, category: str, code: str) -> bool:
    """Delete a code. Returns True if a row was deleted.

    Raises sqlite3.IntegrityError if inventory still references it.
    """
    table = _category_table(category)
    cur = conn.execute(f"DELETE FROM {table} WHERE code = ?", (code,))  # noqa: S608
    conn.commit()
    return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Inventory ledger
# ---------------------------------------------------------------------------

_INVENTORY_SELECT = """
    SELECT i.*,
           t.name   AS type_name,
           c.name   AS color_name,
           c.hex_value AS color_hex,
           p.name   AS pattern_name,
           s.name   AS size_name,
           s.abbrev AS size_abbrev
    FROM inventory i
    LEFT JOIN types t    ON t.code = i.type_code
    LEFT JOIN colors c   ON c.code = i.color_code
    LEFT JOIN patterns p ON p.code = i.pattern_code
    LEFT JOIN sizes s    ON s.code = i.size_code
"""

_INVENTORY_UPDATE_ALLOWED = {
    "purchase_cost",
    "selling_price",
}


def find_skus_by_prefix(conn: sqlite3.Connection, prefix: str) -> list[str]:
    """Return every SKU starting with *prefix*, in ascending order."""
    rows = conn.execute(
        "SELECT sku FROM inventory WHERE substr(sku, 1, ?) = ? ORDER BY sku",
        (len(prefix), prefix),
    ).fetchall()
    return [row["sku"] for row in rows]


def get_sequence_high_water(conn: sqlite3.Connection, allocation_key: str) -> int:
    """Return the highest sequence ever issued for a key, or 0."""
    row = conn.execute(
        "SELECT last_seq FROM sku_sequences WHERE allocation_key = ?",
        (allocation_key,),
    ).fetchone()
    return int(row["last_seq"]) if row is not None else 0


def record_sequence(
    conn: sqlite3.Connection,
    allocation_key: str,
    sequence: int,
) -> None:
    """Raise the key's high-water mark to *sequence*. Never lowers it.

    Does not commit; callers run this inside their allocation transaction.
    """
    conn.execute(
        """
        INSERT INTO sku_sequences (allocation_key, last_seq)
        VALUES (?, ?)
        ON CONFLICT(allocation_key)
        DO UPDATE SET last_seq = MAX(last_seq, excluded.last_seq)
        """,
        (allocation_key, sequence),
    )


def insert_inventory_item(
    conn: sqlite3.Connection,
    record: dict[str, Any],
    commit: bool = True,
) -> dict[str, Any] | None:
    """Insert an inventory record and return it.

    Raises sqlite3.IntegrityError on a duplicate SKU.
    """
    conn.execute(
        """
        INSERT INTO inventory
            (sku, type_code, color_code, pattern_code, size_code, date_code,
             sequence_num, display_name, purchase_date, purchase_cost,
             selling_price, synced_to_loyverse)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 0)
        """,
        (
            record["sku"],
            record["type_code"],
            record["color_code"],
            record["pattern_code"],
            record["size_code"],
            record["date_code"],
            record["sequence_num"],
            record["display_name"],
            record["purchase_date"],
            record["purchase_cost"],
            record["selling_price"],
        ),
    )
    if commit:
        conn.commit()
    return get_inventory_item(conn, record["sku"])


def get_inventory_item(conn: sqlite3.Connection, sku: str) -> dict[str, Any] | None:
    """Return a single inventory item by SKU, with its code names."""
    return _inventory_row(
        conn.execute(_INVENTORY_SELECT + " WHERE i.sku = ?", (sku,)).fetchone()
    )


def list_inventory(
    conn: sqlite3.Connection,
    search: str | None = None,
    synced: bool | None = None,
    limit: int | None = 500,
    offset: int | None = None,
) -> list[dict[str, Any]]:
    """Return inventory newest first, optionally filtered and paginated."""
    sql = _INVENTORY_SELECT
    conditions: list[str] = []
    params: list[Any] = []

    if search:
        conditions.append("(i.sku LIKE ? OR i.display_name LIKE ?)")
        pattern = f"%{search}%"
        params.extend([pattern, pattern])
    if synced is not None:
        conditions.append("i.synced_to_loyverse = ?")
        params.append(1 if synced else 0)

    if conditions:
        sql += " WHERE " + " AND ".join(conditions)

    sql += " ORDER BY i.created_at DESC, i.sku DESC"

    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
        if offset is not None:
            sql += " OFFSET ?"
            params.append(offset)

    return [_inventory_row(r) for r in conn.execute(sql, params).fetchall()]


def get_inventory_by_skus(
    conn: sqlite3.Connection,
    skus: list[str],
) -> list[dict[str, Any]]:
    """Return the inventory items whose SKU is in *skus* (missing ones skipped)."""
    if not skus:
        return []
    placeholders = ", ".join("?" for _ in skus)
    rows = conn.execute(
        _INVENTORY_SELECT + f" WHERE i.sku IN ({placeholders}) ORDER BY i.sku",
        list(skus),
    ).fetchall()
    return [_inventory_row(r) for r in rows]


def update_inventory_item(
    conn: sqlite3.Connection,
    sku: str,
    **fields: Any,
) -> dict[str, Any] | None:
    """Update an item's cost/price and return the updated row."""
    fields["updated_at"] = _now()
    allowed = _INVENTORY_UPDATE_ALLOWED | {"updated_at"}
    sql, params = _build_update("inventory", "sku", sku, fields, allowed)
    conn.execute(sql, params)
    conn.commit()
    return get_inventory_item(conn, sku)


def mark_synced(
    conn: sqlite3.Connection,
    sku: str,
    commit: bool = True,
) -> dict[str, Any] | None:
    """Flag an item as pushed to the POS and stamp the sync time."""
    now = _now()
    conn.execute(
        """
        UPDATE inventory
        SET synced_to_loyverse = 1, loyverse_synced_at = ?, updated_at = ?
        WHERE sku = ?
        """,
        (now, now, sku),
    )
    if commit:
        conn.commit()
    return get_inventory_item(conn, sku)


def delete_inventory_item(conn: sqlite3.Connection, sku: str) -> bool:
    """Delete an inventory item by SKU. Returns True if a row was deleted.

    The key's high-water mark in sku_sequences is left as is.
    """
    cur = conn.execute("DELETE FROM inventory WHERE sku = ?", (sku,))
    conn.commit()
    return cur.rowcount > 0


# ---------------------------------------------------------------------------
# Reporting Queries
# ---------------------------------------------------------------------------


def get_inventory_summary(conn: sqlite3.Connection) -> dict[str, Any]:
    """Aggregate counts and totals across the whole inventory."""
    row = conn.execute(
        """
        SELECT
            COUNT(*)                                        AS total_items,
            COALESCE(SUM(synced_to_loyverse), 0)            AS synced,
            COALESCE(ROUND(SUM(purchase_cost), 2), 0)       AS total_cost,
            COALESCE(ROUND(SUM(selling_price), 2), 0)       AS total_value
        FROM inventory
        """
    ).fetchone()
    return dict(row)
