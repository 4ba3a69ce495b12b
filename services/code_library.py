"""Code library administration.

Validation rules shared by the API and the CLI for adding and removing
attribute codes. Codes referenced by inventory can never be removed.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from typing import Any

import database.models as models
from api.exceptions import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_HEX_RE = re.compile(r"^#[0-9A-Fa-f]{6}$")


def _check_category(category: str) -> None:
    if category not in models.CATEGORIES:
        msg = "Invalid category"
        raise ValidationError(msg)


def add_code(
    conn: sqlite3.Connection,
    category: str,
    code: str | None,
    name: str | None,
    hex_value: str | None = None,
    abbrev: str | None = None,
) -> dict[str, Any]:
    """Validate and insert a new code. Returns the stored row."""
    _check_category(category)

    code = (code or "").strip().upper()
    name = (name or "").strip()
    if not code or not name:
        msg = "Code and name are required"
        raise ValidationError(msg)
    if len(code) != 2:
        msg = "Code must be exactly 2 characters"
        raise ValidationError(msg)

    hex_value = (hex_value or "").strip() or None
    if hex_value is not None and not _HEX_RE.match(hex_value):
        msg = "hexValue must look like #RRGGBB"
        raise ValidationError(msg)
    abbrev = (abbrev or "").strip() or None

    row = models.create_code(
        conn,
        category,
        code,
        name,
        hex_value=hex_value if category == "colors" else None,
        abbrev=abbrev if category == "sizes" else None,
    )
    if row is None:
        msg = "Code already exists"
        raise ConflictError(msg)

    logger.info("Added %s code %s (%s)", category, code, name)
    return row


def remove_code(conn: sqlite3.Connection, category: str, code: str) -> None:
    """Delete a code that no inventory item uses."""
    _check_category(category)
    code = code.strip().upper()

    in_use = models.count_code_usage(conn, category, code)
    if in_use > 0:
        msg = f"Cannot delete: {in_use} inventory item(s) use this code"
        raise ConflictError(msg)

    if not models.delete_code(conn, category, code):
        msg = f"Code {code} not found in {category}"
        raise NotFoundError(msg)

    logger.info("Deleted %s code %s", category, code)
