"""SKU allocation.

A SKU is the four attribute codes (type, color, pattern, size), the purchase
date as ``YYMMDD`` and a two-digit sequence number, e.g. ``DRBLFLMD25101701``.
The first fourteen characters are the allocation key; sequence numbers are
issued per key from 01 to 99.

The next sequence number is derived from the ledger (numeric max of the
existing suffixes, or the key's high-water mark if higher) rather than held
in memory. The read and the insert share one ``BEGIN IMMEDIATE`` transaction,
and the ``sku`` primary key rejects duplicates from any writer that bypasses
it; a duplicate triggers a bounded re-read and retry.
"""

from __future__ import annotations

import logging
import math
import sqlite3
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import database.models as models
from api.exceptions import (
    ConcurrentAllocationConflict,
    InvalidAmount,
    InvalidAttributeCode,
    InvalidDate,
    LedgerUnavailable,
    SequenceExhausted,
)
from config import settings

logger = logging.getLogger(__name__)

MAX_SEQUENCE = 99

# Singular labels used in error messages, in SKU order.
_CATEGORY_LABELS = {
    "types": "type",
    "colors": "color",
    "patterns": "pattern",
    "sizes": "size",
}


# ---------------------------------------------------------------------------
# Input parsing
# ---------------------------------------------------------------------------


def normalize_code(value: Any) -> str:
    """Strip and upper-case a submitted attribute code."""
    if value is None:
        return ""
    return str(value).strip().upper()


def parse_purchase_date(value: Any) -> date:
    """Accept a date, a datetime, or an ISO-8601 date/datetime string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    msg = f"Invalid purchase date: {value!r}"
    raise InvalidDate(msg)


def parse_amount(field: str, value: Any) -> Decimal:
    """Parse a money amount. Must be finite and non-negative."""
    if value is None or isinstance(value, bool):
        msg = f"{field} must be a number"
        raise InvalidAmount(msg)
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        msg = f"{field} must be a number"
        raise InvalidAmount(msg) from None
    if not amount.is_finite() or not math.isfinite(float(amount)):
        msg = f"{field} must be a finite number"
        raise InvalidAmount(msg)
    if amount < 0:
        msg = f"{field} must not be negative"
        raise InvalidAmount(msg)
    return amount


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def format_date_segment(value: date) -> str:
    """Return the ``YYMMDD`` segment for a purchase date."""
    return f"{value.year % 100:02d}{value.month:02d}{value.day:02d}"


def build_allocation_key(
    type_code: str,
    color_code: str,
    pattern_code: str,
    size_code: str,
    date_segment: str,
) -> str:
    """Concatenate the codes and date segment in SKU order."""
    return f"{type_code}{color_code}{pattern_code}{size_code}{date_segment}"


def format_sequence(sequence: int) -> str:
    return f"{sequence:02d}"


def next_sequence(existing_skus: list[str], high_water: int = 0) -> int:
    """Return the sequence number after the highest one already issued.

    Suffixes are compared as integers: ``"09"`` < ``"10"`` numerically and
    callers may hand SKUs in any order.
    """
    highest = max((int(sku[-2:]) for sku in existing_skus), default=0)
    return max(highest, high_water) + 1


def format_display_name(
    type_row: dict[str, Any],
    color_row: dict[str, Any],
    pattern_row: dict[str, Any],
    size_row: dict[str, Any],
) -> str:
    """Build ``"{Type}, {Color} {Pattern}, {SizeAbbrev}"``."""
    return (
        f"{type_row['name']}, {color_row['name']} {pattern_row['name']}, "
        f"{size_row['abbrev']}"
    )


def resolve_codes(
    conn: sqlite3.Connection,
    type_code: str,
    color_code: str,
    pattern_code: str,
    size_code: str,
) -> dict[str, dict[str, Any]]:
    """Look every code up in its category. Raises InvalidAttributeCode."""
    submitted = dict(zip(models.CATEGORIES, (type_code, color_code, pattern_code, size_code)))
    resolved: dict[str, dict[str, Any]] = {}
    for category, code in submitted.items():
        label = _CATEGORY_LABELS[category]
        if not code:
            raise InvalidAttributeCode(label, code)
        try:
            row = models.get_code(conn, category, code)
        except sqlite3.OperationalError as exc:
            raise LedgerUnavailable(f"Code library unavailable: {exc}") from exc
        if row is None:
            raise InvalidAttributeCode(label, code)
        resolved[category] = row
    return resolved


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def _is_duplicate_sku(exc: sqlite3.IntegrityError) -> bool:
    return "inventory.sku" in str(exc)


def _allocate_once(
    conn: sqlite3.Connection,
    allocation_key: str,
    record: dict[str, Any],
) -> dict[str, Any] | None:
    """Read the key's max sequence and insert the next SKU in one transaction.

    Uses BEGIN IMMEDIATE so the read and the write hold the database write
    lock together. Temporarily switches to autocommit (isolation_level = None)
    to avoid conflict with Python's implicit transaction management.
    """
    original_isolation = conn.isolation_level
    try:
        conn.isolation_level = None
        conn.execute("BEGIN IMMEDIATE")
        try:
            existing = models.find_skus_by_prefix(conn, allocation_key)
            high_water = models.get_sequence_high_water(conn, allocation_key)
            sequence = next_sequence(existing, high_water)
            if sequence > MAX_SEQUENCE:
                raise SequenceExhausted(allocation_key)

            sequence_num = format_sequence(sequence)
            record = {
                **record,
                "sku": allocation_key + sequence_num,
                "sequence_num": sequence_num,
            }
            item = models.insert_inventory_item(conn, record, commit=False)
            models.record_sequence(conn, allocation_key, sequence)
            conn.execute("COMMIT")
        except BaseException:
            conn.execute("ROLLBACK")
            raise
    finally:
        conn.isolation_level = original_isolation
    return item


def allocate_sku(
    conn: sqlite3.Connection,
    type_code: Any,
    color_code: Any,
    pattern_code: Any,
    size_code: Any,
    purchase_date: Any,
    purchase_cost: Any,
    selling_price: Any,
    *,
    max_attempts: int | None = None,
) -> dict[str, Any]:
    """Allocate the next SKU for these attributes and persist the item.

    Returns the stored inventory record. Raises InvalidAttributeCode,
    InvalidDate, InvalidAmount, SequenceExhausted,
    ConcurrentAllocationConflict or LedgerUnavailable; nothing is written
    when any of them is raised.
    """
    codes = [normalize_code(c) for c in (type_code, color_code, pattern_code, size_code)]
    day = parse_purchase_date(purchase_date)
    cost = parse_amount("purchase_cost", purchase_cost)
    price = parse_amount("selling_price", selling_price)

    resolved = resolve_codes(conn, *codes)

    date_segment = format_date_segment(day)
    allocation_key = build_allocation_key(*codes, date_segment)
    base_record = {
        "type_code": codes[0],
        "color_code": codes[1],
        "pattern_code": codes[2],
        "size_code": codes[3],
        "date_code": date_segment,
        "display_name": format_display_name(
            resolved["types"], resolved["colors"], resolved["patterns"], resolved["sizes"]
        ),
        "purchase_date": day.isoformat(),
        "purchase_cost": float(cost),
        "selling_price": float(price),
    }

    attempts = max_attempts if max_attempts is not None else settings.allocation_max_attempts
    for attempt in range(1, attempts + 1):
        try:
            item = _allocate_once(conn, allocation_key, base_record)
        except sqlite3.IntegrityError as exc:
            if not _is_duplicate_sku(exc):
                raise
            logger.warning(
                "SKU collision for %s (attempt %d/%d), retrying",
                allocation_key, attempt, attempts,
            )
            continue
        except sqlite3.OperationalError as exc:
            logger.warning("Ledger error while allocating %s: %s", allocation_key, exc)
            raise LedgerUnavailable(f"Inventory ledger unavailable: {exc}") from exc

        if item is None:
            # The insert succeeded, so only a concurrent delete can get here.
            raise LedgerUnavailable(f"Allocated SKU for {allocation_key} vanished")
        logger.info("Allocated SKU %s (%s)", item["sku"], item["display_name"])
        return item

    raise ConcurrentAllocationConflict(allocation_key, attempts)


def peek_next_sku(
    conn: sqlite3.Connection,
    type_code: Any,
    color_code: Any,
    pattern_code: Any,
    size_code: Any,
    purchase_date: Any,
) -> str:
    """Return the SKU the next allocation would get, without writing.

    Raises SequenceExhausted when the key has no numbers left.
    """
    codes = [normalize_code(c) for c in (type_code, color_code, pattern_code, size_code)]
    day = parse_purchase_date(purchase_date)
    resolve_codes(conn, *codes)

    allocation_key = build_allocation_key(*codes, format_date_segment(day))
    sequence = next_sequence(
        models.find_skus_by_prefix(conn, allocation_key),
        models.get_sequence_high_water(conn, allocation_key),
    )
    if sequence > MAX_SEQUENCE:
        raise SequenceExhausted(allocation_key)
    return allocation_key + format_sequence(sequence)
