"""Default clothing code library.

Loaded by ``init_database`` and the ``init-db`` CLI command. Existing codes
are left untouched so a shop's own edits survive a re-seed.
"""

from __future__ import annotations

import logging
import sqlite3

logger = logging.getLogger(__name__)

DEFAULT_TYPES: list[tuple[str, str]] = [
    ("SH", "Shirt"),
    ("BL", "Blouse"),
    ("DR", "Dress"),
    ("SK", "Skirt"),
    ("PN", "Pants"),
    ("JN", "Jeans"),
    ("JK", "Jacket"),
    ("CT", "Coat"),
    ("SW", "Sweater"),
    ("TS", "T-Shirt"),
    ("TK", "Tank Top"),
    ("ST", "Shorts"),
    ("JM", "Jumpsuit"),
    ("RO", "Romper"),
    ("VT", "Vest"),
    ("CR", "Cardigan"),
    ("HD", "Hoodie"),
    ("LG", "Leggings"),
]

DEFAULT_COLORS: list[tuple[str, str, str | None]] = [
    ("BK", "Black", "#000000"),
    ("WT", "White", "#FFFFFF"),
    ("GY", "Gray", "#808080"),
    ("NV", "Navy", "#000080"),
    ("BL", "Blue", "#0000FF"),
    ("RD", "Red", "#FF0000"),
    ("PK", "Pink", "#FFC0CB"),
    ("PR", "Purple", "#800080"),
    ("GN", "Green", "#008000"),
    ("YL", "Yellow", "#FFFF00"),
    ("OR", "Orange", "#FFA500"),
    ("BR", "Brown", "#8B4513"),
    ("BG", "Beige", "#F5F5DC"),
    ("CR", "Cream", "#FFFDD0"),
    ("TN", "Tan", "#D2B48C"),
    ("MV", "Mauve", "#E0B0FF"),
    ("TL", "Teal", "#008080"),
    ("BU", "Burgundy", "#800020"),
    ("MT", "Multi", None),
]

DEFAULT_PATTERNS: list[tuple[str, str]] = [
    ("SD", "Solid"),
    ("ST", "Striped"),
    ("PL", "Plaid"),
    ("FL", "Floral"),
    ("DT", "Dotted"),
    ("CK", "Checkered"),
    ("PR", "Printed"),
    ("AB", "Abstract"),
    ("AN", "Animal Print"),
    ("CM", "Camouflage"),
    ("PS", "Paisley"),
    ("GE", "Geometric"),
    ("TY", "Tie-Dye"),
    ("EM", "Embroidered"),
    ("LN", "Linen"),
    ("DN", "Denim"),
]

# (code, name, abbrev, sort_order)
DEFAULT_SIZES: list[tuple[str, str, str, int]] = [
    ("XS", "Extra Small", "XS", 1),
    ("SM", "Small", "S", 2),
    ("MD", "Medium", "M", 3),
    ("LG", "Large", "L", 4),
    ("XL", "Extra Large", "XL", 5),
    ("2X", "2X Large", "2XL", 6),
    ("3X", "3X Large", "3XL", 7),
    ("OS", "One Size", "OS", 8),
]


def seed_code_library(conn: sqlite3.Connection) -> dict[str, int]:
    """Insert the default codes, skipping any that already exist.

    Returns the number of rows actually inserted per category.
    """
    inserted: dict[str, int] = {}

    cur = conn.executemany(
        "INSERT OR IGNORE INTO types (code, name) VALUES (?, ?)",
        DEFAULT_TYPES,
    )
    inserted["types"] = cur.rowcount
    cur = conn.executemany(
        "INSERT OR IGNORE INTO colors (code, name, hex_value) VALUES (?, ?, ?)",
        DEFAULT_COLORS,
    )
    inserted["colors"] = cur.rowcount
    cur = conn.executemany(
        "INSERT OR IGNORE INTO patterns (code, name) VALUES (?, ?)",
        DEFAULT_PATTERNS,
    )
    inserted["patterns"] = cur.rowcount
    cur = conn.executemany(
        "INSERT OR IGNORE INTO sizes (code, name, abbrev, sort_order) VALUES (?, ?, ?, ?)",
        DEFAULT_SIZES,
    )
    inserted["sizes"] = cur.rowcount
    conn.commit()

    logger.info("Seeded code library: %s", inserted)
    return inserted
