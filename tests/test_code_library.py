"""Tests for services.code_library."""

from __future__ import annotations

import sqlite3

import pytest

import database.models as models
from api.exceptions import ConflictError, NotFoundError, ValidationError
from services.code_library import add_code, remove_code


class TestAddCode:
    def test_type(self, db: sqlite3.Connection) -> None:
        row = add_code(db, "types", "km", " Kimono ")
        assert row["code"] == "KM"
        assert row["name"] == "Kimono"

    def test_invalid_category(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValidationError, match="Invalid category"):
            add_code(db, "brands", "AB", "Acme")

    @pytest.mark.parametrize(("code", "name"), [("", "Kimono"), ("KM", ""), (None, None)])
    def test_required(self, db: sqlite3.Connection, code: str | None, name: str | None) -> None:
        with pytest.raises(ValidationError, match="required"):
            add_code(db, "types", code, name)

    @pytest.mark.parametrize("code", ["K", "KMO"])
    def test_length(self, db: sqlite3.Connection, code: str) -> None:
        with pytest.raises(ValidationError, match="exactly 2"):
            add_code(db, "types", code, "Kimono")

    def test_duplicate(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ConflictError, match="already exists"):
            add_code(db, "colors", "BL", "Baby Blue")

    def test_same_code_other_category(self, db: sqlite3.Connection) -> None:
        row = add_code(db, "sizes", "DR", "Drop")
        assert row["code"] == "DR"

    def test_color_hex(self, db: sqlite3.Connection) -> None:
        row = add_code(db, "colors", "OL", "Olive", hex_value="#808000")
        assert row["hex_value"] == "#808000"

    def test_color_without_hex_is_null(self, db: sqlite3.Connection) -> None:
        row = add_code(db, "colors", "OL", "Olive", hex_value="")
        assert row["hex_value"] is None

    def test_bad_hex(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValidationError, match="hexValue"):
            add_code(db, "colors", "OL", "Olive", hex_value="olive")

    def test_size_abbrev_and_rank(self, db: sqlite3.Connection) -> None:
        row = add_code(db, "sizes", "4X", "4X Large", abbrev="4XL")
        assert row["abbrev"] == "4XL"
        assert row["sort_order"] == 9
        assert models.list_codes(db, "sizes")[-1]["code"] == "4X"

    def test_size_abbrev_defaults_to_code(self, db: sqlite3.Connection) -> None:
        assert add_code(db, "sizes", "4X", "4X Large")["abbrev"] == "4X"


class TestRemoveCode:
    def test_unused(self, db: sqlite3.Connection) -> None:
        remove_code(db, "patterns", "cm")
        assert models.get_code(db, "patterns", "CM") is None

    def test_in_use(self, db: sqlite3.Connection, sample_item: dict) -> None:
        with pytest.raises(ConflictError, match="1 inventory item"):
            remove_code(db, "sizes", "MD")
        assert models.get_code(db, "sizes", "MD") is not None

    def test_in_use_only_in_own_category(
        self, db: sqlite3.Connection, sample_item: dict
    ) -> None:
        # BL is used as a color by sample_item, not as a type
        remove_code(db, "types", "BL")
        assert models.get_code(db, "types", "BL") is None

    def test_missing(self, db: sqlite3.Connection) -> None:
        with pytest.raises(NotFoundError):
            remove_code(db, "patterns", "ZZ")

    def test_invalid_category(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValidationError):
            remove_code(db, "brands", "AB")
