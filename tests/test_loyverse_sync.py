"""Tests for services.loyverse_sync — Loyverse REST API integration."""

from __future__ import annotations

import json
import sqlite3

import pytest
import requests
import responses
from responses import matchers

import database.models as models
from api.exceptions import LoyverseSyncError, NotFoundError, ValidationError
from services.loyverse_sync import (
    _api_request,
    _get_store_id,
    build_loyverse_item,
    sync_items,
)
from services.sku_allocator import allocate_sku

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

API = "https://api.test.loyverse.com/v1.0"


class _MockSettings:
    """Minimal settings stub for Loyverse tests."""

    loyverse_api_token = "lv_test_token"
    loyverse_api_url = API


@pytest.fixture(autouse=True)
def _patch_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace settings in loyverse_sync with test values and reset caches."""
    monkeypatch.setattr("services.loyverse_sync.settings", _MockSettings())
    monkeypatch.setattr("services.loyverse_sync._cached_store_id", None)


def _mock_store_and_categories() -> None:
    responses.add(responses.GET, f"{API}/stores", json={"stores": [{"id": "store-1"}]})
    responses.add(
        responses.GET,
        f"{API}/categories",
        json={"categories": [{"id": "cat-dress", "name": "Dress"}]},
    )


def _mock_search(sku: str, items: list[dict]) -> None:
    responses.add(
        responses.GET,
        f"{API}/items",
        json={"items": items},
        match=[matchers.query_param_matcher({"sku": sku})],
    )


# =========================================================================
# _api_request
# =========================================================================


class TestApiRequest:
    @responses.activate
    def test_bearer_token(self) -> None:
        responses.add(responses.GET, f"{API}/stores", json={"stores": []})
        assert _api_request("GET", "/stores") == {"stores": []}
        assert responses.calls[0].request.headers["Authorization"] == "Bearer lv_test_token"

    def test_missing_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stub = _MockSettings()
        stub.loyverse_api_token = ""
        monkeypatch.setattr("services.loyverse_sync.settings", stub)
        with pytest.raises(LoyverseSyncError, match="token not configured"):
            _api_request("GET", "/stores")

    @responses.activate
    def test_error_details(self) -> None:
        responses.add(
            responses.POST,
            f"{API}/items",
            json={"errors": [{"code": "BAD_REQUEST", "details": "price is invalid"}]},
            status=400,
        )
        with pytest.raises(LoyverseSyncError, match="price is invalid"):
            _api_request("POST", "/items", json={})

    @responses.activate
    def test_error_without_json(self) -> None:
        responses.add(responses.GET, f"{API}/stores", body="gateway down", status=502)
        with pytest.raises(LoyverseSyncError, match="502"):
            _api_request("GET", "/stores")

    @responses.activate
    def test_connection_error(self) -> None:
        responses.add(
            responses.GET, f"{API}/stores", body=requests.ConnectionError("refused")
        )
        with pytest.raises(LoyverseSyncError, match="refused"):
            _api_request("GET", "/stores")


class TestGetStoreId:
    @responses.activate
    def test_cached(self) -> None:
        responses.add(responses.GET, f"{API}/stores", json={"stores": [{"id": "store-1"}]})
        assert _get_store_id() == "store-1"
        assert _get_store_id() == "store-1"
        assert len(responses.calls) == 1

    @responses.activate
    def test_no_store(self) -> None:
        responses.add(responses.GET, f"{API}/stores", json={"stores": []})
        with pytest.raises(LoyverseSyncError, match="No Loyverse store"):
            _get_store_id()


# =========================================================================
# build_loyverse_item
# =========================================================================


class TestBuildLoyverseItem:
    def test_payload(self, sample_item: dict) -> None:
        payload = build_loyverse_item(sample_item, "store-1", "cat-dress")
        assert payload["item_name"] == "Dress, Blue Floral, M"
        assert payload["sku"] == payload["barcode"] == payload["reference_id"] == sample_item["sku"]
        assert payload["category_id"] == "cat-dress"
        variant = payload["variants"][0]
        assert variant["cost"] == 12.5
        assert variant["default_price"] == 39.99
        assert variant["stores"] == [
            {
                "store_id": "store-1",
                "pricing_type": "FIXED",
                "price": 39.99,
                "available_for_sale": True,
            }
        ]

    def test_no_category(self, sample_item: dict) -> None:
        assert "category_id" not in build_loyverse_item(sample_item, "store-1")


# =========================================================================
# sync_items
# =========================================================================


class TestSyncItems:
    @responses.activate
    def test_creates_new_item(self, db: sqlite3.Connection, sample_item: dict) -> None:
        sku = sample_item["sku"]
        _mock_store_and_categories()
        _mock_search(sku, [])
        responses.add(responses.POST, f"{API}/items", json={"id": "lv-1"})

        result = sync_items(db, [sku])

        assert result == {"success": [sku], "errors": []}
        body = json.loads(responses.calls[-1].request.body)
        assert body["category_id"] == "cat-dress"
        assert "id" not in body
        item = models.get_inventory_item(db, sku)
        assert item["synced_to_loyverse"] is True
        assert item["loyverse_synced_at"] is not None

    @responses.activate
    def test_updates_existing_item(self, db: sqlite3.Connection, sample_item: dict) -> None:
        sku = sample_item["sku"]
        _mock_store_and_categories()
        _mock_search(sku, [{"id": "lv-9", "variants": [{"variant_id": "var-9"}]}])
        responses.add(responses.PUT, f"{API}/items/lv-9", json={"id": "lv-9"})

        result = sync_items(db, [sku])

        assert result["success"] == [sku]
        body = json.loads(responses.calls[-1].request.body)
        assert body["id"] == "lv-9"
        assert body["variants"][0]["variant_id"] == "var-9"

    @responses.activate
    def test_per_item_failure_collected(self, db: sqlite3.Connection, sample_item: dict) -> None:
        other = allocate_sku(db, "JN", "NV", "DN", "LG", "2025-10-17", 15, 45)
        _mock_store_and_categories()
        _mock_search(sample_item["sku"], [])
        _mock_search(other["sku"], [])
        responses.add(
            responses.POST,
            f"{API}/items",
            json={"errors": [{"details": "quota exceeded"}]},
            status=429,
            match=[matchers.json_params_matcher({"sku": other["sku"]}, strict_match=False)],
        )
        responses.add(responses.POST, f"{API}/items", json={"id": "lv-1"})

        result = sync_items(db, [sample_item["sku"], other["sku"]])

        assert result["success"] == [sample_item["sku"]]
        assert result["errors"] == [
            {"sku": other["sku"], "error": result["errors"][0]["error"]}
        ]
        assert "quota exceeded" in result["errors"][0]["error"]
        assert models.get_inventory_item(db, other["sku"])["synced_to_loyverse"] is False

    def test_no_skus(self, db: sqlite3.Connection) -> None:
        with pytest.raises(ValidationError):
            sync_items(db, [])

    def test_unknown_skus(self, db: sqlite3.Connection) -> None:
        with pytest.raises(NotFoundError):
            sync_items(db, ["NOPE"])
