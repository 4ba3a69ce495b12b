"""Loyverse POS integration.

Pushes inventory items to the Loyverse REST API (v1.0) as single-variant
items whose SKU and barcode are the allocated SKU. Items already on
Loyverse are updated in place; new ones are created. Successful pushes set
the local sync flag. Failed pushes are reported per item and not retried.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

import requests

import database.models as models
from api.exceptions import LoyverseSyncError, NotFoundError, ValidationError
from config import settings

logger = logging.getLogger(__name__)

_cached_store_id: str | None = None

REQUEST_TIMEOUT = 30


# ---------------------------------------------------------------------------
# Core REST helper
# ---------------------------------------------------------------------------


def _api_request(
    method: str,
    path: str,
    *,
    params: dict | None = None,
    json: dict | None = None,
) -> dict:
    """Execute a request against the Loyverse API and return the JSON body.

    Raises LoyverseSyncError when the token is missing, the request fails,
    or Loyverse answers with a non-2xx status.
    """
    if not settings.loyverse_api_token:
        msg = "Loyverse API token not configured. Set LOYVERSE_API_TOKEN."
        raise LoyverseSyncError(msg)

    url = f"{settings.loyverse_api_url.rstrip('/')}{path}"
    headers = {"Authorization": f"Bearer {settings.loyverse_api_token}"}

    try:
        response = requests.request(
            method,
            url,
            headers=headers,
            params=params,
            json=json,
            timeout=REQUEST_TIMEOUT,
        )
    except requests.RequestException as exc:
        msg = f"Loyverse {method} {path} failed: {exc}"
        raise LoyverseSyncError(msg) from exc

    if not response.ok:
        details = response.text
        try:
            details = response.json()["errors"][0]["details"]
        except (ValueError, KeyError, IndexError, TypeError):
            pass
        msg = f"Loyverse {method} {path} failed ({response.status_code}): {details}"
        raise LoyverseSyncError(msg)

    if not response.content:
        return {}
    return response.json()


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------


def _get_store_id() -> str:
    """Return the first Loyverse store ID, cached after the first call."""
    global _cached_store_id  # noqa: PLW0603
    if _cached_store_id is not None:
        return _cached_store_id

    data = _api_request("GET", "/stores")
    stores = data.get("stores") or []
    if not stores:
        msg = "No Loyverse store found"
        raise LoyverseSyncError(msg)

    _cached_store_id = stores[0]["id"]
    return _cached_store_id


def _get_category_map() -> dict[str, str]:
    """Map lower-cased Loyverse category names to their IDs."""
    data = _api_request("GET", "/categories")
    return {
        cat["name"].lower(): cat["id"]
        for cat in data.get("categories") or []
        if cat.get("name") and cat.get("id")
    }


def _find_existing_item(sku: str) -> dict | None:
    """Return the Loyverse item carrying *sku*, or None."""
    data = _api_request("GET", "/items", params={"sku": sku})
    items = data.get("items") or []
    return items[0] if items else None


# ---------------------------------------------------------------------------
# Payload
# ---------------------------------------------------------------------------


def build_loyverse_item(
    item: dict[str, Any],
    store_id: str,
    category_id: str | None = None,
) -> dict[str, Any]:
    """Build the Loyverse item payload for a local inventory record."""
    payload: dict[str, Any] = {
        "item_name": item["display_name"],
        "reference_id": item["sku"],
        "sku": item["sku"],
        "barcode": item["sku"],
        "sold_by_weight": False,
        "is_composite": False,
        "use_production": False,
        "track_stock": True,
        "variants": [
            {
                "sku": item["sku"],
                "barcode": item["sku"],
                "cost": item["purchase_cost"],
                "default_pricing_type": "FIXED",
                "default_price": item["selling_price"],
                "stores": [
                    {
                        "store_id": store_id,
                        "pricing_type": "FIXED",
                        "price": item["selling_price"],
                        "available_for_sale": True,
                    }
                ],
            }
        ],
    }
    if category_id:
        payload["category_id"] = category_id
    return payload


# ---------------------------------------------------------------------------
# Sync
# ---------------------------------------------------------------------------


def push_item(item: dict[str, Any], store_id: str, category_id: str | None = None) -> dict:
    """Create or update one item on Loyverse and return the response body."""
    payload = build_loyverse_item(item, store_id, category_id)

    existing = _find_existing_item(item["sku"])
    if existing:
        payload["id"] = existing["id"]
        variants = existing.get("variants") or []
        if variants and variants[0].get("variant_id"):
            payload["variants"][0]["variant_id"] = variants[0]["variant_id"]
        return _api_request("PUT", f"/items/{existing['id']}", json=payload)

    return _api_request("POST", "/items", json=payload)


def sync_items(conn: sqlite3.Connection, skus: list[str]) -> dict[str, list]:
    """Push the given SKUs to Loyverse.

    Returns ``{"success": [sku, ...], "errors": [{"sku", "error"}, ...]}``.
    Raises ValidationError for an empty list and NotFoundError when none of
    the SKUs exist locally.
    """
    if not skus:
        msg = "No SKUs provided"
        raise ValidationError(msg)

    items = models.get_inventory_by_skus(conn, list(skus))
    if not items:
        msg = "No items found"
        raise NotFoundError(msg)

    store_id = _get_store_id()
    categories = _get_category_map()

    results: dict[str, list] = {"success": [], "errors": []}
    for item in items:
        type_name = (item.get("type_name") or "").lower()
        try:
            push_item(item, store_id, categories.get(type_name))
        except LoyverseSyncError as exc:
            logger.warning("Loyverse sync failed for %s: %s", item["sku"], exc)
            results["errors"].append({"sku": item["sku"], "error": str(exc)})
            continue

        models.mark_synced(conn, item["sku"])
        results["success"].append(item["sku"])

    logger.info(
        "Loyverse sync: %d succeeded, %d failed",
        len(results["success"]), len(results["errors"]),
    )
    return results
