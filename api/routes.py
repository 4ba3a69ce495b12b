"""API endpoints for the boutique inventory system."""

from __future__ import annotations

import logging
import math
from typing import Any

from flask import Blueprint, Response, g, jsonify, request

import database.models as models
from api.errors import error_response, handle_errors
from config import settings
from database.connection import get_db
from services.barcode_generator import generate_barcode_image
from services.code_library import add_code, remove_code
from services.sku_allocator import allocate_sku, peek_next_sku

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


# ---------------------------------------------------------------------------
# DB lifecycle
# ---------------------------------------------------------------------------


@api_bp.before_request
def _open_db() -> None:
    """Open a database connection and store it on flask.g."""
    g.db = get_db(settings.database_path, timeout=settings.db_busy_timeout)


@api_bp.teardown_request
def _close_db(exc: BaseException | None = None) -> None:
    """Close the per-request database connection."""
    db = g.pop("db", None)
    if db is not None:
        db.close()


def _normalize_sku(sku: str) -> str:
    """Strip and upper-case a scanned or typed SKU."""
    return sku.strip().upper()


def _parse_synced(raw: str | None) -> bool | None:
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


# ===========================================================================
# Code library endpoints
# ===========================================================================


@api_bp.route("/code-library", methods=["GET"])
@handle_errors
def get_code_library() -> tuple:
    """Return all four code categories."""
    return jsonify(models.get_code_library(g.db)), 200


@api_bp.route("/code-library/<category>", methods=["GET"])
@handle_errors
def list_codes(category: str) -> tuple:
    """Return the codes in one category."""
    if category not in models.CATEGORIES:
        return error_response("Invalid category", 400)
    return jsonify(models.list_codes(g.db, category)), 200


@api_bp.route("/code-library/<category>", methods=["POST"])
@handle_errors
def create_code(category: str) -> tuple:
    """Add a code to a category."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return error_response("Request body must be a JSON object", 400)

    row = add_code(
        g.db,
        category,
        data.get("code"),
        data.get("name"),
        hex_value=data.get("hexValue"),
        abbrev=data.get("abbrev"),
    )
    return jsonify(row), 201


@api_bp.route("/code-library/<category>/<code>", methods=["DELETE"])
@handle_errors
def delete_code(category: str, code: str) -> tuple:
    """Delete a code that no inventory item uses."""
    remove_code(g.db, category, code)
    return jsonify({"success": True}), 200


# ===========================================================================
# Inventory endpoints
# ===========================================================================


@api_bp.route("/inventory", methods=["GET"])
@handle_errors
def list_inventory() -> tuple:
    """List inventory with optional search and sync filters."""
    items = models.list_inventory(
        g.db,
        search=request.args.get("search") or None,
        synced=_parse_synced(request.args.get("synced")),
        limit=request.args.get("limit", default=500, type=int),
        offset=request.args.get("offset", type=int),
    )
    return jsonify(items), 200


@api_bp.route("/inventory", methods=["POST"])
@handle_errors
def create_inventory_item() -> tuple:
    """Allocate a SKU and store a new inventory item."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return error_response("Request body must be a JSON object", 400)

    item = allocate_sku(
        g.db,
        data.get("typeCode"),
        data.get("colorCode"),
        data.get("patternCode"),
        data.get("sizeCode"),
        data.get("purchaseDate"),
        data.get("purchaseCost"),
        data.get("sellingPrice"),
    )
    return jsonify(item), 201


@api_bp.route("/inventory/next-sku", methods=["GET"])
@handle_errors
def next_sku() -> tuple:
    """Preview the SKU the next allocation would receive."""
    sku = peek_next_sku(
        g.db,
        request.args.get("typeCode"),
        request.args.get("colorCode"),
        request.args.get("patternCode"),
        request.args.get("sizeCode"),
        request.args.get("purchaseDate"),
    )
    return jsonify({"sku": sku}), 200


@api_bp.route("/inventory/summary", methods=["GET"])
@handle_errors
def inventory_summary() -> tuple:
    """Totals across the whole inventory."""
    return jsonify(models.get_inventory_summary(g.db)), 200


@api_bp.route("/inventory/<sku>", methods=["GET"])
@handle_errors
def get_inventory_item(sku: str) -> tuple:
    """Look an item up by its scanned SKU."""
    sku = _normalize_sku(sku)
    item = models.get_inventory_item(g.db, sku)
    if item is None:
        return error_response("Item not found", 404)
    return jsonify(item), 200


@api_bp.route("/inventory/<sku>", methods=["PUT"])
@handle_errors
def update_inventory_item(sku: str) -> tuple:
    """Edit an item's purchase cost or selling price."""
    sku = _normalize_sku(sku)
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not data:
        return error_response("Request body must be a JSON object", 400)

    if models.get_inventory_item(g.db, sku) is None:
        return error_response("Item not found", 404)

    update_fields: dict[str, Any] = {}
    for key, column in (("purchaseCost", "purchase_cost"), ("sellingPrice", "selling_price")):
        if key not in data:
            continue
        try:
            value = float(data[key])
        except (TypeError, ValueError):
            return error_response(f"{key} must be a number", 400)
        if not math.isfinite(value) or value < 0:
            return error_response(f"{key} must be a finite, non-negative number", 400)
        update_fields[column] = value

    if not update_fields:
        return error_response("No valid fields to update", 400)

    updated = models.update_inventory_item(g.db, sku, **update_fields)
    return jsonify(updated), 200


@api_bp.route("/inventory/<sku>", methods=["DELETE"])
@handle_errors
def delete_inventory_item(sku: str) -> tuple:
    """Delete an inventory item. Its sequence number is not reissued."""
    sku = _normalize_sku(sku)
    if not models.delete_inventory_item(g.db, sku):
        return error_response("Item not found", 404)
    return jsonify({"success": True}), 200


@api_bp.route("/inventory/<sku>/barcode", methods=["GET"])
@handle_errors
def inventory_barcode(sku: str) -> Response | tuple:
    """Render the item's SKU as a Code128 PNG."""
    sku = _normalize_sku(sku)
    if models.get_inventory_item(g.db, sku) is None:
        return error_response("Item not found", 404)
    return Response(generate_barcode_image(sku), mimetype="image/png")


# ===========================================================================
# Point-of-sale sync
# ===========================================================================


@api_bp.route("/loyverse/sync", methods=["POST"])
@handle_errors
def loyverse_sync() -> tuple:
    """Push the given SKUs to Loyverse."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return error_response("Request body must be a JSON object", 400)
    skus = data.get("skus")
    if not isinstance(skus, list) or not skus:
        return error_response("No SKUs provided", 400)

    from services.loyverse_sync import sync_items

    results = sync_items(g.db, skus)
    return jsonify(results), 200
