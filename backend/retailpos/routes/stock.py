# Overview: Flask API routes for stock receipts and the stock log; parses input and returns JSON responses.

"""
Stock Receipt Routes

SECURITY: All routes require authentication.
- Receiving stock requires RECEIVE_INVENTORY
- Reading the stock log requires VIEW_INVENTORY

STORE CONTEXT: resolved here with tenant_service.resolve_store_id and passed
explicitly to stock_service. Non super admins always act on their own store.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import stock_service
from ..services.stock_service import BulkReceiptError
from ..services.tenant_service import resolve_store_id
from ..validation import NotFoundError, ValidationError


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.post("/receive")
@require_auth
@require_permission("RECEIVE_INVENTORY")
def receive_stock_route():
    """
    Receive stock for one product.

    Request body:
    {
        "product_id": 1,
        "quantity": 2,
        "unit_type": "pack",          // piece, pack or dozen
        "buying_price": 100,          // per unit_type
        "selling_price": 150,         // per unit_type
        "notes": "...",               // optional
        "store_id": 1                 // optional, super_admin only
    }

    Returns:
        {message, product: {id, name, new_quantity, prices}}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        result = stock_service.receive_stock(
            store_id=store_id,
            user_id=g.current_user.id,
            product_id=data.get("product_id"),
            quantity=data.get("quantity"),
            unit_type=data.get("unit_type"),
            buying_price=data.get("buying_price"),
            selling_price=data.get("selling_price"),
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to receive stock")
        return jsonify({"error": "Failed to receive stock"}), 500

    product = result["product"]
    current_app.logger.info(
        "Stock received: product=%s new_quantity=%s store=%s user=%s",
        product["id"], product["new_quantity"], store_id, g.current_user.id,
    )
    return jsonify(result), 200


@stock_bp.post("/receive-bulk")
@require_auth
@require_permission("RECEIVE_INVENTORY")
def receive_stock_bulk_route():
    """
    Receive stock for many products in one transaction.

    Request body:
    {
        "items": [{product_id, quantity, unit_type, buying_price, selling_price, notes?}, ...],
        "store_id": 1     // optional, super_admin only
    }

    Any failing item rolls back the whole batch (500 with the item's error).
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        result = stock_service.receive_stock_bulk(
            store_id=store_id,
            user_id=g.current_user.id,
            items=data.get("items"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except BulkReceiptError as e:
        current_app.logger.warning("Bulk receipt rolled back at item %s: %s", e.index + 1, e)
        return jsonify({"error": str(e)}), 500
    except Exception:
        current_app.logger.exception("Failed to receive bulk stock")
        return jsonify({"error": "Failed to receive stock"}), 500

    current_app.logger.info(
        "Bulk stock received: %s item(s) store=%s user=%s",
        result["count"], store_id, g.current_user.id,
    )
    return jsonify(result), 200


@stock_bp.get("/logs")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_stock_logs_route():
    """
    List stock log entries, newest first.

    Query parameters:
    - product_id: Filter by product
    - start_date, end_date: ISO-8601 bounds (a bare end date covers that day)
    - limit: Maximum results (default: 100, max 500)
    - offset: Pagination offset (default: 0)
    - store_id: super_admin only
    """
    product_id = request.args.get("product_id", type=int)
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)

    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        logs, total = stock_service.list_stock_logs(
            store_id=store_id,
            product_id=product_id,
            start=request.args.get("start_date"),
            end=request.args.get("end_date"),
            limit=limit,
            offset=offset,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [log.to_dict() for log in logs],
        "count": total,
        "limit": limit,
        "offset": offset,
    })
