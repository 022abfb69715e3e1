# Overview: Flask API routes for purchase order operations; parses input and returns JSON responses.

"""
Purchase Order Routes

SECURITY: All routes require authentication.
- List/get/create/edit items/delete require MANAGE_PURCHASE_ORDERS
- Status changes to approved or received require APPROVE_PURCHASE_ORDERS;
  other status changes (ordered, cancelled) require MANAGE_PURCHASE_ORDERS

Legal transitions are enforced by purchase_order_service; an illegal one
returns 409.
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_any_permission, require_permission
from ..permissions import role_has_permission
from ..services import purchase_order_service
from ..services.purchase_order_service import APPROVED, RECEIVED
from ..services.tenant_service import resolve_store_id
from ..validation import NotFoundError, StateError, ValidationError


purchase_orders_bp = Blueprint("purchase_orders", __name__, url_prefix="/api/purchase-orders")

# Target statuses that need approval rights
APPROVAL_STATUSES = {APPROVED, RECEIVED}


@purchase_orders_bp.get("")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def list_purchase_orders_route():
    """
    List purchase orders, newest first.

    Query parameters:
    - status: pending, approved, ordered, received, cancelled
    - supplier_id: Filter by supplier
    - limit / offset: Pagination
    """
    status = request.args.get("status")
    supplier_id = request.args.get("supplier_id", type=int)
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)

    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        orders, total = purchase_order_service.list_purchase_orders(
            store_id=store_id,
            status=status,
            supplier_id=supplier_id,
            limit=limit,
            offset=offset,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({
        "items": [o.to_dict() for o in orders],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@purchase_orders_bp.get("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def get_purchase_order_route(order_id: int):
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        order = purchase_order_service.get_purchase_order(store_id=store_id, order_id=order_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"purchase_order": order.to_dict(include_items=True)})


@purchase_orders_bp.post("")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def create_purchase_order_route():
    """
    Create a pending purchase order.

    Request body:
    {
        "supplier_id": 1,
        "expected_delivery_date": "2026-03-01",   // optional
        "notes": "...",                            // optional
        "items": [
            {"product_id": 1, "quantity": 2, "unit_type": "pack",
             "unit_price": 100, "selling_price": 150}
        ]
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        order = purchase_order_service.create_purchase_order(
            store_id=store_id,
            user_id=g.current_user.id,
            supplier_id=data.get("supplier_id"),
            items=data.get("items"),
            expected_delivery_date=data.get("expected_delivery_date"),
            notes=data.get("notes"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to create purchase order")
        return jsonify({"error": "Failed to create purchase order"}), 500

    current_app.logger.info(
        "Purchase order %s created: store=%s user=%s",
        order.order_number, store_id, g.current_user.id,
    )
    return jsonify({"purchase_order": order.to_dict(include_items=True)}), 201


@purchase_orders_bp.route("/<int:order_id>/status", methods=["PATCH", "PUT"])
@require_auth
@require_any_permission("MANAGE_PURCHASE_ORDERS", "APPROVE_PURCHASE_ORDERS")
def update_status_route(order_id: int):
    """
    Move an order to a new status.

    Request body: {"status": "approved"}

    Receiving applies every item to stock in the same transaction.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    status = data.get("status")
    if not status:
        return jsonify({"error": "status is required"}), 400
    if not isinstance(status, str):
        return jsonify({"error": "status must be a string"}), 400

    required = "APPROVE_PURCHASE_ORDERS" if status in APPROVAL_STATUSES else "MANAGE_PURCHASE_ORDERS"
    if not role_has_permission(g.current_user.role, required):
        return jsonify({
            "error": "Permission denied",
            "required_permission": required,
        }), 403

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        order = purchase_order_service.update_status(
            store_id=store_id,
            user_id=g.current_user.id,
            order_id=order_id,
            status=status,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update purchase order status")
        return jsonify({"error": "Failed to update purchase order status"}), 500

    current_app.logger.info(
        "Purchase order %s -> %s: store=%s user=%s",
        order.order_number, order.status, store_id, g.current_user.id,
    )
    return jsonify({"purchase_order": order.to_dict(include_items=True)})


@purchase_orders_bp.put("/<int:order_id>/items/<int:item_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def update_item_route(order_id: int, item_id: int):
    """
    Edit one item of a pending or approved order.

    Request body (all optional): quantity, unit_price, selling_price, unit_type
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    requested_store = data.pop("store_id", None)

    try:
        store_id = resolve_store_id(g.current_user, requested_store)
        order = purchase_order_service.update_item(
            store_id=store_id,
            order_id=order_id,
            item_id=item_id,
            patch=data,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update purchase order item")
        return jsonify({"error": "Failed to update purchase order item"}), 500

    return jsonify({"purchase_order": order.to_dict(include_items=True)})


@purchase_orders_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASE_ORDERS")
def delete_purchase_order_route(order_id: int):
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        purchase_order_service.delete_purchase_order(store_id=store_id, order_id=order_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except StateError as e:
        return jsonify({"error": str(e)}), 409

    return jsonify({"ok": True}), 200
