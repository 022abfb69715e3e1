# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

"""
Supplier Routes

SECURITY: All routes require authentication.
- View operations require VIEW_SUPPLIERS permission
- Create/update/deactivate require MANAGE_SUPPLIERS permission
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..services import supplier_service
from ..services.tenant_service import resolve_store_id
from ..validation import ConflictError, NotFoundError, ValidationError


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def list_suppliers_route():
    """
    List suppliers for the caller's store.

    Query parameters:
    - search: Match supplier name
    - include_inactive: "true" to include deactivated suppliers
    - limit / offset: Pagination
    """
    search = request.args.get("search")
    include_inactive = request.args.get("include_inactive", "false").lower() == "true"
    limit = min(max(request.args.get("limit", 100, type=int), 1), 500)
    offset = max(request.args.get("offset", 0, type=int), 0)

    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400

    suppliers, total = supplier_service.list_suppliers(
        store_id=store_id,
        include_inactive=include_inactive,
        search=search,
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [s.to_dict() for s in suppliers],
        "count": total,
        "limit": limit,
        "offset": offset,
    })


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("VIEW_SUPPLIERS")
def get_supplier_route(supplier_id: int):
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        supplier = supplier_service.get_supplier(store_id=store_id, supplier_id=supplier_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"supplier": supplier.to_dict()})


@suppliers_bp.post("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    """
    Create a supplier.

    Request body:
    {
        "name": "Acme Wholesale",    // required
        "email": "orders@acme.test", // required, unique per store
        "phone": "...",
        "address": "...",
        "contact_person": "..."
    }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        supplier = supplier_service.create_supplier(
            store_id=store_id,
            name=data.get("name"),
            email=data.get("email"),
            phone=data.get("phone"),
            address=data.get("address"),
            contact_person=data.get("contact_person"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create supplier")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"supplier": supplier.to_dict()}), 201


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    requested_store = data.pop("store_id", None)

    try:
        store_id = resolve_store_id(g.current_user, requested_store)
        supplier = supplier_service.update_supplier(
            store_id=store_id,
            supplier_id=supplier_id,
            patch=data,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update supplier")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"supplier": supplier.to_dict()})


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def deactivate_supplier_route(supplier_id: int):
    """Deactivate (soft delete) a supplier."""
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        supplier = supplier_service.deactivate_supplier(store_id=store_id, supplier_id=supplier_id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"supplier": supplier.to_dict(), "message": "Supplier deactivated"})
