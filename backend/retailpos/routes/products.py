# Overview: Flask API routes for products and categories; parses input and returns JSON responses.

"""
Product and category routes.

STORE CONTEXT: every operation acts on the store resolved by
tenant_service.resolve_store_id; products in other stores are 404.

SECURITY: All routes require authentication.
- Read operations require VIEW_INVENTORY permission
- Write operations require MANAGE_PRODUCTS permission
"""
from flask import Blueprint, request, g, current_app

from ..decorators import require_auth, require_permission
from ..models import Product
from ..services import products_service
from ..services.tenant_service import resolve_store_id
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
    ConflictError,
    NotFoundError,
)

# quantity is not writable: it only moves through stock receipts.
# Tier prices are not writable one by one: they change through the pricing
# triple on create, /<id>/prices, or a receipt.
PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "sku",
        "barcode",
        "name",
        "description",
        "category_id",
        "min_quantity",
        "stock_unit",
        "image_url",
        "is_active",
    },
    required_on_create={"sku", "name"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")
categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


def _validated_patch(payload: dict, partial: bool) -> dict:
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=partial)
    enforce_rules_product(patch)
    return patch


@products_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_products():
    """
    List products with optional search and pagination.

    Query params:
    - search: str (optional) - name, SKU or barcode
    - category_id: int (optional)
    - include_inactive: "true" to include soft-deleted products
    - page: int (optional) - page number (1-indexed). If omitted, returns all items.
    - per_page: int (optional) - items per page (default 20, max 100)
    """
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    return products_service.list_products(
        store_id=store_id,
        search=request.args.get("search"),
        category_id=request.args.get("category_id", type=int),
        include_inactive=request.args.get("include_inactive", "false").lower() == "true",
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_product_route(product_id: int):
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        product = products_service.get_product(store_id=store_id, product_id=product_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return product.to_dict(), 200


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    """
    Create a new product.

    Accepts product fields plus an optional pricing triple
    {unit_type, buying_price, selling_price} that sets all six tier prices.
    """
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    requested_store = payload.pop("store_id", None)

    try:
        store_id = resolve_store_id(g.current_user, requested_store)
        payload, pricing = products_service.split_pricing(payload)
        patch = _validated_patch(payload, partial=False)
        created = products_service.create_product(store_id=store_id, patch=patch, pricing=pricing)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to create product")
        return {"error": "Internal server error"}, 500

    return created, 201


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400
    requested_store = payload.pop("store_id", None)

    try:
        store_id = resolve_store_id(g.current_user, requested_store)
        patch = _validated_patch(payload, partial=True)
        updated = products_service.update_product(store_id=store_id, product_id=product_id, patch=patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update product")
        return {"error": "Internal server error"}, 500

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """Soft-delete a product (is_active=false)."""
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
        products_service.delete_product(store_id=store_id, product_id=product_id)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return {"ok": True}, 200


@products_bp.post("/<int:product_id>/prices")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def set_product_prices_route(product_id: int):
    """
    Recompute all six tier prices.

    Request body: {"unit_type": "pack", "buying_price": 90, "selling_price": 120}
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        updated = products_service.set_product_prices(
            store_id=store_id,
            product_id=product_id,
            unit_type=data.get("unit_type"),
            buying_price=data.get("buying_price"),
            selling_price=data.get("selling_price"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except Exception:
        current_app.logger.exception("Failed to update product prices")
        return {"error": "Internal server error"}, 500

    return updated, 200


@categories_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_categories_route():
    try:
        store_id = resolve_store_id(g.current_user, request.args.get("store_id"))
    except ValidationError as e:
        return {"error": str(e)}, 400

    categories = products_service.list_categories(store_id=store_id)
    return {"items": [c.to_dict() for c in categories], "count": len(categories)}


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_category_route():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        store_id = resolve_store_id(g.current_user, data.get("store_id"))
        category = products_service.create_category(
            store_id=store_id,
            name=data.get("name"),
            description=data.get("description"),
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    return category.to_dict(), 201
