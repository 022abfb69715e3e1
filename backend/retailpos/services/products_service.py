# Overview: Service-layer operations for products and categories; encapsulates business logic and database work.

"""
Products Service

STORE SCOPE: every operation takes the resolved store_id. A product or
category in another store is reported as not found.

QUANTITY: not writable here. On-hand quantity moves only through stock
receipts (stock_service); create always starts at 0.

PRICING: create accepts an optional pricing triple (unit_type,
buying_price, selling_price) that pricing_service expands into all six
tier prices. set_product_prices does the same for an existing product.
"""
from __future__ import annotations

from ..extensions import db
from ..models import Category, Product
from ..validation import ConflictError, NotFoundError, ValidationError, require_fields
from .pricing_service import apply_tier_prices

PRODUCT_MUTABLE_FIELDS = {
    "sku",
    "barcode",
    "name",
    "description",
    "category_id",
    "min_quantity",
    "stock_unit",
    "image_url",
    "is_active",
}

PRICING_FIELDS = ("unit_type", "buying_price", "selling_price")


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def split_pricing(payload: dict) -> tuple[dict, dict | None]:
    """
    Separate the optional pricing triple from product fields.

    Returns (product_payload, pricing or None). A partial triple is a ValidationError.
    """
    payload = dict(payload or {})
    pricing = {k: payload.pop(k) for k in PRICING_FIELDS if k in payload}
    if not pricing:
        return payload, None
    require_fields(pricing, PRICING_FIELDS)
    return payload, pricing


def _check_category(store_id: int, category_id: int | None) -> None:
    if category_id is None:
        return
    exists = db.session.query(Category.id).filter_by(id=category_id, store_id=store_id).first()
    if not exists:
        raise NotFoundError(f"Category {category_id} not found")


def _check_sku_unique(store_id: int, sku: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Product).filter(Product.store_id == store_id, Product.sku == sku)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise ConflictError("SKU already exists for this store.")


def list_products(
    *,
    store_id: int,
    search: str | None = None,
    category_id: int | None = None,
    include_inactive: bool = False,
    page: int | None = None,
    per_page: int | None = None,
) -> dict:
    """
    Store-scoped product listing with optional pagination.

    Args:
        store_id: Resolved store
        search: Matches name, SKU or barcode (case-insensitive)
        category_id: Filter by category
        include_inactive: Include soft-deleted products
        page: Page number (1-indexed). If None, returns all items.
        per_page: Items per page (default 20, max 100)

    Returns:
        Dict with 'items', 'count', and pagination metadata if paginated.
    """
    base_query = db.session.query(Product).filter(Product.store_id == store_id)

    if not include_inactive:
        base_query = base_query.filter(Product.is_active.is_(True))
    if category_id is not None:
        base_query = base_query.filter(Product.category_id == category_id)
    if search:
        term = f"%{search.strip()}%"
        base_query = base_query.filter(
            db.or_(
                Product.name.ilike(term),
                Product.sku.ilike(term),
                Product.barcode.ilike(term),
            )
        )

    base_query = base_query.order_by(Product.name.asc(), Product.id.asc())

    if page is None:
        products = base_query.all()
        return {
            "items": [p.to_dict() for p in products],
            "count": len(products),
        }

    per_page = min(per_page or 20, 100)
    page = max(page, 1)

    total = base_query.count()
    total_pages = (total + per_page - 1) // per_page if total > 0 else 1

    products = base_query.offset((page - 1) * per_page).limit(per_page).all()

    return {
        "items": [p.to_dict() for p in products],
        "count": len(products),
        "pagination": {
            "page": page,
            "per_page": per_page,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }


def get_product(*, store_id: int, product_id: int) -> Product:
    p = db.session.query(Product).filter_by(id=product_id, store_id=store_id).first()
    if not p:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return p


def create_product(*, store_id: int, patch: dict, pricing: dict | None = None) -> dict:
    """
    Create product using a validated patch dict.

    Args:
        store_id: Resolved store
        patch: Validated product fields (sku, name, ...)
        pricing: Optional {unit_type, buying_price, selling_price} that sets
            all six tier prices

    Raises:
        ValidationError: missing sku or invalid pricing
        NotFoundError: category not in this store
        ConflictError: SKU already exists in the store
    """
    sku = patch.get("sku")
    if not sku:
        raise ValidationError("sku is required")

    _check_sku_unique(store_id, sku)
    _check_category(store_id, patch.get("category_id"))

    p = Product(store_id=store_id, quantity=0)
    apply_product_patch(p, patch)
    if pricing:
        apply_tier_prices(p, pricing["unit_type"], pricing["buying_price"], pricing["selling_price"])

    try:
        db.session.add(p)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return p.to_dict()


def update_product(*, store_id: int, product_id: int, patch: dict) -> dict:
    """
    Update a product.

    Raises:
        NotFoundError: product or category not in this store
        ConflictError: new SKU already exists in store
    """
    p = get_product(store_id=store_id, product_id=product_id)

    if "sku" in patch and patch["sku"] != p.sku:
        _check_sku_unique(store_id, patch["sku"], exclude_id=p.id)
    if "category_id" in patch:
        _check_category(store_id, patch["category_id"])

    apply_product_patch(p, patch)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return p.to_dict()


def delete_product(*, store_id: int, product_id: int) -> None:
    """
    Soft-delete a product.

    Stock logs and purchase order items keep referencing it, so the row stays.
    """
    p = get_product(store_id=store_id, product_id=product_id)
    if p.is_active:
        p.is_active = False
        db.session.commit()


def set_product_prices(*, store_id: int, product_id: int, unit_type, buying_price, selling_price) -> dict:
    """Recompute all six tier prices from one entered pair."""
    require_fields(
        {"unit_type": unit_type, "buying_price": buying_price, "selling_price": selling_price},
        PRICING_FIELDS,
    )
    p = get_product(store_id=store_id, product_id=product_id)
    try:
        apply_tier_prices(p, unit_type, buying_price, selling_price)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return p.to_dict()


# =============================================================================
# Categories
# =============================================================================

def list_categories(*, store_id: int, include_inactive: bool = False) -> list[Category]:
    query = db.session.query(Category).filter(Category.store_id == store_id)
    if not include_inactive:
        query = query.filter(Category.is_active.is_(True))
    return query.order_by(Category.name.asc()).all()


def create_category(*, store_id: int, name: str, description: str | None = None) -> Category:
    """
    Raises:
        ValidationError: blank name
        ConflictError: name already used in this store
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Category name is required")

    existing = db.session.query(Category).filter_by(store_id=store_id, name=name).first()
    if existing:
        raise ConflictError(f"Category '{name}' already exists in this store")

    category = Category(
        store_id=store_id,
        name=name,
        description=(description or "").strip() or None,
        is_active=True,
    )
    try:
        db.session.add(category)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return category
