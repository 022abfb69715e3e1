# Overview: Service-layer operations for reporting; encapsulates business logic and database work.

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal

from sqlalchemy.orm import joinedload

from ..extensions import db
from ..models import Product, StockLog
from ..money import money_json, quantize_money
from ..validation import ValidationError, to_int_id
from .stock_service import parse_date_range, stock_log_query
from retailpos.time_utils import to_utc_z


def _parse_top(top) -> int | None:
    if top is None or top == "":
        return None
    try:
        value = int(top)
    except (TypeError, ValueError):
        raise ValidationError("top must be a positive integer")
    if value <= 0:
        raise ValidationError("top must be a positive integer")
    return value


def stock_value_report(
    *,
    store_id: int | None,
    start_date: str | None = None,
    end_date: str | None = None,
    top=None,
) -> dict:
    """
    Summarise received stock value from the stock log.

    Args:
        store_id: Store to report on; None covers every store (super admin only)
        start_date: ISO date/datetime lower bound (inclusive)
        end_date: ISO date/datetime upper bound; a bare date covers the whole day
        top: Truncate topProducts to this many rows

    Returns:
        total_value, total_quantity, unique_products, count,
        byDay (ascending), topProducts (by value, descending), logs (newest first)

    Raises:
        ValidationError: malformed dates or top
    """
    start_dt, end_dt = parse_date_range(start_date, end_date)
    top_n = _parse_top(top)

    logs = (
        stock_log_query(store_id=store_id, start_date=start_dt, end_date=end_dt)
        .options(joinedload(StockLog.product), joinedload(StockLog.user))
        .order_by(StockLog.date.desc(), StockLog.id.desc())
        .all()
    )

    total_value = Decimal("0")
    total_quantity = 0
    by_day: dict[str, dict] = defaultdict(lambda: {"value": Decimal("0"), "quantity": 0})
    by_product: dict[int, dict] = {}

    for log in logs:
        cost = Decimal(log.total_cost or 0)
        total_value += cost
        total_quantity += log.quantity_added

        day = by_day[log.date.strftime("%Y-%m-%d")]
        day["value"] += cost
        day["quantity"] += log.quantity_added

        entry = by_product.get(log.product_id)
        if entry is None:
            entry = by_product[log.product_id] = {
                "id": log.product_id,
                "name": log.product.name if log.product else None,
                "sku": log.product.sku if log.product else None,
                "value": Decimal("0"),
                "quantity": 0,
            }
        entry["value"] += cost
        entry["quantity"] += log.quantity_added

    top_products = sorted(by_product.values(), key=lambda row: row["value"], reverse=True)
    if top_n is not None:
        top_products = top_products[:top_n]

    return {
        "store_id": store_id,
        "start_date": to_utc_z(start_dt) if start_dt else None,
        "end_date": to_utc_z(end_dt) if end_dt else None,
        "total_value": money_json(total_value),
        "total_quantity": total_quantity,
        "unique_products": len(by_product),
        "count": len(logs),
        "byDay": [
            {"date": date, "value": money_json(row["value"]), "quantity": row["quantity"]}
            for date, row in sorted(by_day.items())
        ],
        "topProducts": [
            {**row, "value": money_json(row["value"])}
            for row in top_products
        ],
        "logs": [log.to_dict() for log in logs],
    }


def low_stock_report(*, store_id: int | None) -> dict:
    """Active products below their min_quantity, lowest quantity first."""
    query = db.session.query(Product).filter(
        Product.is_active.is_(True),
        Product.quantity < Product.min_quantity,
    )
    if store_id is not None:
        query = query.filter(Product.store_id == store_id)

    products = query.order_by(Product.quantity.asc(), Product.name.asc()).all()
    return {
        "store_id": store_id,
        "count": len(products),
        "rows": [
            {
                "id": p.id,
                "store_id": p.store_id,
                "sku": p.sku,
                "name": p.name,
                "quantity": p.quantity,
                "min_quantity": p.min_quantity,
                "shortfall": p.min_quantity - p.quantity,
            }
            for p in products
        ],
    }


STOCK_STATUS_IN_STOCK = "instock"
STOCK_STATUS_LOW_STOCK = "lowstock"
STOCK_STATUS_OUT_OF_STOCK = "outofstock"
STOCK_STATUSES = (STOCK_STATUS_IN_STOCK, STOCK_STATUS_LOW_STOCK, STOCK_STATUS_OUT_OF_STOCK)


def stock_status_of(quantity: int, min_quantity: int) -> str:
    """outofstock at 0, lowstock below min_quantity, instock otherwise."""
    if quantity <= 0:
        return STOCK_STATUS_OUT_OF_STOCK
    if quantity < min_quantity:
        return STOCK_STATUS_LOW_STOCK
    return STOCK_STATUS_IN_STOCK


def _parse_stock_status(stock_status) -> str | None:
    if stock_status is None:
        return None
    value = str(stock_status).strip().lower().replace("_", "")
    if value in ("", "all"):
        return None
    if value not in STOCK_STATUSES:
        raise ValidationError(f"stock_status must be one of: all, {', '.join(STOCK_STATUSES)}")
    return value


def inventory_report(
    *,
    store_id: int | None,
    stock_status=None,
    category_id=None,
    search: str | None = None,
) -> dict:
    """
    On-hand stock and its value at the current piece buying price.

    Args:
        store_id: Store to report on; None covers every store (super admin only)
        stock_status: all, instock, lowstock or outofstock
        category_id: Only products in this category
        search: Matches name or SKU (case-insensitive)

    Returns:
        products (by name), total_value (sum of piece_buying_price * quantity),
        total_products, low_stock_products (quantity below min_quantity, out of
        stock included) and out_of_stock_products, all over the filtered rows

    Raises:
        ValidationError: unknown stock_status or non-integer category_id
    """
    status_filter = _parse_stock_status(stock_status)

    query = (
        db.session.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.is_active.is_(True))
    )
    if store_id is not None:
        query = query.filter(Product.store_id == store_id)
    if category_id is not None and category_id != "":
        query = query.filter(Product.category_id == to_int_id(category_id, "category_id"))
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(db.or_(Product.name.ilike(term), Product.sku.ilike(term)))

    products = query.order_by(Product.name.asc(), Product.id.asc()).all()

    rows = []
    total_value = Decimal("0")
    for p in products:
        status = stock_status_of(p.quantity, p.min_quantity)
        if status_filter is not None and status != status_filter:
            continue
        value = quantize_money(Decimal(p.piece_buying_price or 0) * p.quantity)
        total_value += value
        rows.append({
            "id": p.id,
            "store_id": p.store_id,
            "sku": p.sku,
            "name": p.name,
            "category_id": p.category_id,
            "category_name": p.category.name if p.category else None,
            "quantity": p.quantity,
            "min_quantity": p.min_quantity,
            "stock_status": status,
            **p.prices_dict(),
            "value": money_json(value),
        })

    return {
        "store_id": store_id,
        "stock_status": status_filter or "all",
        "total_value": money_json(total_value),
        "total_products": len(rows),
        "low_stock_products": sum(1 for r in rows if r["quantity"] < r["min_quantity"]),
        "out_of_stock_products": sum(1 for r in rows if r["stock_status"] == STOCK_STATUS_OUT_OF_STOCK),
        "products": rows,
    }
