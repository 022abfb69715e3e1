# Overview: Service-layer operations for stock receipts; encapsulates business logic and database work.

"""
Stock Receipt Service

WHY: Receiving stock changes three things that must move together: the
product's piece count, its six tier prices, and the stock audit log. Each
receipt (or each bulk batch) is one all-or-nothing database transaction.

FLOW (per line):
1. Validate input; nothing is written on failure
2. Lock the product row (SELECT ... FOR UPDATE), scoped to the store
3. quantity += quantity in pieces
4. Recompute all six tier prices from the entered buying/selling pair
5. Append a StockLog row (pieces, per-piece cost, total cost)

STORE CONTEXT: store_id is resolved by the caller (tenant_service) and
passed in explicitly. A product outside that store is "not found".

BULK: every item is applied in one shared transaction. The first failing
item rolls back the whole batch and surfaces as BulkReceiptError.
There is no retry; the caller resubmits.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from ..extensions import db
from ..models import Product, StockLog
from ..money import quantize_money
from ..units import UnitType, parse_unit_type, to_pieces, unit_ratio
from ..validation import (
    NotFoundError,
    ValidationError,
    check_price,
    check_total,
    require_fields,
    to_decimal,
    to_int_id,
)
from .concurrency import lock_for_update
from .pricing_service import apply_tier_prices, current_price
from .tenant_service import STORE_CONTEXT_MISSING
from retailpos.time_utils import end_of_day, is_date_only, parse_iso_datetime, utcnow


RECEIPT_FIELDS = ("product_id", "quantity", "unit_type", "buying_price", "selling_price")

LOG_TYPE_MANUAL = "manual_receive"
LOG_TYPE_BULK = "bulk_receive"
LOG_TYPE_PURCHASE_ORDER = "purchase_order"


class BulkReceiptError(Exception):
    """Raised when one item of a bulk receipt fails; the whole batch is rolled back."""

    def __init__(self, message: str, *, index: int, product_id=None):
        super().__init__(message)
        self.index = index
        self.product_id = product_id


@dataclass(frozen=True)
class ReceiptLine:
    """One validated receipt line. selling_price None keeps the product's current selling price."""
    product_id: int
    quantity: Decimal
    unit: UnitType
    buying_price: Decimal
    selling_price: Decimal | None
    notes: str | None = None

    @property
    def pieces(self) -> int:
        return int(to_pieces(self.quantity, self.unit))


def format_quantity(quantity: Decimal) -> str:
    """Decimal("2.000") -> "2", Decimal("1.50") -> "1.5"."""
    return format(quantity.normalize(), "f")


def parse_receipt_line(data: dict, *, selling_required: bool = True) -> ReceiptLine:
    """
    Validate one receipt payload.

    Raises:
        ValidationError: missing field, non-positive quantity, negative price,
            unknown unit, or a quantity that is not a whole number of pieces
    """
    if not isinstance(data, dict):
        raise ValidationError("Invalid receipt item")

    required = RECEIPT_FIELDS if selling_required else RECEIPT_FIELDS[:-1]
    require_fields(data, required)

    product_id = to_int_id(data["product_id"], "product_id")

    quantity = to_decimal(data["quantity"], "quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be > 0")

    unit = parse_unit_type(data["unit_type"])

    buying = check_price(to_decimal(data["buying_price"], "buying_price"), "buying_price")
    selling = None
    if data.get("selling_price") is not None:
        selling = check_price(to_decimal(data["selling_price"], "selling_price"), "selling_price")

    pieces = to_pieces(quantity, unit)
    if pieces != pieces.to_integral_value():
        raise ValidationError(
            f"quantity {format_quantity(quantity)} {unit.value} is not a whole number of pieces"
        )
    check_total(quantize_money(buying * quantity), "total_cost")

    notes = data.get("notes")
    if notes is not None:
        notes = str(notes).strip() or None

    return ReceiptLine(
        product_id=product_id,
        quantity=quantity,
        unit=unit,
        buying_price=buying,
        selling_price=selling,
        notes=notes,
    )


def get_store_product(store_id: int, product_id: int, *, for_update: bool = False) -> Product:
    """Load a product within a store; raises NotFoundError otherwise."""
    query = db.session.query(Product).filter(
        Product.id == product_id,
        Product.store_id == store_id,
    )
    if for_update:
        query = lock_for_update(query)
    product = query.first()
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def apply_receipt_line(
    *,
    store_id: int,
    user_id: int,
    line: ReceiptLine,
    log_type: str,
    default_notes: str,
    purchase_order_id: int | None = None,
) -> tuple[Product, StockLog]:
    """
    Apply one validated line inside the caller's transaction.

    Flushes but never commits; the caller commits or rolls back the whole unit.
    """
    product = get_store_product(store_id, line.product_id, for_update=True)

    pieces = line.pieces
    product.quantity = (product.quantity or 0) + pieces

    selling = line.selling_price
    if selling is None:
        selling = current_price(product, line.unit, "selling")
    apply_tier_prices(product, line.unit, line.buying_price, selling)

    # unit_cost is per piece; total_cost covers the same pieces as quantity_added
    unit_cost = quantize_money(line.buying_price / unit_ratio(line.unit))
    total_cost = quantize_money(line.buying_price * line.quantity)

    log = StockLog(
        product_id=product.id,
        store_id=store_id,
        user_id=user_id,
        purchase_order_id=purchase_order_id,
        quantity_added=pieces,
        entered_quantity=line.quantity,
        unit_type=line.unit.value,
        unit_cost=unit_cost,
        total_cost=total_cost,
        type=log_type,
        notes=line.notes or default_notes,
        date=utcnow(),
    )
    db.session.add(log)
    db.session.flush()

    return product, log


def _product_result(product: Product) -> dict:
    return {
        "id": product.id,
        "name": product.name,
        "new_quantity": product.quantity,
    }


def receive_stock(
    *,
    store_id: int | None,
    user_id: int,
    product_id,
    quantity,
    unit_type,
    buying_price,
    selling_price,
    notes: str | None = None,
    log_type: str = LOG_TYPE_MANUAL,
    purchase_order_id: int | None = None,
) -> dict:
    """
    Receive stock for one product in a single transaction.

    Args:
        store_id: Resolved store (see tenant_service.resolve_store_id)
        user_id: Authenticated user receiving the stock
        product_id: Product to receive
        quantity: Quantity in `unit_type` units (must be > 0)
        unit_type: piece, pack or dozen
        buying_price: Buying price of one `unit_type`
        selling_price: Selling price of one `unit_type`
        notes: Optional notes; defaults to "Received {quantity} {unit}(s)"
        log_type: StockLog type
        purchase_order_id: Purchase order the receipt belongs to, if any

    Returns:
        {"message", "product": {id, name, new_quantity, prices}}

    Raises:
        ValidationError: missing/invalid input or no store context (nothing written)
        NotFoundError: product not in this store (rolled back)
    """
    line = parse_receipt_line({
        "product_id": product_id,
        "quantity": quantity,
        "unit_type": unit_type,
        "buying_price": buying_price,
        "selling_price": selling_price,
        "notes": notes,
    })
    if store_id is None:
        raise ValidationError(STORE_CONTEXT_MISSING)

    try:
        product, _log = apply_receipt_line(
            store_id=store_id,
            user_id=user_id,
            line=line,
            log_type=log_type,
            default_notes=f"Received {format_quantity(line.quantity)} {line.unit.value}(s)",
            purchase_order_id=purchase_order_id,
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    result = _product_result(product)
    result["prices"] = product.prices_dict()
    return {"message": "Stock received successfully", "product": result}


def receive_stock_bulk(*, store_id: int | None, user_id: int, items) -> dict:
    """
    Receive stock for many products in one shared transaction.

    Returns:
        {"message", "count", "items": [{id, name, new_quantity}]}

    Raises:
        ValidationError: items missing/empty or no store context (nothing written)
        BulkReceiptError: an item failed; the whole batch was rolled back
    """
    if not isinstance(items, list) or not items:
        raise ValidationError("No items provided")
    if store_id is None:
        raise ValidationError(STORE_CONTEXT_MISSING)

    results = []
    try:
        for index, item in enumerate(items):
            product_id = item.get("product_id") if isinstance(item, dict) else None
            try:
                line = parse_receipt_line(item)
                product, _log = apply_receipt_line(
                    store_id=store_id,
                    user_id=user_id,
                    line=line,
                    log_type=LOG_TYPE_BULK,
                    default_notes=f"Bulk Receive: {format_quantity(line.quantity)} {line.unit.value}(s)",
                )
            except (ValidationError, NotFoundError) as exc:
                label = product_id if product_id is not None else "unknown"
                raise BulkReceiptError(
                    f"Item {index + 1} (product ID {label}): {exc}",
                    index=index,
                    product_id=product_id,
                ) from exc
            results.append(_product_result(product))

        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return {
        "message": "Stock received successfully",
        "count": len(results),
        "items": results,
    }


def parse_date_range(start: str | None, end: str | None) -> tuple[datetime | None, datetime | None]:
    """
    Parse optional ISO bounds. A date-only end bound covers that whole day.

    Raises ValidationError on malformed input or start after end.
    """
    try:
        start_dt = parse_iso_datetime(start) if start else None
    except ValueError:
        raise ValidationError("Invalid start_date format")
    try:
        end_dt = parse_iso_datetime(end) if end else None
    except ValueError:
        raise ValidationError("Invalid end_date format")

    if end_dt is not None and is_date_only(end):
        end_dt = end_of_day(end_dt)

    if start_dt and end_dt and start_dt > end_dt:
        raise ValidationError("start_date must be on or before end_date")
    return start_dt, end_dt


def stock_log_query(
    *,
    store_id: int | None,
    product_id: int | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
):
    """Base StockLog query; store_id None means every store."""
    query = db.session.query(StockLog)
    if store_id is not None:
        query = query.filter(StockLog.store_id == store_id)
    if product_id is not None:
        query = query.filter(StockLog.product_id == product_id)
    if start_date is not None:
        query = query.filter(StockLog.date >= start_date)
    if end_date is not None:
        query = query.filter(StockLog.date <= end_date)
    return query


def list_stock_logs(
    *,
    store_id: int | None,
    product_id: int | None = None,
    start: str | None = None,
    end: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[StockLog], int]:
    """
    List stock logs, newest first.

    Returns:
        Tuple of (list of logs, total count)
    """
    start_dt, end_dt = parse_date_range(start, end)
    query = stock_log_query(
        store_id=store_id,
        product_id=product_id,
        start_date=start_dt,
        end_date=end_dt,
    )

    total = query.count()
    logs = (
        query.order_by(StockLog.date.desc(), StockLog.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return logs, total
