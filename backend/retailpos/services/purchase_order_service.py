# Overview: Service-layer operations for purchase orders; encapsulates business logic and database work.

"""
Purchase Order Service

WHY: A purchase order records what was ordered from a supplier and, once
received, moves that stock onto the shelf through the same receipt path as
a manual stock receipt.

LIFECYCLE (enforced here, not by clients):
    pending  -> approved | cancelled
    approved -> ordered | received | cancelled
    ordered  -> received | cancelled
    received, cancelled: terminal

RECEIVING: moving an order to "received" applies every item through
stock_service.apply_receipt_line inside the same transaction as the status
change. If any item fails, the order stays in its previous status and no
stock moves.

ITEM EDITS: allowed only while pending or approved. Each edit recomputes the
item total and the order total_amount.
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import Product, PurchaseOrder, PurchaseOrderItem, Supplier
from ..money import quantize_money
from ..units import parse_unit_type
from ..validation import (
    NotFoundError,
    StateError,
    ValidationError,
    check_price,
    check_total,
    require_fields,
    to_decimal,
    to_int_id,
)
from . import document_service
from .concurrency import lock_for_update
from .stock_service import LOG_TYPE_PURCHASE_ORDER, ReceiptLine, apply_receipt_line, format_quantity
from retailpos.time_utils import parse_iso_datetime, utcnow


PENDING = "pending"
APPROVED = "approved"
ORDERED = "ordered"
RECEIVED = "received"
CANCELLED = "cancelled"

PO_STATUSES = (PENDING, APPROVED, ORDERED, RECEIVED, CANCELLED)

ALLOWED_TRANSITIONS = {
    PENDING: {APPROVED, CANCELLED},
    APPROVED: {ORDERED, RECEIVED, CANCELLED},
    ORDERED: {RECEIVED, CANCELLED},
    RECEIVED: set(),
    CANCELLED: set(),
}

EDITABLE_STATUSES = {PENDING, APPROVED}
DELETABLE_STATUSES = {PENDING, CANCELLED}


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, set())


def _positive_int(value, field: str) -> int:
    number = to_decimal(value, field)
    if number != number.to_integral_value():
        raise ValidationError(f"{field} must be a whole number")
    if number <= 0:
        raise ValidationError(f"{field} must be > 0")
    return int(number)


def _optional_price(value, field: str) -> Decimal | None:
    if value is None or value == "":
        return None
    return quantize_money(check_price(to_decimal(value, field), field))


def _store_product(store_id: int, product_id) -> Product:
    product_id = to_int_id(product_id, "product_id")
    product = db.session.query(Product).filter_by(id=product_id, store_id=store_id).first()
    if not product:
        raise NotFoundError(f"Product with ID {product_id} not found")
    return product


def _build_item(store_id: int, data: dict, index: int) -> PurchaseOrderItem:
    if not isinstance(data, dict):
        raise ValidationError(f"Item {index + 1}: invalid item")
    try:
        require_fields(data, ("product_id", "quantity", "unit_price"))
        product = _store_product(store_id, data["product_id"])
        quantity = _positive_int(data["quantity"], "quantity")
        unit = parse_unit_type(data.get("unit_type") or product.stock_unit or "piece")
        unit_price = quantize_money(check_price(to_decimal(data["unit_price"], "unit_price"), "unit_price"))
        selling_price = _optional_price(data.get("selling_price"), "selling_price")
        total_price = check_total(quantize_money(unit_price * quantity), "total_price")
    except ValidationError as exc:
        raise ValidationError(f"Item {index + 1}: {exc}") from exc

    return PurchaseOrderItem(
        product_id=product.id,
        quantity=quantity,
        unit_type=unit.value,
        unit_price=unit_price,
        selling_price=selling_price,
        total_price=total_price,
    )


def _recompute_total(order: PurchaseOrder) -> None:
    order.total_amount = check_total(
        quantize_money(sum((Decimal(item.total_price) for item in order.items), Decimal("0"))),
        "total_amount",
    )


def _parse_optional_datetime(value, field: str):
    if value is None or value == "":
        return None
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"Invalid {field} format")


def create_purchase_order(
    *,
    store_id: int,
    user_id: int,
    supplier_id,
    items,
    expected_delivery_date: str | None = None,
    notes: str | None = None,
) -> PurchaseOrder:
    """
    Create a pending purchase order with its items.

    Raises:
        ValidationError: missing supplier, empty or invalid items, bad date
        NotFoundError: supplier or a product is not in this store
    """
    if supplier_id is None or supplier_id == "":
        raise ValidationError("supplier_id is required")
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    supplier_id = to_int_id(supplier_id, "supplier_id")
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, store_id=store_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    if not supplier.is_active:
        raise ValidationError("Supplier is inactive")

    expected = _parse_optional_datetime(expected_delivery_date, "expected_delivery_date")
    order_items = [_build_item(store_id, data, index) for index, data in enumerate(items)]

    try:
        order = PurchaseOrder(
            store_id=store_id,
            supplier_id=supplier.id,
            order_number=document_service.next_document_number(
                store_id=store_id,
                document_type=document_service.PURCHASE_ORDER,
                prefix="PO",
            ),
            status=PENDING,
            order_date=utcnow(),
            expected_delivery_date=expected,
            notes=notes,
            created_by_user_id=user_id,
            items=order_items,
        )
        _recompute_total(order)
        db.session.add(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def list_purchase_orders(
    *,
    store_id: int,
    status: str | None = None,
    supplier_id: int | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[PurchaseOrder], int]:
    """
    List purchase orders for a store, newest first.

    Returns:
        Tuple of (list of PurchaseOrder objects, total count)
    """
    query = db.session.query(PurchaseOrder).filter(PurchaseOrder.store_id == store_id)

    if status:
        if status not in PO_STATUSES:
            raise ValidationError(f"Invalid status. Must be one of: {', '.join(PO_STATUSES)}")
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id is not None:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)

    total = query.count()
    orders = (
        query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return orders, total


def get_purchase_order(*, store_id: int, order_id: int, for_update: bool = False) -> PurchaseOrder:
    query = db.session.query(PurchaseOrder).filter(
        PurchaseOrder.id == order_id,
        PurchaseOrder.store_id == store_id,
    )
    if for_update:
        query = lock_for_update(query)
    order = query.first()
    if not order:
        raise NotFoundError("Purchase order not found")
    return order


def _receive_items(order: PurchaseOrder, user_id: int) -> None:
    for item in order.items:
        line = ReceiptLine(
            product_id=item.product_id,
            quantity=Decimal(item.quantity),
            unit=parse_unit_type(item.unit_type),
            buying_price=Decimal(item.unit_price),
            selling_price=Decimal(item.selling_price) if item.selling_price is not None else None,
        )
        apply_receipt_line(
            store_id=order.store_id,
            user_id=user_id,
            line=line,
            log_type=LOG_TYPE_PURCHASE_ORDER,
            default_notes=(
                f"Purchase order {order.order_number}: "
                f"{format_quantity(line.quantity)} {line.unit.value}(s)"
            ),
            purchase_order_id=order.id,
        )


def update_status(*, store_id: int, user_id: int, order_id: int, status: str) -> PurchaseOrder:
    """
    Move an order to a new status.

    Raises:
        ValidationError: unknown status
        NotFoundError: order (or, on receipt, a product) not in this store
        StateError: transition not allowed from the current status
    """
    if status not in PO_STATUSES:
        raise ValidationError(f"Invalid status. Must be one of: {', '.join(PO_STATUSES)}")

    try:
        order = get_purchase_order(store_id=store_id, order_id=order_id, for_update=True)
        if not can_transition(order.status, status):
            raise StateError(f"Cannot change purchase order from {order.status} to {status}")

        if status == RECEIVED:
            _receive_items(order, user_id)
            order.received_at = utcnow()

        order.status = status
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def update_item(
    *,
    store_id: int,
    order_id: int,
    item_id: int,
    patch: dict,
) -> PurchaseOrder:
    """
    Edit one item (quantity, unit_price, selling_price, unit_type) and recompute totals.

    Raises:
        NotFoundError: order or item not found
        StateError: order is no longer pending or approved
        ValidationError: invalid values or unknown fields
    """
    allowed = {"quantity", "unit_price", "selling_price", "unit_type"}
    unknown = set(patch) - allowed
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    try:
        order = get_purchase_order(store_id=store_id, order_id=order_id, for_update=True)
        if order.status not in EDITABLE_STATUSES:
            raise StateError(f"Cannot edit items of a {order.status} purchase order")

        item = next((i for i in order.items if i.id == item_id), None)
        if item is None:
            raise NotFoundError("Purchase order item not found")

        if "quantity" in patch:
            item.quantity = _positive_int(patch["quantity"], "quantity")
        if "unit_price" in patch:
            item.unit_price = quantize_money(
                check_price(to_decimal(patch["unit_price"], "unit_price"), "unit_price")
            )
        if "selling_price" in patch:
            item.selling_price = _optional_price(patch["selling_price"], "selling_price")
        if "unit_type" in patch:
            item.unit_type = parse_unit_type(patch["unit_type"]).value

        item.total_price = check_total(
            quantize_money(Decimal(item.unit_price) * item.quantity), "total_price"
        )
        _recompute_total(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    return order


def delete_purchase_order(*, store_id: int, order_id: int) -> None:
    """Delete a pending or cancelled order and its items."""
    try:
        order = get_purchase_order(store_id=store_id, order_id=order_id, for_update=True)
        if order.status not in DELETABLE_STATUSES:
            raise StateError(f"Cannot delete a {order.status} purchase order")
        db.session.delete(order)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
