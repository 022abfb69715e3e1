from __future__ import annotations

from ..extensions import db
from retailpos.money import money_json
from retailpos.time_utils import to_utc_z


class Supplier(db.Model):
    """
    Store-scoped supplier.

    Email is unique within a store. Suppliers are deactivated, not deleted,
    so purchase order history keeps its references.
    """
    __tablename__ = "suppliers"
    __table_args__ = (
        db.UniqueConstraint("store_id", "email", name="uq_suppliers_store_email"),
        db.Index("ix_suppliers_store_active", "store_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=False)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(255), nullable=True)
    contact_person = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store", backref=db.backref("suppliers", lazy=True))

    def __repr__(self) -> str:
        return f"<Supplier id={self.id} name={self.name!r} store_id={self.store_id}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "contact_person": self.contact_person,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PurchaseOrder(db.Model):
    """
    Purchase order header.

    LIFECYCLE (enforced by purchase_order_service.ALLOWED_TRANSITIONS):
    pending -> approved | cancelled
    approved -> ordered | received | cancelled
    ordered -> received | cancelled
    received and cancelled are terminal.

    total_amount is the sum of item totals and is recomputed on every item edit.
    """
    __tablename__ = "purchase_orders"
    __table_args__ = (
        db.UniqueConstraint("store_id", "order_number", name="uq_purchase_orders_store_number"),
        db.Index("ix_purchase_orders_store_status", "store_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    supplier_id = db.Column(db.Integer, db.ForeignKey("suppliers.id"), nullable=False, index=True)

    # Human-readable number, e.g. "PO-001-000042"
    order_number = db.Column(db.String(64), nullable=False)
    status = db.Column(db.String(16), nullable=False, default="pending", index=True)

    order_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expected_delivery_date = db.Column(db.DateTime(timezone=True), nullable=True)
    received_at = db.Column(db.DateTime(timezone=True), nullable=True)

    total_amount = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    store = db.relationship("Store")
    supplier = db.relationship("Supplier", backref=db.backref("purchase_orders", lazy=True))
    created_by = db.relationship("User")
    items = db.relationship(
        "PurchaseOrderItem",
        backref="purchase_order",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="PurchaseOrderItem.id",
    )

    def __repr__(self) -> str:
        return f"<PurchaseOrder id={self.id} number={self.order_number!r} status={self.status}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "store_id": self.store_id,
            "supplier_id": self.supplier_id,
            "supplier": {"name": self.supplier.name} if self.supplier else None,
            "order_number": self.order_number,
            "status": self.status,
            "order_date": to_utc_z(self.order_date),
            "expected_delivery_date": to_utc_z(self.expected_delivery_date) if self.expected_delivery_date else None,
            "received_at": to_utc_z(self.received_at) if self.received_at else None,
            "total_amount": money_json(self.total_amount),
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class PurchaseOrderItem(db.Model):
    __tablename__ = "purchase_order_items"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_type = db.Column(db.String(16), nullable=False, default="piece")

    # Buying price per unit_type
    unit_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    # Optional new selling price per unit_type, applied on receipt
    selling_price = db.Column(db.Numeric(10, 2), nullable=True)
    total_price = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "purchase_order_id": self.purchase_order_id,
            "product_id": self.product_id,
            "product": {"name": self.product.name, "sku": self.product.sku} if self.product else None,
            "quantity": self.quantity,
            "unit_type": self.unit_type,
            "unit_price": money_json(self.unit_price),
            "selling_price": money_json(self.selling_price),
            "total_price": money_json(self.total_price),
        }
