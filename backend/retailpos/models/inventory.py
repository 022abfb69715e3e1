from __future__ import annotations

from ..extensions import db
from retailpos.money import money_json
from retailpos.time_utils import to_utc_z


STOCK_LOG_TYPES = {"manual_receive", "bulk_receive", "purchase_order"}


class StockLog(db.Model):
    """
    Append-only audit row for every stock receipt.

    quantity_added is in base pieces (what Product.quantity moved by);
    entered_quantity and unit_type record what the user actually typed.
    unit_cost is per piece. total_cost = entered buying price x entered
    quantity, which is the value of the quantity_added pieces.

    IMMUTABLE: created once per product per receipt event. No service or
    route updates or deletes existing rows.
    """
    __tablename__ = "stock_logs"
    __table_args__ = (
        db.Index("ix_stock_logs_store_date", "store_id", "date"),
        db.Index("ix_stock_logs_product_date", "product_id", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    purchase_order_id = db.Column(db.Integer, db.ForeignKey("purchase_orders.id"), nullable=True, index=True)

    quantity_added = db.Column(db.Integer, nullable=False)
    entered_quantity = db.Column(db.Numeric(12, 3), nullable=False)
    unit_type = db.Column(db.String(16), nullable=False)

    unit_cost = db.Column(db.Numeric(10, 2), nullable=False)
    total_cost = db.Column(db.Numeric(12, 2), nullable=False)

    type = db.Column(db.String(32), nullable=False, default="manual_receive", index=True)
    notes = db.Column(db.Text, nullable=True)

    # Business date of the receipt
    date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    product = db.relationship("Product", backref=db.backref("stock_logs", lazy=True))
    user = db.relationship("User")
    store = db.relationship("Store")
    purchase_order = db.relationship("PurchaseOrder", backref=db.backref("stock_logs", lazy=True))

    def __repr__(self) -> str:
        return f"<StockLog id={self.id} product_id={self.product_id} qty={self.quantity_added}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "store_id": self.store_id,
            "user_id": self.user_id,
            "purchase_order_id": self.purchase_order_id,
            "quantity_added": self.quantity_added,
            "entered_quantity": float(self.entered_quantity),
            "unit_type": self.unit_type,
            "unit_cost": money_json(self.unit_cost),
            "total_cost": money_json(self.total_cost),
            "type": self.type,
            "notes": self.notes,
            "date": to_utc_z(self.date),
            "created_at": to_utc_z(self.created_at),
            "product": {"name": self.product.name, "sku": self.product.sku} if self.product else None,
            "user": {"name": self.user.name or self.user.username} if self.user else None,
        }


class DocumentSequence(db.Model):
    """
    Atomic per-store document sequences (purchase order numbers).
    """
    __tablename__ = "document_sequences"
    __table_args__ = (
        db.UniqueConstraint("store_id", "document_type", name="uq_doc_sequences_store_type"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    document_type = db.Column(db.String(32), nullable=False, index=True)
    next_number = db.Column(db.Integer, nullable=False, default=1)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
