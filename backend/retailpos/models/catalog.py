from __future__ import annotations

from ..extensions import db
from retailpos.money import money_json
from retailpos.time_utils import to_utc_z


class Category(db.Model):
    """Store-scoped product category."""
    __tablename__ = "categories"
    __table_args__ = (
        db.UniqueConstraint("store_id", "name", name="uq_categories_store_name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    store = db.relationship("Store", backref=db.backref("categories", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "name": self.name,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class Product(db.Model):
    """
    Product master data with tiered unit prices.

    QUANTITY: always counted in base pieces, never negative. It changes only
    through stock receipts (see stock_service), never through product CRUD.

    PRICES: six independent Numeric(10, 2) columns, buying and selling for
    piece, pack and dozen. They are written only by pricing_service, which
    keeps them mutually consistent; product CRUD cannot set them.

    CONCURRENCY: version_id is a SQLAlchemy version counter; a stale
    read-modify-write raises StaleDataError instead of losing an update.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.UniqueConstraint("store_id", "sku", name="uq_products_store_sku"),
        db.CheckConstraint("quantity >= 0", name="ck_products_quantity_non_negative"),
        db.Index("ix_products_store_name", "store_id", "name"),
        db.Index("ix_products_store_active", "store_id", "is_active"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    store_id = db.Column(db.Integer, db.ForeignKey("stores.id"), nullable=False, index=True)
    category_id = db.Column(db.Integer, db.ForeignKey("categories.id"), nullable=True, index=True)

    sku = db.Column(db.String(64), nullable=False)
    barcode = db.Column(db.String(64), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)

    piece_buying_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    piece_selling_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    pack_buying_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    pack_selling_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    dozen_buying_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    dozen_selling_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    quantity = db.Column(db.Integer, nullable=False, default=0)
    min_quantity = db.Column(db.Integer, nullable=False, default=0)
    stock_unit = db.Column(db.String(16), nullable=False, default="piece")

    image_url = db.Column(db.String(512), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    store = db.relationship("Store", backref=db.backref("products", lazy=True))
    category = db.relationship("Category", backref=db.backref("products", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} sku={self.sku!r} name={self.name!r} store_id={self.store_id}>"

    def prices_dict(self) -> dict:
        return {
            "piece_buying_price": money_json(self.piece_buying_price),
            "piece_selling_price": money_json(self.piece_selling_price),
            "pack_buying_price": money_json(self.pack_buying_price),
            "pack_selling_price": money_json(self.pack_selling_price),
            "dozen_buying_price": money_json(self.dozen_buying_price),
            "dozen_selling_price": money_json(self.dozen_selling_price),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "store_id": self.store_id,
            "category_id": self.category_id,
            "sku": self.sku,
            "barcode": self.barcode,
            "name": self.name,
            "description": self.description,
            **self.prices_dict(),
            "quantity": self.quantity,
            "min_quantity": self.min_quantity,
            "stock_unit": self.stock_unit,
            "image_url": self.image_url,
            "is_active": self.is_active,
            "version_id": self.version_id,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
