from __future__ import annotations

from ..extensions import db
from retailpos.time_utils import to_utc_z


class Store(db.Model):
    """
    A retail store: the tenant boundary.

    Products, categories, suppliers, purchase orders and stock logs all
    carry store_id. Users belong to at most one store; super admins may act
    on any store.
    """
    __tablename__ = "stores"
    __table_args__ = (
        db.UniqueConstraint("code", name="uq_stores_code"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)
    domain = db.Column(db.String(255), nullable=True)
    subdomain = db.Column(db.String(64), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "domain": self.domain,
            "subdomain": self.subdomain,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
