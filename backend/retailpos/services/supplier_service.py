# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

WHY: Every purchase order names exactly one supplier. Suppliers belong to a
single store; the email address identifies a supplier within that store.

DESIGN:
- Suppliers are deactivated, never deleted, so purchase order history
  keeps its supplier reference.
- A supplier from another store is reported as not found.
"""

from __future__ import annotations

from ..extensions import db
from ..models import Supplier
from ..validation import ConflictError, NotFoundError, ValidationError


EDITABLE_FIELDS = ("name", "email", "phone", "address", "contact_person")


def _clean(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _normalize_email(email) -> str:
    email = _clean(email)
    if not email:
        raise ValidationError("Supplier email is required")
    email = email.lower()
    if "@" not in email:
        raise ValidationError("Invalid email format")
    return email


def _check_email_unique(store_id: int, email: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Supplier).filter(
        Supplier.store_id == store_id,
        Supplier.email == email,
    )
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first():
        raise ConflictError(f"Supplier with email '{email}' already exists in this store")


def create_supplier(
    *,
    store_id: int,
    name: str,
    email: str,
    phone: str | None = None,
    address: str | None = None,
    contact_person: str | None = None,
) -> Supplier:
    """
    Create a supplier in a store.

    Raises:
        ValidationError: missing name or email
        ConflictError: email already used in this store
    """
    name = _clean(name)
    if not name:
        raise ValidationError("Supplier name is required")
    email = _normalize_email(email)
    _check_email_unique(store_id, email)

    supplier = Supplier(
        store_id=store_id,
        name=name,
        email=email,
        phone=_clean(phone),
        address=_clean(address),
        contact_person=_clean(contact_person),
        is_active=True,
    )
    try:
        db.session.add(supplier)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return supplier


def get_supplier(*, store_id: int, supplier_id: int) -> Supplier:
    supplier = db.session.query(Supplier).filter_by(id=supplier_id, store_id=store_id).first()
    if not supplier:
        raise NotFoundError(f"Supplier {supplier_id} not found")
    return supplier


def list_suppliers(
    *,
    store_id: int,
    include_inactive: bool = False,
    search: str | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Supplier], int]:
    """
    List suppliers for a store.

    Returns:
        Tuple of (list of Supplier objects, total count)
    """
    query = db.session.query(Supplier).filter(Supplier.store_id == store_id)

    if not include_inactive:
        query = query.filter(Supplier.is_active.is_(True))

    if search:
        query = query.filter(Supplier.name.ilike(f"%{search}%"))

    total = query.count()
    suppliers = query.order_by(Supplier.name.asc()).offset(offset).limit(limit).all()
    return suppliers, total


def update_supplier(*, store_id: int, supplier_id: int, patch: dict) -> Supplier:
    """
    Update supplier fields present in `patch`.

    Raises:
        NotFoundError: supplier not in this store
        ValidationError: unknown field or empty name/email
        ConflictError: new email already used in this store
    """
    supplier = get_supplier(store_id=store_id, supplier_id=supplier_id)

    unknown = set(patch) - set(EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Fields not editable: {', '.join(sorted(unknown))}")

    if "name" in patch:
        name = _clean(patch["name"])
        if not name:
            raise ValidationError("Supplier name cannot be empty")
        supplier.name = name
    if "email" in patch:
        email = _normalize_email(patch["email"])
        _check_email_unique(store_id, email, exclude_id=supplier.id)
        supplier.email = email
    for field in ("phone", "address", "contact_person"):
        if field in patch:
            setattr(supplier, field, _clean(patch[field]))

    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return supplier


def deactivate_supplier(*, store_id: int, supplier_id: int) -> Supplier:
    """Soft delete. Raises ValidationError if already inactive."""
    supplier = get_supplier(store_id=store_id, supplier_id=supplier_id)
    if not supplier.is_active:
        raise ValidationError("Supplier is already inactive")

    supplier.is_active = False
    db.session.commit()
    return supplier
