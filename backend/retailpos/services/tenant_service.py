"""
Store Context Service: resolving which store a request acts on.

WHY: Every stock, catalog and purchasing operation is scoped to exactly one
store (or, for super admin reports, to all stores). The store is resolved
once at the HTTP edge and passed explicitly into every service call as
store_id; services never read it from request globals.

RULES:
1. super_admin: the requested store if given, else their own store.
   With required=False and neither available, resolves to None (all stores).
2. every other role: always their own store. A requested foreign store is
   ignored and the attempt is logged.
3. A store that cannot be resolved, or does not exist, is a ValidationError.

USAGE:
    from retailpos.services.tenant_service import resolve_store_id

    store_id = resolve_store_id(g.current_user, data.get("store_id"))
"""

from flask import current_app, has_request_context, request
from ..extensions import db
from ..models import Store, User
from ..validation import ValidationError, to_int_id


STORE_CONTEXT_MISSING = "Store context missing"


def _coerce_store_id(value) -> int | None:
    if value is None or value == "":
        return None
    return to_int_id(value, "store_id")


def require_store(store_id: int) -> Store:
    """Load a store or fail with the store-context error."""
    store = db.session.query(Store).filter_by(id=store_id).first()
    if not store:
        raise ValidationError(STORE_CONTEXT_MISSING)
    return store


def resolve_store_id(user: User, requested_store_id=None, *, required: bool = True) -> int | None:
    """
    Resolve the store a request acts on.

    Args:
        user: The authenticated user (g.current_user)
        requested_store_id: store_id from the body or query string, if any
        required: If False, a super_admin with no store resolves to None (all stores)

    Returns:
        The store id, or None when required=False and the caller may see all stores

    Raises:
        ValidationError: store context cannot be resolved or store does not exist
    """
    requested = _coerce_store_id(requested_store_id)

    if user.is_super_admin:
        store_id = requested if requested is not None else user.store_id
        if store_id is None:
            if required:
                raise ValidationError(STORE_CONTEXT_MISSING)
            return None
        require_store(store_id)
        return store_id

    if user.store_id is None:
        raise ValidationError(STORE_CONTEXT_MISSING)

    if requested is not None and requested != user.store_id:
        _log_foreign_store_request(user, requested)

    return user.store_id


def _log_foreign_store_request(user: User, requested: int) -> None:
    path = request.path if has_request_context() else None
    current_app.logger.warning(
        "User %s (role=%s, store=%s) requested store %s on %s; using own store",
        user.id, user.role, user.store_id, requested, path,
    )
