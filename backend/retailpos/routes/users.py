# Overview: Flask API routes for user administration; parses input and returns JSON responses.

"""
User administration routes.

SECURITY: MANAGE_USERS (super_admin, admin).
- admin: lists and creates users in their own store only, and cannot
  create super_admin accounts
- super_admin: any store (or none, for another super_admin)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_permission
from ..permissions import ROLE_SUPER_ADMIN
from ..services import auth_service
from ..validation import ConflictError, NotFoundError, ValidationError


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users_route():
    user = g.current_user
    if user.is_super_admin:
        store_id = request.args.get("store_id", type=int)
    else:
        store_id = user.store_id

    users = auth_service.list_users(store_id=store_id)
    return jsonify({"items": [u.to_dict() for u in users], "count": len(users)})


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user_route():
    """
    Create a new user.

    Request body:
    - username: str (required)
    - email: str (required)
    - password: str (required)
    - role: str (required) - super_admin, admin, manager or sales
    - name: str (optional)
    - store_id: int (super_admin only; admins always create in their own store)
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Invalid JSON payload"}), 400
    actor = g.current_user

    username = data.get("username")
    email = data.get("email")
    password = data.get("password")
    role = data.get("role")

    if not all([username, email, password, role]):
        return jsonify({"error": "username, email, password and role required"}), 400

    if not actor.is_super_admin:
        if role == ROLE_SUPER_ADMIN:
            return jsonify({"error": "Only a super admin can create super admin accounts"}), 403
        store_id = actor.store_id
    else:
        store_id = data.get("store_id")

    try:
        user = auth_service.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            store_id=store_id,
            name=data.get("name"),
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User %s (%s) created by user %s", user.username, user.role, actor.id)
    return jsonify({"user": user.to_dict(), "message": "User created successfully"}), 201
