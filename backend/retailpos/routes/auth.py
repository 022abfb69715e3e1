# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Authentication API routes

- POST /api/auth/login   username (or email) + password -> bearer token
- POST /api/auth/logout  revokes the presented token
- GET  /api/auth/me      current user, role permissions and store context

Self-registration does not exist. Users are created by administrators via
POST /api/users or the CLI (flask users create).
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth
from ..permissions import get_role_permissions
from ..services import auth_service
from ..services import session_service


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and create session token.

    Token must be included as "Authorization: Bearer <token>" on protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        if not isinstance(data, dict):
            return jsonify({"error": "Invalid JSON payload"}), 400
        username = data.get("username") or data.get("email")
        password = data.get("password")

        if not all([username, password]):
            return jsonify({"error": "username/email and password required"}), 400

        user = auth_service.authenticate(username, password)
        if not user:
            current_app.logger.info("Failed login for %s from %s", username, request.remote_addr)
            return jsonify({"error": "Invalid credentials"}), 401

        session, token = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        return jsonify({
            "user": user.to_dict(),
            "permissions": sorted(get_role_permissions(user.role)),
            "token": token,
            "session": session.to_dict(),
            "store_id": session.store_id,
            "message": "Login successful",
        }), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
@require_auth
def logout_route():
    """Revoke the session token (explicit logout prevents token reuse)."""
    try:
        session_service.revoke_session(g.auth_token, reason="User logout")
        return jsonify({"message": "Logout successful"}), 200
    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user with role permissions, for client-side RBAC filtering."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(),
        "permissions": sorted(get_role_permissions(user.role)),
        "store_id": g.store_id,
    }), 200
