# Overview: Pytest coverage for authentication and role permissions.

"""
Authorization Tests

SECURITY TESTS: Verify that protected endpoints require authentication and
that each role only reaches what its permission set allows.

Test Coverage:
- Login, logout and /me
- 401 for missing or invalid tokens
- 403 for roles without the required permission
- User management rules (admins stay in their own store)
"""

import pytest
from retailpos.models import User
from retailpos.permissions import ALL_PERMISSIONS, get_role_permissions, role_has_permission
from retailpos.services.session_service import validate_session

from conftest import TEST_PASSWORD, auth_headers, get_auth_token


# =============================================================================
# AUTHENTICATION
# =============================================================================

class TestLogin:
    def test_login_returns_token_and_permissions(self, client, db_session, manager_a, store_a):
        response = client.post("/api/auth/login", json={"username": "manager_a", "password": TEST_PASSWORD})

        assert response.status_code == 200
        data = response.get_json()
        assert data["token"]
        assert data["store_id"] == store_a.id
        assert data["user"]["role"] == "manager"
        assert "RECEIVE_INVENTORY" in data["permissions"]
        assert "APPROVE_PURCHASE_ORDERS" not in data["permissions"]

    def test_login_by_email(self, client, db_session, sales_a):
        assert get_auth_token(client, "sales_a@retailpos.test") is not None

    def test_wrong_password(self, client, db_session, sales_a):
        response = client.post("/api/auth/login", json={"username": "sales_a", "password": "Wrong123!"})
        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"

    def test_missing_credentials(self, client, db_session):
        response = client.post("/api/auth/login", json={"username": "x"})
        assert response.status_code == 400

    def test_inactive_user_cannot_login(self, client, db_session, sales_a):
        sales_a.is_active = False
        db_session.commit()
        assert get_auth_token(client, "sales_a") is None

    def test_me_and_logout(self, client, db_session, admin_a):
        token = get_auth_token(client, "admin_a")
        headers = auth_headers(token)

        me = client.get("/api/auth/me", headers=headers)
        assert me.status_code == 200
        assert me.get_json()["user"]["username"] == "admin_a"

        logout = client.post("/api/auth/logout", headers=headers)
        assert logout.status_code == 200
        assert validate_session(token) is None

        assert client.get("/api/auth/me", headers=headers).status_code == 401


# =============================================================================
# 401: AUTHENTICATION REQUIRED
# =============================================================================

PROTECTED_ENDPOINTS = [
    ("GET", "/api/auth/me"),
    ("GET", "/api/products"),
    ("POST", "/api/products"),
    ("GET", "/api/categories"),
    ("POST", "/api/stock/receive"),
    ("POST", "/api/stock/receive-bulk"),
    ("GET", "/api/stock/logs"),
    ("GET", "/api/reports/stock-value"),
    ("GET", "/api/reports/low-stock"),
    ("GET", "/api/reports/inventory"),
    ("GET", "/api/suppliers"),
    ("POST", "/api/suppliers"),
    ("GET", "/api/purchase-orders"),
    ("POST", "/api/purchase-orders"),
    ("PATCH", "/api/purchase-orders/1/status"),
    ("GET", "/api/users"),
]


class TestAuthenticationRequired:
    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    def test_no_token(self, client, db_session, method, path):
        response = client.open(path, method=method, json={})
        assert response.status_code == 401

    @pytest.mark.parametrize("method,path", PROTECTED_ENDPOINTS)
    def test_invalid_token(self, client, db_session, method, path):
        response = client.open(path, method=method, json={}, headers=auth_headers("not-a-real-token"))
        assert response.status_code == 401

    def test_malformed_header(self, client, db_session):
        response = client.get("/api/products", headers={"Authorization": "Token abc"})
        assert response.status_code == 401


# =============================================================================
# 403: PERMISSION DENIED
# =============================================================================

class TestRolePermissions:
    def test_admin_roles_have_everything(self):
        assert get_role_permissions("super_admin") == ALL_PERMISSIONS
        assert get_role_permissions("admin") == ALL_PERMISSIONS

    def test_unknown_role_has_nothing(self):
        assert get_role_permissions("janitor") == frozenset()
        assert not role_has_permission(None, "VIEW_INVENTORY")

    def test_manager_cannot_approve(self):
        assert role_has_permission("manager", "MANAGE_PURCHASE_ORDERS")
        assert not role_has_permission("manager", "APPROVE_PURCHASE_ORDERS")
        assert not role_has_permission("manager", "MANAGE_USERS")

    @pytest.mark.parametrize("method,path,permission", [
        ("POST", "/api/stock/receive", "RECEIVE_INVENTORY"),
        ("POST", "/api/stock/receive-bulk", "RECEIVE_INVENTORY"),
        ("POST", "/api/products", "MANAGE_PRODUCTS"),
        ("POST", "/api/categories", "MANAGE_PRODUCTS"),
        ("GET", "/api/reports/stock-value", "VIEW_REPORTS"),
        ("GET", "/api/reports/low-stock", "VIEW_REPORTS"),
        ("GET", "/api/reports/inventory", "VIEW_REPORTS"),
        ("POST", "/api/suppliers", "MANAGE_SUPPLIERS"),
        ("GET", "/api/purchase-orders", "MANAGE_PURCHASE_ORDERS"),
        ("GET", "/api/users", "MANAGE_USERS"),
    ])
    def test_sales_denied(self, client, db_session, sales_headers, method, path, permission):
        response = client.open(path, method=method, json={}, headers=sales_headers)

        assert response.status_code == 403
        assert response.get_json()["required_permission"] == permission

    def test_sales_denied_status_change(self, client, db_session, sales_headers):
        response = client.patch("/api/purchase-orders/1/status", json={"status": "cancelled"},
                                headers=sales_headers)
        assert response.status_code == 403

    def test_manager_denied_user_management(self, client, db_session, manager_headers):
        assert client.get("/api/users", headers=manager_headers).status_code == 403


# =============================================================================
# USER MANAGEMENT
# =============================================================================

class TestUserManagement:
    def test_admin_creates_user_in_own_store(self, client, db_session, admin_headers, store_a, store_b):
        response = client.post("/api/users", json={
            "username": "new_sales",
            "email": "new_sales@retailpos.test",
            "password": "Password123!",
            "role": "sales",
            "store_id": store_b.id,
        }, headers=admin_headers)

        assert response.status_code == 201
        user = db_session.query(User).filter_by(username="new_sales").one()
        assert user.store_id == store_a.id

    def test_admin_cannot_create_super_admin(self, client, db_session, admin_headers):
        response = client.post("/api/users", json={
            "username": "root2",
            "email": "root2@retailpos.test",
            "password": "Password123!",
            "role": "super_admin",
        }, headers=admin_headers)
        assert response.status_code == 403

    def test_weak_password_rejected(self, client, db_session, admin_headers):
        response = client.post("/api/users", json={
            "username": "weak",
            "email": "weak@retailpos.test",
            "password": "password",
            "role": "sales",
        }, headers=admin_headers)
        assert response.status_code == 400

    def test_duplicate_username(self, client, db_session, admin_headers, sales_a):
        response = client.post("/api/users", json={
            "username": "sales_a",
            "email": "other@retailpos.test",
            "password": "Password123!",
            "role": "sales",
        }, headers=admin_headers)
        assert response.status_code == 409

    def test_super_admin_needs_store_for_store_roles(self, client, db_session, super_admin_headers):
        response = client.post("/api/users", json={
            "username": "floating",
            "email": "floating@retailpos.test",
            "password": "Password123!",
            "role": "manager",
        }, headers=super_admin_headers)
        assert response.status_code == 400

    def test_list_scoped_to_store(self, client, db_session, admin_headers, admin_a, sales_a, admin_b):
        response = client.get("/api/users", headers=admin_headers)

        usernames = {u["username"] for u in response.get_json()["items"]}
        assert usernames == {"admin_a", "sales_a"}
