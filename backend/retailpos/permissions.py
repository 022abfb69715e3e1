"""
Role and permission definitions.

WHY: Centralized permission definitions ensure consistency across the application.
Roles are a closed set; each role maps to a fixed set of permission codes.

DESIGN PRINCIPLES:
- Permissions are granular (one action per permission)
- Default role mappings follow principle of least privilege
- super_admin has every permission and may act on any store
"""

# =============================================================================
# ROLES
# =============================================================================

ROLE_SUPER_ADMIN = "super_admin"
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_SALES = "sales"

ROLES = (ROLE_SUPER_ADMIN, ROLE_ADMIN, ROLE_MANAGER, ROLE_SALES)


# =============================================================================
# PERMISSION DEFINITIONS
# =============================================================================

# Each permission is defined as: (code, name, description)
PERMISSION_DEFINITIONS = [
    ("VIEW_INVENTORY", "View Inventory", "View products, categories and stock logs"),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, edit and delete products, categories and prices"),
    ("RECEIVE_INVENTORY", "Receive Inventory", "Receive stock (single and bulk)"),
    ("VIEW_REPORTS", "View Reports", "View stock value and low stock reports"),
    ("VIEW_SUPPLIERS", "View Suppliers", "View supplier list"),
    ("MANAGE_SUPPLIERS", "Manage Suppliers", "Create and edit suppliers"),
    ("MANAGE_PURCHASE_ORDERS", "Manage Purchase Orders", "Create, edit, cancel and delete purchase orders"),
    ("APPROVE_PURCHASE_ORDERS", "Approve Purchase Orders", "Approve purchase orders and mark them received"),
    ("MANAGE_USERS", "Manage Users", "Create and list user accounts"),
]

ALL_PERMISSIONS = frozenset(code for code, _, _ in PERMISSION_DEFINITIONS)


# =============================================================================
# DEFAULT ROLE PERMISSIONS
# =============================================================================

DEFAULT_ROLE_PERMISSIONS = {
    ROLE_SUPER_ADMIN: ALL_PERMISSIONS,
    ROLE_ADMIN: ALL_PERMISSIONS,
    ROLE_MANAGER: frozenset({
        "VIEW_INVENTORY",
        "MANAGE_PRODUCTS",
        "RECEIVE_INVENTORY",
        "VIEW_REPORTS",
        "VIEW_SUPPLIERS",
        "MANAGE_SUPPLIERS",
        "MANAGE_PURCHASE_ORDERS",
    }),
    ROLE_SALES: frozenset({
        "VIEW_INVENTORY",
        "VIEW_SUPPLIERS",
    }),
}


def get_role_permissions(role: str | None) -> frozenset:
    """Permission codes granted to a role. Unknown roles get nothing (fail closed)."""
    return DEFAULT_ROLE_PERMISSIONS.get(role, frozenset())


def role_has_permission(role: str | None, permission_code: str) -> bool:
    return permission_code in get_role_permissions(role)
