"""
Pytest fixtures for RetailPOS backend tests.

Provides test database setup, two stores with users per role, products,
a supplier, and bearer-token headers for the test client.
"""

from decimal import Decimal

import pytest
from retailpos import create_app
from retailpos.extensions import db
from retailpos.models import Store, User, Product, Category, Supplier
from retailpos.services.auth_service import hash_password
from retailpos.services.session_service import create_session


TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'UNIT_RATIOS': {"piece": 1, "pack": 3, "dozen": 12},
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='session')
def password_hash(app):
    """Hash the shared test password once per session."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def store_a(db_session):
    store = Store(name="Store A", code="A1")
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def store_b(db_session):
    store = Store(name="Store B", code="B1")
    db_session.add(store)
    db_session.commit()
    return store


def _make_user(db_session, password_hash, *, username, role, store):
    user = User(
        store_id=store.id if store else None,
        username=username,
        email=f"{username}@retailpos.test",
        name=username.replace("_", " ").title(),
        password_hash=password_hash,
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def super_admin(db_session, password_hash):
    return _make_user(db_session, password_hash, username="root", role="super_admin", store=None)


@pytest.fixture(scope='function')
def admin_a(db_session, password_hash, store_a):
    return _make_user(db_session, password_hash, username="admin_a", role="admin", store=store_a)


@pytest.fixture(scope='function')
def manager_a(db_session, password_hash, store_a):
    return _make_user(db_session, password_hash, username="manager_a", role="manager", store=store_a)


@pytest.fixture(scope='function')
def sales_a(db_session, password_hash, store_a):
    return _make_user(db_session, password_hash, username="sales_a", role="sales", store=store_a)


@pytest.fixture(scope='function')
def admin_b(db_session, password_hash, store_b):
    return _make_user(db_session, password_hash, username="admin_b", role="admin", store=store_b)


@pytest.fixture(scope='function')
def category_a(db_session, store_a):
    category = Category(store_id=store_a.id, name="Beverages")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def product_a(db_session, store_a):
    """Product in Store A with 10 pieces on hand."""
    product = Product(
        store_id=store_a.id,
        sku="PROD-A-001",
        name="Soda Can",
        quantity=10,
        min_quantity=5,
        piece_buying_price=Decimal("30.00"),
        piece_selling_price=Decimal("45.00"),
        pack_buying_price=Decimal("90.00"),
        pack_selling_price=Decimal("135.00"),
        dozen_buying_price=Decimal("360.00"),
        dozen_selling_price=Decimal("540.00"),
    )
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_a2(db_session, store_a):
    product = Product(store_id=store_a.id, sku="PROD-A-002", name="Water Bottle", quantity=0)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def product_b(db_session, store_b):
    product = Product(store_id=store_b.id, sku="PROD-B-001", name="Store B Chips", quantity=4)
    db_session.add(product)
    db_session.commit()
    return product


@pytest.fixture(scope='function')
def supplier_a(db_session, store_a):
    supplier = Supplier(store_id=store_a.id, name="Acme Wholesale", email="orders@acme.test")
    db_session.add(supplier)
    db_session.commit()
    return supplier


def get_auth_token(client, username: str, password: str = TEST_PASSWORD) -> str:
    """Helper to get auth token for a user through the login endpoint."""
    response = client.post('/api/auth/login', json={
        'username': username,
        'password': password
    })
    if response.status_code == 200:
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user: User) -> dict:
    """Issue a session directly (skips the bcrypt check of /login)."""
    _session, token = create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def super_admin_headers(super_admin):
    return headers_for(super_admin)


@pytest.fixture(scope='function')
def admin_headers(admin_a):
    return headers_for(admin_a)


@pytest.fixture(scope='function')
def manager_headers(manager_a):
    return headers_for(manager_a)


@pytest.fixture(scope='function')
def sales_headers(sales_a):
    return headers_for(sales_a)


@pytest.fixture(scope='function')
def admin_b_headers(admin_b):
    return headers_for(admin_b)
