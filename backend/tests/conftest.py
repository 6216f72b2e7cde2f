"""
Pytest fixtures for storefront backend tests.

Provides the test app (in-memory SQLite), per-test table clearing, users
with bearer tokens, and a product factory.
"""

import pytest
from storefront import create_app
from storefront.config import TestConfig
from storefront.extensions import db
from storefront.models import Product
from storefront.services import auth_service, session_service

DEFAULT_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


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


def _make_user(username: str, email: str, role: str):
    return auth_service.create_user(username, email, DEFAULT_PASSWORD, role=role)


@pytest.fixture(scope='function')
def customer(db_session):
    return _make_user("alice", "alice@example.com", "customer")


@pytest.fixture(scope='function')
def other_customer(db_session):
    return _make_user("bob", "bob@example.com", "customer")


@pytest.fixture(scope='function')
def admin(db_session):
    return _make_user("root", "root@example.com", "admin")


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def headers_for(user) -> dict:
    _session, token = session_service.create_session(user.id)
    return auth_headers(token)


@pytest.fixture(scope='function')
def customer_headers(customer):
    return headers_for(customer)


@pytest.fixture(scope='function')
def other_headers(other_customer):
    return headers_for(other_customer)


@pytest.fixture(scope='function')
def admin_headers(admin):
    return headers_for(admin)


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: make_product(quantity=10, price_cents=1000, name=...) -> product id."""
    counter = {"n": 0}

    def _make(quantity: int = 10, price_cents: int = 1000, name: str | None = None) -> int:
        counter["n"] += 1
        product = Product(
            batch_number=f"LOT-{counter['n']:03d}",
            name=name or f"Product {counter['n']}",
            price_cents=price_cents,
            quantity=quantity,
        )
        db_session.add(product)
        db_session.commit()
        return product.id

    return _make
