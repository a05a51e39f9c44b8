"""
Pytest fixtures for retail_pos backend tests.

Provides an in-memory application, a per-test clean database, an
authenticated client and small catalog factories.
"""

import itertools

import pytest

from retail_pos import create_app
from retail_pos.extensions import db
from retail_pos.models import Product, Variant
from retail_pos.services import auth_service, session_service

_sku_suffix = itertools.count(1000)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SALE_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def user(db_session):
    return auth_service.create_user(db_session, username="cashier", password="Password123")


@pytest.fixture(scope='function')
def auth_headers(db_session, user):
    """Bearer header for a freshly issued session token."""
    _, token = session_service.create_session(db_session, user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: product with one variant per (size, color, stock, price_cents) tuple."""
    def _make(name="Remera Vintage", variants=(("M", "Rojo", 10, 10000),), **fields):
        product = Product(name=name, **fields)
        db_session.add(product)
        db_session.flush()
        for size, color, stock, price_cents in variants:
            db_session.add(Variant(
                product_id=product.id,
                size=size,
                color=color,
                stock=stock,
                cost_price_cents=price_cents // 2,
                sell_price_cents=price_cents,
                sku=f"{name[:3].upper()}-{size}-{color[:3].upper()}-{next(_sku_suffix)}",
            ))
        db_session.commit()
        return product
    return _make


@pytest.fixture(scope='function')
def variant(make_product):
    """Single variant: stock 10, sell price 100.00."""
    return make_product().variants[0]
