"""
Pytest fixtures for stockroom backend tests.

Provides the test app (in-memory SQLite, inline rollups), a per-test clean
database, and product factories.
"""

from datetime import datetime

import pytest

from stockroom import create_app
from stockroom.extensions import db
from stockroom.services import products_service


# A Monday, so weekday-dependent expectations are easy to read
FIXED_NOW = datetime(2026, 1, 5, 12, 0, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ROLLUP_MODE': 'inline',
    })

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


@pytest.fixture(scope='function')
def make_product(db_session):
    """Factory: create a product through the products service."""
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        patch = {
            "sku": f"SKU-{counter['n']:03d}",
            "name": f"Product {counter['n']}",
            "price_cents": 4000,
            "cost_price_cents": 2700,
            "quantity": 10,
            "min_stock_level": 2,
            "category": "Grocery",
            "supplier": "Acme Wholesale",
        }
        patch.update(overrides)
        return products_service.create_product(patch=patch)

    return _make


@pytest.fixture(scope='function')
def product(make_product):
    """A $40.00 product costing $27.00 with 10 on hand."""
    return make_product(sku="MILK-001", name="Whole Milk", category="Dairy")


@pytest.fixture(scope='function')
def other_product(make_product):
    """A $5.00 product costing $3.00 with 50 on hand."""
    return make_product(
        sku="BREAD-001",
        name="Sourdough Bread",
        category="Bakery",
        price_cents=500,
        cost_price_cents=300,
        quantity=50,
        min_stock_level=5,
    )
