"""
Pytest fixtures for SMS backend tests.

Provides test database setup, model factories, and test client.
"""

import pytest

from sms import create_app
from sms.extensions import db
from sms.models import Customer, Product, User, ROLE_REP


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'COMMIT_RETRY_BACKOFF': 0,
        'COMPANY_NAME': 'Test Traders',
        'COMPANY_ADDRESS': '1 Main Street',
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
    """Factory: product with a seeded stock level (fixtures only; services never set stock directly)."""
    counter = {"n": 0}

    def _make(code=None, *, stock=10, threshold=5, price_cents=1000, description=None, brand=None, model=None):
        counter["n"] += 1
        code = code or f"P-{counter['n']:03d}"
        product = Product(
            product_code=code,
            description=description or f"Product {code}",
            brand=brand,
            model=model,
            unit_price_cents=price_cents,
            current_stock=stock,
            min_stock_threshold=threshold,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(name="Acme Stores", **kwargs):
        customer = Customer(customer_name=name, **kwargs)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


@pytest.fixture(scope='function')
def make_rep(db_session):
    counter = {"n": 0}

    def _make(name="Field Rep"):
        counter["n"] += 1
        user = User(name=name, email=f"rep{counter['n']}@sms.local", role=ROLE_REP)
        db_session.add(user)
        db_session.commit()
        return user

    return _make


@pytest.fixture(scope='function')
def stock_of(db_session):
    """Current stock as committed, bypassing the identity map."""
    def _stock(product_id: int) -> int:
        db_session.expire_all()
        return db_session.get(Product, product_id).current_stock

    return _stock
