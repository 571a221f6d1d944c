"""
Pytest fixtures for tillbook backend tests.

Provides test database setup, a seeded menu catalog, the sale session and a
test client.
"""

from pathlib import Path

import pytest
from sqlalchemy.exc import OperationalError

from tillbook import create_app
from tillbook.extensions import db
from tillbook.services import sales_service


MENUS_PATH = Path(__file__).parent / "fixtures" / "menus.json"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'CATALOG_PATH': str(MENUS_PATH),
        'DEFAULT_ITEM_QUANTITY': 10,
        'DEFAULT_ITEM_PRICE': '25.00',
        'LAYAWAY_DOWN_PAYMENT_RATE': '0.30',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database (and a fresh sale session) for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        sales_service.reset_session()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        sales_service.reset_session()


@pytest.fixture(scope='function')
def session(db_session):
    """Sale session with every tracked catalog item at quantity 10."""
    return sales_service.current_session()


@pytest.fixture(scope='function')
def fail_next_save(monkeypatch):
    """Call with a sale session to make its next snapshot write fail once."""
    def arm(sale_session):
        store = sale_session.layaway_store
        stage = store.stage
        failures = [OperationalError("INSERT INTO layaway_holds", {}, Exception("database is locked"))]

        def flaky_stage(holds):
            stage(holds)
            if failures:
                raise failures.pop()

        monkeypatch.setattr(store, "stage", flaky_stage)
    return arm
