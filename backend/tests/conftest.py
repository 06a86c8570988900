"""
Pytest fixtures for CRM backend tests.

Provides the in-memory application, a per-test wiped database, a test
client and small record factories.
"""

import pytest

from crm import create_app
from crm.config import TestConfig
from crm.extensions import db
from crm.models import Broker, Customer, Project, Receipt


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


@pytest.fixture(scope='function')
def customer(db_session):
    """Create customer C1."""
    customer = Customer(id="C1", name="Ayesha Khan", type="customer", status="active")
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def broker(db_session):
    """Create broker B1."""
    broker = Broker(id="B1", name="Bilal Estates", commission_rate=2)
    db_session.add(broker)
    db_session.commit()
    return broker


@pytest.fixture(scope='function')
def project(db_session, customer):
    """Create project P1 owned by C1 with nothing received."""
    project = Project(id="P1", customer_id=customer.id, name="Plot 12", sale=1000, received=0)
    db_session.add(project)
    db_session.commit()
    return project


@pytest.fixture(scope='function')
def add_receipt(db_session):
    """Insert a receipt row directly, without touching project totals."""
    def _add(receipt_id, project_id, amount):
        receipt = Receipt(id=receipt_id, project_id=project_id, amount=amount, date="2024-01-01")
        db_session.add(receipt)
        db_session.commit()
        return receipt
    return _add
