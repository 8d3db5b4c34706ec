"""
Pytest fixtures for the rice mill backend tests.

Provides test database setup, admin/dealer accounts, a godown with one
sellable SKU, and a test client.
"""

from decimal import Decimal

import pytest

from ricemill import create_app
from ricemill.extensions import db
from ricemill.models import Godown, RiceStock
from ricemill.services import auth_service, dealer_service, session_service
from ricemill.time_utils import utcnow

TEST_PASSWORD = "Password123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
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
def admin_user(db_session):
    return auth_service.create_admin(name="Mill Admin", email="admin@mill.local", password=TEST_PASSWORD)


@pytest.fixture(scope='function')
def dealer(db_session):
    return dealer_service.create_dealer({
        "dealer_name": "Ravi Kumar",
        "business_name": "Ravi Traders",
        "contact_number": "9876543210",
        "location": "Guntur",
    })


@pytest.fixture(scope='function')
def dealer_user(db_session, dealer):
    return auth_service.setup_dealer_password(dealer.dealer_id, TEST_PASSWORD)


@pytest.fixture(scope='function')
def godown(db_session):
    godown = Godown(name="Main Godown", location="North Yard", capacity=Decimal("100000"), current_stock=Decimal("0"))
    db_session.add(godown)
    db_session.commit()
    return godown


@pytest.fixture(scope='function')
def make_sku(db_session, godown):
    """Factory for SKUs in the test godown."""
    def _make(*, rice_type, rice_name, quantity_kg, status="ready", **bags):
        return _create_sku(db_session, godown, rice_type=rice_type, rice_name=rice_name,
                           quantity_kg=quantity_kg, status=status, **bags)
    return _make


@pytest.fixture(scope='function')
def sku(make_sku):
    """Basmati / Royal: 10 x 25kg bags and 300 kg bulk."""
    return make_sku(rice_type="Basmati", rice_name="Royal", bags_25kg=10, quantity_kg="300")


def _create_sku(db_session, godown, *, rice_type, rice_name, quantity_kg, status="ready", **bags):
    sku = RiceStock(
        rice_type=rice_type,
        rice_name=rice_name,
        quantity_kg=Decimal(quantity_kg),
        bags_5kg=bags.get("bags_5kg", 0),
        bags_10kg=bags.get("bags_10kg", 0),
        bags_25kg=bags.get("bags_25kg", 0),
        bags_75kg=bags.get("bags_75kg", 0),
        godown_id=godown.id,
        production_date=utcnow(),
        status=status,
    )
    db_session.add(sku)
    db_session.commit()
    return sku


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    _, token = session_service.create_session(admin_user)
    return auth_headers(token)


@pytest.fixture(scope='function')
def dealer_headers(dealer_user):
    _, token = session_service.create_session(dealer_user)
    return auth_headers(token)


def get_auth_token(client, path: str, payload: dict) -> str:
    """Helper to get auth token through a login endpoint."""
    response = client.post(path, json=payload)
    if response.status_code in (200, 201):
        return response.json.get('token')
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
