"""
Pytest fixtures for PharmaTrack backend tests.

Provides test database setup, two-shop tenant fixtures, and test client.
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from pharmatrack import create_app
from pharmatrack.extensions import db
from pharmatrack.models import Customer, Medicine, Shop, User
from pharmatrack.services.auth_service import hash_password
from pharmatrack.services.token_service import issue_token
from pharmatrack.time_utils import utcnow


PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'JWT_SECRET': 'test-jwt-secret',
        'BCRYPT_ROUNDS': 4,
        'LOG_LEVEL': 'WARNING',
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


def make_shop(session, name: str, status: str = "trial", **fields) -> Shop:
    now = utcnow()
    shop = Shop(
        shop_name=name,
        owner_name=f"{name} Owner",
        subscription_type=fields.pop("subscription_type", "trial"),
        subscription_status=status,
        trial_ends_at=fields.pop("trial_ends_at", now + timedelta(days=30)),
        is_active=True,
        **fields,
    )
    session.add(shop)
    session.commit()
    return shop


def make_user(session, shop: Shop | None, username: str, role: str = "admin") -> User:
    user = User(
        shop_id=shop.id if shop else None,
        username=username,
        password_hash=hash_password(PASSWORD),
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    return user


def make_medicine(session, shop: Shop, name: str, stock: int = 5, price: str = "100.00", expiry: str = "2030-12") -> Medicine:
    medicine = Medicine(
        shop_id=shop.id,
        name=name,
        mrp=Decimal(price),
        selling_price=Decimal(price),
        stock=stock,
        expiry=expiry,
    )
    session.add(medicine)
    session.commit()
    return medicine


def token_for(user: User) -> str:
    """Helper to sign a credential for a user."""
    return issue_token(user_id=user.id, shop_id=user.shop_id, role=user.role)


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def shop_a(db_session):
    """Shop A (first tenant), in an active trial."""
    return make_shop(db_session, "Shop A Pharmacy")


@pytest.fixture(scope='function')
def shop_b(db_session):
    """Shop B (second tenant), in an active trial."""
    return make_shop(db_session, "Shop B Chemists")


@pytest.fixture(scope='function')
def admin_a(db_session, shop_a):
    return make_user(db_session, shop_a, "admin_a", role="admin")


@pytest.fixture(scope='function')
def admin_b(db_session, shop_b):
    return make_user(db_session, shop_b, "admin_b", role="admin")


@pytest.fixture(scope='function')
def staff_a(db_session, shop_a):
    return make_user(db_session, shop_a, "staff_a", role="staff")


@pytest.fixture(scope='function')
def superadmin(db_session):
    return make_user(db_session, None, "root_admin", role="superadmin")


@pytest.fixture(scope='function')
def headers_a(admin_a):
    return auth_headers(token_for(admin_a))


@pytest.fixture(scope='function')
def headers_b(admin_b):
    return auth_headers(token_for(admin_b))


@pytest.fixture(scope='function')
def staff_headers_a(staff_a):
    return auth_headers(token_for(staff_a))


@pytest.fixture(scope='function')
def superadmin_headers(superadmin):
    return auth_headers(token_for(superadmin))


@pytest.fixture(scope='function')
def medicine_a(db_session, shop_a):
    """Paracetamol in Shop A: stock 5 at 100.00."""
    return make_medicine(db_session, shop_a, "Paracetamol 500mg", stock=5, price="100.00")


@pytest.fixture(scope='function')
def medicine_b(db_session, shop_b):
    return make_medicine(db_session, shop_b, "Cetirizine 10mg", stock=20, price="40.00")


@pytest.fixture(scope='function')
def customer_a(db_session, shop_a):
    customer = Customer(shop_id=shop_a.id, name="Ravi Kumar", phone="9876543210", address="MG Road", customer_id="CUST-9001")
    db_session.add(customer)
    db_session.commit()
    return customer
