"""
Pytest fixtures for the POS console API.

Provides an in-memory database, a data service bound to it, the test
client, and factories for stores, staff, products and customers.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("STORE_TIMEZONE", "UTC")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from pos_console.core.hashing import hash_password
from pos_console.core.jwt import create_session_token
from pos_console.database import Base, SessionLocal, engine, get_db
from pos_console.main import app
from pos_console.services.carts import cart_registry
from pos_console.services.data_service import DataService, get_data_service


ADMIN_PASSWORD = "Counter-Top-42"


@pytest.fixture(scope="function")
def db_session():
    """Fresh schema for each test."""
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
    cart_registry.clear()


@pytest.fixture(scope="function")
def data(db_session):
    return DataService(db_session)


@pytest.fixture(scope="function")
def client(db_session):
    """Test client whose requests share the test's database session."""
    app.dependency_overrides[get_db] = lambda: db_session

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def store(data):
    return data.insert("stores", {"name": "Main Street Store"})


@pytest.fixture(scope="function")
def other_store(data):
    return data.insert("stores", {"name": "Harbour Store"})


@pytest.fixture(scope="function")
def make_user(data, store):
    def _make_user(email="admin@cornerstore.com", role="admin", store_id=None, **fields):
        row = {
            "email": email,
            "password_hash": hash_password(ADMIN_PASSWORD),
            "full_name": "Ana Admin" if role == "admin" else "Eli Employee",
            "role": role,
            "store_id": store["id"] if store_id is None else store_id,
        }
        row.update(fields)
        return data.insert("users_profile", row)

    return _make_user


@pytest.fixture(scope="function")
def admin_user(make_user):
    return make_user()


@pytest.fixture(scope="function")
def employee_user(make_user):
    return make_user(email="cashier@cornerstore.com", role="employee")


@pytest.fixture(scope="function")
def headers_for():
    def _headers_for(user: dict) -> dict:
        return {"Authorization": f"Bearer {create_session_token(user)}"}

    return _headers_for


@pytest.fixture(scope="function")
def auth_headers(admin_user, headers_for):
    return headers_for(admin_user)


@pytest.fixture(scope="function")
def make_product(data, store):
    def _make_product(name="Coffee Beans 1kg", selling_price="10.00", stock_quantity=5, **fields):
        row = {
            "name": name,
            "cost_price": Decimal("6.00"),
            "selling_price": Decimal(selling_price),
            "stock_quantity": stock_quantity,
            "min_stock_level": 0,
            "is_active": True,
            "store_id": store["id"],
        }
        row.update(fields)
        return data.insert("products", row)

    return _make_product


@pytest.fixture(scope="function")
def make_customer(data, store):
    def _make_customer(name="Rosa Pérez", current_credit="0.00", credit_limit="500.00", **fields):
        row = {
            "name": name,
            "current_credit": Decimal(current_credit),
            "credit_limit": Decimal(credit_limit),
            "store_id": store["id"],
        }
        row.update(fields)
        return data.insert("customers", row)

    return _make_customer


@pytest.fixture(scope="function")
def password():
    return ADMIN_PASSWORD


@pytest.fixture(scope="function")
def stale_email_check(client, db_session):
    """Make the pre-insert email check miss, as when two requests race."""

    class StaleEmailCheck(DataService):
        def count(self, table, filters=()):
            if table == "users_profile":
                return 0
            return super().count(table, filters)

    app.dependency_overrides[get_data_service] = lambda: StaleEmailCheck(db_session)

    yield

    app.dependency_overrides.pop(get_data_service, None)
