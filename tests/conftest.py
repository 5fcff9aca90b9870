"""
Pytest configuration and shared fixtures for leverage_tracker tests.

The app fixture builds a fresh app on in-memory SQLite for every test.
Requests made through ``client`` run in their own app context; store-level
tests use ``store``, which pushes one explicitly. Don't mix the two in a
single test: Flask-Login caches the user on ``g``, which lives as long as
the pushed app context.
"""
import pytest

from leverage_tracker import create_app
from leverage_tracker.config import TestConfig
from leverage_tracker.extensions import db, get_store
from leverage_tracker.services import register_account


# =============================================================================
# App / client
# =============================================================================

@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    with app.app_context():
        yield get_store()


@pytest.fixture
def account(store):
    """A registered user with a 1000.00 bankroll."""
    return register_account(store, "alice", "secret", 30, 1000.0)


# =============================================================================
# API helpers
# =============================================================================

def register(client, name="alice", password="secret", age=30, bankroll=1000):
    return client.post(
        "/api/register",
        json={"name": name, "password": password, "age": age, "bankroll": bankroll},
    )


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(client):
    """Bearer headers for a freshly registered user (bankroll 1000)."""
    res = register(client)
    assert res.status_code == 200, res.get_json()
    return bearer(res.get_json()["token"])


def create_leverage(client, headers, name="Daily", initial_value=200, **extra):
    body = {"name": name, "initialValue": initial_value}
    body.update(extra)
    return client.post("/api/leverages", json=body, headers=headers)
