"""
Shared pytest fixtures for the FiberTrack test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - location / wave: Pre-created entities via the API
"""

import pytest

from fibertrack import create_app
from fibertrack.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def wave(client):
    """Create and return a test Wave via the API."""
    res = client.post("/api/v1/waves", json={
        "name": "Wave 1 - Lower Mainland Hospitals",
        "start_date": "2024-01-01",
        "end_date": "2024-03-31",
        "region": "Lower Mainland",
        "customer_cohort": "Hospitals",
    })
    assert res.status_code == 201
    return res.get_json()


@pytest.fixture()
def location(client, wave):
    """Create and return a Location scheduled into ``wave``."""
    res = client.post("/api/v1/locations", json={
        "address": "123 Main St, Vancouver, BC",
        "region": "Lower Mainland",
        "coordinates": {"lat": 49.2827, "lng": -123.1207},
        "wave_id": wave["id"],
    })
    assert res.status_code == 201
    return res.get_json()
