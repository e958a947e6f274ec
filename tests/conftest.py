"""pytest configuration: path management and shared fixtures.

Every test that takes ``app`` runs once per storage backend.
"""
from __future__ import annotations

import itertools
import sys
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the app package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from vendorhub import create_app  # noqa: E402
from vendorhub.extensions import db  # noqa: E402
from vendorhub.storage import get_storage  # noqa: E402
from vendorhub.users import UserService  # noqa: E402

AGENT_KEY = "agent-test-key"
ADMIN_PASSWORD = "AdminPass1!"
VENDOR_PASSWORD = "Secret123!"


def make_app(mode: str, **overrides):
    config = {
        "TESTING": True,
        "STORAGE_MODE": mode,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
        "SECRET_KEY": "test-secret",
        "AGENT_API_KEY": AGENT_KEY,
        "SEED_DEFAULT_ACCOUNTS": False,
        "LOG_LEVEL": "DEBUG",
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture(params=["memory", "database"])
def app(request):
    flask_app = make_app(request.param)
    yield flask_app
    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage(app):
    """The active backend inside a pushed app context, for core-level tests."""
    with app.app_context():
        yield get_storage()


def vendor_draft(number: int, **overrides) -> dict[str, object]:
    draft = {
        "username": f"vendor{number}",
        "email": f"vendor{number}@example.com",
        "password": VENDOR_PASSWORD,
        "full_name": f"Vendor {number}",
        "business_name": f"Vendor {number} Villas",
        "business_type": "stays",
    }
    draft.update(overrides)
    return draft


@pytest.fixture
def register_vendor(client):
    """Register a vendor over HTTP; returns ``(user, auth_headers)``."""
    counter = itertools.count(1)

    def _register(**overrides):
        response = client.post("/auth/register", json=vendor_draft(next(counter), **overrides))
        assert response.status_code == 201, response.get_json()
        body = response.get_json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register


@pytest.fixture
def admin_headers(app, client):
    with app.app_context():
        UserService(get_storage()).create_user(
            {
                "username": "admin",
                "email": "admin@example.com",
                "password": ADMIN_PASSWORD,
                "full_name": "Admin User",
                "business_name": "IslandLoaf Admin",
                "business_type": "stays",
                "role": "admin",
            }
        )

    response = client.post("/auth/login", json={"email": "admin@example.com", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def create_service(client):
    def _create(headers, **overrides):
        payload = {"name": "Sea View Villa", "description": "Two bedrooms", "type": "stays", "base_price": 150}
        payload.update(overrides)
        response = client.post("/services", json=payload, headers=headers)
        assert response.status_code == 201, response.get_json()
        return response.get_json()["service"]

    return _create


@pytest.fixture
def booking_payload():
    def _payload(service_id: int, /, **overrides):
        payload = {
            "service_id": service_id,
            "customer_name": "Jane Traveller",
            "customer_email": "jane@example.com",
            "start_date": "2026-12-01T14:00:00Z",
            "end_date": "2026-12-05T10:00:00Z",
            "total_price": 600,
        }
        payload.update(overrides)
        return payload

    return _payload
