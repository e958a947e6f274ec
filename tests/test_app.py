"""Tests for the app factory, storage selection and default accounts."""
from __future__ import annotations

import pytest

from conftest import make_app
from vendorhub import create_app
from vendorhub.extensions import db
from vendorhub.seed import seed_default_accounts
from vendorhub.storage import (DatabaseStorage, MemoryStorage, build_storage, get_storage,
                               resolve_mode)


@pytest.mark.parametrize(
    ("mode", "expected"),
    [("memory", "memory"), ("database", "database"), ("Postgres", "database"), ("sql", "database")],
)
def test_resolve_mode(mode, expected) -> None:
    assert resolve_mode(mode) == expected


def test_unknown_mode_fails_at_startup() -> None:
    with pytest.raises(ValueError):
        resolve_mode("redis")
    with pytest.raises(ValueError):
        make_app("redis")


def test_build_storage() -> None:
    assert isinstance(build_storage("memory"), MemoryStorage)
    assert isinstance(build_storage("postgres"), DatabaseStorage)


def test_injected_storage_is_used() -> None:
    storage = MemoryStorage()
    app = create_app(
        {"TESTING": True, "STORAGE_MODE": "database", "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:"},
        storage=storage,
    )

    with app.app_context():
        assert get_storage() is storage


@pytest.mark.parametrize("mode", ["memory", "database"])
def test_default_accounts_seeded(mode) -> None:
    app = make_app(mode, SEED_DEFAULT_ACCOUNTS=True, DEFAULT_ADMIN_PASSWORD="a-secret")
    client = app.test_client()

    try:
        with app.app_context():
            storage = get_storage()
            admin = storage.get_user_by_email("admin@islandloaf.com")
            vendor = storage.get_user_by_username("vendor")
            assert admin.role == "admin"
            assert vendor.role == "vendor"
            assert list(vendor.categories_allowed) == ["stays", "tours", "wellness"]
            assert seed_default_accounts(storage, app.config) == []

        login = client.post("/auth/login", json={"email": "admin@islandloaf.com", "password": "a-secret"})
        assert login.status_code == 200
    finally:
        with app.app_context():
            db.session.remove()
            db.drop_all()


def test_cors_headers(client) -> None:
    response = client.get("/health", headers={"Origin": "https://dashboard.example.com"})

    assert response.headers.get("Access-Control-Allow-Origin") in {"*", "https://dashboard.example.com"}
