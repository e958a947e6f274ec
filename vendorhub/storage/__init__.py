"""Storage selection.

The active backend is chosen from ``STORAGE_MODE`` when the app is created
and kept on ``app.extensions``; request handlers receive it through
``get_storage()`` and pass it into the services they build. Swapping is an
operator action: the new backend is prepared and seeded before it replaces
the old one.
"""
from __future__ import annotations

import logging

from flask import Flask, current_app

from ..extensions import db
from .base import Storage
from .database import DatabaseStorage
from .memory import MemoryStorage

logger = logging.getLogger(__name__)

EXTENSION_KEY = "vendorhub.storage"

STORAGE_MODES = {
    "memory": "memory",
    "database": "database",
    "postgres": "database",
    "sql": "database",
}


def resolve_mode(mode: str) -> str:
    key = (mode or "").strip().lower()
    if key not in STORAGE_MODES:
        raise ValueError(f"unknown storage mode {mode!r}; expected one of {', '.join(STORAGE_MODES)}")
    return STORAGE_MODES[key]


def build_storage(mode: str) -> Storage:
    if resolve_mode(mode) == "database":
        return DatabaseStorage()
    return MemoryStorage()


def prepare_storage(app: Flask, storage: Storage) -> Storage:
    """Create tables and default accounts for a backend about to be installed."""
    from ..seed import seed_default_accounts

    with app.app_context():
        if storage.mode == "database":
            db.create_all()
        if app.config.get("SEED_DEFAULT_ACCOUNTS"):
            seed_default_accounts(storage, app.config)
    return storage


def install_storage(app: Flask, storage: Storage) -> Storage:
    app.extensions[EXTENSION_KEY] = storage
    logger.info("Storage backend set to %s", storage.mode)
    return storage


def get_storage() -> Storage:
    return current_app.extensions[EXTENSION_KEY]


def switch_storage(app: Flask, mode: str) -> Storage:
    previous = app.extensions.get(EXTENSION_KEY)
    storage = prepare_storage(app, build_storage(mode))
    install_storage(app, storage)
    logger.info(
        "Switched storage from %s to %s",
        previous.mode if previous is not None else "none",
        storage.mode,
    )
    return storage


__all__ = [
    "DatabaseStorage",
    "MemoryStorage",
    "Storage",
    "STORAGE_MODES",
    "build_storage",
    "get_storage",
    "install_storage",
    "prepare_storage",
    "resolve_mode",
    "switch_storage",
]
