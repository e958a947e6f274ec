"""Environment driven configuration, read once at process start."""
from __future__ import annotations

import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    STORAGE_MODE = os.environ.get("STORAGE_MODE", "memory")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///vendorhub.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    TOKEN_MAX_AGE = int(os.environ.get("TOKEN_MAX_AGE", 86400))
    AGENT_API_KEY = os.environ.get("AGENT_API_KEY", "")

    DEFAULT_COMMISSION_RATE = float(os.environ.get("DEFAULT_COMMISSION_RATE", 0.10))

    SEED_DEFAULT_ACCOUNTS = _env_flag("SEED_DEFAULT_ACCOUNTS", True)
    DEFAULT_ADMIN_PASSWORD = os.environ.get("DEFAULT_ADMIN_PASSWORD", "admin123")
    DEFAULT_VENDOR_PASSWORD = os.environ.get("DEFAULT_VENDOR_PASSWORD", "vendor123")

    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
