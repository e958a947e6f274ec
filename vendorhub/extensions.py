"""Shared Flask extensions for the application."""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

# SQLAlchemy database instance used by the durable storage backend.
db = SQLAlchemy()
