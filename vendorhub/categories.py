"""Category access control for vendors.

``categories_allowed`` is derived once, when a vendor is created without an
explicit list. Later changes to ``business_type`` never recompute it; an
admin edits the list explicitly instead.
"""
from __future__ import annotations

import logging
from typing import Iterable

from .entities import User
from .errors import AuthorizationError, ValidationError

audit_logger = logging.getLogger("vendorhub.audit")

CATEGORIES = ("stays", "transport", "tours", "wellness", "tickets", "products")

DEFAULT_CATEGORIES = ("stays", "transport", "tours")

# businessType -> derived categories; unknown or missing types get DEFAULT_CATEGORIES
BUSINESS_TYPE_CATEGORIES = {
    "stays": ("stays", "tours", "wellness"),
    "accommodation": ("stays", "tours", "wellness"),
    "transport": ("transport", "tours"),
    "tours": ("tours", "tickets", "transport"),
    "activities": ("tours", "tickets", "transport"),
    "wellness": ("wellness", "tours"),
    "products": ("products", "tickets"),
    "retail": ("products", "tickets"),
}

# singular tags used by the booking form
BOOKING_CATEGORY_ALIASES = {
    "stay": "stays",
    "vehicle": "transport",
    "vehicles": "transport",
    "ticket": "tickets",
    "tour": "tours",
    "product": "products",
}


def derive_categories(business_type: str | None) -> list[str]:
    """Categories a new vendor may operate in, from its business type."""
    key = (business_type or "").strip().lower()
    return list(BUSINESS_TYPE_CATEGORIES.get(key, DEFAULT_CATEGORIES))


def normalize_category(category: str | None, field: str = "category") -> str:
    if category is not None and not isinstance(category, str):
        raise ValidationError(
            f"{field} must be a category name",
            field=field,
            allowed=CATEGORIES,
            code="invalid_category",
        )
    tag = (category or "").strip().lower()
    return BOOKING_CATEGORY_ALIASES.get(tag, tag)


def validate_categories(categories: Iterable[str]) -> list[str]:
    """Check an explicit category list against the known vocabulary, keeping order."""
    if not isinstance(categories, (list, tuple)):
        raise ValidationError(
            "categories_allowed must be a list", field="categories_allowed", allowed=CATEGORIES
        )

    cleaned: list[str] = []
    for category in categories:
        tag = normalize_category(category, "categories_allowed")
        if tag not in CATEGORIES:
            raise ValidationError(
                f"unknown category '{category}'",
                field="categories_allowed",
                allowed=CATEGORIES,
                code="invalid_category",
            )
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def ensure_category_allowed(user: User, category: str | None) -> str:
    """Return the normalised category or raise if the vendor may not use it.

    Rejections are written to the audit log before raising.
    """
    tag = normalize_category(category)
    if tag in user.categories_allowed:
        return tag

    audit_logger.warning(
        "Rejected booking in category %r for user %s (allowed: %s)",
        category,
        user.id,
        ", ".join(user.categories_allowed) or "none",
    )
    raise AuthorizationError(
        f"category '{category}' is not allowed for this vendor",
        field="category",
        allowed=user.categories_allowed,
    )
