"""User registration, authentication and admin-side vendor management."""
from __future__ import annotations

import logging
from typing import Any, Mapping

from werkzeug.security import check_password_hash, generate_password_hash

from .categories import derive_categories, validate_categories
from .entities import ROLES, User
from .errors import AuthorizationError, Conflict, NotFound, ValidationError
from .notifications import INFO, NotificationDispatcher
from .storage.base import Storage

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("username", "email", "password", "full_name", "business_name", "business_type")
PROFILE_FIELDS = ("full_name", "business_name", "business_type")


def require_admin(actor: User) -> None:
    if not actor.is_admin:
        raise AuthorizationError("admin role required", field="role", allowed=["admin"])


class UserService:
    def __init__(self, storage: Storage, dispatcher: NotificationDispatcher | None = None) -> None:
        self.storage = storage
        self.dispatcher = dispatcher or NotificationDispatcher(storage)

    def get_user(self, user_id: int) -> User:
        user = self.storage.get_user(user_id)
        if user is None:
            raise NotFound("user not found")
        return user

    def create_user(self, draft: Mapping[str, Any]) -> User:
        """Create a user after the uniqueness checks.

        A vendor without an explicit ``categories_allowed`` gets the list
        derived from its business type.
        """
        values = {name: draft.get(name) for name in REQUIRED_FIELDS}
        for name, value in values.items():
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} is required", field=name)

        values = {name: value.strip() for name, value in values.items()}
        values["email"] = values["email"].lower()

        role = draft.get("role") or "vendor"
        if not isinstance(role, str) or role.strip().lower() not in ROLES:
            raise ValidationError(f"role must be one of: {', '.join(ROLES)}", field="role", allowed=ROLES)
        role = role.strip().lower()

        if self.storage.get_user_by_email(values["email"]) is not None:
            raise Conflict("email address is already in use", field="email")
        if self.storage.get_user_by_username(values["username"]) is not None:
            raise Conflict("username is already taken", field="username")

        categories = draft.get("categories_allowed")
        if categories:
            categories = validate_categories(categories)
        elif role == "vendor":
            categories = derive_categories(values["business_type"])
        else:
            categories = []

        values["password"] = generate_password_hash(values["password"])
        user = self.storage.create_user({**values, "role": role, "categories_allowed": categories})
        logger.info("Created %s %s with categories %s", role, user.id, list(user.categories_allowed))
        return user

    def register(self, draft: Mapping[str, Any]) -> User:
        user = self.create_user(draft)
        self.dispatcher.notify(
            user.id,
            "Welcome to IslandLoaf",
            f"Welcome to IslandLoaf, {user.full_name}! Your account has been created successfully. "
            "Get started by adding your first service.",
            INFO,
        )
        return user

    def apply_as_vendor(self, draft: Mapping[str, Any]) -> User:
        vendor = self.create_user({**draft, "role": "vendor"})
        self.dispatcher.notify_admins(
            "New Vendor Application",
            f"New vendor application from {vendor.business_name} ({vendor.email}) awaiting approval.",
            INFO,
        )
        return vendor

    def authenticate(self, email: str, password: str) -> User | None:
        user = self.storage.get_user_by_email(email.strip())
        if user is None or not check_password_hash(user.password, password):
            return None
        return user

    def update_profile(self, user_id: int, changes: Mapping[str, Any]) -> User:
        unexpected = sorted(set(changes) - set(PROFILE_FIELDS))
        if unexpected:
            raise ValidationError(
                f"{unexpected[0]} cannot be edited from the profile",
                field=unexpected[0],
                allowed=PROFILE_FIELDS,
            )
        # business_type edits leave categories_allowed alone
        user = self.storage.update_user(user_id, changes)
        if user is None:
            raise NotFound("user not found")
        return user

    def list_users(self, actor: User) -> list[User]:
        require_admin(actor)
        return self.storage.list_users()

    def list_vendors(self, actor: User) -> list[User]:
        require_admin(actor)
        return self.storage.list_users(role="vendor")

    def update_categories(self, actor: User, vendor_id: int, categories: Any) -> User:
        require_admin(actor)
        if not categories:
            raise ValidationError("categories_allowed must not be empty", field="categories_allowed")
        cleaned = validate_categories(categories)

        vendor = self.get_user(vendor_id)
        if vendor.role != "vendor":
            raise ValidationError("only vendors have category permissions", field="role", allowed=["vendor"])

        updated = self.storage.update_user(vendor_id, {"categories_allowed": cleaned})
        if updated is None:
            raise NotFound("user not found")
        logger.info("Admin %s set categories of vendor %s to %s", actor.id, vendor_id, cleaned)
        return updated
