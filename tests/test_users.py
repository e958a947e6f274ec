"""Tests for user creation, profile edits and vendor applications."""
from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from conftest import VENDOR_PASSWORD, vendor_draft
from vendorhub.errors import AuthorizationError, Conflict, NotFound, ValidationError
from vendorhub.users import UserService


def _admin(users: UserService):
    return users.create_user(
        {
            "username": "admin",
            "email": "admin@example.com",
            "password": "AdminPass1!",
            "full_name": "Admin User",
            "business_name": "IslandLoaf Admin",
            "business_type": "stays",
            "role": "admin",
        }
    )


def test_create_vendor_derives_categories_once(storage) -> None:
    users = UserService(storage)

    first = users.create_user(vendor_draft(1, business_type="wellness"))
    second = users.create_user(vendor_draft(2, business_type="wellness"))

    assert list(first.categories_allowed) == ["wellness", "tours"]
    assert second.categories_allowed == first.categories_allowed


def test_admin_without_categories_gets_empty_list(storage) -> None:
    admin = _admin(UserService(storage))

    assert admin.role == "admin"
    assert admin.categories_allowed == ()


def test_password_is_hashed(storage) -> None:
    user = UserService(storage).create_user(vendor_draft(1))

    stored = storage.get_user(user.id)
    assert stored.password != VENDOR_PASSWORD
    assert check_password_hash(stored.password, VENDOR_PASSWORD)


def test_authenticate(storage) -> None:
    users = UserService(storage)
    user = users.create_user(vendor_draft(1))

    assert users.authenticate("vendor1@example.com", VENDOR_PASSWORD).id == user.id
    assert users.authenticate("vendor1@example.com", "wrong") is None
    assert users.authenticate("nobody@example.com", VENDOR_PASSWORD) is None


def test_create_user_conflicts(storage) -> None:
    users = UserService(storage)
    users.create_user(vendor_draft(1))

    with pytest.raises(Conflict) as excinfo:
        users.create_user(vendor_draft(2, email="vendor1@example.com"))
    assert excinfo.value.field == "email"

    with pytest.raises(Conflict) as excinfo:
        users.create_user(vendor_draft(3, username="VENDOR1"))
    assert excinfo.value.field == "username"


def test_create_user_rejects_unknown_role(storage) -> None:
    with pytest.raises(ValidationError) as excinfo:
        UserService(storage).create_user(vendor_draft(1, role="superuser"))

    assert excinfo.value.field == "role"
    assert excinfo.value.allowed == ["admin", "vendor"]


def test_business_type_edit_keeps_categories(storage) -> None:
    users = UserService(storage)
    vendor = users.create_user(vendor_draft(1, business_type="transport"))

    updated = users.update_profile(vendor.id, {"business_type": "wellness"})

    assert updated.business_type == "wellness"
    assert list(updated.categories_allowed) == ["transport", "tours"]


def test_profile_cannot_edit_categories(storage) -> None:
    users = UserService(storage)
    vendor = users.create_user(vendor_draft(1))

    with pytest.raises(ValidationError):
        users.update_profile(vendor.id, {"categories_allowed": ["products"]})


def test_update_categories_requires_admin(storage) -> None:
    users = UserService(storage)
    vendor = users.create_user(vendor_draft(1))

    with pytest.raises(AuthorizationError):
        users.update_categories(vendor, vendor.id, ["products"])


def test_admin_updates_categories(storage) -> None:
    users = UserService(storage)
    admin = _admin(users)
    vendor = users.create_user(vendor_draft(1))

    updated = users.update_categories(admin, vendor.id, ["products", "ticket"])

    assert list(updated.categories_allowed) == ["products", "tickets"]
    assert list(storage.get_user(vendor.id).categories_allowed) == ["products", "tickets"]


def test_admin_category_edit_validation(storage) -> None:
    users = UserService(storage)
    admin = _admin(users)
    vendor = users.create_user(vendor_draft(1))

    with pytest.raises(ValidationError):
        users.update_categories(admin, vendor.id, [])
    with pytest.raises(ValidationError):
        users.update_categories(admin, admin.id, ["stays"])
    with pytest.raises(NotFound):
        users.update_categories(admin, 999, ["stays"])


def test_vendor_application_notifies_every_admin(storage) -> None:
    users = UserService(storage)
    admin = _admin(users)
    second_admin = users.create_user({**vendor_draft(9), "role": "admin"})

    vendor = users.apply_as_vendor(vendor_draft(1, role="admin"))

    assert vendor.role == "vendor"
    for target in (admin, second_admin):
        notifications = storage.list_notifications(target.id)
        assert [note.title for note in notifications] == ["New Vendor Application"]
        assert vendor.email in notifications[0].message
    assert storage.list_notifications(vendor.id) == []


def test_vendor_application_without_admins_still_succeeds(storage, caplog) -> None:
    vendor = UserService(storage).apply_as_vendor(vendor_draft(1))

    assert storage.get_user(vendor.id) is not None
    assert "No admin user" in caplog.text


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"categories_allowed": [1]}, "categories_allowed"),
        ({"categories_allowed": 5}, "categories_allowed"),
        ({"categories_allowed": {"stays": True}}, "categories_allowed"),
        ({"role": 3}, "role"),
        ({"full_name": None}, "full_name"),
        ({"email": ["vendor@example.com"]}, "email"),
    ],
)
def test_create_user_rejects_wrong_types(storage, overrides, field) -> None:
    users = UserService(storage)

    with pytest.raises(ValidationError) as excinfo:
        users.create_user(vendor_draft(1, **overrides))

    assert excinfo.value.field == field
    assert storage.list_users() == []


@pytest.mark.parametrize("changes", [{"full_name": None}, {"business_name": 12}, {"business_type": None}])
def test_profile_rejects_null_and_wrong_types(storage, changes) -> None:
    users = UserService(storage)
    vendor = users.create_user(vendor_draft(1))

    with pytest.raises(ValidationError) as excinfo:
        users.update_profile(vendor.id, changes)

    assert excinfo.value.field == next(iter(changes))
    assert storage.get_user(vendor.id) == vendor
