"""Tests for the admin endpoints."""
from __future__ import annotations

from conftest import vendor_draft


def test_admin_routes_require_admin(client, register_vendor) -> None:
    _, headers = register_vendor()

    assert client.get("/admin/vendors").status_code == 401
    response = client.get("/admin/vendors", headers=headers)
    assert response.status_code == 403
    assert response.get_json()["error"] == "forbidden"
    assert client.put("/admin/storage", json={"mode": "memory"}, headers=headers).status_code == 403


def test_list_vendors(client, admin_headers, register_vendor) -> None:
    first, _ = register_vendor()
    second, _ = register_vendor(business_type="retail")

    vendors = client.get("/admin/vendors", headers=admin_headers).get_json()["vendors"]

    assert [vendor["id"] for vendor in vendors] == [first["id"], second["id"]]
    assert vendors[1]["categories_allowed"] == ["products", "tickets"]


def test_edit_vendor_categories(client, admin_headers, register_vendor, create_service, booking_payload) -> None:
    vendor, vendor_headers = register_vendor(business_type="transport")
    service = create_service(vendor_headers, type="transport")

    response = client.put(
        f"/admin/vendors/{vendor['id']}/categories",
        json={"categories_allowed": ["stays"]},
        headers=admin_headers,
    )

    assert response.status_code == 200
    assert response.get_json()["vendor"]["categories_allowed"] == ["stays"]
    blocked = client.post("/bookings", json=booking_payload(service["id"]), headers=vendor_headers)
    assert blocked.status_code == 403


def test_edit_vendor_categories_validation(client, admin_headers, register_vendor) -> None:
    vendor, _ = register_vendor()

    unknown = client.put(
        f"/admin/vendors/{vendor['id']}/categories", json={"categories_allowed": ["casino"]}, headers=admin_headers
    )
    empty = client.put(
        f"/admin/vendors/{vendor['id']}/categories", json={"categories_allowed": []}, headers=admin_headers
    )
    missing = client.put("/admin/vendors/999/categories", json={"categories_allowed": ["stays"]},
                         headers=admin_headers)

    assert unknown.status_code == 400
    assert unknown.get_json()["error"] == "invalid_category"
    assert empty.status_code == 400
    assert missing.status_code == 404


def test_admin_bookings(client, admin_headers, register_vendor, create_service, booking_payload) -> None:
    _, first_headers = register_vendor()
    _, second_headers = register_vendor()
    first = client.post(
        "/bookings", json=booking_payload(create_service(first_headers)["id"]), headers=first_headers
    ).get_json()["booking"]
    second = client.post(
        "/bookings", json=booking_payload(create_service(second_headers)["id"]), headers=second_headers
    ).get_json()["booking"]

    listed = client.get("/admin/bookings", headers=admin_headers).get_json()["bookings"]
    assert [booking["id"] for booking in listed] == [first["id"], second["id"]]

    assert client.delete(f"/admin/bookings/{first['id']}", headers=admin_headers).status_code == 200
    again = client.delete(f"/admin/bookings/{first['id']}", headers=admin_headers)
    assert again.status_code == 404
    assert again.get_json()["deleted"] is False
    assert client.get(f"/bookings/{first['id']}", headers=first_headers).status_code == 404


def test_vendor_application_notifies_admin(client, admin_headers) -> None:
    response = client.post("/vendors/register", json=vendor_draft(1, business_type="tours"))

    assert response.status_code == 201
    vendor = response.get_json()["vendor"]
    assert vendor["categories_allowed"] == ["tours", "tickets", "transport"]

    notifications = client.get("/notifications", headers=admin_headers).get_json()["notifications"]
    assert notifications[0]["title"] == "New Vendor Application"
    assert vendor["email"] in notifications[0]["message"]


def test_swap_storage(app, client, admin_headers) -> None:
    target = "database" if app.config["STORAGE_MODE"] == "memory" else "memory"
    app.config["SEED_DEFAULT_ACCOUNTS"] = True
    app.config["DEFAULT_ADMIN_PASSWORD"] = "admin123"

    response = client.put("/admin/storage", json={"mode": target}, headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json() == {"storage": target}
    assert client.get("/health").get_json()["storage"] == target

    # the fresh backend only holds the seeded accounts
    login = client.post("/auth/login", json={"email": "admin@islandloaf.com", "password": "admin123"})
    assert login.status_code == 200
    assert login.get_json()["user"]["role"] == "admin"


def test_swap_storage_rejects_unknown_mode(client, admin_headers) -> None:
    response = client.put("/admin/storage", json={"mode": "redis"}, headers=admin_headers)

    assert response.status_code == 400
    body = response.get_json()
    assert body["field"] == "mode"
    assert "memory" in body["allowed"]


def test_list_all_users(client, admin_headers, register_vendor) -> None:
    vendor, vendor_headers = register_vendor()

    users = client.get("/admin/users", headers=admin_headers).get_json()["users"]

    assert [user["role"] for user in users] == ["admin", "vendor"]
    assert users[1]["id"] == vendor["id"]
    assert client.get("/admin/users", headers=vendor_headers).status_code == 403
