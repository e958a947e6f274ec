"""Tests for calendar, notification and marketing content endpoints."""
from __future__ import annotations


def _event(client, headers, day: int, **overrides):
    payload = {
        "title": f"Guest stay {day}",
        "start_date": f"2026-12-{day:02d}T14:00:00Z",
        "end_date": f"2026-12-{day:02d}T18:00:00Z",
    }
    payload.update(overrides)
    response = client.post("/calendar-events", json=payload, headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()["calendar_event"]


def test_calendar_events_window(client, register_vendor) -> None:
    _, headers = register_vendor()
    for day in (1, 10, 20):
        _event(client, headers, day)

    everything = client.get("/calendar-events", headers=headers).get_json()["calendar_events"]
    window = client.get(
        "/calendar-events?start=2026-12-05T00:00:00Z&end=2026-12-15T00:00:00Z", headers=headers
    ).get_json()["calendar_events"]

    assert len(everything) == 3
    assert [event["title"] for event in window] == ["Guest stay 10"]
    assert client.get("/calendar-events?start=tomorrow", headers=headers).status_code == 400


def test_calendar_event_validation(client, register_vendor) -> None:
    _, headers = register_vendor()

    backwards = client.post(
        "/calendar-events",
        json={"title": "Oops", "start_date": "2026-12-02T10:00:00Z", "end_date": "2026-12-01T10:00:00Z"},
        headers=headers,
    )
    untitled = client.post(
        "/calendar-events",
        json={"start_date": "2026-12-01T10:00:00Z", "end_date": "2026-12-02T10:00:00Z"},
        headers=headers,
    )

    assert backwards.status_code == 400
    assert backwards.get_json()["field"] == "end_date"
    assert untitled.get_json()["field"] == "title"


def test_calendar_events_by_service(client, register_vendor, create_service) -> None:
    _, headers = register_vendor()
    service = create_service(headers)
    linked = _event(client, headers, 3, service_id=service["id"], is_blocked=True)
    _event(client, headers, 4)

    body = client.get(f"/services/{service['id']}", headers=headers).get_json()

    assert [event["id"] for event in body["calendar_events"]] == [linked["id"]]
    assert body["calendar_events"][0]["is_blocked"] is True


def test_update_and_delete_calendar_event(client, register_vendor) -> None:
    _, headers = register_vendor()
    _, other_headers = register_vendor()
    event = _event(client, headers, 1)

    assert client.patch(f"/calendar-events/{event['id']}", json={"title": "x"}, headers=other_headers).status_code == 403

    response = client.patch(
        f"/calendar-events/{event['id']}", json={"title": "Blocked", "is_blocked": True}, headers=headers
    )
    assert response.status_code == 200
    assert response.get_json()["calendar_event"]["title"] == "Blocked"

    assert client.delete(f"/calendar-events/{event['id']}", headers=headers).status_code == 200
    assert client.delete(f"/calendar-events/{event['id']}", headers=headers).status_code == 404


def test_calendar_sources_and_sync(client, register_vendor) -> None:
    _, headers = register_vendor()
    _, other_headers = register_vendor()

    response = client.post(
        "/calendar-sources",
        json={"name": "Airbnb", "url": "https://example.com/cal.ics", "type": "airbnb"},
        headers=headers,
    )
    assert response.status_code == 201
    source = response.get_json()["calendar_source"]
    assert source["last_synced"] is None

    assert client.post(f"/calendar-sources/{source['id']}/sync", headers=other_headers).status_code == 403
    synced = client.post(f"/calendar-sources/{source['id']}/sync", headers=headers).get_json()["calendar_source"]
    assert synced["last_synced"] is not None

    listed = client.get("/calendar-sources", headers=headers).get_json()["calendar_sources"]
    assert [item["id"] for item in listed] == [source["id"]]
    assert client.get("/calendar-sources", headers=other_headers).get_json()["calendar_sources"] == []

    renamed = client.patch(f"/calendar-sources/{source['id']}", json={"name": "Airbnb main"}, headers=headers)
    assert renamed.get_json()["calendar_source"]["name"] == "Airbnb main"
    assert client.patch(
        f"/calendar-sources/{source['id']}", json={"last_synced": None}, headers=headers
    ).status_code == 400

    assert client.delete(f"/calendar-sources/{source['id']}", headers=headers).status_code == 200
    assert client.get("/calendar-sources", headers=headers).get_json()["calendar_sources"] == []


def test_calendar_source_requires_fields(client, register_vendor) -> None:
    _, headers = register_vendor()

    response = client.post("/calendar-sources", json={"name": "Airbnb", "type": "airbnb"}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()["field"] == "url"


def test_notifications_read_flow(client, register_vendor, create_service, booking_payload) -> None:
    _, headers = register_vendor()
    service = create_service(headers)
    client.post("/bookings", json=booking_payload(service["id"]), headers=headers)

    notifications = client.get("/notifications", headers=headers).get_json()["notifications"]
    assert len(notifications) == 2
    newest = notifications[0]

    response = client.put(f"/notifications/{newest['id']}/read", headers=headers)
    assert response.status_code == 200
    assert response.get_json()["notification"]["read"] is True

    unread = client.get("/notifications/unread", headers=headers).get_json()
    assert unread["unread_count"] == 1

    assert client.post("/notifications/mark-all-read", headers=headers).get_json() == {"updated": 1}
    assert client.get("/notifications/unread", headers=headers).get_json()["unread_count"] == 0
    assert client.get("/notifications?unread_only=true", headers=headers).get_json()["notifications"] == []


def test_notifications_are_private(client, register_vendor) -> None:
    _, headers = register_vendor()
    _, other_headers = register_vendor()
    note = client.get("/notifications", headers=headers).get_json()["notifications"][0]

    assert client.put(f"/notifications/{note['id']}/read", headers=other_headers).status_code == 403
    assert client.delete(f"/notifications/{note['id']}", headers=other_headers).status_code == 403
    assert client.put("/notifications/999/read", headers=headers).status_code == 404

    assert client.delete(f"/notifications/{note['id']}", headers=headers).status_code == 200
    assert client.get("/notifications", headers=headers).get_json()["notifications"] == []


def test_marketing_contents(client, register_vendor, create_service) -> None:
    _, headers = register_vendor()
    _, other_headers = register_vendor()
    service = create_service(headers)

    first = client.post(
        "/marketing-contents",
        json={"title": "Sunset post", "content": "Watch the sunset from your villa.", "type": "instagram",
              "service_id": service["id"], "prompt": {"tone": "warm"}},
        headers=headers,
    )
    second = client.post(
        "/marketing-contents",
        json={"title": "SEO blurb", "content": "Beachfront villas.", "type": "seo"},
        headers=headers,
    )
    assert first.status_code == 201
    assert first.get_json()["marketing_content"]["prompt"] == {"tone": "warm"}

    listed = client.get("/marketing-contents", headers=headers).get_json()["marketing_contents"]
    assert [item["id"] for item in listed] == [
        second.get_json()["marketing_content"]["id"],
        first.get_json()["marketing_content"]["id"],
    ]

    content_id = first.get_json()["marketing_content"]["id"]
    edited = client.patch(f"/marketing-contents/{content_id}", json={"content": "Golden hour."}, headers=headers)
    assert edited.get_json()["marketing_content"]["content"] == "Golden hour."
    assert client.delete(f"/marketing-contents/{content_id}", headers=other_headers).status_code == 403
    assert client.delete(f"/marketing-contents/{content_id}", headers=headers).status_code == 200
    assert len(client.get("/marketing-contents", headers=headers).get_json()["marketing_contents"]) == 1


def test_marketing_content_requires_text(client, register_vendor) -> None:
    _, headers = register_vendor()

    response = client.post("/marketing-contents", json={"title": "Empty", "type": "seo"}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()["field"] == "content"


def test_calendar_event_update_keeps_window_valid(client, register_vendor) -> None:
    _, headers = register_vendor()
    event = _event(client, headers, 10)

    inverted = client.patch(
        f"/calendar-events/{event['id']}", json={"end_date": "2026-12-09T10:00:00Z"}, headers=headers
    )
    moved_start = client.patch(
        f"/calendar-events/{event['id']}", json={"start_date": "2026-12-11T10:00:00Z"}, headers=headers
    )
    untitled = client.patch(f"/calendar-events/{event['id']}", json={"title": None}, headers=headers)

    assert inverted.status_code == 400
    assert inverted.get_json()["field"] == "end_date"
    assert moved_start.status_code == 400
    assert untitled.get_json()["field"] == "title"

    shifted = client.patch(
        f"/calendar-events/{event['id']}",
        json={"start_date": "2026-12-11T10:00:00Z", "end_date": "2026-12-12T10:00:00Z"},
        headers=headers,
    )
    assert shifted.status_code == 200
    assert shifted.get_json()["calendar_event"]["start_date"] == "2026-12-11T10:00:00+00:00"


def test_marketing_content_update_rejects_null(client, register_vendor) -> None:
    _, headers = register_vendor()
    created = client.post(
        "/marketing-contents", json={"title": "SEO blurb", "content": "Beachfront villas.", "type": "seo"},
        headers=headers,
    ).get_json()["marketing_content"]

    response = client.patch(f"/marketing-contents/{created['id']}", json={"content": None}, headers=headers)

    assert response.status_code == 400
    assert response.get_json()["field"] == "content"
