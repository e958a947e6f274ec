"""In-process storage backend.

One id-keyed dict and one counter per entity type. Counters only move
forward, so ids are never reused, even after a delete. Every mutation is a
single synchronous dict operation, which is all the isolation a
single-threaded cooperative request loop needs.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Mapping

from ..entities import (Booking, CalendarEvent, CalendarSource, MarketingContent,
                        Notification, Record, Service, User, advance_timestamp, as_utc,
                        utc_now)
from ..errors import Conflict
from .base import Storage, newest_first, prepare_changes, prepare_draft


class _Table:
    def __init__(self, record_cls: type[Record]) -> None:
        self.record_cls = record_cls
        self.rows: dict[int, Any] = {}
        self.next_id = 1

    def insert(self, draft: Mapping[str, Any], **system: Any) -> Any:
        values = prepare_draft(self.record_cls, draft)
        record = self.record_cls(id=self.next_id, **values, **system)
        self.next_id += 1
        self.rows[record.id] = record
        return record

    def get(self, record_id: int) -> Any:
        return self.rows.get(record_id)

    def update(self, record_id: int, changes: Mapping[str, Any], **system: Any) -> Any:
        # changes are validated before the lookup, as in the durable backend
        values = prepare_changes(self.record_cls, changes)
        current = self.rows.get(record_id)
        if current is None:
            return None
        updated = replace(current, **values, **system)
        self.rows[record_id] = updated
        return updated

    def delete(self, record_id: int) -> bool:
        return self.rows.pop(record_id, None) is not None

    def select(self, predicate: Callable[[Any], bool] | None = None) -> list:
        # dicts keep insertion order, which is id order
        return [row for row in self.rows.values() if predicate is None or predicate(row)]


class MemoryStorage(Storage):
    mode = "memory"

    def __init__(self) -> None:
        self._users = _Table(User)
        self._services = _Table(Service)
        self._calendar_events = _Table(CalendarEvent)
        self._calendar_sources = _Table(CalendarSource)
        self._bookings = _Table(Booking)
        self._notifications = _Table(Notification)
        self._marketing_contents = _Table(MarketingContent)

    # Users
    def get_user(self, user_id: int) -> User | None:
        return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> User | None:
        wanted = username.lower()
        matches = self._users.select(lambda user: user.username.lower() == wanted)
        return matches[0] if matches else None

    def get_user_by_email(self, email: str) -> User | None:
        wanted = email.lower()
        matches = self._users.select(lambda user: user.email.lower() == wanted)
        return matches[0] if matches else None

    def list_users(self, role: str | None = None) -> list[User]:
        return self._users.select(lambda user: role is None or user.role == role)

    def _check_unique(self, changes: Mapping[str, Any], exclude_id: int | None = None) -> None:
        for name in ("username", "email"):
            if name not in changes:
                continue
            taken = self._users.select(
                lambda user: getattr(user, name) == changes[name] and user.id != exclude_id
            )
            if taken:
                raise Conflict(f"{name} is already in use", field=name)

    def create_user(self, draft: Mapping[str, Any]) -> User:
        prepare_draft(User, draft)
        self._check_unique(draft)
        return self._users.insert(draft, created_at=utc_now())

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        prepare_changes(User, changes)
        if self._users.get(user_id) is None:
            return None
        self._check_unique(changes, exclude_id=user_id)
        return self._users.update(user_id, changes)

    # Services
    def get_service(self, service_id: int) -> Service | None:
        return self._services.get(service_id)

    def list_services(self, user_id: int) -> list[Service]:
        return self._services.select(lambda service: service.user_id == user_id)

    def create_service(self, draft: Mapping[str, Any]) -> Service:
        return self._services.insert(draft, created_at=utc_now())

    def update_service(self, service_id: int, changes: Mapping[str, Any]) -> Service | None:
        return self._services.update(service_id, changes)

    def delete_service(self, service_id: int) -> bool:
        return self._services.delete(service_id)

    # Calendar events
    def get_calendar_event(self, event_id: int) -> CalendarEvent | None:
        return self._calendar_events.get(event_id)

    def list_calendar_events(
        self,
        user_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CalendarEvent]:
        start, end = as_utc(start), as_utc(end)

        def within(event: CalendarEvent) -> bool:
            if event.user_id != user_id:
                return False
            if start is not None and event.start_date < start:
                return False
            if end is not None and event.end_date > end:
                return False
            return True

        return self._calendar_events.select(within)

    def list_calendar_events_by_service(self, service_id: int) -> list[CalendarEvent]:
        return self._calendar_events.select(lambda event: event.service_id == service_id)

    def create_calendar_event(self, draft: Mapping[str, Any]) -> CalendarEvent:
        return self._calendar_events.insert(draft, created_at=utc_now())

    def update_calendar_event(self, event_id: int, changes: Mapping[str, Any]) -> CalendarEvent | None:
        return self._calendar_events.update(event_id, changes)

    def delete_calendar_event(self, event_id: int) -> bool:
        return self._calendar_events.delete(event_id)

    # Calendar sources
    def get_calendar_source(self, source_id: int) -> CalendarSource | None:
        return self._calendar_sources.get(source_id)

    def list_calendar_sources(self, user_id: int) -> list[CalendarSource]:
        return self._calendar_sources.select(lambda source: source.user_id == user_id)

    def create_calendar_source(self, draft: Mapping[str, Any]) -> CalendarSource:
        return self._calendar_sources.insert(draft, created_at=utc_now())

    def update_calendar_source(self, source_id: int, changes: Mapping[str, Any]) -> CalendarSource | None:
        return self._calendar_sources.update(source_id, changes)

    def delete_calendar_source(self, source_id: int) -> bool:
        return self._calendar_sources.delete(source_id)

    # Bookings
    def get_booking(self, booking_id: int) -> Booking | None:
        return self._bookings.get(booking_id)

    def list_bookings(self, user_id: int, status: str | None = None) -> list[Booking]:
        return self._bookings.select(
            lambda booking: booking.user_id == user_id and (status is None or booking.status == status)
        )

    def list_recent_bookings(self, user_id: int, limit: int) -> list[Booking]:
        return newest_first(self.list_bookings(user_id))[:limit]

    def list_all_bookings(self) -> list[Booking]:
        return self._bookings.select()

    def create_booking(self, draft: Mapping[str, Any]) -> Booking:
        now = utc_now()
        return self._bookings.insert(draft, created_at=now, updated_at=now)

    def update_booking(self, booking_id: int, changes: Mapping[str, Any]) -> Booking | None:
        prepare_changes(Booking, changes)
        current = self._bookings.get(booking_id)
        if current is None:
            return None
        return self._bookings.update(booking_id, changes, updated_at=advance_timestamp(current.updated_at))

    def delete_booking(self, booking_id: int) -> bool:
        return self._bookings.delete(booking_id)

    # Notifications
    def get_notification(self, notification_id: int) -> Notification | None:
        return self._notifications.get(notification_id)

    def list_notifications(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        return newest_first(
            self._notifications.select(
                lambda note: note.user_id == user_id and not (unread_only and note.read)
            )
        )

    def create_notification(self, draft: Mapping[str, Any]) -> Notification:
        return self._notifications.insert(draft, created_at=utc_now())

    def mark_notification_read(self, notification_id: int) -> bool:
        return self._notifications.update(notification_id, {"read": True}) is not None

    def delete_notification(self, notification_id: int) -> bool:
        return self._notifications.delete(notification_id)

    # Marketing content
    def get_marketing_content(self, content_id: int) -> MarketingContent | None:
        return self._marketing_contents.get(content_id)

    def list_marketing_contents(self, user_id: int) -> list[MarketingContent]:
        return newest_first(self._marketing_contents.select(lambda content: content.user_id == user_id))

    def create_marketing_content(self, draft: Mapping[str, Any]) -> MarketingContent:
        return self._marketing_contents.insert(draft, created_at=utc_now())

    def update_marketing_content(self, content_id: int, changes: Mapping[str, Any]) -> MarketingContent | None:
        return self._marketing_contents.update(content_id, changes)

    def delete_marketing_content(self, content_id: int) -> bool:
        return self._marketing_contents.delete(content_id)
