"""Durable storage backend on top of the Flask-SQLAlchemy session.

Each call is one round trip to the relational store. SQLAlchemy faults are
translated here: a violated unique constraint becomes ``Conflict``, any
other integrity violation becomes ``ValidationError``, an unknown id
becomes ``None``/``False`` and anything else becomes ``StorageError``
after the session is rolled back.
"""
from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Mapping

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..entities import (Booking, CalendarEvent, CalendarSource, MarketingContent,
                        Notification, Service, User, advance_timestamp, as_utc, utc_now)
from ..errors import Conflict, StorageError, ValidationError
from ..extensions import db
from ..models import (BookingRow, CalendarEventRow, CalendarSourceRow, MarketingContentRow,
                      NotificationRow, ServiceRow, UserRow)
from .base import Storage, prepare_changes, prepare_draft

logger = logging.getLogger(__name__)


def _conflict_field(exc: IntegrityError) -> str | None:
    text = str(exc.orig).lower()
    if "unique" not in text and "duplicate" not in text:
        return None
    for name in ("username", "email"):
        if name in text:
            return name
    return None


class DatabaseStorage(Storage):
    mode = "database"

    def __init__(self, session=None) -> None:
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @contextmanager
    def _translate(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as exc:
            self.session.rollback()
            name = _conflict_field(exc)
            if name is not None:
                raise Conflict(f"{name} is already in use", field=name) from exc
            # only unique columns map to Conflict; anything else is bad input
            raise ValidationError(f"{action} violates a database constraint") from exc
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.exception("Storage operation failed: %s", action)
            raise StorageError(f"{action} failed") from exc

    def _get(self, model, record_id: int):
        with self._translate(f"get {model.__tablename__}"):
            row = self.session.get(model, record_id)
            return row.to_record() if row is not None else None

    def _all(self, query, action: str) -> list:
        with self._translate(action):
            return [row.to_record() for row in query.all()]

    def _first(self, query, action: str):
        with self._translate(action):
            row = query.first()
            return row.to_record() if row is not None else None

    def _insert(self, model, draft: Mapping[str, Any], **system: Any):
        values = prepare_draft(model.record_class, draft)
        with self._translate(f"create {model.__tablename__}"):
            row = model(**values, **system)
            self.session.add(row)
            self.session.commit()
            return row.to_record()

    def _update(self, model, record_id: int, changes: Mapping[str, Any], stamp: str | None = None):
        changes = prepare_changes(model.record_class, changes)
        with self._translate(f"update {model.__tablename__}"):
            row = self.session.get(model, record_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, value)
            if stamp is not None:
                setattr(row, stamp, advance_timestamp(getattr(row, stamp)))
            self.session.commit()
            return row.to_record()

    def _delete(self, model, record_id: int) -> bool:
        with self._translate(f"delete {model.__tablename__}"):
            row = self.session.get(model, record_id)
            if row is None:
                return False
            self.session.delete(row)
            self.session.commit()
            return True

    def _owned(self, model, user_id: int):
        return self.session.query(model).filter(model.user_id == user_id)

    # Users
    def get_user(self, user_id: int) -> User | None:
        return self._get(UserRow, user_id)

    def get_user_by_username(self, username: str) -> User | None:
        query = self.session.query(UserRow).filter(func.lower(UserRow.username) == username.lower())
        return self._first(query, "get user by username")

    def get_user_by_email(self, email: str) -> User | None:
        query = self.session.query(UserRow).filter(func.lower(UserRow.email) == email.lower())
        return self._first(query, "get user by email")

    def list_users(self, role: str | None = None) -> list[User]:
        query = self.session.query(UserRow)
        if role is not None:
            query = query.filter(UserRow.role == role)
        return self._all(query.order_by(UserRow.id), "list users")

    def create_user(self, draft: Mapping[str, Any]) -> User:
        return self._insert(UserRow, draft, created_at=utc_now())

    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        return self._update(UserRow, user_id, changes)

    # Services
    def get_service(self, service_id: int) -> Service | None:
        return self._get(ServiceRow, service_id)

    def list_services(self, user_id: int) -> list[Service]:
        return self._all(self._owned(ServiceRow, user_id).order_by(ServiceRow.id), "list services")

    def create_service(self, draft: Mapping[str, Any]) -> Service:
        return self._insert(ServiceRow, draft, created_at=utc_now())

    def update_service(self, service_id: int, changes: Mapping[str, Any]) -> Service | None:
        return self._update(ServiceRow, service_id, changes)

    def delete_service(self, service_id: int) -> bool:
        return self._delete(ServiceRow, service_id)

    # Calendar events
    def get_calendar_event(self, event_id: int) -> CalendarEvent | None:
        return self._get(CalendarEventRow, event_id)

    def list_calendar_events(
        self,
        user_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CalendarEvent]:
        query = self._owned(CalendarEventRow, user_id)
        if start is not None:
            query = query.filter(CalendarEventRow.start_date >= as_utc(start))
        if end is not None:
            query = query.filter(CalendarEventRow.end_date <= as_utc(end))
        return self._all(query.order_by(CalendarEventRow.id), "list calendar events")

    def list_calendar_events_by_service(self, service_id: int) -> list[CalendarEvent]:
        query = self.session.query(CalendarEventRow).filter(CalendarEventRow.service_id == service_id)
        return self._all(query.order_by(CalendarEventRow.id), "list calendar events by service")

    def create_calendar_event(self, draft: Mapping[str, Any]) -> CalendarEvent:
        return self._insert(CalendarEventRow, draft, created_at=utc_now())

    def update_calendar_event(self, event_id: int, changes: Mapping[str, Any]) -> CalendarEvent | None:
        return self._update(CalendarEventRow, event_id, changes)

    def delete_calendar_event(self, event_id: int) -> bool:
        return self._delete(CalendarEventRow, event_id)

    # Calendar sources
    def get_calendar_source(self, source_id: int) -> CalendarSource | None:
        return self._get(CalendarSourceRow, source_id)

    def list_calendar_sources(self, user_id: int) -> list[CalendarSource]:
        query = self._owned(CalendarSourceRow, user_id).order_by(CalendarSourceRow.id)
        return self._all(query, "list calendar sources")

    def create_calendar_source(self, draft: Mapping[str, Any]) -> CalendarSource:
        return self._insert(CalendarSourceRow, draft, created_at=utc_now())

    def update_calendar_source(self, source_id: int, changes: Mapping[str, Any]) -> CalendarSource | None:
        return self._update(CalendarSourceRow, source_id, changes)

    def delete_calendar_source(self, source_id: int) -> bool:
        return self._delete(CalendarSourceRow, source_id)

    # Bookings
    def get_booking(self, booking_id: int) -> Booking | None:
        return self._get(BookingRow, booking_id)

    def list_bookings(self, user_id: int, status: str | None = None) -> list[Booking]:
        query = self._owned(BookingRow, user_id)
        if status is not None:
            query = query.filter(BookingRow.status == status)
        return self._all(query.order_by(BookingRow.id), "list bookings")

    def list_recent_bookings(self, user_id: int, limit: int) -> list[Booking]:
        query = (
            self._owned(BookingRow, user_id)
            .order_by(BookingRow.created_at.desc(), BookingRow.id.desc())
            .limit(limit)
        )
        return self._all(query, "list recent bookings")

    def list_all_bookings(self) -> list[Booking]:
        return self._all(self.session.query(BookingRow).order_by(BookingRow.id), "list all bookings")

    def create_booking(self, draft: Mapping[str, Any]) -> Booking:
        now = utc_now()
        return self._insert(BookingRow, draft, created_at=now, updated_at=now)

    def update_booking(self, booking_id: int, changes: Mapping[str, Any]) -> Booking | None:
        return self._update(BookingRow, booking_id, changes, stamp="updated_at")

    def delete_booking(self, booking_id: int) -> bool:
        return self._delete(BookingRow, booking_id)

    # Notifications
    def get_notification(self, notification_id: int) -> Notification | None:
        return self._get(NotificationRow, notification_id)

    def list_notifications(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        query = self._owned(NotificationRow, user_id)
        if unread_only:
            query = query.filter(NotificationRow.read.is_(False))
        query = query.order_by(NotificationRow.created_at.desc(), NotificationRow.id.desc())
        return self._all(query, "list notifications")

    def create_notification(self, draft: Mapping[str, Any]) -> Notification:
        return self._insert(NotificationRow, draft, created_at=utc_now())

    def mark_notification_read(self, notification_id: int) -> bool:
        return self._update(NotificationRow, notification_id, {"read": True}) is not None

    def delete_notification(self, notification_id: int) -> bool:
        return self._delete(NotificationRow, notification_id)

    # Marketing content
    def get_marketing_content(self, content_id: int) -> MarketingContent | None:
        return self._get(MarketingContentRow, content_id)

    def list_marketing_contents(self, user_id: int) -> list[MarketingContent]:
        query = self._owned(MarketingContentRow, user_id).order_by(
            MarketingContentRow.created_at.desc(), MarketingContentRow.id.desc()
        )
        return self._all(query, "list marketing contents")

    def create_marketing_content(self, draft: Mapping[str, Any]) -> MarketingContent:
        return self._insert(MarketingContentRow, draft, created_at=utc_now())

    def update_marketing_content(self, content_id: int, changes: Mapping[str, Any]) -> MarketingContent | None:
        return self._update(MarketingContentRow, content_id, changes)

    def delete_marketing_content(self, content_id: int) -> bool:
        return self._delete(MarketingContentRow, content_id)
