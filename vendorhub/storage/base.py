"""Storage interface implemented by the in-process and durable backends.

Every family follows the same pattern: ``get_*`` returns the record or
``None``, ``list_*`` is scoped to an owner id, ``create_*`` assigns the id
and creation timestamp, ``update_*`` merges a partial and returns the new
record or ``None``, ``delete_*`` returns whether something was removed.
Only the admin aggregates (``list_users``, ``list_all_bookings``) scan
across owners.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import MISSING, Field, fields
from datetime import datetime
from typing import Any, Iterable, Mapping

from ..entities import (BOOKING_STATUSES, ROLES, Booking, CalendarEvent, CalendarSource,
                        MarketingContent, Notification, Record, Service, User, as_utc)
from ..errors import ValidationError

SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})
IMMUTABLE_FIELDS = SYSTEM_FIELDS | {"user_id"}

# closed vocabularies enforced identically by every backend
CLOSED_SETS = {
    (Booking, "status"): BOOKING_STATUSES,
    (User, "role"): ROLES,
}


# annotation -> accepted python types for field values checked before storage
FIELD_TYPES = {
    "str": str,
    "bool": bool,
    "int": int,
    "float": (int, float),
    "datetime": datetime,
    "dict": dict,
}


def _normalize(value: Any) -> Any:
    return as_utc(value) if isinstance(value, datetime) else value


def _check_value(item: Field, value: Any) -> None:
    annotation = str(item.type)
    if value is None:
        if annotation.endswith(" | None"):
            return
        raise ValidationError(f"{item.name} must not be null", field=item.name)

    expected = FIELD_TYPES.get(annotation.removesuffix(" | None"))
    if expected is None:
        return
    if not isinstance(value, expected) or (isinstance(value, bool) and expected is not bool):
        raise ValidationError(f"{item.name} must be of type {annotation}", field=item.name)


def _check_closed_sets(record_cls: type[Record], values: Mapping[str, Any]) -> None:
    for (owner, name), allowed in CLOSED_SETS.items():
        if owner is record_cls and name in values and values[name] not in allowed:
            raise ValidationError(
                f"{name} must be one of: {', '.join(allowed)}",
                field=name,
                allowed=allowed,
                code=f"invalid_{name}",
            )


def prepare_draft(record_cls: type[Record], draft: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a creation draft and fill in record defaults."""
    known = {item.name: item for item in fields(record_cls) if item.name not in SYSTEM_FIELDS}

    unknown = sorted(set(draft) - set(known))
    if unknown:
        raise ValidationError(
            f"unknown field '{unknown[0]}' for {record_cls.__name__}",
            field=unknown[0],
            allowed=sorted(known),
        )

    values: dict[str, Any] = {}
    for name, item in known.items():
        if name in draft:
            _check_value(item, draft[name])
            values[name] = _normalize(draft[name])
        elif item.default is not MISSING:
            values[name] = item.default
        elif item.default_factory is not MISSING:
            values[name] = item.default_factory()
        else:
            raise ValidationError(f"{name} is required", field=name)
    _check_closed_sets(record_cls, values)
    return values


def prepare_changes(record_cls: type[Record], changes: Mapping[str, Any]) -> dict[str, Any]:
    """Validate a partial update; identity, ownership and timestamps are fixed."""
    known = {item.name: item for item in fields(record_cls)}
    for name, value in changes.items():
        if name not in known:
            raise ValidationError(f"unknown field '{name}' for {record_cls.__name__}", field=name)
        if name in IMMUTABLE_FIELDS:
            raise ValidationError(f"{name} cannot be changed", field=name)
        _check_value(known[name], value)
    _check_closed_sets(record_cls, changes)
    return {name: _normalize(value) for name, value in changes.items()}


def newest_first(records: Iterable[Record]) -> list:
    return sorted(records, key=lambda record: (record.created_at, record.id), reverse=True)


class Storage(ABC):
    """Capability interface over every entity family."""

    mode = "abstract"

    # Users
    @abstractmethod
    def get_user(self, user_id: int) -> User | None: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> User | None:
        """Case-insensitive lookup."""

    @abstractmethod
    def get_user_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup."""

    @abstractmethod
    def list_users(self, role: str | None = None) -> list[User]: ...

    @abstractmethod
    def create_user(self, draft: Mapping[str, Any]) -> User:
        """Store a user; raises ``Conflict`` when username or email is taken.

        Callers are expected to have checked uniqueness beforehand, this is
        the last line only.
        """

    @abstractmethod
    def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None: ...

    # Services
    @abstractmethod
    def get_service(self, service_id: int) -> Service | None: ...

    @abstractmethod
    def list_services(self, user_id: int) -> list[Service]: ...

    @abstractmethod
    def create_service(self, draft: Mapping[str, Any]) -> Service: ...

    @abstractmethod
    def update_service(self, service_id: int, changes: Mapping[str, Any]) -> Service | None: ...

    @abstractmethod
    def delete_service(self, service_id: int) -> bool: ...

    # Calendar events
    @abstractmethod
    def get_calendar_event(self, event_id: int) -> CalendarEvent | None: ...

    @abstractmethod
    def list_calendar_events(
        self,
        user_id: int,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CalendarEvent]:
        """Events owned by ``user_id`` starting at/after ``start`` and ending at/before ``end``."""

    @abstractmethod
    def list_calendar_events_by_service(self, service_id: int) -> list[CalendarEvent]: ...

    @abstractmethod
    def create_calendar_event(self, draft: Mapping[str, Any]) -> CalendarEvent: ...

    @abstractmethod
    def update_calendar_event(self, event_id: int, changes: Mapping[str, Any]) -> CalendarEvent | None: ...

    @abstractmethod
    def delete_calendar_event(self, event_id: int) -> bool: ...

    # Calendar sources
    @abstractmethod
    def get_calendar_source(self, source_id: int) -> CalendarSource | None: ...

    @abstractmethod
    def list_calendar_sources(self, user_id: int) -> list[CalendarSource]: ...

    @abstractmethod
    def create_calendar_source(self, draft: Mapping[str, Any]) -> CalendarSource: ...

    @abstractmethod
    def update_calendar_source(self, source_id: int, changes: Mapping[str, Any]) -> CalendarSource | None: ...

    @abstractmethod
    def delete_calendar_source(self, source_id: int) -> bool: ...

    # Bookings
    @abstractmethod
    def get_booking(self, booking_id: int) -> Booking | None: ...

    @abstractmethod
    def list_bookings(self, user_id: int, status: str | None = None) -> list[Booking]: ...

    @abstractmethod
    def list_recent_bookings(self, user_id: int, limit: int) -> list[Booking]:
        """Newest first by creation time."""

    @abstractmethod
    def list_all_bookings(self) -> list[Booking]: ...

    @abstractmethod
    def create_booking(self, draft: Mapping[str, Any]) -> Booking: ...

    @abstractmethod
    def update_booking(self, booking_id: int, changes: Mapping[str, Any]) -> Booking | None:
        """Merge ``changes``; ``updated_at`` always moves forward."""

    @abstractmethod
    def delete_booking(self, booking_id: int) -> bool: ...

    # Notifications
    @abstractmethod
    def get_notification(self, notification_id: int) -> Notification | None: ...

    @abstractmethod
    def list_notifications(self, user_id: int, unread_only: bool = False) -> list[Notification]:
        """Newest first."""

    @abstractmethod
    def create_notification(self, draft: Mapping[str, Any]) -> Notification: ...

    @abstractmethod
    def mark_notification_read(self, notification_id: int) -> bool: ...

    @abstractmethod
    def delete_notification(self, notification_id: int) -> bool: ...

    # Marketing content
    @abstractmethod
    def get_marketing_content(self, content_id: int) -> MarketingContent | None: ...

    @abstractmethod
    def list_marketing_contents(self, user_id: int) -> list[MarketingContent]:
        """Newest first."""

    @abstractmethod
    def create_marketing_content(self, draft: Mapping[str, Any]) -> MarketingContent: ...

    @abstractmethod
    def update_marketing_content(self, content_id: int, changes: Mapping[str, Any]) -> MarketingContent | None: ...

    @abstractmethod
    def delete_marketing_content(self, content_id: int) -> bool: ...
