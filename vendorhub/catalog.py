"""Owner-scoped CRUD for services, calendars and marketing content."""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .bookings import parse_amount, parse_datetime
from .categories import CATEGORIES, normalize_category
from .entities import CalendarEvent, CalendarSource, MarketingContent, Service, utc_now
from .errors import AuthorizationError, Conflict, NotFound, ValidationError
from .storage.base import Storage

logger = logging.getLogger(__name__)

CALENDAR_DATE_FIELDS = ("start_date", "end_date")


def _require_text(draft: Mapping[str, Any], *names: str) -> None:
    for name in names:
        value = draft.get(name)
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{name} is required", field=name)


class CatalogService:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def _owned(self, getter: Callable[[int], Any], record_id: int, owner_id: int, label: str):
        record = getter(record_id)
        if record is None:
            raise NotFound(f"{label} not found")
        if record.user_id != owner_id:
            raise AuthorizationError(f"not authorized to modify this {label}")
        return record

    # Services
    def _service_fields(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(draft)
        if "type" in values:
            values["type"] = normalize_category(values["type"], "type")
            if values["type"] not in CATEGORIES:
                raise ValidationError(
                    f"unknown service type '{draft['type']}'",
                    field="type",
                    allowed=CATEGORIES,
                    code="invalid_category",
                )
        if "base_price" in values:
            values["base_price"] = parse_amount(values["base_price"], "base_price")
        return values

    def _linked_service(self, owner_id: int, draft: Mapping[str, Any]) -> None:
        service_id = draft.get("service_id")
        if service_id is None:
            return
        if isinstance(service_id, bool) or not isinstance(service_id, int):
            raise ValidationError("service_id must be an integer", field="service_id")
        self.get_service(owner_id, service_id)

    def list_services(self, owner_id: int) -> list[Service]:
        return self.storage.list_services(owner_id)

    def get_service(self, owner_id: int, service_id: int) -> Service:
        return self._owned(self.storage.get_service, service_id, owner_id, "service")

    def create_service(self, owner_id: int, draft: Mapping[str, Any]) -> Service:
        _require_text(draft, "name", "type")
        if draft.get("base_price") is None:
            raise ValidationError("base_price is required", field="base_price")
        values = self._service_fields(draft)
        values.setdefault("description", "")
        return self.storage.create_service({**values, "user_id": owner_id})

    def update_service(self, owner_id: int, service_id: int, changes: Mapping[str, Any]) -> Service:
        self.get_service(owner_id, service_id)
        updated = self.storage.update_service(service_id, self._service_fields(changes))
        if updated is None:
            raise NotFound("service not found")
        return updated

    def delete_service(self, owner_id: int, service_id: int) -> bool:
        self.get_service(owner_id, service_id)
        if any(booking.service_id == service_id for booking in self.storage.list_bookings(owner_id)):
            raise Conflict("service still has bookings", field="service_id")
        return self.storage.delete_service(service_id)

    # Calendar events
    def _event_fields(self, draft: Mapping[str, Any]) -> dict[str, Any]:
        values = dict(draft)
        for name in CALENDAR_DATE_FIELDS:
            if name in values:
                values[name] = parse_datetime(values[name], name)
        return values

    def list_calendar_events(self, owner_id: int, start: Any = None, end: Any = None) -> list[CalendarEvent]:
        start = parse_datetime(start, "start") if start else None
        end = parse_datetime(end, "end") if end else None
        return self.storage.list_calendar_events(owner_id, start, end)

    def list_service_events(self, owner_id: int, service_id: int) -> list[CalendarEvent]:
        self.get_service(owner_id, service_id)
        return self.storage.list_calendar_events_by_service(service_id)

    def create_calendar_event(self, owner_id: int, draft: Mapping[str, Any]) -> CalendarEvent:
        _require_text(draft, "title")
        values = self._event_fields(draft)
        for name in CALENDAR_DATE_FIELDS:
            if name not in values:
                raise ValidationError(f"{name} is required", field=name)
        if values["end_date"] < values["start_date"]:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        self._linked_service(owner_id, values)
        return self.storage.create_calendar_event({**values, "user_id": owner_id})

    def update_calendar_event(self, owner_id: int, event_id: int, changes: Mapping[str, Any]) -> CalendarEvent:
        event = self._owned(self.storage.get_calendar_event, event_id, owner_id, "calendar event")
        self._linked_service(owner_id, changes)
        values = self._event_fields(changes)
        start_date = values.get("start_date", event.start_date)
        end_date = values.get("end_date", event.end_date)
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        updated = self.storage.update_calendar_event(event_id, values)
        if updated is None:
            raise NotFound("calendar event not found")
        return updated

    def delete_calendar_event(self, owner_id: int, event_id: int) -> bool:
        self._owned(self.storage.get_calendar_event, event_id, owner_id, "calendar event")
        return self.storage.delete_calendar_event(event_id)

    # Calendar sources
    def list_calendar_sources(self, owner_id: int) -> list[CalendarSource]:
        return self.storage.list_calendar_sources(owner_id)

    def create_calendar_source(self, owner_id: int, draft: Mapping[str, Any]) -> CalendarSource:
        _require_text(draft, "name", "url", "type")
        self._linked_service(owner_id, draft)
        # last_synced is only ever set by a sync
        values = {key: value for key, value in draft.items() if key != "last_synced"}
        return self.storage.create_calendar_source({**values, "user_id": owner_id})

    def update_calendar_source(
        self, owner_id: int, source_id: int, changes: Mapping[str, Any]
    ) -> CalendarSource:
        self._owned(self.storage.get_calendar_source, source_id, owner_id, "calendar source")
        if "last_synced" in changes:
            raise ValidationError("last_synced is set by a sync", field="last_synced")
        self._linked_service(owner_id, changes)
        updated = self.storage.update_calendar_source(source_id, changes)
        if updated is None:
            raise NotFound("calendar source not found")
        return updated

    def delete_calendar_source(self, owner_id: int, source_id: int) -> bool:
        self._owned(self.storage.get_calendar_source, source_id, owner_id, "calendar source")
        return self.storage.delete_calendar_source(source_id)

    def sync_calendar_source(self, owner_id: int, source_id: int) -> CalendarSource:
        """Record a sync; pulling the remote feed is done by the calendar integration."""
        self._owned(self.storage.get_calendar_source, source_id, owner_id, "calendar source")
        synced = self.storage.update_calendar_source(source_id, {"last_synced": utc_now()})
        if synced is None:
            raise NotFound("calendar source not found")
        logger.info("Calendar source %s synced for user %s", source_id, owner_id)
        return synced

    # Marketing content
    def list_marketing_contents(self, owner_id: int) -> list[MarketingContent]:
        return self.storage.list_marketing_contents(owner_id)

    def create_marketing_content(self, owner_id: int, draft: Mapping[str, Any]) -> MarketingContent:
        _require_text(draft, "title", "content", "type")
        self._linked_service(owner_id, draft)
        return self.storage.create_marketing_content({**draft, "user_id": owner_id})

    def update_marketing_content(
        self, owner_id: int, content_id: int, changes: Mapping[str, Any]
    ) -> MarketingContent:
        self._owned(self.storage.get_marketing_content, content_id, owner_id, "marketing content")
        self._linked_service(owner_id, changes)
        updated = self.storage.update_marketing_content(content_id, changes)
        if updated is None:
            raise NotFound("marketing content not found")
        return updated

    def delete_marketing_content(self, owner_id: int, content_id: int) -> bool:
        self._owned(self.storage.get_marketing_content, content_id, owner_id, "marketing content")
        return self.storage.delete_marketing_content(content_id)
