"""Booking lifecycle: creation behind the category gate, status changes, reads.

Status values form a closed set. Transitions between members of the set are
not otherwise restricted, so e.g. ``completed -> pending`` is accepted.
Every successful create or status change sends a notification to the
owning vendor after the booking itself has been stored.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Mapping

from .categories import ensure_category_allowed, normalize_category
from .entities import BOOKING_STATUSES, INITIAL_BOOKING_STATUS, Booking, User, as_utc
from .errors import AuthorizationError, NotFound, ValidationError
from .notifications import BOOKING_CREATED, BOOKING_STATUS_CHANGED, NotificationDispatcher
from .storage.base import Storage
from .users import require_admin

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 5
REVENUE_STATUSES = ("confirmed", "completed")


def parse_datetime(value: Any, field: str) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(datetime.fromisoformat(value.strip().replace("Z", "+00:00")))
        except ValueError:
            pass
    raise ValidationError(f"{field} must be an ISO 8601 datetime", field=field)


def parse_amount(value: Any, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise ValidationError(f"{field} must be a number", field=field)
    try:
        amount = float(value)
    except ValueError:
        raise ValidationError(f"{field} must be a number", field=field) from None
    if amount < 0:
        raise ValidationError(f"{field} must not be negative", field=field)
    return amount


def _text(draft: Mapping[str, Any], name: str, required: bool = False) -> str:
    value = draft.get(name)
    if value is None:
        value = ""
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string", field=name)
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{name} is required", field=name)
    return value


def validate_status(status: Any) -> str:
    if status not in BOOKING_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(BOOKING_STATUSES)}",
            field="status",
            allowed=BOOKING_STATUSES,
            code="invalid_status",
        )
    return status


class BookingService:
    def __init__(
        self,
        storage: Storage,
        dispatcher: NotificationDispatcher | None = None,
        commission_rate: float = 0.10,
    ) -> None:
        self.storage = storage
        self.dispatcher = dispatcher or NotificationDispatcher(storage)
        self.commission_rate = commission_rate

    def _owner(self, owner_id: int) -> User:
        owner = self.storage.get_user(owner_id)
        if owner is None:
            raise NotFound("user not found")
        return owner

    def _owned_booking(self, owner_id: int, booking_id: int) -> Booking:
        booking = self.storage.get_booking(booking_id)
        if booking is None:
            raise NotFound("booking not found")
        if booking.user_id != owner_id:
            raise AuthorizationError("not authorized to access this booking")
        return booking

    def create_booking(self, owner_id: int, draft: Mapping[str, Any]) -> Booking:
        owner = self._owner(owner_id)

        category = draft.get("category")
        if category:
            # the category gate applies before any other validation
            category = ensure_category_allowed(owner, category)

        service_id = draft.get("service_id")
        if isinstance(service_id, bool) or not isinstance(service_id, int):
            raise ValidationError("service_id is required", field="service_id")
        service = self.storage.get_service(service_id)
        if service is None:
            raise NotFound("service not found")
        if service.user_id != owner.id:
            raise AuthorizationError("not authorized to book this service", field="service_id")
        if not category:
            category = ensure_category_allowed(owner, service.type)

        status = draft.get("status") or INITIAL_BOOKING_STATUS
        if status != INITIAL_BOOKING_STATUS:
            validate_status(status)
            raise ValidationError(
                f"new bookings start as '{INITIAL_BOOKING_STATUS}'",
                field="status",
                allowed=[INITIAL_BOOKING_STATUS],
                code="invalid_status",
            )

        customer_name = _text(draft, "customer_name", required=True)
        customer_email = _text(draft, "customer_email")

        start_date = parse_datetime(draft.get("start_date"), "start_date")
        end_date = parse_datetime(draft.get("end_date"), "end_date")
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")

        if draft.get("total_price") is None:
            raise ValidationError("total_price is required", field="total_price")
        total_price = parse_amount(draft["total_price"], "total_price")
        if draft.get("commission") is None:
            commission = round(total_price * self.commission_rate, 2)
        else:
            commission = parse_amount(draft["commission"], "commission")

        booking = self.storage.create_booking(
            {
                "user_id": owner.id,
                "service_id": service.id,
                "category": normalize_category(category),
                "customer_name": customer_name,
                "customer_email": customer_email,
                "start_date": start_date,
                "end_date": end_date,
                "total_price": total_price,
                "commission": commission,
                "status": INITIAL_BOOKING_STATUS,
                "notes": draft.get("notes"),
            }
        )
        logger.info("Vendor %s created booking %s (%s)", owner.id, booking.id, booking.category)

        self.dispatcher.notify(
            owner.id,
            f"New {booking.category} booking created",
            f"A new {booking.category} booking for {booking.customer_name} has been created "
            f"with status: {booking.status}",
            BOOKING_CREATED,
        )
        return booking

    def update_booking_status(self, owner_id: int, booking_id: int, new_status: Any) -> Booking:
        booking = self._owned_booking(owner_id, booking_id)
        validate_status(new_status)

        updated = self.storage.update_booking(booking_id, {"status": new_status})
        if updated is None:
            raise NotFound("booking not found")
        logger.info("Booking %s moved from %s to %s", booking_id, booking.status, new_status)

        self.dispatcher.notify(
            owner_id,
            f"Booking #{booking_id} {new_status}",
            f"Booking #{booking_id} for {booking.customer_name} changed from "
            f"{booking.status} to {new_status}.",
            BOOKING_STATUS_CHANGED,
        )
        return updated

    def cancel_booking(self, owner_id: int, booking_id: int) -> Booking:
        return self.update_booking_status(owner_id, booking_id, "cancelled")

    def get_booking(self, owner_id: int, booking_id: int) -> Booking:
        return self._owned_booking(owner_id, booking_id)

    def list_bookings(self, owner_id: int, status: str | None = None) -> list[Booking]:
        if status is not None:
            validate_status(status)
        return self.storage.list_bookings(owner_id, status=status)

    def recent_bookings(self, owner_id: int, limit: int = DEFAULT_RECENT_LIMIT) -> list[Booking]:
        if limit < 1:
            raise ValidationError("limit must be at least 1", field="limit")
        return self.storage.list_recent_bookings(owner_id, limit)

    def list_all_bookings(self, actor: User) -> list[Booking]:
        require_admin(actor)
        return self.storage.list_all_bookings()

    def delete_booking(self, actor: User, booking_id: int) -> bool:
        require_admin(actor)
        deleted = self.storage.delete_booking(booking_id)
        if deleted:
            logger.info("Admin %s deleted booking %s", actor.id, booking_id)
        return deleted

    def summarize(self, owner_id: int) -> dict[str, object]:
        bookings = self.storage.list_bookings(owner_id)
        by_status = {status: 0 for status in BOOKING_STATUSES}
        revenue = commission = 0.0
        for booking in bookings:
            by_status[booking.status] += 1
            if booking.status in REVENUE_STATUSES:
                revenue += booking.total_price
                commission += booking.commission
        return {
            "total_bookings": len(bookings),
            "by_status": by_status,
            "revenue": round(revenue, 2),
            "commission": round(commission, 2),
        }
