"""Automation entry point used by external workflow agents.

Agents address the core with ``(agent, action, data)``. ``data`` uses the
camelCase keys the workflow tools send; ``vendorId`` names the vendor the
agent acts for and every ownership check runs against it.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .bookings import BookingService
from .entities import utc_now
from .errors import NotFound, ValidationError
from .notifications import SUPPORT
from .storage.base import Storage

logger = logging.getLogger(__name__)

# agent payload key -> booking draft key
BOOKING_FIELDS = {
    "serviceId": "service_id",
    "category": "category",
    "customerName": "customer_name",
    "customerEmail": "customer_email",
    "startDate": "start_date",
    "endDate": "end_date",
    "totalPrice": "total_price",
    "commission": "commission",
    "notes": "notes",
}


def _require_id(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{key} is required", field=key)
    return value


class AgentExecutor:
    def __init__(self, storage: Storage, bookings: BookingService | None = None) -> None:
        self.storage = storage
        self.bookings = bookings or BookingService(storage)
        self.handlers: dict[str, dict[str, Callable[[Mapping[str, Any]], dict[str, Any]]]] = {
            "booking": {
                "create": self.create_booking,
                "confirm": self.confirm_booking,
                "cancel": self.cancel_booking,
            },
            "support": {
                "create_ticket": self.create_ticket,
                "respond": self.respond,
            },
            "vendor": {
                "analyze": self.analyze_vendor,
            },
        }

    def execute(self, agent: Any, action: Any, data: Mapping[str, Any] | None) -> dict[str, Any]:
        for name, value in (("agent", agent), ("action", action)):
            if not isinstance(value, str) or not value:
                raise ValidationError(f"{name} is required", field=name)
        agent_key = agent.lower()
        actions = self.handlers.get(agent_key)
        if actions is None:
            raise ValidationError(f"unknown agent '{agent}'", field="agent", allowed=sorted(self.handlers))
        handler = actions.get(action)
        if handler is None:
            raise ValidationError(
                f"unknown action '{action}' for agent '{agent}'",
                field="action",
                allowed=sorted(actions),
            )
        if data is not None and not isinstance(data, Mapping):
            raise ValidationError("data must be an object", field="data")

        result = handler(data or {})
        logger.info("Agent %s executed %s", agent_key, action)
        return result

    # booking agent
    def create_booking(self, data: Mapping[str, Any]) -> dict[str, Any]:
        vendor_id = _require_id(data, "vendorId")
        draft = {target: data[source] for source, target in BOOKING_FIELDS.items() if source in data}
        booking = self.bookings.create_booking(vendor_id, draft)
        return {
            "bookingId": booking.id,
            "status": booking.status,
            "category": booking.category,
            "totalPrice": booking.total_price,
            "commission": booking.commission,
        }

    def confirm_booking(self, data: Mapping[str, Any]) -> dict[str, Any]:
        booking = self.bookings.update_booking_status(
            _require_id(data, "vendorId"), _require_id(data, "bookingId"), "confirmed"
        )
        return {"bookingId": booking.id, "status": booking.status, "confirmedAt": booking.updated_at.isoformat()}

    def cancel_booking(self, data: Mapping[str, Any]) -> dict[str, Any]:
        booking = self.bookings.cancel_booking(_require_id(data, "vendorId"), _require_id(data, "bookingId"))
        return {
            "bookingId": booking.id,
            "status": booking.status,
            "cancelledAt": booking.updated_at.isoformat(),
            "reason": data.get("reason") or "Customer request",
        }

    # support agent
    def create_ticket(self, data: Mapping[str, Any]) -> dict[str, Any]:
        vendor_id = _require_id(data, "vendorId")
        if self.storage.get_user(vendor_id) is None:
            raise NotFound("user not found")
        subject = data.get("subject")
        if not isinstance(subject, str) or not subject.strip():
            raise ValidationError("subject is required", field="subject")
        subject = subject.strip()
        description = data.get("description") or ""
        if not isinstance(description, str):
            raise ValidationError("description must be a string", field="description")

        # the ticket is the notification itself, so this write is not best-effort
        ticket = self.storage.create_notification(
            {
                "user_id": vendor_id,
                "title": f"Support Ticket: {subject}",
                "message": description,
                "type": SUPPORT,
                "read": False,
            }
        )
        return {
            "ticketId": ticket.id,
            "subject": subject,
            "priority": data.get("priority") or "medium",
            "createdAt": ticket.created_at.isoformat(),
        }

    def respond(self, data: Mapping[str, Any]) -> dict[str, Any]:
        return {
            "ticketId": _require_id(data, "ticketId"),
            "response": data.get("response"),
            "respondedAt": utc_now().isoformat(),
            "status": "responded",
        }

    # vendor agent
    def analyze_vendor(self, data: Mapping[str, Any]) -> dict[str, Any]:
        vendor_id = _require_id(data, "vendorId")
        if self.storage.get_user(vendor_id) is None:
            raise NotFound("user not found")
        summary = self.bookings.summarize(vendor_id)
        return {
            "vendorId": vendor_id,
            "analytics": summary,
            "analysis": f"Vendor analysis: {summary['total_bookings']} bookings, "
            f"{summary['revenue']:.2f} confirmed revenue",
        }
