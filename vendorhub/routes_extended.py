"""Extended routes: calendars, notifications, marketing content, agents."""
from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from .agents import AgentExecutor
from .auth import agent_key_required, login_required
from .bookings import BookingService
from .catalog import CatalogService
from .notifications import NotificationDispatcher, NotificationInbox
from .storage import get_storage

bp_ext = Blueprint("api_ext", __name__)


def _payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _catalog() -> CatalogService:
    return CatalogService(get_storage())


def _inbox() -> NotificationInbox:
    return NotificationInbox(get_storage())


# CALENDAR EVENTS
@bp_ext.get("/calendar-events")
@login_required
def list_calendar_events() -> tuple[dict[str, object], int]:
    """List the current user's calendar events, optionally inside a window.
    ---
    tags:
      - Calendar
    parameters:
      - name: start
        in: query
        type: string
        format: date-time
      - name: end
        in: query
        type: string
        format: date-time
    responses:
      200:
        description: Events starting at/after start and ending at/before end
      400:
        description: Invalid datetime
    """
    events = _catalog().list_calendar_events(
        g.current_user.id, request.args.get("start"), request.args.get("end")
    )
    return jsonify({"calendar_events": [event.to_dict() for event in events]}), 200


@bp_ext.post("/calendar-events")
@login_required
def create_calendar_event() -> tuple[dict[str, object], int]:
    event = _catalog().create_calendar_event(g.current_user.id, _payload())
    return jsonify({"calendar_event": event.to_dict()}), 201


@bp_ext.patch("/calendar-events/<int:event_id>")
@login_required
def update_calendar_event(event_id: int) -> tuple[dict[str, object], int]:
    event = _catalog().update_calendar_event(g.current_user.id, event_id, _payload())
    return jsonify({"calendar_event": event.to_dict()}), 200


@bp_ext.delete("/calendar-events/<int:event_id>")
@login_required
def delete_calendar_event(event_id: int) -> tuple[dict[str, object], int]:
    _catalog().delete_calendar_event(g.current_user.id, event_id)
    return jsonify({"deleted": True}), 200


# CALENDAR SOURCES
@bp_ext.get("/calendar-sources")
@login_required
def list_calendar_sources() -> tuple[dict[str, object], int]:
    sources = _catalog().list_calendar_sources(g.current_user.id)
    return jsonify({"calendar_sources": [source.to_dict() for source in sources]}), 200


@bp_ext.post("/calendar-sources")
@login_required
def create_calendar_source() -> tuple[dict[str, object], int]:
    source = _catalog().create_calendar_source(g.current_user.id, _payload())
    return jsonify({"calendar_source": source.to_dict()}), 201


@bp_ext.patch("/calendar-sources/<int:source_id>")
@login_required
def update_calendar_source(source_id: int) -> tuple[dict[str, object], int]:
    source = _catalog().update_calendar_source(g.current_user.id, source_id, _payload())
    return jsonify({"calendar_source": source.to_dict()}), 200


@bp_ext.delete("/calendar-sources/<int:source_id>")
@login_required
def delete_calendar_source(source_id: int) -> tuple[dict[str, object], int]:
    _catalog().delete_calendar_source(g.current_user.id, source_id)
    return jsonify({"deleted": True}), 200


@bp_ext.post("/calendar-sources/<int:source_id>/sync")
@login_required
def sync_calendar_source(source_id: int) -> tuple[dict[str, object], int]:
    source = _catalog().sync_calendar_source(g.current_user.id, source_id)
    return jsonify({"calendar_source": source.to_dict()}), 200


# NOTIFICATIONS
@bp_ext.get("/notifications")
@login_required
def get_notifications() -> tuple[dict[str, object], int]:
    """Get all notifications for the current user, newest first.
    ---
    tags:
      - Notifications
    parameters:
      - name: unread_only
        in: query
        type: boolean
        default: false
    responses:
      200:
        description: List of notifications
    """
    unread_only = request.args.get("unread_only", "false").lower() == "true"
    notifications = _inbox().list_notifications(g.current_user.id, unread_only=unread_only)
    return jsonify({"notifications": [item.to_dict() for item in notifications]}), 200


@bp_ext.get("/notifications/unread")
@login_required
def get_unread_notifications() -> tuple[dict[str, object], int]:
    notifications = _inbox().list_notifications(g.current_user.id, unread_only=True)
    return (
        jsonify(
            {
                "notifications": [item.to_dict() for item in notifications],
                "unread_count": len(notifications),
            }
        ),
        200,
    )


@bp_ext.put("/notifications/<int:notification_id>/read")
@login_required
def mark_notification_read(notification_id: int) -> tuple[dict[str, object], int]:
    notification = _inbox().mark_read(g.current_user.id, notification_id)
    return jsonify({"notification": notification.to_dict()}), 200


@bp_ext.post("/notifications/mark-all-read")
@login_required
def mark_all_notifications_read() -> tuple[dict[str, object], int]:
    updated = _inbox().mark_all_read(g.current_user.id)
    return jsonify({"updated": updated}), 200


@bp_ext.delete("/notifications/<int:notification_id>")
@login_required
def delete_notification(notification_id: int) -> tuple[dict[str, object], int]:
    _inbox().delete(g.current_user.id, notification_id)
    return jsonify({"deleted": True}), 200


# MARKETING CONTENT
@bp_ext.get("/marketing-contents")
@login_required
def list_marketing_contents() -> tuple[dict[str, object], int]:
    contents = _catalog().list_marketing_contents(g.current_user.id)
    return jsonify({"marketing_contents": [content.to_dict() for content in contents]}), 200


@bp_ext.post("/marketing-contents")
@login_required
def create_marketing_content() -> tuple[dict[str, object], int]:
    content = _catalog().create_marketing_content(g.current_user.id, _payload())
    return jsonify({"marketing_content": content.to_dict()}), 201


@bp_ext.patch("/marketing-contents/<int:content_id>")
@login_required
def update_marketing_content(content_id: int) -> tuple[dict[str, object], int]:
    content = _catalog().update_marketing_content(g.current_user.id, content_id, _payload())
    return jsonify({"marketing_content": content.to_dict()}), 200


@bp_ext.delete("/marketing-contents/<int:content_id>")
@login_required
def delete_marketing_content(content_id: int) -> tuple[dict[str, object], int]:
    _catalog().delete_marketing_content(g.current_user.id, content_id)
    return jsonify({"deleted": True}), 200


# AGENTS
@bp_ext.post("/agent/execute")
@agent_key_required
def execute_agent() -> tuple[dict[str, object], int]:
    """Run one automation action on behalf of a vendor.
    ---
    tags:
      - Agents
    parameters:
      - name: X-API-Key
        in: header
        type: string
        required: true
      - in: body
        name: body
        required: true
        schema:
          properties:
            agent:
              type: string
              enum: [booking, support, vendor]
            action:
              type: string
            data:
              type: object
            requestId:
              type: string
    responses:
      200:
        description: Action executed
      400:
        description: Unknown agent or action, or invalid data
      401:
        description: Missing or wrong API key
    """
    payload = _payload()
    storage = get_storage()
    executor = AgentExecutor(
        storage,
        BookingService(
            storage,
            NotificationDispatcher(storage),
            commission_rate=current_app.config["DEFAULT_COMMISSION_RATE"],
        ),
    )
    result = executor.execute(payload.get("agent"), payload.get("action"), payload.get("data"))
    return (
        jsonify(
            {
                "success": True,
                "agent": payload.get("agent"),
                "action": payload.get("action"),
                "data": result,
                "request_id": payload.get("requestId"),
            }
        ),
        200,
    )
