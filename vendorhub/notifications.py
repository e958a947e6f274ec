"""Best-effort notification side effects.

The triggering write has already committed when ``notify`` runs. A failed
notification is logged and dropped, never rolled back into the caller, so
delivery is at most once with possible loss.
"""
from __future__ import annotations

import logging

from .entities import Notification
from .errors import AuthorizationError, NotFound
from .storage.base import Storage

logger = logging.getLogger(__name__)

BOOKING_CREATED = "booking"
BOOKING_STATUS_CHANGED = "booking_status"
INFO = "info"
SUPPORT = "support"


class NotificationDispatcher:
    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def notify(self, user_id: int, title: str, message: str, type_: str = INFO) -> Notification | None:
        try:
            return self.storage.create_notification(
                {"user_id": user_id, "title": title, "message": message, "type": type_, "read": False}
            )
        except Exception:
            logger.exception("Failed to write %s notification for user %s", type_, user_id)
            return None

    def notify_admins(self, title: str, message: str, type_: str = INFO) -> list[Notification]:
        try:
            admins = self.storage.list_users(role="admin")
        except Exception:
            logger.exception("Failed to look up admins for notification %r", title)
            return []

        if not admins:
            logger.warning("No admin user to receive notification %r", title)
        sent = (self.notify(admin.id, title, message, type_) for admin in admins)
        return [notification for notification in sent if notification is not None]


class NotificationInbox:
    """Read side of a user's notifications."""

    def __init__(self, storage: Storage) -> None:
        self.storage = storage

    def _owned(self, owner_id: int, notification_id: int) -> Notification:
        notification = self.storage.get_notification(notification_id)
        if notification is None:
            raise NotFound("notification not found")
        if notification.user_id != owner_id:
            raise AuthorizationError("not authorized to access this notification")
        return notification

    def list_notifications(self, owner_id: int, unread_only: bool = False) -> list[Notification]:
        return self.storage.list_notifications(owner_id, unread_only=unread_only)

    def mark_read(self, owner_id: int, notification_id: int) -> Notification:
        self._owned(owner_id, notification_id)
        if not self.storage.mark_notification_read(notification_id):
            raise NotFound("notification not found")
        return self.storage.get_notification(notification_id)

    def mark_all_read(self, owner_id: int) -> int:
        unread = self.storage.list_notifications(owner_id, unread_only=True)
        return sum(1 for notification in unread if self.storage.mark_notification_read(notification.id))

    def delete(self, owner_id: int, notification_id: int) -> bool:
        self._owned(owner_id, notification_id)
        return self.storage.delete_notification(notification_id)
