"""Database tables backing the durable storage backend."""
from __future__ import annotations

from dataclasses import fields

from .entities import (Booking, CalendarEvent, CalendarSource, MarketingContent,
                       Notification, Service, User, utc_now)
from .extensions import db

# AUTOINCREMENT keeps SQLite from handing a deleted id out again.
_NEVER_REUSE_IDS = {"sqlite_autoincrement": True}


class RecordMixin:
    """Maps a row onto its frozen record; attribute names match record fields."""

    record_class = None

    def to_record(self):
        return self.record_class(**{item.name: getattr(self, item.name) for item in fields(self.record_class)})


class UserRow(RecordMixin, db.Model):
    __tablename__ = "users"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = User

    id = db.Column("user_id", db.Integer, primary_key=True)
    username = db.Column(db.String(150), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    business_name = db.Column(db.String(150), nullable=False)
    business_type = db.Column(db.String(100), nullable=False)
    role = db.Column(
        db.Enum(
            "admin",
            "vendor",
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="vendor",
    )
    categories_allowed = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class ServiceRow(RecordMixin, db.Model):
    __tablename__ = "services"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = Service

    id = db.Column("service_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    name = db.Column(db.String(150), nullable=False)
    description = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), nullable=False)
    base_price = db.Column(db.Float, nullable=False)
    available = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class CalendarEventRow(RecordMixin, db.Model):
    __tablename__ = "calendar_events"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = CalendarEvent

    id = db.Column("event_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    # plain id reference, resolved by lookup
    service_id = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    is_booked = db.Column(db.Boolean, nullable=False, default=False)
    is_pending = db.Column(db.Boolean, nullable=False, default=False)
    is_blocked = db.Column(db.Boolean, nullable=False, default=False)
    source = db.Column(db.String(50), nullable=False, default="direct")
    external_id = db.Column(db.String(255))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class CalendarSourceRow(RecordMixin, db.Model):
    __tablename__ = "calendar_sources"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = CalendarSource

    id = db.Column("source_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, nullable=True)
    name = db.Column(db.String(150), nullable=False)
    url = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), nullable=False)  # google, airbnb, booking.com
    last_synced = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class BookingRow(RecordMixin, db.Model):
    __tablename__ = "bookings"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = Booking

    id = db.Column("booking_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=False)
    category = db.Column(db.String(50))
    customer_name = db.Column(db.String(150), nullable=False)
    customer_email = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.DateTime(timezone=True), nullable=False)
    end_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(
        db.Enum(
            "pending",
            "confirmed",
            "cancelled",
            "completed",
            name="booking_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="pending",
    )
    total_price = db.Column(db.Float, nullable=False)
    commission = db.Column(db.Float, nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class NotificationRow(RecordMixin, db.Model):
    __tablename__ = "notifications"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = Notification

    id = db.Column("notification_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), nullable=False)
    read = db.Column(db.Boolean, nullable=False, server_default="0", default=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)


class MarketingContentRow(RecordMixin, db.Model):
    __tablename__ = "marketing_contents"
    __table_args__ = _NEVER_REUSE_IDS
    record_class = MarketingContent

    id = db.Column("content_id", db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.user_id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, nullable=True)
    title = db.Column(db.String(200), nullable=False)
    content = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(50), nullable=False)  # instagram, facebook, seo
    prompt = db.Column(db.JSON, nullable=False, default=dict)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utc_now)
