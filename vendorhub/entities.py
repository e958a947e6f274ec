"""Plain records handed out by every storage backend.

Records are frozen; a mutation produces a new record through
``dataclasses.replace``. Relations are ids, never embedded objects.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta, timezone

ROLES = ("admin", "vendor")

BOOKING_STATUSES = ("pending", "confirmed", "cancelled", "completed")
INITIAL_BOOKING_STATUS = "pending"


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes and convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def advance_timestamp(previous: datetime | None) -> datetime:
    """Current time, bumped past ``previous`` so updated_at always moves forward."""
    now = utc_now()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now


class Record:
    """Mixin with the normalisation and serialisation shared by all records."""

    def __post_init__(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, datetime):
                object.__setattr__(self, item.name, as_utc(value))

    def to_dict(self) -> dict[str, object]:
        data = asdict(self)
        for key, value in data.items():
            if isinstance(value, datetime):
                data[key] = value.isoformat()
            elif isinstance(value, tuple):
                data[key] = list(value)
        return data


@dataclass(frozen=True)
class User(Record):
    id: int
    username: str
    email: str
    password: str
    full_name: str
    business_name: str
    business_type: str
    created_at: datetime
    role: str = "vendor"
    categories_allowed: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "categories_allowed", tuple(self.categories_allowed or ()))

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self) -> dict[str, object]:
        # the credential secret never leaves the core
        data = super().to_dict()
        data.pop("password", None)
        return data


@dataclass(frozen=True)
class Service(Record):
    id: int
    user_id: int
    name: str
    description: str
    type: str
    base_price: float
    created_at: datetime
    available: bool = True


@dataclass(frozen=True)
class Booking(Record):
    id: int
    user_id: int
    service_id: int
    customer_name: str
    customer_email: str
    start_date: datetime
    end_date: datetime
    total_price: float
    commission: float
    created_at: datetime
    updated_at: datetime
    category: str | None = None
    status: str = INITIAL_BOOKING_STATUS
    notes: str | None = None


@dataclass(frozen=True)
class CalendarSource(Record):
    id: int
    user_id: int
    name: str
    url: str
    type: str
    created_at: datetime
    service_id: int | None = None
    last_synced: datetime | None = None


@dataclass(frozen=True)
class CalendarEvent(Record):
    id: int
    user_id: int
    start_date: datetime
    end_date: datetime
    title: str
    created_at: datetime
    service_id: int | None = None
    is_booked: bool = False
    is_pending: bool = False
    is_blocked: bool = False
    source: str = "direct"
    external_id: str | None = None


@dataclass(frozen=True)
class Notification(Record):
    id: int
    user_id: int
    title: str
    message: str
    type: str
    created_at: datetime
    read: bool = False


@dataclass(frozen=True)
class MarketingContent(Record):
    id: int
    user_id: int
    title: str
    content: str
    type: str
    created_at: datetime
    service_id: int | None = None
    prompt: dict = field(default_factory=dict)
