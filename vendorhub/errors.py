"""Error taxonomy shared by the storage backends and the core services.

Nothing backend specific crosses the storage boundary: the durable backend
translates SQLAlchemy faults into these types before they reach a caller.
"""
from __future__ import annotations

from typing import Iterable


class VendorHubError(Exception):
    """Base class for user-visible errors raised by the core."""

    code = "error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        allowed: Iterable[str] | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.field = field
        self.allowed = list(allowed) if allowed is not None else None
        if code is not None:
            self.code = code

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"error": self.code, "message": self.message}
        if self.field is not None:
            payload["field"] = self.field
        if self.allowed is not None:
            payload["allowed"] = self.allowed
        return payload


class NotFound(VendorHubError):
    code = "not_found"
    status_code = 404


class Conflict(VendorHubError):
    code = "conflict"
    status_code = 409


class AuthorizationError(VendorHubError):
    code = "forbidden"
    status_code = 403


class ValidationError(VendorHubError):
    code = "invalid_payload"
    status_code = 400


class StorageError(VendorHubError):
    """The durable store failed in a way that is not a NotFound/Conflict."""

    code = "database_error"
    status_code = 500
