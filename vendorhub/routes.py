"""HTTP routes for the vendor operations backend."""
from __future__ import annotations

from flask import Blueprint, Flask, current_app, g, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from .auth import admin_required, build_token, login_required
from .bookings import BookingService
from .catalog import CatalogService
from .errors import StorageError, ValidationError, VendorHubError
from .extensions import db
from .notifications import NotificationDispatcher
from .storage import STORAGE_MODES, get_storage, resolve_mode, switch_storage
from .users import UserService

bp = Blueprint("api", __name__)


def register_routes(app: Flask) -> None:
    from .routes_extended import bp_ext

    app.register_blueprint(bp)
    app.register_blueprint(bp_ext)


def _payload() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _users() -> UserService:
    storage = get_storage()
    return UserService(storage, NotificationDispatcher(storage))


def _bookings() -> BookingService:
    storage = get_storage()
    return BookingService(
        storage,
        NotificationDispatcher(storage),
        commission_rate=current_app.config["DEFAULT_COMMISSION_RATE"],
    )


def _catalog() -> CatalogService:
    return CatalogService(get_storage())


@bp.app_errorhandler(VendorHubError)
def handle_vendorhub_error(exc: VendorHubError) -> tuple[dict[str, object], int]:
    if isinstance(exc, StorageError):
        current_app.logger.exception("Storage failure", exc_info=exc)
    return jsonify(exc.to_dict()), exc.status_code


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
        schema:
          type: object
          properties:
            status:
              type: string
              example: ok
            storage:
              type: string
              example: memory
    """
    return jsonify({"status": "ok", "storage": get_storage().mode}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database.
    ---
    tags:
      - Health
    responses:
      200:
        description: Database connection is ok, or the in-process backend is active.
      500:
        description: Database connection failed.
    """
    if get_storage().mode != "database":
        return jsonify({"database": "unused", "storage": get_storage().mode}), 200

    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# --- Authentication ---

@bp.post("/auth/register")
def register() -> tuple[dict[str, object], int]:
    """Register a vendor account and return an access token.
    ---
    tags:
      - Authentication
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          properties:
            username:
              type: string
            email:
              type: string
            password:
              type: string
            full_name:
              type: string
            business_name:
              type: string
            business_type:
              type: string
            categories_allowed:
              type: array
              items:
                type: string
          required:
            - username
            - email
            - password
            - full_name
            - business_name
            - business_type
    responses:
      201:
        description: Account created
      400:
        description: Invalid input
      409:
        description: Username or email already in use
    """
    # public registration never grants the admin role
    user = _users().register({**_payload(), "role": "vendor"})
    token = build_token({"user_id": user.id, "role": user.role})
    return jsonify({"token": token, "user": user.to_dict()}), 201


@bp.post("/auth/login")
def login() -> tuple[dict[str, object], int]:
    """Authenticate a user by email/password and return an access token.
    ---
    tags:
      - Authentication
    responses:
      200:
        description: Login successful, returns access token
      400:
        description: Missing email or password
      401:
        description: Invalid email or password
    """
    payload = _payload()

    email = str(payload.get("email") or "").strip().lower()
    password = str(payload.get("password") or "")

    if not email or not password:
        return (
            jsonify({"error": "invalid_payload", "message": "email and password are required"}),
            400,
        )

    user = _users().authenticate(email, password)
    if user is None:
        return jsonify({"error": "unauthorized", "message": "invalid email or password"}), 401

    token = build_token({"user_id": user.id, "role": user.role})
    current_app.logger.info("User %s logged in", user.id)
    return jsonify({"token": token, "user": user.to_dict()}), 200


@bp.get("/auth/me")
@login_required
def current_user() -> tuple[dict[str, object], int]:
    return jsonify({"user": g.current_user.to_dict()}), 200


@bp.patch("/auth/me")
@login_required
def update_profile() -> tuple[dict[str, object], int]:
    user = _users().update_profile(g.current_user.id, _payload())
    return jsonify({"user": user.to_dict()}), 200


@bp.post("/vendors/register")
def vendor_application() -> tuple[dict[str, object], int]:
    """Submit a vendor application; every admin is notified.
    ---
    tags:
      - Vendors
    responses:
      201:
        description: Vendor account created and admins notified
      400:
        description: Invalid input
      409:
        description: Username or email already in use
    """
    vendor = _users().apply_as_vendor(_payload())
    token = build_token({"user_id": vendor.id, "role": vendor.role})
    return jsonify({"token": token, "vendor": vendor.to_dict()}), 201


# --- Services ---

@bp.get("/services")
@login_required
def list_services() -> tuple[dict[str, object], int]:
    services = _catalog().list_services(g.current_user.id)
    return jsonify({"services": [service.to_dict() for service in services]}), 200


@bp.post("/services")
@login_required
def create_service() -> tuple[dict[str, object], int]:
    service = _catalog().create_service(g.current_user.id, _payload())
    return jsonify({"service": service.to_dict()}), 201


@bp.get("/services/<int:service_id>")
@login_required
def get_service(service_id: int) -> tuple[dict[str, object], int]:
    catalog = _catalog()
    service = catalog.get_service(g.current_user.id, service_id)
    events = catalog.list_service_events(g.current_user.id, service_id)
    return jsonify({"service": service.to_dict(), "calendar_events": [event.to_dict() for event in events]}), 200


@bp.patch("/services/<int:service_id>")
@login_required
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    service = _catalog().update_service(g.current_user.id, service_id, _payload())
    return jsonify({"service": service.to_dict()}), 200


@bp.delete("/services/<int:service_id>")
@login_required
def delete_service(service_id: int) -> tuple[dict[str, object], int]:
    _catalog().delete_service(g.current_user.id, service_id)
    return jsonify({"deleted": True}), 200


# --- Bookings ---

@bp.get("/bookings")
@login_required
def list_bookings() -> tuple[dict[str, object], int]:
    """List the current vendor's bookings.
    ---
    tags:
      - Bookings
    parameters:
      - name: status
        in: query
        type: string
        enum: [pending, confirmed, cancelled, completed]
    responses:
      200:
        description: Bookings in id order
      400:
        description: Unknown status filter
    """
    status = request.args.get("status") or None
    bookings = _bookings().list_bookings(g.current_user.id, status=status)
    return jsonify({"bookings": [booking.to_dict() for booking in bookings]}), 200


@bp.post("/bookings")
@login_required
def create_booking() -> tuple[dict[str, object], int]:
    """Create a booking in one of the vendor's allowed categories.
    ---
    tags:
      - Bookings
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            service_id:
              type: integer
            category:
              type: string
            customer_name:
              type: string
            customer_email:
              type: string
            start_date:
              type: string
              format: date-time
            end_date:
              type: string
              format: date-time
            total_price:
              type: number
            commission:
              type: number
            notes:
              type: string
    responses:
      201:
        description: Booking created with status pending
      400:
        description: Invalid input
      403:
        description: Category not allowed or service owned by another vendor
      404:
        description: Service not found
    """
    booking = _bookings().create_booking(g.current_user.id, _payload())
    return jsonify({"booking": booking.to_dict()}), 201


@bp.get("/bookings/recent")
@login_required
def recent_bookings() -> tuple[dict[str, object], int]:
    limit = request.args.get("limit", 5, type=int)
    bookings = _bookings().recent_bookings(g.current_user.id, limit)
    return jsonify({"bookings": [booking.to_dict() for booking in bookings]}), 200


@bp.get("/bookings/<int:booking_id>")
@login_required
def get_booking(booking_id: int) -> tuple[dict[str, object], int]:
    booking = _bookings().get_booking(g.current_user.id, booking_id)
    return jsonify({"booking": booking.to_dict()}), 200


@bp.patch("/bookings/<int:booking_id>/status")
@login_required
def update_booking_status(booking_id: int) -> tuple[dict[str, object], int]:
    """Move a booking to another status.
    ---
    tags:
      - Bookings
    parameters:
      - in: path
        name: booking_id
        required: true
        schema:
          type: integer
      - in: body
        name: body
        required: true
        schema:
          properties:
            status:
              type: string
              enum: [pending, confirmed, cancelled, completed]
    responses:
      200:
        description: Booking status updated, vendor notified
      400:
        description: Invalid status
      403:
        description: Booking owned by another vendor
      404:
        description: Booking not found
    """
    payload = _payload()
    if "status" not in payload:
        return jsonify({"error": "invalid_payload", "message": "status is required", "field": "status"}), 400

    booking = _bookings().update_booking_status(g.current_user.id, booking_id, payload["status"])
    return jsonify({"booking": booking.to_dict()}), 200


@bp.post("/bookings/<int:booking_id>/cancel")
@login_required
def cancel_booking(booking_id: int) -> tuple[dict[str, object], int]:
    booking = _bookings().cancel_booking(g.current_user.id, booking_id)
    return jsonify({"booking": booking.to_dict()}), 200


# --- Admin ---

@bp.get("/admin/users")
@admin_required
def list_users() -> tuple[dict[str, object], int]:
    users = _users().list_users(g.current_user)
    return jsonify({"users": [user.to_dict() for user in users]}), 200


@bp.get("/admin/vendors")
@admin_required
def list_vendors() -> tuple[dict[str, object], int]:
    vendors = _users().list_vendors(g.current_user)
    return jsonify({"vendors": [vendor.to_dict() for vendor in vendors]}), 200


@bp.put("/admin/vendors/<int:vendor_id>/categories")
@admin_required
def update_vendor_categories(vendor_id: int) -> tuple[dict[str, object], int]:
    """Replace the categories a vendor may take bookings in.
    ---
    tags:
      - Admin
    responses:
      200:
        description: Categories updated
      400:
        description: Empty list or unknown category
      404:
        description: Vendor not found
    """
    categories = _payload().get("categories_allowed")
    vendor = _users().update_categories(g.current_user, vendor_id, categories)
    return jsonify({"vendor": vendor.to_dict()}), 200


@bp.get("/admin/bookings")
@admin_required
def list_all_bookings() -> tuple[dict[str, object], int]:
    bookings = _bookings().list_all_bookings(g.current_user)
    return jsonify({"bookings": [booking.to_dict() for booking in bookings]}), 200


@bp.delete("/admin/bookings/<int:booking_id>")
@admin_required
def delete_booking(booking_id: int) -> tuple[dict[str, object], int]:
    if not _bookings().delete_booking(g.current_user, booking_id):
        return jsonify({"error": "not_found", "message": "booking not found", "deleted": False}), 404
    return jsonify({"deleted": True}), 200


@bp.put("/admin/storage")
@admin_required
def swap_storage() -> tuple[dict[str, object], int]:
    """Swap the storage backend at runtime.

    The new backend is seeded with the default accounts before it is
    installed; data held by the previous backend is not copied.
    ---
    tags:
      - Admin
    responses:
      200:
        description: Backend swapped
      400:
        description: Unknown storage mode
    """
    requested = _payload().get("mode")
    try:
        mode = resolve_mode(str(requested or ""))
    except ValueError as exc:
        raise ValidationError(str(exc), field="mode", allowed=sorted(STORAGE_MODES)) from exc

    storage = switch_storage(current_app._get_current_object(), mode)
    current_app.logger.info("Admin %s switched storage to %s", g.current_user.id, storage.mode)
    return jsonify({"storage": storage.mode}), 200
