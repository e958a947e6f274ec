"""Bearer tokens and the access decorators used by the blueprints."""
from __future__ import annotations

import hmac
from functools import wraps

from flask import current_app, g, jsonify, request
from itsdangerous import BadSignature, URLSafeTimedSerializer

from .storage import get_storage


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt="auth-token")


def build_token(payload: dict[str, object]) -> str:
    return _serializer().dumps(payload)


def get_token_identity() -> int | None:
    """Extract and validate user_id from the Authorization header token.

    Returns the user_id if the token is valid, None if missing, expired or
    tampered with.
    """
    auth_header = request.headers.get("Authorization", "")

    if not auth_header.startswith("Bearer "):
        return None

    token = auth_header[7:]  # Remove "Bearer " prefix

    try:
        payload = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except BadSignature:
        return None
    user_id = payload.get("user_id") if isinstance(payload, dict) else None
    return user_id if isinstance(user_id, int) else None


def _unauthorized(message: str):
    return jsonify({"error": "unauthorized", "message": message}), 401


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        user_id = get_token_identity()
        if user_id is None:
            return _unauthorized("a valid bearer token is required")

        user = get_storage().get_user(user_id)
        if user is None:
            return _unauthorized("token user no longer exists")

        g.current_user = user
        return view(*args, **kwargs)

    return wrapped


def admin_required(view):
    @login_required
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not g.current_user.is_admin:
            return jsonify({"error": "forbidden", "message": "admin role required", "allowed": ["admin"]}), 403
        return view(*args, **kwargs)

    return wrapped


def agent_key_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        expected = current_app.config.get("AGENT_API_KEY") or ""
        provided = request.headers.get("X-API-Key", "")
        # an unset key disables the agent endpoint entirely
        if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
            current_app.logger.warning("Rejected agent call from %s", request.remote_addr)
            return _unauthorized("a valid X-API-Key header is required")
        return view(*args, **kwargs)

    return wrapped
