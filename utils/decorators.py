from __future__ import annotations
from functools import wraps
from flask import request, g

from api.context import get_context
from utils.errors import AppError


def bearer_token_from_header(header: str | None) -> str:
    """Return the token from an exact "Bearer <token>" header or raise 401."""
    if not header:
        raise AppError.authentication("Authorization header is required")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        raise AppError.authentication("Invalid authorization header format")
    token = parts[1]
    if not token.strip():
        raise AppError.authentication("Access token is required")
    return token


def jwt_required():
    """Reject the request unless it carries a valid access token.

    On success the token's subject and email are available to the view as
    g.current_user_id and g.current_user_email.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            token = bearer_token_from_header(request.headers.get("Authorization"))
            payload = get_context().issuer.verify_access(token)
            g.current_user_id = payload.subject
            g.current_user_email = payload.email
            return fn(*args, **kwargs)

        return wrapper

    return decorator
