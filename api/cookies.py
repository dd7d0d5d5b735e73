"""
Refresh-token cookie transport.

httponly=True: JS cannot read the cookie (XSS mitigation).
samesite="Strict": never sent on cross-site requests (CSRF mitigation).
secure: only sent over HTTPS when REFRESH_COOKIE_SECURE is on (production).
path="/": available on every route.
max_age: the refresh token lifetime, so cookie and token expire together.
"""
from __future__ import annotations

from flask import current_app, request

from utils.durations import duration_seconds


def _base_cookie_kwargs() -> dict:
    return {
        "httponly": True,
        "secure": bool(current_app.config["REFRESH_COOKIE_SECURE"]),
        "samesite": "Strict",
        "path": "/",
    }


def set_refresh_cookie(response, refresh_token: str) -> None:
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        value=refresh_token,
        max_age=duration_seconds(current_app.config["JWT_REFRESH_EXPIRES_IN"]),
        **_base_cookie_kwargs(),
    )


def get_refresh_cookie() -> str | None:
    return request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]) or None


def clear_refresh_cookie(response) -> None:
    response.delete_cookie(current_app.config["REFRESH_COOKIE_NAME"], **_base_cookie_kwargs())
