"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- GET  /auth/me
- POST /auth/logout

The views only move data between HTTP and AuthService:
- request bodies are validated with marshmallow
- the refresh token travels in an HTTP-only cookie, never in a JSON body
- the access token is returned in the body and sent back as a Bearer header
"""
from __future__ import annotations

from flask import Blueprint, request, g

from models.schemas.user import RegisterSchema, LoginSchema
from utils.decorators import jwt_required
from utils.errors import AppError

from .context import get_context
from .cookies import set_refresh_cookie, get_refresh_cookie, clear_refresh_cookie
from .responses import success_response

bp = Blueprint("auth", __name__, url_prefix="/auth")

register_schema = RegisterSchema()
login_schema = LoginSchema()


def _session_response(result, status: int):
    """Body carries the user and access token; the refresh token goes in the cookie."""
    resp, status = success_response(
        status,
        {
            "user": result.user,
            "accessToken": result.access_token,
        },
    )
    set_refresh_cookie(resp, result.refresh_token)
    return resp, status


@bp.post("/register")
def register():
    """
    Register a new user.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password]
          properties:
            email: { type: string }
            password: { type: string, minLength: 8 }
    responses:
      201:
        description: Created; refresh token set as HTTP-only cookie
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    payload = request.get_json(silent=True) or {}
    data = register_schema.load(payload)
    result = get_context().auth_service.register(data["email"], data["password"])
    return _session_response(result, 201)


@bp.post("/login")
def login():
    """
    Login: returns an access token and sets a new refresh cookie.
    Every successful login revokes the user's previous refresh tokens.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           required: [email, password]
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK
      400:
        description: Validation error
      401:
        description: Invalid email or password
    """
    payload = request.get_json(silent=True) or {}
    data = login_schema.load(payload)
    result = get_context().auth_service.login(data["email"], data["password"])
    return _session_response(result, 200)


@bp.post("/refresh")
def refresh():
    """
    Rotate the refresh cookie and return a new access token.
    The presented refresh token is single-use.
    ---
    tags:
      - Auth
    responses:
      200:
        description: OK; new refresh cookie set
      400:
        description: Refresh token cookie missing
      401:
        description: Invalid, expired or already used refresh token
    """
    refresh_token = get_refresh_cookie()
    if not refresh_token:
        raise AppError.validation("Refresh token not found in cookies")

    result = get_context().auth_service.refresh(refresh_token)

    resp, status = success_response(200, {"accessToken": result.access_token})
    set_refresh_cookie(resp, result.refresh_token)
    return resp, status


@bp.get("/me")
@jwt_required()
def me():
    """
    Get current user info.
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User no longer exists
    """
    return success_response(200, get_context().auth_service.current_user(g.current_user_id))


@bp.post("/logout")
def logout():
    """
    Logout: revokes the refresh token in the cookie (if any) and clears the cookie.
    ---
    tags:
      - Auth
    responses:
      200:
        description: Always, whether or not a cookie was present
    """
    get_context().auth_service.logout(get_refresh_cookie())

    resp, status = success_response(200, {"message": "Logged out successfully"})
    clear_refresh_cookie(resp)
    return resp, status
