"""
Signed, time-bounded access and refresh tokens (PyJWT, HS256).

Access and refresh tokens share one claim shape and differ only in the secret
and lifetime used to produce them. Verification checks the matching secret
*and* the `type` claim, so a token of one kind never validates as the other,
even if both secrets were configured to the same value.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import jwt

from utils.errors import AppError
from utils.security import generate_jti

ACCESS = "access"
REFRESH = "refresh"

REQUIRED_CLAIMS = ["sub", "email", "iat", "exp", "jti", "type"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TokenPayload:
    subject: str
    email: str
    issued_at: datetime
    expires_at: datetime
    jti: str
    kind: str


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


@dataclass(frozen=True)
class _KeySpec:
    secret: str
    ttl: timedelta
    error_message: str


class TokenIssuer:
    """Mints and verifies access/refresh JWTs.

    Secrets and lifetimes are fixed at construction. `clock` returns an aware
    UTC datetime; it exists so tests can mint tokens "in the past".
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl: timedelta,
        refresh_ttl: timedelta,
        algorithm: str = "HS256",
        issuer: Optional[str] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._keys = {
            ACCESS: _KeySpec(access_secret, access_ttl, "Invalid or expired access token"),
            REFRESH: _KeySpec(refresh_secret, refresh_ttl, "Invalid or expired refresh token"),
        }
        self._algorithm = algorithm
        self._issuer = issuer
        self._clock = clock

    @property
    def refresh_ttl(self) -> timedelta:
        return self._keys[REFRESH].ttl

    def _now(self) -> datetime:
        # JWT time claims are whole seconds; truncating keeps the stored
        # expiry equal to the signed one.
        return self._clock().astimezone(timezone.utc).replace(microsecond=0)

    def _encode(self, kind: str, subject: str, email: str, now: datetime) -> str:
        key = self._keys[kind]
        payload = {
            "sub": str(subject),
            "email": email,
            "iat": int(now.timestamp()),
            "exp": int((now + key.ttl).timestamp()),
            "jti": generate_jti(),
            "type": kind,
        }
        if self._issuer:
            payload["iss"] = self._issuer
        return jwt.encode(payload, key.secret, algorithm=self._algorithm)

    def issue_access(self, subject: str, email: str) -> str:
        return self._encode(ACCESS, subject, email, self._now())

    def issue_refresh(self, subject: str, email: str) -> str:
        return self._encode(REFRESH, subject, email, self._now())

    def issue_pair(self, subject: str, email: str) -> TokenPair:
        """Mint an access and a refresh token from a single clock reading."""
        now = self._now()
        return TokenPair(
            access_token=self._encode(ACCESS, subject, email, now),
            refresh_token=self._encode(REFRESH, subject, email, now),
            refresh_expires_at=self.refresh_expiry(now),
        )

    def refresh_expiry(self, now: Optional[datetime] = None) -> datetime:
        """Expiry a refresh token minted at `now` carries in its `exp` claim."""
        if now is None:
            now = self._now()
        else:
            now = now.astimezone(timezone.utc).replace(microsecond=0)
        return now + self.refresh_ttl

    def _verify(self, kind: str, token: str) -> TokenPayload:
        key = self._keys[kind]
        options = {"require": REQUIRED_CLAIMS}
        try:
            decoded = jwt.decode(
                token,
                key.secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options=options,
            )
        except (jwt.InvalidTokenError, AttributeError, TypeError, ValueError):
            raise AppError.authentication(key.error_message) from None

        if decoded.get("type") != kind:
            raise AppError.authentication(key.error_message)
        if not decoded.get("sub") or not isinstance(decoded.get("email"), str):
            raise AppError.authentication(key.error_message)

        return TokenPayload(
            subject=str(decoded["sub"]),
            email=decoded["email"],
            issued_at=datetime.fromtimestamp(decoded["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(decoded["exp"], tz=timezone.utc),
            jti=str(decoded["jti"]),
            kind=kind,
        )

    def verify_access(self, token: str) -> TokenPayload:
        return self._verify(ACCESS, token)

    def verify_refresh(self, token: str) -> TokenPayload:
        return self._verify(REFRESH, token)
