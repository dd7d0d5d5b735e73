"""
Session orchestrator: register / login / refresh / logout / current user.

Holds no per-request state. Each operation is a short sequence over the
hasher, the token issuer and the credential store, and every failure that
leaves this class is an AppError.

Refresh-token lifecycle:

    issued -> active -> consumed-by-refresh
                     -> revoked-by-login
                     -> revoked-by-logout
                     -> expired

All four end states are terminal; nothing re-activates a token.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from functools import wraps
import logging
from typing import Optional

from models.base_model import new_id
from models.credential_store import CredentialStore
from models.schemas.user import UserOutSchema
from models.user import User
from utils.errors import AppError
from utils.security import CredentialHasher, hash_token
from utils.tokens import TokenIssuer, TokenPair

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password"
INVALID_REFRESH_TOKEN = "Invalid refresh token"

user_out_schema = UserOutSchema()


@dataclass(frozen=True)
class AuthResult:
    user: dict
    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


def _app_errors_only(fn):
    """Make sure nothing but AppError crosses the service boundary."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except AppError:
            raise
        except Exception as err:
            logger.exception("unexpected error in %s", fn.__name__)
            raise AppError.unexpected("An unexpected error occurred") from err

    return wrapper


class AuthService:
    def __init__(self, store: CredentialStore, issuer: TokenIssuer, hasher: CredentialHasher):
        self.store = store
        self.issuer = issuer
        self.hasher = hasher

    def _issue_session(self, user: User) -> AuthResult:
        """Mint a token pair and persist the refresh token's digest."""
        pair = self.issuer.issue_pair(user.id, user.email)
        self.store.create_refresh_record(
            user_id=user.id,
            token_hash=hash_token(pair.refresh_token),
            expires_at=pair.refresh_expires_at,
        )
        return self._result(user, pair)

    @staticmethod
    def _result(user: User, pair: TokenPair) -> AuthResult:
        return AuthResult(
            user=user_out_schema.dump(user),
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            refresh_expires_at=pair.refresh_expires_at,
        )

    @_app_errors_only
    def register(self, email: str, password: str) -> AuthResult:
        password_hash = self.hasher.hash(password)
        user_id = new_id()
        pair = self.issuer.issue_pair(user_id, email)
        # The account and its first session land together or not at all.
        user = self.store.create_user_with_refresh_record(
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            token_hash=hash_token(pair.refresh_token),
            expires_at=pair.refresh_expires_at,
        )
        logger.info("registered user %s", user.id)
        return self._result(user, pair)

    @_app_errors_only
    def login(self, email: str, password: str) -> AuthResult:
        user = self.store.find_user_by_email(email)
        if user is None:
            self.hasher.verify_dummy(password)
            raise AppError.authentication(INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.password_hash):
            logger.info("failed login for user %s", user.id)
            raise AppError.authentication(INVALID_CREDENTIALS)

        if self.hasher.needs_rehash(user.password_hash):
            self.store.update_password_hash(user, self.hasher.hash(password))

        # One active refresh session per successful credential proof.
        revoked = self.store.delete_all_refresh_records_for_user(user.id)
        if revoked:
            logger.info("login revoked %d refresh token(s) for user %s", revoked, user.id)
        return self._issue_session(user)

    @_app_errors_only
    def refresh(self, raw_refresh_token: str) -> AuthResult:
        payload = self.issuer.verify_refresh(raw_refresh_token)

        # Atomic find-and-delete: a replayed or concurrently reused token
        # finds nothing left to consume.
        owner_id = self.store.consume_refresh_record(hash_token(raw_refresh_token))
        if owner_id is None or owner_id != payload.subject:
            logger.warning("rejected refresh token for subject %s", payload.subject)
            raise AppError.authentication(INVALID_REFRESH_TOKEN)

        user = self.store.find_user_by_id(payload.subject)
        if user is None:
            raise AppError.authentication("User not found")
        return self._issue_session(user)

    @_app_errors_only
    def current_user(self, subject_id: str) -> dict:
        user = self.store.find_user_by_id(subject_id)
        if user is None:
            raise AppError.not_found("User not found")
        return user_out_schema.dump(user)

    @_app_errors_only
    def logout(self, raw_refresh_token: Optional[str]) -> None:
        """Delete the presented refresh token's record, if there is one.

        Succeeds whether or not a record existed. The token is not
        signature-checked: deleting by digest is harmless for garbage input.
        """
        if not raw_refresh_token:
            return
        try:
            if self.store.delete_refresh_record(hash_token(raw_refresh_token)):
                logger.info("logout revoked a refresh token")
        except AppError as err:
            # The client is logged out either way; the record will expire.
            logger.warning("logout could not delete refresh token: %s", err.message)
