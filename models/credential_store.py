"""
Credential store: users and refresh-token records on top of DBStorage.

Every public method either returns a model / plain value or raises AppError.
Raw SQLAlchemy exceptions never leave this module:
- unique violation on users.email -> CONFLICT
- anything else from the driver (including timeouts) -> STORAGE

Lookups end their transaction before returning; no read leaves a transaction
(on SQLite, the write lock) open behind it. Loaded rows stay usable because
the session never expires them on commit.

Refresh records are only ever "found" while expires_at is in the future;
an expired row that has not been purged yet behaves exactly like a missing one.
"""
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
import logging
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from models.base_model import utcnow
from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from models.user import User
from utils.errors import AppError

logger = logging.getLogger(__name__)


def _is_unique_violation(err: IntegrityError) -> bool:
    orig = getattr(err, "orig", None)
    if getattr(orig, "pgcode", None) == "23505":
        return True
    message = str(orig if orig is not None else err).lower()
    return "unique constraint" in message or "unique violation" in message


class CredentialStore:
    def __init__(self, storage: DBStorage, clock: Callable[[], datetime] = utcnow):
        self.storage = storage
        self._clock = clock

    @property
    def session(self):
        return self.storage.get_session()

    @contextmanager
    def _guard(self, operation: str):
        """Roll back and translate driver errors for one store operation."""
        try:
            yield
        except AppError:
            raise
        except SQLAlchemyError as err:
            self.storage.rollback()
            logger.error("storage operation %s failed: %s", operation, err.__class__.__name__, exc_info=err)
            raise AppError.storage(f"Failed to {operation}") from err

    # Users

    def _insert_user(self, user: User, *related) -> User:
        with self._guard("create user"):
            self.storage.new(user)
            for obj in related:
                self.storage.new(obj)
            try:
                self.storage.save()
            except IntegrityError as err:
                if _is_unique_violation(err):
                    raise AppError.conflict("User with this email already exists") from err
                raise
        return user

    def create_user(self, email: str, password_hash: str) -> User:
        return self._insert_user(User(email=email, password_hash=password_hash))

    def create_user_with_refresh_record(self, user_id: str, email: str, password_hash: str,
                                        token_hash: str, expires_at: datetime) -> User:
        """Insert a user and their first refresh record in a single commit."""
        user = User(id=user_id, email=email, password_hash=password_hash)
        record = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        return self._insert_user(user, record)

    def find_user_by_email(self, email: str) -> Optional[User]:
        with self._guard("find user by email"):
            user = self.session.query(User).filter(User.email == email).first()
            self.storage.save()
        return user

    def find_user_by_id(self, user_id: str) -> Optional[User]:
        with self._guard("find user by id"):
            user = self.storage.get(User, str(user_id))
            self.storage.save()
        return user

    def update_password_hash(self, user: User, password_hash: str) -> User:
        with self._guard("update password hash"):
            user.password_hash = password_hash
            self.storage.new(user)
            self.storage.save()
        return user

    # Refresh records

    def create_refresh_record(self, user_id: str, token_hash: str, expires_at: datetime) -> RefreshToken:
        record = RefreshToken(user_id=user_id, token_hash=token_hash, expires_at=expires_at)
        with self._guard("create refresh token"):
            self.storage.new(record)
            self.storage.save()
        return record

    def find_refresh_record(self, token_hash: str) -> Optional[RefreshToken]:
        with self._guard("find refresh token"):
            record = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.token_hash == token_hash, RefreshToken.expires_at > self._clock())
                .first()
            )
            self.storage.save()
        return record

    def consume_refresh_record(self, token_hash: str) -> Optional[str]:
        """Delete a live refresh record and return its owner's id.

        The delete is conditional on the row still existing and still being
        unexpired, and only the caller whose DELETE removed the row gets the
        user id back. Concurrent callers presenting the same token therefore
        see at most one success.
        """
        with self._guard("consume refresh token"):
            now = self._clock()
            record = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.token_hash == token_hash, RefreshToken.expires_at > now)
                .first()
            )
            if record is None:
                self.storage.rollback()
                return None
            user_id = record.user_id
            deleted = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.id == record.id, RefreshToken.expires_at > now)
                .delete(synchronize_session=False)
            )
            self.storage.save()
            self.session.expunge(record)
        return user_id if deleted == 1 else None

    def delete_refresh_record(self, token_hash: str) -> bool:
        with self._guard("delete refresh token"):
            deleted = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.token_hash == token_hash)
                .delete(synchronize_session=False)
            )
            self.storage.save()
        return deleted > 0

    def delete_all_refresh_records_for_user(self, user_id: str) -> int:
        with self._guard("delete user refresh tokens"):
            deleted = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.user_id == str(user_id))
                .delete(synchronize_session=False)
            )
            self.storage.save()
        return deleted

    def purge_expired_refresh_records(self) -> int:
        """Maintenance sweep; request-path correctness never depends on it."""
        with self._guard("purge expired refresh tokens"):
            deleted = (
                self.session.query(RefreshToken)
                .filter(RefreshToken.expires_at <= self._clock())
                .delete(synchronize_session=False)
            )
            self.storage.save()
        return deleted

    def ping(self) -> bool:
        with self._guard("check database connection"):
            return self.storage.ping()
