"""
tests/test_credential_store.py -- CredentialStore against a real SQLite file.

Coverage:
  - email uniqueness surfaces as CONFLICT, never a second row
  - refresh records are only visible before their expiry
  - consume_refresh_record deletes exactly once
  - user deletion cascades to refresh records
  - driver failures surface as STORAGE
  - lookups end their transaction; timestamps come back as aware UTC
"""

from __future__ import annotations

from datetime import timedelta, timezone

import pytest

from models.base_model import new_id, utcnow
from models.credential_store import CredentialStore
from models.db_storage import DBStorage
from models.refresh_token import RefreshToken
from models.user import User
from utils.errors import AppError, ErrorKind
from utils.security import hash_token


def future(days: int = 7):
    return utcnow() + timedelta(days=days)


def past(seconds: int = 1):
    return utcnow() - timedelta(seconds=seconds)


@pytest.fixture()
def user(store: CredentialStore) -> User:
    return store.create_user("owner@x.com", "argon2-digest-placeholder")


class TestUsers:
    def test_create_and_find(self, store: CredentialStore) -> None:
        created = store.create_user("a@x.com", "digest")
        assert created.id
        assert created.created_at is not None
        assert created.updated_at is not None
        assert store.find_user_by_email("a@x.com").id == created.id
        assert store.find_user_by_id(created.id).email == "a@x.com"

    def test_absent_user(self, store: CredentialStore) -> None:
        assert store.find_user_by_email("nobody@x.com") is None
        assert store.find_user_by_id("00000000-0000-0000-0000-000000000000") is None

    def test_email_lookup_is_case_sensitive(self, store: CredentialStore) -> None:
        store.create_user("Case@x.com", "digest")
        assert store.find_user_by_email("case@x.com") is None

    def test_duplicate_email_is_conflict(self, store: CredentialStore) -> None:
        store.create_user("dup@x.com", "digest")
        with pytest.raises(AppError) as exc_info:
            store.create_user("dup@x.com", "other-digest")
        assert exc_info.value.kind is ErrorKind.CONFLICT
        assert store.storage.count(User) == 1
        # Session is usable after the failed insert
        assert store.find_user_by_email("dup@x.com") is not None

    def test_update_password_hash(self, store: CredentialStore, user: User) -> None:
        store.update_password_hash(user, "new-digest")
        assert store.find_user_by_id(user.id).password_hash == "new-digest"

    def test_create_with_refresh_record(self, store: CredentialStore) -> None:
        user_id = new_id()
        digest = hash_token("first-session")
        created = store.create_user_with_refresh_record(user_id, "a@x.com", "digest", digest, future())
        assert created.id == user_id
        assert store.find_refresh_record(digest).user_id == user_id

    def test_create_with_refresh_record_conflict_writes_nothing(self, store: CredentialStore, user: User) -> None:
        digest = hash_token("second-account")
        with pytest.raises(AppError) as exc_info:
            store.create_user_with_refresh_record(new_id(), user.email, "digest", digest, future())
        assert exc_info.value.kind is ErrorKind.CONFLICT
        assert store.storage.count(User) == 1
        assert store.storage.count(RefreshToken) == 0

    def test_timestamps_read_back_as_utc(self, store: CredentialStore, user: User) -> None:
        store.create_refresh_record(user.id, hash_token("tz"), future())
        store.storage.close()
        loaded = store.find_user_by_id(user.id)
        assert loaded is not user
        assert loaded.created_at.tzinfo is timezone.utc
        assert loaded.updated_at.tzinfo is timezone.utc
        assert store.find_refresh_record(hash_token("tz")).expires_at.tzinfo is timezone.utc

    def test_lookups_leave_no_open_transaction(self, store: CredentialStore, user: User) -> None:
        store.create_refresh_record(user.id, hash_token("open"), future())
        store.storage.close()
        store.find_user_by_email(user.email)
        assert not store.session.in_transaction()
        store.find_user_by_id(user.id)
        assert not store.session.in_transaction()
        store.find_refresh_record(hash_token("open"))
        assert not store.session.in_transaction()


class TestRefreshRecords:
    def test_find_live_record(self, store: CredentialStore, user: User) -> None:
        digest = hash_token("raw-token")
        store.create_refresh_record(user.id, digest, future())
        record = store.find_refresh_record(digest)
        assert record is not None
        assert record.user_id == user.id
        assert record.token_hash == digest

    def test_expired_record_is_absent(self, store: CredentialStore, user: User) -> None:
        digest = hash_token("stale-token")
        store.create_refresh_record(user.id, digest, past())
        assert store.find_refresh_record(digest) is None
        assert store.consume_refresh_record(digest) is None

    def test_consume_only_once(self, store: CredentialStore, user: User) -> None:
        digest = hash_token("one-shot")
        store.create_refresh_record(user.id, digest, future())
        assert store.consume_refresh_record(digest) == user.id
        assert store.consume_refresh_record(digest) is None
        assert store.find_refresh_record(digest) is None

    def test_consume_unknown(self, store: CredentialStore) -> None:
        assert store.consume_refresh_record(hash_token("never-issued")) is None

    def test_delete_record(self, store: CredentialStore, user: User) -> None:
        digest = hash_token("to-delete")
        store.create_refresh_record(user.id, digest, future())
        assert store.delete_refresh_record(digest) is True
        assert store.delete_refresh_record(digest) is False
        assert store.find_refresh_record(digest) is None

    def test_delete_all_for_user(self, store: CredentialStore, user: User) -> None:
        other = store.create_user("other@x.com", "digest")
        for i in range(3):
            store.create_refresh_record(user.id, hash_token(f"mine-{i}"), future())
        store.create_refresh_record(other.id, hash_token("theirs"), future())

        assert store.delete_all_refresh_records_for_user(user.id) == 3
        assert store.find_refresh_record(hash_token("mine-0")) is None
        assert store.find_refresh_record(hash_token("theirs")) is not None

    def test_purge_expired(self, store: CredentialStore, user: User) -> None:
        store.create_refresh_record(user.id, hash_token("old"), past())
        store.create_refresh_record(user.id, hash_token("new"), future())
        assert store.purge_expired_refresh_records() == 1
        assert store.storage.count(RefreshToken) == 1

    def test_cascade_on_user_delete(self, store: CredentialStore, user: User) -> None:
        store.create_refresh_record(user.id, hash_token("cascade"), future())
        store.storage.delete(user)
        store.storage.save()
        assert store.storage.count(RefreshToken) == 0


class TestStorageErrors:
    def test_unreachable_database(self, tmp_path) -> None:
        storage = DBStorage(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'auth.db'}", connect_timeout=1)
        store = CredentialStore(storage)
        with pytest.raises(AppError) as exc_info:
            store.find_user_by_email("a@x.com")
        assert exc_info.value.kind is ErrorKind.STORAGE
        assert "missing" not in exc_info.value.public_message
        with pytest.raises(AppError):
            store.ping()
        storage.dispose()

    def test_ping(self, store: CredentialStore) -> None:
        assert store.ping() is True
