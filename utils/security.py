"""
security helpers:
- Argon2id password hashing via argon2-cffi
- SHA-256 digests for refresh tokens (lookup keys, never the bearer value)
- JTI generation for token identifiers
"""
from __future__ import annotations

import hashlib
import uuid

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

DEFAULT_TIME_COST = 3
DEFAULT_MEMORY_COST = 65536  # KiB, 64 MB
DEFAULT_PARALLELISM = 1


class CredentialHasher:
    """Argon2id password hashing with fixed cost parameters.

    The parameters come from configuration when the app starts; callers
    cannot pass their own. Each hash uses a fresh random salt.
    """

    def __init__(
        self,
        time_cost: int = DEFAULT_TIME_COST,
        memory_cost: int = DEFAULT_MEMORY_COST,
        parallelism: int = DEFAULT_PARALLELISM,
    ):
        self._ph = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
        )
        # Verified against when the email is unknown so both paths cost the same.
        self._dummy_hash = self._ph.hash("timing-equalization-dummy")

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2id."""
        return self._ph.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a stored hash.

        A wrong password and an unparseable hash both return False.
        """
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False
        except (TypeError, ValueError):
            return False

    def verify_dummy(self, password: str) -> bool:
        self.verify(password, self._dummy_hash)
        return False

    def needs_rehash(self, password_hash: str) -> bool:
        try:
            return self._ph.check_needs_rehash(password_hash)
        except (InvalidHashError, ValueError):
            return False


def hash_token(token: str) -> str:
    """Deterministic SHA-256 hex digest of a bearer token.

    No salt: refresh tokens are high-entropy and the digest has to work as
    a lookup key.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID)."""
    return str(uuid.uuid4())
