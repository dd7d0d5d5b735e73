"""
tests/test_tokens.py -- TokenIssuer: minting, verification and kind separation.

Coverage:
  - access/refresh tokens are three-segment JWTs carrying subject and email
  - an access token never verifies as a refresh token and vice versa,
    including when both secrets are identical
  - expired, malformed, tampered and wrongly signed tokens all fail with the
    same AUTHENTICATION error
  - refresh_expiry() matches the exp claim of the refresh token
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from utils.errors import AppError, ErrorKind
from utils.tokens import TokenIssuer

ACCESS_SECRET = "access-secret-for-tests-0123456789abcdef"
REFRESH_SECRET = "refresh-secret-for-tests-0123456789abcdef"


def make_issuer(clock=None, access_secret=ACCESS_SECRET, refresh_secret=REFRESH_SECRET, **kwargs) -> TokenIssuer:
    if clock is not None:
        kwargs["clock"] = clock
    return TokenIssuer(
        access_secret=access_secret,
        refresh_secret=refresh_secret,
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
        **kwargs,
    )


def an_hour_ago() -> datetime:
    return datetime.now(timezone.utc) - timedelta(hours=1)


def eight_days_ago() -> datetime:
    return datetime.now(timezone.utc) - timedelta(days=8)


def assert_auth_error(exc_info, message: str) -> None:
    assert exc_info.value.kind is ErrorKind.AUTHENTICATION
    assert exc_info.value.message == message


class TestIssue:
    def test_access_token_round_trip(self) -> None:
        issuer = make_issuer()
        token = issuer.issue_access("user-1", "a@x.com")
        assert len(token.split(".")) == 3
        payload = issuer.verify_access(token)
        assert payload.subject == "user-1"
        assert payload.email == "a@x.com"
        assert payload.kind == "access"
        assert payload.expires_at - payload.issued_at == timedelta(minutes=15)

    def test_refresh_token_round_trip(self) -> None:
        issuer = make_issuer()
        payload = issuer.verify_refresh(issuer.issue_refresh("user-1", "a@x.com"))
        assert payload.subject == "user-1"
        assert payload.kind == "refresh"
        assert payload.expires_at - payload.issued_at == timedelta(days=7)

    def test_tokens_minted_together_are_distinct(self) -> None:
        issuer = make_issuer()
        first = issuer.issue_refresh("user-1", "a@x.com")
        second = issuer.issue_refresh("user-1", "a@x.com")
        assert first != second

    def test_pair_expiry_matches_refresh_claim(self) -> None:
        issuer = make_issuer()
        pair = issuer.issue_pair("user-1", "a@x.com")
        payload = issuer.verify_refresh(pair.refresh_token)
        assert pair.refresh_expires_at == payload.expires_at
        issuer.verify_access(pair.access_token)

    def test_refresh_expiry_is_now_plus_ttl(self) -> None:
        fixed = datetime(2026, 1, 1, 12, 0, 0, 500000, tzinfo=timezone.utc)
        issuer = make_issuer(clock=lambda: fixed)
        assert issuer.refresh_expiry() == datetime(2026, 1, 8, 12, 0, 0, tzinfo=timezone.utc)
        assert issuer.refresh_expiry(fixed) == issuer.refresh_expiry()

    def test_issuer_claim_is_checked(self) -> None:
        ours = make_issuer(issuer="auth-session-api")
        theirs = make_issuer(issuer="someone-else")
        with pytest.raises(AppError) as exc_info:
            ours.verify_access(theirs.issue_access("user-1", "a@x.com"))
        assert_auth_error(exc_info, "Invalid or expired access token")


class TestKindSeparation:
    def test_access_token_is_not_a_refresh_token(self) -> None:
        issuer = make_issuer()
        with pytest.raises(AppError) as exc_info:
            issuer.verify_refresh(issuer.issue_access("user-1", "a@x.com"))
        assert_auth_error(exc_info, "Invalid or expired refresh token")

    def test_refresh_token_is_not_an_access_token(self) -> None:
        issuer = make_issuer()
        with pytest.raises(AppError) as exc_info:
            issuer.verify_access(issuer.issue_refresh("user-1", "a@x.com"))
        assert_auth_error(exc_info, "Invalid or expired access token")

    def test_type_claim_separates_kinds_even_with_shared_secret(self) -> None:
        issuer = make_issuer(access_secret=ACCESS_SECRET, refresh_secret=ACCESS_SECRET)
        with pytest.raises(AppError):
            issuer.verify_refresh(issuer.issue_access("user-1", "a@x.com"))
        with pytest.raises(AppError):
            issuer.verify_access(issuer.issue_refresh("user-1", "a@x.com"))


class TestRejection:
    def test_expired_access_token(self) -> None:
        token = make_issuer(clock=an_hour_ago).issue_access("user-1", "a@x.com")
        with pytest.raises(AppError) as exc_info:
            make_issuer().verify_access(token)
        assert_auth_error(exc_info, "Invalid or expired access token")

    def test_expired_refresh_token(self) -> None:
        token = make_issuer(clock=eight_days_ago).issue_refresh("user-1", "a@x.com")
        with pytest.raises(AppError) as exc_info:
            make_issuer().verify_refresh(token)
        assert_auth_error(exc_info, "Invalid or expired refresh token")

    @pytest.mark.parametrize("token", ["garbage", "", "a.b.c", None])
    def test_malformed_token(self, token) -> None:
        with pytest.raises(AppError) as exc_info:
            make_issuer().verify_access(token)
        assert_auth_error(exc_info, "Invalid or expired access token")

    def test_wrong_secret(self) -> None:
        foreign = make_issuer(access_secret="another-access-secret-0123456789abcdef")
        with pytest.raises(AppError):
            make_issuer().verify_access(foreign.issue_access("user-1", "a@x.com"))

    def test_tampered_payload(self) -> None:
        issuer = make_issuer()
        header, _payload, signature = issuer.issue_access("user-1", "a@x.com").split(".")
        forged_payload = jwt.encode(
            {"sub": "admin", "email": "a@x.com", "iat": 0, "exp": 9999999999, "jti": "x", "type": "access"},
            "not-the-secret-but-long-enough-0123456789",
            algorithm="HS256",
        ).split(".")[1]
        with pytest.raises(AppError):
            issuer.verify_access(".".join([header, forged_payload, signature]))

    def test_missing_claims(self) -> None:
        token = jwt.encode({"sub": "user-1", "type": "access"}, ACCESS_SECRET, algorithm="HS256")
        with pytest.raises(AppError):
            make_issuer().verify_access(token)

    def test_alg_none_rejected(self) -> None:
        claims = {"sub": "user-1", "email": "a@x.com", "iat": 0, "exp": 9999999999, "jti": "x", "type": "access"}
        token = jwt.encode(claims, None, algorithm="none")
        with pytest.raises(AppError):
            make_issuer().verify_access(token)
