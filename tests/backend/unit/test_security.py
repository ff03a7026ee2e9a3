"""
Unit tests for core.security module.
Tests password hashing and the access / refresh token codec.
"""
import datetime as dt
import uuid
from types import SimpleNamespace

import jwt
import pytest

from nextlevel.core.errors import InvalidRefreshToken, InvalidToken
from nextlevel.core.security import (
    ACCESS_TOKEN_EXPIRE_HOURS,
    JWT_ALG,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
    REFRESH_TOKEN_EXPIRE_DAYS,
    decode_unverified,
    hash_password,
    issue_access_token,
    issue_refresh_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
)


def _account(role: str = "user"):
    return SimpleNamespace(id=uuid.uuid4(), email="learner@example.com", name="Learner", role=role)


class TestPasswordHashing:
    """Tests for password hashing and verification."""

    def test_hash_password_returns_different_hash_each_time(self):
        """Password hashing should produce different hashes (salt included)."""
        password = "TestPassword123"
        assert hash_password(password) != hash_password(password)

    def test_hash_password_is_not_plain_text(self):
        password = "TestPassword123"
        hashed = hash_password(password)
        assert isinstance(hashed, str)
        assert hashed != password

    def test_verify_password_correct_and_incorrect(self):
        hashed = hash_password("TestPassword123")
        assert verify_password("TestPassword123", hashed) is True
        assert verify_password("WrongPassword456", hashed) is False

    def test_verify_password_without_stored_hash(self):
        """Accounts without a password (external login only) never match."""
        assert verify_password("anything", None) is False
        assert verify_password("", "") is False


class TestAccessTokens:
    """Tests for access token issuing and validation."""

    def test_access_token_carries_identity_and_role(self):
        user = _account(role="admin")
        claims = verify_access_token(issue_access_token(user))
        assert claims["id"] == str(user.id)
        assert claims["email"] == user.email
        assert claims["name"] == user.name
        assert claims["role"] == "admin"

    def test_access_token_lifetime_is_24_hours(self):
        claims = verify_access_token(issue_access_token(_account()))
        assert claims["exp"] - claims["iat"] == ACCESS_TOKEN_EXPIRE_HOURS * 3600 == 24 * 3600

    def test_tokens_issued_back_to_back_differ(self):
        user = _account()
        assert issue_access_token(user) != issue_access_token(user)

    def test_foreign_signature_rejected(self):
        token = jwt.encode({"id": "x", "role": "admin"}, "attacker-secret", algorithm=JWT_ALG)
        with pytest.raises(InvalidToken):
            verify_access_token(token)

    def test_malformed_access_token_rejected(self):
        with pytest.raises(InvalidToken):
            verify_access_token("not-a-jwt")

    def test_expired_access_token_rejected(self):
        past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(hours=1)
        token = jwt.encode({"id": "x", "exp": past}, JWT_SECRET, algorithm=JWT_ALG)
        with pytest.raises(InvalidToken):
            verify_access_token(token)


class TestRefreshTokens:
    """Tests for refresh tokens, signed with their own secret."""

    def test_refresh_token_claims_are_minimal(self):
        user = _account()
        claims = verify_refresh_token(issue_refresh_token(user))
        assert claims["id"] == str(user.id)
        assert claims["email"] == user.email
        assert "role" not in claims
        assert "name" not in claims

    def test_refresh_token_lifetime_is_7_days(self):
        claims = verify_refresh_token(issue_refresh_token(_account()))
        assert claims["exp"] - claims["iat"] == REFRESH_TOKEN_EXPIRE_DAYS * 86400 == 7 * 86400

    def test_secrets_are_distinct(self):
        assert JWT_SECRET != JWT_REFRESH_SECRET

    def test_token_classes_are_not_interchangeable(self):
        user = _account()
        with pytest.raises(InvalidRefreshToken):
            verify_refresh_token(issue_access_token(user))
        with pytest.raises(InvalidToken):
            verify_access_token(issue_refresh_token(user))

    def test_expired_refresh_token_rejected(self):
        past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(seconds=5)
        token = jwt.encode({"id": "x", "exp": past}, JWT_REFRESH_SECRET, algorithm=JWT_ALG)
        with pytest.raises(InvalidRefreshToken):
            verify_refresh_token(token)


class TestDecodeUnverified:
    def test_reads_claims_of_expired_foreign_token(self):
        past = dt.datetime.now(dt.timezone.utc) - dt.timedelta(days=2)
        token = jwt.encode({"id": "abc", "exp": past}, "some-other-secret", algorithm=JWT_ALG)
        assert decode_unverified(token)["id"] == "abc"

    def test_garbage_raises_invalid_token(self):
        with pytest.raises(InvalidToken):
            decode_unverified("garbage")
