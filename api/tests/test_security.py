from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import HTTPException

from kaziconnect.core import security
from kaziconnect.core.auth import Principal, Role, parse_role
from kaziconnect.core.config import Settings


@pytest.fixture
def settings() -> Settings:
    return Settings(jwt_secret="test-secret", jwt_issuer="kaziconnect-test", jwt_expires_minutes=5)


def test_hash_and_verify_password_round_trip() -> None:
    password_hash = security.hash_password("Str0ngPassword", rounds=4)

    assert password_hash.startswith("$2")
    assert security.verify_password("Str0ngPassword", password_hash)
    assert not security.verify_password("str0ngpassword", password_hash)


def test_hash_password_rejects_passwords_over_72_bytes() -> None:
    with pytest.raises(ValueError):
        security.hash_password("A1" + "x" * 80, rounds=4)


def test_verify_password_returns_false_for_malformed_hash() -> None:
    assert security.verify_password("Str0ngPassword", "not-a-bcrypt-hash") is False


def test_access_token_carries_identity_claims(settings: Settings) -> None:
    token = security.create_access_token(user_id=42, email="seeker@example.com", role=Role.JOB_SEEKER, settings=settings)

    claims = jwt.decode(token, "test-secret", algorithms=["HS256"], issuer="kaziconnect-test")
    assert claims["sub"] == "42"
    assert claims["email"] == "seeker@example.com"
    assert claims["role"] == "job-seeker"
    assert claims["exp"] - claims["iat"] == 5 * 60

    principal = security.decode_access_token(token, settings)
    assert principal == Principal(user_id=42, email="seeker@example.com", role=Role.JOB_SEEKER)


def test_expired_token_is_rejected(settings: Settings) -> None:
    issued = datetime.now(timezone.utc) - timedelta(minutes=30)
    token = security.create_access_token(user_id=1, email="a@example.com", role=Role.ADMIN, settings=settings, now=issued)

    with pytest.raises(HTTPException) as exc_info:
        security.decode_access_token(token, settings)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Token expired"


def test_token_signed_with_other_secret_is_rejected(settings: Settings) -> None:
    other = Settings(jwt_secret="other-secret", jwt_issuer="kaziconnect-test")
    token = security.create_access_token(user_id=1, email="a@example.com", role=Role.ADMIN, settings=other)

    with pytest.raises(HTTPException) as exc_info:
        security.decode_access_token(token, settings)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid or expired token"


def test_token_with_unknown_role_is_rejected(settings: Settings) -> None:
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": "7",
            "email": "x@example.com",
            "role": "superuser",
            "iss": "kaziconnect-test",
            "iat": now,
            "exp": now + timedelta(minutes=1),
        },
        "test-secret",
        algorithm="HS256",
    )

    with pytest.raises(HTTPException) as exc_info:
        security.decode_access_token(token, settings)
    assert exc_info.value.detail == "Invalid token claims"


def test_bearer_extraction_rejects_other_schemes() -> None:
    assert security._extract_bearer_token(None) is None
    assert security._extract_bearer_token("Bearer abc.def") == "abc.def"
    with pytest.raises(HTTPException) as exc_info:
        security._extract_bearer_token("Basic dXNlcjpwYXNz")
    assert exc_info.value.status_code == 401


def test_principal_role_gate() -> None:
    principal = Principal(user_id=3, email="e@example.com", role=Role.EMPLOYER)

    principal.require_roles({Role.EMPLOYER, Role.ADMIN})
    with pytest.raises(PermissionError):
        principal.require_roles({Role.ADMIN})


def test_parse_role_normalizes_values() -> None:
    assert parse_role(" Employer ") is Role.EMPLOYER
    assert parse_role("job-seeker") is Role.JOB_SEEKER
    assert parse_role("moderator") is None
    assert parse_role(None) is None
