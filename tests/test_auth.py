"""Tests for password checks and session tokens."""
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi import Response

from reading_log.auth import (
    COOKIE_NAME,
    TOKEN_ALGORITHM,
    Authenticator,
    InvalidPassword,
    NoPasswordConfigured,
)


@pytest.fixture
def auth():
    return Authenticator(password="secret", secret="signing-key")


def test_check_password(auth):
    """Test the configured password is accepted."""
    auth.check_password("secret")


def test_check_password_wrong(auth):
    """Test a wrong password is rejected."""
    with pytest.raises(InvalidPassword):
        auth.check_password("nope")


def test_check_password_missing():
    """Test login is refused when no password is configured."""
    auth = Authenticator(password="")
    assert not auth.enabled
    with pytest.raises(NoPasswordConfigured):
        auth.check_password("")


def test_generate_and_validate_token(auth):
    """Test a fresh token validates and carries the issuer."""
    token = auth.generate_token()

    assert auth.validate_token(token)
    claims = jwt.decode(token, "signing-key", algorithms=[TOKEN_ALGORITHM], issuer="reading-log")
    assert claims["exp"] > claims["iat"]


def test_validate_token_invalid(auth):
    """Test garbage, empty and foreign tokens are rejected."""
    assert not auth.validate_token("not.a.token")
    assert not auth.validate_token("")

    other = Authenticator(password="secret", secret="other-key")
    assert not auth.validate_token(other.generate_token())


def test_validate_token_expired(auth):
    """Test expired tokens are rejected."""
    past = datetime.now(timezone.utc) - timedelta(days=31)
    token = jwt.encode(
        {"iss": "reading-log", "iat": past, "exp": past + timedelta(days=1)},
        "signing-key",
        algorithm=TOKEN_ALGORITHM,
    )
    assert not auth.validate_token(token)


def test_random_secret_per_instance():
    """Test instances without a configured secret do not share keys."""
    first = Authenticator(password="secret")
    second = Authenticator(password="secret")
    assert not second.validate_token(first.generate_token())


def test_set_auth_cookie(auth):
    """Test the session cookie attributes."""
    response = Response()
    auth.set_auth_cookie(response, "token-value")

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{COOKIE_NAME}=token-value")
    assert "HttpOnly" in cookie
    assert "Path=/" in cookie
    assert "SameSite=lax" in cookie
    assert f"Max-Age={30 * 24 * 60 * 60}" in cookie
    assert "Secure" not in cookie


def test_clear_auth_cookie(auth):
    """Test clearing expires the cookie."""
    response = Response()
    auth.clear_auth_cookie(response)

    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f'{COOKIE_NAME}=""')
    assert "Max-Age=0" in cookie
