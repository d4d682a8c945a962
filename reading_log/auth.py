"""Password login and cookie-held JWT sessions for the admin endpoints."""
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Request, Response

logger = logging.getLogger(__name__)

COOKIE_NAME = "auth_token"
TOKEN_ISSUER = "reading-log"
TOKEN_ALGORITHM = "HS256"


class AuthError(Exception):
    """Base class for login failures."""


class InvalidPassword(AuthError):
    pass


class NoPasswordConfigured(AuthError):
    pass


class Authenticator:
    """
    Checks the admin password and issues/validates session tokens.

    Args:
        password: The single admin password; empty disables login
        secret: JWT signing key; a random key is generated when empty,
            which invalidates sessions on restart
        ttl_days: Token and cookie lifetime
        secure_cookie: Set the cookie's Secure flag (HTTPS deployments)
    """

    def __init__(
        self,
        password: str,
        secret: Optional[str] = None,
        ttl_days: int = 30,
        secure_cookie: bool = False
    ):
        self.password = password
        self.secret = secret or secrets.token_hex(32)
        self.ttl = timedelta(days=ttl_days)
        self.secure_cookie = secure_cookie

    @property
    def enabled(self) -> bool:
        return bool(self.password)

    def check_password(self, password: str):
        """Raise an AuthError unless ``password`` matches the configured one."""
        if not self.password:
            raise NoPasswordConfigured("READING_APP_PASSWORD is not set")
        if not hmac.compare_digest(password.encode(), self.password.encode()):
            raise InvalidPassword("invalid password")

    def generate_token(self) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "iss": TOKEN_ISSUER,
            "iat": now,
            "exp": now + self.ttl,
        }
        return jwt.encode(claims, self.secret, algorithm=TOKEN_ALGORITHM)

    def validate_token(self, token: str) -> bool:
        """True if the token is signed by us, unexpired and issued by us."""
        if not token:
            return False
        try:
            jwt.decode(
                token,
                self.secret,
                algorithms=[TOKEN_ALGORITHM],
                issuer=TOKEN_ISSUER,
                options={"require": ["exp", "iat", "iss"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Rejected session token: {e}")
            return False
        return True

    def set_auth_cookie(self, response: Response, token: str):
        response.set_cookie(
            key=COOKIE_NAME,
            value=token,
            max_age=int(self.ttl.total_seconds()),
            path="/",
            httponly=True,
            secure=self.secure_cookie,
            samesite="lax",
        )

    def clear_auth_cookie(self, response: Response):
        response.delete_cookie(key=COOKIE_NAME, path="/", httponly=True)

    def is_authenticated(self, request: Request) -> bool:
        return self.validate_token(request.cookies.get(COOKIE_NAME, ""))
