"""
Token authentication for the User Management API.

Issues and verifies the signed, time-limited bearer tokens handed out by
/login. Tokens are HS256 JWTs carrying the username as subject; nothing is
stored server-side, so verification relies on signature and claim checks only.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Request

from ..config import UserApiSettings

logger = logging.getLogger(__name__)

# The one account allowed to log in
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "password"

ALGORITHM = "HS256"


class TokenAuthenticator:
    """
    Issues and verifies bearer tokens.

    Issuer and audience are both set to the configured service identifier,
    and expiry is checked with zero leeway.

    Example usage:
        authenticator = TokenAuthenticator(get_settings())

        token = authenticator.login("admin", "password")
        claims = authenticator.verify_token(token)
        # Returns: {"sub": "admin", "iss": "UserManagementApi", ...}
    """

    def __init__(self, settings: UserApiSettings):
        self.secret = settings.jwt_secret
        self.issuer = settings.jwt_issuer
        self.lifetime = timedelta(minutes=settings.token_lifetime_minutes)

    def login(self, username: str, password: str) -> Optional[str]:
        """
        Check credentials and issue a token on success.

        Performs constant-time comparison of both fields.

        Returns:
            str: A signed token, or None if the credentials do not match
        """
        username_ok = secrets.compare_digest(
            username.encode("utf-8"), ADMIN_USERNAME.encode("utf-8")
        )
        password_ok = secrets.compare_digest(
            password.encode("utf-8"), ADMIN_PASSWORD.encode("utf-8")
        )
        if not (username_ok and password_ok):
            logger.info(f"Login rejected for user: {username}")
            return None

        logger.info(f"Login successful for user: {username}")
        return self.issue_token(username)

    def issue_token(self, username: str, issued_at: Optional[datetime] = None) -> str:
        """
        Sign a token for a username.

        Args:
            username: Subject claim
            issued_at: Issue time, defaults to now. Expiry is issued_at plus
                the configured lifetime.
        """
        issued_at = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": username,
            "iss": self.issuer,
            "aud": self.issuer,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": issued_at + self.lifetime,
        }
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def verify_token(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify signature, issuer, audience and expiry of a token.

        Returns:
            dict: The token claims, or None for any failure. Malformed,
            expired and badly signed tokens are indistinguishable to callers.
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                audience=self.issuer,
                issuer=self.issuer,
                options={"require": ["exp", "iss", "aud", "sub"]},
            )
        except jwt.InvalidTokenError as e:
            logger.debug(f"Token rejected: {e}")
            return None


def get_authenticator(request: Request) -> TokenAuthenticator:
    """FastAPI dependency returning the application's authenticator."""
    return request.app.state.authenticator
