"""Password hashing and session tokens.

Passwords are hashed with passlib (PBKDF2-SHA256).  Sessions are HS256
JWTs signed with the configured secret whose ``sub`` claim is the user
id.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
from passlib.context import CryptContext

from options_journal.core.config import AuthConfig
from options_journal.core.errors import AuthenticationError


class Authenticator:
    """Hash and verify passwords, issue and validate session tokens."""

    def __init__(self, config: AuthConfig | None = None) -> None:
        self._config = config or AuthConfig()
        self._pwd = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

    def hash_password(self, password: str) -> str:
        return self._pwd.hash(password)

    def verify_password(self, password: str, hashed: str) -> bool:
        return self._pwd.verify(password, hashed)

    def issue_token(self, user_id: int, *, now: datetime | None = None) -> str:
        issued = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": issued,
            "exp": issued + timedelta(minutes=self._config.token_ttl_minutes),
        }
        return jwt.encode(payload, self._config.jwt_secret, algorithm=self._config.jwt_algorithm)

    def decode_token(self, token: str) -> int:
        """Return the user id carried by ``token``.

        Raises:
            AuthenticationError: If the token is expired, tampered with or
                does not name a user.
        """
        try:
            payload = jwt.decode(
                token,
                self._config.jwt_secret,
                algorithms=[self._config.jwt_algorithm],
            )
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Session expired") from e
        except jwt.InvalidTokenError as e:
            raise AuthenticationError("Invalid session token") from e

        try:
            return int(payload["sub"])
        except (KeyError, TypeError, ValueError) as e:
            raise AuthenticationError("Invalid session token") from e
