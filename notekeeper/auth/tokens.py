"""
Session token issuing and verification.

Session tokens are HS256 JWTs carrying the internal user id as subject.
They are never stored server-side; the expiry claim bounds their lifetime.
"""

import logging
from datetime import datetime, timedelta, UTC

import jwt

from notekeeper.auth.config import MIN_SECRET_LENGTH, AuthConfig
from notekeeper.core.exceptions import InvalidTokenError, TokenSigningError


logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


class JWTTokenIssuer:
    """Signs and verifies session tokens with a process-wide secret."""

    def __init__(self, secret_key: str, issuer: str, ttl_seconds: int):
        self._secret_key = secret_key
        self.issuer = issuer
        self.ttl_seconds = ttl_seconds

    @classmethod
    def from_config(cls, config: AuthConfig) -> "JWTTokenIssuer":
        return cls(
            secret_key=config.secret_key,
            issuer=config.token_issuer,
            ttl_seconds=config.token_ttl_seconds,
        )

    def generate_token(self, user_id: int) -> str:
        """
        Sign a session token for a user.

        Args:
            user_id: Internal user id (token subject)

        Returns:
            Encoded JWT

        Raises:
            TokenSigningError: If the secret is missing/too short or encoding fails
        """
        if not self._secret_key:
            raise TokenSigningError("signing secret is not configured")
        if len(self._secret_key) < MIN_SECRET_LENGTH:
            raise TokenSigningError(
                f"signing secret must be at least {MIN_SECRET_LENGTH} characters"
            )

        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "iss": self.issuer,
            "iat": now,
            "exp": now + timedelta(seconds=self.ttl_seconds),
        }
        try:
            return jwt.encode(claims, self._secret_key, algorithm=ALGORITHM)
        except jwt.PyJWTError as e:
            raise TokenSigningError(f"encoding session token failed: {e}") from e

    def verify_token(self, token: str) -> int:
        """
        Verify a session token.

        Args:
            token: Encoded JWT

        Returns:
            Internal user id from the subject claim

        Raises:
            InvalidTokenError: If the token is expired, tampered with or foreign
        """
        if not self._secret_key:
            raise InvalidTokenError("signing secret is not configured")
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[ALGORITHM],
                issuer=self.issuer,
                options={"require": ["sub", "iss", "iat", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise InvalidTokenError("session token expired") from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"invalid session token: {e}") from e

        try:
            return int(claims["sub"])
        except (TypeError, ValueError) as e:
            raise InvalidTokenError("session token subject is not a user id") from e
