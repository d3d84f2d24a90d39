"""
Authentication configuration.

Settings for session token signing, the client application redirect and the
cookies used during the login handoff.
"""

import logging
import os
from functools import lru_cache
from urllib.parse import urlparse


logger = logging.getLogger(__name__)

# HMAC keys shorter than the digest size are rejected
MIN_SECRET_LENGTH = 32


class AuthConfig:
    """Configuration for the authentication module.

    Required environment variables:
    - SECRET_KEY: Signing secret for session tokens
    - CLIENT_URL: Base URL of the client application (login redirects)

    Optional:
    - TOKEN_ISSUER: Issuer claim of session tokens (default: notekeeper)
    - TOKEN_TTL_SECONDS: Session token lifetime (default: 7 days)
    - PROVIDER_TIMEOUT_SECONDS: Budget for both provider calls (default: 10)
    """

    def __init__(self):
        self.secret_key = os.getenv("SECRET_KEY", "")
        self.client_url = os.getenv("CLIENT_URL", "").rstrip("/")
        self.token_issuer = os.getenv("TOKEN_ISSUER", "notekeeper")
        self.token_ttl_seconds = int(os.getenv("TOKEN_TTL_SECONDS", 60 * 60 * 24 * 7))
        self.provider_timeout_seconds = float(
            os.getenv("PROVIDER_TIMEOUT_SECONDS", "10")
        )
        self.state_cookie_name = "state"
        self.state_cookie_max_age = 60 * 10
        self.token_cookie_name = "token"
        # Handoff window only; the client moves the token to its own storage
        self.token_cookie_max_age = 60

    @property
    def login_url(self) -> str:
        """Client page that receives the result of a login attempt."""
        return f"{self.client_url}/login"

    @property
    def client_origin(self) -> str:
        """Scheme and host of the client application, used for CORS."""
        parsed = urlparse(self.client_url)
        return f"{parsed.scheme}://{parsed.netloc}"

    def validate(self) -> None:
        """Validate required configuration. Call at startup to fail fast."""
        if not self.secret_key:
            raise ValueError("SECRET_KEY environment variable is required")
        if len(self.secret_key) < MIN_SECRET_LENGTH:
            raise ValueError(
                f"SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters"
            )
        if not self.client_url:
            raise ValueError("CLIENT_URL environment variable is required")
        parsed = urlparse(self.client_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError(f"CLIENT_URL is not an absolute URL: {self.client_url}")


@lru_cache()
def get_auth_config() -> AuthConfig:
    """Get authentication configuration (singleton)."""
    return AuthConfig()
