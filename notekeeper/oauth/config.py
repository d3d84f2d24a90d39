"""
GitHub OAuth2 configuration.

Loaded from environment variables; the login endpoints refuse to start a
flow when the provider is not configured.
"""

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache


logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ["user:email"]


@dataclass
class GithubOAuthConfig:
    """
    GitHub OAuth application settings.

    The redirect URL must match the callback URL registered with the
    GitHub OAuth app exactly.
    """

    client_id: str | None
    client_secret: str | None
    redirect_url: str | None
    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))

    @classmethod
    def from_env(cls) -> "GithubOAuthConfig":
        """Load configuration from environment variables."""
        scopes = os.getenv("GITHUB_SCOPES", "").split()
        for scope in DEFAULT_SCOPES:
            if scope not in scopes:
                scopes.insert(0, scope)
        return cls(
            client_id=os.getenv("GITHUB_CLIENT_ID"),
            client_secret=os.getenv("GITHUB_CLIENT_SECRET"),
            redirect_url=os.getenv("GITHUB_REDIRECT_URL"),
            scopes=scopes,
        )

    def is_configured(self) -> bool:
        """Check if the GitHub app has valid credentials configured."""
        return bool(self.client_id and self.client_secret and self.redirect_url)

    def validate(self) -> None:
        """Validate the GitHub app settings. Call at startup to fail fast."""
        if not self.is_configured():
            raise ValueError(
                "GITHUB_CLIENT_ID, GITHUB_CLIENT_SECRET and GITHUB_REDIRECT_URL "
                "environment variables are required"
            )


@lru_cache()
def get_github_oauth_config() -> GithubOAuthConfig:
    """Get GitHub OAuth configuration singleton."""
    config = GithubOAuthConfig.from_env()
    if not config.is_configured():
        logger.warning("GitHub OAuth not configured (missing credentials)")
    return config
