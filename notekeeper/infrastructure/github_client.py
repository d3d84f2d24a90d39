"""
Client for the GitHub OAuth2 and REST APIs.

Driven adapter implementing the IdentityProviderClient port with authlib's
httpx integration.
"""

import logging
from typing import Any

import httpx
from authlib.integrations.base_client.errors import OAuthError
from authlib.integrations.httpx_client import AsyncOAuth2Client
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from pydantic import ValidationError

from notekeeper.core.domain import ExternalIdentity
from notekeeper.core.exceptions import GithubClientError
from notekeeper.oauth.config import GithubOAuthConfig


logger = logging.getLogger(__name__)


class GithubIdentityClient:
    """
    Wraps the GitHub OAuth app: consent URL, code exchange and profile.
    """

    AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
    TOKEN_URL = "https://github.com/login/oauth/access_token"
    API_BASE_URL = "https://api.github.com"
    API_HEADERS = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }

    def __init__(self, config: GithubOAuthConfig, timeout: float = 10.0):
        """
        Initializes the client.

        Args:
            config: GitHub OAuth app settings
            timeout: Per-request HTTP timeout in seconds
        """
        self.config = config
        self.timeout = timeout

    def _session(self, token: dict[str, Any] | None = None) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            redirect_uri=self.config.redirect_url,
            scope=" ".join(self.config.scopes),
            token=token,
            token_endpoint_auth_method="client_secret_post",
            timeout=self.timeout,
        )

    def get_auth_code_url(self, state: str) -> str:
        """
        Build the GitHub consent-screen URL.

        Args:
            state: Per-attempt CSRF state echoed back on the callback

        Returns:
            Authorization URL embedding client id, redirect URL, scopes and state
        """
        return prepare_grant_uri(
            self.AUTHORIZE_URL,
            client_id=self.config.client_id,
            response_type="code",
            redirect_uri=self.config.redirect_url,
            scope=self.config.scopes,
            state=state,
        )

    async def get_token(self, code: str) -> dict[str, Any]:
        """
        Exchange an authorization code for a GitHub access token.

        Args:
            code: One-time authorization code from the callback

        Returns:
            Token mapping as returned by GitHub

        Raises:
            GithubClientError: If the exchange fails
        """
        try:
            async with self._session() as session:
                token = await session.fetch_token(self.TOKEN_URL, code=code)
        except OAuthError as e:
            raise GithubClientError(
                f"GitHub rejected the authorization code: {e.error}"
            ) from e
        except httpx.HTTPStatusError as e:
            raise GithubClientError(
                f"Token request failed: {e.response.status_code}"
            ) from e
        except httpx.RequestError as e:
            raise GithubClientError(f"Network error during token exchange: {e}") from e
        except ValueError as e:
            raise GithubClientError(f"Unreadable token response: {e}") from e

        if not token.get("access_token"):
            raise GithubClientError("No access token in GitHub response")

        logger.info("Exchanged GitHub authorization code for token")
        return dict(token)

    async def get_user(self, token: dict[str, Any]) -> ExternalIdentity:
        """
        Fetch the authenticated user's GitHub profile.

        When the profile email is private, the primary verified address
        from /user/emails is used instead.

        Args:
            token: GitHub token mapping from get_token

        Returns:
            ExternalIdentity for the token owner

        Raises:
            GithubClientError: If the API call fails or the profile is invalid
        """
        try:
            bearer = {"token_type": "bearer", **token}
            async with self._session(token=bearer) as session:
                data = await self._get_json(session, "/user")
                if not data.get("email"):
                    emails = await self._get_json(session, "/user/emails")
                    data["email"] = primary_email(emails)
            return ExternalIdentity.model_validate(data)
        except ValidationError as e:
            raise GithubClientError(f"Invalid GitHub user response: {e}") from e
        except httpx.HTTPStatusError as e:
            raise GithubClientError(
                f"GitHub API request failed: {e.response.status_code} {e.response.text}"
            ) from e
        except httpx.RequestError as e:
            raise GithubClientError(f"Network error while fetching user: {e}") from e

    async def _get_json(self, session: AsyncOAuth2Client, path: str) -> Any:
        response = await session.get(
            f"{self.API_BASE_URL}{path}", headers=self.API_HEADERS
        )
        response.raise_for_status()
        return response.json()


def primary_email(emails: Any) -> str | None:
    """Pick the primary verified address from a /user/emails response."""
    if not isinstance(emails, list):
        return None
    for entry in emails:
        if entry.get("primary") and entry.get("verified"):
            return entry.get("email")
    return None
