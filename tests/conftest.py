"""
Shared test configuration and fixtures.
"""

import os
from unittest.mock import AsyncMock, MagicMock

import pytest

# Configure the app before importing it; config objects are cached on first use
TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
TEST_CLIENT_URL = "http://example.com/ui"

os.environ["SECRET_KEY"] = TEST_SECRET_KEY
os.environ["CLIENT_URL"] = TEST_CLIENT_URL
os.environ["GITHUB_CLIENT_ID"] = "test-client-id"
os.environ["GITHUB_CLIENT_SECRET"] = "test-client-secret"
os.environ["GITHUB_REDIRECT_URL"] = "http://testserver/oauth2/github/callback"
os.environ.pop("GCP_PROJECT_ID", None)
os.environ.pop("GOOGLE_CLOUD_PROJECT", None)
os.environ.pop("K_SERVICE", None)

from notekeeper.auth.tokens import JWTTokenIssuer  # noqa: E402
from notekeeper.core.domain import ExternalIdentity  # noqa: E402
from notekeeper.infrastructure.github_client import GithubIdentityClient  # noqa: E402
from notekeeper.main import app  # noqa: E402
from notekeeper.users.repository import reset_user_directory  # noqa: E402


@pytest.fixture(autouse=True)
def clean_app_state():
    """Drop dependency overrides and the directory singleton after each test."""
    yield
    app.dependency_overrides.clear()
    reset_user_directory()


@pytest.fixture
def github_identity():
    """GitHub profile of the user logging in."""
    return ExternalIdentity(
        id=583231,
        login="johndoe",
        email="john.doe@example.com",
        name="John Doe",
        location="New York",
        avatar_url="http://example.com/avatar",
    )


@pytest.fixture
def provider_token():
    """Token mapping as returned by GitHub's token endpoint."""
    return {"access_token": "gho_token", "token_type": "bearer", "scope": "user:email"}


@pytest.fixture
def identity_provider(github_identity, provider_token):
    """Mock GitHub client that succeeds by default."""
    provider = MagicMock(spec=GithubIdentityClient)
    provider.get_auth_code_url.side_effect = (
        lambda state: f"https://github.com/login/oauth/authorize?state={state}"
    )
    provider.get_token = AsyncMock(return_value=provider_token)
    provider.get_user = AsyncMock(return_value=github_identity)
    return provider


@pytest.fixture
def token_issuer():
    """Mock token issuer returning a fixed session token."""
    issuer = MagicMock(spec=JWTTokenIssuer)
    issuer.generate_token.return_value = "app_token"
    return issuer
