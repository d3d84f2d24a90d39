"""
FastAPI dependencies for authentication.

Wires the login orchestrator with its collaborators and provides bearer
token validation for protected endpoints. Tests replace any of these
providers through app.dependency_overrides.
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from notekeeper.auth.config import AuthConfig, get_auth_config
from notekeeper.auth.csrf import StateGuard
from notekeeper.auth.tokens import JWTTokenIssuer
from notekeeper.core.exceptions import InvalidTokenError
from notekeeper.core.login_service import LoginOrchestrator
from notekeeper.core.ports import IdentityProviderClient, TokenIssuer, UserDirectory
from notekeeper.infrastructure.github_client import GithubIdentityClient
from notekeeper.oauth.config import GithubOAuthConfig, get_github_oauth_config
from notekeeper.users.repository import get_user_directory


logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_identity_provider(
    oauth_config: Annotated[GithubOAuthConfig, Depends(get_github_oauth_config)],
    config: Annotated[AuthConfig, Depends(get_auth_config)],
) -> IdentityProviderClient:
    """
    Provide the GitHub client.

    Raises:
        HTTPException: 503 if the GitHub OAuth app is not configured
    """
    if not oauth_config.is_configured():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="GitHub OAuth is not configured",
        )
    return GithubIdentityClient(oauth_config, timeout=config.provider_timeout_seconds)


def get_directory() -> UserDirectory:
    """Provide UserDirectory dependency."""
    return get_user_directory()


def get_token_issuer(
    config: Annotated[AuthConfig, Depends(get_auth_config)],
) -> TokenIssuer:
    """Provide the session token issuer."""
    return JWTTokenIssuer.from_config(config)


def get_login_orchestrator(
    identity_provider: Annotated[IdentityProviderClient, Depends(get_identity_provider)],
    directory: Annotated[UserDirectory, Depends(get_directory)],
    token_issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    config: Annotated[AuthConfig, Depends(get_auth_config)],
) -> LoginOrchestrator:
    """
    Provide the login orchestrator.

    This is where the core service is wired with its infrastructure
    dependencies.
    """
    return _build_orchestrator(identity_provider, directory, token_issuer, config)


def get_callback_orchestrator(
    oauth_config: Annotated[GithubOAuthConfig, Depends(get_github_oauth_config)],
    token_issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
    config: Annotated[AuthConfig, Depends(get_auth_config)],
) -> LoginOrchestrator | None:
    """
    Provide the login orchestrator for the provider callback.

    Returns None instead of raising when the orchestrator cannot be built,
    so the callback can still answer with a redirect to the client.
    """
    if not oauth_config.is_configured():
        logger.error("GitHub OAuth is not configured, cannot complete login")
        return None
    try:
        directory = get_directory()
    except Exception as e:
        logger.error(f"User directory unavailable: {e}", exc_info=True)
        return None
    identity_provider = GithubIdentityClient(
        oauth_config, timeout=config.provider_timeout_seconds
    )
    return _build_orchestrator(identity_provider, directory, token_issuer, config)


def _build_orchestrator(
    identity_provider: IdentityProviderClient,
    directory: UserDirectory,
    token_issuer: TokenIssuer,
    config: AuthConfig,
) -> LoginOrchestrator:
    return LoginOrchestrator(
        identity_provider=identity_provider,
        user_directory=directory,
        token_issuer=token_issuer,
        state_guard=StateGuard(),
        provider_timeout=config.provider_timeout_seconds,
    )


async def get_current_user_id(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
    token_issuer: Annotated[TokenIssuer, Depends(get_token_issuer)],
) -> int:
    """
    Dependency to get the authenticated user's id.

    Validates the bearer session token from the Authorization header.

    Raises:
        HTTPException: 401 if not authenticated
    """
    if credentials is None or not credentials.credentials:
        logger.warning("No bearer token provided")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        return token_issuer.verify_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.warning(f"Session token validation failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
            headers={"WWW-Authenticate": "Bearer"},
        )


# Type aliases for cleaner dependency injection
Orchestrator = Annotated[LoginOrchestrator, Depends(get_login_orchestrator)]
CallbackOrchestrator = Annotated[
    LoginOrchestrator | None, Depends(get_callback_orchestrator)
]
Directory = Annotated[UserDirectory, Depends(get_directory)]
CurrentUserId = Annotated[int, Depends(get_current_user_id)]
Config = Annotated[AuthConfig, Depends(get_auth_config)]
