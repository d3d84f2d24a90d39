"""
Port definitions (interfaces) for the core domain.

Ports define the contracts between the login orchestrator and external
systems. Infrastructure adapters implement these ports; the orchestrator
receives them through its constructor, so tests can pass fakes.
"""

from typing import Any, Protocol

from notekeeper.core.domain import ExternalIdentity
from notekeeper.users.models import User


class IdentityProviderClient(Protocol):
    """
    Port for the OAuth2 identity provider.

    Implemented by GithubIdentityClient. Authorization codes are single-use,
    so callers must never retry get_token.
    """

    def get_auth_code_url(self, state: str) -> str:
        """Build the consent-screen URL embedding the given state."""
        ...

    async def get_token(self, code: str) -> dict[str, Any]:
        """Exchange an authorization code for a provider token."""
        ...

    async def get_user(self, token: dict[str, Any]) -> ExternalIdentity:
        """Fetch the provider profile using a provider token."""
        ...


class UserDirectory(Protocol):
    """
    Port for application user persistence.

    Uses Protocol for structural subtyping, consistent with the other ports.
    """

    async def get(self, user_id: int) -> User | None:
        """
        Get a user by internal id.

        Returns:
            User if found, None otherwise
        """
        ...

    async def get_by_email(self, email: str) -> User:
        """
        Get a user by exact email.

        Returns:
            The stored user, or a zero-value User (id == 0) on a miss

        Raises:
            RepositoryError: If the store fails
        """
        ...

    async def save(self, user: User) -> int:
        """
        Insert (id == 0) or update (id != 0) a user in a single write.

        Returns:
            The internal id of the stored user

        Raises:
            DuplicateEmailError: If inserting an email that already exists
            RepositoryError: If the store fails
        """
        ...


class TokenIssuer(Protocol):
    """Port for signing and verifying session tokens."""

    def generate_token(self, user_id: int) -> str:
        """Sign a session token for the given internal user id."""
        ...

    def verify_token(self, token: str) -> int:
        """Verify a session token and return its internal user id."""
        ...
