"""
User directory implementations and selection.

Includes an in-memory implementation for testing and development.
The Firestore implementation is used when configured.
"""

import logging
from datetime import datetime, UTC

from notekeeper.core.exceptions import DuplicateEmailError, UserNotFoundError
from notekeeper.core.ports import UserDirectory
from notekeeper.users.models import User


logger = logging.getLogger(__name__)


def _is_firestore_configured() -> bool:
    """Check if Firestore is configured via environment."""
    from notekeeper.infrastructure.encryption import is_encryption_configured
    from notekeeper.infrastructure.firestore import get_project_id

    return bool(get_project_id()) and is_encryption_configured()


class InMemoryUserDirectory(UserDirectory):
    """
    In-memory implementation of UserDirectory.

    Useful for testing and local development without Firestore.
    Data is lost when the application restarts. Every method completes
    without awaiting, so each call is atomic on the event loop.
    """

    def __init__(self):
        self._users: dict[int, User] = {}
        self._ids_by_email: dict[str, int] = {}
        self._last_id = 0

    async def get(self, user_id: int) -> User | None:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_by_email(self, email: str) -> User:
        user_id = self._ids_by_email.get(email)
        if user_id is None:
            return User()
        return self._users[user_id].model_copy()

    async def save(self, user: User) -> int:
        if user.is_new:
            return self._insert(user)
        return self._update(user)

    def _insert(self, user: User) -> int:
        if user.email in self._ids_by_email:
            raise DuplicateEmailError(f"User with email {user.email} already exists")

        self._last_id += 1
        now = datetime.now(UTC)
        stored = user.model_copy(
            update={"id": self._last_id, "created_at": now, "updated_at": now}
        )
        self._users[stored.id] = stored
        self._ids_by_email[stored.email] = stored.id
        logger.info(f"Created user: {stored.id}")
        return stored.id

    def _update(self, user: User) -> int:
        current = self._users.get(user.id)
        if current is None:
            raise UserNotFoundError(f"User {user.id} not found")

        owner = self._ids_by_email.get(user.email)
        if owner is not None and owner != user.id:
            raise DuplicateEmailError(f"User with email {user.email} already exists")

        if current.email != user.email:
            self._ids_by_email.pop(current.email, None)
            self._ids_by_email[user.email] = user.id

        self._users[user.id] = user.model_copy(update={"updated_at": datetime.now(UTC)})
        logger.info(f"Updated user: {user.id}")
        return user.id


# Singleton instance for dependency injection
_directory: UserDirectory | None = None


def get_user_directory() -> UserDirectory:
    """
    Get the user directory singleton.

    Returns FirestoreUserDirectory if Firestore is configured
    (GCP_PROJECT_ID and TOKEN_ENCRYPTION_KEY set).
    Falls back to InMemoryUserDirectory for testing/development.
    """
    global _directory
    if _directory is None:
        if _is_firestore_configured():
            from notekeeper.infrastructure.firestore import get_firestore_client
            from notekeeper.infrastructure.firestore_repository import (
                FirestoreUserDirectory,
            )

            _directory = FirestoreUserDirectory(get_firestore_client())
            logger.info("Using Firestore user directory")
        else:
            logger.info("Using in-memory user directory")
            _directory = InMemoryUserDirectory()
    return _directory


def set_user_directory(directory: UserDirectory) -> None:
    """Set the user directory implementation."""
    global _directory
    _directory = directory


def reset_user_directory() -> None:
    """Reset the user directory singleton (clean state between tests)."""
    global _directory
    _directory = None
