"""
Firestore implementation of UserDirectory.

Stores application users in Firestore with the GitHub token encrypted.
This is a driven adapter that implements the UserDirectory port.
"""

import hashlib
import logging
from datetime import datetime, UTC
from typing import Any

from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1 import AsyncClient, async_transactional

from notekeeper.core.exceptions import (
    DuplicateEmailError,
    RepositoryError,
    UserNotFoundError,
)
from notekeeper.infrastructure.encryption import (
    EncryptionError,
    decrypt_secret,
    encrypt_secret,
)
from notekeeper.users.models import DefaultRepo, User

logger = logging.getLogger(__name__)


def email_key(email: str) -> str:
    """Document id for an email (emails may contain '/', ids may not)."""
    return hashlib.sha256(email.encode("utf-8")).hexdigest()


class FirestoreUserDirectory:
    """
    Firestore implementation of UserDirectory.

    Data model:
    - Collection: users
      - Document ID: {user id}
      - Fields: id, email, name, location, avatar_url, github_id,
                github_username, github_token (encrypted), default_repo,
                created_at, updated_at
    - Collection: user_emails
      - Document ID: sha256(email)
      - Fields: email, user_id
      Enforces email uniqueness: inserts create this document and fail when
      it already exists.
    - Document: counters/users
      - Fields: last_id
    """

    def __init__(self, db: AsyncClient):
        """
        Initialize Firestore directory.

        Args:
            db: Firestore async client instance
        """
        self._db = db
        self._users = db.collection("users")
        self._emails = db.collection("user_emails")
        self._counter = db.collection("counters").document("users")

    async def get(self, user_id: int) -> User | None:
        try:
            doc = await self._users.document(str(user_id)).get()
            if not doc.exists:
                return None
            data = doc.to_dict()
            if data is None:
                return None
            return self._from_document(data)
        except (GoogleAPIError, EncryptionError) as e:
            raise RepositoryError(f"retrieving user {user_id} failed: {e}") from e

    async def get_by_email(self, email: str) -> User:
        """
        Get a user by exact email.

        Returns:
            The stored user, or User() with id 0 when the email is unknown
        """
        try:
            index = await self._emails.document(email_key(email)).get()
            if not index.exists:
                return User()
            user_id = index.get("user_id")
            doc = await self._users.document(str(user_id)).get()
            data = doc.to_dict() if doc.exists else None
            if data is None:
                raise RepositoryError(f"email index points at missing user {user_id}")
            return self._from_document(data)
        except (GoogleAPIError, EncryptionError) as e:
            raise RepositoryError(
                f"retrieving user from database using email failed: {e}"
            ) from e

    async def save(self, user: User) -> int:
        """
        Insert or update a user in a single transaction.

        Returns:
            The internal user id
        """
        try:
            transaction = self._db.transaction()
            if user.is_new:
                user_id = await async_transactional(self._insert)(transaction, user)
                logger.info(f"Created user: {user_id}")
            else:
                user_id = await async_transactional(self._update)(transaction, user)
                logger.info(f"Updated user: {user_id}")
            return user_id
        except (GoogleAPIError, EncryptionError) as e:
            raise RepositoryError(f"storing user to database failed: {e}") from e

    async def _insert(self, transaction, user: User) -> int:
        email_ref = self._emails.document(email_key(user.email))

        # Firestore transactions need every read before the first write
        counter = await self._counter.get(transaction=transaction)
        existing = await email_ref.get(transaction=transaction)
        if existing.exists:
            raise DuplicateEmailError(f"User with email {user.email} already exists")

        last_id = counter.get("last_id") if counter.exists else 0
        user_id = int(last_id or 0) + 1
        now = datetime.now(UTC)
        stored = user.model_copy(update={"id": user_id, "created_at": now, "updated_at": now})

        transaction.set(self._counter, {"last_id": user_id})
        transaction.create(email_ref, {"email": user.email, "user_id": user_id})
        transaction.set(self._users.document(str(user_id)), self._to_document(stored))
        return user_id

    async def _update(self, transaction, user: User) -> int:
        user_ref = self._users.document(str(user.id))

        snapshot = await user_ref.get(transaction=transaction)
        if not snapshot.exists:
            raise UserNotFoundError(f"User {user.id} not found")

        previous_email = snapshot.get("email")
        new_email_ref = None
        if previous_email != user.email:
            new_email_ref = self._emails.document(email_key(user.email))
            taken = await new_email_ref.get(transaction=transaction)
            if taken.exists:
                raise DuplicateEmailError(
                    f"User with email {user.email} already exists"
                )

        stored = user.model_copy(update={"updated_at": datetime.now(UTC)})
        if new_email_ref is not None:
            transaction.delete(self._emails.document(email_key(previous_email)))
            transaction.create(new_email_ref, {"email": user.email, "user_id": user.id})
        transaction.set(user_ref, self._to_document(stored))
        return user.id

    @staticmethod
    def _to_document(user: User) -> dict[str, Any]:
        return {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "location": user.location,
            "avatar_url": user.avatar_url,
            "github_id": user.github_id,
            "github_username": user.github_username,
            "github_token": encrypt_secret(user.github_token),
            "default_repo": (
                user.default_repo.model_dump() if user.default_repo else None
            ),
            "created_at": user.created_at,
            "updated_at": user.updated_at,
        }

    @staticmethod
    def _from_document(data: dict[str, Any]) -> User:
        default_repo = data.get("default_repo")
        return User(
            id=data["id"],
            email=data["email"],
            name=data.get("name", ""),
            location=data.get("location", ""),
            avatar_url=data.get("avatar_url", ""),
            github_id=data.get("github_id", 0),
            github_username=data.get("github_username", ""),
            github_token=decrypt_secret(data.get("github_token", "")),
            default_repo=DefaultRepo(**default_repo) if default_repo else None,
            created_at=data.get("created_at", datetime.now(UTC)),
            updated_at=data.get("updated_at", datetime.now(UTC)),
        )
