"""
Tests for UserDirectory implementations.
"""

import os
from unittest.mock import MagicMock, patch

import pytest

from notekeeper.core.exceptions import DuplicateEmailError, UserNotFoundError
from notekeeper.users.models import User
from notekeeper.users.repository import (
    InMemoryUserDirectory,
    get_user_directory,
    reset_user_directory,
    set_user_directory,
)


class TestInMemoryUserDirectory:
    """Tests for InMemoryUserDirectory."""

    @pytest.fixture
    def directory(self):
        """Create fresh directory for each test."""
        return InMemoryUserDirectory()

    @pytest.mark.asyncio
    async def test_get_by_email_miss_returns_zero_value(self, directory):
        """Test an unknown email is not an error."""
        result = await directory.get_by_email("nobody@example.com")

        assert result == User(created_at=result.created_at, updated_at=result.updated_at)
        assert result.id == 0

    @pytest.mark.asyncio
    async def test_insert_assigns_ids(self, directory):
        """Test inserts get increasing ids."""
        first = await directory.save(User(email="a@example.com"))
        second = await directory.save(User(email="b@example.com"))

        assert (first, second) == (1, 2)

    @pytest.mark.asyncio
    async def test_get_by_email_after_insert(self, directory):
        """Test lookup by exact email."""
        user_id = await directory.save(User(email="a@example.com", name="A"))

        result = await directory.get_by_email("a@example.com")

        assert result.id == user_id
        assert result.name == "A"
        assert (await directory.get_by_email("A@example.com")).id == 0

    @pytest.mark.asyncio
    async def test_insert_duplicate_email_raises(self, directory):
        """Test the email uniqueness constraint."""
        await directory.save(User(email="a@example.com"))

        with pytest.raises(DuplicateEmailError, match="already exists"):
            await directory.save(User(email="a@example.com"))

    @pytest.mark.asyncio
    async def test_update_in_place(self, directory):
        """Test saving a stored user keeps its id."""
        user_id = await directory.save(User(email="a@example.com", name="Old"))
        user = await directory.get_by_email("a@example.com")

        result = await directory.save(user.model_copy(update={"name": "New"}))

        assert result == user_id
        stored = await directory.get(user_id)
        assert stored is not None
        assert stored.name == "New"
        assert stored.updated_at >= user.updated_at

    @pytest.mark.asyncio
    async def test_update_unknown_id_raises(self, directory):
        """Test updates need an existing record."""
        with pytest.raises(UserNotFoundError):
            await directory.save(User(id=5, email="a@example.com"))

    @pytest.mark.asyncio
    async def test_update_email_to_taken_address_raises(self, directory):
        """Test updates cannot steal another user's email."""
        await directory.save(User(email="a@example.com"))
        second_id = await directory.save(User(email="b@example.com"))

        with pytest.raises(DuplicateEmailError):
            await directory.save(User(id=second_id, email="a@example.com"))

    @pytest.mark.asyncio
    async def test_update_email_moves_index(self, directory):
        """Test changing email re-keys the lookup."""
        user_id = await directory.save(User(email="a@example.com"))

        await directory.save(User(id=user_id, email="c@example.com"))

        assert (await directory.get_by_email("a@example.com")).id == 0
        assert (await directory.get_by_email("c@example.com")).id == user_id

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, directory):
        """Test callers cannot mutate stored state without saving."""
        user_id = await directory.save(User(email="a@example.com", name="A"))

        user = await directory.get(user_id)
        user.name = "Changed"

        assert (await directory.get(user_id)).name == "A"

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, directory):
        """Test get by id miss."""
        assert await directory.get(42) is None


class TestDirectorySelection:
    """Tests for the user directory singleton."""

    def test_defaults_to_in_memory(self):
        """Test in-memory directory is used without Firestore settings."""
        reset_user_directory()
        with patch.dict(os.environ, {}, clear=True):
            directory = get_user_directory()

        assert isinstance(directory, InMemoryUserDirectory)
        assert get_user_directory() is directory

    def test_uses_firestore_when_configured(self):
        """Test Firestore directory is chosen when project and key are set."""
        reset_user_directory()
        env = {"GCP_PROJECT_ID": "test-project", "TOKEN_ENCRYPTION_KEY": "key"}
        with patch.dict(os.environ, env, clear=True), patch(
            "notekeeper.infrastructure.firestore.get_firestore_client",
            return_value=MagicMock(),
        ):
            directory = get_user_directory()

        from notekeeper.infrastructure.firestore_repository import (
            FirestoreUserDirectory,
        )

        assert isinstance(directory, FirestoreUserDirectory)

    def test_set_user_directory(self):
        """Test injecting a directory."""
        custom = InMemoryUserDirectory()
        set_user_directory(custom)

        assert get_user_directory() is custom
