"""
Application user domain models.

A user is created the first time an email logs in through GitHub and updated
on every later login. The internal numeric id is what session tokens carry.
"""

from datetime import datetime, UTC
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class DefaultRepo(BaseModel):
    """
    The user's default notes repository preference.

    Set outside the login flow. Logins carry it through untouched.
    """

    name: str = Field(description="Repository name")
    visibility: str = Field(default="private", description="public or private")
    default_branch: str = Field(default="main", description="Branch notes live on")


class User(BaseModel):
    """
    Application user.

    ``id == 0`` means the record has not been persisted yet; saving such a
    record inserts it, saving any other id updates it in place.
    """

    id: int = Field(default=0, description="Internal user id (0 = new)")
    email: str = Field(default="", description="Unique email, the login join key")
    name: str = Field(default="", description="Display name")
    location: str = Field(default="", description="Free-form location")
    avatar_url: str = Field(default="", description="Avatar image URL")
    github_id: int = Field(default=0, description="Numeric GitHub user id")
    github_username: str = Field(default="", description="GitHub login")
    github_token: str = Field(
        default="", description="Serialized GitHub token (JSON)", repr=False
    )
    default_repo: Optional[DefaultRepo] = Field(default=None)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Account creation timestamp",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last update timestamp",
    )

    model_config = ConfigDict(extra="forbid")

    @property
    def is_new(self) -> bool:
        """True when the record has not been stored yet."""
        return self.id == 0

    def public_profile(self) -> dict[str, Any]:
        """Profile fields safe to return to the client (no provider token)."""
        return self.model_dump(
            mode="json",
            exclude={"github_token", "created_at", "updated_at"},
        )
