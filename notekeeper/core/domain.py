"""
Core domain models for the login flow.

These models represent identities as the business logic sees them and are
independent of any provider SDK or storage engine.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExternalIdentity(BaseModel):
    """
    Profile of a user as reported by the identity provider (GitHub).

    The email is the join key against application users. GitHub omits it
    from the public profile when the user keeps it private, so it is
    optional here and resolved by the client.
    """

    id: int = Field(description="Numeric GitHub user id")
    login: str = Field(description="GitHub username")
    email: Optional[str] = Field(default=None, description="Primary email")
    name: Optional[str] = Field(default=None, description="Display name")
    location: Optional[str] = Field(default=None, description="Free-form location")
    avatar_url: Optional[str] = Field(default=None, description="Avatar image URL")

    model_config = ConfigDict(extra="ignore")


class LoginState(str, Enum):
    """States of a single login attempt, in the order they are reached."""

    STARTED = "started"
    STATE_VERIFIED = "state_verified"
    TOKEN_EXCHANGED = "token_exchanged"
    PROFILE_FETCHED = "profile_fetched"
    USER_UPSERTED = "user_upserted"
    TOKEN_ISSUED = "token_issued"
    COMPLETED = "completed"
    FAILED = "failed"


class LoginOutcome(BaseModel):
    """Result of running the login state machine once."""

    state: LoginState
    history: list[LoginState] = Field(default_factory=list)
    user_id: Optional[int] = None
    token: Optional[str] = None
    error_code: Optional[str] = None
    error: Optional[Any] = Field(default=None, exclude=True)

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def succeeded(self) -> bool:
        return self.state is LoginState.COMPLETED
