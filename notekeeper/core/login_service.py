"""
Core service orchestrating a GitHub login.

Turns an OAuth2 callback into a verified, persisted application user and a
signed session token. Each step requires the previous one to succeed; the
first failure ends the attempt and is reported through the returned outcome.
The user upsert is the only write, so a failed attempt never leaves a
partial record behind.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Optional, TypeVar

from notekeeper.auth.csrf import StateGuard
from notekeeper.core.domain import ExternalIdentity, LoginOutcome, LoginState
from notekeeper.core.exceptions import (
    CSRFMismatch,
    LoginError,
    ProviderExchangeFailure,
    ProviderProfileFailure,
    SigningFailure,
    StorageFailure,
)
from notekeeper.core.ports import IdentityProviderClient, TokenIssuer, UserDirectory
from notekeeper.users.models import User


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PROVIDER_TIMEOUT = 10.0


def map_identity(user: User, identity: ExternalIdentity, provider_token: str) -> User:
    """
    Overlay GitHub identity attributes onto an application user.

    The id, default repo preference and creation time of ``user`` are kept,
    so a stored record is updated in place and a zero-value record is
    inserted.
    """
    return user.model_copy(
        update={
            "github_token": provider_token,
            "email": identity.email or "",
            "name": identity.name or "",
            "location": identity.location or "",
            "avatar_url": identity.avatar_url or "",
            "github_id": identity.id,
            "github_username": identity.login,
        }
    )


class LoginAttempt:
    """Tracks the state transitions of a single login attempt."""

    def __init__(self):
        self.state = LoginState.STARTED
        self.history: list[LoginState] = [LoginState.STARTED]

    def advance(self, state: LoginState) -> None:
        self.state = state
        self.history.append(state)

    def fail(self, error: LoginError) -> LoginOutcome:
        self.advance(LoginState.FAILED)
        return LoginOutcome(
            state=self.state,
            history=list(self.history),
            error_code=error.error_code,
            error=error,
        )


class LoginOrchestrator:
    """
    Runs the GitHub login state machine.

    Collaborators are injected; the orchestrator holds no per-attempt state,
    so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        identity_provider: IdentityProviderClient,
        user_directory: UserDirectory,
        token_issuer: TokenIssuer,
        state_guard: Optional[StateGuard] = None,
        provider_timeout: float = DEFAULT_PROVIDER_TIMEOUT,
    ):
        self.identity_provider = identity_provider
        self.user_directory = user_directory
        self.token_issuer = token_issuer
        self.state_guard = state_guard or StateGuard()
        self.provider_timeout = provider_timeout

    def begin(self) -> tuple[str, str]:
        """
        Start a login attempt.

        Returns:
            Tuple of (state, consent URL); the caller stores the state in a
            cookie and redirects the browser to the URL
        """
        state = self.state_guard.issue_state()
        url = self.identity_provider.get_auth_code_url(state)
        logger.info("GitHub login initiated")
        return state, url

    async def complete(
        self,
        cookie_state: Optional[str],
        callback_state: Optional[str],
        code: Optional[str],
    ) -> LoginOutcome:
        """
        Process the provider callback.

        Args:
            cookie_state: State value from the state cookie
            callback_state: State value echoed by the provider
            code: One-time authorization code

        Returns:
            LoginOutcome in COMPLETED state with the session token, or in
            FAILED state with the error code for the client redirect
        """
        attempt = LoginAttempt()
        logger.info("GitHub OAuth2 callback started")
        try:
            user_id, token = await self._run(attempt, cookie_state, callback_state, code)
        except LoginError as e:
            logger.error(
                f"GitHub login failed at {attempt.state.value}: {e}",
                extra={"error_code": e.error_code, "login_state": attempt.state.value},
            )
            return attempt.fail(e)

        attempt.advance(LoginState.COMPLETED)
        logger.info("GitHub OAuth2 callback finished", extra={"user_id": user_id})
        return LoginOutcome(
            state=attempt.state,
            history=list(attempt.history),
            user_id=user_id,
            token=token,
        )

    async def _run(
        self,
        attempt: LoginAttempt,
        cookie_state: Optional[str],
        callback_state: Optional[str],
        code: Optional[str],
    ) -> tuple[int, str]:
        if not self.state_guard.verify_state(cookie_state, callback_state):
            raise CSRFMismatch("invalid oauth state")
        attempt.advance(LoginState.STATE_VERIFIED)

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.provider_timeout

        if not code:
            raise ProviderExchangeFailure("authorization code is missing")
        try:
            provider_token = await self._within(
                deadline, self.identity_provider.get_token(code)
            )
        except asyncio.TimeoutError as e:
            raise ProviderExchangeFailure("auth code exchange timed out") from e
        except Exception as e:
            raise ProviderExchangeFailure(
                f"auth code exchange for token failed: {e}"
            ) from e
        attempt.advance(LoginState.TOKEN_EXCHANGED)

        try:
            identity = await self._within(
                deadline, self.identity_provider.get_user(provider_token)
            )
        except asyncio.TimeoutError as e:
            raise ProviderProfileFailure("retrieving user from github timed out") from e
        except Exception as e:
            raise ProviderProfileFailure(
                f"retrieving user from github failed: {e}"
            ) from e
        if not identity.email:
            raise ProviderProfileFailure("github user has no usable email")
        attempt.advance(LoginState.PROFILE_FETCHED)

        user_id = await self._upsert_user(identity, provider_token)
        attempt.advance(LoginState.USER_UPSERTED)

        try:
            token = self.token_issuer.generate_token(user_id)
        except Exception as e:
            raise SigningFailure(f"token generation failed: {e}") from e
        attempt.advance(LoginState.TOKEN_ISSUED)

        return user_id, token

    async def _upsert_user(
        self, identity: ExternalIdentity, provider_token: dict[str, Any]
    ) -> int:
        try:
            stored = await self.user_directory.get_by_email(identity.email)
        except Exception as e:
            raise StorageFailure(
                f"retrieving user from db using email failed: {e}"
            ) from e

        try:
            serialized_token = json.dumps(dict(provider_token))
        except (TypeError, ValueError) as e:
            raise StorageFailure(f"converting github token to json failed: {e}") from e

        user = map_identity(stored, identity, serialized_token)
        try:
            user_id = await self.user_directory.save(user)
        except Exception as e:
            raise StorageFailure(f"saving user to db failed: {e}") from e

        logger.info(
            "Stored user after GitHub login",
            extra={"user_id": user_id, "created": user.is_new},
        )
        return user_id

    @staticmethod
    async def _within(deadline: float, call: Awaitable[T]) -> T:
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            # Close the never-awaited coroutine
            if asyncio.iscoroutine(call):
                call.close()
            raise asyncio.TimeoutError()
        return await asyncio.wait_for(call, timeout=remaining)
