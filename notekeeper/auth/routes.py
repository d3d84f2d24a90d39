"""
Login API endpoints.

Provides the GitHub login flow and the token handoff:
- GET /oauth2/login/github - Start OAuth flow
- GET /oauth2/github/callback - Run the login, hand the token off in a cookie
- GET /auth/token - Move the token from its cookie into the response body

The adapter only translates HTTP to Python and back; the login state
machine lives in LoginOrchestrator.
"""

import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Query, Request, status
from fastapi.responses import PlainTextResponse, RedirectResponse, Response

from notekeeper.auth.config import AuthConfig
from notekeeper.auth.dependencies import CallbackOrchestrator, Config, Orchestrator
from notekeeper.core.domain import LoginOutcome


logger = logging.getLogger(__name__)

router = APIRouter(tags=["authentication"])


def client_redirect(config: AuthConfig, error_code: str | None = None) -> RedirectResponse:
    """Redirect to the client's login page with the outcome of the attempt."""
    params = {"success": "true" if error_code is None else "false"}
    if error_code is not None:
        params["error"] = error_code
    return RedirectResponse(
        url=f"{config.login_url}?{urlencode(params)}",
        status_code=status.HTTP_302_FOUND,
    )


def outcome_redirect(
    request: Request, config: AuthConfig, outcome: LoginOutcome
) -> RedirectResponse:
    """Redirect for a finished login; a success carries the token cookie."""
    if not outcome.succeeded:
        return client_redirect(config, outcome.error_code)

    response = client_redirect(config)
    response.set_cookie(
        key=config.token_cookie_name,
        value=outcome.token,
        max_age=config.token_cookie_max_age,
        path="/",
        domain=request.url.hostname,
        secure=True,
        httponly=True,
        samesite="none",
    )
    return response


@router.get("/oauth2/login/github")
async def github_login(orchestrator: Orchestrator, config: Config):
    """
    Start the GitHub authorization code flow.

    Stores a fresh state value in a short-lived cookie and redirects to
    GitHub's consent screen.
    """
    state, url = orchestrator.begin()

    response = RedirectResponse(url=url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
    response.set_cookie(
        key=config.state_cookie_name,
        value=state,
        max_age=config.state_cookie_max_age,
        path="/",
        secure=True,
        httponly=True,
    )
    return response


@router.get("/oauth2/github/callback")
async def github_callback(
    request: Request,
    orchestrator: CallbackOrchestrator,
    config: Config,
    code: Annotated[str | None, Query(description="One-time authorization code")] = None,
    state: Annotated[str | None, Query(description="State echoed by GitHub")] = None,
    state_cookie: Annotated[str | None, Cookie(alias="state")] = None,
):
    """
    Handle the GitHub OAuth2 callback.

    Always answers with a redirect to the client's login page. On success the
    session token travels in a one-minute cookie scoped to this host; the
    client collects it from /auth/token.
    """
    if orchestrator is None:
        response = client_redirect(config, "internal-error")
    else:
        outcome = await orchestrator.complete(
            cookie_state=state_cookie, callback_state=state, code=code
        )
        response = outcome_redirect(request, config, outcome)

    # State values are single use
    response.delete_cookie(
        key=config.state_cookie_name, path="/", secure=True, httponly=True
    )
    return response


@router.get("/auth/token")
async def token_payload(
    request: Request,
    config: Config,
    token: Annotated[str | None, Cookie()] = None,
):
    """
    Return the session token from the handoff cookie as the response body.

    The cookie is cleared on the same response, so the token can be
    collected once. Clients then send it as a bearer token.
    """
    if not token:
        return Response(status_code=status.HTTP_401_UNAUTHORIZED)

    response = PlainTextResponse(content=token, status_code=status.HTTP_200_OK)
    response.delete_cookie(
        key=config.token_cookie_name,
        path="/",
        domain=request.url.hostname,
        secure=True,
        httponly=True,
        samesite="none",
    )
    return response
