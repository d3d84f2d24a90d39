"""
CSRF state guard for the OAuth2 authorization code flow.

A fresh opaque state is issued per login attempt, stored in a short-lived
cookie and echoed back by the provider on the callback.
"""

import hmac
from typing import Optional

from authlib.common.security import generate_token


STATE_LENGTH = 32


class StateGuard:
    """Issues and verifies per-attempt OAuth state values."""

    def __init__(self, length: int = STATE_LENGTH):
        self.length = length

    def issue_state(self) -> str:
        """Return a new random URL-safe state value."""
        return generate_token(self.length)

    def verify_state(
        self, cookie_value: Optional[str], callback_value: Optional[str]
    ) -> bool:
        """
        Check that the callback state is the one we issued.

        Both values must be present and exactly equal. A missing cookie
        (expired, or the flow was not started here) never verifies.
        """
        if not cookie_value or not callback_value:
            return False
        return hmac.compare_digest(
            cookie_value.encode("utf-8"), callback_value.encode("utf-8")
        )
