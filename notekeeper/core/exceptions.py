"""
Domain exceptions for the core business logic.

Login errors are terminal for the current attempt. Each one carries the
stable, client-facing error code that the callback endpoint puts on the
redirect back to the client application.
"""


class LoginError(Exception):
    """
    Base class for failures of a login attempt.

    Subclasses set ``error_code``. Storage and signing faults share
    ``internal-error``.
    """

    error_code = "internal-error"


class CSRFMismatch(LoginError):
    """Raised when the state cookie does not match the callback state."""

    error_code = "invalid-state"


class ProviderExchangeFailure(LoginError):
    """Raised when the authorization code cannot be exchanged for a token."""

    error_code = "auth-code-exchange-failure"


class ProviderProfileFailure(LoginError):
    """Raised when the provider profile cannot be retrieved or is unusable."""

    error_code = "user-retrieval-failure"


class StorageFailure(LoginError):
    """Raised when the user lookup or upsert fails."""

    error_code = "internal-error"


class SigningFailure(LoginError):
    """Raised when the session token cannot be signed."""

    error_code = "internal-error"


class GithubClientError(Exception):
    """Raised for errors interacting with the GitHub OAuth or REST API."""

    pass


class RepositoryError(Exception):
    """
    Raised when the user store fails.

    This indicates a server-side error (store unavailable, corrupt record, etc.)
    and results in a 500 response outside the login flow.
    """

    pass


class DuplicateEmailError(RepositoryError):
    """Raised when inserting a user whose email is already taken."""

    pass


class UserNotFoundError(RepositoryError):
    """Raised when updating a user id that does not exist."""

    pass


class TokenSigningError(Exception):
    """Raised when a session token cannot be generated."""

    pass


class InvalidTokenError(Exception):
    """Raised when a session token is malformed, expired or not ours."""

    pass
