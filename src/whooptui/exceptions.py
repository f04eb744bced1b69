"""Exception hierarchy for whooptui.

All exceptions inherit from :class:`WhoopError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`whooptui.exit_codes`.
The top-level error handler in :func:`whooptui.app.main` catches
``WhoopError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    WhoopError (exit 1)
    +-- InvalidUsageError            (exit 2)
    +-- AuthError                    (exit 3)
    |   +-- NotLoggedInError
    |   +-- ListenerBindError
    |   +-- CallbackTimeoutError
    |   +-- StateMismatchError
    |   +-- MissingCodeError
    |   +-- AuthorizationDeniedError
    |   +-- TokenExchangeError
    |   +-- NoRefreshTokenError
    +-- ApiError                     (exit 5)
    +-- ConnectionError_             (exit 6)
    +-- ConfigError                  (exit 7)
"""

from __future__ import annotations

from typing import Optional

from whooptui.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONFIG_ERROR,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)


class WhoopError(Exception):
    """Base exception for all whooptui errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`whooptui.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(WhoopError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(WhoopError):
    """Raised when the OAuth client configuration is missing or invalid."""

    exit_code = EXIT_CONFIG_ERROR


class ConnectionError_(WhoopError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.
    """

    exit_code = EXIT_CONNECTION_ERROR


# --- Authentication ---


class AuthError(WhoopError):
    """Base class for every failure of the login or token lifecycle."""

    exit_code = EXIT_AUTH_FAILURE


class NotLoggedInError(AuthError):
    """Raised when a data call is attempted with no stored token."""

    def __init__(self, message: str = "Not logged in. Run 'whoop auth login' first."):
        super().__init__(message)


class ListenerBindError(AuthError):
    """Raised when the local callback listener cannot bind its host/port."""


class CallbackTimeoutError(AuthError):
    """Raised when no authorization redirect arrives within the wait window."""


class StateMismatchError(AuthError):
    """Raised when the callback's ``state`` is missing or differs from the expected value."""


class MissingCodeError(AuthError):
    """Raised when the callback carries a valid ``state`` but no ``code``."""


class AuthorizationDeniedError(AuthError):
    """Raised when the provider redirects back with an ``error`` parameter.

    Args:
        error: The OAuth error code (e.g. ``access_denied``).
        description: The optional ``error_description`` sent alongside it.
    """

    def __init__(self, error: str, description: str = ""):
        message = f"Authorization denied: {error}"
        if description:
            message += f" - {description}"
        super().__init__(message)
        self.error = error
        self.description = description


class TokenExchangeError(AuthError):
    """Raised when the token endpoint rejects a code exchange or refresh.

    Args:
        message: Description of the failed operation.
        status_code: HTTP status returned by the token endpoint.
        body: Raw response body, kept verbatim for the user.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class NoRefreshTokenError(AuthError):
    """Raised when a refresh is requested but the stored token has no refresh token.

    Distinct from :class:`TokenExchangeError` so that callers tell the user
    to log in again rather than to retry.
    """

    def __init__(self, message: str = "No refresh token available. Please login again."):
        super().__init__(message)


# --- Data API ---


class ApiError(WhoopError):
    """Raised when the data API returns a non-success status.

    Args:
        message: Human-readable summary, usually ``"API error: <status> <body>"``.
        status_code: HTTP status of the final response.
        body: Raw response body.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
