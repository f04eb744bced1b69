"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~whooptui.exceptions.WhoopError` subclass.
Shell wrappers can inspect the exit code to tell a rejected login apart
from an API outage without parsing stderr.

Example::

    $ whoop sleep
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- not logged in, or the login was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Login, token exchange, or token refresh failed."""

EXIT_API_ERROR = 5
"""The data API returned a non-success status after at most one refresh."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_CONFIG_ERROR = 7
"""The OAuth client configuration is missing or invalid."""

EXIT_INTERRUPTED = 130
"""The user pressed Ctrl-C."""
