"""Helpers shared by the command modules.

Commands never construct stores or dispatchers directly; they go through
:func:`open_store` and :func:`open_dispatcher` so that tests can point them
at an isolated directory or a mock transport.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

import typer

from whooptui.exceptions import ConfigError, NotLoggedInError, WhoopError
from whooptui.output import OutputFormat, error, get_output, suggest

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore
    from whooptui.client.dispatcher import ApiDispatcher


def open_store() -> CredentialStore:
    """Return the file-backed store under the XDG config/data directories."""
    from whooptui.auth.credential_store import FileCredentialStore

    return FileCredentialStore()


def open_dispatcher(store: CredentialStore) -> ApiDispatcher:
    """Return an :class:`~whooptui.client.dispatcher.ApiDispatcher` bound to *store*."""
    from whooptui.client.dispatcher import ApiDispatcher

    return ApiDispatcher(store)


def json_requested() -> bool:
    """``True`` when ``--json`` was given and raw payloads should be printed."""
    return get_output().format == OutputFormat.JSON


def report(exc: WhoopError) -> None:
    """Print *exc* and, where there is an obvious next step, a suggestion."""
    error(str(exc))
    if isinstance(exc, NotLoggedInError):
        suggest("Log in: whoop auth login")
    elif isinstance(exc, ConfigError):
        suggest("Configure the client: whoop config setup")


@contextmanager
def reporting_errors() -> Iterator[None]:
    """Turn a :class:`~whooptui.exceptions.WhoopError` into a message and exit code.

    Raises:
        typer.Exit: With the error's ``exit_code``.
    """
    try:
        yield
    except WhoopError as exc:
        report(exc)
        raise typer.Exit(code=exc.exit_code) from None
