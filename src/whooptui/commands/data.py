"""Data commands -- profile, sleep, recovery, and strain views.

Each command fetches exactly one page through
:class:`~whooptui.client.api.WhoopApi` and renders it as terminal charts
(:mod:`whooptui.render`). With ``--json`` the raw payload is printed
instead, including ``next_token`` for collections.

Example::

    whoop sleep --limit 7
    whoop --json recovery --next MTIzOjEyMzEyMw
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from whooptui.commands import support
from whooptui.output import format_response

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore


DEFAULT_VIEW_LIMIT = 14
MAX_PAGE_LIMIT = 25
COLLECTION_KINDS = ("sleep", "recovery", "strain")


def show_profile(store: CredentialStore) -> None:
    """Fetch and print the basic profile."""
    from whooptui.client.api import WhoopApi
    from whooptui.render import render_profile

    with support.open_dispatcher(store) as dispatcher:
        profile = WhoopApi(dispatcher).get_profile()

    if support.json_requested():
        format_response(profile)
    else:
        render_profile(profile)


def show_collection(
    kind: str,
    store: CredentialStore,
    limit: int = DEFAULT_VIEW_LIMIT,
    next_token: Optional[str] = None,
) -> None:
    """Fetch one page of *kind* (``sleep``, ``recovery`` or ``strain``) and print it.

    Raises:
        InvalidUsageError: If *kind* is not one of the collection views.
    """
    from whooptui import render
    from whooptui.client.api import WhoopApi
    from whooptui.exceptions import InvalidUsageError

    if kind not in COLLECTION_KINDS:
        choices = ", ".join(COLLECTION_KINDS)
        raise InvalidUsageError(f"Unknown view '{kind}'. Choose one of: {choices}")

    with support.open_dispatcher(store) as dispatcher:
        api = WhoopApi(dispatcher)
        fetchers = {
            "sleep": (api.get_sleep, render.render_sleep),
            "recovery": (api.get_recovery, render.render_recovery),
            "strain": (api.get_cycles, render.render_strain),
        }
        fetch, renderer = fetchers[kind]
        collection = fetch(limit=limit, next_token=next_token)

    if support.json_requested():
        format_response(collection.model_dump(mode="json"))
        return
    renderer(collection.records)
    render.render_next_token(collection.next_token)


_LIMIT_OPTION = typer.Option(
    DEFAULT_VIEW_LIMIT,
    "--limit",
    "-l",
    min=1,
    max=MAX_PAGE_LIMIT,
    help="Number of records to fetch.",
)
_NEXT_OPTION = typer.Option(
    None, "--next", help="Page token printed by a previous call."
)


def profile_command() -> None:
    """Show the basic WHOOP profile."""
    with support.reporting_errors():
        show_profile(support.open_store())


def sleep_command(
    limit: int = _LIMIT_OPTION,
    next_token: Optional[str] = _NEXT_OPTION,
) -> None:
    """Show sleep performance, efficiency, and time in bed."""
    with support.reporting_errors():
        show_collection("sleep", support.open_store(), limit, next_token)


def recovery_command(
    limit: int = _LIMIT_OPTION,
    next_token: Optional[str] = _NEXT_OPTION,
) -> None:
    """Show recovery score, HRV, resting heart rate, and SpO2."""
    with support.reporting_errors():
        show_collection("recovery", support.open_store(), limit, next_token)


def strain_command(
    limit: int = _LIMIT_OPTION,
    next_token: Optional[str] = _NEXT_OPTION,
) -> None:
    """Show day strain and heart rate per physiological cycle."""
    with support.reporting_errors():
        show_collection("strain", support.open_store(), limit, next_token)
