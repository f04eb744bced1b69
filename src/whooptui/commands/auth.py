"""Auth commands -- browser login, logout, and session status.

Provides the ``whoop auth`` sub-command group. ``login`` runs one OAuth2
Authorization Code + PKCE attempt: a transient listener is bound on the
configured redirect URI, the authorization page is opened in the browser,
and the resulting token record is saved to ``token.json``.

Typical workflow::

    whoop auth login              # opens the browser
    whoop auth login --no-browser # print the URL only
    whoop auth status
    whoop auth logout
"""

from __future__ import annotations

import webbrowser
from datetime import datetime
from typing import TYPE_CHECKING

import typer

from whooptui.commands.support import open_store, reporting_errors
from whooptui.output import format_response, info, success

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore
    from whooptui.models import ClientConfig, TokenRecord


auth_app = typer.Typer(no_args_is_help=True)


def perform_login(
    config: ClientConfig,
    store: CredentialStore,
    timeout: float = 120.0,
    open_browser: bool = True,
) -> TokenRecord:
    """Run one browser login against *config* and persist the token to *store*.

    The authorization URL is always printed so it can be opened by hand when
    no browser is available.
    """
    from whooptui.auth.login import login_with_browser

    def _show_url(url: str) -> None:
        if open_browser:
            info("Opening browser for WHOOP login...")
        info(f"If the browser does not open, visit:\n{url}")
        info(f"Waiting up to {timeout:g}s for the redirect to {config.redirect_uri}")

    return login_with_browser(
        config,
        store,
        open_browser=webbrowser.open if open_browser else None,
        timeout=timeout,
        on_url=_show_url,
    )


@auth_app.command("login")
def auth_login(
    timeout: float = typer.Option(
        120.0, "--timeout", "-t", min=1.0, help="Seconds to wait for the browser redirect."
    ),
    no_browser: bool = typer.Option(
        False, "--no-browser", help="Print the authorization URL without opening a browser."
    ),
) -> None:
    """Log in to WHOOP in the browser and store the token locally.

    Raises:
        typer.Exit: With the auth failure exit code if the login is denied,
            times out, or the state check fails; with the config error exit
            code when no client is configured.

    Example::

        whoop auth login
        whoop auth login --no-browser --timeout 300
    """
    from whooptui.config import require_client_config

    with reporting_errors():
        store = open_store()
        config = require_client_config(store)
        perform_login(config, store, timeout=timeout, open_browser=not no_browser)
    success("Login successful. Token stored locally.")


@auth_app.command("logout")
def auth_logout() -> None:
    """Remove the locally stored token. The client config is kept."""
    store = open_store()
    if store.load_token() is None:
        info("No local token to remove.")
        return
    store.clear_token()
    success("Local token removed.")


@auth_app.command("status")
def auth_status() -> None:
    """Show whether a client is configured and a token is stored.

    Token values are never printed, only whether a refresh token exists and
    when the access token expires.

    Example::

        whoop auth status
        whoop --json auth status
    """
    from whooptui.config import resolve_client_config

    with reporting_errors():
        store = open_store()
        config = resolve_client_config(store)
        token = store.load_token()

    expires = None
    if token is not None and token.expires_at is not None:
        expires = datetime.fromtimestamp(token.expires_at).strftime("%Y-%m-%d %H:%M:%S")

    format_response(
        {
            "configured": config is not None,
            "client_id": config.client_id if config else None,
            "logged_in": token is not None,
            "refresh_token": bool(token and token.refresh_token),
            "expires_at": expires,
            "expired": token.is_expired() if token else None,
        }
    )
