"""Config commands -- store and inspect the OAuth client configuration.

Provides the ``whoop config`` sub-command group. The client id, optional
client secret, redirect URI, and scopes of the user's WHOOP developer app
are saved to ``config.json`` in the whooptui config directory. Environment
variables (``WHOOPTUI_CLIENT_ID`` and friends) override the stored values at
runtime; see :func:`~whooptui.config.resolve_client_config`.

Typical workflow::

    whoop config setup            # interactive prompts
    whoop config setup --client-id abc --redirect-uri http://127.0.0.1:8787/callback
    whoop config show
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import typer

from whooptui.commands.support import open_store, reporting_errors
from whooptui.output import format_response, info, print_table, success, suggest, warning

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore
    from whooptui.models import ClientConfig


config_app = typer.Typer(no_args_is_help=True)

SECRET_MASK = "********"


def prompt_client_config(
    store: CredentialStore,
    client_id: Optional[str] = None,
    client_secret: Optional[str] = None,
    redirect_uri: Optional[str] = None,
    scopes: Optional[list[str]] = None,
) -> ClientConfig:
    """Build a client config, prompting for any value not given, and save it.

    Values already stored are offered as prompt defaults, except the client
    secret which is never echoed. Scopes are not prompted for; they keep the
    stored value or fall back to the default set.

    Raises:
        ConfigError: If the collected values fail validation.
    """
    from pydantic import ValidationError

    from whooptui.exceptions import ConfigError
    from whooptui.models import DEFAULT_REDIRECT_URI, DEFAULT_SCOPES, ClientConfig

    try:
        existing = store.load_config()
    except ConfigError as exc:
        warning(f"{exc}; it will be replaced.")
        existing = None

    if client_id is None:
        client_id = typer.prompt(
            "WHOOP OAuth client ID",
            default=existing.client_id if existing else None,
        )
    if client_secret is None:
        client_secret = typer.prompt(
            "WHOOP OAuth client secret (optional for PKCE clients)",
            default="",
            show_default=False,
            hide_input=True,
        )
    if redirect_uri is None:
        redirect_uri = typer.prompt(
            "Redirect URI (must match your WHOOP app)",
            default=existing.redirect_uri if existing else DEFAULT_REDIRECT_URI,
        )
    if not scopes:
        scopes = list(existing.scopes) if existing else list(DEFAULT_SCOPES)

    try:
        config = ClientConfig(
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scopes=scopes,
        )
    except ValidationError as exc:
        details = "; ".join(err["msg"] for err in exc.errors())
        raise ConfigError(f"Invalid client configuration: {details}") from exc

    store.save_config(config)
    return config


@config_app.command("setup")
def config_setup(
    client_id: Optional[str] = typer.Option(
        None, "--client-id", help="OAuth client ID from developer.whoop.com."
    ),
    client_secret: Optional[str] = typer.Option(
        None, "--client-secret", help="OAuth client secret (optional for PKCE clients)."
    ),
    redirect_uri: Optional[str] = typer.Option(
        None, "--redirect-uri", help="Redirect URI registered for the app."
    ),
    scopes: Optional[list[str]] = typer.Option(
        None, "--scope", "-s", help="Scope to request (repeatable)."
    ),
) -> None:
    """Save the OAuth client configuration.

    Any value not passed as an option is prompted for. Passing every option
    makes the command fully non-interactive.

    Raises:
        typer.Exit: With the config error exit code if validation fails.

    Example::

        whoop config setup
        whoop config setup --client-id abc --client-secret "" \\
            --redirect-uri http://127.0.0.1:8787/callback --scope read:sleep
    """
    with reporting_errors():
        store = open_store()
        config = prompt_client_config(
            store,
            client_id=client_id,
            client_secret=client_secret,
            redirect_uri=redirect_uri,
            scopes=scopes,
        )
    success("Config saved.")
    info(f"Redirect URI: {config.redirect_uri}")
    if store.load_token() is None:
        suggest("Log in: whoop auth login")


@config_app.command("show")
def config_show() -> None:
    """Show the effective client configuration.

    Environment overrides are applied. The client secret is masked.

    Example::

        whoop config show
        whoop --json config show
    """
    from whooptui.config import require_client_config

    with reporting_errors():
        store = open_store()
        config = require_client_config(store)

    format_response(
        {
            "client_id": config.client_id,
            "client_secret": SECRET_MASK if config.client_secret else None,
            "redirect_uri": config.redirect_uri,
            "scopes": " ".join(config.scopes),
        }
    )


@config_app.command("path")
def config_path_command() -> None:
    """Show where the config and token files are stored."""
    from whooptui.config import config_path, token_path

    print_table(
        ["file", "path"],
        [["config", str(config_path())], ["token", str(token_path())]],
        title="whooptui files",
    )
