"""Interactive menu -- the default ``whoop`` experience.

Running ``whoop`` with no sub-command (or ``whoop menu``) starts a loop that
offers login, the four data views, reconfiguration, logout, and exit. When no
client configuration exists yet, first-time setup runs before the loop.

A :class:`~whooptui.exceptions.WhoopError` raised by an action is reported
and the loop continues; only choosing *Exit* (or aborting the prompt) ends it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

import typer

from whooptui.commands import support
from whooptui.output import info, prompt_text, success, warning

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore
    from whooptui.models import ClientConfig

logger = logging.getLogger(__name__)

MENU_LIMIT = 14

MENU_ACTIONS: list[tuple[str, str]] = [
    ("login", "Login / refresh session"),
    ("profile", "View profile"),
    ("sleep", "View sleep data"),
    ("recovery", "View recovery data"),
    ("strain", "View strain (cycle) data"),
    ("reconfigure", "Update OAuth config"),
    ("logout", "Logout (clear local token)"),
    ("exit", "Exit"),
]


def choose_action() -> str:
    """Print the numbered menu and return the chosen action key."""
    prompt_text("")
    for number, (_, label) in enumerate(MENU_ACTIONS, 1):
        prompt_text(f"  {number}. {label}")

    while True:
        choice = typer.prompt("Choose an action").strip().lower()
        if choice.isdigit() and 1 <= int(choice) <= len(MENU_ACTIONS):
            return MENU_ACTIONS[int(choice) - 1][0]
        for key, _ in MENU_ACTIONS:
            if choice == key:
                return key
        warning(f"Enter a number between 1 and {len(MENU_ACTIONS)}.")


def _initial_config(store: CredentialStore) -> ClientConfig:
    from whooptui.commands.config import prompt_client_config
    from whooptui.config import resolve_client_config
    from whooptui.exceptions import ConfigError

    try:
        config = resolve_client_config(store)
    except ConfigError as exc:
        warning(str(exc))
        config = None

    if config is None:
        info("No config found. Running first-time setup.")
        config = prompt_client_config(store)
        success("Config saved.")
    return config


def run_action(action: str, store: CredentialStore, config: ClientConfig) -> ClientConfig:
    """Perform one menu *action* and return the (possibly updated) config."""
    from whooptui.commands.auth import perform_login
    from whooptui.commands.config import prompt_client_config
    from whooptui.commands.data import COLLECTION_KINDS, show_collection, show_profile

    logger.debug("Menu action: %s", action)
    if action == "login":
        perform_login(config, store)
        success("Login successful. Token stored locally.")
    elif action == "profile":
        show_profile(store)
    elif action in COLLECTION_KINDS:
        show_collection(action, store, limit=MENU_LIMIT)
    elif action == "reconfigure":
        config = prompt_client_config(store)
        success("Config saved.")
    elif action == "logout":
        store.clear_token()
        success("Local token removed.")
    return config


def run_menu(store: Optional[CredentialStore] = None) -> None:
    """Run the interactive loop until the user chooses *Exit*.

    Raises:
        ConfigError: If first-time setup collects an invalid configuration.
    """
    from whooptui.exceptions import WhoopError

    store = store or support.open_store()
    info("WHOOP Terminal UI")
    config = _initial_config(store)

    while True:
        action = choose_action()
        if action == "exit":
            break
        try:
            config = run_action(action, store, config)
        except WhoopError as exc:
            support.report(exc)

    info("Done.")


def menu_command() -> None:
    """Start the interactive menu."""
    with support.reporting_errors():
        run_menu()
