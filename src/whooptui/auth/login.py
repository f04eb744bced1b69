"""Interactive browser login: OAuth2 Authorization Code grant with PKCE.

:func:`login_with_browser` ties the pieces together for one login attempt:

1. Generate fresh PKCE material (:func:`~whooptui.auth.pkce.generate_pkce`).
2. Bind the callback listener on the redirect URI's host/port.
3. Open the authorization URL in the user's browser.
4. Wait for the redirect and validate it.
5. Exchange the code for tokens and persist the record once.

The PKCE material lives only for the duration of the call.
"""

from __future__ import annotations

import logging
import threading
import webbrowser
from typing import Callable, Optional
from urllib.parse import urlencode

from whooptui.auth.callback import DEFAULT_CALLBACK_TIMEOUT, await_callback
from whooptui.auth.credential_store import CredentialStore
from whooptui.auth.pkce import generate_pkce
from whooptui.auth.token_exchange import TokenExchanger
from whooptui.models import ClientConfig, PkceMaterial, TokenRecord

logger = logging.getLogger(__name__)

AUTH_URL = "https://api.prod.whoop.com/oauth/oauth2/auth"
"""WHOOP OAuth2 authorization endpoint, opened in the browser."""


def build_authorization_url(
    config: ClientConfig, pkce: PkceMaterial, auth_url: str = AUTH_URL
) -> str:
    """Return the authorization URL for *config* and this attempt's *pkce* values."""
    params = {
        "response_type": "code",
        "client_id": config.client_id,
        "redirect_uri": config.redirect_uri,
        "scope": " ".join(config.scopes),
        "state": pkce.state,
        "code_challenge": pkce.challenge,
        "code_challenge_method": pkce.method,
    }
    return f"{auth_url}?{urlencode(params)}"


def _open_in_background(open_browser: Callable[[str], object], url: str) -> None:
    """Open *url* on a daemon thread so a slow browser launch never blocks the wait."""

    def _target() -> None:
        try:
            open_browser(url)
        except Exception as exc:  # noqa: BLE001 -- the URL is also printed for manual use
            logger.warning("Could not open a browser: %s", exc)

    threading.Thread(target=_target, name="whooptui-browser", daemon=True).start()


def login_with_browser(
    config: ClientConfig,
    store: CredentialStore,
    exchanger: Optional[TokenExchanger] = None,
    open_browser: Optional[Callable[[str], object]] = webbrowser.open,
    timeout: Optional[float] = DEFAULT_CALLBACK_TIMEOUT,
    on_url: Optional[Callable[[str], None]] = None,
    auth_url: str = AUTH_URL,
) -> TokenRecord:
    """Run one interactive login attempt and persist the resulting token.

    Args:
        config: The OAuth client configuration.
        store: Where the new token record is saved.
        exchanger: Token exchanger to use; defaults to one bound to *store*.
        open_browser: Callable that opens a URL; ``None`` skips opening a
            browser (the user copies the URL from *on_url* instead).
        timeout: Seconds to wait for the redirect.
        on_url: Called with the authorization URL once the listener is
            bound, before the browser is opened.
        auth_url: Authorization endpoint override.

    Returns:
        The persisted :class:`~whooptui.models.TokenRecord`.

    Raises:
        ListenerBindError: If the redirect host/port cannot be bound.
        StateMismatchError: If the redirect's ``state`` does not match.
        AuthorizationDeniedError: If the provider reports an error.
        MissingCodeError: If the redirect carries no code.
        CallbackTimeoutError: If no redirect arrives within *timeout*.
        TokenExchangeError: If the token endpoint rejects the code.
    """
    exchanger = exchanger or TokenExchanger(store)
    pkce = generate_pkce()
    url = build_authorization_url(config, pkce, auth_url)

    def _on_listening() -> None:
        if on_url is not None:
            on_url(url)
        if open_browser is not None:
            _open_in_background(open_browser, url)

    result = await_callback(
        config.redirect_uri, pkce.state, timeout=timeout, on_listening=_on_listening
    )
    code = result.unwrap()

    token = exchanger.exchange_code(config, code, pkce.verifier)
    store.save_token(token)
    logger.debug("Login complete; token persisted")
    return token
