"""OAuth2 Authorization Code + PKCE login and token lifecycle for whooptui.

The main entry points are:

- :func:`login_with_browser` -- run one interactive browser login and persist
  the resulting token.
- :class:`TokenExchanger` -- authorization-code and refresh-token exchanges
  against the WHOOP token endpoint.
- :class:`CallbackListener` / :func:`await_callback` -- the transient local
  HTTP listener that captures the authorization redirect.
- :func:`generate_pkce` -- per-attempt state, verifier, and challenge.
- :class:`CredentialStore` -- abstract storage for the client config and
  token record, with :class:`FileCredentialStore` and
  :class:`InMemoryCredentialStore` implementations.

Typical usage::

    from whooptui.auth import FileCredentialStore, login_with_browser

    store = FileCredentialStore()
    token = login_with_browser(store.load_config(), store)
"""

from whooptui.auth.callback import CallbackListener, await_callback
from whooptui.auth.credential_store import (
    CredentialStore,
    FileCredentialStore,
    InMemoryCredentialStore,
)
from whooptui.auth.login import build_authorization_url, login_with_browser
from whooptui.auth.pkce import generate_pkce
from whooptui.auth.token_exchange import TokenExchanger

__all__ = [
    "CallbackListener",
    "CredentialStore",
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "TokenExchanger",
    "await_callback",
    "build_authorization_url",
    "generate_pkce",
    "login_with_browser",
]
