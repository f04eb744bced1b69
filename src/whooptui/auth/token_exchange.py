"""Token endpoint calls: authorization-code exchange and refresh-token exchange.

:class:`TokenExchanger` performs the two form-encoded POSTs against the
WHOOP token endpoint and normalises the JSON response into a
:class:`~whooptui.models.TokenRecord`:

* :meth:`TokenExchanger.exchange_code` -- ``grant_type=authorization_code``
  with the PKCE ``code_verifier``. The caller persists the result.
* :meth:`TokenExchanger.refresh` -- ``grant_type=refresh_token``. Persists
  the new record through the :class:`~whooptui.auth.credential_store.CredentialStore`
  before returning it.

Neither operation retries internally; failures propagate to the caller as
:class:`~whooptui.exceptions.TokenExchangeError` (endpoint rejected the
request), :class:`~whooptui.exceptions.NoRefreshTokenError` (nothing to
refresh with), or :class:`~whooptui.exceptions.ConnectionError_`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from whooptui.auth.credential_store import CredentialStore
from whooptui.exceptions import ConnectionError_, NoRefreshTokenError, TokenExchangeError
from whooptui.models import ClientConfig, TokenRecord

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.prod.whoop.com/oauth/oauth2/token"
"""WHOOP OAuth2 token endpoint (distinct from the data API base URL)."""


class TokenExchanger:
    """Exchange authorization codes and refresh tokens for access tokens.

    Args:
        store: Where refreshed tokens are persisted.
        token_url: Token endpoint URL.
        client: Optional shared :class:`httpx.Client`. When omitted, each
            call uses a one-off :func:`httpx.post`.
        timeout: Request timeout in seconds for one-off calls.
    """

    def __init__(
        self,
        store: CredentialStore,
        token_url: str = TOKEN_URL,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._token_url = token_url
        self._client = client
        self._timeout = timeout

    def exchange_code(self, config: ClientConfig, code: str, verifier: str) -> TokenRecord:
        """Exchange an authorization code for a token record.

        Args:
            config: Client config; ``redirect_uri`` must be the one used in
                the authorization request.
            code: The authorization code from the callback.
            verifier: The PKCE code verifier of this login attempt.

        Returns:
            A new :class:`~whooptui.models.TokenRecord`. ``expires_at`` is
            ``now + expires_in`` when the response carries ``expires_in``.

        Raises:
            TokenExchangeError: On a non-2xx status or an unusable body.
            ConnectionError_: On network failure.
        """
        data: dict[str, str] = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": config.redirect_uri,
            "client_id": config.client_id,
            "code_verifier": verifier,
        }
        if config.client_secret:
            data["client_secret"] = config.client_secret

        payload = self._post(data, "Token exchange")
        token = TokenRecord(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or None,
            expires_at=_expires_at(payload.get("expires_in")),
            token_type=payload.get("token_type"),
            scope=payload.get("scope"),
        )
        logger.debug("Authorization code exchanged (refresh token: %s)", bool(token.refresh_token))
        return token

    def refresh(self, config: ClientConfig, token: TokenRecord) -> TokenRecord:
        """Refresh *token* and persist the new record.

        Refresh tokens are not always rotated: when the response omits
        ``refresh_token`` the previous one is kept. A missing ``expires_in``
        keeps the previous ``expires_at``.

        Raises:
            NoRefreshTokenError: If *token* has no refresh token. Raised
                before any network I/O.
            TokenExchangeError: On a non-2xx status or an unusable body.
            ConnectionError_: On network failure.
        """
        if not token.refresh_token:
            raise NoRefreshTokenError()

        data: dict[str, str] = {
            "grant_type": "refresh_token",
            "refresh_token": token.refresh_token,
            "client_id": config.client_id,
        }
        if config.client_secret:
            data["client_secret"] = config.client_secret

        payload = self._post(data, "Token refresh")
        expires_at = _expires_at(payload.get("expires_in"))
        refreshed = TokenRecord(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token") or token.refresh_token,
            expires_at=expires_at if expires_at is not None else token.expires_at,
            token_type=payload.get("token_type"),
            scope=payload.get("scope"),
        )
        self._store.save_token(refreshed)
        logger.debug(
            "Access token refreshed (refresh token rotated: %s)",
            refreshed.refresh_token != token.refresh_token,
        )
        return refreshed

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _post(self, data: dict[str, str], operation: str) -> dict[str, Any]:
        """POST *data* form-encoded and return the validated JSON body."""
        headers = {"Accept": "application/json"}
        try:
            if self._client is not None:
                response = self._client.post(self._token_url, data=data, headers=headers)
            else:
                response = httpx.post(
                    self._token_url, data=data, headers=headers, timeout=self._timeout
                )
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"{operation} failed: {exc}") from exc

        if not response.is_success:
            raise TokenExchangeError(
                f"{operation} failed: {response.status_code} {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise TokenExchangeError(
                f"{operation} failed: response is not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise TokenExchangeError(
                f"{operation} failed: response missing 'access_token' field",
                status_code=response.status_code,
                body=response.text,
            )
        return payload


def _expires_at(expires_in: Any) -> Optional[int]:
    """Convert a relative ``expires_in`` into an absolute Unix timestamp."""
    if expires_in is None:
        return None
    try:
        return int(time.time()) + int(float(expires_in))
    except (TypeError, ValueError):
        logger.warning("Ignoring non-numeric expires_in: %r", expires_in)
        return None
