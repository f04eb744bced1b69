"""Bearer-authenticated request dispatcher with a single refresh-and-retry.

:class:`ApiDispatcher` wraps :class:`httpx.Client` and layers on:

- **Auth injection** -- ``Authorization: Bearer <access_token>`` from the
  token record, read from the credential store on every call.
- **Refresh once on 401** -- when the API answers 401 and a refresh token is
  available, the token is refreshed (and persisted) through
  :class:`~whooptui.auth.token_exchange.TokenExchanger` and the request is
  retried exactly once. A second failure is final; there is never a
  refresh loop.
- **Error mapping** -- any final non-2xx status raises
  :class:`~whooptui.exceptions.ApiError` carrying the status and body;
  transport failures raise :class:`~whooptui.exceptions.ConnectionError_`.

Payloads are returned as parsed JSON without schema validation. There is no
caching, rate limiting, or automatic pagination.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from whooptui.auth.credential_store import CredentialStore
from whooptui.auth.token_exchange import TokenExchanger
from whooptui.config import require_client_config
from whooptui.exceptions import ApiError, AuthError, ConnectionError_, NotLoggedInError
from whooptui.models import ClientConfig, TokenRecord

logger = logging.getLogger(__name__)

API_BASE = "https://api.prod.whoop.com/developer/v2"
"""Base URL of the WHOOP developer data API."""


class ApiDispatcher:
    """Issue authenticated GET requests against the WHOOP data API.

    Should be used as a context manager so that an owned
    :class:`httpx.Client` is closed; an injected client is left open.

    Args:
        store: Source of the token record and client config, and sink for
            refreshed tokens.
        exchanger: Token exchanger used for the refresh path. Defaults to
            one bound to *store*.
        base_url: Data API base URL.
        client: Optional pre-built :class:`httpx.Client` (tests inject one
            backed by :class:`httpx.MockTransport`).
        timeout: Request timeout in seconds for an owned client.

    Example::

        with ApiDispatcher(store) as dispatcher:
            data = dispatcher.call("/activity/sleep", {"limit": 7})
    """

    def __init__(
        self,
        store: CredentialStore,
        exchanger: Optional[TokenExchanger] = None,
        base_url: str = API_BASE,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ) -> None:
        self._store = store
        self._exchanger = exchanger or TokenExchanger(store)
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self.last_token: Optional[TokenRecord] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> ApiDispatcher:
        self._http()
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client and self._client is not None:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def call(
        self,
        path: str,
        query: Optional[Mapping[str, Any]] = None,
        token: Optional[TokenRecord] = None,
        config: Optional[ClientConfig] = None,
    ) -> Any:
        """GET *path* with bearer auth and return the parsed JSON body.

        Args:
            path: API path appended to the base URL (e.g. ``/cycle``).
            query: Query parameters; entries whose value is ``None`` are
                omitted.
            token: Token to use; defaults to the stored token record.
            config: Client config for the refresh path; defaults to the
                resolved stored config and is only loaded when a refresh
                is needed.

        Returns:
            The decoded JSON payload.

        Raises:
            NotLoggedInError: If no token is given or stored.
            ApiError: On a final non-2xx status (after at most one refresh)
                or a non-JSON success body.
            ConnectionError_: On network failure.
        """
        if token is None:
            token = self._store.load_token()
        if token is None:
            raise NotLoggedInError()

        url = f"{self._base_url}{path}"
        params = {k: v for k, v in (query or {}).items() if v is not None}

        response = self._send(url, params, token.access_token)

        if response.status_code == 401 and token.refresh_token:
            logger.debug("401 from %s, refreshing access token", path)
            token = self._refresh(config, token, response)
            response = self._send(url, params, token.access_token)

        self.last_token = token

        if not response.is_success:
            raise _api_error(response)

        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(
                f"API error: {response.status_code} response is not JSON",
                status_code=response.status_code,
                body=response.text,
            ) from exc

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
            self._owns_client = True
        return self._client

    def _send(self, url: str, params: dict[str, Any], access_token: str) -> httpx.Response:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {access_token}",
        }
        try:
            return self._http().get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Request to {url} failed: {exc}") from exc

    def _refresh(
        self,
        config: Optional[ClientConfig],
        token: TokenRecord,
        response: httpx.Response,
    ) -> TokenRecord:
        """Refresh *token* once; a failed refresh becomes the final API error."""
        try:
            config = config or require_client_config(self._store)
            return self._exchanger.refresh(config, token)
        except (AuthError, ConnectionError_) as exc:
            raise ApiError(
                f"API error: {response.status_code} {response.text} "
                f"(token refresh failed: {exc}; please login again)",
                status_code=response.status_code,
                body=response.text,
            ) from exc


def _api_error(response: httpx.Response) -> ApiError:
    return ApiError(
        f"API error: {response.status_code} {response.text}",
        status_code=response.status_code,
        body=response.text,
    )
