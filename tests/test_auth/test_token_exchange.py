"""Tests for the authorization-code and refresh-token exchanges."""

from __future__ import annotations

import json
import time
from typing import Any, Callable
from unittest.mock import MagicMock, patch
from urllib.parse import parse_qs

import httpx
import pytest

from whooptui.auth.credential_store import InMemoryCredentialStore
from whooptui.auth.token_exchange import TOKEN_URL, TokenExchanger
from whooptui.exceptions import ConnectionError_, NoRefreshTokenError, TokenExchangeError
from whooptui.models import ClientConfig, TokenRecord


def _form(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.read().decode("utf-8")).items()}


def _token_endpoint(
    status: int = 200,
    payload: Any = None,
    text: str | None = None,
) -> tuple[Callable[[httpx.Request], httpx.Response], list[httpx.Request]]:
    """Build a MockTransport handler that records requests."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if text is not None:
            return httpx.Response(status, text=text)
        return httpx.Response(status, json=payload)

    return handler, seen


def _exchanger(
    handler: Callable[[httpx.Request], httpx.Response],
    store: InMemoryCredentialStore | None = None,
) -> TokenExchanger:
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return TokenExchanger(store or InMemoryCredentialStore(), client=client)


class TestExchangeCode:
    def test_success(self, client_config: ClientConfig) -> None:
        handler, seen = _token_endpoint(
            payload={"access_token": "A", "refresh_token": "R", "expires_in": 3600}
        )
        store = InMemoryCredentialStore()
        before = time.time()

        token = _exchanger(handler, store).exchange_code(client_config, "abc", "verifier-1")

        assert token.access_token == "A"
        assert token.refresh_token == "R"
        assert before + 3600 - 2 <= token.expires_at <= time.time() + 3600 + 2
        # The caller persists the login result, not the exchanger.
        assert store.token_writes == 0

        request = seen[0]
        assert str(request.url) == TOKEN_URL
        assert request.method == "POST"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert _form(request) == {
            "grant_type": "authorization_code",
            "code": "abc",
            "redirect_uri": "http://127.0.0.1:8787/callback",
            "client_id": "cid",
            "code_verifier": "verifier-1",
        }

    def test_includes_client_secret_when_configured(self) -> None:
        config = ClientConfig(client_id="cid", client_secret="shh")
        handler, seen = _token_endpoint(payload={"access_token": "A"})

        _exchanger(handler).exchange_code(config, "abc", "v")

        assert _form(seen[0])["client_secret"] == "shh"

    def test_missing_expires_in(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(payload={"access_token": "A"})
        token = _exchanger(handler).exchange_code(client_config, "abc", "v")
        assert token.expires_at is None
        assert token.refresh_token is None

    def test_error_status(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(status=400, text='{"error":"invalid_grant"}')

        with pytest.raises(TokenExchangeError, match="Token exchange failed: 400") as exc_info:
            _exchanger(handler).exchange_code(client_config, "abc", "v")

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.body

    def test_missing_access_token(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(payload={"token_type": "bearer"})
        with pytest.raises(TokenExchangeError, match="access_token"):
            _exchanger(handler).exchange_code(client_config, "abc", "v")

    def test_non_json_body(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(text="<html>oops</html>")
        with pytest.raises(TokenExchangeError, match="not JSON"):
            _exchanger(handler).exchange_code(client_config, "abc", "v")

    def test_transport_error(self, client_config: ClientConfig) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ConnectionError_, match="Token exchange failed"):
            _exchanger(handler).exchange_code(client_config, "abc", "v")

    def test_one_off_post_without_client(self, client_config: ClientConfig) -> None:
        mock_response = MagicMock(spec=httpx.Response)
        mock_response.is_success = True
        mock_response.status_code = 200
        mock_response.json.return_value = {"access_token": "A", "expires_in": 60}
        mock_response.text = json.dumps({"access_token": "A", "expires_in": 60})

        exchanger = TokenExchanger(InMemoryCredentialStore(), timeout=5.0)
        with patch(
            "whooptui.auth.token_exchange.httpx.post", return_value=mock_response
        ) as mock_post:
            token = exchanger.exchange_code(client_config, "abc", "v")

        assert token.access_token == "A"
        args, kwargs = mock_post.call_args
        assert args[0] == TOKEN_URL
        assert kwargs["data"]["grant_type"] == "authorization_code"
        assert kwargs["timeout"] == 5.0


class TestRefresh:
    def test_keeps_refresh_token_when_not_rotated(self, client_config: ClientConfig) -> None:
        handler, seen = _token_endpoint(payload={"access_token": "A2", "expires_in": 3600})
        store = InMemoryCredentialStore()
        old = TokenRecord(access_token="A", refresh_token="R", expires_at=1)

        refreshed = _exchanger(handler, store).refresh(client_config, old)

        assert refreshed.access_token == "A2"
        assert refreshed.refresh_token == "R"
        assert refreshed.expires_at > time.time() + 3500
        assert _form(seen[0]) == {
            "grant_type": "refresh_token",
            "refresh_token": "R",
            "client_id": "cid",
        }

    def test_persists_the_new_record(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(payload={"access_token": "A2", "refresh_token": "R2"})
        store = InMemoryCredentialStore()

        _exchanger(handler, store).refresh(
            client_config, TokenRecord(access_token="A", refresh_token="R")
        )

        assert store.token_writes == 1
        stored = store.load_token()
        assert stored is not None
        assert (stored.access_token, stored.refresh_token) == ("A2", "R2")

    def test_keeps_expiry_when_expires_in_missing(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(payload={"access_token": "A2"})
        old = TokenRecord(access_token="A", refresh_token="R", expires_at=1_234)

        refreshed = _exchanger(handler).refresh(client_config, old)

        assert refreshed.expires_at == 1_234

    def test_no_refresh_token_does_no_io(self, client_config: ClientConfig) -> None:
        handler, seen = _token_endpoint(payload={"access_token": "A2"})
        store = InMemoryCredentialStore()

        with pytest.raises(NoRefreshTokenError):
            _exchanger(handler, store).refresh(client_config, TokenRecord(access_token="A"))

        assert seen == []
        assert store.token_writes == 0

    def test_rejected_refresh_persists_nothing(self, client_config: ClientConfig) -> None:
        handler, _ = _token_endpoint(status=401, text="invalid refresh token")
        store = InMemoryCredentialStore()

        with pytest.raises(TokenExchangeError, match="Token refresh failed: 401"):
            _exchanger(handler, store).refresh(
                client_config, TokenRecord(access_token="A", refresh_token="R")
            )

        assert store.token_writes == 0
