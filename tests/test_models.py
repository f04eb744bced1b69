"""Tests for the client config, token record, and login-attempt models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from whooptui.exceptions import AuthError, MissingCodeError
from whooptui.models import (
    DEFAULT_REDIRECT_URI,
    AuthorizationResult,
    ClientConfig,
    Collection,
    TokenRecord,
)


class TestClientConfig:
    def test_defaults(self) -> None:
        config = ClientConfig(client_id="cid")
        assert config.redirect_uri == DEFAULT_REDIRECT_URI
        assert config.client_secret is None
        assert "read:sleep" in config.scopes

    def test_client_id_is_stripped(self) -> None:
        assert ClientConfig(client_id="  cid ").client_id == "cid"

    @pytest.mark.parametrize("client_id", ["", "   "])
    def test_blank_client_id_rejected(self, client_id: str) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(client_id=client_id)

    def test_blank_secret_becomes_none(self) -> None:
        assert ClientConfig(client_id="cid", client_secret="  ").client_secret is None

    @pytest.mark.parametrize("uri", ["127.0.0.1:8787/callback", "ftp://host/cb", "/callback"])
    def test_redirect_uri_must_be_absolute_http(self, uri: str) -> None:
        with pytest.raises(ValidationError, match="redirect_uri"):
            ClientConfig(client_id="cid", redirect_uri=uri)

    def test_scopes_deduplicated_in_order(self) -> None:
        config = ClientConfig(client_id="cid", scopes=["b", "a", "b", " ", "a"])
        assert config.scopes == ["b", "a"]

    def test_frozen(self) -> None:
        config = ClientConfig(client_id="cid")
        with pytest.raises(ValidationError):
            config.client_id = "other"  # type: ignore[misc]


class TestTokenRecord:
    def test_access_token_required(self) -> None:
        with pytest.raises(ValidationError):
            TokenRecord(access_token="")

    def test_is_expired(self) -> None:
        token = TokenRecord(access_token="A", expires_at=100)
        assert token.is_expired(now=100)
        assert not token.is_expired(now=99)

    def test_unknown_expiry_is_not_expired(self) -> None:
        assert not TokenRecord(access_token="A").is_expired(now=10**12)


class TestAuthorizationResult:
    def test_code(self) -> None:
        result = AuthorizationResult(code="abc")
        assert result.ok
        assert result.unwrap() == "abc"

    def test_error_is_raised(self) -> None:
        result = AuthorizationResult(error=MissingCodeError("Missing auth code"))
        assert not result.ok
        with pytest.raises(MissingCodeError):
            result.unwrap()

    def test_empty_result(self) -> None:
        with pytest.raises(AuthError):
            AuthorizationResult().unwrap()


class TestCollection:
    def test_envelope(self) -> None:
        collection = Collection.model_validate({"records": [{"id": 1}], "next_token": "n"})
        assert collection.records == [{"id": 1}]
        assert collection.next_token == "n"

    def test_missing_records(self) -> None:
        assert Collection.model_validate({}).records == []
