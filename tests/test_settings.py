"""Tests for directory layout, atomic writes, and client config resolution."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from unittest.mock import patch

import pytest

from whooptui.auth.credential_store import InMemoryCredentialStore
from whooptui.config import (
    atomic_write,
    config_path,
    get_config_dir,
    get_data_dir,
    require_client_config,
    resolve_client_config,
    token_path,
)
from whooptui.exceptions import ConfigError
from whooptui.models import DEFAULT_REDIRECT_URI, DEFAULT_SCOPES, ClientConfig


class TestDirectories:
    def test_xdg_locations(self, isolated_config: Path) -> None:
        assert get_config_dir() == isolated_config / "config" / "whooptui"
        assert get_data_dir() == isolated_config / "data" / "whooptui"
        assert config_path().name == "config.json"
        assert token_path().parent == get_data_dir()

    def test_data_dir_is_private(self, isolated_config: Path) -> None:
        assert stat.S_IMODE(get_data_dir().stat().st_mode) == 0o700

    def test_fallback_on_non_xdg_platform(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr("whooptui.config._is_xdg_platform", lambda: False)
        with patch("whooptui.config.Path.home", return_value=tmp_path):
            assert get_config_dir() == tmp_path / ".whooptui"
            assert get_data_dir() == tmp_path / ".whooptui" / "data"


class TestAtomicWrite:
    def test_writes_with_mode(self, tmp_path: Path) -> None:
        target = tmp_path / "nested" / "file.json"
        atomic_write(target, '{"a": 1}')
        assert target.read_text() == '{"a": 1}'
        assert stat.S_IMODE(target.stat().st_mode) == 0o600

    def test_replaces_and_leaves_no_temp_files(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write(target, "old")
        atomic_write(target, "new")
        assert target.read_text() == "new"
        assert os.listdir(tmp_path) == ["file.json"]

    def test_failure_keeps_original(self, tmp_path: Path) -> None:
        target = tmp_path / "file.json"
        atomic_write(target, "original")
        with patch("whooptui.config.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write(target, "partial")
        assert target.read_text() == "original"
        assert os.listdir(tmp_path) == ["file.json"]


class TestResolveClientConfig:
    def test_nothing_configured(self, isolated_config: Path) -> None:
        assert resolve_client_config(InMemoryCredentialStore()) is None

    def test_stored_config(self, isolated_config: Path, client_config: ClientConfig) -> None:
        store = InMemoryCredentialStore(config=client_config)
        assert resolve_client_config(store) == client_config

    def test_env_client_id_alone_is_enough(
        self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("WHOOPTUI_CLIENT_ID", "env-id")
        config = resolve_client_config(InMemoryCredentialStore())
        assert config is not None
        assert config.client_id == "env-id"
        assert config.redirect_uri == DEFAULT_REDIRECT_URI
        assert config.scopes == list(DEFAULT_SCOPES)

    def test_env_overrides_stored(
        self,
        isolated_config: Path,
        client_config: ClientConfig,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("WHOOPTUI_CLIENT_SECRET", "env-secret")
        monkeypatch.setenv("WHOOPTUI_REDIRECT_URI", "http://localhost:9000/cb")
        config = resolve_client_config(InMemoryCredentialStore(config=client_config))
        assert config is not None
        assert config.client_id == "cid"
        assert config.client_secret == "env-secret"
        assert config.redirect_uri == "http://localhost:9000/cb"

    def test_cli_beats_env(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHOOPTUI_CLIENT_ID", "env-id")
        config = resolve_client_config(InMemoryCredentialStore(), cli_client_id="cli-id")
        assert config is not None
        assert config.client_id == "cli-id"

    def test_invalid_override(self, isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WHOOPTUI_CLIENT_ID", "env-id")
        monkeypatch.setenv("WHOOPTUI_REDIRECT_URI", "not-a-url")
        with pytest.raises(ConfigError, match="Invalid client configuration"):
            resolve_client_config(InMemoryCredentialStore())

    def test_require_raises_when_missing(self, isolated_config: Path) -> None:
        with pytest.raises(ConfigError, match="whoop config setup"):
            require_client_config(InMemoryCredentialStore())
