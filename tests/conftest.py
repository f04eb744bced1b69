"""Shared test fixtures for whooptui.

Provides reusable fixtures for isolated config directories, in-memory
credential stores, output state, loopback ports, and running CLI commands.
These fixtures are automatically discovered by pytest and available to
all test modules without explicit imports.
"""

from __future__ import annotations

import logging
import socket
from pathlib import Path

import pytest

from whooptui.auth.credential_store import InMemoryCredentialStore
from whooptui.models import ClientConfig, TokenRecord
from whooptui.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager and package logger after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.

    The root CLI callback also installs a RichHandler on the ``whooptui``
    logger and stops propagation, which would hide records from ``caplog``.
    """
    yield
    reset_output()
    logger = logging.getLogger("whooptui")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all WHOOPTUI_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("whooptui.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "WHOOPTUI_CLIENT_ID",
        "WHOOPTUI_CLIENT_SECRET",
        "WHOOPTUI_REDIRECT_URI",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Credential fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client_config() -> ClientConfig:
    """A PKCE client without a secret, on the default loopback redirect."""
    return ClientConfig(client_id="cid", redirect_uri="http://127.0.0.1:8787/callback")


@pytest.fixture
def logged_in_store(client_config: ClientConfig) -> InMemoryCredentialStore:
    """In-memory store holding *client_config* and an access/refresh token pair."""
    return InMemoryCredentialStore(
        config=client_config,
        token=TokenRecord(access_token="A1", refresh_token="R1", expires_at=2_000_000_000),
    )


# ---------------------------------------------------------------------------
# Loopback helpers
# ---------------------------------------------------------------------------


def find_free_port() -> int:
    """Return a TCP port on 127.0.0.1 that was free a moment ago."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


@pytest.fixture
def free_port() -> int:
    return find_free_port()


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Set up a PLAIN, uncoloured output manager bound to the current streams.

    Request this fixture after ``capsys`` so the consoles write into the
    captured streams.
    """
    output = OutputManager(format=OutputFormat.PLAIN, no_color=True)
    # capsys swaps in a fresh capture stream for the test call phase, so let
    # the consoles resolve sys.stdout/sys.stderr at write time instead of
    # holding the (closed) setup-phase streams.
    output._stdout.file = None
    output._stderr.file = None
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
