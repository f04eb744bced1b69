"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles the on-disk layout and configuration resolution for
whooptui:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.whooptui/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **File locations** -- the OAuth client config lives in
  ``<config_dir>/config.json``; the token record in ``<data_dir>/token.json``.
* **Atomic writes** -- :func:`atomic_write` replaces a file wholesale via
  temp-file-then-rename with ``0o600`` permissions, so a crash never leaves a
  half-written token behind.
* **Precedence resolution** -- :func:`resolve_client_config` merges CLI
  flags, environment variables, and the stored config into the effective
  :class:`~whooptui.models.ClientConfig`.
"""

from __future__ import annotations

import os
import platform
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Optional

from pydantic import ValidationError

from whooptui.exceptions import ConfigError
from whooptui.models import ClientConfig

if TYPE_CHECKING:
    from whooptui.auth.credential_store import CredentialStore

_APP_NAME = "whooptui"
CONFIG_FILENAME = "config.json"
TOKEN_FILENAME = "token.json"

ENV_CLIENT_ID = "WHOOPTUI_CLIENT_ID"
ENV_CLIENT_SECRET = "WHOOPTUI_CLIENT_SECRET"
ENV_REDIRECT_URI = "WHOOPTUI_REDIRECT_URI"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform uses XDG base directories (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/whooptui/`` (default ``~/.config/whooptui/``).
    On macOS/Windows: ``~/.whooptui/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (token, crash logs), creating it if necessary.

    The directory is created with ``0o700`` permissions because it holds the
    access and refresh tokens.

    On Linux/BSD: ``$XDG_DATA_HOME/whooptui/`` (default ``~/.local/share/whooptui/``).
    On macOS/Windows: ``~/.whooptui/data/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "data"
    path.mkdir(mode=0o700, parents=True, exist_ok=True)
    return path


def config_path() -> Path:
    """Path to the stored OAuth client configuration."""
    return get_config_dir() / CONFIG_FILENAME


def token_path() -> Path:
    """Path to the stored token record."""
    return get_data_dir() / TOKEN_FILENAME


# --- Atomic file writes ---


def atomic_write(path: Path, data: str, mode: int = 0o600) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. Permissions are set
    before any content is written. On any failure the temp file is removed
    and the original file, if any, is left untouched.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        os.chmod(tmp_path, mode)
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        # Clean up the temp file on any error (including KeyboardInterrupt).
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Precedence resolution ---


def resolve_client_config(
    store: CredentialStore,
    cli_client_id: Optional[str] = None,
    cli_client_secret: Optional[str] = None,
    cli_redirect_uri: Optional[str] = None,
) -> Optional[ClientConfig]:
    """Resolve the effective client config with full precedence chain.

    Precedence (high to low):
        1. CLI flags
        2. Environment variables (``WHOOPTUI_CLIENT_ID``,
           ``WHOOPTUI_CLIENT_SECRET``, ``WHOOPTUI_REDIRECT_URI``)
        3. Stored config (``config.json``)
        4. Model defaults (redirect URI, scopes)

    A client id from a flag or the environment is enough to build a config
    when nothing is stored.

    Returns:
        The effective :class:`~whooptui.models.ClientConfig`, or ``None``
        when no client id is available from any source.

    Raises:
        ConfigError: If the stored config is invalid, or the merged values
            fail validation.
    """
    stored = store.load_config()

    overrides: dict[str, str] = {}
    for key, env_var, cli_value in (
        ("client_id", ENV_CLIENT_ID, cli_client_id),
        ("client_secret", ENV_CLIENT_SECRET, cli_client_secret),
        ("redirect_uri", ENV_REDIRECT_URI, cli_redirect_uri),
    ):
        env_value = os.environ.get(env_var)
        if cli_value is not None:
            overrides[key] = cli_value
        elif env_value:
            overrides[key] = env_value

    if stored is None and "client_id" not in overrides:
        return None
    if not overrides:
        return stored

    data = stored.model_dump() if stored is not None else {}
    data.update(overrides)
    try:
        return ClientConfig.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid client configuration: {exc}") from exc


def require_client_config(store: CredentialStore) -> ClientConfig:
    """Return the effective client config or raise :class:`ConfigError`."""
    config = resolve_client_config(store)
    if config is None:
        raise ConfigError(
            "No OAuth client configured. Run 'whoop config setup' "
            f"or set {ENV_CLIENT_ID}."
        )
    return config
