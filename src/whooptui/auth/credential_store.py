"""Persistent storage for the OAuth client config and the token record.

The auth flow depends only on the abstract :class:`CredentialStore`
interface, so it can be exercised against :class:`InMemoryCredentialStore`
without touching a filesystem. :class:`FileCredentialStore` is the
production implementation:

* ``config.json`` under :func:`~whooptui.config.get_config_dir` holds the
  :class:`~whooptui.models.ClientConfig`.
* ``token.json`` under :func:`~whooptui.config.get_data_dir` holds the single
  :class:`~whooptui.models.TokenRecord` for this installation.

Both files are written atomically via :func:`~whooptui.config.atomic_write`
with ``0o600`` permissions. Every save replaces the whole file; there are no
partial updates.

See Also:
    :class:`~whooptui.auth.token_exchange.TokenExchanger` -- persists
    refreshed tokens through this interface.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from whooptui.config import atomic_write, config_path, token_path
from whooptui.exceptions import ConfigError
from whooptui.models import ClientConfig, TokenRecord

logger = logging.getLogger(__name__)


class CredentialStore(ABC):
    """Abstract store for the client config and the token record.

    Loads return already-validated models or ``None`` when nothing is
    stored. Implementations must replace stored values wholesale on save.
    """

    @abstractmethod
    def load_config(self) -> Optional[ClientConfig]:
        """Return the stored client config, or ``None`` if none is stored.

        Raises:
            ConfigError: If a stored config exists but is invalid.
        """
        ...

    @abstractmethod
    def save_config(self, config: ClientConfig) -> None:
        """Persist *config*, fully overwriting any previous value."""
        ...

    @abstractmethod
    def clear_config(self) -> None:
        """Delete the stored client config. No-op when none is stored."""
        ...

    @abstractmethod
    def load_token(self) -> Optional[TokenRecord]:
        """Return the stored token record, or ``None`` if none is stored."""
        ...

    @abstractmethod
    def save_token(self, token: TokenRecord) -> None:
        """Persist *token*, fully overwriting any previous record."""
        ...

    @abstractmethod
    def clear_token(self) -> None:
        """Delete the stored token record. No-op when none is stored."""
        ...


class FileCredentialStore(CredentialStore):
    """JSON-file credential store under the XDG config and data directories.

    Args:
        config_file: Override for the config file location. Defaults to
            :func:`~whooptui.config.config_path`.
        token_file: Override for the token file location. Defaults to
            :func:`~whooptui.config.token_path`.

    Example::

        store = FileCredentialStore()
        store.save_token(TokenRecord(access_token="tok123"))
        assert store.load_token().access_token == "tok123"
    """

    def __init__(
        self,
        config_file: Optional[Path] = None,
        token_file: Optional[Path] = None,
    ) -> None:
        self._config_file = config_file
        self._token_file = token_file

    @property
    def config_file(self) -> Path:
        """The filesystem path to the client config file."""
        return self._config_file or config_path()

    @property
    def token_file(self) -> Path:
        """The filesystem path to the token record file."""
        return self._token_file or token_path()

    # ------------------------------------------------------------------ #
    # Client config
    # ------------------------------------------------------------------ #

    def load_config(self) -> Optional[ClientConfig]:
        path = self.config_file
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return ClientConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError, ValueError) as exc:
            raise ConfigError(f"Invalid client config at {path}: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Cannot read client config at {path}: {exc}") from exc

    def save_config(self, config: ClientConfig) -> None:
        data = config.model_dump(mode="json")
        atomic_write(self.config_file, json.dumps(data, indent=2) + "\n")
        logger.debug("Saved client config to %s", self.config_file)

    def clear_config(self) -> None:
        path = self.config_file
        if path.is_file():
            path.unlink()

    # ------------------------------------------------------------------ #
    # Token record
    # ------------------------------------------------------------------ #

    def load_token(self) -> Optional[TokenRecord]:
        """Load the token record from disk.

        An unreadable or malformed token file is treated as absent (the user
        simply has to log in again) and reported at warning level.
        """
        path = self.token_file
        if not path.is_file():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return TokenRecord.model_validate(data)
        except (json.JSONDecodeError, ValidationError, ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", path, exc)
            return None

    def save_token(self, token: TokenRecord) -> None:
        data = token.model_dump(mode="json", exclude_none=True)
        atomic_write(self.token_file, json.dumps(data, indent=2) + "\n")
        logger.debug("Saved token record to %s", self.token_file)

    def clear_token(self) -> None:
        path = self.token_file
        if path.is_file():
            path.unlink()
            logger.debug("Removed token record %s", path)


class InMemoryCredentialStore(CredentialStore):
    """Process-local credential store, used by tests and throwaway sessions.

    Keeps simple write counters so callers can assert how many times a value
    was persisted.
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        token: Optional[TokenRecord] = None,
    ) -> None:
        self._config = config
        self._token = token
        self.config_writes = 0
        self.token_writes = 0

    def load_config(self) -> Optional[ClientConfig]:
        return self._config

    def save_config(self, config: ClientConfig) -> None:
        self._config = config
        self.config_writes += 1

    def clear_config(self) -> None:
        self._config = None

    def load_token(self) -> Optional[TokenRecord]:
        # Hand out a copy so callers never mutate the stored record in place.
        return self._token.model_copy() if self._token is not None else None

    def save_token(self, token: TokenRecord) -> None:
        self._token = token.model_copy()
        self.token_writes += 1

    def clear_token(self) -> None:
        self._token = None
