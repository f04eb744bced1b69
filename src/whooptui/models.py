"""Canonical data models shared across all whooptui modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Persisted models** -- serialised as JSON by the credential store:
    :class:`ClientConfig` and :class:`TokenRecord`.

**Login-attempt models** -- in-memory only, scoped to one browser login:
    :class:`PkceMaterial` and :class:`AuthorizationResult`.

**API envelopes** -- thin wrappers around vendor payloads:
    :class:`Collection`. Individual sleep, recovery, and cycle records are
    passed through as plain dicts; unknown or missing fields surface as
    absent values in the rendering layer.

Persisted models use Pydantic v2. ``ClientConfig`` is frozen so that a
loaded configuration cannot drift during a session; reconfiguration
replaces it wholesale.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator

from whooptui.exceptions import AuthError

DEFAULT_REDIRECT_URI = "http://127.0.0.1:8787/callback"
"""Redirect URI registered by default; the callback listener binds its host/port."""

DEFAULT_SCOPES: tuple[str, ...] = (
    "read:profile",
    "read:sleep",
    "read:recovery",
    "read:cycles",
)
"""Scopes requested when the user does not configure their own."""


# --- Persisted models ---


class ClientConfig(BaseModel):
    """OAuth client configuration for the WHOOP developer app.

    Example::

        ClientConfig(
            client_id="cid",
            redirect_uri="http://127.0.0.1:8787/callback",
            scopes=["read:profile"],
        )
    """

    model_config = ConfigDict(frozen=True)

    client_id: str = Field(min_length=1, description="OAuth client id")
    client_secret: Optional[str] = Field(
        default=None, description="OAuth client secret (optional for PKCE clients)"
    )
    redirect_uri: str = Field(
        default=DEFAULT_REDIRECT_URI,
        description="Absolute redirect URI; must match the WHOOP app settings",
    )
    scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_SCOPES))

    @field_validator("client_id")
    @classmethod
    def _strip_client_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("client_id must not be blank")
        return value

    @field_validator("client_secret")
    @classmethod
    def _blank_secret_is_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("redirect_uri")
    @classmethod
    def _absolute_http_uri(cls, value: str) -> str:
        parsed = urlparse(value)
        if parsed.scheme not in ("http", "https") or not parsed.hostname:
            raise ValueError(f"redirect_uri must be an absolute http(s) URL, got {value!r}")
        return value

    @field_validator("scopes")
    @classmethod
    def _ordered_unique_scopes(cls, value: list[str]) -> list[str]:
        seen: list[str] = []
        for scope in value:
            scope = scope.strip()
            if scope and scope not in seen:
                seen.append(scope)
        return seen


class TokenRecord(BaseModel):
    """The single token record stored for this installation.

    ``expires_at`` is advisory: requests are never gated on it. Expiry is
    detected from a 401 response and handled by a one-shot refresh.
    """

    access_token: str = Field(min_length=1)
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = Field(
        default=None, description="Unix timestamp (seconds) when the access token expires"
    )
    token_type: Optional[str] = None
    scope: Optional[str] = None

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Return ``True`` if ``expires_at`` is known and already in the past."""
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return current >= self.expires_at


# --- Login-attempt models ---


@dataclass(frozen=True)
class PkceMaterial:
    """Per-attempt PKCE values (:rfc:`7636`) plus the CSRF ``state``.

    Never persisted; a fresh instance is generated for every login attempt.
    """

    state: str
    verifier: str
    challenge: str
    method: str = "S256"


@dataclass(frozen=True)
class AuthorizationResult:
    """Outcome of a single authorization redirect.

    Exactly one of ``code`` and ``error`` is set.
    """

    code: Optional[str] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.code)

    def unwrap(self) -> str:
        """Return the authorization code, or raise the carried error."""
        if self.error is not None:
            raise self.error
        if not self.code:
            raise AuthError("Authorization result carries neither a code nor an error")
        return self.code


# --- API envelopes ---


class Collection(BaseModel):
    """Paged collection envelope returned by the sleep, recovery, and cycle endpoints.

    ``next_token`` is surfaced to the caller; it is never followed
    automatically.
    """

    model_config = ConfigDict(extra="allow")

    records: list[dict[str, Any]] = Field(default_factory=list)
    next_token: Optional[str] = None

    @field_validator("records", mode="before")
    @classmethod
    def _null_records(cls, value: Any) -> Any:
        return [] if value is None else value
