"""PKCE (:rfc:`7636`) material for the browser login.

:func:`generate_pkce` returns a fresh :class:`~whooptui.models.PkceMaterial`
for every login attempt: a random CSRF ``state``, a random ``verifier``, and
the S256 ``challenge`` derived from it. All values are URL-safe base64
without padding.
"""

from __future__ import annotations

import base64
import hashlib
import secrets

from whooptui.models import PkceMaterial

STATE_BYTES = 24
VERIFIER_BYTES = 32


def b64url(data: bytes) -> str:
    """Encode *data* as URL-safe base64 with the ``=`` padding stripped."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def challenge_for(verifier: str) -> str:
    """Return the S256 code challenge for *verifier*."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return b64url(digest)


def generate_pkce() -> PkceMaterial:
    """Generate state, code verifier, and S256 code challenge.

    Returns:
        A new :class:`~whooptui.models.PkceMaterial`. ``state`` carries 192
        bits and ``verifier`` 256 bits from :mod:`secrets`.
    """
    state = b64url(secrets.token_bytes(STATE_BYTES))
    verifier = b64url(secrets.token_bytes(VERIFIER_BYTES))
    return PkceMaterial(state=state, verifier=verifier, challenge=challenge_for(verifier))
