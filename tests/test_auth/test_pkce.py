"""Tests for PKCE state, verifier, and challenge generation."""

from __future__ import annotations

import base64
import hashlib
import re

from whooptui.auth.pkce import b64url, challenge_for, generate_pkce

URL_SAFE = re.compile(r"^[A-Za-z0-9_-]+$")


class TestB64Url:
    def test_strips_padding(self) -> None:
        assert b64url(b"a") == "YQ"
        assert b64url(b"ab") == "YWI"

    def test_uses_url_safe_alphabet(self) -> None:
        assert b64url(b"\xfb\xff") == "-_8"


class TestChallenge:
    def test_rfc7636_appendix_b_vector(self) -> None:
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert challenge_for(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_is_sha256_of_verifier(self) -> None:
        pkce = generate_pkce()
        digest = hashlib.sha256(pkce.verifier.encode("ascii")).digest()
        expected = base64.urlsafe_b64encode(digest).decode().rstrip("=")
        assert pkce.challenge == expected


class TestGeneratePkce:
    def test_method_is_s256(self) -> None:
        assert generate_pkce().method == "S256"

    def test_values_are_unpadded_url_safe(self) -> None:
        pkce = generate_pkce()
        for value in (pkce.state, pkce.verifier, pkce.challenge):
            assert URL_SAFE.match(value)
            assert "=" not in value

    def test_entropy_lengths(self) -> None:
        pkce = generate_pkce()
        # 24 bytes -> 32 chars, 32 bytes -> 43 chars
        assert len(pkce.state) == 32
        assert len(pkce.verifier) == 43
        assert len(pkce.challenge) == 43

    def test_values_differ_across_calls(self) -> None:
        generated = [generate_pkce() for _ in range(20)]
        assert len({p.state for p in generated}) == 20
        assert len({p.verifier for p in generated}) == 20

    def test_state_and_verifier_are_independent(self) -> None:
        pkce = generate_pkce()
        assert pkce.state != pkce.verifier
