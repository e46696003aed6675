"""Tests for access token signing."""

from datetime import timedelta

import pytest

from equizz.core.modules.session.tokens import JwtTokenSigner
from equizz.errors import TokenExpiredError, TokenInvalidError


class TestJwtTokenSigner:
    """Tests for the python-jose signer."""

    def test_sign_and_verify_carries_claims(self):
        signer = JwtTokenSigner("secret")
        token = signer.sign({"sub": "user-1", "type": "access"}, timedelta(minutes=15))
        payload = signer.verify(token)
        assert payload["sub"] == "user-1"
        assert payload["type"] == "access"
        assert payload["exp"] - payload["iat"] == 15 * 60

    def test_expired_token_raises_expired(self):
        """Test that a correctly signed but expired token asks for a refresh."""
        signer = JwtTokenSigner("secret")
        token = signer.sign({"sub": "user-1"}, timedelta(seconds=-30))
        with pytest.raises(TokenExpiredError) as exc_info:
            signer.verify(token)
        assert exc_info.value.requires_refresh

    def test_wrong_secret_raises_invalid(self):
        token = JwtTokenSigner("secret").sign({"sub": "user-1"}, timedelta(minutes=15))
        with pytest.raises(TokenInvalidError) as exc_info:
            JwtTokenSigner("other-secret").verify(token)
        assert exc_info.value.requires_login

    def test_garbage_raises_invalid(self):
        with pytest.raises(TokenInvalidError):
            JwtTokenSigner("secret").verify("not-a-jwt")
