"""
Tests for session token issuing and verification.
"""

from datetime import datetime, timedelta, UTC

import jwt
import pytest

from notekeeper.auth.config import AuthConfig
from notekeeper.auth.tokens import ALGORITHM, JWTTokenIssuer
from notekeeper.core.exceptions import InvalidTokenError, TokenSigningError


SECRET = "unit-test-secret-key-of-sufficient-length"


@pytest.fixture
def issuer():
    return JWTTokenIssuer(secret_key=SECRET, issuer="notekeeper", ttl_seconds=3600)


class TestGenerateToken:
    """Tests for JWTTokenIssuer.generate_token."""

    def test_claims(self, issuer):
        """Test the token carries subject, issuer and a bounded lifetime."""
        token = issuer.generate_token(7)

        claims = jwt.decode(token, SECRET, algorithms=[ALGORITHM], issuer="notekeeper")
        assert claims["sub"] == "7"
        assert claims["iss"] == "notekeeper"
        assert claims["exp"] - claims["iat"] == 3600

    def test_missing_secret_raises(self):
        """Test signing without a secret fails."""
        issuer = JWTTokenIssuer(secret_key="", issuer="notekeeper", ttl_seconds=60)

        with pytest.raises(TokenSigningError, match="not configured"):
            issuer.generate_token(1)

    def test_short_secret_raises(self):
        """Test signing with a weak secret fails."""
        issuer = JWTTokenIssuer(secret_key="short", issuer="notekeeper", ttl_seconds=60)

        with pytest.raises(TokenSigningError, match="at least"):
            issuer.generate_token(1)

    def test_from_config(self):
        """Test issuer settings come from AuthConfig."""
        config = AuthConfig()
        config.secret_key = SECRET
        config.token_issuer = "custom-issuer"
        config.token_ttl_seconds = 120

        issuer = JWTTokenIssuer.from_config(config)

        assert issuer.issuer == "custom-issuer"
        assert issuer.ttl_seconds == 120


class TestVerifyToken:
    """Tests for JWTTokenIssuer.verify_token."""

    def test_roundtrip(self, issuer):
        """Test a generated token verifies to its user id."""
        assert issuer.verify_token(issuer.generate_token(7)) == 7

    def test_wrong_secret(self, issuer):
        """Test tokens signed with another secret are rejected."""
        other = JWTTokenIssuer(
            secret_key="another-secret-key-of-sufficient-length",
            issuer="notekeeper",
            ttl_seconds=3600,
        )

        with pytest.raises(InvalidTokenError):
            issuer.verify_token(other.generate_token(7))

    def test_wrong_issuer(self, issuer):
        """Test tokens from another issuer are rejected."""
        other = JWTTokenIssuer(secret_key=SECRET, issuer="someone-else", ttl_seconds=3600)

        with pytest.raises(InvalidTokenError):
            issuer.verify_token(other.generate_token(7))

    def test_expired(self, issuer):
        """Test expired tokens are rejected."""
        past = datetime.now(UTC) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "7",
                "iss": "notekeeper",
                "iat": past,
                "exp": past + timedelta(hours=1),
            },
            SECRET,
            algorithm=ALGORITHM,
        )

        with pytest.raises(InvalidTokenError, match="expired"):
            issuer.verify_token(token)

    def test_garbage(self, issuer):
        """Test malformed tokens are rejected."""
        with pytest.raises(InvalidTokenError):
            issuer.verify_token("not-a-jwt")

    def test_non_numeric_subject(self, issuer):
        """Test a subject that is not a user id is rejected."""
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": "abc", "iss": "notekeeper", "iat": now, "exp": now + timedelta(hours=1)},
            SECRET,
            algorithm=ALGORITHM,
        )

        with pytest.raises(InvalidTokenError, match="subject"):
            issuer.verify_token(token)
