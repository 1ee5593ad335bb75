"""Integration tests for identity-provider JWT authentication.

Validates:
  - /health is public (plain Django view, no DRF).
  - Protected DRF endpoints return 401 without a token or with a bad one.
  - A valid RS256 token exposes its ``sub`` claim as the user id.
"""

from __future__ import annotations

import time
from unittest.mock import MagicMock, patch

import jwt as pyjwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa

pytestmark = pytest.mark.integration

ISSUER = "https://identity.test/"
AUDIENCE = "storefront-api"


@pytest.fixture(scope="module")
def signing_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture()
def identity_provider(settings, signing_key):
    settings.IDENTITY_PROVIDER_ISSUER = ISSUER
    settings.IDENTITY_PROVIDER_AUDIENCE = AUDIENCE
    settings.IDENTITY_PROVIDER_ALGORITHM = "RS256"
    jwks_client = MagicMock()
    jwks_client.get_signing_key_from_jwt.return_value = MagicMock(
        key=signing_key.public_key()
    )
    with patch(
        "modules.core.authentication._get_jwks_client", return_value=jwks_client
    ):
        yield


def _token(signing_key, **claims) -> str:
    payload = {
        "sub": "idp|user_123",
        "iss": ISSUER,
        "aud": AUDIENCE,
        "exp": int(time.time()) + 300,
        **claims,
    }
    return pyjwt.encode(payload, signing_key, algorithm="RS256")


class TestPublicEndpoints:
    def test_health_is_public(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


class TestProtectedEndpoints:
    """All DRF endpoints require a valid JWT by default (Fail Closed)."""

    def test_no_token_returns_401(self, api_client):
        response = api_client.get("/api/v1/me")
        assert response.status_code == 401

    def test_malformed_auth_header_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Token some-token")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_unconfigured_provider_returns_401(self, api_client):
        api_client.credentials(HTTP_AUTHORIZATION="Bearer a.b.c")
        with patch(
            "modules.core.authentication._get_jwks_client", return_value=None
        ):
            assert api_client.get("/api/v1/me").status_code == 401

    def test_401_includes_www_authenticate_header(self, api_client):
        response = api_client.get("/api/v1/me")
        assert "Bearer" in response.get("WWW-Authenticate", "")

    def test_cart_requires_authentication(self, api_client):
        assert api_client.get("/api/v1/cart/").status_code == 401

    def test_payment_confirmation_requires_authentication(self, api_client):
        response = api_client.post(
            "/api/v1/payments/confirm/",
            {"payment_key": "k", "order_id": "o", "amount": "1"},
            format="json",
        )
        assert response.status_code == 401


class TestValidToken:
    def test_sub_claim_is_the_user_id(self, api_client, identity_provider, signing_key):
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {_token(signing_key)}")

        response = api_client.get("/api/v1/me")

        assert response.status_code == 200
        assert response.json() == {"user_id": "idp|user_123"}

    def test_expired_token(self, api_client, identity_provider, signing_key):
        token = _token(signing_key, exp=int(time.time()) - 60)
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_wrong_audience(self, api_client, identity_provider, signing_key):
        token = _token(signing_key, aud="another-api")
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        assert api_client.get("/api/v1/me").status_code == 401

    def test_token_without_subject(self, api_client, identity_provider, signing_key):
        token = _token(signing_key, sub="")
        api_client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
        assert api_client.get("/api/v1/me").status_code == 401
