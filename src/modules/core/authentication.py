"""Identity-provider JWT authentication backend for Django REST Framework.

The storefront delegates sign-in to a third-party identity provider.  The
provider issues RS256 JWTs; this backend verifies them against the
provider's JWKS (cached in-memory for 300 s via ``PyJWKClient``) and
exposes the ``sub`` claim as the opaque, stable user identifier.

Security decisions
------------------
* Any decode or validation error returns 401.
* ``algorithms`` is hard-coded to the configured value (default RS256),
  never derived from the incoming token.
* Audience **and** issuer are always validated.
"""

from __future__ import annotations

from typing import Optional

import jwt as pyjwt
import structlog
from django.conf import settings
from jwt import PyJWKClient
from jwt.exceptions import PyJWTError

from rest_framework.authentication import BaseAuthentication
from rest_framework.exceptions import AuthenticationFailed
from rest_framework.request import Request

logger = structlog.get_logger(__name__)

_jwks_client: PyJWKClient | None = None


def _get_jwks_client() -> Optional[PyJWKClient]:
    global _jwks_client
    if _jwks_client is None and settings.IDENTITY_PROVIDER_JWKS_URL:
        _jwks_client = PyJWKClient(
            settings.IDENTITY_PROVIDER_JWKS_URL,
            cache_jwk_set=True,
            lifespan=300,
        )
    return _jwks_client


class IdentityUser:
    """Lightweight user object for requests authenticated by the provider.

    The provider is the source of truth: no local Django ``User`` row is
    required.  ``user_id`` is the opaque identifier used by carts and
    orders.
    """

    def __init__(self, payload: dict):
        self.payload = payload
        self.user_id: str = payload.get("sub", "")

    # DRF checks
    is_authenticated = True
    is_active = True

    @property
    def pk(self) -> str:
        return self.user_id

    def __str__(self) -> str:  # pragma: no cover
        return self.user_id


class IdentityProviderAuthentication(BaseAuthentication):
    """DRF authentication class that validates provider-issued Bearer tokens."""

    keyword = "Bearer"

    def authenticate(self, request):
        """Return ``(IdentityUser, token)`` or ``None`` (no credentials)."""
        header = request.META.get("HTTP_AUTHORIZATION", "")
        if not header:
            return None

        token = self._extract_token(header)
        payload = self._decode_token(token)
        user = IdentityUser(payload)
        if not user.user_id:
            raise AuthenticationFailed("Token has no subject.")

        logger.info("auth.token_accepted", user_id=user.user_id)
        return (user, token)

    def authenticate_header(self, request):
        """Value for the ``WWW-Authenticate`` response header on 401."""
        return f'{self.keyword} realm="api"'

    @staticmethod
    def _extract_token(header: str) -> str:
        parts = header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AuthenticationFailed("Invalid Authorization header format.")
        return parts[1]

    @staticmethod
    def _decode_token(token: str) -> dict:
        jwks_client = _get_jwks_client()
        if jwks_client is None:
            raise AuthenticationFailed("Identity provider is not configured.")
        try:
            signing_key = jwks_client.get_signing_key_from_jwt(token)
            payload = pyjwt.decode(
                token,
                signing_key.key,
                algorithms=[settings.IDENTITY_PROVIDER_ALGORITHM],
                audience=settings.IDENTITY_PROVIDER_AUDIENCE,
                issuer=settings.IDENTITY_PROVIDER_ISSUER,
            )
        except PyJWTError as exc:
            logger.warning("auth.token_rejected", error=str(exc))
            raise AuthenticationFailed(f"Token validation failed: {exc}") from exc
        return payload


def get_user_id(request: Request) -> str:
    """Return the caller's opaque user id, or ``""`` when anonymous.

    Provider-authenticated requests carry an ``IdentityUser``; any other
    authenticated Django user falls back to its primary key.
    """
    user = getattr(request, "user", None)
    if user is None or not user.is_authenticated:
        return ""
    user_id = getattr(user, "user_id", None)
    if user_id:
        return str(user_id)
    return str(user.pk)
