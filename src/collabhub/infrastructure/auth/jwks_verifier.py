from __future__ import annotations

import logging

import jwt
from jwt import PyJWKClient

from collabhub.application.dto.principal import Principal
from collabhub.application.exceptions import AuthenticationError, AuthFailure
from collabhub.infrastructure.auth.claims import principal_from_claims

logger = logging.getLogger(__name__)


class JWKSVerifier:
    """Verify JWTs using a remote JWKS endpoint."""

    def __init__(self, jwks_url: str) -> None:
        self._jwks_url = jwks_url
        self._jwk_client = PyJWKClient(jwks_url)

    async def verify(self, token: str) -> Principal:
        try:
            signing_key = self._jwk_client.get_signing_key_from_jwt(token)
            payload = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256", "ES256"],
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError(AuthFailure.EXPIRED_TOKEN, "Token expired") from exc
        except jwt.PyJWKClientError as exc:
            logger.warning("JWKS lookup failed for %s: %s", self._jwks_url, exc)
            raise AuthenticationError(AuthFailure.INVALID, "Signing key unavailable") from exc
        except jwt.PyJWTError as exc:
            raise AuthenticationError(AuthFailure.INVALID, "Invalid token") from exc
        return principal_from_claims(payload)
