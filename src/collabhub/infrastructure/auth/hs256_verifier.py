from __future__ import annotations

import jwt

from collabhub.application.dto.principal import Principal
from collabhub.application.exceptions import AuthenticationError, AuthFailure
from collabhub.infrastructure.auth.claims import principal_from_claims


class HS256Verifier:
    """Verify JWTs signed with a shared HS256 secret."""

    def __init__(self, secret: str, algorithm: str = "HS256") -> None:
        self._secret = secret
        self._algorithm = algorithm

    async def verify(self, token: str) -> Principal:
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError(AuthFailure.EXPIRED_TOKEN, "Token expired") from exc
        except jwt.PyJWTError as exc:
            raise AuthenticationError(AuthFailure.INVALID, "Invalid token") from exc
        return principal_from_claims(payload)
