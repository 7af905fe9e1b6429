"""FastAPI dependency injection helpers."""
from __future__ import annotations

from typing import Annotated, AsyncIterator

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.requests import HTTPConnection

from collabhub.application.exceptions import AuthenticationError
from collabhub.application.ports.auth import TokenVerifier
from collabhub.application.uow import UnitOfWork
from collabhub.config import settings
from collabhub.domain.entities.user import UserIdentity
from collabhub.infrastructure.auth.hs256_verifier import HS256Verifier
from collabhub.infrastructure.auth.jwks_verifier import JWKSVerifier
from collabhub.infrastructure.db.uow import open_uow
from collabhub.infrastructure.ws.relay import RealtimeRelay
from collabhub.services import auth_service

_bearer_scheme = HTTPBearer()


async def get_uow() -> AsyncIterator[UnitOfWork]:
    async with open_uow() as uow:
        yield uow


UoWDep = Annotated[UnitOfWork, Depends(get_uow)]


def _get_verifier() -> TokenVerifier:
    if settings.JWT_VERIFY_MODE == "jwks":
        assert settings.JWKS_URL, "JWKS_URL must be set when JWT_VERIFY_MODE=jwks"
        return JWKSVerifier(settings.JWKS_URL)
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


_verifier: TokenVerifier | None = None


def get_verifier() -> TokenVerifier:
    global _verifier  # noqa: PLW0603
    if _verifier is None:
        _verifier = _get_verifier()
    return _verifier


def get_relay(conn: HTTPConnection) -> RealtimeRelay:
    return conn.app.state.relay


RelayDep = Annotated[RealtimeRelay, Depends(get_relay)]


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(_bearer_scheme)],
    uow: UoWDep,
) -> UserIdentity:
    try:
        return await auth_service.authenticate(credentials.credentials, get_verifier(), uow)
    except AuthenticationError as exc:
        detail = "Token expired. Please login again." if exc.expired else "Invalid token."
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
        ) from exc


CurrentUser = Annotated[UserIdentity, Depends(get_current_user)]
