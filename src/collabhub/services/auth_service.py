from __future__ import annotations

from collabhub.application.exceptions import AuthenticationError, AuthFailure
from collabhub.application.ports.auth import TokenVerifier
from collabhub.application.uow import UnitOfWork
from collabhub.domain.entities.user import UserIdentity


async def authenticate(
    token: str | None,
    verifier: TokenVerifier,
    uow: UnitOfWork,
) -> UserIdentity:
    """Resolve a bearer credential to the user it was issued for.

    Raises ``AuthenticationError`` with ``EXPIRED_TOKEN`` when the credential
    is well-formed but stale, so callers can prompt a re-login instead of
    treating it as forged.
    """
    if not token:
        raise AuthenticationError(AuthFailure.MISSING_TOKEN, "No token provided")

    principal = await verifier.verify(token)
    user = await uow.users.get_by_id(principal.user_id)
    if user is None:
        raise AuthenticationError(AuthFailure.INVALID, "User not found")
    return user
