from __future__ import annotations

import uuid

import jwt
import pytest

from collabhub.application.exceptions import AuthenticationError, AuthFailure
from collabhub.config import settings
from collabhub.infrastructure.auth.claims import principal_from_claims
from collabhub.infrastructure.auth.hs256_verifier import HS256Verifier
from collabhub.services import auth_service
from tests.conftest import FakeUoW, make_token, make_user


@pytest.fixture
def verifier() -> HS256Verifier:
    return HS256Verifier(settings.JWT_SECRET, settings.JWT_ALGORITHM)


@pytest.mark.asyncio
async def test_authenticate_resolves_user(verifier):
    uow = FakeUoW()
    user = make_user()
    uow.users.add(user)

    resolved = await auth_service.authenticate(make_token(user.id), verifier, uow)

    assert resolved == user


@pytest.mark.asyncio
@pytest.mark.parametrize("token", [None, ""])
async def test_authenticate_without_token(verifier, token):
    with pytest.raises(AuthenticationError) as exc_info:
        await auth_service.authenticate(token, verifier, FakeUoW())
    assert exc_info.value.reason == AuthFailure.MISSING_TOKEN


@pytest.mark.asyncio
async def test_expired_token_is_distinguished(verifier):
    uow = FakeUoW()
    user = make_user()
    uow.users.add(user)

    with pytest.raises(AuthenticationError) as exc_info:
        await auth_service.authenticate(make_token(user.id, expired=True), verifier, uow)
    assert exc_info.value.expired is True


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["garbage", make_token(uuid.uuid4(), secret="x" * 40)])
async def test_invalid_token(verifier, token):
    with pytest.raises(AuthenticationError) as exc_info:
        await verifier.verify(token)
    assert exc_info.value.reason == AuthFailure.INVALID
    assert exc_info.value.expired is False


@pytest.mark.asyncio
async def test_unknown_user_is_invalid(verifier):
    with pytest.raises(AuthenticationError) as exc_info:
        await auth_service.authenticate(make_token(uuid.uuid4()), verifier, FakeUoW())
    assert exc_info.value.reason == AuthFailure.INVALID
    assert exc_info.value.detail == "User not found"


def test_claims_accept_legacy_user_id():
    user_id = uuid.uuid4()

    assert principal_from_claims({"userId": str(user_id)}).user_id == user_id


@pytest.mark.parametrize("payload", [{}, {"sub": "42"}])
def test_claims_require_uuid_subject(payload):
    with pytest.raises(AuthenticationError):
        principal_from_claims(payload)


@pytest.mark.asyncio
async def test_verifier_reads_roles(verifier):
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "roles": ["admin"]},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )

    principal = await verifier.verify(token)

    assert principal.roles == ["admin"]
