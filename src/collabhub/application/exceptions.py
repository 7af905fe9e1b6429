from __future__ import annotations

from enum import StrEnum


class AppError(Exception):
    """Base application error."""

    code = "error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    code = "not_found"


class AuthorizationError(AppError):
    code = "forbidden"


class ValidationError(AppError):
    code = "validation_error"


class PersistenceError(AppError):
    code = "persistence_error"


class AuthFailure(StrEnum):
    MISSING_TOKEN = "missing_token"
    EXPIRED_TOKEN = "expired_token"
    INVALID = "invalid"


class AuthenticationError(AppError):
    code = "unauthenticated"

    def __init__(self, reason: AuthFailure, detail: str = "") -> None:
        self.reason = reason
        super().__init__(detail or reason.value)

    @property
    def expired(self) -> bool:
        return self.reason == AuthFailure.EXPIRED_TOKEN
