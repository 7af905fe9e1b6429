from __future__ import annotations

import uuid
from typing import Any

from collabhub.application.dto.principal import Principal
from collabhub.application.exceptions import AuthenticationError, AuthFailure


def principal_from_claims(payload: dict[str, Any]) -> Principal:
    """Build a Principal from decoded JWT claims (``sub``, legacy ``userId``)."""
    raw_id = payload.get("sub", payload.get("userId"))
    if raw_id is None:
        raise AuthenticationError(AuthFailure.INVALID, "Token has no subject")
    try:
        user_id = uuid.UUID(str(raw_id))
    except ValueError as exc:
        raise AuthenticationError(AuthFailure.INVALID, "Malformed subject") from exc
    return Principal(user_id=user_id, roles=list(payload.get("roles", [])))
