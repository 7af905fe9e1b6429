from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID


@dataclass(frozen=True, slots=True)
class Principal:
    """Caller identity extracted from a verified JWT, before the user lookup."""

    user_id: UUID
    roles: list[str] = field(default_factory=list)
