from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Read-only view of a user record owned by the auth service."""

    id: str
    name: str
    avatar: str
    email: str
    phone: str
    push_token: str | None = None
