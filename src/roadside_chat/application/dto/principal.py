from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller identity extracted from JWT."""

    user_id: str
    name: str = ""
    avatar: str = ""
    roles: list[str] = field(default_factory=list)

    @property
    def is_operator(self) -> bool:
        return "operator" in self.roles or "admin" in self.roles
