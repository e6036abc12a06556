from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


def direct_key(user_a: str, user_b: str) -> str:
    """Order-independent key identifying the direct conversation of a pair."""
    return ":".join(sorted((user_a, user_b)))


@dataclass(frozen=True, slots=True)
class Conversation:
    id: UUID
    type: str
    participant_ids: tuple[str, ...]
    name: str
    avatar: str
    last_message_id: UUID | None
    created_by: str | None
    created_at: datetime
    updated_at: datetime

    @property
    def direct_key(self) -> str | None:
        if self.type != "direct" or len(self.participant_ids) != 2:
            return None
        return direct_key(*self.participant_ids)

    def has_participant(self, user_id: str) -> bool:
        return user_id in self.participant_ids

    def others(self, user_id: str) -> list[str]:
        return [uid for uid in self.participant_ids if uid != user_id]
