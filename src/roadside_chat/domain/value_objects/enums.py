from __future__ import annotations

from enum import StrEnum


class ConversationType(StrEnum):
    DIRECT = "direct"
    GROUP = "group"


class AssistStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class CallKind(StrEnum):
    VIDEO = "video"
    AUDIO = "audio"


class CallAction(StrEnum):
    ACCEPT = "call:accept"
    REJECT = "call:reject"
    CANCEL = "call:cancel"
