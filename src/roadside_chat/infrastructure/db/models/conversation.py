from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Index, String, Text, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from roadside_chat.infrastructure.db.base import Base


class ConversationModel(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="direct")
    name: Mapped[str] = mapped_column(String(120), nullable=False, default="", server_default="")
    avatar: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    # sorted "a:b" for direct conversations, NULL for groups
    direct_key: Mapped[str | None] = mapped_column(String(200), nullable=True)
    # no FK: messages already reference conversations
    last_message_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )

    participants = relationship(
        "ParticipantModel",
        back_populates="conversation",
        lazy="selectin",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    messages = relationship("MessageModel", back_populates="conversation", lazy="noload")

    __table_args__ = (
        UniqueConstraint("direct_key", name="uq_conversation_direct_key"),
        Index("ix_conversations_updated", updated_at.desc()),
    )
