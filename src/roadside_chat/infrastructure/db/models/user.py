from __future__ import annotations

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from roadside_chat.infrastructure.db.base import Base


class UserModel(Base):
    """Users are owned by the auth service; this core reads profiles and stores push tokens."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False, default="", server_default="")
    avatar: Mapped[str] = mapped_column(Text, nullable=False, default="", server_default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="", server_default="")
    phone: Mapped[str] = mapped_column(String(40), nullable=False, default="", server_default="")
    push_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
