from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Conversation(SQLModel, table=True):
    __tablename__ = "conversations"

    id: str = Field(primary_key=True)
    created_at: datetime = Field(default_factory=utcnow)


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    # Autoincrement id doubles as insertion order for timestamp ties.
    id: Optional[int] = Field(default=None, primary_key=True)
    # No FK: the boundary webhook hands out conversation ids the store never created.
    conversation_id: str = Field(index=True)
    type: str = Field(index=True)  # 'user'|'agent'
    content: str
    user_id: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, index=True)
