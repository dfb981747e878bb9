"""SQLModel-backed MessageStore for local development and tests."""

from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..db.models import Conversation, Message as MessageRow
from ..errors import StoreUnavailable, ValidationError
from ..schemas import Message, MessageType

logger = logging.getLogger(__name__)


def _to_message(row: MessageRow) -> Message:
    return Message(
        id=str(row.id),
        conversation_id=row.conversation_id,
        content=row.content,
        type=row.type,
        timestamp=row.created_at,
        user_id=row.user_id,
    )


class SqlMessageStore:
    def __init__(self, engine: AsyncEngine):
        self._engine = engine

    def _session(self) -> AsyncSession:
        return AsyncSession(self._engine, expire_on_commit=False)

    async def create_conversation(self) -> str:
        conversation = Conversation(id=str(uuid.uuid4()))
        try:
            async with self._session() as session:
                session.add(conversation)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not create conversation: {e.__class__.__name__}") from e
        logger.info("Created conversation %s", conversation.id)
        return conversation.id

    async def create_message(
        self,
        content: str,
        user_id: Optional[str],
        conversation_id: Optional[str] = None,
        type: MessageType = "user",
    ) -> Message:
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Message content must be a non-empty string")
        if type not in ("user", "agent"):
            raise ValidationError(f"Unknown message type: {type!r}")

        if not conversation_id:
            conversation_id = await self.create_conversation()

        row = MessageRow(
            conversation_id=conversation_id,
            type=type,
            content=content,
            user_id=str(user_id) if user_id is not None else None,
        )
        try:
            async with self._session() as session:
                session.add(row)
                await session.commit()
                await session.refresh(row)
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not create message: {e.__class__.__name__}") from e
        return _to_message(row)

    async def get_messages(self, conversation_id: str) -> List[Message]:
        stmt = (
            select(MessageRow)
            .where(MessageRow.conversation_id == conversation_id)
            .order_by(MessageRow.created_at.asc(), MessageRow.id.asc())
        )
        try:
            async with self._session() as session:
                rows = (await session.exec(stmt)).all()
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read messages: {e.__class__.__name__}") from e
        return [_to_message(row) for row in rows]
