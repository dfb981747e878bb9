from __future__ import annotations

from typing import List, Optional, Protocol

from ..schemas import Message, MessageType


class MessageStore(Protocol):
    """Create/read access to conversations and their messages.

    Implementations never cache: every call reflects the store's current state.
    """

    async def create_conversation(self) -> str: ...

    async def create_message(
        self,
        content: str,
        user_id: Optional[str],
        conversation_id: Optional[str] = None,
        type: MessageType = "user",
    ) -> Message: ...

    async def get_messages(self, conversation_id: str) -> List[Message]: ...


def latest_message(messages: List[Message]) -> Optional[Message]:
    return messages[-1] if messages else None
