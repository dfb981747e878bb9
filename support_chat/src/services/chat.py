from __future__ import annotations

import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Optional

from .. import config
from ..clients import webhook
from ..errors import ChatError, TimeoutExceeded
from ..schemas import Message, ServiceInfo, UserInfo, WorkflowPayload
from .message_store import MessageStore
from .waiter import ResponseWaiter

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase

SendQuery = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def new_conversation_id() -> str:
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"conv_{int(time.time() * 1000)}_{suffix}"


def build_workflow_payload(
    *,
    conversation_id: str,
    query: str,
    language: str,
    service: ServiceInfo | None = None,
    user: UserInfo | None = None,
    service_id: Any = None,
) -> WorkflowPayload:
    service = service or ServiceInfo()
    if service.id is None and service_id not in (None, ""):
        service = service.model_copy(update={"id": service_id})
    return WorkflowPayload(
        conversation_id=conversation_id,
        query=query,
        language=language,
        service=service,
        user=user or UserInfo(),
        timestamp=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    )


def fallback_text(error: Exception) -> str:
    if isinstance(error, TimeoutExceeded):
        return config.FALLBACK_TIMEOUT_MESSAGE
    return config.FALLBACK_ERROR_MESSAGE


@dataclass
class ChatResult:
    conversation_id: str
    user_message: Optional[Message]
    reply: Optional[Message]
    fallback: Optional[str] = None
    error_code: Optional[str] = None


class ChatService:
    """Store the user's question, hand it to the workflow engine and wait for the agent."""

    def __init__(
        self,
        store: MessageStore,
        *,
        send_query: SendQuery | None = None,
        max_wait_seconds: float | None = None,
        poll_interval_seconds: float | None = None,
    ):
        self._store = store
        self._send_query = send_query or webhook.send_query
        self._max_wait_seconds = max_wait_seconds
        self._poll_interval_seconds = poll_interval_seconds

    async def ask(
        self,
        *,
        query: str,
        language: str,
        user: UserInfo | None = None,
        service: ServiceInfo | None = None,
        conversation_id: str | None = None,
        service_id: Any = None,
    ) -> ChatResult:
        user = user or UserInfo()
        user_id = str(user.id) if user.id is not None else None

        # Store errors on the user's own message bubble up: nothing was sent yet.
        user_message = await self._store.create_message(query, user_id, conversation_id, "user")
        conversation_id = user_message.conversation_id

        payload = build_workflow_payload(
            conversation_id=conversation_id,
            query=query,
            language=language,
            service=service,
            user=user,
            service_id=service_id,
        )
        try:
            await self._send_query(payload.to_wire())
            reply = await ResponseWaiter(
                self._store,
                conversation_id,
                user_message.id,
                max_wait_seconds=self._max_wait_seconds,
                poll_interval_seconds=self._poll_interval_seconds,
            ).wait()
        except ChatError as e:
            logger.info("Chat reply unavailable conversation_id=%s code=%s", conversation_id, e.code)
            return ChatResult(
                conversation_id=conversation_id,
                user_message=user_message,
                reply=None,
                fallback=fallback_text(e),
                error_code=e.code,
            )

        return ChatResult(conversation_id=conversation_id, user_message=user_message, reply=reply)
