"""Server-Sent Events feed of a conversation, driven by a MessageSubscription."""

from __future__ import annotations

import asyncio
import json
from typing import Any, AsyncIterator, Dict

from ..errors import ChatError
from .message_store import MessageStore
from .subscriber import MessageSubscription


def sse(event: Dict[str, Any]) -> str:
    return f"data: {json.dumps(event)}\n\n"


async def message_events(
    store: MessageStore,
    conversation_id: str,
    *,
    poll_interval_seconds: float | None = None,
) -> AsyncIterator[str]:
    """Yield one SSE frame per newly observed message or failed poll.

    The subscription lives as long as the generator; closing it cancels polling.
    """
    queue: asyncio.Queue[Dict[str, Any]] = asyncio.Queue()

    def on_message(message) -> None:
        queue.put_nowait({"type": "message", "data": message.model_dump(by_alias=True, mode="json")})

    def on_error(error: Exception) -> None:
        code = error.code if isinstance(error, ChatError) else "internal_error"
        queue.put_nowait({"type": "error", "error_code": code, "message": str(error)})

    subscription = MessageSubscription(
        store,
        conversation_id,
        on_message,
        on_error,
        poll_interval_seconds=poll_interval_seconds,
    ).start()
    try:
        while True:
            yield sse(await queue.get())
    finally:
        subscription.cancel()
