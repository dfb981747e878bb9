"""Bounded wait for an agent reply on a store that only supports reads.

A waiter moves from "waiting" to exactly one terminal state:

- "resolved": the latest message is an agent message other than the one that
  triggered the wait, and the triggering message is present in the same read;
- "timed_out": the deadline passed first (TimeoutExceeded);
- "failed": a store read failed (the store error propagates, no retry here).
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Literal, Optional

from .. import config
from ..errors import TimeoutExceeded
from ..schemas import Message
from .message_store import MessageStore, latest_message

logger = logging.getLogger(__name__)

WaitState = Literal["waiting", "resolved", "timed_out", "failed"]

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


def is_reply(message: Optional[Message], last_known_message_id: Optional[str]) -> bool:
    if message is None or message.type != "agent":
        return False
    return last_known_message_id is None or message.id != str(last_known_message_id)


def _contains(messages: List[Message], message_id: Optional[str]) -> bool:
    # `latest` only counts as newer than the trigger when both are in the same read.
    return message_id is None or any(m.id == str(message_id) for m in messages)


class ResponseWaiter:
    def __init__(
        self,
        store: MessageStore,
        conversation_id: str,
        last_known_message_id: Optional[str] = None,
        *,
        max_wait_seconds: float | None = None,
        poll_interval_seconds: float | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self.store = store
        self.conversation_id = conversation_id
        self.last_known_message_id = last_known_message_id
        self.max_wait_seconds = (
            max_wait_seconds if max_wait_seconds is not None else config.RESPONSE_MAX_WAIT_SECONDS
        )
        interval = (
            poll_interval_seconds if poll_interval_seconds is not None else config.RESPONSE_POLL_INTERVAL_SECONDS
        )
        if interval <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self.poll_interval_seconds = interval
        self._sleep = sleep
        self._clock = clock
        self.state: WaitState = "waiting"
        self.polls = 0

    async def wait(self) -> Message:
        if self.state != "waiting":
            raise RuntimeError(f"ResponseWaiter already finished ({self.state})")

        started = self._clock()
        while True:
            self.polls += 1
            try:
                messages = await self.store.get_messages(self.conversation_id)
            except Exception:
                self.state = "failed"
                logger.warning(
                    "Reply wait failed conversation_id=%s polls=%s", self.conversation_id, self.polls
                )
                raise

            latest = latest_message(messages)
            if is_reply(latest, self.last_known_message_id) and _contains(messages, self.last_known_message_id):
                self.state = "resolved"
                logger.debug(
                    "Reply received conversation_id=%s message_id=%s polls=%s",
                    self.conversation_id,
                    latest.id,
                    self.polls,
                )
                return latest

            elapsed = self._clock() - started
            if elapsed >= self.max_wait_seconds:
                self.state = "timed_out"
                logger.info(
                    "No reply within %.1fs conversation_id=%s polls=%s",
                    self.max_wait_seconds,
                    self.conversation_id,
                    self.polls,
                )
                raise TimeoutExceeded(
                    f"No agent reply within {self.max_wait_seconds:g}s for conversation {self.conversation_id}"
                )

            await self._sleep(self.poll_interval_seconds)


async def wait_for_response(
    store: MessageStore,
    conversation_id: str,
    last_known_message_id: Optional[str] = None,
    **kwargs,
) -> Message:
    return await ResponseWaiter(store, conversation_id, last_known_message_id, **kwargs).wait()
