"""Continuous delivery of new conversation messages by polling the store."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Optional, Union

from .. import config
from ..schemas import Message
from .message_store import MessageStore, latest_message

logger = logging.getLogger(__name__)

OnMessage = Callable[[Message], Union[None, Awaitable[None]]]
OnError = Callable[[Exception], Union[None, Awaitable[None]]]


async def _call(callback: Callable[[Any], Any], arg: Any) -> None:
    result = callback(arg)
    if inspect.isawaitable(result):
        await result


class MessageSubscription:
    """One polling loop over a conversation.

    Delivers the latest message whenever its id changes, whatever its type.
    Fetch errors go to `on_error` and polling continues; an exception raised by
    a callback is logged and polling continues too. After `cancel()` no new
    callback fires: a check already in flight, including a callback it is
    running, finishes, and a fetch result that arrives after cancel is dropped.
    """

    def __init__(
        self,
        store: MessageStore,
        conversation_id: str,
        on_message: OnMessage,
        on_error: Optional[OnError] = None,
        *,
        poll_interval_seconds: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        interval = (
            poll_interval_seconds if poll_interval_seconds is not None else config.SUBSCRIBER_POLL_INTERVAL_SECONDS
        )
        if interval <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        self.store = store
        self.conversation_id = conversation_id
        self.poll_interval_seconds = interval
        self._on_message = on_message
        self._on_error = on_error
        self._sleep = sleep
        self._cancelled = False
        self._checking = False
        self._task: asyncio.Task | None = None
        self.last_delivered_id: Optional[str] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> "MessageSubscription":
        if self._task is not None:
            raise RuntimeError("Subscription already started")
        self._task = asyncio.get_running_loop().create_task(self._run())
        return self

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug("Subscription cancelled conversation_id=%s", self.conversation_id)
        # Only interrupt the sleep; a running check (and its callback) completes.
        if self._task is not None and not self._checking:
            self._task.cancel()

    async def check(self) -> None:
        self._checking = True
        try:
            await self._check()
        finally:
            self._checking = False

    async def _check(self) -> None:
        try:
            messages = await self.store.get_messages(self.conversation_id)
        except Exception as e:
            if not self._cancelled:
                await self._report(e)
            return

        if self._cancelled:
            return
        latest = latest_message(messages)
        if latest is None or latest.id == self.last_delivered_id:
            return
        self.last_delivered_id = latest.id
        try:
            await _call(self._on_message, latest)
        except Exception:
            logger.exception(
                "Subscription on_message raised conversation_id=%s message_id=%s", self.conversation_id, latest.id
            )

    async def _report(self, error: Exception) -> None:
        if self._on_error is None:
            logger.warning("Subscription poll failed conversation_id=%s: %s", self.conversation_id, error)
            return
        try:
            await _call(self._on_error, error)
        except Exception:
            logger.exception("Subscription on_error raised conversation_id=%s", self.conversation_id)

    async def _run(self) -> None:
        try:
            while not self._cancelled:
                await self.check()
                if self._cancelled:
                    break
                await self._sleep(self.poll_interval_seconds)
        except asyncio.CancelledError:
            if not self._cancelled:
                raise

    async def wait_closed(self) -> None:
        if self._task is not None:
            await asyncio.gather(self._task, return_exceptions=True)


def subscribe(
    store: MessageStore,
    conversation_id: str,
    on_message: OnMessage,
    on_error: Optional[OnError] = None,
    **kwargs,
) -> Callable[[], None]:
    """Start polling `conversation_id` right away; returns the cancel function.

    Must be called from a running event loop.
    """
    subscription = MessageSubscription(store, conversation_id, on_message, on_error, **kwargs).start()
    return subscription.cancel
