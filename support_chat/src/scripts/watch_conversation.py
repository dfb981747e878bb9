from __future__ import annotations

import argparse
import asyncio
import sys

from support_chat.src import config
from support_chat.src.clients import http
from support_chat.src.db.session import dispose_engine
from support_chat.src.schemas import Message
from support_chat.src.services.store_factory import get_default_store
from support_chat.src.services.subscriber import MessageSubscription
from support_chat.src.utils.logging_config import setup_logging


def _print_message(message: Message) -> None:
    stamp = message.timestamp.isoformat() if message.timestamp else "-"
    print(f"[{stamp}] {message.type}#{message.id}: {message.content}", flush=True)


async def _run(conversation_id: str, interval: float, agent_only: bool) -> None:
    store = get_default_store()

    def on_message(message: Message) -> None:
        if agent_only and message.type != "agent":
            return
        _print_message(message)

    def on_error(error: Exception) -> None:
        print(f"poll failed: {error}", file=sys.stderr, flush=True)

    subscription = MessageSubscription(
        store,
        conversation_id,
        on_message,
        on_error,
        poll_interval_seconds=interval,
    ).start()
    try:
        await subscription.wait_closed()
    finally:
        subscription.cancel()
        await http.close_client()
        await dispose_engine()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print new messages of a conversation as they arrive.")
    parser.add_argument("conversation_id")
    parser.add_argument("--interval", type=float, default=config.SUBSCRIBER_POLL_INTERVAL_SECONDS)
    parser.add_argument("--agent-only", action="store_true", help="Only print agent replies")
    args = parser.parse_args()
    setup_logging(config.LOG_LEVEL)
    try:
        asyncio.run(_run(args.conversation_id, args.interval, args.agent_only))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
