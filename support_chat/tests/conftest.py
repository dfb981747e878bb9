import os

# Ensure config reads these during import in tests.
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("N8N_WEBHOOK_URL", "http://n8n.test/webhook/support")

from datetime import datetime, timezone

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine

from support_chat.src.app.main import app
from support_chat.src.db.session import create_tables
from support_chat.src.schemas import Message
from support_chat.src.services.sql_store import SqlMessageStore
from support_chat.src.services.store_factory import get_default_store


class InMemoryStore:
    """MessageStore double; insertion order is timestamp order."""

    def __init__(self):
        self.conversations: list[str] = []
        self.messages: list[Message] = []
        self.get_calls = 0
        self._seq = 0

    async def create_conversation(self) -> str:
        conversation_id = f"c{len(self.conversations) + 1}"
        self.conversations.append(conversation_id)
        return conversation_id

    async def create_message(self, content, user_id, conversation_id=None, type="user") -> Message:
        if not conversation_id:
            conversation_id = await self.create_conversation()
        self._seq += 1
        message = Message(
            id=str(self._seq),
            conversation_id=conversation_id,
            content=content,
            type=type,
            user_id=user_id,
            timestamp=datetime.now(timezone.utc),
        )
        self.messages.append(message)
        return message

    async def get_messages(self, conversation_id: str) -> list[Message]:
        self.get_calls += 1
        return [m for m in self.messages if m.conversation_id == conversation_id]


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def client(memory_store):
    app.dependency_overrides[get_default_store] = lambda: memory_store
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def engine(tmp_path):
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}")
    await create_tables(test_engine)
    try:
        yield test_engine
    finally:
        await test_engine.dispose()


@pytest.fixture
def sql_store(engine):
    return SqlMessageStore(engine)
