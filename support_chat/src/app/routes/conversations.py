from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..schemas.chat import ConversationCreated, CreateMessageRequest
from ...schemas import Message
from ...services.events import message_events
from ...services.message_store import MessageStore
from ...services.store_factory import get_default_store
from ...services.waiter import wait_for_response


router = APIRouter()


@router.post("/api/conversations", response_model=ConversationCreated)
async def create_conversation(store: MessageStore = Depends(get_default_store)):
    """Create an empty conversation."""
    return {"id": await store.create_conversation()}


@router.get("/api/conversations/{conversation_id}/messages", response_model=List[Message])
async def list_messages(conversation_id: str, store: MessageStore = Depends(get_default_store)):
    """Messages of a conversation, oldest first. Unknown conversations are empty."""
    return await store.get_messages(conversation_id)


@router.post("/api/messages", response_model=Message)
async def create_message(request: CreateMessageRequest, store: MessageStore = Depends(get_default_store)):
    """Write one message, creating the conversation when none is given."""
    return await store.create_message(request.content, request.user_id, request.conversation_id, request.type)


@router.get("/api/conversations/{conversation_id}/reply", response_model=Message)
async def wait_for_reply(
    conversation_id: str,
    after: Optional[str] = Query(default=None, description="Id of the message that triggered the wait"),
    timeout: Optional[float] = Query(default=None, gt=0, le=300, description="Seconds to wait"),
    store: MessageStore = Depends(get_default_store),
):
    """
    Block until an agent message newer than `after` is the latest in the conversation.
    Answers 504 (timeout_exceeded) when none shows up in time.
    """
    return await wait_for_response(store, conversation_id, after, max_wait_seconds=timeout)


@router.get("/api/conversations/{conversation_id}/events")
async def stream_messages(conversation_id: str, store: MessageStore = Depends(get_default_store)):
    """
    Stream every new latest message of the conversation as Server-Sent Events.
    Polling stops when the client disconnects.
    """
    return StreamingResponse(
        message_events(store, conversation_id),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
