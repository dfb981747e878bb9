from fastapi import APIRouter, Depends

from ..schemas.chat import ChatRequest, ChatResponse
from ...services.chat import ChatService
from ...services.message_store import MessageStore
from ...services.store_factory import get_default_store


router = APIRouter()


def get_chat_service(store: MessageStore = Depends(get_default_store)) -> ChatService:
    return ChatService(store)


@router.post("/api/chat", response_model=ChatResponse)
async def ask(request: ChatRequest, chat: ChatService = Depends(get_chat_service)):
    """
    Send a question and wait for the agent's answer.
    When the answer does not arrive (timeout or upstream failure) `reply` is null
    and `fallback` holds the text to show instead.
    """
    result = await chat.ask(
        query=request.query,
        language=request.language,
        user=request.user,
        service=request.service,
        conversation_id=request.conversation_id,
        service_id=request.service_id,
    )
    return ChatResponse(
        conversation_id=result.conversation_id,
        user_message=result.user_message,
        reply=result.reply,
        fallback=result.fallback,
        error_code=result.error_code,
    )
