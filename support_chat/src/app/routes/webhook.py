import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from ..schemas.chat import AgentReplyRequest, QueryRequest
from ...clients import webhook
from ...errors import ValidationError
from ...services.chat import build_workflow_payload, new_conversation_id
from ...services.message_store import MessageStore
from ...services.store_factory import get_default_store


logger = logging.getLogger(__name__)

router = APIRouter()

_QUERY_FIELDS_ERROR = "Missing required fields: query, serviceId, language"
_REPLY_FIELDS_ERROR = "Missing required fields: response, conversationId"


async def _read_json_object(request: Request) -> Dict[str, Any]:
    try:
        data = await request.json()
    except ValueError:
        raise ValidationError("Request body must be valid JSON")
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


@router.post("/api/webhook")
async def receive_query(request: Request):
    """
    Forward a user query to the workflow engine.
    The engine answers out of band by writing an agent message for `conversationId`.
    """
    data = await _read_json_object(request)
    try:
        body = QueryRequest.model_validate(data)
    except PydanticValidationError:
        raise ValidationError(_QUERY_FIELDS_ERROR)
    if not body.query or body.service_id in (None, "") or not body.language:
        raise ValidationError(_QUERY_FIELDS_ERROR)

    conversation_id = body.conversation_id or new_conversation_id()
    payload = build_workflow_payload(
        conversation_id=conversation_id,
        query=body.query,
        language=body.language,
        service=body.service,
        user=body.user,
        service_id=body.service_id,
    )
    response = await webhook.send_query(payload.to_wire())
    return {**response, "conversationId": conversation_id}


@router.put("/api/webhook")
async def receive_reply(request: Request, store: MessageStore = Depends(get_default_store)):
    """Store an agent reply pushed by the workflow engine."""
    data = await _read_json_object(request)
    try:
        body = AgentReplyRequest.model_validate(data)
    except PydanticValidationError:
        raise ValidationError(_REPLY_FIELDS_ERROR)
    if not body.response or not body.conversation_id:
        raise ValidationError(_REPLY_FIELDS_ERROR)

    message = await store.create_message(body.response, body.user_id, body.conversation_id, "agent")
    logger.info("Stored agent reply conversation_id=%s message_id=%s", message.conversation_id, message.id)
    return {
        "success": True,
        "message": "Response processed successfully",
        "conversationId": message.conversation_id,
        "messageId": message.id,
    }
