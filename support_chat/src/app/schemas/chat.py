from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ...schemas import Message, ServiceInfo, UserInfo


class _CamelModel(BaseModel):
    # Workflow engines and CMS relations often send numeric ids.
    model_config = ConfigDict(populate_by_name=True, coerce_numbers_to_str=True)


class QueryRequest(_CamelModel):
    """Body of the boundary webhook. Required fields are checked by the route."""

    query: Optional[str] = None
    service_id: Any = Field(default=None, alias="serviceId")
    language: Optional[str] = None
    service: Optional[ServiceInfo] = None
    user: Optional[UserInfo] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class AgentReplyRequest(_CamelModel):
    """Reply pushed back by the workflow engine."""

    response: Optional[str] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    user_id: Optional[str] = Field(default=None, alias="userId")


class CreateMessageRequest(_CamelModel):
    content: str = Field(min_length=1)
    user_id: Optional[str] = Field(default=None, alias="userId")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")
    type: Literal["user", "agent"] = "user"


class ConversationCreated(BaseModel):
    id: str


class ChatRequest(_CamelModel):
    query: str = Field(min_length=1)
    service_id: Any = Field(default=None, alias="serviceId")
    language: str = Field(min_length=1)
    service: Optional[ServiceInfo] = None
    user: Optional[UserInfo] = None
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")


class ChatResponse(BaseModel):
    """Result of one ask; `reply` is null and `fallback` set when no answer came back."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    user_message: Optional[Message] = Field(default=None, alias="userMessage")
    reply: Optional[Message] = None
    fallback: Optional[str] = None
    error_code: Optional[str] = Field(default=None, alias="errorCode")
