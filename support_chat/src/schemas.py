from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MessageType = Literal["user", "agent"]

# The widget historically tagged replies as "assistant".
_TYPE_ALIASES = {"assistant": "agent"}


class Message(BaseModel):
    """Chat message. Accepts snake_case (store records) or camelCase; serializes camelCase."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    conversation_id: str = Field(alias="conversationId")
    content: str = ""
    type: MessageType
    timestamp: Optional[datetime] = None
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("id", "conversation_id", "user_id", mode="before")
    @classmethod
    def _ids_as_str(cls, v: Any) -> Any:
        # Directus returns integer primary keys and may expand relations into objects.
        if isinstance(v, dict):
            v = v.get("id")
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(int(v))
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return _TYPE_ALIASES.get(v, v)
        return v

    @field_validator("content", mode="before")
    @classmethod
    def _content_none(cls, v: Any) -> Any:
        return "" if v is None else v


class ServiceInfo(BaseModel):
    """Service context forwarded to the workflow engine."""

    id: Any = None
    title: Optional[str] = None
    description: Optional[str] = None
    prompt: Optional[str] = None
    links: Any = None
    documents: Any = None


class UserInfo(BaseModel):
    id: Any = None
    name: Optional[str] = None
    email: Optional[str] = None


class WorkflowPayload(BaseModel):
    """Body POSTed to the n8n webhook."""

    model_config = ConfigDict(populate_by_name=True)

    conversation_id: str = Field(alias="conversationId")
    query: str
    language: str
    service: ServiceInfo = Field(default_factory=ServiceInfo)
    user: UserInfo = Field(default_factory=UserInfo)
    timestamp: str

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
