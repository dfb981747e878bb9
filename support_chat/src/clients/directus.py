"""Directus item-store clients: conversations/messages and the service catalog."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Type

import httpx
from pydantic import ValidationError as PydanticValidationError

from .. import config
from ..errors import ChatError, StoreUnavailable, ValidationError
from ..schemas import Message, MessageType
from ..utils.redact import snippet
from . import http

logger = logging.getLogger(__name__)

_MESSAGE_TYPES = ("user", "agent")


class DirectusClient:
    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = (base_url if base_url is not None else config.DIRECTUS_URL) or None
        self.token = token if token is not None else config.DIRECTUS_TOKEN
        self._client = client

    def _http(self) -> httpx.AsyncClient:
        return self._client if self._client is not None else http.get_client()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        client_error: Type[ChatError] = StoreUnavailable,
    ) -> Any:
        """Issue one request and return the `data` member of the response body.

        Transport errors and 5xx raise StoreUnavailable; 4xx raise `client_error`.
        """
        if not self.base_url:
            raise StoreUnavailable("Directus is not configured (DIRECTUS_URL is unset)")

        url = f"{self.base_url}{path}"
        try:
            resp = await self._http().request(
                method,
                url,
                params=params,
                json=json,
                headers=http.bearer_headers(self.token),
            )
        except httpx.HTTPError as e:
            logger.warning("Directus %s %s transport error: %s", method, path, e)
            raise StoreUnavailable(f"Directus request failed: {e.__class__.__name__}") from e

        status_code = resp.status_code
        if status_code >= 400:
            logger.warning("Directus %s %s -> HTTP %s: %s", method, path, status_code, snippet(resp.text))
            error_cls = client_error if 400 <= status_code < 500 else StoreUnavailable
            raise error_cls(f"Directus API error: HTTP {status_code}", status_code=status_code)

        if status_code == 204 or not resp.content:
            return None
        try:
            body = resp.json()
        except ValueError as e:
            raise StoreUnavailable("Directus returned a non-JSON body", status_code=status_code) from e
        if not isinstance(body, dict):
            raise StoreUnavailable("Directus returned an unexpected body", status_code=status_code)
        return body.get("data")


class DirectusMessageStore(DirectusClient):
    """MessageStore backed by two Directus collections."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        conversations_collection: str | None = None,
        messages_collection: str | None = None,
    ):
        super().__init__(base_url, token, client=client)
        self.conversations_collection = conversations_collection or config.DIRECTUS_CONVERSATIONS_COLLECTION
        self.messages_collection = messages_collection or config.DIRECTUS_MESSAGES_COLLECTION

    async def create_conversation(self) -> str:
        data = await self._request("POST", f"/items/{self.conversations_collection}", json={})
        if not isinstance(data, dict) or data.get("id") in (None, ""):
            raise StoreUnavailable("Directus did not return a conversation id")
        conversation_id = str(data["id"])
        logger.info("Created conversation %s", conversation_id)
        return conversation_id

    async def create_message(
        self,
        content: str,
        user_id: Optional[str],
        conversation_id: Optional[str] = None,
        type: MessageType = "user",
    ) -> Message:
        if not isinstance(content, str) or not content.strip():
            raise ValidationError("Message content must be a non-empty string")
        if type not in _MESSAGE_TYPES:
            raise ValidationError(f"Unknown message type: {type!r}")

        if not conversation_id:
            conversation_id = await self.create_conversation()

        payload: dict[str, Any] = {
            "content": content,
            "user_id": user_id,
            "conversation_id": conversation_id,
            "type": type,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        data = await self._request(
            "POST",
            f"/items/{self.messages_collection}",
            json=payload,
            client_error=ValidationError,
        )
        if not isinstance(data, dict):
            raise StoreUnavailable("Directus did not return the created message")
        try:
            # Directus may omit fields the token cannot read back; fall back to what we sent.
            return Message.model_validate({**payload, **{k: v for k, v in data.items() if v is not None}})
        except PydanticValidationError as e:
            raise StoreUnavailable("Directus returned a malformed message record") from e

    async def get_messages(self, conversation_id: str) -> List[Message]:
        params = {
            "filter[conversation_id][_eq]": conversation_id,
            "sort": "timestamp,id",
            "limit": "-1",
        }
        data = await self._request("GET", f"/items/{self.messages_collection}", params=params)
        messages: List[Message] = []
        for item in data or []:
            try:
                messages.append(Message.model_validate(item))
            except PydanticValidationError:
                logger.error(
                    "Skipping malformed message record in conversation %s: id=%s",
                    conversation_id,
                    item.get("id") if isinstance(item, dict) else None,
                )
        return messages


class DirectusCatalog(DirectusClient):
    """Read-only access to support services and their FAQs."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        services_collection: str | None = None,
        documents_field: str | None = None,
    ):
        super().__init__(base_url, token, client=client)
        self.services_collection = services_collection or config.DIRECTUS_SERVICES_COLLECTION
        self.documents_field = documents_field or config.DIRECTUS_DOCUMENTS_FIELD

    async def get_services(self) -> List[dict[str, Any]]:
        data = await self._request("GET", f"/items/{self.services_collection}", params={"fields": "*"})
        return list(data or [])

    async def _get_service_item(self, service_id: str, fields: str) -> Optional[Any]:
        try:
            return await self._request(
                "GET",
                f"/items/{self.services_collection}/{service_id}",
                params={"fields": fields},
            )
        except StoreUnavailable as e:
            # Directus answers 403 (not 404) for unknown ids when the token lacks access.
            if e.status_code in (403, 404):
                return None
            raise

    async def get_service(self, service_id: str) -> Optional[dict[str, Any]]:
        return await self._get_service_item(service_id, f"*,{self.documents_field}.*")

    async def get_faqs(self, service_id: str) -> Optional[List[dict[str, Any]]]:
        """FAQs of a service; None when the service does not exist."""
        data = await self._get_service_item(service_id, "faqs.*")
        if data is None:
            return None
        if not isinstance(data, dict):
            return []
        return list(data.get("faqs") or [])
