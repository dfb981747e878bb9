"""n8n workflow-engine webhook client."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import httpx

from .. import config
from ..errors import WebhookUnavailable
from ..utils.redact import snippet
from . import http

logger = logging.getLogger(__name__)


async def send_query(
    payload: Dict[str, Any],
    *,
    url: Optional[str] = None,
    token: Optional[str] = None,
    client: httpx.AsyncClient | None = None,
) -> Dict[str, Any]:
    """POST `payload` to the workflow engine exactly once.

    The engine writes its reply into the message store out of band, so only the
    status matters; a JSON object body is passed back to the caller if present.
    """
    target = url if url is not None else config.N8N_WEBHOOK_URL
    if not target:
        raise WebhookUnavailable("Workflow webhook is not configured (N8N_WEBHOOK_URL is unset)")
    auth_token = token if token is not None else config.N8N_AUTH_TOKEN
    client = client if client is not None else http.get_client()

    start = time.monotonic()
    try:
        resp = await client.post(target, headers=http.bearer_headers(auth_token), json=payload)
    except httpx.HTTPError as e:
        logger.warning("n8n webhook transport error: %s", e)
        raise WebhookUnavailable(f"n8n webhook error: {e.__class__.__name__}") from e
    latency_ms = int((time.monotonic() - start) * 1000)

    status_code = resp.status_code
    if status_code >= 400:
        logger.warning("n8n webhook HTTP %s after %sms: %s", status_code, latency_ms, snippet(resp.text))
        raise WebhookUnavailable(f"n8n webhook error: HTTP {status_code}", status_code=status_code)

    logger.info(
        "Forwarded query conversation_id=%s status=%s latency_ms=%s",
        payload.get("conversationId"),
        status_code,
        latency_ms,
    )
    if not resp.content:
        return {}
    try:
        data = resp.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
