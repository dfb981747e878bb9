"""Shared httpx client for the CMS and workflow-engine integrations."""

from __future__ import annotations

import logging

import httpx

from ..config import HTTP_MAX_CONNECTIONS, HTTP_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_CLIENT: httpx.AsyncClient | None = None


def build_client() -> httpx.AsyncClient:
    limits = httpx.Limits(
        max_connections=max(1, HTTP_MAX_CONNECTIONS),
        max_keepalive_connections=max(1, HTTP_MAX_CONNECTIONS),
    )
    return httpx.AsyncClient(timeout=httpx.Timeout(HTTP_TIMEOUT_SECONDS), limits=limits)


def set_client(client: httpx.AsyncClient | None) -> None:
    global _CLIENT
    _CLIENT = client


def get_client() -> httpx.AsyncClient:
    global _CLIENT
    if _CLIENT is not None:
        return _CLIENT
    logger.warning("httpx client not set via lifespan; creating a fallback client.")
    _CLIENT = build_client()
    return _CLIENT


async def close_client() -> None:
    global _CLIENT
    client, _CLIENT = _CLIENT, None
    if client is not None:
        await client.aclose()


def bearer_headers(token: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
