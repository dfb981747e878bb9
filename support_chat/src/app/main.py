"""FastAPI backend for the support chat widget."""

from __future__ import annotations

import logging
import re
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .routes import catalog as catalog_routes
from .routes import chat as chat_routes
from .routes import conversations as conversations_routes
from .routes import webhook as webhook_routes
from .. import config
from ..clients import http
from ..db import session as db_session
from ..errors import ChatError
from ..utils.logging_config import setup_logging
from ..utils.redact import redact_secrets

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    client = http.build_client()
    http.set_client(client)
    if not config.DIRECTUS_URL and config.DATABASE_URL:
        await db_session.create_tables()
        logger.info("Using local SQL message store")
    elif not config.DIRECTUS_URL:
        logger.warning("No message store configured; set DIRECTUS_URL or DATABASE_URL")
    try:
        yield
    finally:
        http.set_client(None)
        await client.aclose()
        await db_session.dispose_engine()


app = FastAPI(title="Support Chat API", lifespan=lifespan)

_cors_origins = config.cors_allow_origins()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins,
    allow_credentials=False if _cors_origins == ["*"] else True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _safe_detail(detail: object) -> str:
    if isinstance(detail, str):
        return detail
    return "Request failed"


def _maybe_error_code(detail: str) -> str | None:
    if re.fullmatch(r"[a-z0-9_]+", detail or ""):
        return detail
    return None


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or str(uuid.uuid4())


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Support Chat API"}


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(ChatError)
async def chat_error_handler(request: Request, exc: ChatError):
    request_id = _request_id(request)
    payload: dict[str, object] = {"error_code": exc.code, "request_id": request_id}
    if exc.http_status >= 500 and exc.http_status != 504:
        payload["error"] = "Internal server error"
        payload["details"] = redact_secrets(exc.message)
        logger.warning("%s request_id=%s details=%s", exc.code, request_id, payload["details"])
    else:
        payload["error"] = exc.message
        logger.info("%s %s request_id=%s", exc.http_status, exc.code, request_id)
    resp = JSONResponse(status_code=exc.http_status, content=payload)
    resp.headers["X-Request-ID"] = request_id
    return resp


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    request_id = _request_id(request)
    detail = _safe_detail(exc.detail)
    payload: dict[str, object] = {"detail": detail, "request_id": request_id}
    code = _maybe_error_code(detail)
    if code:
        payload["error_code"] = code
    logger.info("HTTPException %s request_id=%s detail=%s", exc.status_code, request_id, detail)
    resp = JSONResponse(status_code=exc.status_code, content=payload)
    resp.headers["X-Request-ID"] = request_id
    return resp


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    request_id = _request_id(request)
    logger.exception("Unhandled exception request_id=%s", request_id)
    resp = JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "request_id": request_id, "error_code": "internal_server_error"},
    )
    resp.headers["X-Request-ID"] = request_id
    return resp


app.include_router(webhook_routes.router)
app.include_router(conversations_routes.router)
app.include_router(chat_routes.router)
app.include_router(catalog_routes.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8001)
