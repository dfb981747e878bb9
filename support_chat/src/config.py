"""Configuration for the support chat backend."""

import os
from dotenv import load_dotenv

# Load local env files if present (never commit these).
# - `.env.local` is convenient for local dev.
# - `.env` is the default for docker-compose variable substitution.
load_dotenv(dotenv_path=".env.local", override=False)
load_dotenv(dotenv_path=".env", override=False)

# Environment name (used for warnings/behavior toggles)
ENV = os.getenv("ENV", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def _parse_csv_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    items = [v.strip() for v in value.split(",")]
    items = [v for v in items if v]
    return items or None


def cors_allow_origins() -> list[str]:
    return _parse_csv_list(os.getenv("CORS_ALLOW_ORIGINS")) or ["*"]


# Directus (headless CMS) holding conversations, messages and the service catalog.
DIRECTUS_URL = (os.getenv("DIRECTUS_URL") or "").rstrip("/") or None
DIRECTUS_TOKEN = os.getenv("DIRECTUS_TOKEN")
DIRECTUS_CONVERSATIONS_COLLECTION = os.getenv("DIRECTUS_CONVERSATIONS_COLLECTION", "conversations")
DIRECTUS_MESSAGES_COLLECTION = os.getenv("DIRECTUS_MESSAGES_COLLECTION", "messages")
DIRECTUS_SERVICES_COLLECTION = os.getenv("DIRECTUS_SERVICES_COLLECTION", "poc_service")
DIRECTUS_DOCUMENTS_FIELD = os.getenv("DIRECTUS_DOCUMENTS_FIELD", "poc_docus")

# Local message store (used when DIRECTUS_URL is unset), e.g. sqlite+aiosqlite:///./chat.db
DATABASE_URL = os.getenv("DATABASE_URL")

# n8n workflow engine
N8N_WEBHOOK_URL = os.getenv("N8N_WEBHOOK_URL")
N8N_AUTH_TOKEN = os.getenv("N8N_AUTH_TOKEN")

# Shared httpx client knobs
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30.0"))
HTTP_MAX_CONNECTIONS = int(os.getenv("HTTP_MAX_CONNECTIONS", "10"))

# Reply polling. 12 polls at 5s before giving up.
RESPONSE_POLL_INTERVAL_SECONDS = float(os.getenv("RESPONSE_POLL_INTERVAL_SECONDS", "5.0"))
RESPONSE_MAX_WAIT_SECONDS = float(os.getenv("RESPONSE_MAX_WAIT_SECONDS", "60.0"))
SUBSCRIBER_POLL_INTERVAL_SECONDS = float(os.getenv("SUBSCRIBER_POLL_INTERVAL_SECONDS", "5.0"))

# Texts shown to the user instead of an agent reply.
FALLBACK_TIMEOUT_MESSAGE = os.getenv(
    "FALLBACK_TIMEOUT_MESSAGE",
    "We have not received an answer yet. Please check back in a moment.",
)
FALLBACK_ERROR_MESSAGE = os.getenv(
    "FALLBACK_ERROR_MESSAGE",
    "Sorry, something went wrong while processing your question. Please try again.",
)
