from __future__ import annotations

import re

from .. import config


_RE_BEARER = re.compile(r"(?i)\bBearer\s+([A-Za-z0-9._\-+/=]{8,})")
_RE_ACCESS_TOKEN = re.compile(r"(?i)\b(access_token=)[^&\s\"']+")
_RE_JWT = re.compile(r"\beyJ[A-Za-z0-9_\-]{8,}\.[A-Za-z0-9_\-]{8,}\.[A-Za-z0-9_\-]{8,}\b")

_MAX_LOGGED_CHARS = 500


def redact_secrets(text: str) -> str:
    """
    Best-effort secret redaction for logged and returned upstream error text.

    Strips bearer headers, `access_token` query params (Directus accepts them),
    JWTs and the literal values of the configured CMS and n8n tokens.
    """
    if not text:
        return text

    out = text
    for secret in (config.DIRECTUS_TOKEN, config.N8N_AUTH_TOKEN):
        if secret and len(secret) >= 4:
            out = out.replace(secret, "[REDACTED]")
    out = _RE_BEARER.sub("Bearer [REDACTED]", out)
    out = _RE_ACCESS_TOKEN.sub(r"\1[REDACTED]", out)
    out = _RE_JWT.sub("[REDACTED]", out)
    return out


def snippet(text: str | None) -> str:
    """Redacted, truncated upstream body for log lines."""
    return redact_secrets((text or "")[:_MAX_LOGGED_CHARS])
