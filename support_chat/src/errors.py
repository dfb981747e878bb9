"""Error taxonomy shared by the store client, the workflow dispatcher and the poll loops.

Every error carries a machine-readable `code` and the HTTP status the API layer
renders it with. Callers that need a user-facing text (see `services.chat`) tell
`TimeoutExceeded` apart from the rest.
"""

from __future__ import annotations


class ChatError(Exception):
    code = "chat_error"
    http_status = 500

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        # Upstream HTTP status, when the error came from one.
        self.status_code = status_code


class ValidationError(ChatError):
    """Missing or malformed request fields, or a 4xx from the store."""

    code = "validation_error"
    http_status = 400


class StoreUnavailable(ChatError):
    """Transport failure or non-2xx from the message store."""

    code = "store_unavailable"


class WebhookUnavailable(ChatError):
    """Forwarding to the workflow engine failed."""

    code = "webhook_unavailable"


class TimeoutExceeded(ChatError):
    """No agent reply arrived before the deadline."""

    code = "timeout_exceeded"
    http_status = 504
