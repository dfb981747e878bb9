import logging


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the support chat service.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.

    Handlers already installed (uvicorn, pytest) are left alone.
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("support_chat").setLevel(level)

    # Every poll is an HTTP request; keep httpx quiet.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
