from __future__ import annotations

from ..clients.directus import DirectusCatalog, DirectusMessageStore
from ..config import DATABASE_URL, DIRECTUS_URL
from ..db.session import get_engine
from ..errors import StoreUnavailable
from .message_store import MessageStore
from .sql_store import SqlMessageStore


def get_default_store() -> MessageStore:
    if DIRECTUS_URL:
        return DirectusMessageStore(DIRECTUS_URL)
    if DATABASE_URL:
        return SqlMessageStore(get_engine())
    raise StoreUnavailable("No message store configured (set DIRECTUS_URL or DATABASE_URL)")


def get_catalog() -> DirectusCatalog:
    if not DIRECTUS_URL:
        raise StoreUnavailable("Service catalog requires DIRECTUS_URL")
    return DirectusCatalog(DIRECTUS_URL)
