from __future__ import annotations

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel

from ..config import DATABASE_URL
from . import models  # noqa: F401  (registers tables on SQLModel.metadata)


_ENGINE: Optional[AsyncEngine] = None


def get_engine() -> AsyncEngine:
    global _ENGINE
    if _ENGINE is None:
        if not DATABASE_URL:
            raise RuntimeError("DATABASE_URL is not set")
        _ENGINE = create_async_engine(DATABASE_URL, pool_pre_ping=True)
    return _ENGINE


async def create_tables(engine: AsyncEngine | None = None) -> None:
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def dispose_engine() -> None:
    global _ENGINE
    if _ENGINE is not None:
        await _ENGINE.dispose()
        _ENGINE = None
