"""
backend/estate_reviews/database/session.py

Async engine and request-scoped sessions for the review engine.

One session serves a whole request: the SQL review store and the entity
gateway share it, so a review write and the aggregate write-back that
follows it run on the same connection. Objects outlive their commit
(`expire_on_commit=False`) because responses are built after the write.
A rollback still expires them, so services serialize reviews to schemas
before any step that may roll back.
"""

import logging
from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from estate_reviews.core.config import settings

logger = logging.getLogger(__name__)

engine = create_async_engine(settings.db_url, echo=False, pool_pre_ping=True)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yields the request's session; an exception escaping the handler rolls it back."""
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            logger.warning("[DB] Request failed, rolling back session")
            await db.rollback()
            raise
