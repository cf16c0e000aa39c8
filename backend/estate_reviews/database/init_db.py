"""
init_db.py

Initializes the database by creating all tables defined in the SQLAlchemy models.
Used for local setup and tests; deployed databases are managed with Alembic.
"""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine

from estate_reviews.database.base import Base
from estate_reviews.database import models as entity_models  # noqa: F401
from estate_reviews.review import models as review_models  # noqa: F401


async def init_db(engine: AsyncEngine) -> None:
    """
    Creates all database tables based on SQLAlchemy models.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


if __name__ == "__main__":
    from estate_reviews.database.session import engine

    asyncio.run(init_db(engine))
