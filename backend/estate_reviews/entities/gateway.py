"""
backend/estate_reviews/entities/gateway.py

Entity Gateway
Read-by-id access to the user, listing and agent stores, plus the only
write the review engine performs on them: the rating aggregate columns
of listings and agents.
"""

import logging
from typing import Protocol

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_reviews.core.exceptions import EntityNotFound, StorageError
from estate_reviews.database.enums import TargetKind
from estate_reviews.database.models import Agent, Listing, User
from estate_reviews.review.schemas import Aggregate, TargetRef

logger = logging.getLogger(__name__)


def aggregate_columns(aggregate: Aggregate) -> dict[str, object]:
    """Maps an aggregate onto the three columns owned by the review engine."""
    return {
        "rating": aggregate.average_rating,
        "review_count": aggregate.review_count,
        "rating_distribution": {str(k): v for k, v in sorted(aggregate.distribution.items())},
    }


class EntityGateway(Protocol):
    """Contract for the external user, listing and agent stores."""

    async def get_user(self, user_id: str) -> User: ...

    async def get_listing(self, listing_id: str) -> Listing: ...

    async def get_agent(self, agent_id: str) -> Agent: ...

    async def update_listing_aggregate(self, listing_id: str, aggregate: Aggregate) -> None: ...

    async def update_agent_aggregate(self, agent_id: str, aggregate: Aggregate) -> None: ...


async def get_target(gateway: EntityGateway, target: TargetRef) -> Listing | Agent:
    """Fetches the listing or agent a target reference points at."""
    if target.kind == TargetKind.LISTING:
        return await gateway.get_listing(target.id)
    return await gateway.get_agent(target.id)


async def update_target_aggregate(
    gateway: EntityGateway, target: TargetRef, aggregate: Aggregate
) -> None:
    """Writes an aggregate back onto the listing or agent it belongs to."""
    if target.kind == TargetKind.LISTING:
        await gateway.update_listing_aggregate(target.id, aggregate)
    else:
        await gateway.update_agent_aggregate(target.id, aggregate)


def target_display_name(entity: Listing | Agent) -> str:
    if isinstance(entity, Listing):
        return entity.title
    return entity.name


# ---------------------------------------------------
# SQLAlchemy Implementation
# ---------------------------------------------------
class SQLEntityGateway:
    """Entity gateway backed by the shared SQL database."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _get(self, model: type, entity_id: str, label: str):
        try:
            entity = await self.db.get(model, entity_id)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[GATEWAY] Failed to load {label} {entity_id}: {e}")
            raise StorageError(f"Failed to load {label}") from e
        if entity is None:
            logger.debug(f"[GATEWAY] {label} {entity_id} not found")
            raise EntityNotFound(f"{label.capitalize()} not found")
        return entity

    async def get_user(self, user_id: str) -> User:
        return await self._get(User, user_id, "user")

    async def get_listing(self, listing_id: str) -> Listing:
        return await self._get(Listing, listing_id, "listing")

    async def get_agent(self, agent_id: str) -> Agent:
        return await self._get(Agent, agent_id, "agent")

    async def _write_aggregate(
        self, model: type[Listing] | type[Agent], entity_id: str, aggregate: Aggregate
    ) -> None:
        stmt = update(model).where(model.id == entity_id).values(**aggregate_columns(aggregate))
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"[GATEWAY] Failed to write aggregate for {model.__tablename__} {entity_id}: {e}")
            raise StorageError("Failed to update rating aggregate") from e

        if result.rowcount == 0:
            raise EntityNotFound(f"{model.__name__} not found")
        logger.info(
            f"[GATEWAY] Aggregate written for {model.__tablename__} {entity_id}: "
            f"avg={aggregate.average_rating} count={aggregate.review_count}"
        )

    async def update_listing_aggregate(self, listing_id: str, aggregate: Aggregate) -> None:
        await self._write_aggregate(Listing, listing_id, aggregate)

    async def update_agent_aggregate(self, agent_id: str, aggregate: Aggregate) -> None:
        await self._write_aggregate(Agent, agent_id, aggregate)
