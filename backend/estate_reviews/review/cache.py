"""
backend/estate_reviews/review/cache.py

Review Stats Cache
Read-through Redis cache for target aggregates. The cache is never a source
of truth: every failure is logged and treated as a miss.
"""

import logging
from typing import Any

import redis.asyncio as redis

from estate_reviews.core.config import settings
from estate_reviews.review.schemas import Aggregate, TargetRef

logger = logging.getLogger(__name__)

# --- Cache Namespaces ---
REVIEW_STATS_NS = "review:stats"

# ---------------------------------------------------
# Redis Client Initialization
# ---------------------------------------------------
redis_client: redis.Redis | None = None  # type: ignore[type-arg]

if settings.CACHE_ENABLED:
    try:
        redis_client = redis.Redis.from_url(settings.redis_url, decode_responses=True)
        logger.info(
            f"[REDIS ASYNC] Initialized async Redis client for {settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}"
        )
    except redis.RedisError as e:
        logger.error(f"[REDIS ASYNC] Initialization failed: {e}")
        redis_client = None


def _cache_key(namespace: str, identifier: Any) -> str:
    """Generate a simple cache key."""
    return f"{settings.CACHE_PREFIX}{namespace}:{identifier}"


class ReviewStatsCache:
    """Caches aggregates per target under `<prefix>review:stats:<kind>:<id>`."""

    def __init__(self, client: Any = None, ttl: int = settings.DEFAULT_CACHE_TTL) -> None:
        self.client = client
        self.ttl = ttl

    @staticmethod
    def key(target: TargetRef) -> str:
        return _cache_key(REVIEW_STATS_NS, target)

    async def get(self, target: TargetRef) -> Aggregate | None:
        if not self.client:
            return None
        try:
            cached = await self.client.get(self.key(target))
        except Exception as e:
            logger.error(f"[CACHE ASYNC READ ERROR] Review stats {target}: {e}")
            return None
        if not cached:
            logger.debug(f"[CACHE ASYNC MISS] Review stats {target}")
            return None
        logger.info(f"[CACHE ASYNC HIT] Review stats {target}")
        return Aggregate.model_validate_json(cached)

    async def set(self, target: TargetRef, aggregate: Aggregate) -> None:
        if not self.client:
            return
        try:
            await self.client.set(self.key(target), aggregate.model_dump_json(), ex=self.ttl)
            logger.debug(f"[CACHE ASYNC SET] Review stats {target}")
        except Exception as e:
            logger.error(f"[CACHE ASYNC WRITE ERROR] Review stats {target}: {e}")

    async def invalidate(self, target: TargetRef) -> None:
        if not self.client:
            return
        try:
            await self.client.delete(self.key(target))
            logger.debug(f"[CACHE ASYNC DELETE] Review stats {target}")
        except Exception as e:
            logger.error(f"[CACHE ASYNC DELETE ERROR] Review stats {target}: {e}")
