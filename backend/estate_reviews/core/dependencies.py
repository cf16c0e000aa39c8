"""
backend/estate_reviews/core/dependencies.py

Shared FastAPI Dependencies

- PaginationParams: reusable skip/limit query parameters
- get_review_service: wires the SQL-backed store, gateway and Redis cache
  into a request-scoped ReviewService
- require_admin: guards administrative routes with the admin API key
"""

import hmac
import logging
from typing import Annotated

from fastapi import Depends, Header, Query
from sqlalchemy.ext.asyncio import AsyncSession

from estate_reviews.core.config import settings
from estate_reviews.core.exceptions import PermissionDenied
from estate_reviews.database.session import get_db
from estate_reviews.entities.gateway import SQLEntityGateway
from estate_reviews.review.cache import ReviewStatsCache, redis_client
from estate_reviews.review.locks import target_locks
from estate_reviews.review.services import ReviewService
from estate_reviews.review.store import SQLReviewStore

# ---------------------------------------------------
# Logger Configuration
# ---------------------------------------------------
logger = logging.getLogger(__name__)


# ---------------------------------------------------
# Pagination Dependency
# ---------------------------------------------------
class PaginationParams:
    """
    Dependency that provides pagination parameters from query parameters.
    """

    def __init__(
        self,
        skip: int = Query(0, ge=0, description="Number of records to skip for pagination"),
        limit: int = Query(
            settings.REVIEW_LIST_DEFAULT_LIMIT,
            ge=1,
            le=settings.REVIEW_LIST_MAX_LIMIT,
            description="Maximum number of records to return",
        ),
    ):
        self.skip = skip
        self.limit = limit


# ---------------------------------------------------
# Service Wiring
# ---------------------------------------------------
async def get_review_service(db: Annotated[AsyncSession, Depends(get_db)]) -> ReviewService:
    """Builds a ReviewService bound to the request's database session."""
    return ReviewService(
        store=SQLReviewStore(db),
        gateway=SQLEntityGateway(db),
        cache=ReviewStatsCache(redis_client),
        locks=target_locks,
    )


# ---------------------------------------------------
# Authorization
# ---------------------------------------------------
async def require_admin(
    x_admin_key: Annotated[str | None, Header(alias="X-Admin-Key")] = None,
) -> None:
    """
    Restricts a route to administrative callers.

    Raises:
        PermissionDenied: when the key is missing, wrong, or no key is configured.
    """
    if not settings.ADMIN_API_KEY or not x_admin_key:
        logger.warning("[RBAC] Admin route called without credentials")
        raise PermissionDenied("Admin access required")
    if not hmac.compare_digest(x_admin_key, settings.ADMIN_API_KEY):
        logger.warning("[RBAC] Admin route called with an invalid key")
        raise PermissionDenied("Admin access required")
