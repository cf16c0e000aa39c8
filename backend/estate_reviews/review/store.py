"""
backend/estate_reviews/review/store.py

Review Store
Persistence for review records:
- Create, read, partial update, verify and delete by id
- Listing by target or author, newest first, with skip/limit pagination
- Targeted (author, target) lookup for the duplicate guard
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from sqlalchemy import Select, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_reviews.core.exceptions import AlreadyReviewed, NotFound, StorageError
from estate_reviews.database.enums import TargetKind
from estate_reviews.review.models import Review
from estate_reviews.review.schemas import ReviewFilter, TargetRef

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS: frozenset[str] = frozenset({"rating", "title", "comment"})


def already_reviewed_message(target: TargetRef) -> str:
    return f"You have already reviewed this {target.kind.value}"


class ReviewStore(Protocol):
    """Contract for review persistence."""

    async def create(
        self,
        *,
        target: TargetRef,
        author_id: str,
        rating: int,
        title: str,
        comment: str,
        author_name: str | None = None,
        author_avatar: str | None = None,
        target_name: str | None = None,
    ) -> Review: ...

    async def get(self, review_id: str) -> Review: ...

    async def update(self, review_id: str, changes: dict[str, Any]) -> Review: ...

    async def set_verified(self, review_id: str, verified: bool) -> Review: ...

    async def delete(self, review_id: str) -> None: ...

    async def list_by_target(
        self,
        target: TargetRef,
        limit: int | None = None,
        skip: int = 0,
        newest_first: bool = True,
    ) -> list[Review]: ...

    async def list_by_author(
        self, author_id: str, limit: int | None = None, skip: int = 0
    ) -> list[Review]: ...

    async def find_by_author_and_target(
        self, author_id: str, target: TargetRef
    ) -> Review | None: ...

    async def search(self, filters: ReviewFilter) -> list[Review]: ...

    async def count(self, filters: ReviewFilter) -> int: ...


def _target_column(target: TargetRef):
    return Review.listing_id if target.kind == TargetKind.LISTING else Review.agent_id


# ---------------------------------------------------
# SQLAlchemy Implementation
# ---------------------------------------------------
class SQLReviewStore:
    """Review store backed by the `reviews` table."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def _fail(self, action: str, error: SQLAlchemyError) -> StorageError:
        await self.db.rollback()
        logger.error(f"[STORE] Failed to {action}: {error}", exc_info=True)
        return StorageError(f"Failed to {action}")

    async def _commit(self, action: str) -> None:
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            raise await self._fail(action, e) from e

    async def _scalars(self, stmt: Select, action: str) -> list[Review]:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise await self._fail(action, e) from e
        return list(result.scalars().all())

    # ---------------------------------------------------
    # Writes
    # ---------------------------------------------------
    async def create(
        self,
        *,
        target: TargetRef,
        author_id: str,
        rating: int,
        title: str,
        comment: str,
        author_name: str | None = None,
        author_avatar: str | None = None,
        target_name: str | None = None,
    ) -> Review:
        now = datetime.now(timezone.utc)
        review = Review(
            id=str(uuid.uuid4()),
            listing_id=target.id if target.kind == TargetKind.LISTING else None,
            agent_id=target.id if target.kind == TargetKind.AGENT else None,
            author_id=author_id,
            rating=rating,
            title=title,
            comment=comment,
            is_verified=False,
            author_name=author_name,
            author_avatar=author_avatar,
            target_name=target_name,
            created_at=now,
            updated_at=now,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            # The unique (author, target) constraints are the only ones validated input can trip
            if await self.find_by_author_and_target(author_id, target) is not None:
                logger.warning(
                    f"[STORE] Unique constraint rejected duplicate review: author={author_id} target={target}"
                )
                raise AlreadyReviewed(already_reviewed_message(target)) from e
            logger.error(f"[STORE] Integrity error creating review: {e}", exc_info=True)
            raise StorageError("Failed to create review") from e
        except SQLAlchemyError as e:
            raise await self._fail("create review", e) from e

        logger.info(f"[STORE] Review {review.id} stored for {target} by {author_id}")
        return review

    async def update(self, review_id: str, changes: dict[str, Any]) -> Review:
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        review = await self.get(review_id)
        for key, value in changes.items():
            setattr(review, key, value)
        review.updated_at = datetime.now(timezone.utc)
        await self._commit("update review")
        logger.info(f"[STORE] Review {review_id} updated: {sorted(changes)}")
        return review

    async def set_verified(self, review_id: str, verified: bool) -> Review:
        review = await self.get(review_id)
        review.is_verified = verified
        review.updated_at = datetime.now(timezone.utc)
        await self._commit("verify review")
        logger.info(f"[STORE] Review {review_id} verified={verified}")
        return review

    async def delete(self, review_id: str) -> None:
        review = await self.get(review_id)
        try:
            await self.db.delete(review)
        except SQLAlchemyError as e:
            raise await self._fail("delete review", e) from e
        await self._commit("delete review")
        logger.info(f"[STORE] Review {review_id} deleted")

    # ---------------------------------------------------
    # Reads
    # ---------------------------------------------------
    async def get(self, review_id: str) -> Review:
        try:
            review = await self.db.get(Review, review_id)
        except SQLAlchemyError as e:
            raise await self._fail("load review", e) from e
        if review is None:
            raise NotFound("Review not found")
        return review

    async def list_by_target(
        self,
        target: TargetRef,
        limit: int | None = None,
        skip: int = 0,
        newest_first: bool = True,
    ) -> list[Review]:
        order = (
            (Review.created_at.desc(), Review.id.desc())
            if newest_first
            else (Review.created_at.asc(), Review.id.asc())
        )
        stmt = select(Review).where(_target_column(target) == target.id).order_by(*order)
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return await self._scalars(stmt, "list reviews by target")

    async def list_by_author(
        self, author_id: str, limit: int | None = None, skip: int = 0
    ) -> list[Review]:
        return await self.search(ReviewFilter(author_id=author_id, skip=skip, limit=limit))

    async def find_by_author_and_target(self, author_id: str, target: TargetRef) -> Review | None:
        stmt = (
            select(Review)
            .where(_target_column(target) == target.id, Review.author_id == author_id)
            .limit(1)
        )
        reviews = await self._scalars(stmt, "look up existing review")
        return reviews[0] if reviews else None

    def _filtered(self, stmt: Select, filters: ReviewFilter) -> Select:
        if filters.target is not None:
            stmt = stmt.where(_target_column(filters.target) == filters.target.id)
        if filters.author_id is not None:
            stmt = stmt.where(Review.author_id == filters.author_id)
        return stmt

    async def search(self, filters: ReviewFilter) -> list[Review]:
        stmt = self._filtered(select(Review), filters).order_by(
            Review.created_at.desc(), Review.id.desc()
        )
        if filters.skip:
            stmt = stmt.offset(filters.skip)
        if filters.limit is not None:
            stmt = stmt.limit(filters.limit)
        return await self._scalars(stmt, "list reviews")

    async def count(self, filters: ReviewFilter) -> int:
        stmt = self._filtered(select(func.count(Review.id)), filters)
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            raise await self._fail("count reviews", e) from e
        return int(result.scalar_one())
