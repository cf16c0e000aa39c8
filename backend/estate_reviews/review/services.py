"""
backend/estate_reviews/review/services.py

Review Services
Business logic for listing and agent reviews:
- Submit, update, delete and verify reviews
- Keep each target's rating aggregate in step with its reviews
- Report stats and review eligibility
- List reviews with author and target snapshots
"""

import logging
from typing import Any

from estate_reviews.core.config import settings
from estate_reviews.core.exceptions import (
    AuthorNotFound,
    EntityNotFound,
    ReviewEngineError,
    TargetNotFound,
    ValidationError,
)
from estate_reviews.entities.gateway import EntityGateway, get_target, target_display_name
from estate_reviews.review.aggregates import AggregateRecomputer
from estate_reviews.review.cache import ReviewStatsCache
from estate_reviews.review.guard import DuplicateGuard
from estate_reviews.review.hydration import RelationshipHydrator
from estate_reviews.review.locks import TargetLocks, target_locks
from estate_reviews.review.schemas import (
    Aggregate,
    Eligibility,
    ReviewCreate,
    ReviewDeleteResult,
    ReviewDetail,
    ReviewFilter,
    ReviewRead,
    ReviewUpdate,
    ReviewWriteResult,
    TargetRef,
)
from estate_reviews.review.store import ReviewStore

logger = logging.getLogger(__name__)


# ---------------------------------------------------
# Input Validation
# ---------------------------------------------------
def resolve_target(listing_id: str | None, agent_id: str | None) -> TargetRef:
    """Builds the target reference, requiring exactly one of the two ids."""
    listing_id = (listing_id or "").strip()
    agent_id = (agent_id or "").strip()
    if listing_id and agent_id:
        raise ValidationError("Only one of listing_id or agent_id may be provided")
    if listing_id:
        return TargetRef.listing(listing_id)
    if agent_id:
        return TargetRef.agent(agent_id)
    raise ValidationError("Either listing_id or agent_id must be provided")


def validate_rating(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
        raise ValidationError("Rating must be between 1 and 5")
    return value


def validate_text(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} must not be empty")
    return value.strip()


def validate_id(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


# ---------------------------------------------------
# Review Service
# ---------------------------------------------------
class ReviewService:
    """
    Orchestrates the review store, entity gateway, duplicate guard,
    aggregate recomputer and hydrator.

    Mutations of one target hold that target's lock from validation
    through the aggregate refresh.
    """

    def __init__(
        self,
        store: ReviewStore,
        gateway: EntityGateway,
        cache: ReviewStatsCache | None = None,
        locks: TargetLocks | None = None,
    ) -> None:
        self.store = store
        self.gateway = gateway
        self.cache = cache if cache is not None else ReviewStatsCache()
        self.locks = locks if locks is not None else target_locks
        self.guard = DuplicateGuard(store)
        self.recomputer = AggregateRecomputer(store, gateway)
        self.hydrator = RelationshipHydrator(gateway)

    async def _refresh_stats(self, target: TargetRef) -> tuple[Aggregate | None, bool]:
        """
        Recomputes and stores the target's aggregate after a review write.
        Returns (aggregate, stale). A failure leaves the review in place.
        """
        try:
            aggregate = await self.recomputer.recompute(target)
        except ReviewEngineError as e:
            logger.error(
                f"[RECOMPUTE] Aggregate refresh failed for {target}, stats are stale: {e.message}"
            )
            await self.cache.invalidate(target)
            return None, True
        await self.cache.set(target, aggregate)
        return aggregate, False

    # ---------------------------------------------------
    # Review Submission
    # ---------------------------------------------------
    async def create_review(self, data: ReviewCreate) -> ReviewWriteResult:
        """
        Submit a review for a listing or an agent.
        Validates input, target and author, prevents duplicates, then
        refreshes the target's aggregate.
        """
        target = resolve_target(data.listing_id, data.agent_id)
        author_id = validate_id("author_id", data.author_id)
        rating = validate_rating(data.rating)
        title = validate_text("Title", data.title)
        comment = validate_text("Comment", data.comment)

        logger.info(f"[CREATE] Author {author_id} submitting review for {target}")

        async with self.locks.hold(target):
            try:
                target_entity = await get_target(self.gateway, target)
            except EntityNotFound as e:
                raise TargetNotFound(f"{target.kind.value.capitalize()} not found") from e
            try:
                author = await self.gateway.get_user(author_id)
            except EntityNotFound as e:
                raise AuthorNotFound("User not found") from e

            await self.guard.ensure_allowed(author_id, target)

            await self.cache.invalidate(target)
            review = await self.store.create(
                target=target,
                author_id=author_id,
                rating=rating,
                title=title,
                comment=comment,
                author_name=author.name,
                author_avatar=author.avatar,
                target_name=target_display_name(target_entity),
            )
            # A failed recompute rolls the session back and expires `review`.
            created = ReviewRead.model_validate(review)
            stats, stale = await self._refresh_stats(target)

        logger.info(f"[CREATE] Review created successfully: review_id={created.id} stale={stale}")
        return ReviewWriteResult(review=created, stats=stats, stats_stale=stale)

    # ---------------------------------------------------
    # Review Update / Removal
    # ---------------------------------------------------
    async def update_review(self, review_id: str, patch: ReviewUpdate) -> ReviewWriteResult:
        """
        Update rating, title or comment of a review.
        The aggregate is refreshed when the rating is part of the patch;
        otherwise `stats` is left empty.
        """
        changes = {k: v for k, v in patch.model_dump(exclude_unset=True).items() if v is not None}
        if not changes:
            raise ValidationError("No fields to update")
        if "rating" in changes:
            changes["rating"] = validate_rating(changes["rating"])
        if "title" in changes:
            changes["title"] = validate_text("Title", changes["title"])
        if "comment" in changes:
            changes["comment"] = validate_text("Comment", changes["comment"])

        existing = await self.store.get(review_id)
        target = existing.target

        async with self.locks.hold(target):
            stats: Aggregate | None = None
            stale = False
            if "rating" in changes:
                await self.cache.invalidate(target)
            updated = ReviewRead.model_validate(await self.store.update(review_id, changes))
            if "rating" in changes:
                stats, stale = await self._refresh_stats(target)

        logger.info(f"[UPDATE] Review {review_id} updated: fields={sorted(changes)} stale={stale}")
        return ReviewWriteResult(review=updated, stats=stats, stats_stale=stale)

    async def delete_review(self, review_id: str) -> ReviewDeleteResult:
        """Delete a review and refresh its target's aggregate."""
        existing = await self.store.get(review_id)
        target = existing.target

        async with self.locks.hold(target):
            await self.cache.invalidate(target)
            await self.store.delete(review_id)
            stats, stale = await self._refresh_stats(target)

        logger.info(f"[DELETE] Review {review_id} deleted from {target} stale={stale}")
        return ReviewDeleteResult(
            review_id=review_id,
            target_kind=target.kind,
            target_id=target.id,
            stats=stats,
            stats_stale=stale,
        )

    async def verify_review(self, review_id: str, verified: bool = True) -> ReviewRead:
        """Admin-only: set the verification flag. Aggregates are unaffected."""
        review = await self.store.set_verified(review_id, verified)
        logger.info(f"[VERIFY] Review {review_id} verified={verified}")
        return ReviewRead.model_validate(review)

    # ---------------------------------------------------
    # Stats
    # ---------------------------------------------------
    async def get_stats(self, target: TargetRef) -> Aggregate:
        """
        Current aggregate for a target, computed without writing it back.
        A cache miss is filled under the target lock so it cannot overwrite
        the aggregate of a write that finished in the meantime.
        """
        cached = await self.cache.get(target)
        if cached is not None:
            return cached
        async with self.locks.hold(target):
            cached = await self.cache.get(target)
            if cached is not None:
                return cached
            aggregate = await self.recomputer.recompute(target, write_back=False)
            await self.cache.set(target, aggregate)
        return aggregate

    async def reconcile_stats(self, target: TargetRef) -> Aggregate:
        """Recomputes and stores a target's aggregate, repairing a stale value."""
        async with self.locks.hold(target):
            aggregate = await self.recomputer.recompute(target)
            await self.cache.set(target, aggregate)
        logger.info(f"[RECONCILE] Aggregate reconciled for {target}")
        return aggregate

    # ---------------------------------------------------
    # Eligibility
    # ---------------------------------------------------
    async def _check_business_rules(self, author_id: str, target: TargetRef) -> Eligibility:
        """Extension point for transaction-based eligibility. Allows everyone for now."""
        return Eligibility(allowed=True)

    async def can_review(self, author_id: str, target: TargetRef) -> Eligibility:
        """Checks whether an author may review a target, without reserving anything."""
        author_id = validate_id("author_id", author_id)
        result = await self.guard.check(author_id, target)
        if not result.allowed:
            return result
        return await self._check_business_rules(author_id, target)

    # ---------------------------------------------------
    # Review Retrieval
    # ---------------------------------------------------
    async def get_review(self, review_id: str) -> ReviewDetail:
        review = await self.store.get(review_id)
        details = await self.hydrator.hydrate([review], include_author=True, include_target=True)
        return details[0]

    async def list_detailed(self, filters: ReviewFilter) -> tuple[list[ReviewDetail], int]:
        """
        List reviews newest first with hydrated snapshots.
        Target snapshots are attached unless the list is for a single target.
        Returns the page and the total number of matching reviews.
        """
        limit = filters.limit or settings.REVIEW_LIST_DEFAULT_LIMIT
        filters = filters.model_copy(update={"limit": min(limit, settings.REVIEW_LIST_MAX_LIMIT)})

        reviews = await self.store.search(filters)
        total_count = await self.store.count(filters)
        details = await self.hydrator.hydrate(
            reviews, include_author=True, include_target=filters.target is None
        )
        logger.info(
            f"[LIST] {len(details)}/{total_count} reviews for target={filters.target} "
            f"author={filters.author_id} skip={filters.skip}"
        )
        return details, total_count
