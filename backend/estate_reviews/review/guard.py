"""
backend/estate_reviews/review/guard.py

Duplicate Guard
Enforces at most one review per (author, target) pair before a create.
"""

import logging

from estate_reviews.core.exceptions import AlreadyReviewed
from estate_reviews.review.schemas import Eligibility, TargetRef
from estate_reviews.review.store import ReviewStore, already_reviewed_message

logger = logging.getLogger(__name__)


class DuplicateGuard:
    def __init__(self, store: ReviewStore) -> None:
        self.store = store

    async def check(self, author_id: str, target: TargetRef) -> Eligibility:
        """Reports whether the author has no review for the target yet."""
        existing = await self.store.find_by_author_and_target(author_id, target)
        if existing is not None:
            return Eligibility(allowed=False, reason=already_reviewed_message(target))
        return Eligibility(allowed=True)

    async def ensure_allowed(self, author_id: str, target: TargetRef) -> None:
        """Raises AlreadyReviewed if the author already reviewed the target."""
        result = await self.check(author_id, target)
        if not result.allowed:
            logger.warning(f"[GUARD] Duplicate review attempt: author={author_id} target={target}")
            raise AlreadyReviewed(result.reason or already_reviewed_message(target))
