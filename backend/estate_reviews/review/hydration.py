"""
backend/estate_reviews/review/hydration.py

Relationship Hydrator
Attaches author, listing and agent snapshots to reviews for display.

A failed lookup only blanks the affected relationship: the review is still
returned and the remaining relationships and reviews are still hydrated.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from estate_reviews.core.exceptions import ReviewEngineError
from estate_reviews.database.enums import TargetKind
from estate_reviews.database.models import Agent, Listing, User
from estate_reviews.entities.gateway import EntityGateway
from estate_reviews.review.models import Review
from estate_reviews.review.schemas import (
    AgentSnapshot,
    AuthorSnapshot,
    ListingSnapshot,
    ReviewDetail,
)

logger = logging.getLogger(__name__)

_MISSING = object()


def author_snapshot(user: User) -> AuthorSnapshot:
    return AuthorSnapshot(id=user.id, name=user.name, avatar=user.avatar)


def listing_snapshot(listing: Listing) -> ListingSnapshot:
    images = listing.images or []
    return ListingSnapshot(
        id=listing.id,
        title=listing.title,
        address=listing.address or "",
        image=images[0] if images else None,
    )


def agent_snapshot(agent: Agent) -> AgentSnapshot:
    return AgentSnapshot(id=agent.id, name=agent.name, agency=agent.agency or "", avatar=agent.avatar)


class RelationshipHydrator:
    def __init__(self, gateway: EntityGateway) -> None:
        self.gateway = gateway

    async def _lookup(
        self,
        memo: dict[tuple[str, str], Any],
        kind: str,
        entity_id: str,
        fetch: Callable[[str], Awaitable[Any]],
        to_snapshot: Callable[[Any], Any],
        review_id: str,
    ) -> Any:
        """
        Fetches one related entity once per hydrate call and returns its
        snapshot; None on failure.

        The snapshot is taken right after the fetch. A failed lookup may roll
        the session back, which expires every entity loaded before it.
        """
        key = (kind, entity_id)
        cached = memo.get(key, _MISSING)
        if cached is not _MISSING:
            return cached
        try:
            snapshot = to_snapshot(await fetch(entity_id))
        except ReviewEngineError as e:
            logger.warning(
                f"[HYDRATE] Could not fetch {kind} {entity_id} for review {review_id}: {e.message}"
            )
            snapshot = None
        memo[key] = snapshot
        return snapshot

    async def hydrate(
        self,
        reviews: Sequence[Review],
        include_author: bool = True,
        include_target: bool = False,
    ) -> list[ReviewDetail]:
        """
        Converts reviews into ReviewDetail responses with related snapshots.

        Every review is converted before the first lookup, so a lookup that
        rolls the session back cannot expire a review still waiting its turn.

        Args:
            reviews: stored reviews, in display order
            include_author: attach the current author snapshot
            include_target: attach the current listing or agent snapshot
        """
        memo: dict[tuple[str, str], Any] = {}
        details = [ReviewDetail.model_validate(review) for review in reviews]

        for detail in details:
            if include_author:
                detail.author = await self._lookup(
                    memo, "user", detail.author_id, self.gateway.get_user, author_snapshot, detail.id
                )

            if include_target:
                if detail.target_kind == TargetKind.LISTING:
                    detail.listing = await self._lookup(
                        memo, "listing", detail.target_id, self.gateway.get_listing, listing_snapshot, detail.id
                    )
                else:
                    detail.agent = await self._lookup(
                        memo, "agent", detail.target_id, self.gateway.get_agent, agent_snapshot, detail.id
                    )

        logger.debug(
            f"[HYDRATE] Hydrated {len(details)} reviews (author={include_author}, target={include_target})"
        )
        return details
