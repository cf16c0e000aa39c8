"""
backend/estate_reviews/review/aggregates.py

Aggregate Recomputer
Derives {average_rating, review_count, distribution} from the full set of a
target's reviews and writes it back onto the listing or agent.

The computation is never incremental: every call reads all reviews of the
target, so running it twice without an intervening mutation gives the same
result.
"""

import logging
from collections.abc import Iterable
from decimal import ROUND_HALF_UP, Decimal

from estate_reviews.entities.gateway import EntityGateway, update_target_aggregate
from estate_reviews.review.schemas import RATING_VALUES, Aggregate, TargetRef
from estate_reviews.review.store import ReviewStore

logger = logging.getLogger(__name__)

ONE_DECIMAL = Decimal("0.1")


def round1(value: Decimal) -> float:
    """Rounds to one decimal place, halves away from zero."""
    return float(value.quantize(ONE_DECIMAL, rounding=ROUND_HALF_UP))


def compute_aggregate(ratings: Iterable[int]) -> Aggregate:
    """
    Builds an aggregate from a collection of ratings.

    Ratings outside 1..5 are ignored by the distribution and the mean alike,
    so the distribution always sums to review_count.
    """
    distribution = {value: 0 for value in RATING_VALUES}
    for rating in ratings:
        if rating in distribution:
            distribution[rating] += 1

    count = sum(distribution.values())
    if count == 0:
        return Aggregate.zero()

    total = sum(value * hits for value, hits in distribution.items())
    return Aggregate(
        average_rating=round1(Decimal(total) / Decimal(count)),
        review_count=count,
        distribution=distribution,
    )


class AggregateRecomputer:
    """Recomputes a target's aggregate from the review store."""

    def __init__(self, store: ReviewStore, gateway: EntityGateway) -> None:
        self.store = store
        self.gateway = gateway

    async def recompute(self, target: TargetRef, write_back: bool = True) -> Aggregate:
        """
        Recomputes the aggregate for a target.

        Args:
            target: the listing or agent to recompute
            write_back: when False, only compute (read path)

        Raises:
            StorageError: if the reviews cannot be read or the aggregate cannot be written
            NotFound: if the target vanished before the write
        """
        reviews = await self.store.list_by_target(target, limit=None)
        aggregate = compute_aggregate(review.rating for review in reviews)
        logger.debug(
            f"[RECOMPUTE] {target}: count={aggregate.review_count} "
            f"avg={aggregate.average_rating} dist={aggregate.distribution}"
        )

        if write_back:
            await update_target_aggregate(self.gateway, target, aggregate)
            logger.info(f"[RECOMPUTE] Aggregate stored for {target}")
        return aggregate
