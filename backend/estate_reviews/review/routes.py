"""
backend/estate_reviews/review/routes.py

Review Routes
Defines API endpoints for listing and agent reviews:
- Submit, update and delete a review
- List reviews for a listing, an agent or an author (with snapshots)
- Rating stats and review eligibility for a target
- Admin: verify a review, reconcile a target's stored aggregate
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from estate_reviews.core.dependencies import PaginationParams, get_review_service, require_admin
from estate_reviews.core.exceptions import APIError
from estate_reviews.core.limiter import limiter
from estate_reviews.core.schemas import PaginatedResponse
from estate_reviews.database.enums import TargetKind
from estate_reviews.review import schemas
from estate_reviews.review.services import ReviewService, resolve_target

router = APIRouter(prefix="/reviews", tags=["Reviews"])

ServiceDep = Annotated[ReviewService, Depends(get_review_service)]
TargetIdQuery = Annotated[str, Query(min_length=1, description="Listing or agent ID")]
TargetKindQuery = Annotated[TargetKind, Query(alias="type", description="listing or agent")]

STATS_STALE_HEADER = "X-Stats-Stale"


def _mark_stale(response: Response, stale: bool) -> None:
    if stale:
        response.headers[STATS_STALE_HEADER] = "true"


# ----------------------------------------------------
# Public Review Endpoints
# ----------------------------------------------------
@router.get(
    "",
    response_model=PaginatedResponse[schemas.ReviewDetail],
    status_code=status.HTTP_200_OK,
    summary="List Reviews",
    description="List reviews for a listing, an agent or an author, newest first.",
)
@limiter.limit("30/minute")
async def list_reviews(
    request: Request,
    service: ServiceDep,
    listing_id: str | None = Query(None, description="Reviews of this listing"),
    agent_id: str | None = Query(None, description="Reviews of this agent"),
    author_id: str | None = Query(None, description="Reviews written by this user"),
    pagination: PaginationParams = Depends(),
) -> PaginatedResponse[schemas.ReviewDetail]:
    """Retrieve reviews with author and target snapshots, with pagination."""
    if not (listing_id or agent_id or author_id):
        raise APIError(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Please provide listing_id, agent_id, or author_id",
        )
    target = resolve_target(listing_id, agent_id) if (listing_id or agent_id) else None

    reviews, total_count = await service.list_detailed(
        schemas.ReviewFilter(
            target=target, author_id=author_id, skip=pagination.skip, limit=pagination.limit
        )
    )
    return PaginatedResponse(
        total_count=total_count,
        has_next_page=(pagination.skip + pagination.limit) < total_count,
        items=reviews,
    )


@router.get(
    "/stats",
    response_model=schemas.Aggregate,
    status_code=status.HTTP_200_OK,
    summary="Review Stats",
    description="Average rating, review count and star distribution for a listing or agent.",
)
@limiter.limit("30/minute")
async def get_review_stats(
    request: Request,
    service: ServiceDep,
    target_id: TargetIdQuery,
    kind: TargetKindQuery,
) -> schemas.Aggregate:
    """Retrieve the current rating aggregate for a target."""
    return await service.get_stats(schemas.TargetRef(kind=kind, id=target_id))


@router.get(
    "/eligibility",
    response_model=schemas.Eligibility,
    status_code=status.HTTP_200_OK,
    summary="Review Eligibility",
    description="Whether a user may submit a review for a listing or agent.",
)
@limiter.limit("30/minute")
async def get_review_eligibility(
    request: Request,
    service: ServiceDep,
    author_id: Annotated[str, Query(min_length=1, description="Prospective author")],
    target_id: TargetIdQuery,
    kind: TargetKindQuery,
) -> schemas.Eligibility:
    """Check whether the author has not yet reviewed the target."""
    return await service.can_review(author_id, schemas.TargetRef(kind=kind, id=target_id))


@router.get(
    "/{review_id}",
    response_model=schemas.ReviewDetail,
    status_code=status.HTTP_200_OK,
    summary="Get Review",
    description="Fetch one review with author and target snapshots.",
)
@limiter.limit("30/minute")
async def get_review(request: Request, review_id: str, service: ServiceDep) -> schemas.ReviewDetail:
    return await service.get_review(review_id)


# ----------------------------------------------------
# Review Mutation Endpoints
# ----------------------------------------------------
@router.post(
    "",
    response_model=schemas.ReviewWriteResult,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Review",
    description="Submit a review for a listing or an agent.",
)
@limiter.limit("5/minute")
async def submit_review(
    request: Request,
    response: Response,
    payload: schemas.ReviewCreate,
    service: ServiceDep,
) -> schemas.ReviewWriteResult:
    """Create a review and return it with the target's refreshed stats."""
    result = await service.create_review(payload)
    _mark_stale(response, result.stats_stale)
    return result


@router.patch(
    "/{review_id}",
    response_model=schemas.ReviewWriteResult,
    status_code=status.HTTP_200_OK,
    summary="Update Review",
    description="Update the rating, title or comment of a review.",
)
@limiter.limit("10/minute")
async def update_review(
    request: Request,
    response: Response,
    review_id: str,
    payload: schemas.ReviewUpdate,
    service: ServiceDep,
) -> schemas.ReviewWriteResult:
    result = await service.update_review(review_id, payload)
    _mark_stale(response, result.stats_stale)
    return result


@router.delete(
    "/{review_id}",
    response_model=schemas.ReviewDeleteResult,
    status_code=status.HTTP_200_OK,
    summary="Delete Review",
    description="Delete a review and refresh its target's stats.",
)
@limiter.limit("10/minute")
async def delete_review(
    request: Request,
    response: Response,
    review_id: str,
    service: ServiceDep,
) -> schemas.ReviewDeleteResult:
    result = await service.delete_review(review_id)
    _mark_stale(response, result.stats_stale)
    return result


# ----------------------------------------------------
# Admin Endpoints
# ----------------------------------------------------
@router.post(
    "/{review_id}/verify",
    response_model=schemas.ReviewRead,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
    summary="Verify Review",
    description="Set or clear the verified flag of a review (admin only).",
)
async def verify_review(
    review_id: str,
    service: ServiceDep,
    payload: schemas.ReviewVerify | None = None,
) -> schemas.ReviewRead:
    verified = payload.verified if payload is not None else True
    return await service.verify_review(review_id, verified)


@router.post(
    "/stats/reconcile",
    response_model=schemas.Aggregate,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(require_admin)],
    summary="Reconcile Stats",
    description="Recompute and store the aggregate of a listing or agent (admin only).",
)
async def reconcile_review_stats(
    service: ServiceDep,
    target_id: TargetIdQuery,
    kind: TargetKindQuery,
) -> schemas.Aggregate:
    return await service.reconcile_stats(schemas.TargetRef(kind=kind, id=target_id))
