"""
tests/review/test_review_routes.py

Test cases for review API endpoints.
Covers listing, stats and eligibility reads, review submission, update and
deletion, the stale-stats header, and the admin-only endpoints.
"""

import pytest
from fastapi import status
from httpx import AsyncClient
from unittest.mock import AsyncMock, patch

from estate_reviews.core.exceptions import NotFound
from estate_reviews.database.enums import TargetKind
from estate_reviews.review import schemas as review_schemas
from estate_reviews.review import services as review_services

EMPTY_DISTRIBUTION = {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


# Public Review Endpoints


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "list_detailed", new_callable=AsyncMock)
async def test_list_reviews_for_listing(
    mock_list_detailed: AsyncMock,
    fake_review_read: review_schemas.ReviewRead,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    """Test listing reviews of one listing with pagination."""
    detail = review_schemas.ReviewDetail(**fake_review_read.model_dump())
    mock_list_detailed.return_value = ([detail], 11)

    response = await async_client.get("/reviews?listing_id=listing-1&skip=0&limit=10")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_count"] == 11
    assert data["has_next_page"] is True
    assert data["items"][0]["id"] == fake_review_read.id
    assert data["items"][0]["target_kind"] == "listing"
    mock_list_detailed.assert_awaited_once_with(
        review_schemas.ReviewFilter(
            target=review_schemas.TargetRef.listing("listing-1"), author_id=None, skip=0, limit=10
        )
    )


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "list_detailed", new_callable=AsyncMock)
async def test_list_reviews_by_author(
    mock_list_detailed: AsyncMock,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_list_detailed.return_value = ([], 0)

    response = await async_client.get("/reviews?author_id=user-1")

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"total_count": 0, "has_next_page": False, "items": []}
    mock_list_detailed.assert_awaited_once_with(
        review_schemas.ReviewFilter(target=None, author_id="user-1", skip=0, limit=20)
    )


@pytest.mark.asyncio
async def test_list_reviews_requires_a_filter(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.get("/reviews")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json() == {
        "detail": {"error": "Please provide listing_id, agent_id, or author_id"}
    }


@pytest.mark.asyncio
async def test_list_reviews_rejects_two_targets(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.get("/reviews?listing_id=listing-1&agent_id=agent-1")

    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "Only one of" in response.json()["detail"]["error"]


@pytest.mark.asyncio
async def test_list_reviews_rejects_oversized_limit(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.get("/reviews?listing_id=listing-1&limit=1000")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "get_stats", new_callable=AsyncMock)
async def test_get_review_stats(
    mock_get_stats: AsyncMock,
    fake_aggregate: review_schemas.Aggregate,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    """Test retrieving the aggregate for a listing."""
    mock_get_stats.return_value = fake_aggregate

    response = await async_client.get("/reviews/stats?target_id=listing-1&type=listing")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["average_rating"] == 4.4
    assert data["review_count"] == 5
    assert data["distribution"] == {"1": 0, "2": 0, "3": 1, "4": 1, "5": 3}
    mock_get_stats.assert_awaited_once_with(review_schemas.TargetRef.listing("listing-1"))


@pytest.mark.asyncio
async def test_get_review_stats_rejects_unknown_type(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.get("/reviews/stats?target_id=listing-1&type=house")
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "can_review", new_callable=AsyncMock)
async def test_get_review_eligibility(
    mock_can_review: AsyncMock,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_can_review.return_value = review_schemas.Eligibility(
        allowed=False, reason="You have already reviewed this agent"
    )

    response = await async_client.get(
        "/reviews/eligibility?author_id=user-1&target_id=agent-1&type=agent"
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"allowed": False, "reason": "You have already reviewed this agent"}
    mock_can_review.assert_awaited_once_with("user-1", review_schemas.TargetRef.agent("agent-1"))


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "get_review", new_callable=AsyncMock)
async def test_get_review_not_found(
    mock_get_review: AsyncMock,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_get_review.side_effect = NotFound("Review not found")

    response = await async_client.get("/reviews/missing")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"detail": {"error": "Review not found"}}


# Review Mutation Endpoints


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "create_review", new_callable=AsyncMock)
async def test_submit_review_success(
    mock_create_review: AsyncMock,
    fake_review_read: review_schemas.ReviewRead,
    fake_aggregate: review_schemas.Aggregate,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    """Test submitting a listing review returns the review and fresh stats."""
    mock_create_review.return_value = review_schemas.ReviewWriteResult(
        review=fake_review_read, stats=fake_aggregate
    )
    payload_schema = review_schemas.ReviewCreate(
        listing_id="listing-1",
        author_id="user-1",
        rating=5,
        title="Great flat",
        comment="Bright rooms and a responsive landlord.",
    )

    response = await async_client.post("/reviews", json=payload_schema.model_dump(mode="json"))

    assert response.status_code == status.HTTP_201_CREATED
    assert "X-Stats-Stale" not in response.headers
    data = response.json()
    assert data["review"]["id"] == fake_review_read.id
    assert data["review"]["rating"] == 5
    assert data["stats"]["review_count"] == 5
    assert data["stats_stale"] is False
    mock_create_review.assert_awaited_once_with(payload_schema)


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "create_review", new_callable=AsyncMock)
async def test_submit_review_with_stale_stats_sets_header(
    mock_create_review: AsyncMock,
    fake_review_read: review_schemas.ReviewRead,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_create_review.return_value = review_schemas.ReviewWriteResult(
        review=fake_review_read, stats=None, stats_stale=True
    )

    response = await async_client.post(
        "/reviews",
        json={"listing_id": "listing-1", "author_id": "user-1", "rating": 5, "title": "t", "comment": "c"},
    )

    assert response.status_code == status.HTTP_201_CREATED
    assert response.headers["X-Stats-Stale"] == "true"
    assert response.json()["stats"] is None


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "update_review", new_callable=AsyncMock)
async def test_update_review(
    mock_update_review: AsyncMock,
    fake_review_read: review_schemas.ReviewRead,
    fake_aggregate: review_schemas.Aggregate,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    updated = fake_review_read.model_copy(update={"rating": 4})
    mock_update_review.return_value = review_schemas.ReviewWriteResult(review=updated, stats=fake_aggregate)

    response = await async_client.patch("/reviews/review-1", json={"rating": 4})

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["review"]["rating"] == 4
    mock_update_review.assert_awaited_once_with("review-1", review_schemas.ReviewUpdate(rating=4))


@pytest.mark.asyncio
async def test_update_review_rejects_immutable_fields(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.patch("/reviews/review-1", json={"author_id": "someone-else"})
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "delete_review", new_callable=AsyncMock)
async def test_delete_review(
    mock_delete_review: AsyncMock,
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_delete_review.return_value = review_schemas.ReviewDeleteResult(
        review_id="review-1",
        target_kind=TargetKind.AGENT,
        target_id="agent-1",
        stats=review_schemas.Aggregate.zero(),
    )

    response = await async_client.delete("/reviews/review-1")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["review_id"] == "review-1"
    assert data["target_kind"] == "agent"
    assert data["stats"]["distribution"] == EMPTY_DISTRIBUTION
    mock_delete_review.assert_awaited_once_with("review-1")


# Admin Endpoints


@pytest.mark.asyncio
async def test_verify_review_requires_admin_key(async_client: AsyncClient, override_get_db: None) -> None:
    response = await async_client.post("/reviews/review-1/verify")
    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json() == {"detail": {"error": "Admin access required"}}

    response = await async_client.post("/reviews/review-1/verify", headers={"X-Admin-Key": "wrong"})
    assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "verify_review", new_callable=AsyncMock)
async def test_verify_review_as_admin(
    mock_verify_review: AsyncMock,
    fake_review_read: review_schemas.ReviewRead,
    admin_headers: dict[str, str],
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_verify_review.return_value = fake_review_read.model_copy(update={"is_verified": True})

    response = await async_client.post("/reviews/review-1/verify", headers=admin_headers)

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["is_verified"] is True
    mock_verify_review.assert_awaited_once_with("review-1", True)


@pytest.mark.asyncio
@patch.object(review_services.ReviewService, "reconcile_stats", new_callable=AsyncMock)
async def test_reconcile_stats_as_admin(
    mock_reconcile_stats: AsyncMock,
    fake_aggregate: review_schemas.Aggregate,
    admin_headers: dict[str, str],
    async_client: AsyncClient,
    override_get_db: None,
) -> None:
    mock_reconcile_stats.return_value = fake_aggregate

    response = await async_client.post(
        "/reviews/stats/reconcile?target_id=agent-1&type=agent", headers=admin_headers
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["average_rating"] == 4.4
    mock_reconcile_stats.assert_awaited_once_with(review_schemas.TargetRef.agent("agent-1"))


# Health


@pytest.mark.asyncio
async def test_health(async_client: AsyncClient) -> None:
    response = await async_client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "ok"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
