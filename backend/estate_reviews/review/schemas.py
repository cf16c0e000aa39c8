"""
backend/estate_reviews/review/schemas.py

Review Schemas
Defines Pydantic schemas for listing and agent reviews:
- TargetRef: tagged reference to the reviewed listing or agent
- ReviewCreate / ReviewUpdate: author-submitted payloads
- ReviewRead / ReviewDetail: responses, with optional hydrated snapshots
- Aggregate: rating statistics stored on a target
- ReviewWriteResult / ReviewDeleteResult: mutation results carrying fresh stats
- Eligibility: whether an author may review a target
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from estate_reviews.database.enums import TargetKind

RATING_VALUES: tuple[int, ...] = (1, 2, 3, 4, 5)


# ---------------------------------------------------
# Target Reference
# ---------------------------------------------------
class TargetRef(BaseModel):
    """Reference to exactly one reviewable entity."""

    kind: TargetKind = Field(..., description="Kind of the reviewed entity")
    id: str = Field(..., min_length=1, description="Identifier of the reviewed entity")

    model_config = ConfigDict(frozen=True)

    @classmethod
    def listing(cls, listing_id: str) -> "TargetRef":
        return cls(kind=TargetKind.LISTING, id=listing_id)

    @classmethod
    def agent(cls, agent_id: str) -> "TargetRef":
        return cls(kind=TargetKind.AGENT, id=agent_id)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.id}"


# ---------------------------------------------------
# Aggregate
# ---------------------------------------------------
class Aggregate(BaseModel):
    """Rating statistics derived from every review of one target."""

    average_rating: float = Field(..., description="Mean rating rounded to one decimal")
    review_count: int = Field(..., description="Number of reviews for the target")
    distribution: dict[int, int] = Field(
        ..., description="Number of reviews per star value (1 to 5)"
    )

    @classmethod
    def zero(cls) -> "Aggregate":
        return cls(
            average_rating=0.0,
            review_count=0,
            distribution={value: 0 for value in RATING_VALUES},
        )


# ---------------------------------------------------
# Schemas for Writing Reviews
# ---------------------------------------------------
class ReviewCreate(BaseModel):
    """Payload used when submitting a review for a listing or an agent."""

    listing_id: str | None = Field(default=None, description="Listing being reviewed")
    agent_id: str | None = Field(default=None, description="Agent being reviewed")
    author_id: str = Field(..., description="User submitting the review")
    rating: int = Field(..., description="Rating from 1 (lowest) to 5 (highest)")
    title: str = Field(..., description="Review headline")
    comment: str = Field(..., description="Review body")


class ReviewUpdate(BaseModel):
    """Partial update of a review. Target and author cannot be changed."""

    rating: int | None = Field(default=None, description="New rating from 1 to 5")
    title: str | None = Field(default=None, description="New headline")
    comment: str | None = Field(default=None, description="New body")

    model_config = ConfigDict(extra="forbid")


class ReviewVerify(BaseModel):
    """Admin payload toggling the verification flag."""

    verified: bool = Field(default=True, description="Whether the review is verified")


# ---------------------------------------------------
# Partial Schemas for Embedding in Review Responses
# ---------------------------------------------------
class AuthorSnapshot(BaseModel):
    """Partial author information for embedding in review responses."""

    id: str = Field(..., description="Author's unique identifier")
    name: str = Field(..., description="Author's display name")
    avatar: str | None = Field(default=None, description="Author's avatar URL")


class ListingSnapshot(BaseModel):
    """Partial listing information for embedding in review responses."""

    id: str = Field(..., description="Listing's unique identifier")
    title: str = Field(..., description="Listing title")
    address: str = Field(default="", description="Listing address")
    image: str | None = Field(default=None, description="First listing image, if any")


class AgentSnapshot(BaseModel):
    """Partial agent information for embedding in review responses."""

    id: str = Field(..., description="Agent's unique identifier")
    name: str = Field(..., description="Agent's name")
    agency: str = Field(default="", description="Agent's agency")
    avatar: str | None = Field(default=None, description="Agent's avatar URL")


# ---------------------------------------------------
# Schemas for Reading Reviews
# ---------------------------------------------------
class ReviewRead(BaseModel):
    """Review as stored, including display snapshots."""

    id: str = Field(..., description="Review ID")
    listing_id: str | None = Field(default=None, description="Reviewed listing")
    agent_id: str | None = Field(default=None, description="Reviewed agent")
    target_kind: TargetKind = Field(..., description="Kind of the reviewed entity")
    target_id: str = Field(..., description="Identifier of the reviewed entity")
    author_id: str = Field(..., description="Author of the review")

    rating: int = Field(..., description="Star rating (1-5)")
    title: str = Field(..., description="Review headline")
    comment: str = Field(..., description="Review body")
    is_verified: bool = Field(..., description="Whether an admin verified the review")

    author_name: str | None = Field(default=None, description="Author name at creation")
    author_avatar: str | None = Field(default=None, description="Author avatar at creation")
    target_name: str | None = Field(default=None, description="Target name at creation")

    created_at: datetime = Field(..., description="Timestamp when the review was created")
    updated_at: datetime = Field(..., description="Timestamp when the review was last updated")

    model_config = ConfigDict(from_attributes=True)


class ReviewDetail(ReviewRead):
    """Review with hydrated author and target snapshots. Missing relations are null."""

    author: Optional[AuthorSnapshot] = Field(default=None, description="Current author data")
    listing: Optional[ListingSnapshot] = Field(default=None, description="Current listing data")
    agent: Optional[AgentSnapshot] = Field(default=None, description="Current agent data")


# ---------------------------------------------------
# Mutation Results
# ---------------------------------------------------
class ReviewWriteResult(BaseModel):
    """
    Result of a create or update.
    `stats_stale` is true when the review was written but the target's
    aggregate could not be refreshed.
    """

    review: ReviewRead
    stats: Aggregate | None = None
    stats_stale: bool = False


class ReviewDeleteResult(BaseModel):
    """Result of a delete, with the target's refreshed aggregate."""

    review_id: str
    target_kind: TargetKind
    target_id: str
    stats: Aggregate | None = None
    stats_stale: bool = False


# ---------------------------------------------------
# Eligibility and Filters
# ---------------------------------------------------
class Eligibility(BaseModel):
    """Whether an author may submit a review for a target."""

    allowed: bool = Field(..., description="True if a review may be submitted")
    reason: str | None = Field(default=None, description="Why the review is not allowed")


class ReviewFilter(BaseModel):
    """Combined filter for listing reviews. Results are always newest first."""

    target: TargetRef | None = None
    author_id: str | None = None
    skip: int = Field(default=0, ge=0)
    limit: int | None = Field(default=None, ge=1)
