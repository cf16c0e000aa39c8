"""
review/models.py

Defines the Review model for storing listing and agent feedback.
- Each review targets exactly one listing or one agent.
- One review per (author, target) pair, enforced by unique constraints.
- Carries display snapshots of author and target names taken at creation.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import CheckConstraint

from estate_reviews.database.base import Base
from estate_reviews.database.enums import TargetKind
from estate_reviews.review.schemas import TargetRef


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Review(Base):
    """
    Review submitted by a user about a listing or an agent.
    Includes a star rating (1-5), title, comment, and an admin verification flag.
    """

    __tablename__ = "reviews"
    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
        CheckConstraint(
            "(listing_id IS NULL) <> (agent_id IS NULL)", name="exactly_one_target"
        ),
        UniqueConstraint("author_id", "listing_id", name="uq_reviews_author_listing"),
        UniqueConstraint("author_id", "agent_id", name="uq_reviews_author_agent"),
        Index("ix_reviews_listing_id", "listing_id"),
        Index("ix_reviews_agent_id", "agent_id"),
        Index("ix_reviews_author_id", "author_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
        comment="Unique identifier for the review",
    )

    # Target reference (exactly one is set)
    listing_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, comment="Reviewed listing, if the target is a listing"
    )
    agent_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, comment="Reviewed agent, if the target is an agent"
    )

    author_id: Mapped[str] = mapped_column(
        String(64), nullable=False, comment="User ID of the review author"
    )

    # Review content
    rating: Mapped[int] = mapped_column(Integer, nullable=False, comment="Star rating from 1 to 5")
    title: Mapped[str] = mapped_column(String(200), nullable=False, comment="Review headline")
    comment: Mapped[str] = mapped_column(Text, nullable=False, comment="Review body")

    # Admin verification
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, comment="Whether an admin verified the review"
    )

    # Display snapshots, never used for aggregation
    author_name: Mapped[str | None] = mapped_column(
        String(200), nullable=True, comment="Author name at creation time"
    )
    author_avatar: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="Author avatar at creation time"
    )
    target_name: Mapped[str | None] = mapped_column(
        String(200), nullable=True, comment="Listing title or agent name at creation time"
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        comment="Timestamp when the review was created",
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
        comment="Timestamp when the review was last updated",
    )

    @property
    def target(self) -> TargetRef:
        """The listing or agent this review is about."""
        if self.listing_id:
            return TargetRef(kind=TargetKind.LISTING, id=self.listing_id)
        return TargetRef(kind=TargetKind.AGENT, id=self.agent_id or "")

    @property
    def target_kind(self) -> TargetKind:
        return self.target.kind

    @property
    def target_id(self) -> str:
        return self.target.id
