"""
backend/estate_reviews/database/models.py

Entity Store Models

Defines the read models for the records the review engine consumes:
- User: review authors
- Listing: properties that can be reviewed
- Agent: professional agents that can be reviewed

The lifecycle of these records belongs to other services. The review
engine only reads them and writes the rating aggregate columns
(rating, review_count, rating_distribution) on listings and agents.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from estate_reviews.database.base import Base


def _empty_distribution() -> dict[str, int]:
    return {"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}


# ---------------------------------------------------
# User Model: Review Author
# ---------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, comment="Unique identifier for the user"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, comment="Display name")
    email: Mapped[str] = mapped_column(String(255), nullable=False, comment="User's email address")
    avatar: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="URL of the user's avatar (optional)"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        comment="Timestamp when the user was created",
    )


# ---------------------------------------------------
# Listing Model: Reviewable Property
# ---------------------------------------------------
class Listing(Base):
    __tablename__ = "listings"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, comment="Unique identifier for the listing"
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False, comment="Listing title")
    address: Mapped[str] = mapped_column(String, nullable=False, default="", comment="Address")
    images: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list, comment="Ordered list of image URLs"
    )

    # Rating aggregate (owned by the review engine)
    rating: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, comment="Average review rating"
    )
    review_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Number of reviews"
    )
    rating_distribution: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=_empty_distribution, comment="Review count per star value"
    )


# ---------------------------------------------------
# Agent Model: Reviewable Professional
# ---------------------------------------------------
class Agent(Base):
    __tablename__ = "agents"

    id: Mapped[str] = mapped_column(
        String(64), primary_key=True, comment="Unique identifier for the agent"
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, comment="Agent's name")
    agency: Mapped[str] = mapped_column(String(200), nullable=False, default="", comment="Agency")
    avatar: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="URL of the agent's avatar (optional)"
    )

    # Rating aggregate (owned by the review engine)
    rating: Mapped[float] = mapped_column(
        Float, nullable=False, default=0.0, comment="Average review rating"
    )
    review_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, comment="Number of reviews"
    )
    rating_distribution: Mapped[dict[str, Any]] = mapped_column(
        JSON, nullable=False, default=_empty_distribution, comment="Review count per star value"
    )
