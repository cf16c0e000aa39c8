"""initial review tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

EMPTY_DISTRIBUTION = '{"1": 0, "2": 0, "3": 0, "4": 0, "5": 0}'


def _aggregate_columns() -> list[sa.Column]:
    return [
        sa.Column("rating", sa.Float(), nullable=False, server_default="0"),
        sa.Column("review_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column(
            "rating_distribution",
            sa.JSON(),
            nullable=False,
            server_default=sa.text(f"'{EMPTY_DISTRIBUTION}'"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("avatar", sa.String(), nullable=True),
        sa.Column(
            "created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True
        ),
    )
    op.create_table(
        "listings",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("address", sa.String(), nullable=False, server_default=""),
        sa.Column("images", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        *_aggregate_columns(),
    )
    op.create_table(
        "agents",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("agency", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("avatar", sa.String(), nullable=True),
        *_aggregate_columns(),
    )
    op.create_table(
        "reviews",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("listing_id", sa.String(length=64), nullable=True),
        sa.Column("agent_id", sa.String(length=64), nullable=True),
        sa.Column("author_id", sa.String(length=64), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("comment", sa.Text(), nullable=False),
        sa.Column("is_verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("author_name", sa.String(length=200), nullable=True),
        sa.Column("author_avatar", sa.String(), nullable=True),
        sa.Column("target_name", sa.String(length=200), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("rating >= 1 AND rating <= 5", name="rating_range"),
        sa.CheckConstraint(
            "(listing_id IS NULL) <> (agent_id IS NULL)", name="exactly_one_target"
        ),
        sa.UniqueConstraint("author_id", "listing_id", name="uq_reviews_author_listing"),
        sa.UniqueConstraint("author_id", "agent_id", name="uq_reviews_author_agent"),
    )
    op.create_index("ix_reviews_listing_id", "reviews", ["listing_id"])
    op.create_index("ix_reviews_agent_id", "reviews", ["agent_id"])
    op.create_index("ix_reviews_author_id", "reviews", ["author_id"])


def downgrade() -> None:
    op.drop_index("ix_reviews_author_id", table_name="reviews")
    op.drop_index("ix_reviews_agent_id", table_name="reviews")
    op.drop_index("ix_reviews_listing_id", table_name="reviews")
    op.drop_table("reviews")
    op.drop_table("agents")
    op.drop_table("listings")
    op.drop_table("users")
