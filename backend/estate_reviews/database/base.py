"""
backend/estate_reviews/database/base.py

Declarative base shared by the reviewed entities (users, listings, agents)
and the reviews table, so `Base.metadata` covers every table that
`init_db` and the alembic environment create.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
