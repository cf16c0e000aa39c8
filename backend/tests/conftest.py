"""
tests/conftest.py

Test fixtures for API integration and unit tests.
Includes async clients, fake entities, in-memory collaborators,
an in-memory SQLite session, and dependency overrides.
"""
import os
import sys
from pathlib import Path

# --- Test settings must be in place before the application is imported ---
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

project_root = Path(__file__).parent.parent
tests_root = Path(__file__).parent
for path in (project_root, tests_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

# --- Imports ---
from collections.abc import AsyncGenerator
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from estate_reviews.core.dependencies import get_review_service
from estate_reviews.database.enums import TargetKind
from estate_reviews.database.init_db import init_db
from estate_reviews.database.models import Agent, Listing, User
from estate_reviews.database.session import get_db
from estate_reviews.review.locks import TargetLocks
from estate_reviews.review.schemas import Aggregate, ReviewRead, TargetRef
from estate_reviews.review.services import ReviewService
from fakes import FaultySession, InMemoryEntityGateway, InMemoryReviewStore

ADMIN_KEY = "test-admin-key"


# --- Core Test Fixtures ---


@pytest.fixture(scope="session")
def transport() -> ASGITransport:
    """Fixture for ASGI transport."""
    return ASGITransport(app=app)


@pytest_asyncio.fixture(scope="function")
async def async_client(transport: ASGITransport) -> AsyncGenerator[AsyncClient, None]:
    """Fixture for HTTP async client."""
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-Admin-Key": ADMIN_KEY}


# --- Fake Entity Fixtures ---


@pytest.fixture
def fake_author() -> User:
    """Fixture for a fake review author."""
    return User(
        id="user-1",
        name="Ada Obi",
        email="ada@example.com",
        avatar="https://cdn.example.com/ada.png",
    )


@pytest.fixture
def fake_second_author() -> User:
    return User(id="user-2", name="Tunde Bello", email="tunde@example.com", avatar=None)


@pytest.fixture
def fake_listing() -> Listing:
    """Fixture for a fake listing with a zero aggregate."""
    return Listing(
        id="listing-1",
        title="Two-bedroom flat in Yaba",
        address="12 Herbert Macaulay Way, Lagos",
        images=["https://cdn.example.com/l1-front.jpg", "https://cdn.example.com/l1-kitchen.jpg"],
        rating=0.0,
        review_count=0,
        rating_distribution={"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
    )


@pytest.fixture
def fake_agent() -> Agent:
    """Fixture for a fake agent with a zero aggregate."""
    return Agent(
        id="agent-1",
        name="Chioma Eze",
        agency="Harbour Homes",
        avatar="https://cdn.example.com/chioma.png",
        rating=0.0,
        review_count=0,
        rating_distribution={"1": 0, "2": 0, "3": 0, "4": 0, "5": 0},
    )


# --- In-Memory Collaborators ---


@pytest.fixture
def review_store() -> InMemoryReviewStore:
    return InMemoryReviewStore()


@pytest.fixture
def entity_gateway(
    fake_author: User, fake_second_author: User, fake_listing: Listing, fake_agent: Agent
) -> InMemoryEntityGateway:
    """Gateway seeded with two authors, one listing and one agent."""
    gateway = InMemoryEntityGateway()
    gateway.add_user(fake_author)
    gateway.add_user(fake_second_author)
    gateway.add_listing(fake_listing)
    gateway.add_agent(fake_agent)
    return gateway


@pytest.fixture
def review_service(
    review_store: InMemoryReviewStore, entity_gateway: InMemoryEntityGateway
) -> ReviewService:
    """ReviewService wired to in-memory collaborators and a private lock registry."""
    return ReviewService(store=review_store, gateway=entity_gateway, locks=TargetLocks())


# --- Dependency Override Fixtures ---


@pytest_asyncio.fixture
async def override_get_db() -> AsyncGenerator[None, None]:
    """Override for the database dependency."""

    async def _override() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db] = _override
    yield
    app.dependency_overrides.pop(get_db, None)


@pytest_asyncio.fixture
async def override_review_service(review_service: ReviewService) -> AsyncGenerator[ReviewService, None]:
    """Serve routes from the in-memory ReviewService."""
    app.dependency_overrides[get_review_service] = lambda: review_service
    yield review_service
    app.dependency_overrides.pop(get_review_service, None)


# --- Database Fixtures ---


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[FaultySession, None]:
    """Fresh in-memory SQLite database per test, with all tables created.
    The session accepts failure hooks and behaves normally while they are unset."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    session_factory = async_sessionmaker(bind=engine, class_=FaultySession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


# --- Fake Data Fixtures (Schema Instances) ---


@pytest.fixture
def fake_review_read() -> ReviewRead:
    """Fixture for a fake ReviewRead about the fake listing."""
    now = datetime.now(timezone.utc)
    return ReviewRead(
        id="review-1",
        listing_id="listing-1",
        agent_id=None,
        target_kind=TargetKind.LISTING,
        target_id="listing-1",
        author_id="user-1",
        rating=5,
        title="Great flat",
        comment="Bright rooms and a responsive landlord.",
        is_verified=False,
        author_name="Ada Obi",
        author_avatar=None,
        target_name="Two-bedroom flat in Yaba",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def fake_aggregate() -> Aggregate:
    return Aggregate(
        average_rating=4.4, review_count=5, distribution={1: 0, 2: 0, 3: 1, 4: 1, 5: 3}
    )


@pytest.fixture
def listing_target() -> TargetRef:
    return TargetRef.listing("listing-1")


@pytest.fixture
def agent_target() -> TargetRef:
    return TargetRef.agent("agent-1")
