"""
Pytest configuration and shared fixtures for backend tests.
"""

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Awaitable, Callable, Optional
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from adapters.ai.anthropic_adapter import GeneratedBlogPost
from api.dependencies import get_content_service, get_image_service
from core.security import TokenService
from infrastructure.config import get_settings
from infrastructure.database.connection import get_db
from infrastructure.database.models import Base, User
from infrastructure.database.models.user import SubscriptionTier, UserRole

settings = get_settings()
token_service = TokenService(secret_key=settings.jwt_secret_key)


# Database URL for testing (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# A few hundred characters: costs one token
SOURCE_TEXT = (
    "Remote teams ship faster when decisions are written down. "
    "We moved every design discussion into short documents, "
    "reviewed them asynchronously and kept meetings for disagreements only. "
    "Cycle time dropped by a third within a quarter, onboarding got easier, "
    "and nobody had to remember what was said in a call six weeks ago."
)


class FakeContentService:
    """Stand-in for the Anthropic client used by the generation workflow."""

    model = "fake-model"
    is_configured = True

    def __init__(
        self,
        post: Optional[GeneratedBlogPost] = None,
        error: Optional[Exception] = None,
        before_return: Optional[Callable[[], Awaitable[None]]] = None,
    ):
        self.post = post or GeneratedBlogPost(
            title="Write It Down: How Async Docs Speed Up Remote Teams",
            content="<h2>Why writing wins</h2><p>Decisions stick.</p>",
            image_prompt="A tidy desk with notebooks and a laptop",
        )
        self.error = error
        self.before_return = before_return
        self.calls: list[str] = []

    async def generate_blog_post(self, original_text: str) -> GeneratedBlogPost:
        self.calls.append(original_text)
        if self.error is not None:
            raise self.error
        if self.before_return is not None:
            await self.before_return()
        return self.post


class FakeImageService:
    """Stand-in for the Replicate client."""

    is_configured = True

    def __init__(
        self,
        url: Optional[str] = "https://images.example.com/featured.png",
        error: Optional[Exception] = None,
    ):
        self.url = url
        self.error = error
        self.prompts: list[str] = []

    async def generate_blog_image(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.url


def make_auth_headers(user: User) -> dict:
    access_token = token_service.create_access_token(user_id=user.id)
    return {"Authorization": f"Bearer {access_token}"}


async def create_user(
    db: AsyncSession,
    email: str,
    *,
    role: str = UserRole.USER.value,
    tier: str = SubscriptionTier.PREMIUM.value,
    tokens: int = 10,
    subscription_expires: Optional[datetime] = None,
    name: Optional[str] = None,
) -> User:
    user = User(
        id=str(uuid4()),
        email=email,
        name=name or email.split("@")[0].title(),
        role=role,
        tokens=tokens,
        subscription_tier=tier,
        subscription_status="active",
        subscription_expires=subscription_expires,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
async def db_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    session_maker = async_sessionmaker(
        db_engine, class_=AsyncSession, expire_on_commit=False
    )

    async with session_maker() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def test_user(db_session: AsyncSession) -> User:
    """Premium user with 10 tokens and an open-ended subscription."""
    return await create_user(
        db_session,
        "test@example.com",
        subscription_expires=datetime.now(timezone.utc) + timedelta(days=30),
    )


@pytest.fixture
async def free_user(db_session: AsyncSession) -> User:
    """Free tier user; has tokens but no paid access."""
    return await create_user(db_session, "free@example.com", tier=SubscriptionTier.FREE.value)


@pytest.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "other@example.com")


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, "admin@example.com", role=UserRole.ADMIN.value)


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    """Generate authentication headers for test user."""
    return make_auth_headers(test_user)


@pytest.fixture
def other_auth_headers(other_user: User) -> dict:
    return make_auth_headers(other_user)


@pytest.fixture
def admin_auth_headers(admin_user: User) -> dict:
    return make_auth_headers(admin_user)


@pytest.fixture
def content_service() -> FakeContentService:
    return FakeContentService()


@pytest.fixture
def image_service() -> FakeImageService:
    return FakeImageService()


@pytest.fixture
async def async_client(
    db_session: AsyncSession,
    content_service: FakeContentService,
    image_service: FakeImageService,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for testing."""
    # Import app here so settings and the limiter are built with test env
    from main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_content_service] = lambda: content_service
    app.dependency_overrides[get_image_service] = lambda: image_service

    # Reset rate limiter state between tests to prevent cross-test 429s
    app.state.limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def source_text() -> str:
    return SOURCE_TEXT


@pytest.fixture
def user_factory(db_session: AsyncSession):
    """Create extra users: ``await user_factory("x@example.com", tokens=0)``."""

    async def _create(email: str, **kwargs) -> User:
        return await create_user(db_session, email, **kwargs)

    return _create


@pytest.fixture
def headers_for():
    """Build auth headers for any user."""
    return make_auth_headers
