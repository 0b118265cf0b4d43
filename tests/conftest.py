import os
from datetime import timedelta
from typing import Any

os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from giftcard_api.api.deps import get_job_queue
from giftcard_api.core.dates import utc_now
from giftcard_api.core.security import create_access_token, hash_password
from giftcard_api.db.session import get_db
from giftcard_api.main import app
from giftcard_api.models.base import Base
from giftcard_api.models.enums import ProfileStatus, UserRole
from giftcard_api.models.gift_card import GiftCard
from giftcard_api.models.merchant import MerchantProfile
from giftcard_api.models.user import User
from giftcard_api.schemas.activity_log import ActivityPayload
from giftcard_api.schemas.notification import NotificationPayload
from giftcard_api.services.activity_log import ActivityLogService
from giftcard_api.services.auth import claims_for
from giftcard_api.services.notification import NotificationService
from giftcard_api.worker.queue import JobQueue

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")

# One shared in-memory database for the app and the test code
test_engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    poolclass=StaticPool,
    connect_args={"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {},
)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

PASSWORD = "Password123"


class RecordingJobQueue(JobQueue):
    """Job queue that keeps jobs in memory instead of sending them to Redis."""

    def __init__(self):
        super().__init__(None)
        self.jobs: list[tuple[str, dict[str, Any]]] = []

    async def enqueue(self, function: str, payload: dict[str, Any]) -> str | None:
        self.jobs.append((function, payload))
        return f"job-{len(self.jobs)}"

    def payloads(self, function: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.jobs if name == function]

    def emails(self, kind: str | None = None) -> list[dict[str, Any]]:
        return [p for p in self.payloads("send_email") if kind is None or p["kind"] == kind]

    def notifications(self) -> list[dict[str, Any]]:
        return self.payloads("create_notification")

    def activities(self, action: str | None = None) -> list[dict[str, Any]]:
        return [p for p in self.payloads("record_activity") if action is None or p["action"] == action]

    async def drain(self, db: AsyncSession) -> None:
        """Run queued notification and activity jobs the way the worker would."""
        jobs, self.jobs = self.jobs, []
        for function, payload in jobs:
            if function == "create_notification":
                await NotificationService(db).deliver(NotificationPayload.model_validate(payload))
            elif function == "record_activity":
                await ActivityLogService(db).record(ActivityPayload.model_validate(payload))


@pytest.fixture(scope="function")
async def setup_database():
    """Create all tables for one test and drop them afterwards."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(setup_database):
    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture
def job_queue() -> RecordingJobQueue:
    return RecordingJobQueue()


@pytest.fixture
async def client(db_session: AsyncSession, job_queue: RecordingJobQueue):
    """Provide test client with database and job queue overrides."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_job_queue] = lambda: job_queue

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(claims_for(user))}"}


def profile_data(**overrides: Any) -> dict[str, Any]:
    data = {
        "business_name": "Chai Point",
        "address": "12 MG Road, Indiranagar",
        "city": "Bengaluru",
        "country": "India",
        "business_phone": "9876543210",
        "business_email": "owner@chaipoint.example",
        "bank_name": "HDFC Bank",
        "account_number": "50100012345678",
        "account_holder_name": "Chai Point Pvt Ltd",
        "identity_document": "https://files.example/id/chai-point.pdf",
    }
    data.update(overrides)
    return data


async def make_user(
    db: AsyncSession,
    email: str,
    role: UserRole = UserRole.MERCHANT,
    profile_status: ProfileStatus | None = None,
    **profile_overrides: Any,
) -> User:
    user = User(
        email=email,
        password_hash=hash_password(PASSWORD),
        name=email.split("@")[0].title(),
        role=role,
        email_verified=True,
        merchant_profile=None,
    )
    if profile_status is not None:
        user.merchant_profile = MerchantProfile(
            profile_status=profile_status,
            is_verified=profile_status == ProfileStatus.VERIFIED,
            additional_documents=[],
            **profile_data(**profile_overrides),
        )
    db.add(user)
    await db.commit()
    return user


async def make_gift_card(
    db: AsyncSession, merchant: User, price: int = 5000, days: int = 30, **kwargs: Any
) -> GiftCard:
    gift_card = GiftCard(
        merchant_id=merchant.id,
        title=kwargs.pop("title", "Coffee Card"),
        price=price,
        expiry_date=utc_now() + timedelta(days=days),
        is_active=kwargs.pop("is_active", True),
        **kwargs,
    )
    db.add(gift_card)
    await db.commit()
    return gift_card


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, "admin@example.com", role=UserRole.ADMIN)


@pytest.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture
async def new_merchant(db_session: AsyncSession) -> User:
    """Merchant that registered but has not submitted a profile."""
    return await make_user(db_session, "newshop@example.com")


@pytest.fixture
async def pending_merchant(db_session: AsyncSession) -> User:
    return await make_user(
        db_session, "pending@example.com", profile_status=ProfileStatus.PENDING_VERIFICATION
    )


@pytest.fixture
async def merchant(db_session: AsyncSession) -> User:
    """Verified merchant."""
    return await make_user(db_session, "merchant@example.com", profile_status=ProfileStatus.VERIFIED)


@pytest.fixture
async def merchant_headers(merchant: User) -> dict[str, str]:
    return auth_headers_for(merchant)


@pytest.fixture
async def other_merchant(db_session: AsyncSession) -> User:
    return await make_user(
        db_session,
        "other@example.com",
        profile_status=ProfileStatus.VERIFIED,
        business_name="Other Shop",
    )


@pytest.fixture
async def gift_card(db_session: AsyncSession, merchant: User) -> GiftCard:
    return await make_gift_card(db_session, merchant)
