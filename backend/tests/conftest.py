"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite database file with the schema created from the
ORM metadata. Requests get a fresh session per call (commit on success,
rollback on error) exactly like production; `db_session` is a separate
session for fixtures and service-level tests.
"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["REDIS_ENABLED"] = "False"
os.environ["PAYMENT_PROCESSOR"] = "approve"
os.environ["ADMIN_EMAILS"] = '["admin@booth33.com"]'

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Awaitable, Callable, Optional

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from booth33.main import app
from booth33.db.base import Base
from booth33.db.session import get_db
from booth33.core.security import create_access_token, hash_password
from booth33.models.event import Event
from booth33.models.payment import PaymentMethod
from booth33.models.user import User
from booth33.services.credit_service import CreditService
from booth33.services.interfaces import ChargeResult, PaymentProcessor
from booth33.services.strategy_factory import get_payment_processor

TEST_PASSWORD = "TestPassword123"


class ScriptedPaymentProcessor(PaymentProcessor):
    """
    Approves every charge unless told to decline the next ones. `on_charge`
    runs inside each charge, for simulating work that lands mid-checkout.
    """

    def __init__(self):
        self.declines_pending = 0
        self.on_charge: Optional[Callable[[], Awaitable[None]]] = None
        self.charges: list[Decimal] = []
        self.refunds: list[Decimal] = []

    def decline_next(self, count: int = 1) -> None:
        self.declines_pending += count

    async def charge(self, amount: Decimal, card_label: str, description: str) -> ChargeResult:
        self.charges.append(amount)
        if self.on_charge is not None:
            await self.on_charge()
        if self.declines_pending:
            self.declines_pending -= 1
            return ChargeResult(approved=False, failure_reason="Card declined")
        return ChargeResult(approved=True, reference=f"test_{len(self.charges)}")

    async def refund(self, reference: Optional[str], amount: Decimal) -> None:
        self.refunds.append(amount)


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh database file with all tables for one test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def processor() -> ScriptedPaymentProcessor:
    return ScriptedPaymentProcessor()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, processor) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency and the card gateway."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payment_processor] = lambda: processor

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, email: str, username: str, is_admin: bool = False) -> User:
    user = User(
        email=email,
        username=username,
        full_name=username.title(),
        hashed_password=hash_password(TEST_PASSWORD),
        is_admin=is_admin,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "is_admin": user.is_admin})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "test@example.com", "testuser")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "other@example.com", "otheruser")


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _create_user(db_session, "admin@booth33.com", "studioadmin", is_admin=True)


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    """Authorization headers with Bearer token."""
    return _headers(test_user)


@pytest_asyncio.fixture
async def other_headers(other_user: User) -> dict:
    return _headers(other_user)


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers(admin_user)


@pytest.fixture
def booking_day() -> date:
    """A date far enough ahead to count as upcoming."""
    return date.today() + timedelta(days=14)


@pytest_asyncio.fixture
async def payment_method(db_session: AsyncSession, test_user: User) -> PaymentMethod:
    method = PaymentMethod(
        user_id=test_user.id,
        brand="visa",
        last4="4242",
        expiry_month=12,
        expiry_year=date.today().year + 3,
        holder_name="Test User",
        is_default=True,
    )
    db_session.add(method)
    await db_session.commit()
    await db_session.refresh(method)
    return method


@pytest.fixture
def grant_credits(db_session: AsyncSession):
    """Give a user studio credits and commit."""

    async def _grant(user: User, amount) -> None:
        await CreditService(db_session).grant_credits(user.id, Decimal(amount), "Test grant")
        await db_session.commit()

    return _grant


@pytest_asyncio.fixture
async def test_event(db_session: AsyncSession, admin_user: User, booking_day: date) -> Event:
    """A two-hour open mic at 2:00 PM with room for two."""
    event = Event(
        name="Open Mic Night",
        type="open-mic",
        description="Bring a song",
        date=booking_day,
        time_slot="2:00 PM",
        duration=2,
        max_attendees=2,
        current_attendees=0,
        price=Decimal("0"),
        created_by=admin_user.id,
        version=1,
    )
    db_session.add(event)
    await db_session.commit()
    await db_session.refresh(event)
    return event
