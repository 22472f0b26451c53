"""
Pytest fixtures for test database, client, authentication and catalog data.

Each test gets a fresh schema on a temporary SQLite file (aiosqlite), and
the API shares the test's session so fixtures and requests see the same
rows. Redis is disabled and no notification channel is configured, so
nothing leaves the process.
"""

import os
import tempfile
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

_DB_PATH = os.path.join(tempfile.gettempdir(), f"playzone_test_{os.getpid()}.db")
TEST_DATABASE_URL = f"sqlite+aiosqlite:///{_DB_PATH}"

os.environ["DATABASE_URL"] = TEST_DATABASE_URL
os.environ["REDIS_ENABLED"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["RAZORPAY_KEY_SECRET"] = "rzp_test_secret"
os.environ.pop("SMTP_HOST", None)
os.environ.pop("WHATSAPP_ACCESS_TOKEN", None)

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token, hash_password
from app.models import DiscountVoucher, Package, TimeSlot, User

test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create tables, yield session, then drop tables for isolation."""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client that overrides the DB dependency with the test session."""

    async def override_get_db():
        yield db_session
        await db_session.commit()

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _make_user(db: AsyncSession, email: str, username: str, role: str) -> User:
    user = User(
        email=email,
        username=username,
        hashed_password=hash_password("testpassword123"),
        first_name="Test",
        phone="9876543210",
        role=role,
        permissions=[],
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def _headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """A plain customer account."""
    return await _make_user(db_session, "test@example.com", "testuser", "customer")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict:
    return _headers_for(test_user)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "admin@example.com", "adminuser", "admin")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict:
    return _headers_for(admin_user)


@pytest_asyncio.fixture
async def staff_user(db_session: AsyncSession) -> User:
    return await _make_user(db_session, "staff@example.com", "staffuser", "staff")


@pytest_asyncio.fixture
async def staff_headers(staff_user: User) -> dict:
    return _headers_for(staff_user)


@pytest_asyncio.fixture
async def test_package(db_session: AsyncSession) -> Package:
    """Two-hour play session at 100.00 per child."""
    package = Package(
        name="2 Hour Play",
        type="walk_in",
        price=Decimal("100.00"),
        duration=2,
        description="Unlimited play for two hours",
        features=["Ball pit", "Trampoline"],
        max_children=20,
        is_active=True,
    )
    db_session.add(package)
    await db_session.commit()
    await db_session.refresh(package)
    return package


@pytest_asyncio.fixture
async def birthday_package(db_session: AsyncSession) -> Package:
    package = Package(
        name="Birthday Bash",
        type="birthday",
        price=Decimal("2500.00"),
        duration=3,
        features=["Party room", "Cake table"],
        max_children=15,
        is_active=True,
    )
    db_session.add(package)
    await db_session.commit()
    await db_session.refresh(package)
    return package


@pytest_asyncio.fixture
async def test_slot(db_session: AsyncSession) -> TimeSlot:
    """10:00-12:00 with room for 15 children."""
    slot = TimeSlot(start_time=time(10, 0), end_time=time(12, 0), max_capacity=15, is_active=True)
    db_session.add(slot)
    await db_session.commit()
    await db_session.refresh(slot)
    return slot


@pytest_asyncio.fixture
async def small_slot(db_session: AsyncSession) -> TimeSlot:
    """16:00-18:00 with room for only 3 children."""
    slot = TimeSlot(start_time=time(16, 0), end_time=time(18, 0), max_capacity=3, is_active=True)
    db_session.add(slot)
    await db_session.commit()
    await db_session.refresh(slot)
    return slot


@pytest_asyncio.fixture
async def test_voucher(db_session: AsyncSession) -> DiscountVoucher:
    """10% off, capped at 20.00, five uses."""
    now = datetime.now(timezone.utc)
    voucher = DiscountVoucher(
        code="SAVE10",
        discount_type="percentage",
        discount_value=Decimal("10"),
        max_discount=Decimal("20.00"),
        valid_from=now - timedelta(days=1),
        valid_till=now + timedelta(days=30),
        usage_limit=5,
        used_count=0,
        is_active=True,
    )
    db_session.add(voucher)
    await db_session.commit()
    await db_session.refresh(voucher)
    return voucher


@pytest.fixture
def booking_date() -> date:
    return date.today() + timedelta(days=7)


def booking_payload(package: Package, slot: TimeSlot, on: date, children: int = 1, **extra) -> dict:
    payload = {
        "package_id": package.id,
        "time_slot_id": slot.id,
        "booking_date": on.isoformat(),
        "number_of_children": children,
        "children_ages": [5] * children,
        "parent_name": "Priya Sharma",
        "parent_phone": "9876543210",
        "parent_email": "priya@example.com",
    }
    payload.update(extra)
    return payload
