"""
Centralized Test Configuration.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from decimal import Decimal

import jwt
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from splitledger.core.config import settings
from splitledger.db.session import Base, get_db
from splitledger.models.user import User
from splitledger.models.expense import Expense
import splitledger.models.shared_expense  # noqa: F401 register tables
import splitledger.models.participant_entry  # noqa: F401
from splitledger.main import app

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4


@pytest.fixture
async def engine():
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
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def users(session_factory):
    async with session_factory() as session:
        session.add_all([
            User(id=ALICE, name="Alice", email="alice@example.com"),
            User(id=BOB, name="Bob", email="bob@example.com"),
            User(id=CAROL, name="Carol", email="carol@example.com"),
            User(id=DAVE, name="Dave", email="dave@example.com"),
        ])
        await session.commit()
    return {"alice": ALICE, "bob": BOB, "carol": CAROL, "dave": DAVE}


@pytest.fixture
def make_expense(session_factory, users):
    """Insert an originating expense and return its id."""
    async def _make(owner_id: int, amount: str, description: str | None = None) -> int:
        async with session_factory() as session:
            expense = Expense(user_id=owner_id, amount=Decimal(amount), description=description)
            session.add(expense)
            await session.commit()
            return expense.id
    return _make


@pytest.fixture
def auth_headers():
    def _headers(user_id: int) -> dict:
        token = jwt.encode({"sub": str(user_id)}, settings.JWT_SECRET, algorithm=settings.JWT_ALGO)
        return {"Authorization": f"Bearer {token}"}
    return _headers


@pytest.fixture
async def client(session_factory):
    """Async client for testing."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides = {}
