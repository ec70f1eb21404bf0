"""
Concurrent writers on the same split.

Two sessions against a file-backed database stand in for two requests
racing on one aggregate.
"""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from splitledger.core.exceptions import ConflictError
from splitledger.db.session import Base
from splitledger.models.expense import Expense
from splitledger.models.user import User
from splitledger.models.shared_expense import SplitType
from splitledger.repositories.shared_expense_repository import SharedExpenseRepository
from splitledger.schemas.shared_expense import ParticipantInput, SplitCreate
from splitledger.services.shared_expense_services import (
    create_split,
    get_split,
    mark_participant_paid,
)

ALICE, BOB, CAROL = 1, 2, 3


@pytest.fixture
async def race_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'race.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)

    async with factory() as session:
        session.add_all([
            User(id=ALICE, name="Alice", email="alice@example.com"),
            User(id=BOB, name="Bob", email="bob@example.com"),
            User(id=CAROL, name="Carol", email="carol@example.com"),
            Expense(id=1, user_id=ALICE, amount=Decimal("90.00"), description="Dinner"),
        ])
        await session.commit()

    yield factory
    await engine.dispose()


async def _create(factory):
    async with factory() as db:
        split = await create_split(db, ALICE, SplitCreate(
            expense_id=1,
            split_type=SplitType.EQUAL,
            participants=[ParticipantInput(user_id=BOB), ParticipantInput(user_id=CAROL)],
        ))
        return split.id, [p.id for p in split.participants]


async def test_stale_writer_gets_retryable_conflict(race_factory):
    split_id, (bob_entry, _) = await _create(race_factory)

    async with race_factory() as db_a, race_factory() as db_b:
        stale = await get_split(db_a, ALICE, split_id)

        await mark_participant_paid(db_b, BOB, split_id, bob_entry)

        stale.description = "edited from an old read"
        with pytest.raises(ConflictError) as exc_info:
            await SharedExpenseRepository(db_a).save()

        assert exc_info.value.retryable is True


async def test_last_payment_sees_the_concurrent_one_and_settles(race_factory):
    split_id, (bob_entry, carol_entry) = await _create(race_factory)

    async with race_factory() as db_a, race_factory() as db_b:
        # db_a has both entries cached as pending
        cached = await get_split(db_a, ALICE, split_id)
        assert all(not p.is_paid for p in cached.participants)

        await mark_participant_paid(db_b, BOB, split_id, bob_entry)
        result = await mark_participant_paid(db_a, CAROL, split_id, carol_entry)

        assert result.is_settled is True
        assert result.settled_at is not None

    async with race_factory() as db_c:
        fresh = await get_split(db_c, ALICE, split_id)
        assert fresh.is_settled is True
        assert all(p.is_paid for p in fresh.participants)


async def test_second_of_two_racing_payments_on_same_entry_is_rejected(race_factory):
    split_id, (bob_entry, _) = await _create(race_factory)

    async with race_factory() as db_a, race_factory() as db_b:
        await get_split(db_a, ALICE, split_id)

        await mark_participant_paid(db_b, BOB, split_id, bob_entry)

        with pytest.raises(ConflictError) as exc_info:
            await mark_participant_paid(db_a, ALICE, split_id, bob_entry)
        assert "already paid" in exc_info.value.detail
