import logging
from decimal import Decimal
from typing import List
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from splitledger.models.shared_expense import SharedExpense
from splitledger.models.participant_entry import ParticipantEntry, ParticipantStatus
from splitledger.models.user import User
from splitledger.core.exceptions import ConflictError
from splitledger.core.utils import qround

logger = logging.getLogger(__name__)


class SharedExpenseRepository:
    """All reads and writes of split aggregates go through here."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _involving(self, user_id: int):
        return (
            select(SharedExpense.id)
            .outerjoin(ParticipantEntry, ParticipantEntry.shared_expense_id == SharedExpense.id)
            .where(
                (SharedExpense.paid_by == user_id) |
                (ParticipantEntry.user_id == user_id)
            )
        )

    async def get(self, split_id: int, for_update: bool = False) -> SharedExpense | None:
        q = select(SharedExpense).where(SharedExpense.id == split_id)
        if for_update:
            # lock the root row and discard anything cached in the session,
            # so state checks run against the latest committed write
            q = q.with_for_update().execution_options(populate_existing=True)
        res = await self.db.execute(q)
        return res.scalar_one_or_none()

    def add(self, split: SharedExpense):
        self.db.add(split)

    async def delete(self, split: SharedExpense):
        await self.db.delete(split)

    async def flush(self):
        try:
            await self.db.flush()
        except StaleDataError:
            await self.db.rollback()
            logger.warning("Concurrent write detected while flushing split")
            raise ConflictError(
                "The split was modified by another request, retry", retryable=True
            )

    async def save(self):
        try:
            await self.db.commit()
        except StaleDataError:
            await self.db.rollback()
            logger.warning("Concurrent write detected while committing split")
            raise ConflictError(
                "The split was modified by another request, retry", retryable=True
            )

    async def list_for_user(
        self,
        user_id: int,
        settled: bool | None = None,
        group_name: str | None = None,
    ) -> List[SharedExpense]:
        q = select(SharedExpense).where(SharedExpense.id.in_(self._involving(user_id)))

        if settled is not None:
            q = q.where(SharedExpense.is_settled == settled)

        if group_name:
            q = q.where(func.lower(SharedExpense.group_name).contains(group_name.lower()))

        q = q.order_by(SharedExpense.created_at.desc(), SharedExpense.id.desc())
        res = await self.db.execute(q)
        return list(res.scalars().all())

    async def sum_owed_by(self, user_id: int) -> Decimal:
        q = (
            select(func.coalesce(func.sum(ParticipantEntry.share_amount), 0))
            .join(SharedExpense, SharedExpense.id == ParticipantEntry.shared_expense_id)
            .where(
                ParticipantEntry.user_id == user_id,
                ParticipantEntry.is_paid == False,
                ParticipantEntry.status != ParticipantStatus.WAIVED,
                SharedExpense.paid_by != user_id,
            )
        )
        res = await self.db.execute(q)
        return qround(Decimal(str(res.scalar() or 0)))

    async def sum_owed_to(self, user_id: int) -> Decimal:
        q = (
            select(func.coalesce(func.sum(ParticipantEntry.share_amount), 0))
            .join(SharedExpense, SharedExpense.id == ParticipantEntry.shared_expense_id)
            .where(
                SharedExpense.paid_by == user_id,
                ParticipantEntry.is_paid == False,
                ParticipantEntry.status != ParticipantStatus.WAIVED,
                or_(ParticipantEntry.user_id.is_(None), ParticipantEntry.user_id != user_id),
            )
        )
        res = await self.db.execute(q)
        return qround(Decimal(str(res.scalar() or 0)))

    async def snapshot_for_user(self, user_id: int):
        """Every entry of every split the user is involved in, read by a single
        statement so the caller sees one consistent state."""
        q = (
            select(
                SharedExpense.id.label("split_id"),
                SharedExpense.paid_by,
                SharedExpense.is_settled,
                ParticipantEntry.user_id,
                ParticipantEntry.share_amount,
                ParticipantEntry.is_paid,
                ParticipantEntry.status,
            )
            .outerjoin(ParticipantEntry, ParticipantEntry.shared_expense_id == SharedExpense.id)
            .where(SharedExpense.id.in_(self._involving(user_id)))
        )
        res = await self.db.execute(q)
        return res.all()

    async def owed_by_rows(self, user_id: int):
        q = (
            select(
                SharedExpense.id.label("split_id"),
                SharedExpense.description,
                SharedExpense.paid_by.label("counterparty_id"),
                User.name.label("counterparty_name"),
                ParticipantEntry.share_amount,
            )
            .join(SharedExpense, SharedExpense.id == ParticipantEntry.shared_expense_id)
            .outerjoin(User, User.id == SharedExpense.paid_by)
            .where(
                ParticipantEntry.user_id == user_id,
                ParticipantEntry.is_paid == False,
                ParticipantEntry.status != ParticipantStatus.WAIVED,
                SharedExpense.paid_by != user_id,
            )
            .order_by(SharedExpense.created_at.desc(), SharedExpense.id.desc())
        )
        res = await self.db.execute(q)
        return res.all()

    async def owed_to_rows(self, user_id: int):
        q = (
            select(
                SharedExpense.id.label("split_id"),
                SharedExpense.description,
                ParticipantEntry.user_id.label("counterparty_id"),
                func.coalesce(User.name, ParticipantEntry.external_name).label("counterparty_name"),
                ParticipantEntry.share_amount,
            )
            .join(SharedExpense, SharedExpense.id == ParticipantEntry.shared_expense_id)
            .outerjoin(User, User.id == ParticipantEntry.user_id)
            .where(
                SharedExpense.paid_by == user_id,
                ParticipantEntry.is_paid == False,
                ParticipantEntry.status != ParticipantStatus.WAIVED,
                or_(ParticipantEntry.user_id.is_(None), ParticipantEntry.user_id != user_id),
            )
            .order_by(SharedExpense.created_at.desc(), SharedExpense.id.desc(), ParticipantEntry.position)
        )
        res = await self.db.execute(q)
        return res.all()
