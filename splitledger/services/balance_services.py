import logging
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from splitledger.core.utils import qround, ZERO
from splitledger.models.participant_entry import ParticipantStatus
from splitledger.repositories.shared_expense_repository import SharedExpenseRepository
from splitledger.schemas.balances import BalanceSummary, OwedBreakdown, OwedItem

logger = logging.getLogger(__name__)


async def get_owed_by_user(db: AsyncSession, user_id: int) -> Decimal:
    return await SharedExpenseRepository(db).sum_owed_by(user_id)


async def get_owed_to_user(db: AsyncSession, user_id: int) -> Decimal:
    return await SharedExpenseRepository(db).sum_owed_to(user_id)


async def get_summary(db: AsyncSession, user_id: int) -> BalanceSummary:
    rows = await SharedExpenseRepository(db).snapshot_for_user(user_id)

    you_owe = ZERO
    owed_to_you = ZERO
    unsettled = set()

    for row in rows:
        if not row.is_settled:
            unsettled.add(row.split_id)

        # split with no entries left in the outer join
        if row.share_amount is None:
            continue

        if row.is_paid or row.status == ParticipantStatus.WAIVED:
            continue

        amount = qround(Decimal(str(row.share_amount)))

        if row.paid_by == user_id:
            if row.user_id != user_id:
                owed_to_you += amount
        elif row.user_id == user_id:
            you_owe += amount

    summary = BalanceSummary(
        total_you_owe=qround(you_owe),
        total_owed_to_you=qround(owed_to_you),
        net_balance=qround(owed_to_you - you_owe),
        unsettled_count=len(unsettled),
    )

    logger.info(
        "Summary for user %s: you owe %s, owed to you %s, net %s",
        user_id,
        summary.total_you_owe,
        summary.total_owed_to_you,
        summary.net_balance,
    )
    return summary


async def get_owed_by_breakdown(db: AsyncSession, user_id: int) -> OwedBreakdown:
    rows = await SharedExpenseRepository(db).owed_by_rows(user_id)
    return _breakdown(rows)


async def get_owed_to_breakdown(db: AsyncSession, user_id: int) -> OwedBreakdown:
    rows = await SharedExpenseRepository(db).owed_to_rows(user_id)
    return _breakdown(rows)


def _breakdown(rows) -> OwedBreakdown:
    total = ZERO
    items = []

    for row in rows:
        amt = qround(Decimal(str(row.share_amount)))
        total += amt
        items.append(
            OwedItem(
                split_id=row.split_id,
                description=row.description,
                counterparty_id=row.counterparty_id,
                counterparty_name=row.counterparty_name,
                amount=amt,
            )
        )

    return OwedBreakdown(total=qround(total), items=items)
