import logging
from decimal import Decimal
from typing import List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession

from splitledger.core.config import settings
from splitledger.core.exceptions import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from splitledger.core.utils import money_sum, qround
from splitledger.db.session import atomic
from splitledger.models.participant_entry import ParticipantEntry, ParticipantStatus
from splitledger.models.shared_expense import SharedExpense, SplitType, utcnow
from splitledger.repositories.shared_expense_repository import SharedExpenseRepository
from splitledger.schemas.shared_expense import ParticipantInput, SplitCreate, SplitUpdate
from splitledger.services.lookups import (
    ExpenseLookup,
    SqlExpenseLookup,
    SqlUserLookup,
    UserLookup,
)
from splitledger.services.split_strategies import get_strategy

logger = logging.getLogger(__name__)


async def _load_with_access(
    repo: SharedExpenseRepository,
    split_id: int,
    user_id: int,
    for_update: bool = False,
) -> SharedExpense:
    split = await repo.get(split_id, for_update=for_update)

    if not split:
        raise NotFoundError(f"Shared expense not found with id: {split_id}")

    if not split.has_access(user_id):
        raise AuthorizationError("User does not have access to this shared expense")

    return split


def _require_payer(split: SharedExpense, user_id: int, action: str):
    if split.paid_by != user_id:
        raise AuthorizationError(f"Only the payer can {action} this shared expense")


def _check_tolerance(total: Decimal, shares: Sequence[Decimal]):
    share_total = money_sum(shares)
    diff = abs(qround(total) - share_total)
    if diff > settings.SHARE_TOLERANCE:
        raise ConflictError(
            f"Total participant shares ({share_total}) do not match expense total "
            f"({qround(total)}). Difference: {diff}"
        )


async def _build_entries(
    participants: List[ParticipantInput],
    split_type: SplitType,
    total: Decimal,
    users: UserLookup,
) -> List[ParticipantEntry]:
    if not participants:
        raise ValidationError("At least one participant is required")

    seen_users = set()
    seen_external = set()

    for p in participants:
        name = p.external_name.strip() if p.external_name else None

        if p.user_id is not None and (name or p.external_email):
            raise ValidationError(
                "A participant is either a registered user or an external person, not both"
            )

        if p.user_id is None:
            if not name:
                raise ValidationError("External participant must have a name")
            key = (name.lower(), (p.external_email or "").strip().lower())
            if key in seen_external:
                raise ValidationError(f"Duplicate participant: {name}")
            seen_external.add(key)
            continue

        if p.user_id in seen_users:
            raise ValidationError(f"Duplicate participant: user {p.user_id}")
        seen_users.add(p.user_id)

        if not await users.get_user(p.user_id):
            raise NotFoundError(f"Participant user not found with id: {p.user_id}")

    shares = get_strategy(split_type).compute_shares(total, participants)
    _check_tolerance(total, shares)

    entries = []
    for p, share in zip(participants, shares):
        external = p.user_id is None
        entries.append(
            ParticipantEntry(
                user_id=p.user_id,
                external_name=p.external_name.strip() if external else None,
                external_email=p.external_email if external else None,
                share_amount=share,
                share_percentage=p.share_percentage,
                share_units=p.share_units,
                is_paid=False,
                paid_at=None,
                status=ParticipantStatus.PENDING,
                notes=p.notes,
            )
        )
    return entries


async def _persist(repo: SharedExpenseRepository, split: SharedExpense):
    await repo.flush()
    split.check_share_total(settings.SHARE_TOLERANCE)
    await repo.save()


@atomic
async def create_split(
    db: AsyncSession,
    payer_id: int,
    data: SplitCreate,
    expenses: ExpenseLookup | None = None,
    users: UserLookup | None = None,
) -> SharedExpense:
    expenses = expenses or SqlExpenseLookup(db)
    users = users or SqlUserLookup(db)

    if not await users.get_user(payer_id):
        raise NotFoundError(f"User not found with id: {payer_id}")

    expense = await expenses.get_expense(data.expense_id)

    if not expense:
        raise NotFoundError(f"Expense not found with id: {data.expense_id}")

    if expense.owner_user_id != payer_id:
        raise AuthorizationError("Expense does not belong to user")

    if not data.participants:
        raise ValidationError("At least one participant is required")

    total = qround(expense.amount)

    if total < 0:
        raise ValidationError(f"Cannot split a negative expense amount: {total}")

    if data.total_amount is not None and qround(Decimal(data.total_amount)) != total:
        raise ValidationError(
            f"Total amount {qround(Decimal(data.total_amount))} does not match "
            f"the expense amount {total}"
        )

    entries = await _build_entries(data.participants, data.split_type, total, users)

    split = SharedExpense(
        expense_id=expense.id,
        paid_by=payer_id,
        total_amount=total,
        split_type=data.split_type,
        description=data.description if data.description is not None else expense.description,
        group_name=data.group_name,
        is_settled=False,
        settled_at=None,
    )
    split.replace_participants(entries)

    repo = SharedExpenseRepository(db)
    repo.add(split)
    await _persist(repo, split)

    logger.info("Created shared expense %s for user %s", split.id, payer_id)
    return split


@atomic
async def update_split(
    db: AsyncSession,
    payer_id: int,
    split_id: int,
    data: SplitUpdate,
    users: UserLookup | None = None,
) -> SharedExpense:
    users = users or SqlUserLookup(db)
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, payer_id, for_update=True)
    _require_payer(split, payer_id, "update")
    split.ensure_open("update")

    split_type = data.split_type or split.split_type

    if split_type != split.split_type and data.participants is None:
        raise ValidationError("Changing the split type requires replacing the participants")

    if data.participants is not None and split.has_payments():
        raise ConflictError("Cannot replace participants after payments were made")

    entries = None
    if data.participants is not None:
        entries = await _build_entries(
            data.participants, split_type, qround(Decimal(split.total_amount)), users
        )

    if data.description is not None:
        split.description = data.description

    if data.group_name is not None:
        split.group_name = data.group_name

    if entries is not None:
        split.split_type = split_type
        split.replace_participants(entries)

    split.touch(utcnow())
    await _persist(repo, split)

    logger.info("Updated shared expense %s for user %s", split_id, payer_id)
    return split


@atomic
async def delete_split(db: AsyncSession, payer_id: int, split_id: int):
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, payer_id, for_update=True)
    _require_payer(split, payer_id, "delete")

    if split.has_payments():
        raise ConflictError("Cannot delete expense with payments already made")

    await repo.delete(split)
    await repo.save()

    logger.info("Deleted shared expense %s", split_id)


@atomic
async def mark_participant_paid(
    db: AsyncSession,
    caller_id: int,
    split_id: int,
    participant_id: int,
) -> SharedExpense:
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, caller_id, for_update=True)
    participant = split.find_participant(participant_id)

    now = utcnow()
    participant.mark_paid(now)
    split.touch(now)

    if split.refresh_settlement(now):
        logger.info("All participants have paid. Expense %s is now settled.", split_id)

    await repo.save()

    logger.info("Marked participant %s as paid on expense %s", participant_id, split_id)
    return split


@atomic
async def settle_split(db: AsyncSession, payer_id: int, split_id: int) -> SharedExpense:
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, payer_id, for_update=True)
    _require_payer(split, payer_id, "settle")

    if split.is_settled:
        raise ConflictError("Expense is already settled")

    now = utcnow()
    split.settle_all(now)
    split.touch(now)
    await repo.save()

    logger.info("Settled shared expense %s", split_id)
    return split


@atomic
async def waive_participant(
    db: AsyncSession,
    payer_id: int,
    split_id: int,
    participant_id: int,
    note: str | None = None,
) -> SharedExpense:
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, payer_id, for_update=True)
    _require_payer(split, payer_id, "waive shares on")
    split.ensure_open("modify")

    participant = split.find_participant(participant_id)
    participant.waive(note)

    now = utcnow()
    split.touch(now)
    if split.refresh_settlement(now):
        logger.info("Remaining shares waived. Expense %s is now settled.", split_id)

    await repo.save()

    logger.info("Waived participant %s on expense %s", participant_id, split_id)
    return split


@atomic
async def dispute_participant(
    db: AsyncSession,
    caller_id: int,
    split_id: int,
    participant_id: int,
    note: str | None = None,
) -> SharedExpense:
    repo = SharedExpenseRepository(db)

    split = await _load_with_access(repo, split_id, caller_id, for_update=True)
    split.ensure_open("modify")

    participant = split.find_participant(participant_id)

    if caller_id != split.paid_by and participant.user_id != caller_id:
        raise AuthorizationError("Only the payer or the participant can dispute this share")

    participant.dispute(note)
    split.touch(utcnow())
    await repo.save()

    logger.info("Participant %s disputed their share on expense %s", participant_id, split_id)
    return split


async def get_split(db: AsyncSession, caller_id: int, split_id: int) -> SharedExpense:
    repo = SharedExpenseRepository(db)
    return await _load_with_access(repo, split_id, caller_id)


async def list_splits(
    db: AsyncSession,
    caller_id: int,
    settled: bool | None = None,
    group_name: str | None = None,
) -> List[SharedExpense]:
    repo = SharedExpenseRepository(db)
    splits = await repo.list_for_user(caller_id, settled=settled, group_name=group_name)

    logger.info("Found %s shared expenses for user %s", len(splits), caller_id)
    return splits
