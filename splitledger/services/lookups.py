"""
Read-only access to records owned by other subsystems.

The splitting engine only needs to know whether a user exists and who owns
an expense (and for how much). Anything satisfying these protocols can be
passed to the services; the SQL versions read the shared database.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from splitledger.models.expense import Expense
from splitledger.models.user import User
from splitledger.core.utils import qround


@dataclass(frozen=True)
class ExpenseRecord:
    id: int
    amount: Decimal
    owner_user_id: int
    description: str | None = None


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str


class ExpenseLookup(Protocol):
    async def get_expense(self, expense_id: int) -> ExpenseRecord | None: ...


class UserLookup(Protocol):
    async def get_user(self, user_id: int) -> UserRecord | None: ...


class SqlExpenseLookup:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_expense(self, expense_id: int) -> ExpenseRecord | None:
        res = await self.db.execute(select(Expense).where(Expense.id == expense_id))
        expense = res.scalar_one_or_none()
        if not expense:
            return None
        return ExpenseRecord(
            id=expense.id,
            amount=qround(Decimal(str(expense.amount))),
            owner_user_id=expense.user_id,
            description=expense.description,
        )


class SqlUserLookup:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> UserRecord | None:
        res = await self.db.execute(select(User.id, User.name).where(User.id == user_id))
        row = res.first()
        if not row:
            return None
        return UserRecord(id=row.id, name=row.name)
