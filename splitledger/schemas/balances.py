from pydantic import BaseModel
from typing import List
from decimal import Decimal


class BalanceSummary(BaseModel):
    total_you_owe: Decimal
    total_owed_to_you: Decimal
    net_balance: Decimal
    unsettled_count: int


class OwedItem(BaseModel):
    split_id: int
    description: str | None = None
    counterparty_id: int | None = None
    counterparty_name: str | None = None
    amount: Decimal


class OwedBreakdown(BaseModel):
    total: Decimal
    items: List[OwedItem]
