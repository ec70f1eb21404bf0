from pydantic import BaseModel
from typing import List
from decimal import Decimal
from datetime import datetime
from splitledger.models.shared_expense import SplitType
from splitledger.models.participant_entry import ParticipantStatus


class ParticipantInput(BaseModel):
    user_id: int | None = None
    external_name: str | None = None
    external_email: str | None = None
    share_percentage: Decimal | None = None
    share_units: int | None = None
    share_amount: Decimal | None = None
    notes: str | None = None


class SplitCreate(BaseModel):
    expense_id: int
    split_type: SplitType
    participants: List[ParticipantInput]
    # optional cross-check against the originating expense amount
    total_amount: Decimal | None = None
    description: str | None = None
    group_name: str | None = None


class SplitUpdate(BaseModel):
    description: str | None = None
    group_name: str | None = None
    split_type: SplitType | None = None
    participants: List[ParticipantInput] | None = None


class StatusNote(BaseModel):
    note: str | None = None


class ParticipantOut(BaseModel):
    id: int
    user_id: int | None = None
    external_name: str | None = None
    external_email: str | None = None
    share_amount: Decimal
    share_percentage: Decimal | None = None
    share_units: int | None = None
    is_paid: bool
    paid_at: datetime | None = None
    status: ParticipantStatus
    notes: str | None = None

    class Config:
        from_attributes = True


class SharedExpenseOut(BaseModel):
    id: int
    expense_id: int
    paid_by: int
    total_amount: Decimal
    split_type: SplitType
    description: str | None = None
    group_name: str | None = None
    is_settled: bool
    settled_at: datetime | None = None
    created_at: datetime | None = None
    participants: List[ParticipantOut]

    class Config:
        from_attributes = True
