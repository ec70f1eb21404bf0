import enum
from datetime import datetime, timezone
from decimal import Decimal
from typing import List
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Boolean, Enum
from sqlalchemy.orm import relationship
from splitledger.db.session import Base
from splitledger.core.exceptions import ConflictError, InvariantError, NotFoundError
from splitledger.core.utils import money_sum, qround
from splitledger.models.participant_entry import ParticipantEntry, ParticipantStatus


class SplitType(str, enum.Enum):
    EQUAL = "EQUAL"
    PERCENTAGE = "PERCENTAGE"
    EXACT_AMOUNT = "EXACT_AMOUNT"
    SHARES = "SHARES"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SharedExpense(Base):
    """
    A single paid expense divided among participants.

    Open (is_settled=False) -> Settled (is_settled=True, settled_at set).
    Settlement is derived: it is recomputed after every participant status
    change and never reverts. The payer fronted the money and owns the split.
    """
    __tablename__ = "shared_expenses"

    id = Column(Integer, primary_key=True, index=True)
    expense_id = Column(Integer, ForeignKey("expenses.id"), nullable=False, index=True)
    paid_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    split_type = Column(Enum(SplitType), nullable=False)
    description = Column(String(500), nullable=True)
    group_name = Column(String(100), nullable=True)
    is_settled = Column(Boolean, nullable=False, default=False)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow)
    version_id = Column(Integer, nullable=False)

    participants = relationship(
        "ParticipantEntry",
        back_populates="shared_expense",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ParticipantEntry.position",
    )

    __mapper_args__ = {"version_id_col": version_id}

    def is_participant(self, user_id: int) -> bool:
        return any(p.user_id == user_id for p in self.participants if p.user_id is not None)

    def has_access(self, user_id: int) -> bool:
        return self.paid_by == user_id or self.is_participant(user_id)

    def find_participant(self, entry_id: int) -> ParticipantEntry:
        for p in self.participants:
            if p.id == entry_id:
                return p
        raise NotFoundError(f"Participant not found with id: {entry_id}")

    def ensure_open(self, action: str):
        if self.is_settled:
            raise ConflictError(f"Cannot {action} a settled expense")

    def replace_participants(self, entries: List[ParticipantEntry]):
        for i, entry in enumerate(entries):
            entry.position = i
        self.participants = entries

    def share_total(self) -> Decimal:
        return money_sum(Decimal(p.share_amount) for p in self.participants)

    def check_share_total(self, tolerance: Decimal):
        diff = abs(qround(Decimal(self.total_amount)) - self.share_total())
        if diff > tolerance:
            raise InvariantError(
                f"Split {self.id} shares total {self.share_total()} against "
                f"{self.total_amount}, difference {diff}"
            )

    def has_payments(self) -> bool:
        return any(p.status == ParticipantStatus.PAID for p in self.participants)

    def refresh_settlement(self, now: datetime) -> bool:
        """Flip to settled once every share is paid or waived. Returns True
        when this call performed the transition."""
        if self.is_settled or not self.participants:
            return False
        if all(p.counts_as_settled for p in self.participants):
            self.is_settled = True
            self.settled_at = now
            return True
        return False

    def settle_all(self, now: datetime):
        self.ensure_open("settle")
        for p in self.participants:
            if p.status in (ParticipantStatus.PENDING, ParticipantStatus.DISPUTED):
                p.force_paid(now)
        self.is_settled = True
        self.settled_at = now

    def touch(self, now: datetime):
        # any write bumps version_id, so concurrent writers collide here
        self.updated_at = now

    def __repr__(self):
        return f"<SharedExpense(id={self.id}, paid_by={self.paid_by}, settled={self.is_settled})>"
