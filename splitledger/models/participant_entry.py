import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Boolean, Enum
from sqlalchemy.orm import relationship
from splitledger.db.session import Base
from splitledger.core.exceptions import ConflictError


class ParticipantStatus(str, enum.Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    DISPUTED = "DISPUTED"
    WAIVED = "WAIVED"


class ParticipantEntry(Base):
    """One participant's obligation within one shared expense.

    The participant is either a registered user (`user_id`) or an external
    person (`external_name` / `external_email`), never both. `is_paid` mirrors
    `status == PAID` and is only ever changed through the transition methods.
    """
    __tablename__ = "participant_entries"

    id = Column(Integer, primary_key=True, index=True)
    shared_expense_id = Column(
        Integer, ForeignKey("shared_expenses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False, default=0)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    external_name = Column(String(255), nullable=True)
    external_email = Column(String(255), nullable=True)

    share_amount = Column(Numeric(10, 2), nullable=False)
    share_percentage = Column(Numeric(5, 2), nullable=True)
    share_units = Column(Integer, nullable=True)

    is_paid = Column(Boolean, nullable=False, default=False)
    paid_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(Enum(ParticipantStatus), nullable=False, default=ParticipantStatus.PENDING)
    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    shared_expense = relationship("SharedExpense", back_populates="participants")

    @property
    def is_registered(self) -> bool:
        return self.user_id is not None

    @property
    def display_name(self) -> str:
        return self.external_name if self.user_id is None else f"user:{self.user_id}"

    @property
    def counts_as_settled(self) -> bool:
        # waived shares are satisfied, disputed ones are not
        return self.status in (ParticipantStatus.PAID, ParticipantStatus.WAIVED)

    def mark_paid(self, now: datetime):
        if self.status == ParticipantStatus.PAID:
            raise ConflictError("Participant has already paid")
        if self.status != ParticipantStatus.PENDING:
            raise ConflictError(
                f"Participant share is {self.status.value.lower()} and cannot be marked as paid"
            )
        self._set_paid(now)

    def force_paid(self, now: datetime):
        # used by the payer's bulk settle, overrides disputes
        self._set_paid(now)

    def waive(self, note: str | None = None):
        if self.status not in (ParticipantStatus.PENDING, ParticipantStatus.DISPUTED):
            raise ConflictError(f"Cannot waive a share that is {self.status.value.lower()}")
        self.status = ParticipantStatus.WAIVED
        if note:
            self.notes = note

    def dispute(self, note: str | None = None):
        if self.status != ParticipantStatus.PENDING:
            raise ConflictError(f"Cannot dispute a share that is {self.status.value.lower()}")
        self.status = ParticipantStatus.DISPUTED
        if note:
            self.notes = note

    def _set_paid(self, now: datetime):
        self.is_paid = True
        self.paid_at = now
        self.status = ParticipantStatus.PAID

    def __repr__(self):
        return f"<ParticipantEntry(id={self.id}, who='{self.display_name}', status='{self.status}')>"
