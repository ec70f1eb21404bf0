"""
Split strategies.

Pure functions of (total amount, participant inputs) -> one share per
participant, in input order. Rounding leftovers from the divisions in the
equal and unit-based strategies are handed out one cent at a time starting
with the first participant, so their shares always add up to the total.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Sequence

from splitledger.core.exceptions import ValidationError
from splitledger.core.utils import qround, has_cents_precision, spread_remainder
from splitledger.models.shared_expense import SplitType
from splitledger.schemas.shared_expense import ParticipantInput

HUNDRED = Decimal("100")


class SplitStrategy(ABC):
    split_type: SplitType

    @abstractmethod
    def compute_shares(
        self, total_amount: Decimal, participants: Sequence[ParticipantInput]
    ) -> List[Decimal]:
        """
        Compute each participant's share.

        Args:
            total_amount: Frozen total of the split
            participants: Raw participant inputs, in caller order

        Returns:
            Share amounts aligned with `participants`

        Raises:
            ValidationError: a required field is missing or out of range
        """

    def _require(self, participants: Sequence[ParticipantInput], field: str) -> list:
        values = []
        for i, p in enumerate(participants):
            value = getattr(p, field)
            if value is None:
                raise ValidationError(
                    f"{field} is required for every participant in a "
                    f"{self.split_type.value} split (missing on participant {i + 1})"
                )
            values.append(value)
        return values

    def _check_total(self, total_amount: Decimal):
        if total_amount < 0:
            raise ValidationError(f"Total amount must not be negative, got {total_amount}")


class EqualSplit(SplitStrategy):
    split_type = SplitType.EQUAL

    def compute_shares(self, total_amount, participants):
        n = len(participants)
        if n == 0:
            raise ValidationError("At least one participant is required")
        self._check_total(total_amount)
        share = qround(total_amount / n)
        return spread_remainder([share] * n, total_amount)


class PercentageSplit(SplitStrategy):
    split_type = SplitType.PERCENTAGE

    def compute_shares(self, total_amount, participants):
        self._check_total(total_amount)
        percentages = [Decimal(v) for v in self._require(participants, "share_percentage")]

        for pct in percentages:
            if pct < 0 or pct > HUNDRED:
                raise ValidationError(f"share_percentage must be between 0 and 100, got {pct}")

        # exact comparison, percentages are never normalised
        total_pct = sum(percentages, Decimal("0"))
        if total_pct != HUNDRED:
            raise ValidationError(f"Percentages must add up to 100. Current total: {total_pct}")

        return [qround(total_amount * pct / HUNDRED) for pct in percentages]


class ExactAmountSplit(SplitStrategy):
    split_type = SplitType.EXACT_AMOUNT

    def compute_shares(self, total_amount, participants):
        self._check_total(total_amount)
        amounts = [Decimal(v) for v in self._require(participants, "share_amount")]
        for amount in amounts:
            if amount < 0:
                raise ValidationError(f"share_amount must not be negative, got {amount}")
            if not has_cents_precision(amount):
                raise ValidationError(f"share_amount has more than 2 decimal places: {amount}")
        return [qround(a) for a in amounts]


class SharesSplit(SplitStrategy):
    split_type = SplitType.SHARES

    def compute_shares(self, total_amount, participants):
        self._check_total(total_amount)
        units = self._require(participants, "share_units")
        for u in units:
            if u <= 0:
                raise ValidationError(f"share_units must be greater than 0, got {u}")

        per_unit = qround(total_amount / sum(units))
        shares = spread_remainder([per_unit * u for u in units], total_amount)
        return [qround(s) for s in shares]


STRATEGIES: Dict[SplitType, SplitStrategy] = {
    s.split_type: s for s in (EqualSplit(), PercentageSplit(), ExactAmountSplit(), SharesSplit())
}


def get_strategy(split_type: SplitType) -> SplitStrategy:
    try:
        return STRATEGIES[SplitType(split_type)]
    except (KeyError, ValueError):
        raise ValidationError(f"Unsupported split type: {split_type}")
