from decimal import Decimal, ROUND_HALF_UP, getcontext, InvalidOperation
from typing import Iterable, List

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_money(value) -> Decimal:
    """Coerce ints, strings and Decimals into a 2-place amount.

    Floats are rejected, binary fractions never enter the ledger.
    """
    if isinstance(value, float):
        raise TypeError("Money must not be built from float")
    try:
        return qround(Decimal(str(value)))
    except InvalidOperation:
        raise ValueError(f"Invalid money amount: {value!r}")


def has_cents_precision(d: Decimal) -> bool:
    return d == d.quantize(CENTS)


def money_sum(amounts: Iterable[Decimal]) -> Decimal:
    return qround(sum(amounts, ZERO))


def spread_remainder(amounts: List[Decimal], total: Decimal) -> List[Decimal]:
    """Push the rounding remainder onto the amounts one cent at a time,
    starting with the first entry.

    A positive remainder adds a cent per entry; a negative one takes a cent
    only from entries still holding at least one, so no amount goes below zero.
    Raises ValueError when no entry has a cent left to give.
    """
    result = list(amounts)
    diff = qround(total - money_sum(result))
    if not result or diff == 0:
        return result

    step = CENTS if diff > 0 else -CENTS
    i = 0
    idle = 0
    while diff != 0:
        idx = i % len(result)
        if step > 0 or result[idx] >= CENTS:
            result[idx] += step
            diff -= step
            idle = 0
        else:
            idle += 1
            if idle == len(result):
                raise ValueError(f"No amount left to take {-diff} back from")
        i += 1
    return result
