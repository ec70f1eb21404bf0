from decimal import Decimal

import pytest

from splitledger.core.utils import qround, to_money, money_sum, spread_remainder


def test_qround_is_half_up():
    assert qround(Decimal("0.005")) == Decimal("0.01")
    assert qround(Decimal("33.335")) == Decimal("33.34")
    assert qround(Decimal("33.3349")) == Decimal("33.33")


def test_to_money_accepts_strings_and_ints():
    assert to_money("12.5") == Decimal("12.50")
    assert to_money(7) == Decimal("7.00")


def test_to_money_rejects_float():
    with pytest.raises(TypeError):
        to_money(0.1)


def test_to_money_rejects_garbage():
    with pytest.raises(ValueError):
        to_money("ten")


def test_money_sum_keeps_two_places():
    assert money_sum([Decimal("0.10"), Decimal("0.20")]) == Decimal("0.30")
    assert money_sum([]) == Decimal("0.00")


def test_spread_remainder_adds_to_first_entries():
    shares = spread_remainder([Decimal("33.33")] * 3, Decimal("100.00"))
    assert shares == [Decimal("33.34"), Decimal("33.33"), Decimal("33.33")]


def test_spread_remainder_takes_back_without_going_negative():
    # 0.05 over 7 rounds up to 0.01 each, two cents too many
    shares = spread_remainder([Decimal("0.01")] * 7, Decimal("0.05"))
    assert sum(shares) == Decimal("0.05")
    assert all(s >= 0 for s in shares)
    assert shares[:2] == [Decimal("0.00"), Decimal("0.00")]


def test_spread_remainder_with_nothing_left_to_take_raises():
    # -10.00 over 3 rounds to -3.33 each, one cent short and no entry can give
    with pytest.raises(ValueError):
        spread_remainder([Decimal("-3.33")] * 3, Decimal("-10.00"))
