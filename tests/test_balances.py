from decimal import Decimal

from splitledger.models.shared_expense import SplitType
from splitledger.schemas.shared_expense import ParticipantInput, SplitCreate
from splitledger.services.balance_services import (
    get_owed_by_breakdown,
    get_owed_by_user,
    get_owed_to_breakdown,
    get_owed_to_user,
    get_summary,
)
from splitledger.services.shared_expense_services import (
    create_split,
    mark_participant_paid,
    settle_split,
    waive_participant,
)

ALICE, BOB, CAROL, DAVE = 1, 2, 3, 4


async def _split(db, make_expense, payer, amount, people, description=None):
    expense_id = await make_expense(payer, amount, description)
    return await create_split(db, payer, SplitCreate(
        expense_id=expense_id,
        split_type=SplitType.EQUAL,
        participants=[
            ParticipantInput(user_id=p) if isinstance(p, int) else ParticipantInput(external_name=p)
            for p in people
        ],
    ))


async def test_summary_scenario(db_session, make_expense):
    # Alice fronts 100.00 shared with Bob, Bob fronts 40.00 shared with Alice
    await _split(db_session, make_expense, ALICE, "100.00", [ALICE, BOB])
    await _split(db_session, make_expense, BOB, "40.00", [ALICE, BOB])

    summary = await get_summary(db_session, ALICE)

    assert summary.total_owed_to_you == Decimal("50.00")
    assert summary.total_you_owe == Decimal("20.00")
    assert summary.net_balance == Decimal("30.00")
    assert summary.unsettled_count == 2

    assert await get_owed_to_user(db_session, ALICE) == Decimal("50.00")
    assert await get_owed_by_user(db_session, ALICE) == Decimal("20.00")


async def test_summary_for_the_other_side(db_session, make_expense):
    await _split(db_session, make_expense, ALICE, "100.00", [ALICE, BOB])
    await _split(db_session, make_expense, BOB, "40.00", [ALICE, BOB])

    summary = await get_summary(db_session, BOB)

    assert summary.total_owed_to_you == Decimal("20.00")
    assert summary.total_you_owe == Decimal("50.00")
    assert summary.net_balance == Decimal("-30.00")


async def test_paid_shares_drop_out(db_session, make_expense):
    split = await _split(db_session, make_expense, ALICE, "90.00", [BOB, CAROL])
    await mark_participant_paid(db_session, BOB, split.id, split.participants[0].id)

    assert await get_owed_by_user(db_session, BOB) == Decimal("0.00")
    assert await get_owed_by_user(db_session, CAROL) == Decimal("45.00")
    assert await get_owed_to_user(db_session, ALICE) == Decimal("45.00")


async def test_external_participants_owe_the_payer(db_session, make_expense):
    await _split(db_session, make_expense, ALICE, "60.00", [ALICE, "Sam", BOB])

    assert await get_owed_to_user(db_session, ALICE) == Decimal("40.00")
    summary = await get_summary(db_session, ALICE)
    assert summary.total_owed_to_you == Decimal("40.00")


async def test_waived_shares_are_not_owed(db_session, make_expense):
    split = await _split(db_session, make_expense, ALICE, "90.00", [BOB, CAROL])
    await waive_participant(db_session, ALICE, split.id, split.participants[0].id)

    assert await get_owed_by_user(db_session, BOB) == Decimal("0.00")
    assert (await get_summary(db_session, ALICE)).total_owed_to_you == Decimal("45.00")


async def test_settled_splits_leave_the_unsettled_count(db_session, make_expense):
    first = await _split(db_session, make_expense, ALICE, "10.00", [BOB])
    await _split(db_session, make_expense, ALICE, "20.00", [CAROL])
    await settle_split(db_session, ALICE, first.id)

    summary = await get_summary(db_session, ALICE)
    assert summary.unsettled_count == 1
    assert summary.total_owed_to_you == Decimal("20.00")


async def test_uninvolved_user_has_empty_summary(db_session, make_expense):
    await _split(db_session, make_expense, ALICE, "10.00", [BOB])

    summary = await get_summary(db_session, DAVE)
    assert summary.total_you_owe == Decimal("0.00")
    assert summary.total_owed_to_you == Decimal("0.00")
    assert summary.net_balance == Decimal("0.00")
    assert summary.unsettled_count == 0


async def test_breakdowns_list_counterparties(db_session, make_expense):
    await _split(db_session, make_expense, ALICE, "100.00", [ALICE, BOB], "Groceries")
    await _split(db_session, make_expense, BOB, "40.00", [ALICE, BOB], "Taxi")

    owed_to = await get_owed_to_breakdown(db_session, ALICE)
    assert owed_to.total == Decimal("50.00")
    assert [(i.counterparty_name, i.amount) for i in owed_to.items] == [("Bob", Decimal("50.00"))]
    assert owed_to.items[0].description == "Groceries"

    owed_by = await get_owed_by_breakdown(db_session, ALICE)
    assert owed_by.total == Decimal("20.00")
    assert owed_by.items[0].counterparty_id == BOB
    assert owed_by.items[0].description == "Taxi"
