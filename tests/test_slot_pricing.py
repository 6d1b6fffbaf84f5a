from __future__ import annotations

from decimal import Decimal

import pytest

from dinostake.ledger.types import HolderAccount, Tier
from dinostake.runtime.apply.slots import cost_of, purchase_slot, split_cost
from dinostake.runtime.errors import INSUFFICIENT_BALANCE, INVALID_AMOUNT, EconError


@pytest.mark.parametrize("n", [0, 1, 2, 3])
def test_first_slots_are_flat(n: int) -> None:
    assert cost_of(n) == Decimal("200000")


@pytest.mark.parametrize(
    "n,expected",
    [(4, "300000"), (5, "450000"), (6, "675000"), (7, "1012500")],
)
def test_growth_past_the_fourth_slot(n: int, expected: str) -> None:
    assert cost_of(n) == Decimal(expected)


def test_negative_slot_count_is_rejected() -> None:
    with pytest.raises(EconError) as ei:
        cost_of(-1)
    assert ei.value.code == INVALID_AMOUNT


def test_split_always_sums_to_cost() -> None:
    burn, treasury = split_cost(Decimal("675000"))
    assert burn == Decimal("337500")
    assert burn + treasury == Decimal("675000")


def test_purchase_with_empty_balance_fails_and_changes_nothing() -> None:
    acct = HolderAccount(assets=[])
    with pytest.raises(EconError) as ei:
        purchase_slot(acct)
    assert ei.value.code == INSUFFICIENT_BALANCE
    assert acct.accrued_balance == Decimal("0")
    assert acct.ready_to_burn == Decimal("0")
    assert acct.assets == []


def test_purchase_debits_balance_and_credits_burn_pool() -> None:
    acct = HolderAccount(assets=[], accrued_balance=Decimal("200000"))
    out, receipt = purchase_slot(acct)

    assert out.accrued_balance == Decimal("0")
    assert out.ready_to_burn == Decimal("100000")
    assert len(out.assets) == 1
    assert receipt.cost == Decimal("200000")
    assert receipt.treasury_portion == Decimal("100000")

    new = out.assets[0]
    assert new.id == 1
    assert new.tier == Tier.UNASSIGNED
    assert new.base_daily_rate == Decimal("0")
    assert new.staked is False

    # input untouched
    assert acct.assets == []


def test_new_slot_id_follows_max_existing_id() -> None:
    acct = HolderAccount(accrued_balance=Decimal("1000000"))
    ids = [a.id for a in acct.assets]
    out, receipt = purchase_slot(acct)
    assert receipt.asset_id == max(ids) + 1
    assert out.find_asset(receipt.asset_id) is not None

    # seed holder has 3 slots -> still flat; the next purchase (4 slots) costs 300k
    assert receipt.cost == Decimal("200000")
    out2, receipt2 = purchase_slot(out)
    assert receipt2.cost == Decimal("300000")
    assert out2.accrued_balance == Decimal("500000")
