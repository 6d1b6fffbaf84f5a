from __future__ import annotations

from decimal import Decimal

import pytest

from dinostake.ledger.constants import DAY_MS
from dinostake.ledger.types import HolderAccount, StakedAsset, Tier
from dinostake.runtime.apply import rewards
from dinostake.runtime.errors import ASSET_NOT_FOUND, EconError

T0 = 1_700_000_000_000


def _acct(*assets: StakedAsset, balance: str = "0") -> HolderAccount:
    return HolderAccount(assets=list(assets), accrued_balance=Decimal(balance), last_accrual_ms=T0)


def test_daily_rate_applies_multiplier_to_staked_sum() -> None:
    a = _acct(
        StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True),
        StakedAsset(id=2, tier=Tier.UNIQUE, base_daily_rate=Decimal("15000"), staked=True),
        StakedAsset(id=3, tier=Tier.RARE, base_daily_rate=Decimal("10000"), staked=False),
    )
    assert rewards.base_daily_rate(a) == Decimal("20000")
    assert rewards.daily_rate(a) == Decimal("20000") * Decimal("1.15")


def test_one_day_accrues_one_daily_rate() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True))
    out = rewards.accrue(a, T0 + DAY_MS)
    assert out.accrued_balance == Decimal("5250")
    assert out.last_accrual_ms == T0 + DAY_MS
    # input untouched
    assert a.accrued_balance == Decimal("0")


def test_accrual_is_independent_of_tick_granularity() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.RARE, base_daily_rate=Decimal("10000"), staked=True))
    once = rewards.accrue(a, T0 + 3_600_000)

    stepped = a
    for i in range(1, 61):
        stepped = rewards.accrue(stepped, T0 + i * 60_000)

    assert stepped.accrued_balance == once.accrued_balance


def test_one_second_ticks_over_a_day_match_one_accrual() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True))
    stepped = a
    for i in range(1, 86_401):
        stepped = rewards.accrue(stepped, T0 + i * 1_000)
    assert stepped.accrued_balance == Decimal("5250")
    assert stepped.accrual_anchor.at_ms == T0


def test_balance_change_outside_accrual_moves_the_anchor() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True))
    a = rewards.accrue(a, T0 + DAY_MS)
    a, claimed = rewards.claim(a)
    assert claimed == Decimal("5250")

    out = rewards.accrue(a, T0 + 2 * DAY_MS)
    assert out.accrued_balance == Decimal("5250")
    assert out.accrual_anchor.at_ms == T0 + DAY_MS
    assert out.accrual_anchor.balance == Decimal("0")


def test_fresh_account_only_sets_checkpoint() -> None:
    a = HolderAccount()
    out = rewards.accrue(a, T0)
    assert out.last_accrual_ms == T0
    assert out.accrued_balance == Decimal("0")


def test_clock_going_backwards_accrues_nothing() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True), balance="10")
    out = rewards.accrue(a, T0 - 10_000)
    assert out.accrued_balance == Decimal("10")
    assert out.last_accrual_ms == T0


def test_claim_zeroes_balance_and_returns_amount() -> None:
    a = _acct(balance="1234.5")
    out, claimed = rewards.claim(a)
    assert claimed == Decimal("1234.5")
    assert out.accrued_balance == Decimal("0")


def test_claim_zero_balance_reports_nothing() -> None:
    out, claimed = rewards.claim(_acct())
    assert claimed == Decimal("0")
    assert out.accrued_balance == Decimal("0")


def test_stake_change_does_not_reprice_past_accrual() -> None:
    a = _acct(
        StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True),
        StakedAsset(id=2, tier=Tier.LEGEND, base_daily_rate=Decimal("1000"), staked=False),
    )
    a = rewards.stake(a, 2, T0 + DAY_MS)
    # first day at 5000 * 1.05
    assert a.accrued_balance == Decimal("5250")
    assert a.find_asset(2).staked is True
    assert a.find_asset(2).staked_at_ms == T0 + DAY_MS

    a = rewards.accrue(a, T0 + 2 * DAY_MS)
    # second day at 6000 * 1.50
    assert a.accrued_balance == Decimal("5250") + Decimal("9000")


def test_unstake_stops_accrual_and_clears_timestamp() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True, staked_at_ms=T0))
    a = rewards.unstake(a, 1, T0 + DAY_MS)
    assert a.accrued_balance == Decimal("5250")
    assert a.find_asset(1).staked is False
    assert a.find_asset(1).staked_at_ms == 0

    later = rewards.accrue(a, T0 + 5 * DAY_MS)
    assert later.accrued_balance == Decimal("5250")


def test_restake_is_idempotent() -> None:
    a = _acct(StakedAsset(id=1, tier=Tier.COMMON, base_daily_rate=Decimal("5000"), staked=True, staked_at_ms=T0))
    out = rewards.stake(a, 1, T0 + 1000)
    assert out.find_asset(1).staked_at_ms == T0


def test_unknown_asset_is_rejected() -> None:
    with pytest.raises(EconError) as ei:
        rewards.stake(_acct(), 99, T0)
    assert ei.value.code == ASSET_NOT_FOUND
