from __future__ import annotations

from decimal import Decimal

from dinostake.ledger.constants import DAY_MS
from dinostake.ledger.types import HolderAccount, ReferralAccount
from dinostake.runtime.apply import referrals

T0 = 1_700_000_000_000


def test_referral_code_is_uid_prefix_upper() -> None:
    assert referrals.referral_code("abcdef1234567890") == "ABCDEF12"
    assert referrals.referral_code("ab") == "AB"


def test_earnings_accrue_per_referral_per_day() -> None:
    r = ReferralAccount(referral_count=2, last_accrual_ms=T0)
    out = referrals.accrue(r, T0 + DAY_MS)
    assert out.pending_earnings == Decimal("150000")


def test_add_referral_accrues_at_old_rate_first() -> None:
    r = ReferralAccount(referral_count=1, last_accrual_ms=T0)
    r = referrals.add_referral(r, T0 + DAY_MS)
    assert r.referral_count == 2
    assert r.pending_earnings == Decimal("75000")

    r = referrals.accrue(r, T0 + 2 * DAY_MS)
    assert r.pending_earnings == Decimal("225000")


def test_claim_moves_earnings_into_reward_balance() -> None:
    r = ReferralAccount(referral_count=1, last_accrual_ms=T0)
    h = HolderAccount(accrued_balance=Decimal("10"))
    r2, h2, amount = referrals.claim(r, h, T0 + DAY_MS)
    assert amount == Decimal("75000")
    assert r2.pending_earnings == Decimal("0")
    assert h2.accrued_balance == Decimal("75010")
    assert h.accrued_balance == Decimal("10")


def test_claim_with_nothing_pending() -> None:
    r2, h2, amount = referrals.claim(ReferralAccount(), HolderAccount(), T0)
    assert amount == Decimal("0")
    assert r2.last_accrual_ms == T0


def test_hourly_ticks_match_one_accrual() -> None:
    r = ReferralAccount(referral_count=3, last_accrual_ms=T0)
    stepped = r
    for i in range(1, 25):
        stepped = referrals.accrue(stepped, T0 + i * 3_600_000)
    assert stepped.pending_earnings == referrals.accrue(r, T0 + DAY_MS).pending_earnings == Decimal("225000")
