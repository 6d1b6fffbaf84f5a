# src/dinostake/runtime/apply/referrals.py
from __future__ import annotations

from decimal import Decimal
from typing import Tuple

from dinostake.ledger.constants import REFERRAL_CODE_LEN, REFERRAL_DAILY_RATE
from dinostake.ledger.types import ZERO, HolderAccount, ReferralAccount
from dinostake.runtime.apply.rewards import advance


def referral_code(user_id: str) -> str:
    return str(user_id or "").strip()[:REFERRAL_CODE_LEN].upper()


def daily_rate(account: ReferralAccount) -> Decimal:
    return REFERRAL_DAILY_RATE * Decimal(int(account.referral_count))


def accrue(account: ReferralAccount, now_ms: int) -> ReferralAccount:
    pending, last_ms, anchor = advance(
        account.pending_earnings, account.last_accrual_ms, account.accrual_anchor, daily_rate(account), now_ms
    )
    return ReferralAccount(account.referral_count, pending, last_ms, anchor)


def add_referral(account: ReferralAccount, now_ms: int) -> ReferralAccount:
    """Accrue at the old rate up to now, then count the new referral."""
    a = accrue(account, now_ms)
    return ReferralAccount(a.referral_count + 1, a.pending_earnings, a.last_accrual_ms, a.accrual_anchor)


def claim(
    account: ReferralAccount, holder: HolderAccount, now_ms: int
) -> Tuple[ReferralAccount, HolderAccount, Decimal]:
    """Move all pending referral earnings into the holder's reward balance."""
    a = accrue(account, now_ms)
    amount = a.pending_earnings
    h = holder.copy()
    if amount <= 0:
        return a, h, ZERO
    h.accrued_balance = h.accrued_balance + amount
    return ReferralAccount(a.referral_count, ZERO, a.last_accrual_ms, a.accrual_anchor), h, amount


__all__ = ["accrue", "add_referral", "claim", "daily_rate", "referral_code"]
