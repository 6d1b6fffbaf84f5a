# src/dinostake/runtime/apply/rewards.py
from __future__ import annotations

"""Continuous reward accrual, claims, and stake/unstake.

Accrual is a pure function of (account, now_ms). The account carries an
accrual anchor: the balance at some instant under the rate in force since.
Every accrual recomputes the balance from that anchor in one rounding step,
so the result does not depend on how often a ticker persists it. The anchor
moves only when the balance or the rate changed outside accrual (a debit,
a credit, a stake change); the staked set only changes after accruing up to
"now" at the old rate, so past accrual is never repriced.

All functions return new records; inputs are never mutated.
"""

from decimal import ROUND_DOWN, Decimal
from typing import Any, Dict, Optional, Tuple

from dinostake.ledger.constants import DAY_MS, REWARD_QUANTUM
from dinostake.ledger.types import ZERO, AccrualAnchor, HolderAccount
from dinostake.runtime.apply.multiplier import account_multiplier
from dinostake.runtime.errors import ASSET_NOT_FOUND, EconError

Json = Dict[str, Any]


def base_daily_rate(account: HolderAccount) -> Decimal:
    return sum((a.base_daily_rate for a in account.staked_assets()), ZERO)


def daily_rate(account: HolderAccount) -> Decimal:
    """Effective eDINOSUR per day: sum of staked base rates times the multiplier."""
    return base_daily_rate(account) * account_multiplier(account)


def accrued_between(rate_per_day: Decimal, from_ms: int, to_ms: int) -> Decimal:
    elapsed = int(to_ms) - int(from_ms)
    if elapsed <= 0 or rate_per_day <= 0:
        return ZERO
    amt = rate_per_day * Decimal(elapsed) / Decimal(DAY_MS)
    return amt.quantize(REWARD_QUANTUM, rounding=ROUND_DOWN)


def _anchor_holds(anchor: Optional[AccrualAnchor], balance: Decimal, last_ms: int, rate: Decimal) -> bool:
    if anchor is None or anchor.daily_rate != rate:
        return False
    if not 0 < anchor.at_ms <= last_ms:
        return False
    return anchor.balance + accrued_between(rate, anchor.at_ms, last_ms) == balance


def advance(
    balance: Decimal,
    last_ms: int,
    anchor: Optional[AccrualAnchor],
    rate: Decimal,
    now_ms: int,
) -> Tuple[Decimal, int, AccrualAnchor]:
    """(balance, checkpoint, anchor) accrued up to now_ms at `rate`.

    A fresh checkpoint (0) starts accruing from now_ms. A clock that moved
    backwards accrues nothing and keeps the later checkpoint.
    """
    now = int(now_ms)
    if last_ms <= 0:
        return balance, now, AccrualAnchor(at_ms=now, balance=balance, daily_rate=rate)
    if not _anchor_holds(anchor, balance, last_ms, rate):
        anchor = AccrualAnchor(at_ms=last_ms, balance=balance, daily_rate=rate)
    if now <= last_ms:
        return balance, last_ms, anchor
    return anchor.balance + accrued_between(rate, anchor.at_ms, now), now, anchor


def accrue(account: HolderAccount, now_ms: int) -> HolderAccount:
    """Advance accrued_balance to now_ms and move the checkpoint."""
    out = account.copy()
    out.accrued_balance, out.last_accrual_ms, out.accrual_anchor = advance(
        out.accrued_balance, out.last_accrual_ms, out.accrual_anchor, daily_rate(out), now_ms
    )
    return out


def claim(account: HolderAccount) -> Tuple[HolderAccount, Decimal]:
    """Zero the balance and return the claimed amount (0 means nothing to claim)."""
    out = account.copy()
    claimed = out.accrued_balance
    if claimed <= 0:
        return out, ZERO
    out.accrued_balance = ZERO
    return out, claimed


def _set_staked(account: HolderAccount, asset_id: int, now_ms: int, *, staked: bool) -> HolderAccount:
    out = accrue(account, now_ms)
    asset = out.find_asset(asset_id)
    if asset is None:
        raise EconError(ASSET_NOT_FOUND, "unknown_asset", {"asset_id": int(asset_id)})
    if asset.staked == staked:
        return out
    asset.staked = staked
    asset.staked_at_ms = int(now_ms) if staked else 0
    return out


def stake(account: HolderAccount, asset_id: int, now_ms: int) -> HolderAccount:
    return _set_staked(account, asset_id, now_ms, staked=True)


def unstake(account: HolderAccount, asset_id: int, now_ms: int) -> HolderAccount:
    return _set_staked(account, asset_id, now_ms, staked=False)


def staking_summary(account: HolderAccount) -> Json:
    return {
        "multiplier": str(account_multiplier(account)),
        "base_daily_rate": str(base_daily_rate(account)),
        "daily_rate": str(daily_rate(account)),
        "staked_count": len(account.staked_assets()),
        "slot_count": len(account.assets),
    }


__all__ = [
    "accrue",
    "accrued_between",
    "advance",
    "base_daily_rate",
    "claim",
    "daily_rate",
    "stake",
    "staking_summary",
    "unstake",
]
