# src/dinostake/runtime/apply/sale.py
from __future__ import annotations

"""eDINOSUR public sale.

State machine over wall-clock time relative to a fixed start instant T0:

  PENDING (now < T0)  ->  LIVE (now >= T0), irreversible, no terminal state

LIVE is split into fixed 7-day epochs:
  epoch_index = floor((now - T0) / epoch_ms)
  price(e)    = base_price * growth**e

Per wallet: lifetime USD cap and per-epoch USD cap. The per-epoch counter is
reset whenever the observed epoch differs from last_recorded_epoch, before any
purchase in that epoch is evaluated.

Per-epoch token allocation is informational only; it is reported but not
enforced against a running total.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional, Tuple

from dinostake.ledger.constants import (
    DAY_MS,
    EPOCH_ALLOCATION_RATE,
    EPOCH_CAP_USD,
    EPOCH_DURATION_MS,
    SALE_BASE_PRICE_USD,
    SALE_PRICE_GROWTH,
    SALE_START_OFFSET_DAYS,
    SALE_TOTAL_TOKENS,
    WALLET_CAP_USD,
)
from dinostake.ledger.types import ZERO, SaleAccount
from dinostake.runtime.errors import (
    EPOCH_CAP_EXCEEDED,
    INVALID_AMOUNT,
    SALE_NOT_LIVE,
    WALLET_CAP_EXCEEDED,
    EconError,
)

Json = Dict[str, Any]

PENDING = "pending"
LIVE = "live"


@dataclass(frozen=True)
class SaleSchedule:
    start_ms: int
    epoch_ms: int = EPOCH_DURATION_MS
    base_price_usd: Decimal = SALE_BASE_PRICE_USD
    price_growth: Decimal = SALE_PRICE_GROWTH
    wallet_cap_usd: Decimal = WALLET_CAP_USD
    epoch_cap_usd: Decimal = EPOCH_CAP_USD

    @classmethod
    def starting_after(cls, now_ms: int, *, offset_days: int = SALE_START_OFFSET_DAYS) -> "SaleSchedule":
        return cls(start_ms=int(now_ms) + int(offset_days) * DAY_MS)

    def phase(self, now_ms: int) -> str:
        return LIVE if int(now_ms) >= self.start_ms else PENDING

    def is_live(self, now_ms: int) -> bool:
        return self.phase(now_ms) == LIVE

    def epoch_index(self, now_ms: int) -> Optional[int]:
        """Current epoch, or None while the sale is pending."""
        if not self.is_live(now_ms):
            return None
        return (int(now_ms) - self.start_ms) // int(self.epoch_ms)

    def price(self, epoch: int) -> Decimal:
        e = max(0, int(epoch))
        return self.base_price_usd * (self.price_growth ** e)

    def countdown(self, now_ms: int) -> Json:
        remaining = max(0, self.start_ms - int(now_ms))
        days, rem = divmod(remaining, DAY_MS)
        hours, rem = divmod(rem, 60 * 60 * 1000)
        minutes, rem = divmod(rem, 60 * 1000)
        return {"days": int(days), "hours": int(hours), "minutes": int(minutes), "seconds": int(rem // 1000)}


@dataclass(frozen=True)
class SaleReceipt:
    token_amount: Decimal
    epoch: int
    price_usd: Decimal
    cost_usd: Decimal
    lifetime_usd_spent: Decimal
    epoch_usd_spent: Decimal

    def to_json(self) -> Json:
        return {
            "token_amount": str(self.token_amount),
            "epoch": int(self.epoch),
            "price_usd": str(self.price_usd),
            "cost_usd": str(self.cost_usd),
            "lifetime_usd_spent": str(self.lifetime_usd_spent),
            "epoch_usd_spent": str(self.epoch_usd_spent),
        }


def parse_token_amount(v: Any) -> Decimal:
    if isinstance(v, bool):
        raise EconError(INVALID_AMOUNT, "token_amount_not_numeric", {"token_amount": v})
    try:
        d = v if isinstance(v, Decimal) else Decimal(str(v).strip())
    except (InvalidOperation, ValueError):
        raise EconError(INVALID_AMOUNT, "token_amount_not_numeric", {"token_amount": str(v)})
    if not d.is_finite() or d <= 0:
        raise EconError(INVALID_AMOUNT, "token_amount_must_be_positive", {"token_amount": str(v)})
    return d


def roll_epoch(account: SaleAccount, epoch: int) -> SaleAccount:
    """Reset the per-epoch counter when the observed epoch changed."""
    if account.last_recorded_epoch == int(epoch):
        return account
    return replace(account, epoch_usd_spent=ZERO, last_recorded_epoch=int(epoch))


def buy(account: SaleAccount, schedule: SaleSchedule, token_amount: Any, now_ms: int) -> Tuple[SaleAccount, SaleReceipt]:
    epoch = schedule.epoch_index(now_ms)
    if epoch is None:
        raise EconError(SALE_NOT_LIVE, "sale_pending", {"starts_at_ms": schedule.start_ms})

    amount = parse_token_amount(token_amount)
    acct = roll_epoch(account, epoch)

    price = schedule.price(epoch)
    cost = amount * price

    if acct.lifetime_usd_spent + cost > schedule.wallet_cap_usd:
        raise EconError(
            WALLET_CAP_EXCEEDED,
            "wallet_lifetime_cap",
            {"cap_usd": str(schedule.wallet_cap_usd), "spent_usd": str(acct.lifetime_usd_spent), "cost_usd": str(cost)},
        )
    if acct.epoch_usd_spent + cost > schedule.epoch_cap_usd:
        raise EconError(
            EPOCH_CAP_EXCEEDED,
            "wallet_epoch_cap",
            {
                "cap_usd": str(schedule.epoch_cap_usd),
                "spent_usd": str(acct.epoch_usd_spent),
                "cost_usd": str(cost),
                "epoch": epoch,
            },
        )

    out = SaleAccount(
        lifetime_usd_spent=acct.lifetime_usd_spent + cost,
        epoch_usd_spent=acct.epoch_usd_spent + cost,
        last_recorded_epoch=epoch,
    )
    receipt = SaleReceipt(
        token_amount=amount,
        epoch=epoch,
        price_usd=price,
        cost_usd=cost,
        lifetime_usd_spent=out.lifetime_usd_spent,
        epoch_usd_spent=out.epoch_usd_spent,
    )
    return out, receipt


def sale_status(account: SaleAccount, schedule: SaleSchedule, now_ms: int) -> Json:
    epoch = schedule.epoch_index(now_ms)
    acct = roll_epoch(account, epoch) if epoch is not None else account
    return {
        "phase": schedule.phase(now_ms),
        "starts_at_ms": schedule.start_ms,
        "countdown": schedule.countdown(now_ms),
        "epoch": epoch,
        "price_usd": str(schedule.price(epoch or 0)),
        "wallet_cap_usd": str(schedule.wallet_cap_usd),
        "epoch_cap_usd": str(schedule.epoch_cap_usd),
        "lifetime_usd_spent": str(acct.lifetime_usd_spent),
        "epoch_usd_spent": str(acct.epoch_usd_spent),
        "sale_total_tokens": str(SALE_TOTAL_TOKENS),
        "epoch_allocation_tokens": str(SALE_TOTAL_TOKENS * EPOCH_ALLOCATION_RATE),
    }


__all__ = [
    "LIVE",
    "PENDING",
    "SaleReceipt",
    "SaleSchedule",
    "buy",
    "parse_token_amount",
    "roll_epoch",
    "sale_status",
]
