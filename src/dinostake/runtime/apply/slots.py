# src/dinostake/runtime/apply/slots.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Tuple

from dinostake.ledger.constants import (
    BASE_SLOT_COST,
    SLOT_BURN_RATE,
    SLOT_COST_FLAT_UNTIL,
    SLOT_COST_GROWTH,
)
from dinostake.ledger.types import ZERO, HolderAccount, StakedAsset, Tier
from dinostake.runtime.errors import INSUFFICIENT_BALANCE, INVALID_AMOUNT, EconError

Json = Dict[str, Any]


@dataclass(frozen=True)
class SlotReceipt:
    cost: Decimal
    burn_portion: Decimal
    treasury_portion: Decimal
    asset_id: int

    def to_json(self) -> Json:
        return {
            "cost": str(self.cost),
            "burn_portion": str(self.burn_portion),
            "treasury_portion": str(self.treasury_portion),
            "asset_id": int(self.asset_id),
        }


def cost_of(slot_count: int) -> Decimal:
    """Cost in eDINOSUR of buying one more slot when holding `slot_count`.

    Flat for 0..3 slots, then +50% per slot: 4 -> 300k, 5 -> 450k, 6 -> 675k.
    """
    n = int(slot_count)
    if n < 0:
        raise EconError(INVALID_AMOUNT, "negative_slot_count", {"slot_count": n})
    if n <= SLOT_COST_FLAT_UNTIL:
        return BASE_SLOT_COST
    return BASE_SLOT_COST * (SLOT_COST_GROWTH ** (n - SLOT_COST_FLAT_UNTIL))


def split_cost(cost: Decimal) -> Tuple[Decimal, Decimal]:
    """(burn_portion, treasury_portion); the two always sum to cost."""
    burn = cost * SLOT_BURN_RATE
    return burn, cost - burn


def purchase_slot(account: HolderAccount) -> Tuple[HolderAccount, SlotReceipt]:
    """Debit the slot cost, credit the burn pool, append an empty slot.

    The treasury portion is only reported; treasury bookkeeping lives elsewhere.
    """
    cost = cost_of(len(account.assets))
    if account.accrued_balance < cost:
        raise EconError(
            INSUFFICIENT_BALANCE,
            "slot_cost_exceeds_balance",
            {"cost": str(cost), "balance": str(account.accrued_balance)},
        )

    burn, treasury = split_cost(cost)
    out = account.copy()
    out.accrued_balance = max(ZERO, out.accrued_balance - cost)
    out.ready_to_burn = out.ready_to_burn + burn

    new_id = out.next_asset_id()
    out.assets.append(StakedAsset(id=new_id, tier=Tier.UNASSIGNED, base_daily_rate=ZERO, staked=False))

    return out, SlotReceipt(cost=cost, burn_portion=burn, treasury_portion=treasury, asset_id=new_id)


__all__ = ["SlotReceipt", "cost_of", "purchase_slot", "split_cost"]
