# src/dinostake/runtime/apply/burn.py
from __future__ import annotations

"""Burn ledger.

Two structurally distinct pools share the same contract:
  - holder: eDINOSUR earmarked by slot/ticket purchases (users/<id>/staking)
  - global: base-token pool (public/burn_stats/global)

Callers always name the target; the pools are never combined.
"""

import copy
from dataclasses import replace
from decimal import Decimal
from typing import Tuple, TypeVar, Union

from dinostake.ledger.types import ZERO, GlobalBurnStats, HolderAccount
from dinostake.runtime.errors import INVALID_AMOUNT, NOTHING_TO_BURN, EconError

TARGET_HOLDER = "holder"
TARGET_GLOBAL = "global"
BURN_TARGETS = (TARGET_HOLDER, TARGET_GLOBAL)

Pool = TypeVar("Pool", HolderAccount, GlobalBurnStats)


def parse_target(v: Union[str, None]) -> str:
    t = str(v or "").strip().lower()
    if t not in BURN_TARGETS:
        raise EconError(INVALID_AMOUNT, "unknown_burn_target", {"target": v, "allowed": list(BURN_TARGETS)})
    return t


def burn_all(pool: Pool) -> Tuple[Pool, Decimal]:
    """Move the whole ready-to-burn amount into total_burnt."""
    amount = pool.ready_to_burn
    if amount <= 0:
        raise EconError(NOTHING_TO_BURN, "ready_to_burn_is_zero", {"total_burnt": str(pool.total_burnt)})
    out = replace(copy.deepcopy(pool), ready_to_burn=ZERO, total_burnt=pool.total_burnt + amount)
    return out, amount


def credit(pool: Pool, amount: Decimal) -> Pool:
    if amount < 0:
        raise EconError(INVALID_AMOUNT, "negative_burn_credit", {"amount": str(amount)})
    return replace(copy.deepcopy(pool), ready_to_burn=pool.ready_to_burn + amount)


__all__ = ["BURN_TARGETS", "TARGET_GLOBAL", "TARGET_HOLDER", "burn_all", "credit", "parse_target"]
