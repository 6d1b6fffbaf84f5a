# src/dinostake/runtime/apply/multiplier.py
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Set

from dinostake.ledger.constants import DEFAULT_MULTIPLIER, TIER_MULTIPLIERS
from dinostake.ledger.types import HolderAccount, StakedAsset, Tier


def staked_tiers(assets: Iterable[StakedAsset]) -> Set[Tier]:
    return {a.tier for a in assets if a.staked}


def multiplier(tiers: Iterable[Tier]) -> Decimal:
    """Earning multiplier for a set of staked tiers.

    Highest-priority tier present wins; counts do not matter and
    multipliers never stack.
    """
    present = {Tier.parse(t) for t in tiers}
    for names, m in TIER_MULTIPLIERS:
        if any(Tier.parse(n) in present for n in names):
            return m
    return DEFAULT_MULTIPLIER


def account_multiplier(account: HolderAccount) -> Decimal:
    return multiplier(staked_tiers(account.assets))


__all__ = ["account_multiplier", "multiplier", "staked_tiers"]
