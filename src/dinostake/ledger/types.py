"""dinostake.ledger.types

Typed per-holder records + tolerant JSON document coercion.

Every persisted document has an explicit default shape:
  - absent document  -> defaults (new holder gets the seed assets)
  - missing fields   -> field defaults
  - negative amounts -> schema error (balances and burn counters are never negative)
  - malformed assets -> schema error (assets are never deleted)

Decimals are stored as canonical strings so documents stay JSON-safe.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional

from dinostake.ledger.constants import SEED_ASSETS

Json = Dict[str, Any]

ZERO = Decimal("0")


class Tier(str, Enum):
    COMMON = "Common"
    RARE = "Rare"
    UNIQUE = "Unique"
    KING = "King"
    LEGEND = "Legend"
    UNASSIGNED = "Unassigned"

    @classmethod
    def parse(cls, v: Any) -> "Tier":
        if isinstance(v, cls):
            return v
        s = str(v or "").strip()
        for t in cls:
            if t.value.lower() == s.lower():
                return t
        # Older documents label purchased slots "New Slot".
        return cls.UNASSIGNED


def _coerce_decimal(v: Any, *, field: str, default: Decimal = ZERO) -> Decimal:
    if v is None or isinstance(v, bool):
        return default
    try:
        d = Decimal(str(v).strip()) if not isinstance(v, Decimal) else v
    except (InvalidOperation, ValueError):
        return default
    if not d.is_finite():
        return default
    if d < 0:
        raise ValueError(f"document schema error: field '{field}' must be non-negative (got {d})")
    return d


def _coerce_int(v: Any, *, default: int = 0) -> int:
    try:
        if v is None or isinstance(v, bool):
            return int(default)
        return int(v)
    except Exception:
        return int(default)


def _coerce_bool(v: Any, *, default: bool = False) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)) and v in (0, 1):
        return bool(v)
    if isinstance(v, str):
        s = v.strip().lower()
        if s in {"1", "true", "yes", "y", "on"}:
            return True
        if s in {"0", "false", "no", "n", "off"}:
            return False
    return bool(default)


def _dec_str(d: Decimal) -> str:
    return format(d, "f")


@dataclass(frozen=True)
class AccrualAnchor:
    """Balance at `at_ms` under `daily_rate`; later balances are computed from here in one step."""

    at_ms: int = 0
    balance: Decimal = ZERO
    daily_rate: Decimal = ZERO

    def to_dict(self) -> Json:
        return {"at_ms": int(self.at_ms), "balance": _dec_str(self.balance), "daily_rate": _dec_str(self.daily_rate)}

    @classmethod
    def from_dict(cls, d: Any) -> Optional["AccrualAnchor"]:
        if not isinstance(d, dict):
            return None
        return cls(
            at_ms=_coerce_int(d.get("at_ms")),
            balance=_coerce_decimal(d.get("balance"), field="accrual_anchor.balance"),
            daily_rate=_coerce_decimal(d.get("daily_rate"), field="accrual_anchor.daily_rate"),
        )


def _anchor_doc(out: Json, anchor: Optional[AccrualAnchor]) -> Json:
    if anchor is not None:
        out["accrual_anchor"] = anchor.to_dict()
    return out


@dataclass
class StakedAsset:
    id: int
    tier: Tier = Tier.UNASSIGNED
    base_daily_rate: Decimal = ZERO
    staked: bool = False
    staked_at_ms: int = 0

    def to_dict(self) -> Json:
        return {
            "id": int(self.id),
            "tier": self.tier.value,
            "base_daily_rate": _dec_str(self.base_daily_rate),
            "staked": bool(self.staked),
            "staked_at_ms": int(self.staked_at_ms),
        }

    @classmethod
    def from_dict(cls, d: Any) -> Optional["StakedAsset"]:
        if not isinstance(d, dict):
            return None
        aid = _coerce_int(d.get("id"), default=0)
        if aid < 1:
            return None
        return cls(
            id=aid,
            tier=Tier.parse(d.get("tier", d.get("type"))),
            base_daily_rate=_coerce_decimal(d.get("base_daily_rate", d.get("earning")), field="base_daily_rate"),
            staked=_coerce_bool(d.get("staked")),
            staked_at_ms=_coerce_int(d.get("staked_at_ms", d.get("lastStakedTime"))),
        )


def seed_assets() -> List[StakedAsset]:
    return [
        StakedAsset(id=i, tier=Tier.parse(tier), base_daily_rate=rate)
        for i, (tier, rate) in enumerate(SEED_ASSETS, start=1)
    ]


@dataclass
class HolderAccount:
    """Per-holder staking + reward-token record (document `users/<id>/staking`)."""

    assets: List[StakedAsset] = field(default_factory=seed_assets)
    accrued_balance: Decimal = ZERO
    ready_to_burn: Decimal = ZERO
    total_burnt: Decimal = ZERO
    last_accrual_ms: int = 0
    accrual_anchor: Optional[AccrualAnchor] = None

    def copy(self) -> "HolderAccount":
        return copy.deepcopy(self)

    def staked_assets(self) -> List[StakedAsset]:
        return [a for a in self.assets if a.staked]

    def find_asset(self, asset_id: int) -> Optional[StakedAsset]:
        for a in self.assets:
            if a.id == int(asset_id):
                return a
        return None

    def next_asset_id(self) -> int:
        return max((a.id for a in self.assets), default=0) + 1

    def to_dict(self) -> Json:
        return _anchor_doc(
            {
                "assets": [a.to_dict() for a in self.assets],
                "accrued_balance": _dec_str(self.accrued_balance),
                "ready_to_burn": _dec_str(self.ready_to_burn),
                "total_burnt": _dec_str(self.total_burnt),
                "last_accrual_ms": int(self.last_accrual_ms),
            },
            self.accrual_anchor,
        )

    @classmethod
    def from_dict(cls, d: Any) -> "HolderAccount":
        if not isinstance(d, dict):
            return cls()

        raw_assets = d.get("assets")
        if isinstance(raw_assets, list):
            assets = []
            for i, x in enumerate(raw_assets):
                a = StakedAsset.from_dict(x)
                if a is None:
                    # Dropping the entry would delete the asset on the next commit.
                    raise ValueError(f"document schema error: assets[{i}] is not a valid asset (got {x!r})")
                assets.append(a)
            assets.sort(key=lambda a: a.id)
        else:
            # Document exists but was created by a burn/balance-only writer.
            assets = seed_assets()

        return cls(
            assets=assets,
            accrued_balance=_coerce_decimal(d.get("accrued_balance"), field="accrued_balance"),
            ready_to_burn=_coerce_decimal(d.get("ready_to_burn"), field="ready_to_burn"),
            total_burnt=_coerce_decimal(d.get("total_burnt"), field="total_burnt"),
            last_accrual_ms=_coerce_int(d.get("last_accrual_ms")),
            accrual_anchor=AccrualAnchor.from_dict(d.get("accrual_anchor")),
        )


@dataclass
class GlobalBurnStats:
    """Process-wide burn pool for the base token (document `public/burn_stats/global`)."""

    ready_to_burn: Decimal = ZERO
    total_burnt: Decimal = ZERO

    def to_dict(self) -> Json:
        return {"ready_to_burn": _dec_str(self.ready_to_burn), "total_burnt": _dec_str(self.total_burnt)}

    @classmethod
    def from_dict(cls, d: Any) -> "GlobalBurnStats":
        d = d if isinstance(d, dict) else {}
        return cls(
            ready_to_burn=_coerce_decimal(d.get("ready_to_burn"), field="ready_to_burn"),
            total_burnt=_coerce_decimal(d.get("total_burnt"), field="total_burnt"),
        )


@dataclass
class RaffleAccount:
    ticket_count: int = 0

    def to_dict(self) -> Json:
        return {"ticket_count": int(self.ticket_count)}

    @classmethod
    def from_dict(cls, d: Any) -> "RaffleAccount":
        d = d if isinstance(d, dict) else {}
        n = _coerce_int(d.get("ticket_count", d.get("tickets")))
        if n < 0:
            raise ValueError(f"document schema error: field 'ticket_count' must be non-negative (got {n})")
        return cls(ticket_count=n)


@dataclass
class SaleAccount:
    lifetime_usd_spent: Decimal = ZERO
    epoch_usd_spent: Decimal = ZERO
    last_recorded_epoch: int = -1

    def to_dict(self) -> Json:
        return {
            "lifetime_usd_spent": _dec_str(self.lifetime_usd_spent),
            "epoch_usd_spent": _dec_str(self.epoch_usd_spent),
            "last_recorded_epoch": int(self.last_recorded_epoch),
        }

    @classmethod
    def from_dict(cls, d: Any) -> "SaleAccount":
        d = d if isinstance(d, dict) else {}
        return cls(
            lifetime_usd_spent=_coerce_decimal(d.get("lifetime_usd_spent"), field="lifetime_usd_spent"),
            epoch_usd_spent=_coerce_decimal(d.get("epoch_usd_spent"), field="epoch_usd_spent"),
            last_recorded_epoch=max(-1, _coerce_int(d.get("last_recorded_epoch"), default=-1)),
        )


@dataclass
class ReferralAccount:
    referral_count: int = 0
    pending_earnings: Decimal = ZERO
    last_accrual_ms: int = 0
    accrual_anchor: Optional[AccrualAnchor] = None

    def to_dict(self) -> Json:
        return _anchor_doc(
            {
                "referral_count": int(self.referral_count),
                "pending_earnings": _dec_str(self.pending_earnings),
                "last_accrual_ms": int(self.last_accrual_ms),
            },
            self.accrual_anchor,
        )

    @classmethod
    def from_dict(cls, d: Any) -> "ReferralAccount":
        d = d if isinstance(d, dict) else {}
        return cls(
            referral_count=max(0, _coerce_int(d.get("referral_count"))),
            pending_earnings=_coerce_decimal(d.get("pending_earnings"), field="pending_earnings"),
            last_accrual_ms=_coerce_int(d.get("last_accrual_ms")),
            accrual_anchor=AccrualAnchor.from_dict(d.get("accrual_anchor")),
        )


__all__ = [
    "AccrualAnchor",
    "GlobalBurnStats",
    "HolderAccount",
    "RaffleAccount",
    "ReferralAccount",
    "SaleAccount",
    "StakedAsset",
    "Tier",
    "seed_assets",
]
