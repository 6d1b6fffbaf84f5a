# src/dinostake/runtime/apply/__init__.py
"""Economic policy modules.

Each module holds pure state transitions over the typed records in
dinostake.ledger.types: they take records, return new records plus a receipt,
and raise EconError on rejection. Nothing here touches the store or the clock.
"""

from __future__ import annotations

__all__ = [
    "multiplier",
    "rewards",
    "slots",
    "raffle",
    "sale",
    "burn",
    "referrals",
]
