# src/dinostake/runtime/apply/raffle.py
from __future__ import annotations

"""Raffle tickets (paid in eDINOSUR) and the three-reel slot draw.

Ticket purchases touch two documents (holder balance/burn pool and raffle
ticket count); both new records are returned together so the caller can
commit them in one write.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Sequence, Tuple

from dinostake.ledger.constants import REEL_COUNT, REEL_SYMBOLS, TICKET_BURN_RATE, TICKET_PRICE
from dinostake.ledger.types import ZERO, HolderAccount, RaffleAccount
from dinostake.runtime.errors import INSUFFICIENT_BALANCE, INVALID_AMOUNT, NO_TICKETS_AVAILABLE, EconError

Json = Dict[str, Any]

JACKPOT = "jackpot"
PARTIAL_MATCH = "partial_match"
NO_WIN = "no_win"


@dataclass(frozen=True)
class TicketReceipt:
    quantity: int
    total_cost: Decimal
    burn_amount: Decimal
    ticket_count: int

    def to_json(self) -> Json:
        return {
            "quantity": int(self.quantity),
            "total_cost": str(self.total_cost),
            "burn_amount": str(self.burn_amount),
            "ticket_count": int(self.ticket_count),
        }


@dataclass(frozen=True)
class SpinOutcome:
    reels: Tuple[str, ...]
    kind: str
    tickets_left: int

    def to_json(self) -> Json:
        return {"reels": list(self.reels), "kind": self.kind, "tickets_left": int(self.tickets_left)}


def tickets_cost(quantity: int) -> Decimal:
    return TICKET_PRICE * Decimal(int(quantity))


def buy_tickets(
    holder: HolderAccount, raffle: RaffleAccount, quantity: int
) -> Tuple[HolderAccount, RaffleAccount, TicketReceipt]:
    q = int(quantity)
    if q < 1:
        raise EconError(INVALID_AMOUNT, "quantity_must_be_positive", {"quantity": q})

    total = tickets_cost(q)
    if holder.accrued_balance < total:
        raise EconError(
            INSUFFICIENT_BALANCE,
            "ticket_cost_exceeds_balance",
            {"cost": str(total), "balance": str(holder.accrued_balance)},
        )

    burn = total * TICKET_BURN_RATE
    h = holder.copy()
    h.accrued_balance = max(ZERO, h.accrued_balance - total)
    h.ready_to_burn = h.ready_to_burn + burn

    r = RaffleAccount(ticket_count=raffle.ticket_count + q)
    return h, r, TicketReceipt(quantity=q, total_cost=total, burn_amount=burn, ticket_count=r.ticket_count)


def classify(reels: Sequence[str]) -> str:
    a, b, c = reels[0], reels[1], reels[2]
    if a == b == c:
        return JACKPOT
    if a == b or b == c or a == c:
        return PARTIAL_MATCH
    return NO_WIN


def draw_reels(rng, symbols: Sequence[str] = REEL_SYMBOLS) -> Tuple[str, ...]:
    """Each reel is sampled independently and uniformly. `rng` needs `.choice()`."""
    return tuple(rng.choice(symbols) for _ in range(REEL_COUNT))


def spin(raffle: RaffleAccount, rng) -> Tuple[RaffleAccount, SpinOutcome]:
    """Consume one ticket and draw. In-flight serialization is the caller's job."""
    if raffle.ticket_count <= 0:
        raise EconError(NO_TICKETS_AVAILABLE, "buy_tickets_first", {"ticket_count": raffle.ticket_count})

    reels = draw_reels(rng)
    r = RaffleAccount(ticket_count=raffle.ticket_count - 1)
    return r, SpinOutcome(reels=reels, kind=classify(reels), tickets_left=r.ticket_count)


__all__ = [
    "JACKPOT",
    "NO_WIN",
    "PARTIAL_MATCH",
    "SpinOutcome",
    "TicketReceipt",
    "buy_tickets",
    "classify",
    "draw_reels",
    "spin",
    "tickets_cost",
]
