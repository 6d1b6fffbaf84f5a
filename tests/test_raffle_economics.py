from __future__ import annotations

import random
from decimal import Decimal

import pytest

from dinostake.ledger.constants import REEL_SYMBOLS
from dinostake.ledger.types import HolderAccount, RaffleAccount
from dinostake.runtime.apply import raffle
from dinostake.runtime.errors import INSUFFICIENT_BALANCE, INVALID_AMOUNT, NO_TICKETS_AVAILABLE, EconError


class _ScriptedRng:
    def __init__(self, picks):
        self._picks = list(picks)

    def choice(self, _seq):
        return self._picks.pop(0)


def test_three_tickets_from_200k() -> None:
    h = HolderAccount(accrued_balance=Decimal("200000"))
    h2, r2, receipt = raffle.buy_tickets(h, RaffleAccount(), 3)

    assert receipt.total_cost == Decimal("150000")
    assert h2.accrued_balance == Decimal("50000")
    assert h2.ready_to_burn == Decimal("15000")
    assert r2.ticket_count == 3


def test_unaffordable_purchase_changes_nothing() -> None:
    h = HolderAccount(accrued_balance=Decimal("99999"))
    r = RaffleAccount(ticket_count=2)
    with pytest.raises(EconError) as ei:
        raffle.buy_tickets(h, r, 2)
    assert ei.value.code == INSUFFICIENT_BALANCE
    assert h.accrued_balance == Decimal("99999")
    assert h.ready_to_burn == Decimal("0")
    assert r.ticket_count == 2


@pytest.mark.parametrize("q", [0, -1])
def test_quantity_must_be_positive(q: int) -> None:
    with pytest.raises(EconError) as ei:
        raffle.buy_tickets(HolderAccount(accrued_balance=Decimal("1000000")), RaffleAccount(), q)
    assert ei.value.code == INVALID_AMOUNT


@pytest.mark.parametrize(
    "reels,kind",
    [
        (("DINO", "DINO", "DINO"), raffle.JACKPOT),
        (("DINO", "DINO", "EGG"), raffle.PARTIAL_MATCH),
        (("EGG", "DINO", "DINO"), raffle.PARTIAL_MATCH),
        (("DINO", "EGG", "DINO"), raffle.PARTIAL_MATCH),
        (("DINO", "EGG", "BONE"), raffle.NO_WIN),
    ],
)
def test_classification(reels, kind) -> None:
    assert raffle.classify(reels) == kind


def test_spin_consumes_exactly_one_ticket() -> None:
    r, outcome = raffle.spin(RaffleAccount(ticket_count=2), _ScriptedRng(["FERN", "FERN", "FERN"]))
    assert r.ticket_count == 1
    assert outcome.tickets_left == 1
    assert outcome.reels == ("FERN", "FERN", "FERN")
    assert outcome.kind == raffle.JACKPOT


def test_spin_without_tickets_fails() -> None:
    with pytest.raises(EconError) as ei:
        raffle.spin(RaffleAccount(), random.Random(1))
    assert ei.value.code == NO_TICKETS_AVAILABLE


def test_reels_are_drawn_from_the_symbol_set() -> None:
    rng = random.Random(42)
    for _ in range(50):
        reels = raffle.draw_reels(rng)
        assert len(reels) == 3
        assert all(s in REEL_SYMBOLS for s in reels)
