from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.routes_public_parts.common import _ok, _read, _session, _unwrap
from dinostake.api.schemas import TicketPurchaseRequest
from dinostake.ledger.constants import TICKET_PRICE

router = APIRouter()

Json = Dict[str, Any]


@router.get("/raffle")
def raffle_status(request: Request) -> Json:
    s = _session(request)
    r = _read(s.raffle)
    return _ok({"ticket_count": r.ticket_count, "ticket_price": str(TICKET_PRICE), "spinning": s.spinning})


@router.post("/raffle/tickets")
def buy_tickets(body: TicketPurchaseRequest, request: Request) -> Json:
    return _unwrap(_session(request).buy_tickets(body.quantity))


@router.post("/raffle/spin")
def spin(request: Request) -> Json:
    """One draw per ticket; a concurrent spin for the same holder gets 409."""
    return _unwrap(_session(request).spin())
