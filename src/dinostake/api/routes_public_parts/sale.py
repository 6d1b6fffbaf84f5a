from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.routes_public_parts.common import _ok, _read, _session, _unwrap
from dinostake.api.schemas import SaleBuyRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/sale")
def sale_status(request: Request) -> Json:
    """Phase, countdown, current epoch price, caps, and this wallet's spend."""
    return _ok(_read(_session(request).sale_status))


@router.post("/sale/buy")
def buy(body: SaleBuyRequest, request: Request) -> Json:
    return _unwrap(_session(request).buy_sale(body.token_amount))
