from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.routes_public_parts.common import _ok, _read, _session, _unwrap

router = APIRouter()

Json = Dict[str, Any]


@router.get("/staking")
def staking_status(request: Request) -> Json:
    """Account, multiplier, daily rate and the cost of the next slot.

    Without an X-User-Id header this returns the default (seed) account.
    """
    s = _session(request)
    return _ok(_read(s.staking_status))


@router.post("/staking/{asset_id}/stake")
def stake(asset_id: int, request: Request) -> Json:
    return _unwrap(_session(request).stake(asset_id))


@router.post("/staking/{asset_id}/unstake")
def unstake(asset_id: int, request: Request) -> Json:
    return _unwrap(_session(request).unstake(asset_id))


@router.post("/staking/claim")
def claim(request: Request) -> Json:
    return _unwrap(_session(request).claim_rewards())


@router.post("/staking/slots")
def purchase_slot(request: Request) -> Json:
    return _unwrap(_session(request).purchase_slot())
