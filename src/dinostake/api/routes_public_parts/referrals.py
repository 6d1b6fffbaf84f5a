from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.routes_public_parts.common import _ok, _read, _session, _unwrap

router = APIRouter()

Json = Dict[str, Any]


@router.get("/referrals")
def referral_status(request: Request) -> Json:
    return _ok(_read(_session(request).referral_status))


@router.post("/referrals")
def add_referral(request: Request) -> Json:
    return _unwrap(_session(request).add_referral())


@router.post("/referrals/claim")
def claim(request: Request) -> Json:
    return _unwrap(_session(request).claim_referrals())
