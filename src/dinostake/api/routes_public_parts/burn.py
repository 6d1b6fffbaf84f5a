from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.errors import ApiError
from dinostake.api.routes_public_parts.common import _ok, _read, _runtime, _session, _unwrap
from dinostake.api.schemas import BurnRequest, GlobalBurnCreditRequest

router = APIRouter()

Json = Dict[str, Any]


@router.get("/burn")
def burn_status(request: Request) -> Json:
    s = _session(request)
    h = _read(s.holder)
    g = _read(s.global_burn)
    return _ok(
        {
            "holder": {"ready_to_burn": str(h.ready_to_burn), "total_burnt": str(h.total_burnt)},
            "global": g.to_dict(),
        }
    )


@router.post("/burn")
def burn_all(body: BurnRequest, request: Request) -> Json:
    """Burn everything ready in the named pool; the two pools never mix."""
    return _unwrap(_session(request).burn_all(body.target))


@router.post("/burn/global/credit")
def credit_global(body: GlobalBurnCreditRequest, request: Request) -> Json:
    """Operator-only: earmark base-token supply for the global burn.

    Not exposed in prod mode; production crediting is an offline treasury action.
    """
    if _runtime(request).cfg.mode == "prod":
        raise ApiError.not_found("not_found", "route not available in prod mode", {})
    return _unwrap(_session(request).credit_global_burn(body.amount))
