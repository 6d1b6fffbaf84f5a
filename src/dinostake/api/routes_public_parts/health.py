from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

from dinostake.api.routes_public_parts.common import _runtime

router = APIRouter()

Json = Dict[str, Any]


@router.get("/health")
def health(request: Request) -> Json:
    """Liveness plus a small amount of runtime status for operators."""
    rt = _runtime(request)
    now = rt.clock.now_ms()

    sched = getattr(request.app.state, "scheduler", None)
    scheduler: Json = {"attached": sched is not None}
    if sched is not None:
        scheduler.update(
            {
                "started": bool(sched.started),
                "paused": bool(sched.paused),
                "last_error": sched.last_error or None,
            }
        )

    return {
        "ok": True,
        "mode": rt.cfg.mode,
        "ts_ms": int(time.time() * 1000),
        "sale_phase": rt.sale_schedule.phase(now),
        "scheduler": scheduler,
    }
