# src/dinostake/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from dinostake.api.routes_public_parts.burn import router as burn_router
from dinostake.api.routes_public_parts.health import router as health_router
from dinostake.api.routes_public_parts.metrics import router as metrics_router
from dinostake.api.routes_public_parts.raffle import router as raffle_router
from dinostake.api.routes_public_parts.referrals import router as referrals_router
from dinostake.api.routes_public_parts.sale import router as sale_router
from dinostake.api.routes_public_parts.staking import router as staking_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(staking_router, prefix="/v1", tags=["staking"])
public_router.include_router(burn_router, prefix="/v1", tags=["burn"])
public_router.include_router(raffle_router, prefix="/v1", tags=["raffle"])
public_router.include_router(sale_router, prefix="/v1", tags=["sale"])
public_router.include_router(referrals_router, prefix="/v1", tags=["referrals"])

# Ops
public_router.include_router(metrics_router, prefix="/v1", tags=["metrics"])
